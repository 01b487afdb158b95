import logging
from typing import List, Optional
from urllib.parse import quote, unquote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from kaya.errors import HttpError

logger = logging.getLogger("kaya.transport.sender")

CONFLICT = 409


def _segment(value: str) -> str:
    return quote(value, safe="")


def parse_listing(body: str) -> List[str]:
    """One percent-encoded name per line. Blank or undecodable lines are dropped."""
    names = []
    for line in body.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            name = unquote(line, errors="strict")
        except UnicodeDecodeError:
            logger.warning("dropping undecodable listing entry %r", line)
            continue
        if name:
            names.append(name)
    return names


class SyncClient:
    def __init__(self, base_url: str, email: str, password: str, timeout: float = 30, retries: int = 3,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.email = email
        self.timeout = timeout
        if session is None:
            session = requests.Session()
            retry = Retry(total=retries, backoff_factor=1, status_forcelist=[502, 503, 504],
                          allowed_methods=["GET"])
            adapter = HTTPAdapter(max_retries=retry)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
        session.auth = (email, password)
        self.session = session

    def collection_url(self, collection: str) -> str:
        return f"{self.base_url}/api/v1/{_segment(self.email)}/{collection}"

    def file_url(self, collection: str, filename: str) -> str:
        return f"{self.collection_url(collection)}/{_segment(filename)}"

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        logger.debug("%s %s", method, url)
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise HttpError(method, url, reason=str(e)) from e

    def list_files(self, collection: str) -> List[str]:
        url = self.collection_url(collection)
        resp = self._send("GET", url)
        if not resp.ok:
            raise HttpError("GET", url, resp.status_code, resp.reason or "")
        return parse_listing(resp.text)

    def fetch_file(self, collection: str, filename: str) -> Optional[bytes]:
        """File bytes, or None when the server answers with a non-success status."""
        url = self.file_url(collection, filename)
        resp = self._send("GET", url)
        if not resp.ok:
            logger.debug("skipping %s: server answered %s", url, resp.status_code)
            return None
        return resp.content

    def upload_file(self, collection: str, filename: str, content: bytes, mime: str) -> bool:
        """True if the server accepted the file or already had it (409)."""
        url = self.file_url(collection, filename)
        files = {"file": (filename, content, mime)}
        resp = self._send("POST", url, files=files)
        if resp.status_code == CONFLICT:
            return True
        if not resp.ok:
            logger.error("Failed to upload %s %s: %s", collection, filename, resp.status_code)
            return False
        return True

    def close(self):
        self.session.close()
