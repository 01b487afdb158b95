from urllib.parse import quote, unquote, urlsplit

import pytest

from kaya import config
from kaya.settings import SettingsStore
from kaya.transport.sender import SyncClient


class FakeResponse:
    def __init__(self, status_code=200, content=b"", reason=""):
        self.status_code = status_code
        self.content = content
        self.reason = reason

    @property
    def ok(self):
        return self.status_code < 400

    @property
    def text(self):
        return self.content.decode("utf-8")


class FakeServer:
    """In-memory Kaya file store that plugs in where a requests.Session goes."""

    def __init__(self, email="me@example.com"):
        self.email = email
        self.files = {"anga": {}, "meta": {}}
        self.listing_status = {}
        self.download_status = {}
        self.upload_status = {}
        self.listings = []
        self.downloads = []
        self.uploads = []
        self.auth = None
        self.closed = False

    def request(self, method, url, timeout=None, files=None, **kwargs):
        # /api/v1/<email>/<collection>[/<filename>]
        parts = urlsplit(url).path.split("/")
        assert parts[1:3] == ["api", "v1"]
        assert unquote(parts[3]) == self.email
        collection = parts[4]
        store = self.files[collection]

        if len(parts) == 5:
            self.listings.append(collection)
            status = self.listing_status.get(collection, 200)
            if status != 200:
                return FakeResponse(status, reason="Server Error")
            body = "\n".join(quote(n, safe="") for n in sorted(store))
            return FakeResponse(200, body.encode("utf-8"))

        name = unquote(parts[5])
        if method == "GET":
            self.downloads.append((collection, name))
            if name in self.download_status:
                return FakeResponse(self.download_status[name])
            if name not in store:
                return FakeResponse(404)
            return FakeResponse(200, store[name])

        field_name, content, mime = files["file"]
        self.uploads.append((collection, name, mime))
        if name in self.upload_status:
            return FakeResponse(self.upload_status[name])
        if name in store:
            return FakeResponse(409)
        store[name] = content
        return FakeResponse(201)

    def transfers(self):
        return len(self.downloads) + len(self.uploads)

    def close(self):
        self.closed = True


@pytest.fixture
def paths(tmp_path):
    p = config.get_paths(tmp_path / "kaya")
    config.ensure_directories(p)
    return p


@pytest.fixture
def store(paths):
    return SettingsStore(paths.settings)


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def client(server):
    return SyncClient("https://kaya.example/", server.email, "secret", session=server)
