"""
Sync engine -- reconciles the local anga/meta directories with the server.

Sync state is nothing but file presence: for each collection the engine
downloads what only the server has and uploads what only the local
directory has. Running a cycle twice with no outside change transfers
nothing the second time.
"""

import logging
from pathlib import Path
from typing import Callable, Iterable, List, NamedTuple, Optional, Set, Tuple

from kaya import config
from kaya.errors import ConfigError, HttpError, KayaError
from kaya.settings import Credentials, SettingsStore
from kaya.transport.sender import SyncClient
from kaya.utils.mime import mime_type_for

logger = logging.getLogger("kaya.sync.engine")

META_MIME = "application/toml"


class Collection(NamedTuple):
    name: str
    directory: Path
    extension: Optional[str] = None
    mime: Optional[str] = None

    def mime_for(self, filename: str) -> str:
        return self.mime or mime_type_for(filename)


class SyncResult(NamedTuple):
    collection: str
    downloaded: int
    uploaded: int


def default_collections(paths: config.Paths) -> List[Collection]:
    return [
        Collection("anga", paths.anga),
        Collection("meta", paths.meta, extension=config.META_EXTENSION, mime=META_MIME),
    ]


def check_filename(filename: str) -> str:
    """Reject anything that is not a plain name inside a collection directory."""
    if not filename or filename in (".", "..") or "/" in filename or "\\" in filename or "\0" in filename:
        raise ConfigError(f"Invalid filename: {filename!r}")
    return filename


def is_tracked(collection: Collection, name: str) -> bool:
    """Hidden names and, for meta, names without the extension are never synced."""
    if name.startswith("."):
        return False
    return not collection.extension or name.endswith(collection.extension)


def list_local_files(collection: Collection) -> Set[str]:
    if not collection.directory.is_dir():
        return set()
    return {entry.name for entry in collection.directory.iterdir()
            if entry.is_file() and is_tracked(collection, entry.name)}


def compute_diff(remote: Iterable[str], local: Iterable[str]) -> Tuple[Set[str], Set[str]]:
    """(to_download, to_upload) by exact name."""
    remote, local = set(remote), set(local)
    return remote - local, local - remote


class SyncEngine:
    def __init__(self, client: SyncClient, collections: List[Collection]):
        self.client = client
        self.collections = collections

    def sync_collection(self, collection: Collection) -> SyncResult:
        remote = set()
        for name in self.client.list_files(collection.name):
            try:
                remote.add(check_filename(name))
            except ConfigError:
                logger.warning("ignoring unsafe remote %s name %r", collection.name, name)
        untracked = {name for name in remote if not is_tracked(collection, name)}
        if untracked:
            logger.debug("ignoring untracked remote %s names: %s", collection.name, sorted(untracked))
        remote -= untracked
        local = list_local_files(collection)
        to_download, to_upload = compute_diff(remote, local)

        downloaded = uploaded = 0
        for name in sorted(to_download):
            if self._download(collection, name):
                downloaded += 1
        for name in sorted(to_upload):
            if self._upload(collection, name):
                uploaded += 1
        return SyncResult(collection.name, downloaded, uploaded)

    def _download(self, collection: Collection, filename: str) -> bool:
        logger.info("  downloading %s: %s", collection.name, filename)
        try:
            content = self.client.fetch_file(collection.name, filename)
            if content is None:
                return False
            collection.directory.mkdir(parents=True, exist_ok=True)
            (collection.directory / filename).write_bytes(content)
        except (HttpError, OSError) as e:
            logger.warning("download of %s %s failed: %s", collection.name, filename, e)
            return False
        return True

    def _upload(self, collection: Collection, filename: str) -> bool:
        logger.info("  uploading %s: %s", collection.name, filename)
        try:
            content = (collection.directory / filename).read_bytes()
            return self.client.upload_file(collection.name, filename, content, collection.mime_for(filename))
        except (HttpError, OSError) as e:
            logger.error("Failed to upload %s %s: %s", collection.name, filename, e)
            return False

    def sync_all(self) -> List[SyncResult]:
        """Sync every collection. A collection whose listing fails is skipped
        for this cycle; the first such error is raised once the rest are done."""
        results = []
        first_error = None
        for collection in self.collections:
            try:
                results.append(self.sync_collection(collection))
            except (KayaError, OSError) as e:
                logger.error("sync of %s aborted: %s", collection.name, e)
                if first_error is None:
                    first_error = e
        downloaded = sum(r.downloaded for r in results)
        uploaded = sum(r.uploaded for r in results)
        if downloaded or uploaded:
            logger.info("Sync complete: %d downloaded, %d uploaded", downloaded, uploaded)
        if first_error is not None:
            raise first_error
        return results


ClientFactory = Callable[[Credentials], SyncClient]


def default_client_factory(creds: Credentials) -> SyncClient:
    return SyncClient(creds.server, creds.email, creds.password,
                      timeout=config.http_timeout(), retries=config.http_retries())


def sync_with_server(store: SettingsStore, paths: config.Paths,
                     client_factory: Optional[ClientFactory] = None) -> Optional[List[SyncResult]]:
    """One full cycle. Returns None when no usable credentials are configured."""
    creds = store.credentials()
    if creds is None:
        logger.debug("sync skipped: server, email or password not configured")
        return None
    client = (client_factory or default_client_factory)(creds)
    try:
        return SyncEngine(client, default_collections(paths)).sync_all()
    finally:
        client.close()
