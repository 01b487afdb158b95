import logging

from pydantic import ValidationError

from kaya.config import Paths, ensure_directories
from kaya.errors import KayaError, describe_error
from kaya.messages import (BookmarkQuery, ContentWrite, InboundMessage, MetadataWrite, OutboundMessage,
                           Request, SettingsUpdate)
from kaya.processing.bookmarks import get_all_bookmarked_urls
from kaya.settings import SettingsStore
from kaya.sync.engine import check_filename

logger = logging.getLogger("kaya.dispatcher")


def _salvage_id(raw: dict):
    value = raw.get("id") if isinstance(raw, dict) else None
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return None


class Dispatcher:
    """Turns one decoded inbound message into exactly one response."""

    def __init__(self, paths: Paths, store: SettingsStore):
        self.paths = paths
        self.store = store

    def dispatch(self, raw: dict) -> OutboundMessage:
        msg_id = _salvage_id(raw)
        try:
            msg = InboundMessage.model_validate(raw)
            msg_id = msg.id
            self.handle(msg.to_request())
        except (KayaError, ValidationError, ValueError, OSError) as e:
            logger.error("message %s failed: %s", msg_id, describe_error(e))
            return OutboundMessage.failed(describe_error(e), id=msg_id)
        return OutboundMessage.ok(id=msg_id, urls=self.bookmarked_urls())

    def handle(self, request: Request):
        if isinstance(request, SettingsUpdate):
            self.handle_settings(request)
        elif isinstance(request, ContentWrite):
            self.handle_anga(request)
        elif isinstance(request, MetadataWrite):
            self.handle_meta(request)
        elif isinstance(request, BookmarkQuery):
            logger.info("Received bookmarks query")
        else:
            raise TypeError(f"unhandled request {type(request).__name__}")

    def handle_settings(self, request: SettingsUpdate):
        logger.info("Received config message: server=%s, email=%s", request.server, request.email)
        self.store.set_credentials(request.server, request.email, request.password)

    def handle_anga(self, request: ContentWrite):
        logger.info("Received anga message: filename=%s (%d bytes)", request.filename, len(request.content))
        filename = check_filename(request.filename)
        ensure_directories(self.paths)
        (self.paths.anga / filename).write_bytes(request.content)

    def handle_meta(self, request: MetadataWrite):
        logger.info("Received meta message: filename=%s", request.filename)
        filename = check_filename(request.filename)
        ensure_directories(self.paths)
        (self.paths.meta / filename).write_bytes(request.text.encode("utf-8"))

    def bookmarked_urls(self):
        try:
            return get_all_bookmarked_urls(self.paths.anga)
        except OSError:
            logger.exception("could not list bookmarks")
            return None
