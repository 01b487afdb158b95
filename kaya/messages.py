"""
Messages exchanged with the browser extension.

InboundMessage mirrors the wire object as sent. to_request() turns it into
one of the request types below, each holding only what its handler needs,
so a handler can never see a message with its required fields missing.
"""

import base64
import binascii
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from kaya.errors import ConfigError

BOOKMARKS_TYPE = "bookmarks"


class InboundMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = Field(default=None, ge=0, lt=2 ** 64)
    message: str
    filename: Optional[str] = None
    content_type: Optional[str] = Field(default=None, alias="type")
    text: Optional[str] = None
    base64: Optional[str] = None
    server: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

    def to_request(self) -> "Request":
        kind = self.message
        if kind == "config":
            return SettingsUpdate(server=self.server, email=self.email, password=self.password)
        if kind == "anga":
            return ContentWrite(filename=self._require("filename", "filename"), content=self._anga_content())
        if kind == "meta":
            return MetadataWrite(filename=self._require("filename", "filename"),
                                 text=self._require("text", "text content"))
        if kind == BOOKMARKS_TYPE:
            return BookmarkQuery()
        raise ConfigError(f"Unknown message type: {kind}")

    def _require(self, field: str, what: str) -> str:
        value = getattr(self, field)
        if value is None:
            raise ConfigError(f"Missing {what}")
        return value

    def _anga_content(self) -> bytes:
        if self.content_type == "base64":
            raw = self._require("base64", "base64 content")
            try:
                return base64.b64decode(raw, validate=True)
            except (binascii.Error, ValueError) as e:
                raise binascii.Error(f"invalid base64 content for {self.filename}: {e}") from None
        if self.content_type in ("text", None):
            return self._require("text", "text content").encode("utf-8")
        raise ConfigError(f"Unknown content type: {self.content_type}")


class SettingsUpdate(BaseModel):
    server: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class ContentWrite(BaseModel):
    filename: str
    content: bytes


class MetadataWrite(BaseModel):
    filename: str
    text: str


class BookmarkQuery(BaseModel):
    pass


Request = Union[SettingsUpdate, ContentWrite, MetadataWrite, BookmarkQuery]


class OutboundMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    success: bool
    error: Optional[str] = None
    urls: Optional[List[str]] = None
    message_type: Optional[str] = Field(default=None, alias="type")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def ok(cls, id=None, urls=None):
        return cls(id=id, success=True, urls=urls, message_type=BOOKMARKS_TYPE)

    @classmethod
    def failed(cls, error: str, id=None):
        return cls(id=id, success=False, error=error)
