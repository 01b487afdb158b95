"""
Error kinds raised by the daemon.
Each kind carries its own context and is only turned into a display string
at the IPC response boundary (see describe_error).
"""

import binascii
import json
from typing import Optional

import requests
from pydantic import ValidationError


class KayaError(Exception):
    label = "Error"

    def __str__(self):
        return f"{self.label}: {super().__str__()}"


class ChannelError(KayaError):
    label = "IO error"


class CodecError(KayaError):
    label = "Codec error"


class ConfigError(KayaError):
    label = "Config error"


class EncryptionError(KayaError):
    label = "Encryption error"


class HttpError(KayaError):
    label = "HTTP error"

    def __init__(self, method: str, url: str, status: Optional[int] = None, reason: str = ""):
        self.method = method
        self.url = url
        self.status = status
        self.reason = reason
        detail = f"{method} {url}"
        if status is not None:
            detail += f" -> {status}"
        if reason:
            detail += f" ({reason})"
        super().__init__(detail)


def describe_error(exc: BaseException) -> str:
    if isinstance(exc, KayaError):
        return str(exc)
    if isinstance(exc, json.JSONDecodeError):
        return f"JSON error: {exc}"
    if isinstance(exc, binascii.Error):
        return f"Base64 decode error: {exc}"
    if isinstance(exc, ValidationError):
        fields = ", ".join(".".join(str(p) for p in e["loc"]) or "<root>" for e in exc.errors())
        return f"Codec error: invalid message ({fields})"
    if isinstance(exc, requests.RequestException):
        return f"HTTP error: {exc}"
    if isinstance(exc, OSError):
        return f"IO error: {exc}"
    return f"{type(exc).__name__}: {exc}"
