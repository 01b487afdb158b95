"""
Native messaging framing: a 4-byte length in host byte order followed by
that many bytes of UTF-8 JSON. Used over the browser's stdin/stdout pipe.

A frame longer than MAX_MESSAGE_LEN is not drained, so there is no way to
find the next frame boundary and it is treated like a truncated stream.
"""

import json
import logging
import struct
import sys
import threading
from typing import Optional

from kaya.errors import ChannelError, CodecError

logger = logging.getLogger("kaya.transport.framing")

HEADER = struct.Struct("=I")
MAX_MESSAGE_LEN = 100 * 1024 * 1024


class NativeChannel:
    def __init__(self, reader=None, writer=None):
        self.reader = reader if reader is not None else sys.stdin.buffer
        self.writer = writer if writer is not None else sys.stdout.buffer
        self._write_lock = threading.Lock()

    def _read_exact(self, n: int, eof_ok=False) -> Optional[bytes]:
        buf = bytearray()
        while len(buf) < n:
            chunk = self.reader.read(n - len(buf))
            if not chunk:
                if eof_ok and not buf:
                    return None
                raise ChannelError(f"unexpected end of stream after {len(buf)} of {n} bytes")
            buf += chunk
        return bytes(buf)

    def read_message(self) -> Optional[dict]:
        """Next message, or None once the host closes the pipe."""
        raw_len = self._read_exact(HEADER.size, eof_ok=True)
        if raw_len is None:
            return None
        (msg_len,) = HEADER.unpack(raw_len)
        if msg_len > MAX_MESSAGE_LEN:
            raise ChannelError(f"Invalid message length: {msg_len}")
        if msg_len == 0:
            raise CodecError(f"Invalid message length: {msg_len}")
        data = self._read_exact(msg_len)
        try:
            obj = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, ValueError, RecursionError) as e:
            raise CodecError(f"Invalid message payload: {e}") from e
        if not isinstance(obj, dict):
            raise CodecError(f"Invalid message payload: expected an object, got {type(obj).__name__}")
        return obj

    def write_message(self, obj: dict):
        data = json.dumps(obj, separators=(",", ":")).encode("utf-8")
        with self._write_lock:
            self.writer.write(HEADER.pack(len(data)))
            self.writer.write(data)
            self.writer.flush()
        logger.debug("sent %d byte message", len(data))
