"""
Settings store: server URL, email and the encrypted password + its key.

The record is rewritten wholesale on every settings update and read fresh on
every use, so the native host loop and the sync thread never share it in
memory.
"""

import base64
import binascii
import json
import logging
import os
from pathlib import Path
from typing import NamedTuple, Optional

from pydantic import BaseModel, ValidationError

from kaya.errors import ConfigError, EncryptionError
from kaya.utils import crypto

logger = logging.getLogger("kaya.settings")


class Settings(BaseModel):
    server: Optional[str] = None
    email: Optional[str] = None
    encrypted_password: Optional[str] = None
    encryption_key: Optional[str] = None  # base64 of a 32-byte key


class Credentials(NamedTuple):
    server: str
    email: str
    password: str


class SettingsStore:
    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Settings:
        if not self.path.exists():
            return Settings()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return Settings.model_validate(data)
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
            raise ConfigError(f"Invalid config: {e}") from e

    def save(self, settings: Settings):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(settings.model_dump_json(exclude_none=True, indent=2), encoding="utf-8")
        try:
            os.chmod(str(self.path), 0o600)
        except OSError:
            logger.warning("could not restrict permissions on %s", self.path)

    def set_credentials(self, server: Optional[str], email: Optional[str], password: Optional[str]) -> Settings:
        """Replace the stored settings. A password gets a brand new key."""
        encrypted = key_b64 = None
        if password is not None:
            key = crypto.generate_key()
            encrypted = crypto.encrypt(password, key)
            key_b64 = base64.b64encode(key).decode("ascii")
        settings = Settings(server=server, email=email, encrypted_password=encrypted, encryption_key=key_b64)
        self.save(settings)
        return settings

    def resolve_password(self, settings: Optional[Settings] = None) -> Optional[str]:
        settings = settings if settings is not None else self.load()
        if not settings.encrypted_password or not settings.encryption_key:
            return None
        try:
            key = base64.b64decode(settings.encryption_key, validate=True)
        except (binascii.Error, ValueError) as e:
            raise EncryptionError(f"Invalid key encoding: {e}") from e
        if len(key) != crypto.KEY_LEN:
            raise EncryptionError("Invalid key length")
        return crypto.decrypt(settings.encrypted_password, key)

    def credentials(self) -> Optional[Credentials]:
        """Server, email and plaintext password, or None if any is missing."""
        settings = self.load()
        if not settings.server or not settings.email:
            return None
        password = self.resolve_password(settings)
        if password is None:
            return None
        return Credentials(settings.server, settings.email, password)
