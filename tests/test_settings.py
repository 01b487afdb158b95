import base64
import json

import pytest

from kaya.errors import ConfigError, EncryptionError
from kaya.settings import Settings, SettingsStore


def test_load_missing_file_is_empty(store):
    assert store.load() == Settings()
    assert store.resolve_password() is None
    assert store.credentials() is None


def test_set_credentials_roundtrip(store):
    store.set_credentials("https://kaya.example", "me@example.com", "secret")
    s = store.load()
    assert s.server == "https://kaya.example"
    assert s.email == "me@example.com"
    assert "secret" not in store.path.read_text()
    assert len(base64.b64decode(s.encryption_key)) == 32
    assert store.resolve_password() == "secret"
    assert tuple(store.credentials()) == ("https://kaya.example", "me@example.com", "secret")


def test_new_key_on_every_update(store):
    first = store.set_credentials("s", "e", "secret")
    second = store.set_credentials("s", "e", "secret")
    assert first.encryption_key != second.encryption_key
    assert first.encrypted_password != second.encrypted_password
    assert store.resolve_password() == "secret"


def test_update_without_password_clears_both(store):
    store.set_credentials("s", "e", "secret")
    store.set_credentials("s2", None, None)
    s = store.load()
    assert s == Settings(server="s2")
    assert s.encrypted_password is None and s.encryption_key is None
    assert store.resolve_password() is None


def test_saved_file_omits_absent_fields(store):
    store.save(Settings(server="https://x"))
    assert json.loads(store.path.read_text()) == {"server": "https://x"}


def test_save_creates_directories(tmp_path):
    store = SettingsStore(tmp_path / "deep" / "er" / ".config")
    store.save(Settings(email="e"))
    assert store.load().email == "e"


@pytest.mark.parametrize("content", ["{broken", "[]", '{"server": 5}'])
def test_malformed_file(store, content):
    store.path.write_text(content)
    with pytest.raises(ConfigError):
        store.load()


def test_half_pair_resolves_to_none(store):
    store.save(Settings(server="s", email="e", encrypted_password="abc"))
    assert store.resolve_password() is None
    assert store.credentials() is None


def test_bad_key_raises(store):
    s = store.set_credentials("s", "e", "secret")
    store.save(s.model_copy(update={"encryption_key": base64.b64encode(b"k" * 16).decode()}))
    with pytest.raises(EncryptionError):
        store.resolve_password()


def test_tampered_password_raises(store):
    s = store.set_credentials("s", "e", "secret")
    other = store.set_credentials("s", "e", "other")
    store.save(s.model_copy(update={"encryption_key": other.encryption_key}))
    with pytest.raises(EncryptionError):
        store.credentials()
