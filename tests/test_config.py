import binascii
import json

import requests

from kaya import config
from kaya.errors import ConfigError, EncryptionError, HttpError, describe_error
from kaya.processing.bookmarks import get_all_bookmarked_urls
from kaya.utils.mime import mime_type_for


def test_paths_follow_kaya_home(monkeypatch, tmp_path):
    monkeypatch.setenv("KAYA_HOME", str(tmp_path))
    p = config.get_paths()
    assert p.anga == tmp_path / "anga"
    assert p.meta == tmp_path / "meta"
    assert p.settings == tmp_path / ".config"
    assert p.log == tmp_path / "log"


def test_interval_and_timeouts(monkeypatch):
    monkeypatch.delenv("KAYA_SYNC_INTERVAL", raising=False)
    assert config.sync_interval() == 60
    monkeypatch.setenv("KAYA_SYNC_INTERVAL", "5")
    assert config.sync_interval() == 5.0
    monkeypatch.setenv("KAYA_HTTP_RETRIES", "lots")
    assert config.http_retries() == 3


def test_ensure_directories(tmp_path):
    p = config.get_paths(tmp_path / "x")
    config.ensure_directories(p)
    assert p.anga.is_dir() and p.meta.is_dir()


def test_mime_type_for():
    assert mime_type_for("a.MD") == "text/markdown"
    assert mime_type_for("b.url") == "text/plain"
    assert mime_type_for("c.jpeg") == "image/jpeg"
    assert mime_type_for("archive.tar.gz") == "application/octet-stream"
    assert mime_type_for("README") == "application/octet-stream"


def test_describe_error_labels():
    assert describe_error(ConfigError("Missing filename")) == "Config error: Missing filename"
    assert describe_error(EncryptionError("bad")) == "Encryption error: bad"
    assert describe_error(HttpError("GET", "http://x", 500)) == "HTTP error: GET http://x -> 500"
    assert describe_error(binascii.Error("Incorrect padding")).startswith("Base64 decode error")
    assert describe_error(json.JSONDecodeError("x", "", 0)).startswith("JSON error")
    assert describe_error(requests.ConnectionError("refused")) == "HTTP error: refused"
    assert describe_error(FileNotFoundError("nope")) == "IO error: nope"


def test_bookmarks_missing_dir(tmp_path):
    assert get_all_bookmarked_urls(tmp_path / "missing") == []


def test_bookmarks_skip_unreadable(tmp_path):
    (tmp_path / "bad.url").write_bytes(b"URL=\xff\xfe")
    (tmp_path / "good.url").write_text("URL=https://ok\nurl=https://lower\n")
    assert get_all_bookmarked_urls(tmp_path) == ["https://ok"]
