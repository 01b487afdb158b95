"""
Runtime configuration for the Kaya native host.
Values come from the environment (a local .env is loaded first).
"""

import logging
import os
import sys
from pathlib import Path
from typing import NamedTuple

from dotenv import load_dotenv

load_dotenv()

ANGA_DIRNAME = "anga"
META_DIRNAME = "meta"
META_EXTENSION = ".toml"
SETTINGS_FILENAME = ".config"
LOG_FILENAME = "log"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger("kaya.config")


class Paths(NamedTuple):
    home: Path
    anga: Path
    meta: Path
    settings: Path
    log: Path


def get_paths(home=None) -> Paths:
    root = Path(home or os.getenv("KAYA_HOME") or Path.home() / ".kaya").expanduser()
    return Paths(
        home=root,
        anga=root / ANGA_DIRNAME,
        meta=root / META_DIRNAME,
        settings=root / SETTINGS_FILENAME,
        log=root / LOG_FILENAME,
    )


def _env_number(name: str, default, cast=int):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def sync_interval() -> float:
    return _env_number("KAYA_SYNC_INTERVAL", 60.0, float)


def http_timeout() -> float:
    return _env_number("KAYA_HTTP_TIMEOUT", 30.0, float)


def http_retries() -> int:
    return _env_number("KAYA_HTTP_RETRIES", 3)


def ensure_directories(paths: Paths):
    paths.anga.mkdir(parents=True, exist_ok=True)
    paths.meta.mkdir(parents=True, exist_ok=True)


def setup_logging(paths: Paths, level=None):
    """Log to the log file and stderr. stdout belongs to the IPC channel."""
    level = level or os.getenv("KAYA_LOG_LEVEL", "INFO").upper()
    handlers = [logging.StreamHandler(sys.stderr)]
    log_error = None
    try:
        paths.log.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(paths.log), encoding="utf-8"))
    except OSError as e:
        log_error = e
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    if log_error is not None:
        logger.warning("could not open log file %s (%s), logging to stderr only", paths.log, log_error)
