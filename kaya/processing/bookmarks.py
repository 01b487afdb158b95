import logging
from pathlib import Path
from typing import List

logger = logging.getLogger("kaya.processing.bookmarks")

BOOKMARK_EXTENSION = ".url"
URL_MARKER = "URL="


def get_all_bookmarked_urls(anga_dir: Path) -> List[str]:
    """URLs from every `URL=` line of the .url files in the anga directory."""
    anga_dir = Path(anga_dir)
    if not anga_dir.is_dir():
        return []
    urls = []
    for path in sorted(anga_dir.iterdir()):
        if path.suffix != BOOKMARK_EXTENSION or not path.is_file():
            continue
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            logger.warning("could not read bookmark %s", path.name)
            continue
        for line in content.splitlines():
            if line.startswith(URL_MARKER):
                urls.append(line[len(URL_MARKER):])
    return urls
