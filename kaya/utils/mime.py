MIME_TYPES = {
    "md": "text/markdown",
    "url": "text/plain",
    "txt": "text/plain",
    "json": "application/json",
    "toml": "application/toml",
    "pdf": "application/pdf",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "html": "text/html",
    "htm": "text/html",
}

DEFAULT_MIME = "application/octet-stream"


def mime_type_for(filename: str) -> str:
    if "." not in filename:
        return DEFAULT_MIME
    ext = filename.rsplit(".", 1)[1].lower()
    return MIME_TYPES.get(ext, DEFAULT_MIME)
