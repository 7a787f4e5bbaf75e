"""Content digests used as cache keys."""

import hashlib
from pathlib import Path

DIGEST_LENGTH = 16


def digest_bytes(data: bytes) -> str:
    """Return the truncated hex MD5 digest of ``data``."""
    return hashlib.md5(data, usedforsecurity=False).hexdigest()[:DIGEST_LENGTH]


def digest_text(text: str) -> str:
    """Digest the UTF-8 encoding of ``text``."""
    return digest_bytes(text.encode("utf-8"))


def digest_file(path: Path | str) -> str:
    """Digest the full contents of a file.

    Raises:
        OSError: If the file cannot be read
    """
    return digest_bytes(Path(path).read_bytes())


def digest(value: bytes | str | Path) -> str:
    """Digest raw bytes, text, or the contents of a file path."""
    if isinstance(value, bytes):
        return digest_bytes(value)
    if isinstance(value, Path):
        return digest_file(value)
    return digest_text(value)
