"""On-disk cache of compiled jars and materialized scriptlets.

Layout of the cache root::

    <base_name>.<digest>.jar        compiled script artifacts
    scriptlet_<digest>.kts          stdin, inline and process-substitution scripts
    urlkts_cache_<digest>.kts       fetched remote scripts (digest of the URL)

A file at its final path is the only hit signal, so nothing is ever written
there directly: content is produced under a temporary name inside the root and
renamed into place once complete.
"""

import logging
import os
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

STAGING_PREFIX = ".staging-"


class CacheStore:
    """Maps (base name, digest) keys to artifact paths under one root."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def ensure(self) -> Path:
        """Create the cache root if it does not exist yet."""
        self.root.mkdir(parents=True, exist_ok=True)
        return self.root

    def artifact_path(self, base_name: str, digest: str) -> Path:
        return self.root / f"{base_name}.{digest}.jar"

    def scriptlet_path(self, digest: str) -> Path:
        return self.root / f"scriptlet_{digest}.kts"

    def url_cache_path(self, digest: str) -> Path:
        return self.root / f"urlkts_cache_{digest}.kts"

    def lookup(self, base_name: str, digest: str) -> Path | None:
        """Return the cached artifact for the key, or None on a miss.

        Existence is the only check; the content is not verified.
        """
        path = self.artifact_path(base_name, digest)
        if path.is_file():
            logger.debug("Cache hit: %s", path)
            return path
        logger.debug("Cache miss: %s", path)
        return None

    @contextmanager
    def staging(self) -> Iterator[Path]:
        """Yield a private scratch directory inside the cache root.

        The directory lives on the same filesystem as the final paths so that
        ``publish`` is an atomic rename. It is removed on exit, whether the
        build succeeded or not.
        """
        self.ensure()
        staging_dir = Path(tempfile.mkdtemp(prefix=STAGING_PREFIX, dir=self.root))
        try:
            yield staging_dir
        finally:
            shutil.rmtree(staging_dir, ignore_errors=True)

    def publish(self, staged: Path, final: Path) -> Path:
        """Atomically move a completed file to its final cache path."""
        os.replace(staged, final)
        logger.debug("Published %s", final)
        return final

    def write_text(self, path: Path, text: str) -> Path:
        """Write ``text`` to ``path`` atomically."""
        self.ensure()
        fd, tmp_name = tempfile.mkstemp(
            prefix=STAGING_PREFIX, suffix=path.suffix, dir=self.root
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            return self.publish(Path(tmp_name), path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def clear(self) -> int:
        """Delete every entry in the cache root.

        Returns:
            Number of entries removed
        """
        if not self.root.is_dir():
            return 0

        removed = 0
        for entry in self.root.iterdir():
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
            removed += 1
        logger.info("Removed %d cache entries from %s", removed, self.root)
        return removed
