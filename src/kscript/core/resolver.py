"""Resolution of raw script references into concrete source files."""

import logging
import os
import sys
from pathlib import Path
from typing import TextIO

import requests

from kscript.config import UrlCachePolicy
from kscript.core.cache import CacheStore
from kscript.core.checksum import digest_bytes, digest_text
from kscript.core.models import (
    CLASS_EXTENSION,
    SCRIPT_EXTENSION,
    OriginKind,
    ScriptSource,
)
from kscript.errors import ResolutionError

logger = logging.getLogger(__name__)

STDIN_MARKERS = ("-", "/dev/stdin")
URL_PREFIXES = ("http://", "https://")

# One-liners starting with these tokens get the kscript support API for free
SHORTHAND_TOKENS = ("lines", "stdin")
SUPPORT_PREAMBLE = """\
//DEPS com.github.holgerbrandl:kscript:1.2.2

import kscript.text.*
val lines = resolveArgFile(args)

"""


def _is_readable_file(path: Path) -> bool:
    return os.path.isfile(path) and os.access(path, os.R_OK)


def _is_readable(path: Path) -> bool:
    # os.path.exists swallows errors such as ENAMETOOLONG for long inline code
    return os.path.exists(path) and os.access(path, os.R_OK)


def _read_script_text(path: Path, raw_reference: str) -> str:
    try:
        return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        raise ResolutionError(
            f"Could not read script argument '{raw_reference}': {e}"
        ) from e


def _num_lines(text: str) -> int:
    return len(text.splitlines())


class ScriptResolver:
    """Turns a script reference into a readable source file plus its digest.

    Rules are tried in order and the first match wins:

    1. an existing readable local file is used in place
    2. ``-`` or ``/dev/stdin`` reads the script from standard input
    3. an http(s) URL is fetched into the cache
    4. anything else not ending in ``.kts``/``.kt`` is script text, either
       read from a readable special file (process substitution) or taken
       literally as inline code

    Text that does not come from a stable local file is materialized as a
    scriptlet in the cache, named after its digest.
    """

    def __init__(
        self,
        cache: CacheStore,
        url_cache_policy: UrlCachePolicy = UrlCachePolicy.PERMANENT,
        stdin: TextIO | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            cache: Cache store that receives materialized scripts
            url_cache_policy: Whether fetched URLs are ever fetched again
            stdin: Stream read for the stdin marker (default: ``sys.stdin``)
        """
        self.cache = cache
        self.url_cache_policy = url_cache_policy
        self._stdin = stdin

    def resolve(self, raw_reference: str) -> ScriptSource:
        """Resolve ``raw_reference`` to a ``ScriptSource``.

        Raises:
            ResolutionError: If no rule yields a readable file
        """
        local = Path(raw_reference)
        if _is_readable_file(local):
            logger.debug("Using local script file %s", local)
            return self._source(OriginKind.FILE, raw_reference, local)

        if raw_reference in STDIN_MARKERS:
            stream = self._stdin if self._stdin is not None else sys.stdin
            text = stream.read().strip()
            path = self.materialize(text)
            return self._source(OriginKind.STDIN, raw_reference, path)

        if raw_reference.startswith(URL_PREFIXES):
            path = self.fetch_url(raw_reference)
            return self._source(OriginKind.URL, raw_reference, path)

        if os.path.isdir(local):
            raise ResolutionError(
                f"Could not read script argument '{raw_reference}': is a directory"
            )

        if not raw_reference.endswith((SCRIPT_EXTENSION, CLASS_EXTENSION)):
            if _is_readable(local):
                # e.g. <(echo 'println("hi")') which shows up as /dev/fd/63
                text = _read_script_text(local, raw_reference)
                origin = OriginKind.STDIN
            else:
                text = self.inline_script_text(raw_reference)
                origin = OriginKind.INLINE
            path = self.materialize(text)
            return self._source(origin, raw_reference, path)

        raise ResolutionError(f"Could not read script argument '{raw_reference}'")

    @staticmethod
    def inline_script_text(code: str) -> str:
        """Return inline code, prefixed with the support preamble if needed."""
        script = code.strip()
        if _num_lines(script) == 1 and script.startswith(SHORTHAND_TOKENS):
            script = SUPPORT_PREAMBLE + script
        return script.strip()

    def materialize(self, text: str) -> Path:
        """Store script text as a scriptlet named after its digest.

        An existing scriptlet is left untouched since its name already pins
        its content.
        """
        path = self.cache.scriptlet_path(digest_text(text))
        if path.is_file():
            logger.debug("Reusing scriptlet %s", path)
            return path

        logger.debug("Materializing scriptlet %s", path)
        return self.cache.write_text(path, text)

    def fetch_url(self, url: str) -> Path:
        """Return the cached copy of ``url``, fetching it when required.

        The cache file is keyed by the URL itself, not by what it serves.

        Raises:
            ResolutionError: If the fetch fails
        """
        path = self.cache.url_cache_path(digest_text(url))
        if path.is_file() and self.url_cache_policy is UrlCachePolicy.PERMANENT:
            logger.debug("Using cached copy of %s at %s", url, path)
            return path

        logger.info("Fetching script from %s", url)
        try:
            response = requests.get(url)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ResolutionError(f"Could not fetch script from '{url}': {e}") from e

        try:
            text = response.content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ResolutionError(f"Script at '{url}' is not valid UTF-8: {e}") from e

        return self.cache.write_text(path, text)

    @staticmethod
    def _source(origin: OriginKind, raw_reference: str, path: Path) -> ScriptSource:
        try:
            content = path.read_bytes()
        except OSError as e:
            raise ResolutionError(
                f"Could not read script argument '{raw_reference}'"
            ) from e

        return ScriptSource(
            origin_kind=origin,
            raw_reference=raw_reference,
            resolved_path=path,
            content=content,
            digest=digest_bytes(content),
        )
