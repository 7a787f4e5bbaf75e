"""kscript - Enhanced scripting support for Kotlin on *nix-based systems."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("kscript")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "unknown"
