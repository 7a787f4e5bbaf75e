"""Runtime settings: cache location, toolchain home and cache policies."""

import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from kscript.errors import ToolchainEnvironmentError

DEFAULT_RUNTIME_LIB = "kotlin-script-runtime.jar"


class UrlCachePolicy(str, Enum):
    """How a cached copy of a remote script is treated on later runs.

    PERMANENT keeps the first fetch forever, which makes a URL behave like a
    pinned script. REFRESH fetches again on every run.
    """

    PERMANENT = "permanent"
    REFRESH = "refresh"


class KscriptSettings(BaseModel):
    """Validated settings for one pipeline run."""

    model_config = ConfigDict(extra="forbid")

    cache_dir: Path
    kotlin_home: Path | None = None
    url_cache_policy: UrlCachePolicy = UrlCachePolicy.PERMANENT
    runtime_lib: str = DEFAULT_RUNTIME_LIB

    @field_validator("cache_dir", "kotlin_home")
    @classmethod
    def expand_user(cls, value: Path | None) -> Path | None:
        return value.expanduser() if value is not None else None


def global_config_dir(environ: Mapping[str, str] | None = None) -> Path:
    """Return the directory holding the user's kscript config file."""
    env = os.environ if environ is None else environ
    xdg_config = env.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "kscript"
    return Path(env.get("HOME", str(Path.home()))) / ".config" / "kscript"


def _load_config_file(config_file: Path) -> dict[str, Any]:
    if not config_file.exists():
        return {}

    try:
        with open(config_file, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ToolchainEnvironmentError(
            f"Failed to parse config file {config_file}: {e}"
        ) from e
    except OSError as e:
        raise ToolchainEnvironmentError(
            f"Failed to read config file {config_file}: {e}"
        ) from e

    if not isinstance(data, dict):
        raise ToolchainEnvironmentError(
            f"Config file {config_file} must contain a mapping"
        )
    return data


def load_settings(
    environ: Mapping[str, str] | None = None,
    config_file: Path | None = None,
) -> KscriptSettings:
    """Build settings from the config file, overridden by the environment.

    Args:
        environ: Environment mapping (defaults to ``os.environ``)
        config_file: Explicit config file (defaults to the global one)

    Returns:
        Validated settings

    Raises:
        ToolchainEnvironmentError: If the config is unreadable or invalid
    """
    env = os.environ if environ is None else environ
    if config_file is None:
        config_file = global_config_dir(env) / "config.yaml"

    values = _load_config_file(config_file)

    if env.get("KSCRIPT_CACHE_DIR"):
        values["cache_dir"] = env["KSCRIPT_CACHE_DIR"]
    elif "cache_dir" not in values:
        home = env.get("HOME")
        if not home:
            raise ToolchainEnvironmentError(
                "HOME is not set; cannot locate the kscript cache directory"
            )
        values["cache_dir"] = Path(home) / ".kscript"

    if env.get("KOTLIN_HOME"):
        values["kotlin_home"] = env["KOTLIN_HOME"]

    if env.get("KSCRIPT_URL_CACHE_POLICY"):
        values["url_cache_policy"] = env["KSCRIPT_URL_CACHE_POLICY"].lower()

    try:
        return KscriptSettings(**values)
    except ValidationError as e:
        raise ToolchainEnvironmentError(f"Invalid kscript settings: {e}") from e
