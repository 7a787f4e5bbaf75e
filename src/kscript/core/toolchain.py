"""Capability for running external tools (kotlinc, javac, jar, coursier)."""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from kscript.errors import ToolchainEnvironmentError

logger = logging.getLogger(__name__)

_KOTLIN_HOME_PATTERN = re.compile(r"kotlin\.home=(\S+)")


@dataclass(frozen=True)
class ProcessResult:
    """Exit code and captured output of one tool invocation."""

    args: tuple[str, ...]
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def __str__(self) -> str:
        return (
            f"command: {' '.join(self.args)}\n"
            f"exit code: {self.exit_code}\n"
            f"stdout:\n{self.stdout}\n"
            f"stderr:\n{self.stderr}"
        )


class ToolRunner(Protocol):
    """Runs an external tool and captures its exit code and both streams."""

    def run(
        self,
        args: Sequence[str],
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ProcessResult: ...

    def which(self, tool: str) -> str | None: ...


class SubprocessToolRunner:
    """ToolRunner backed by ``subprocess.run``; blocking, no timeout."""

    def run(
        self,
        args: Sequence[str],
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ProcessResult:
        """Run ``args`` with ``env`` layered over the current environment."""
        full_env = os.environ.copy()
        if env:
            full_env.update(env)

        logger.debug("Running %s", " ".join(args))
        try:
            completed = subprocess.run(
                list(args),
                cwd=cwd,
                env=full_env,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            raise ToolchainEnvironmentError(
                f"Could not find '{args[0]}' in PATH"
            ) from e
        except OSError as e:
            raise ToolchainEnvironmentError(f"Could not run '{args[0]}': {e}") from e

        return ProcessResult(
            args=tuple(args),
            exit_code=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )

    def which(self, tool: str) -> str | None:
        return shutil.which(tool)


def require_in_path(runner: ToolRunner, tool: str) -> str:
    """Return the location of ``tool`` or fail if it is not installed."""
    location = runner.which(tool)
    if location is None:
        raise ToolchainEnvironmentError(f"Could not find '{tool}' in PATH")
    return location


def guess_kotlin_home(runner: ToolRunner) -> Path | None:
    """Infer KOTLIN_HOME from the configuration kotlinc itself reports.

    With ``JAVACMD=echo`` the kotlinc launcher prints the java command line it
    would run instead of running it, and that line includes ``-Dkotlin.home``.
    """
    if runner.which("kotlinc") is None:
        return None

    result = runner.run(["kotlinc"], env={"KOTLIN_RUNNER": "1", "JAVACMD": "echo"})
    match = _KOTLIN_HOME_PATTERN.search(result.stdout)
    if match is None:
        return None
    return Path(match.group(1))
