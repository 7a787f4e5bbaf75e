"""Shared test fixtures and configuration."""

from collections.abc import Mapping, Sequence
from pathlib import Path

import pytest

from kscript.config import KscriptSettings
from kscript.core.toolchain import ProcessResult


class FakeToolRunner:
    """Records tool invocations and mimics kotlinc, javac, jar and coursier.

    kotlinc writes a fake jar to its ``-d`` target, javac writes the class
    file next to its source, and jar appends the class name to the jar so
    tests can check the merge happened.
    """

    def __init__(self, available: Sequence[str] = ("kotlinc", "javac", "jar")) -> None:
        self.available = set(available)
        self.calls: list[tuple[tuple[str, ...], Path | None, dict[str, str]]] = []
        self.failures: dict[str, ProcessResult] = {}
        self.stdout: dict[str, str] = {}

    def which(self, tool: str) -> str | None:
        return f"/usr/bin/{tool}" if tool in self.available else None

    def run(
        self,
        args: Sequence[str],
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ProcessResult:
        args = tuple(args)
        self.calls.append((args, cwd, dict(env or {})))
        tool = args[0]

        if tool in self.failures:
            failure = self.failures[tool]
            return ProcessResult(
                args, failure.exit_code, failure.stdout, failure.stderr
            )

        if tool == "kotlinc" and "-d" in args:
            Path(args[args.index("-d") + 1]).write_bytes(b"fake-jar\n")
        elif tool == "javac" and cwd is not None:
            (cwd / args[-1]).with_suffix(".class").write_bytes(b"fake-class")
        elif tool == "jar" and args[1] == "uf":
            with open(args[2], "ab") as jar:
                jar.write(args[3].encode())

        return ProcessResult(args, 0, self.stdout.get(tool, ""), "")

    def calls_to(self, tool: str) -> list[tuple[str, ...]]:
        return [args for args, _, _ in self.calls if args[0] == tool]


@pytest.fixture
def fake_runner() -> FakeToolRunner:
    return FakeToolRunner()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "kscript-cache"


@pytest.fixture
def kotlin_home(tmp_path: Path) -> Path:
    return tmp_path / "kotlin"


@pytest.fixture
def settings(cache_dir: Path, kotlin_home: Path) -> KscriptSettings:
    return KscriptSettings(cache_dir=cache_dir, kotlin_home=kotlin_home)
