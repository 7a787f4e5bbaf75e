"""Assembly of the command line the calling shell executes."""

import os
import shlex
from collections.abc import Sequence
from pathlib import Path


def join_classpath(*entries: str | Path | None) -> str:
    """Join classpath entries with the platform separator, skipping blanks."""
    return os.pathsep.join(str(entry) for entry in entries if entry)


def forwarded_args(argv: Sequence[str], script_reference: str) -> list[str]:
    """Arguments after the first occurrence of the script reference.

    Everything before it belongs to the launcher itself.
    """
    try:
        index = list(argv).index(script_reference)
    except ValueError:
        return []
    return list(argv[index + 1 :])


class CommandEmitter:
    """Formats the final ``kotlin`` invocation for a compiled script."""

    def __init__(
        self, kotlin_home: Path, runtime_lib: str = "kotlin-script-runtime.jar"
    ) -> None:
        self.kotlin_home = kotlin_home
        self.runtime_lib = runtime_lib

    @property
    def runtime_lib_path(self) -> Path:
        return self.kotlin_home / "lib" / self.runtime_lib

    def runtime_classpath(self, artifact_path: Path, dependency_classpath: str) -> str:
        return join_classpath(
            artifact_path, self.runtime_lib_path, dependency_classpath
        )

    def emit(
        self,
        kotlin_opts: str,
        runtime_classpath: str,
        entry_class_name: str,
        args: Sequence[str],
    ) -> str:
        """Render ``kotlin <opts> -classpath <cp> <entry> <args>`` as one line."""
        parts = ["kotlin"]
        if kotlin_opts:
            parts.append(kotlin_opts)
        parts.extend(["-classpath", runtime_classpath, entry_class_name])
        parts.extend(shlex.quote(arg) for arg in args)
        return " ".join(parts)

    @staticmethod
    def interactive_command(kotlin_opts: str, dependency_classpath: str) -> str:
        """Render the ``kotlinc`` REPL command with the script's dependencies."""
        parts = ["kotlinc"]
        if kotlin_opts:
            parts.append(kotlin_opts)
        if dependency_classpath:
            parts.extend(["-classpath", dependency_classpath])
        return " ".join(parts)
