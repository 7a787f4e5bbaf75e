"""Typed values flowing through the script pipeline.

ScriptSource and CompiledArtifact are immutable once built; DirectiveSet keeps
every declared value in order so later stages can decide how to combine them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

SCRIPT_EXTENSION = ".kts"
CLASS_EXTENSION = ".kt"


class OriginKind(str, Enum):
    """Where a script reference came from."""

    FILE = "file"
    URL = "url"
    STDIN = "stdin"
    INLINE = "inline"


class SourceKind(str, Enum):
    """Compilation unit flavour: a script needs a wrapper, a class does not."""

    SCRIPT = "script"
    CLASS = "class"


@dataclass(frozen=True)
class ScriptSource:
    """A script reference resolved to a concrete, readable source file."""

    origin_kind: OriginKind
    raw_reference: str
    resolved_path: Path
    content: bytes = field(repr=False)
    digest: str

    @property
    def base_name(self) -> str:
        """File name without its last extension."""
        return self.resolved_path.stem

    @property
    def source_kind(self) -> SourceKind:
        if self.resolved_path.suffix == CLASS_EXTENSION:
            return SourceKind.CLASS
        return SourceKind.SCRIPT

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class Directive:
    """One recognized directive line."""

    name: str
    value: str
    line_number: int


@dataclass
class DirectiveSet:
    """Directive name to ordered values, duplicates preserved."""

    entries: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def from_directives(cls, directives: list[Directive]) -> DirectiveSet:
        entries: dict[str, list[str]] = {}
        for directive in directives:
            entries.setdefault(directive.name, []).append(directive.value)
        return cls(entries)

    def values(self, name: str) -> list[str]:
        return list(self.entries.get(name, []))

    def first(self, name: str) -> str | None:
        values = self.entries.get(name)
        return values[0] if values else None

    @property
    def dependencies(self) -> list[str]:
        return self.values("DEPS")

    @property
    def kotlin_opts(self) -> str:
        return " ".join(self.values("KOTLIN_OPTS"))

    @property
    def entry(self) -> str | None:
        return self.first("ENTRY")

    @property
    def package(self) -> str | None:
        return self.first("package")


@dataclass(frozen=True)
class CompiledArtifact:
    """A runnable jar plus everything needed to launch it."""

    artifact_path: Path
    entry_class_name: str
    runtime_classpath: str
