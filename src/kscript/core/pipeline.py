"""End-to-end pipeline from a script reference to a launch command."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from kscript.config import KscriptSettings
from kscript.core.cache import CacheStore
from kscript.core.command import CommandEmitter, forwarded_args
from kscript.core.compiler import CompilerOrchestrator, entry_class_name
from kscript.core.dependencies import (
    CoursierDependencyResolver,
    DependencyResolver,
)
from kscript.core.directives import parse_directives
from kscript.core.models import CompiledArtifact, DirectiveSet, ScriptSource
from kscript.core.resolver import ScriptResolver
from kscript.core.toolchain import (
    SubprocessToolRunner,
    ToolRunner,
    guess_kotlin_home,
)
from kscript.errors import ToolchainEnvironmentError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedScript:
    """A resolved script with its directives and dependency classpath."""

    source: ScriptSource
    directives: DirectiveSet
    dependency_classpath: str


class ScriptPipeline:
    """Resolves, compiles (when needed) and renders the launch command."""

    def __init__(
        self,
        settings: KscriptSettings,
        runner: ToolRunner | None = None,
        dependency_resolver: DependencyResolver | None = None,
        stdin: TextIO | None = None,
    ) -> None:
        self.settings = settings
        self.runner = runner or SubprocessToolRunner()
        self.cache = CacheStore(settings.cache_dir)
        self.resolver = ScriptResolver(
            self.cache, url_cache_policy=settings.url_cache_policy, stdin=stdin
        )
        self.dependency_resolver = dependency_resolver or CoursierDependencyResolver(
            self.runner
        )
        self.compiler = CompilerOrchestrator(self.cache, self.runner)

    def kotlin_home(self) -> Path:
        """Configured KOTLIN_HOME, or the one kotlinc reports."""
        if self.settings.kotlin_home is not None:
            return self.settings.kotlin_home

        guessed = guess_kotlin_home(self.runner)
        if guessed is None:
            raise ToolchainEnvironmentError(
                "KOTLIN_HOME is not set and could not be inferred from context"
            )
        return guessed

    def prepare(self, script_reference: str) -> PreparedScript:
        self.cache.ensure()
        source = self.resolver.resolve(script_reference)
        directives = parse_directives(source.text, source.source_kind)
        classpath = self.dependency_resolver.resolve(directives.dependencies)
        return PreparedScript(source, directives, classpath)

    def build(
        self, prepared: PreparedScript, emitter: CommandEmitter
    ) -> CompiledArtifact:
        """Return the compiled artifact, compiling only on a cache miss."""
        source = prepared.source
        artifact_path = self.cache.lookup(source.base_name, source.digest)
        if artifact_path is None:
            artifact_path = self.compiler.compile(
                source, prepared.dependency_classpath
            )

        return CompiledArtifact(
            artifact_path=artifact_path,
            entry_class_name=entry_class_name(
                source.base_name,
                source.source_kind,
                package=prepared.directives.package,
                entry=prepared.directives.entry,
            ),
            runtime_classpath=emitter.runtime_classpath(
                artifact_path, prepared.dependency_classpath
            ),
        )

    def command_line(self, script_reference: str, argv: Sequence[str]) -> str:
        """Run the pipeline and return the ``kotlin`` command to execute.

        Args:
            script_reference: Script file, URL, ``-`` or inline code
            argv: Invocation arguments; those after ``script_reference``
                are forwarded to the script

        Raises:
            KscriptError: On any pipeline failure
        """
        prepared = self.prepare(script_reference)
        emitter = CommandEmitter(self.kotlin_home(), self.settings.runtime_lib)
        artifact = self.build(prepared, emitter)
        logger.debug(
            "Launching %s via %s", artifact.artifact_path, artifact.entry_class_name
        )
        return emitter.emit(
            prepared.directives.kotlin_opts,
            artifact.runtime_classpath,
            artifact.entry_class_name,
            forwarded_args(argv, script_reference),
        )

    def interactive_command(self, script_reference: str) -> tuple[Path, str]:
        """Return the script path and a REPL command with its dependencies."""
        prepared = self.prepare(script_reference)
        command = CommandEmitter.interactive_command(
            prepared.directives.kotlin_opts, prepared.dependency_classpath
        )
        return prepared.source.resolved_path, command

    def clear_cache(self) -> int:
        return self.cache.clear()
