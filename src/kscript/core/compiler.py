"""Compilation of scripts into cached, runnable jars.

A script (``.kts``) compiles to a class whose constructor takes the program
arguments, so it gets a small Java wrapper with a ``main`` method that is
merged into the same jar. A class source (``.kt``) already has a top-level
``main`` and is launched through the ``<ClassName>Kt`` facade, or the class
named by its ``//ENTRY`` directive.
"""

import logging
import re
from enum import Enum
from pathlib import Path

from kscript.core.cache import CacheStore
from kscript.core.models import ScriptSource, SourceKind
from kscript.core.toolchain import ToolRunner, require_in_path
from kscript.errors import CompileError, WrapperError

logger = logging.getLogger(__name__)

WRAPPER_TEMPLATE = """\
public class Main_{class_name} {{
    public static void main(String... args) throws Exception {{
        Class script = Main_{class_name}.class.getClassLoader()
            .loadClass("{class_name}");
        script.getDeclaredConstructor(String[].class).newInstance((Object)args);
    }}
}}
"""


class CompileState(str, Enum):
    """Progress of one compilation."""

    UNCOMPILED = "uncompiled"
    COMPILING = "compiling"
    FAILED = "failed"
    WRAPPING = "wrapping"
    WRAPPED = "wrapped"
    READY = "ready"


def class_name_for(base_name: str) -> str:
    """Derive the JVM class name kotlinc gives a script file.

    Dots and dashes become underscores and the first letter is upper-cased.
    """
    name = re.sub(r"[.-]", "_", base_name)
    return name[:1].upper() + name[1:]


def wrapper_class_name(base_name: str) -> str:
    return f"Main_{class_name_for(base_name)}"


def entry_class_name(
    base_name: str,
    source_kind: SourceKind,
    package: str | None = None,
    entry: str | None = None,
) -> str:
    """Name of the class whose ``main`` starts the compiled program."""
    if source_kind is SourceKind.SCRIPT:
        return wrapper_class_name(base_name)

    prefix = f"{package}." if package else ""
    return prefix + (entry or f"{class_name_for(base_name)}Kt")


class CompilerOrchestrator:
    """Builds the jar for a script on a cache miss."""

    def __init__(self, cache: CacheStore, runner: ToolRunner) -> None:
        self.cache = cache
        self.runner = runner
        self.state = CompileState.UNCOMPILED

    def compile(self, source: ScriptSource, classpath: str) -> Path:
        """Compile ``source`` and publish the jar at its cache path.

        The jar is assembled in a staging directory and only renamed into
        the cache once compilation and wrapping have both succeeded.

        Args:
            source: Resolved script
            classpath: Dependency classpath for the compiler

        Returns:
            Final artifact path

        Raises:
            CompileError: If kotlinc fails
            WrapperError: If the wrapper cannot be compiled or merged
            ToolchainEnvironmentError: If a required tool is missing
        """
        final_path = self.cache.artifact_path(source.base_name, source.digest)

        with self.cache.staging() as staging_dir:
            staged_jar = staging_dir / final_path.name
            self._compile_source(source, classpath, staged_jar)

            if source.source_kind is SourceKind.SCRIPT:
                self._add_wrapper(source.base_name, staged_jar, staging_dir)

            self.cache.publish(staged_jar, final_path)

        self.state = CompileState.READY
        logger.info("Compiled %s to %s", source.resolved_path, final_path)
        return final_path

    def _compile_source(
        self, source: ScriptSource, classpath: str, staged_jar: Path
    ) -> None:
        require_in_path(self.runner, "kotlinc")
        self.state = CompileState.COMPILING

        result = self.runner.run(
            [
                "kotlinc",
                "-classpath",
                classpath,
                "-d",
                str(staged_jar),
                str(source.resolved_path.absolute()),
            ]
        )
        if not result.ok:
            self.state = CompileState.FAILED
            raise CompileError(
                f"compilation of '{source.resolved_path}' failed\n{result}"
            )

    def _add_wrapper(self, base_name: str, staged_jar: Path, staging_dir: Path) -> None:
        self.state = CompileState.WRAPPING
        class_name = class_name_for(base_name)
        main_class = wrapper_class_name(base_name)

        wrapper_dir = staging_dir / "wrapper"
        wrapper_dir.mkdir()
        main_java = wrapper_dir / f"{main_class}.java"
        main_java.write_text(
            WRAPPER_TEMPLATE.format(class_name=class_name), encoding="utf-8"
        )

        for tool in ("javac", "jar"):
            if self.runner.which(tool) is None:
                self.state = CompileState.FAILED
                raise WrapperError(
                    f"Could not find '{tool}' in PATH to build the script wrapper"
                )

        result = self.runner.run(["javac", main_java.name], cwd=wrapper_dir)
        if not result.ok:
            self.state = CompileState.FAILED
            raise WrapperError(f"Compilation of script-wrapper failed:\n{result}")

        result = self.runner.run(
            ["jar", "uf", str(staged_jar.absolute()), f"{main_class}.class"],
            cwd=wrapper_dir,
        )
        if not result.ok:
            self.state = CompileState.FAILED
            raise WrapperError(
                f"Update of script jar with wrapper class failed\n{result}"
            )

        self.state = CompileState.WRAPPED
