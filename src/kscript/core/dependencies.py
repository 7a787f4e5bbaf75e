"""Dependency coordinates to classpath resolution."""

import logging
from typing import Protocol

from kscript.core.toolchain import ToolRunner, require_in_path
from kscript.errors import DependencyError

logger = logging.getLogger(__name__)


class DependencyResolver(Protocol):
    """Maps ordered dependency coordinates to a classpath string."""

    def resolve(self, coordinates: list[str]) -> str: ...


class CoursierDependencyResolver:
    """Resolves maven coordinates with ``coursier fetch --classpath``."""

    def __init__(self, runner: ToolRunner, executable: str = "coursier") -> None:
        self.runner = runner
        self.executable = executable

    def resolve(self, coordinates: list[str]) -> str:
        """Resolve ``coordinates`` to a classpath.

        Returns an empty classpath without running anything when there is
        nothing to resolve.

        Raises:
            DependencyError: If any coordinate cannot be resolved
            ToolchainEnvironmentError: If coursier is not installed
        """
        if not coordinates:
            return ""

        require_in_path(self.runner, self.executable)
        logger.info("Resolving dependencies: %s", ", ".join(coordinates))

        result = self.runner.run(
            [self.executable, "fetch", "--classpath", *coordinates]
        )
        if not result.ok:
            raise DependencyError(
                f"Failed to resolve dependencies {coordinates}\n{result}"
            )

        lines = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        if not lines:
            raise DependencyError(
                f"Dependency resolution of {coordinates} produced no classpath"
            )
        return lines[-1]
