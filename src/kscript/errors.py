"""Error taxonomy for the script pipeline.

Every error is fatal: the pipeline has no retry policy and no partial-success
mode. The CLI converts any ``KscriptError`` into a non-zero exit.
"""


class KscriptError(Exception):
    """Base class for all pipeline failures."""


class ResolutionError(KscriptError):
    """Script reference is unreadable under every resolution rule."""


class DirectiveError(KscriptError):
    """Malformed directive, or a directive used on the wrong source kind."""


class DependencyError(KscriptError):
    """A dependency coordinate could not be resolved to a classpath entry."""


class CompileError(KscriptError):
    """The Kotlin compiler returned a non-zero exit code."""


class WrapperError(KscriptError):
    """Synthesizing, compiling or merging the main wrapper class failed."""


class ToolchainEnvironmentError(KscriptError):
    """A required tool is missing or KOTLIN_HOME cannot be determined."""
