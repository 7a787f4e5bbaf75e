"""Extraction of build directives embedded in script source.

Directives are comment lines with a fixed prefix::

    //DEPS com.example:lib:1.0;org.other:thing:2.1
    //KOTLIN_OPTS -J-Xmx2g
    //ENTRY app.Main

The scanner emits one ``Directive`` per value, in declaration order, and
rejects lines that look like a directive with whitespace after the comment
marker, so that only one spelling is ever accepted.
"""

import logging
import re
from collections.abc import Iterable

from kscript.core.models import Directive, DirectiveSet, SourceKind
from kscript.errors import DirectiveError

logger = logging.getLogger(__name__)

DIRECTIVE_NAMES = ("DEPS", "KOTLIN_OPTS", "ENTRY")

_MALFORMED = re.compile(r"^//\s+(" + "|".join(DIRECTIVE_NAMES) + r")\b")
_DIRECTIVE = re.compile(r"^//(" + "|".join(DIRECTIVE_NAMES) + r")(?:\s+(.*))?$")
_DEPS_SEPARATORS = re.compile(r"[;,\s]+")


def _split_dependencies(tail: str) -> list[str]:
    return [token.strip() for token in _DEPS_SEPARATORS.split(tail) if token.strip()]


def _directive_values(keyword: str, tail: str) -> list[str]:
    if keyword == "DEPS":
        return _split_dependencies(tail)
    if keyword == "KOTLIN_OPTS":
        return tail.split()
    value = tail.strip()
    return [value] if value else []


def _scan_line(line: str, line_number: int) -> list[Directive]:
    match = _MALFORMED.match(line)
    if match:
        keyword = match.group(1)
        raise DirectiveError(
            f"Line {line_number}: directives must be declared with the line "
            f"prefix //{keyword} (no space after the comment marker)"
        )

    match = _DIRECTIVE.match(line)
    if match:
        keyword = match.group(1)
        values = _directive_values(keyword, match.group(2) or "")
        if not values:
            raise DirectiveError(f"Line {line_number}: //{keyword} without a value")
        return [Directive(keyword, value, line_number) for value in values]

    if line.startswith("package "):
        tokens = line.split()
        if len(tokens) > 1:
            return [Directive("package", tokens[1].rstrip(";"), line_number)]

    return []


def scan_directives(lines: Iterable[str]) -> list[Directive]:
    """Scan source lines and return every directive in declaration order.

    Raises:
        DirectiveError: If a line looks like a directive but is misspelled
    """
    directives: list[Directive] = []
    for line_number, line in enumerate(lines, start=1):
        directives.extend(_scan_line(line.rstrip("\r\n"), line_number))
    return directives


def parse_directives(
    text: str, source_kind: SourceKind = SourceKind.SCRIPT
) -> DirectiveSet:
    """Parse source text into a validated ``DirectiveSet``.

    Only the first ``//ENTRY`` and the first ``package`` declaration are
    significant; ``//ENTRY`` is rejected outright for script sources.

    Args:
        text: Full source text
        source_kind: Kind of the compilation unit the text belongs to

    Returns:
        DirectiveSet with DEPS, KOTLIN_OPTS, ENTRY and package values

    Raises:
        DirectiveError: On malformed directives or ENTRY in a script source
    """
    directives = scan_directives(text.splitlines())

    seen_entry = seen_package = False
    kept: list[Directive] = []
    for directive in directives:
        if directive.name == "ENTRY":
            if source_kind is SourceKind.SCRIPT:
                raise DirectiveError(
                    "//ENTRY directive is just supported for kt class files"
                )
            if seen_entry:
                continue
            seen_entry = True
        elif directive.name == "package":
            if seen_package:
                continue
            seen_package = True
        kept.append(directive)

    directive_set = DirectiveSet.from_directives(kept)
    logger.debug(
        "Parsed %d directives (%d dependencies)",
        len(kept),
        len(directive_set.dependencies),
    )
    return directive_set
