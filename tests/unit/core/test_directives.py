"""Tests for directive extraction."""

import pytest

from kscript.core.directives import parse_directives, scan_directives
from kscript.core.models import Directive, SourceKind
from kscript.errors import DirectiveError


class TestScanDirectives:
    """Test the line scanner."""

    def test_scan_reports_line_numbers(self) -> None:
        """Test each directive value carries its source line."""
        lines = ["#!/usr/bin/env kscript", "//DEPS a:b:1.0", "println(1)"]

        assert scan_directives(lines) == [Directive("DEPS", "a:b:1.0", 2)]

    def test_space_after_comment_marker_is_rejected(self) -> None:
        """Test a directive typo fails instead of being ignored."""
        with pytest.raises(DirectiveError, match="//DEPS"):
            scan_directives(["// DEPS a:b:1.0"])

    def test_misspelled_entry_is_rejected(self) -> None:
        """Test the typo check covers every directive keyword."""
        with pytest.raises(DirectiveError, match="//ENTRY"):
            scan_directives(["//   ENTRY Foo"])

    def test_tab_separator_is_accepted(self) -> None:
        """Test any whitespace may separate the keyword from its value."""
        lines = ["//DEPS\ta:b:1", "//KOTLIN_OPTS\t-nowarn", "//ENTRY\tMain"]

        assert scan_directives(lines) == [
            Directive("DEPS", "a:b:1", 1),
            Directive("KOTLIN_OPTS", "-nowarn", 2),
            Directive("ENTRY", "Main", 3),
        ]

    @pytest.mark.parametrize("line", ["//DEPS", "//DEPS   ", "//DEPS ,;", "//ENTRY "])
    def test_directive_without_value_is_rejected(self, line: str) -> None:
        """Test an empty directive fails instead of being dropped."""
        with pytest.raises(DirectiveError, match="without a value"):
            scan_directives([line])

    def test_regular_comments_are_ignored(self) -> None:
        """Test ordinary comments do not produce directives."""
        lines = ["// just a comment", "//DEPENDENCIES are listed below", "val x = 1"]

        assert scan_directives(lines) == []


class TestParseDirectives:
    """Test parsing source text into a DirectiveSet."""

    def test_semicolon_separated_dependencies(self) -> None:
        """Test ';' separates coordinates in declaration order."""
        directives = parse_directives("//DEPS a:b:1.0;c:d:2.0\n")

        assert directives.dependencies == ["a:b:1.0", "c:d:2.0"]

    def test_comma_and_space_separated_dependencies_are_trimmed(self) -> None:
        """Test mixed separators and surrounding whitespace."""
        directives = parse_directives("//DEPS a, b , c\n")

        assert directives.dependencies == ["a", "b", "c"]

    def test_dependencies_across_lines_keep_order_and_duplicates(self) -> None:
        """Test several DEPS lines concatenate without deduplication."""
        text = "//DEPS x:y:1\nprintln(1)\n//DEPS z:w:2,x:y:1\n"

        assert parse_directives(text).dependencies == ["x:y:1", "z:w:2", "x:y:1"]

    def test_kotlin_opts_are_joined(self) -> None:
        """Test KOTLIN_OPTS lines collapse into one option string."""
        text = "//KOTLIN_OPTS -J-Xmx2g\n//KOTLIN_OPTS -J-server  -nowarn\n"

        assert parse_directives(text).kotlin_opts == "-J-Xmx2g -J-server -nowarn"

    def test_no_directives(self) -> None:
        """Test a plain script yields empty values."""
        directives = parse_directives('println("hi")')

        assert directives.dependencies == []
        assert directives.kotlin_opts == ""
        assert directives.entry is None
        assert directives.package is None

    def test_entry_in_script_source_fails(self) -> None:
        """Test //ENTRY is rejected for .kts sources."""
        with pytest.raises(DirectiveError, match="kt class files"):
            parse_directives("//ENTRY Foo\n", SourceKind.SCRIPT)

    def test_entry_in_class_source_is_accepted(self) -> None:
        """Test //ENTRY is kept for .kt sources, first one wins."""
        text = "//ENTRY Foo\n//ENTRY Bar\nfun main() {}\n"

        directives = parse_directives(text, SourceKind.CLASS)

        assert directives.entry == "Foo"
        assert directives.values("ENTRY") == ["Foo"]

    def test_package_declaration_is_extracted(self) -> None:
        """Test the first package line is recorded without a trailing ';'."""
        text = "package foo.bar;\n\nfun main() {}\npackage ignored\n"

        assert parse_directives(text, SourceKind.CLASS).package == "foo.bar"
