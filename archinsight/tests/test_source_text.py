"""
Tests for the lexical helpers used by the declaration extractor.
"""

import pytest

from archinsight.analysis.source_text import (
    blank_nested_blocks,
    calculate_complexity,
    compute_line_stats,
    find_matching_brace,
    LineIndex,
    mask_source,
    split_top_level,
)


class TestMaskSource:
    """Comments, literals and directives are blanked in place."""

    def test_preserves_length_and_newlines(self) -> None:
        text = 'int a = 1; // note\n/* block\n comment */ string s = "x{y}";\n'
        masked = mask_source(text).masked

        assert len(masked) == len(text)
        assert [i for i, c in enumerate(text) if c == "\n"] == \
            [i for i, c in enumerate(masked) if c == "\n"]

    def test_braces_in_comments_and_strings_are_hidden(self) -> None:
        text = 'void F() { var s = "}"; // }\n /* { */ }'
        masked = mask_source(text).masked

        assert masked.count("{") == 1
        assert masked.count("}") == 1

    def test_string_delimiters_are_kept(self) -> None:
        masked = mask_source('x = "abc";').masked
        assert masked == 'x = "   ";'

    def test_verbatim_string_with_doubled_quotes(self) -> None:
        text = 'x = @"a ""{"" b"; y = 1;'
        masked = mask_source(text).masked

        assert "{" not in masked
        assert masked.endswith("y = 1;")

    def test_interpolated_string(self) -> None:
        masked = mask_source('x = $"value {v}"; }').masked
        assert masked.count("{") == 0
        assert masked.rstrip().endswith("}")

    def test_char_literals(self) -> None:
        masked = mask_source("c = '{'; d = '\\''; }").masked
        assert masked.count("{") == 0
        assert masked.count("}") == 1

    def test_preprocessor_lines_blanked(self) -> None:
        text = "#if UNITY_EDITOR\nclass A {}\n#endif\n"
        masked = mask_source(text).masked

        assert "UNITY_EDITOR" not in masked
        assert "class A {}" in masked

    def test_comment_lines_recorded(self) -> None:
        source = mask_source("// one\nint x;\n/* two\nthree */\n")
        assert source.comment_lines == frozenset({1, 3, 4})


class TestBraces:
    """Brace matching and nested-block blanking."""

    def test_find_matching_brace_nested(self) -> None:
        text = "{ a { b } c }"
        assert find_matching_brace(text, 0) == len(text) - 1
        assert find_matching_brace(text, 4) == 8

    def test_find_matching_brace_unbalanced(self) -> None:
        assert find_matching_brace("{ { }", 0) is None

    def test_find_matching_brace_not_a_brace(self) -> None:
        assert find_matching_brace("abc", 0) is None

    def test_blank_nested_blocks_keeps_member_headers(self) -> None:
        body = " int x; void F() { if (a) { b(); } } "
        blanked = blank_nested_blocks(body)

        assert len(blanked) == len(body)
        assert blanked.startswith(" int x; void F() {")
        assert blanked.rstrip().endswith("}")
        assert blanked.count("{") == 1
        assert blanked.count("}") == 1
        assert "b()" not in blanked


class TestSplitTopLevel:
    """Splitting respects generic, call and index nesting."""

    def test_generic_arguments_not_split(self) -> None:
        parts = split_top_level("Dictionary<string, int> a, List<int> b")
        assert parts == ["Dictionary<string, int> a", "List<int> b"]

    def test_empty_parts_dropped(self) -> None:
        assert split_top_level(" a , , b ") == ["a", "b"]

    def test_empty_text(self) -> None:
        assert split_top_level("") == []


class TestComplexity:
    """Complexity is one plus the number of branch points."""

    @pytest.mark.parametrize("body, expected", [
        ("{ return 1; }", 1),
        ("{ if (a) { x(); } }", 2),
        ("{ if (a) { } else if (b) { } else { } }", 5),
        ("{ foreach (var x in xs) { while (y) { } } }", 3),
        ("{ switch (k) { case 1: break; case 2: break; } }", 4),
        ("{ try { } catch (E e) { } }", 2),
        ("{ return a && b || c; }", 3),
    ])
    def test_branch_points(self, body: str, expected: int) -> None:
        assert calculate_complexity(body) == expected

    def test_keywords_inside_identifiers_not_counted(self) -> None:
        assert calculate_complexity("{ formatter.ifNeeded(); elsewhere(); }") == 1


class TestLineStats:
    """Line classification into blank, comment and code."""

    def test_mixed_lines(self) -> None:
        text = "// header\n\nclass A\n{\n    int x; // trailing\n}\n"
        stats = compute_line_stats(mask_source(text))

        assert stats.total == 6
        assert stats.blank == 1
        assert stats.comment == 1
        assert stats.code == 4

    def test_empty_text(self) -> None:
        stats = compute_line_stats(mask_source(""))
        assert stats.total == 0

    def test_line_index(self) -> None:
        index = LineIndex("a\nb\nc")
        assert index.line_of(0) == 1
        assert index.line_of(2) == 2
        assert index.line_of(4) == 3
