# Licensed to the Apache Software Foundation (ASF) under one or more
# contributor license agreements.  See the NOTICE file distributed with
# this work for additional information regarding copyright ownership.
# The ASF licenses this file to You under the Apache License, Version 2.0
# (the "License"); you may not use this file except in compliance with
# the License.  You may obtain a copy of the License at
#
#      https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Source Text Utilities

Lexical helpers used by the declaration extractor. Nothing here understands
the grammar; it only makes pattern scanning safe:

- ``mask_source`` blanks comments, string/char literals and preprocessor
  lines while keeping every offset and newline in place
- ``find_matching_brace`` pairs braces by depth, not by regex
- ``calculate_complexity`` counts branch points in a body
"""

import bisect
import re
from dataclasses import dataclass
from typing import Optional

from archinsight.analysis.models import LineStats


BRANCH_KEYWORDS: tuple[str, ...] = (
    "if", "else", "while", "for", "foreach", "switch", "case", "catch",
)
BRANCH_OPERATORS: tuple[str, ...] = ("&&", "||")

_BRANCH_PATTERN = re.compile(
    r"\b(?:" + "|".join(BRANCH_KEYWORDS) + r")\b|&&|\|\|"
)


@dataclass(frozen=True)
class MaskedSource:
    """Original text plus a same-length copy safe for pattern scanning."""
    original: str
    masked: str
    comment_lines: frozenset[int]  # 1-based lines that contain comment text


def _blank(chars: list[str], start: int, end: int) -> None:
    for i in range(start, end):
        if chars[i] != "\n":
            chars[i] = " "


def mask_source(text: str) -> MaskedSource:
    """
    Replace comments, literal contents and preprocessor directives with spaces.

    String delimiters are kept so that ``x = "";`` still reads as an
    assignment. Offsets and line breaks are preserved exactly.

    Args:
        text: Raw source text

    Returns:
        MaskedSource with the masked copy and the set of comment lines
    """
    chars = list(text)
    n = len(text)
    comment_lines: set[int] = set()
    line = 1
    i = 0
    at_line_start = True

    while i < n:
        c = text[i]

        if c == "\n":
            line += 1
            at_line_start = True
            i += 1
            continue

        if at_line_start and c == "#":
            # Preprocessor directive runs to end of line
            end = text.find("\n", i)
            end = n if end == -1 else end
            _blank(chars, i, end)
            i = end
            continue

        if not c.isspace():
            at_line_start = False

        nxt = text[i + 1] if i + 1 < n else ""

        if c == "/" and nxt == "/":
            end = text.find("\n", i)
            end = n if end == -1 else end
            _blank(chars, i, end)
            comment_lines.add(line)
            i = end
            continue

        if c == "/" and nxt == "*":
            end = text.find("*/", i + 2)
            end = n if end == -1 else end + 2
            segment_lines = text.count("\n", i, end)
            comment_lines.update(range(line, line + segment_lines + 1))
            _blank(chars, i, end)
            line += segment_lines
            i = end
            continue

        if c == '"' or (c in "@$" and (nxt == '"' or (nxt in "@$" and text[i + 2:i + 3] == '"'))):
            i, line = _skip_string(text, chars, i, line)
            continue

        if c == "'":
            end = _char_literal_end(text, i)
            if end is not None:
                _blank(chars, i + 1, end)
                i = end + 1
                continue

        i += 1

    return MaskedSource(original=text, masked="".join(chars), comment_lines=frozenset(comment_lines))


def _skip_string(text: str, chars: list[str], start: int, line: int) -> tuple[int, int]:
    """Blank one string literal starting at ``start``; return (next index, line)."""
    n = len(text)
    prefix_end = start
    while prefix_end < n and text[prefix_end] in "@$":
        prefix_end += 1
    prefix = text[start:prefix_end]
    verbatim = "@" in prefix

    # Raw string literal: three or more quotes
    quote_run = 0
    while prefix_end + quote_run < n and text[prefix_end + quote_run] == '"':
        quote_run += 1
    if quote_run >= 3:
        delimiter = '"' * quote_run
        close = text.find(delimiter, prefix_end + quote_run)
        close = n - quote_run if close == -1 else close
        _blank(chars, prefix_end + quote_run, close)
        line += text.count("\n", start, close + quote_run)
        return close + quote_run, line

    i = prefix_end + 1
    while i < n:
        c = text[i]
        if verbatim:
            if c == '"':
                if i + 1 < n and text[i + 1] == '"':
                    chars[i] = chars[i + 1] = " "
                    i += 2
                    continue
                break
            if c == "\n":
                line += 1
            else:
                chars[i] = " "
            i += 1
        else:
            if c == "\\" and i + 1 < n:
                chars[i] = " "
                if text[i + 1] != "\n":
                    chars[i + 1] = " "
                i += 2
                continue
            if c == "\n":
                # Unterminated literal; let the caller see the line break
                return i, line
            if c == '"':
                break
            chars[i] = " "
            i += 1

    return min(i + 1, n), line


def _char_literal_end(text: str, start: int) -> Optional[int]:
    """Index of the closing quote of a char literal, or None if not one."""
    if start + 2 >= len(text):
        return None
    if text[start + 1] == "\\":
        close = text.find("'", start + 3)
        if close == -1 or close - start > 10:
            return None
        return close
    if text[start + 2] == "'":
        return start + 2
    return None


def find_matching_brace(text: str, open_index: int) -> Optional[int]:
    """
    Find the ``}`` that closes the ``{`` at ``open_index``.

    Operates on masked text, so braces in comments and strings never count.

    Returns:
        Index of the matching close brace, or None if the text ends first
    """
    if open_index >= len(text) or text[open_index] != "{":
        return None
    depth = 0
    for i in range(open_index, len(text)):
        c = text[i]
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return i
    return None


def blank_nested_blocks(body: str) -> str:
    """
    Blank the contents of every brace block, keeping the block's own braces.

    Used on the interior of a type body so member patterns only see
    top-level headers.
    """
    chars = list(body)
    depth = 0
    for i, c in enumerate(body):
        if c == "{":
            if depth >= 1:
                chars[i] = " "
            depth += 1
        elif c == "}":
            depth = max(depth - 1, 0)
            if depth >= 1:
                chars[i] = " "
        elif depth >= 1 and c != "\n":
            chars[i] = " "
    return "".join(chars)


def split_top_level_spans(text: str, separator: str = ",") -> list[tuple[int, int]]:
    """
    Like ``split_top_level`` but return ``(start, end)`` offsets of each part.

    Offsets are trimmed of surrounding whitespace; empty parts are dropped.
    """
    spans: list[tuple[int, int]] = []
    depth = 0
    start = 0
    for i, c in enumerate(text + separator):
        if c in "<([":
            depth += 1
        elif c in ">)]":
            depth = max(depth - 1, 0)
        elif c == separator and (depth == 0 or i == len(text)):
            segment = text[start:i]
            stripped = segment.strip()
            if stripped:
                lead = len(segment) - len(segment.lstrip())
                spans.append((start + lead, start + lead + len(stripped)))
            start = i + 1
    return spans


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split on ``separator`` outside of <>, (), [] nesting."""
    return [text[start:end] for start, end in split_top_level_spans(text, separator)]


def calculate_complexity(body: str) -> int:
    """
    Cyclomatic complexity estimate: 1 + number of branch points.

    Branch points are the keywords ``if, else, while, for, foreach, switch,
    case, catch`` and the short-circuit operators ``&&`` and ``||``.

    Args:
        body: Method or type body text (masked, so comments do not count)

    Returns:
        Complexity score, at least 1
    """
    return 1 + len(_BRANCH_PATTERN.findall(body))


class LineIndex:
    """Maps character offsets to 1-based line numbers in O(log n)."""

    def __init__(self, text: str) -> None:
        self._starts = [0] + [m.end() for m in re.finditer(r"\n", text)]

    def line_of(self, offset: int) -> int:
        return bisect.bisect_right(self._starts, offset)


def compute_line_stats(source: MaskedSource) -> LineStats:
    """Classify each line as blank, comment-only or code."""
    original_lines = source.original.split("\n")
    masked_lines = source.masked.split("\n")
    if source.original.endswith("\n"):
        original_lines = original_lines[:-1]
        masked_lines = masked_lines[:-1]
    if not source.original:
        return LineStats()

    blank = comment = code = 0
    for number, (raw, masked) in enumerate(zip(original_lines, masked_lines), 1):
        if not raw.strip():
            blank += 1
        elif not masked.strip() and number in source.comment_lines:
            comment += 1
        else:
            code += 1
    return LineStats(total=len(original_lines), code=code, comment=comment, blank=blank)
