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
Declaration Extractor

Pattern-based extraction of classes, interfaces and structs (with their
methods, properties and fields) from brace-delimited source text.

This is deliberately not a parser. Every pattern runs on masked text (see
``source_text.mask_source``) so comments and literals cannot produce
matches, and bodies are delimited by brace counting. Anything the patterns
cannot make sense of is reported as an ``Issue`` and skipped; extraction
never raises for bad input.
"""

import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Iterable, Optional

from archinsight.analysis.models import (
    Declaration,
    DeclarationKind,
    FieldDeclaration,
    FileExtraction,
    Issue,
    IssueCategory,
    IssueSeverity,
    LineStats,
    MethodDeclaration,
    Parameter,
    PropertyDeclaration,
    SourceUnit,
    Visibility,
)
from archinsight.analysis.source_text import (
    LineIndex,
    MaskedSource,
    blank_nested_blocks,
    calculate_complexity,
    compute_line_stats,
    find_matching_brace,
    mask_source,
    split_top_level,
    split_top_level_spans,
)
from archinsight.config import AnalysisConfig, DEFAULT_CONFIG
from archinsight.utils.cancellation import CancellationToken
from archinsight.utils.logging_config import get_logger, log_progress

logger = get_logger(__name__)


# ============================================================================
# PATTERNS
# ============================================================================

_IDENT = r"[A-Za-z_]\w*"
_QUALIFIED_IDENT = rf"(?:{_IDENT}\.)*{_IDENT}"

# Generic argument list, up to three levels deep
_GENERIC = r"<(?:[^<>;{}=]|<(?:[^<>;{}=]|<[^<>;{}=]*>)*>)*>"
_ARRAY = r"(?:\s*\[[\s,]*\])"
_TYPE = (
    rf"(?:{_QUALIFIED_IDENT}(?:\s*{_GENERIC})?|\([^()]*\))"
    rf"{_ARRAY}*\??{_ARRAY}*"
)
_PARAMS = r"\((?P<params>[^()]*(?:\([^()]*\)[^()]*)*)\)"

# Members start right after a statement boundary in the blanked type body
_MEMBER_START = r"(?:(?<=[;{}\]])|\A)\s*"

# Headers take at most this many attribute blocks and modifiers; a longer run
# contributes only its tail
MAX_ATTRIBUTE_BLOCKS = 16
MAX_MODIFIERS = 12

_ATTRIBUTES = rf"(?P<attrs>(?:\[[^\[\]]*\]\s*){{0,{MAX_ATTRIBUTE_BLOCKS}}})"


def _modifiers(*words: str) -> str:
    return r"(?P<mods>(?:\b(?:" + "|".join(words) + rf")\s+){{0,{MAX_MODIFIERS}}})"


_NAMESPACE_PATTERN = re.compile(rf"\bnamespace\s+(?P<name>{_QUALIFIED_IDENT})\s*[{{;]")

_TYPE_MODIFIERS = (
    "public", "private", "protected", "internal", "abstract", "sealed",
    "static", "partial", "readonly", "unsafe", "new", "ref", "file",
)
_TYPE_HEADER_PATTERN = re.compile(
    _ATTRIBUTES
    + _modifiers(*_TYPE_MODIFIERS)
    + r"\b(?P<kind>class|struct|interface)\s+"
    + rf"(?P<name>{_IDENT})"
    + rf"\s*(?P<generics>{_GENERIC})?"
    + r"(?:\s*:\s*(?P<bases>[^{};]+?))?"
    + r"\s*(?:\bwhere\b[^{;]*)?"
    + r"\{"
)

_CONSTRUCTOR_PATTERN = re.compile(
    _MEMBER_START + _ATTRIBUTES
    + _modifiers("public", "private", "protected", "internal", "static", "extern", "unsafe")
    + rf"(?P<name>{_IDENT})\s*" + _PARAMS
    + r"\s*(?::\s*(?:base|this)\s*\([^()]*(?:\([^()]*\)[^()]*)*\))?"
    + r"\s*(?P<end>\{|;|=>)"
)

_METHOD_MODIFIERS = (
    "public", "private", "protected", "internal", "static", "virtual",
    "override", "abstract", "sealed", "async", "extern", "new", "unsafe",
    "partial", "readonly",
)
_METHOD_PATTERN = re.compile(
    _MEMBER_START + _ATTRIBUTES
    + _modifiers(*_METHOD_MODIFIERS)
    + rf"(?P<type>{_TYPE})\s+(?P<name>{_QUALIFIED_IDENT})"
    + rf"\s*(?:{_GENERIC})?\s*" + _PARAMS
    + r"\s*(?:\bwhere\b[^{;=]*)?"
    + r"(?P<end>\{|;|=>)"
)

_PROPERTY_MODIFIERS = (
    "public", "private", "protected", "internal", "static", "virtual",
    "override", "abstract", "sealed", "new", "required", "readonly", "event",
)
_PROPERTY_PATTERN = re.compile(
    _MEMBER_START + _ATTRIBUTES
    + _modifiers(*_PROPERTY_MODIFIERS)
    + rf"(?P<type>{_TYPE})\s+(?P<name>{_QUALIFIED_IDENT})"
    + r"\s*(?P<end>\{|=>)"
)

_FIELD_MODIFIERS = (
    "public", "private", "protected", "internal", "static", "readonly",
    "const", "volatile", "new", "event", "unsafe", "fixed", "required",
)
_FIELD_PATTERN = re.compile(
    _MEMBER_START + _ATTRIBUTES
    + _modifiers(*_FIELD_MODIFIERS)
    + rf"(?P<type>{_TYPE})\s+(?P<names>{_IDENT}(?:\s*,\s*{_IDENT})*)"
    + r"\s*(?:=(?!>)(?P<value>[^;]*))?;"
)

_ACCESSOR_PATTERN = re.compile(r"\b(get|set|init|add|remove)\b")
_AUTO_ACCESSOR_PATTERN = re.compile(r"\b(?:get|set|init)\s*;")
_ATTRIBUTE_BLOCK_PATTERN = re.compile(r"\[([^\[\]]*)\]")

# Words that can precede a name without being a type
_NOT_A_TYPE = frozenset({
    "abstract", "as", "async", "await", "base", "break", "case", "catch",
    "checked", "class", "const", "continue", "default", "delegate", "do",
    "else", "enum", "event", "explicit", "extern", "finally", "fixed", "for",
    "foreach", "goto", "if", "implicit", "in", "interface", "internal", "is",
    "lock", "namespace", "new", "operator", "out", "override", "params",
    "partial", "private", "protected", "public", "readonly", "record", "ref",
    "required", "return", "sealed", "static", "struct", "switch", "this",
    "throw", "try", "typeof", "unsafe", "using", "virtual", "volatile",
    "when", "where", "while", "yield",
})

_ACCESS_MODIFIERS = {v.value: v for v in Visibility}
_PARAMETER_MODIFIERS = frozenset({"ref", "out", "in", "params", "this", "scoped", "readonly"})


# ============================================================================
# SMALL HELPERS
# ============================================================================

def _normalize(text: str) -> str:
    """Collapse runs of whitespace to single spaces."""
    return re.sub(r"\s+", " ", text).strip()


def _split_modifiers(mods_text: str) -> tuple[tuple[str, ...], Optional[Visibility]]:
    """Separate access modifiers from the rest; ``protected internal`` maps to protected."""
    words = mods_text.split()
    visibility = None
    for word in words:
        if word in _ACCESS_MODIFIERS and (visibility is None or word == "protected"):
            visibility = _ACCESS_MODIFIERS[word]
    modifiers = tuple(w for w in words if w not in _ACCESS_MODIFIERS)
    return modifiers, visibility


def _parse_attributes(original_attrs: str) -> tuple[str, ...]:
    """``[A, B(1)] [C]`` -> ``("A", "B(1)", "C")``."""
    tags: list[str] = []
    for block in _ATTRIBUTE_BLOCK_PATTERN.finditer(original_attrs):
        tags.extend(_normalize(tag) for tag in split_top_level(block.group(1)))
    return tuple(tags)


def _type_parameters(generics: Optional[str]) -> tuple[str, ...]:
    """``<in T, TKey>`` -> ``("T", "TKey")``."""
    if not generics:
        return ()
    names = (item.split()[-1] for item in split_top_level(generics[1:-1]) if item.split())
    return tuple(names)


def looks_like_interface(name: str) -> bool:
    """
    Naming heuristic for base lists: ``I`` followed by another capital letter.

    Only the last segment of a qualified name is checked, so
    ``System.IDisposable`` counts as an interface.
    """
    simple = name.split("<", 1)[0].rsplit(".", 1)[-1]
    return len(simple) > 1 and simple[0] == "I" and simple[1].isupper()


def split_base_list(kind: DeclarationKind, bases_text: str) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """
    Split a base list into (base_types, interfaces).

    Args:
        kind: Kind of the declaring type
        bases_text: Text after the ``:`` of a type header

    Returns:
        Tuple of base type names and interface names, in source order
    """
    base_types: list[str] = []
    interfaces: list[str] = []
    for item in split_top_level(bases_text):
        name = _normalize(item)
        if not name:
            continue
        if kind is not DeclarationKind.CLASS or looks_like_interface(name):
            interfaces.append(name)
        else:
            base_types.append(name)
    return tuple(base_types), tuple(interfaces)


def parse_parameters(masked: str, original: Optional[str] = None) -> tuple[Parameter, ...]:
    """
    Parse a parameter list (the text between the parentheses).

    Structure is read from ``masked``; default values are sliced from
    ``original`` at the same offsets so string defaults survive masking.
    Entries with fewer than two words are ignored.
    """
    original = masked if original is None else original
    parameters: list[Parameter] = []
    for start, end in split_top_level_spans(masked):
        piece = masked[start:end]
        piece = re.sub(r"^\s*(?:\[[^\[\]]*\]\s*)+", lambda m: " " * len(m.group(0)), piece)

        default_value = None
        eq = _find_top_level_equals(piece)
        if eq is not None:
            default_value = original[start + eq + 1:end].strip() or None
            piece = piece[:eq]

        words = piece.split()
        modifiers: list[str] = []
        while words and words[0] in _PARAMETER_MODIFIERS:
            modifiers.append(words.pop(0))
        if len(words) < 2:
            continue
        name = words[-1]
        type_name = _normalize(" ".join(words[:-1]))
        if not re.fullmatch(_IDENT, name):
            continue
        parameters.append(Parameter(
            name=name,
            type_name=type_name,
            modifiers=tuple(modifiers),
            default_value=default_value,
        ))
    return tuple(parameters)


def _find_top_level_equals(text: str) -> Optional[int]:
    depth = 0
    for i, c in enumerate(text):
        if c in "<([":
            depth += 1
        elif c in ">)]":
            depth = max(depth - 1, 0)
        elif c == "=" and depth == 0 and text[i + 1:i + 2] != ">":
            return i
    return None


# ============================================================================
# PER-FILE EXTRACTION
# ============================================================================

@dataclass
class _TypeSpan:
    """A type header whose body was brace-matched."""
    match: re.Match
    open_index: int
    close_index: int
    parent: Optional["_TypeSpan"] = None

    @property
    def name(self) -> str:
        return self.match.group("name")

    def qualified_name(self) -> str:
        parts = [self.name]
        node = self.parent
        while node is not None:
            parts.append(node.name)
            node = node.parent
        return ".".join(reversed(parts))

    def contains(self, index: int) -> bool:
        return self.open_index < index < self.close_index


class _FileScanner:
    """Extracts declarations from one masked source file."""

    def __init__(self, file_path: str, source: MaskedSource) -> None:
        self.file_path = file_path
        self.source = source
        self.masked = source.masked
        self.original = source.original
        self.lines = LineIndex(source.original)
        self.issues: list[Issue] = []

    def _issue(self, severity: IssueSeverity, message: str, offset: Optional[int] = None) -> None:
        self.issues.append(Issue(
            severity=severity,
            category=IssueCategory.EXTRACTION,
            message=message,
            location=self.file_path,
            line=self.lines.line_of(offset) if offset is not None else None,
        ))

    def scan(self) -> list[Declaration]:
        namespace_match = _NAMESPACE_PATTERN.search(self.masked)
        namespace = namespace_match.group("name") if namespace_match else ""

        spans: list[_TypeSpan] = []
        for match in _TYPE_HEADER_PATTERN.finditer(self.masked):
            open_index = match.end() - 1
            close_index = find_matching_brace(self.masked, open_index)
            if close_index is None:
                self._issue(
                    IssueSeverity.MINOR,
                    f"Unbalanced braces: skipped {match.group('kind')} {match.group('name')}",
                    match.start("kind"),
                )
                logger.warning(
                    f"{self.file_path}: unmatched body for {match.group('kind')} {match.group('name')}"
                )
                continue
            parent = None
            for candidate in reversed(spans):
                if candidate.contains(match.start()):
                    parent = candidate
                    break
            spans.append(_TypeSpan(match, open_index, close_index, parent))

        declarations = [self._build_declaration(span, namespace) for span in spans]
        return declarations

    def _build_declaration(self, span: _TypeSpan, namespace: str) -> Declaration:
        m = span.match
        kind = DeclarationKind(m.group("kind"))
        modifiers, visibility = _split_modifiers(m.group("mods"))
        if visibility is None:
            visibility = Visibility.INTERNAL if span.parent is None else Visibility.PRIVATE

        base_types: tuple[str, ...] = ()
        interfaces: tuple[str, ...] = ()
        if m.group("bases"):
            base_types, interfaces = split_base_list(kind, m.group("bases"))

        qualified = span.qualified_name()
        full_name = f"{namespace}.{qualified}" if namespace else qualified

        body_start = span.open_index + 1
        body = self.masked[body_start:span.close_index]
        shallow = blank_nested_blocks(body)
        member_visibility = Visibility.PUBLIC if kind is DeclarationKind.INTERFACE else Visibility.PRIVATE

        methods = self._scan_constructors(shallow, body_start, span.name, member_visibility)
        methods += self._scan_methods(shallow, body_start, member_visibility)
        methods.sort(key=lambda method: method.start_line)

        return Declaration(
            name=span.name,
            full_name=full_name,
            namespace=namespace,
            file_path=self.file_path,
            kind=kind,
            visibility=visibility,
            modifiers=modifiers,
            base_types=base_types,
            interfaces=interfaces,
            type_parameters=_type_parameters(m.group("generics")),
            methods=tuple(methods),
            properties=tuple(self._scan_properties(shallow, body_start, member_visibility)),
            fields=tuple(self._scan_fields(shallow, body_start, member_visibility)),
            attributes=_parse_attributes(self.original[m.start("attrs"):m.end("attrs")]),
            start_line=self.lines.line_of(m.start("mods")),
            end_line=self.lines.line_of(span.close_index),
            complexity=calculate_complexity(body),
        )

    def _member_body(self, end_token: str, end_offset: int, shallow: str, body_start: int
                     ) -> tuple[bool, int, int]:
        """
        Locate a member body that starts at ``end_offset`` (absolute).

        Returns:
            (has_body, complexity, end offset)
        """
        if end_token == "{":
            open_index = end_offset - 1
            close_index = find_matching_brace(self.masked, open_index)
            if close_index is None:
                return True, 1, open_index
            return True, calculate_complexity(self.masked[open_index + 1:close_index]), close_index
        if end_token == "=>":
            semicolon = shallow.find(";", end_offset - body_start)
            stop = len(self.masked) if semicolon == -1 else body_start + semicolon
            return True, calculate_complexity(self.masked[end_offset:stop]), stop
        return False, 1, end_offset - 1

    def _scan_constructors(self, shallow: str, body_start: int, type_name: str,
                           default_visibility: Visibility) -> list[MethodDeclaration]:
        constructors: list[MethodDeclaration] = []
        for m in _CONSTRUCTOR_PATTERN.finditer(shallow):
            if m.group("name") != type_name:
                continue
            modifiers, visibility = _split_modifiers(m.group("mods"))
            has_body, complexity, end = self._member_body(
                m.group("end"), body_start + m.end("end"), shallow, body_start
            )
            constructors.append(MethodDeclaration(
                name=type_name,
                return_type="",
                visibility=visibility or default_visibility,
                modifiers=modifiers,
                parameters=self._parameters(m, body_start),
                attributes=_parse_attributes(self._original_group(m, "attrs", body_start)),
                start_line=self.lines.line_of(body_start + m.start("mods")),
                end_line=self.lines.line_of(end),
                cyclomatic_complexity=complexity,
                is_constructor=True,
                has_body=has_body,
            ))
        return constructors

    def _scan_methods(self, shallow: str, body_start: int,
                      default_visibility: Visibility) -> list[MethodDeclaration]:
        methods: list[MethodDeclaration] = []
        for m in _METHOD_PATTERN.finditer(shallow):
            return_type = _normalize(m.group("type"))
            if return_type in _NOT_A_TYPE:
                continue
            modifiers, visibility = _split_modifiers(m.group("mods"))
            has_body, complexity, end = self._member_body(
                m.group("end"), body_start + m.end("end"), shallow, body_start
            )
            methods.append(MethodDeclaration(
                name=m.group("name").rsplit(".", 1)[-1],
                return_type=return_type,
                visibility=visibility or default_visibility,
                modifiers=modifiers,
                parameters=self._parameters(m, body_start),
                attributes=_parse_attributes(self._original_group(m, "attrs", body_start)),
                start_line=self.lines.line_of(body_start + m.start("mods")),
                end_line=self.lines.line_of(end),
                cyclomatic_complexity=complexity,
                has_body=has_body and "abstract" not in modifiers,
            ))
        return methods

    def _scan_properties(self, shallow: str, body_start: int,
                         default_visibility: Visibility) -> list[PropertyDeclaration]:
        properties: list[PropertyDeclaration] = []
        for m in _PROPERTY_PATTERN.finditer(shallow):
            type_name = _normalize(m.group("type"))
            if type_name in _NOT_A_TYPE:
                continue
            modifiers, visibility = _split_modifiers(m.group("mods"))
            end_offset = body_start + m.end("end")

            if m.group("end") == "=>":
                has_getter, has_setter, is_auto = True, False, False
                semicolon = shallow.find(";", m.end("end"))
                end = body_start + semicolon if semicolon != -1 else end_offset
            else:
                close_index = find_matching_brace(self.masked, end_offset - 1)
                if close_index is None:
                    continue
                accessors_text = self.masked[end_offset:close_index]
                accessors = set(_ACCESSOR_PATTERN.findall(accessors_text))
                if not accessors:
                    continue
                has_getter = "get" in accessors or "add" in accessors
                has_setter = bool(accessors & {"set", "init", "remove"})
                is_auto = bool(_AUTO_ACCESSOR_PATTERN.search(accessors_text))
                end = close_index

            properties.append(PropertyDeclaration(
                name=m.group("name").rsplit(".", 1)[-1],
                type_name=type_name,
                visibility=visibility or default_visibility,
                modifiers=modifiers,
                has_getter=has_getter,
                has_setter=has_setter,
                is_auto_property=is_auto,
                start_line=self.lines.line_of(body_start + m.start("mods")),
                end_line=self.lines.line_of(end),
            ))
        return properties

    def _scan_fields(self, shallow: str, body_start: int,
                     default_visibility: Visibility) -> list[FieldDeclaration]:
        fields: list[FieldDeclaration] = []
        for m in _FIELD_PATTERN.finditer(shallow):
            type_name = _normalize(m.group("type"))
            if type_name in _NOT_A_TYPE:
                continue
            modifiers, visibility = _split_modifiers(m.group("mods"))
            value = None
            if m.group("value") is not None:
                value = self._original_group(m, "value", body_start).strip() or None
            line = self.lines.line_of(body_start + m.start("mods"))
            for name in (n.strip() for n in m.group("names").split(",")):
                fields.append(FieldDeclaration(
                    name=name,
                    type_name=type_name,
                    visibility=visibility or default_visibility,
                    modifiers=modifiers,
                    default_value=value,
                    start_line=line,
                ))
        return fields

    def _original_group(self, m: re.Match, group: str, body_start: int) -> str:
        return self.original[body_start + m.start(group):body_start + m.end(group)]

    def _parameters(self, m: re.Match, body_start: int) -> tuple[Parameter, ...]:
        start, end = body_start + m.start("params"), body_start + m.end("params")
        return parse_parameters(self.masked[start:end], self.original[start:end])


def extract_source(unit: SourceUnit) -> FileExtraction:
    """
    Extract every declaration from one unit of source text.

    Args:
        unit: File path (or label) and its text

    Returns:
        FileExtraction with declarations in source order, extraction issues
        and line statistics
    """
    source = mask_source(unit.text)
    scanner = _FileScanner(unit.file_path, source)
    declarations = scanner.scan()
    issues = list(scanner.issues)
    if not declarations:
        issues.append(Issue(
            severity=IssueSeverity.INFO,
            category=IssueCategory.EXTRACTION,
            message="No class, interface or struct declarations found",
            location=unit.file_path,
        ))
    return FileExtraction(
        file_path=unit.file_path,
        declarations=tuple(declarations),
        issues=tuple(issues),
        lines=compute_line_stats(source),
    )


# ============================================================================
# BATCH EXTRACTION
# ============================================================================

@dataclass(frozen=True)
class ExtractionBatch:
    """Merged extraction output of many files."""
    declarations: tuple[Declaration, ...] = ()
    issues: tuple[Issue, ...] = ()
    lines: LineStats = LineStats()
    files_analyzed: int = 0
    cancelled: bool = False


def read_text(path: Path) -> str:
    """Read a source file, replacing undecodable bytes."""
    return path.read_text(encoding="utf-8", errors="replace")


def _union(first: tuple[str, ...], second: tuple[str, ...]) -> tuple[str, ...]:
    return first + tuple(item for item in second if item not in first)


def merge_partial(first: Declaration, other: Declaration) -> Declaration:
    """
    Fold a later ``partial`` part of a type into its first part.

    Members are appended in order; base lists, attributes and modifiers are
    unioned. Location and visibility stay those of the first part, and the
    complexity counts the shared base path once.
    """
    return replace(
        first,
        modifiers=_union(first.modifiers, other.modifiers),
        base_types=_union(first.base_types, other.base_types),
        interfaces=_union(first.interfaces, other.interfaces),
        type_parameters=first.type_parameters or other.type_parameters,
        methods=first.methods + other.methods,
        properties=first.properties + other.properties,
        fields=first.fields + other.fields,
        attributes=_union(first.attributes, other.attributes),
        complexity=first.complexity + other.complexity - 1,
    )


def _is_partial_pair(first: Declaration, other: Declaration) -> bool:
    return first.kind is other.kind and "partial" in first.modifiers and "partial" in other.modifiers


def merge_extractions(extractions: Iterable[FileExtraction], cancelled: bool = False) -> ExtractionBatch:
    """
    Merge per-file results in the given order.

    Parts of a ``partial`` type are folded into its first part. Any other
    declaration whose full name was already seen is dropped and reported as
    a CRITICAL invariant issue; the first occurrence wins.
    """
    seen: dict[str, int] = {}
    declarations: list[Declaration] = []
    issues: list[Issue] = []
    lines = LineStats()
    files = 0

    for extraction in extractions:
        files += 1
        lines = lines + extraction.lines
        issues.extend(extraction.issues)
        for declaration in extraction.declarations:
            index = seen.get(declaration.full_name)
            if index is not None:
                first = declarations[index]
                if _is_partial_pair(first, declaration):
                    declarations[index] = merge_partial(first, declaration)
                    logger.debug(f"Merged partial {declaration.full_name} from {declaration.file_path}")
                    continue
                issues.append(Issue(
                    severity=IssueSeverity.CRITICAL,
                    category=IssueCategory.INVARIANT,
                    message=(
                        f"Duplicate declaration {declaration.full_name}; "
                        f"keeping the one in {first.file_path}:{first.start_line}"
                    ),
                    location=declaration.file_path,
                    line=declaration.start_line,
                    remediation="Rename one of the types or move it to a different namespace",
                ))
                logger.warning(f"Duplicate declaration {declaration.full_name} in {declaration.file_path}")
                continue
            seen[declaration.full_name] = len(declarations)
            declarations.append(declaration)

    return ExtractionBatch(
        declarations=tuple(declarations),
        issues=tuple(issues),
        lines=lines,
        files_analyzed=files,
        cancelled=cancelled,
    )


class DeclarationExtractor:
    """
    Extracts declarations from files or in-memory text.

    Files are processed independently (in a thread pool above
    ``config.parallel_file_threshold`` files) and merged in the order given,
    so the output does not depend on scheduling.

    Usage:
        extractor = DeclarationExtractor(config)
        batch = extractor.extract_files(root, ["Scripts/Player.cs"])
    """

    def __init__(self, config: AnalysisConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def extract_text(self, text: str, file_path: str = "<memory>") -> FileExtraction:
        return extract_source(SourceUnit(file_path=file_path, text=text))

    def extract_units(
        self,
        units: Iterable[SourceUnit],
        cancel_token: Optional[CancellationToken] = None,
    ) -> ExtractionBatch:
        """Extract from in-memory units, in the order given."""
        units = list(units)
        return self._run(
            [lambda unit=unit: extract_source(unit) for unit in units],
            cancel_token,
        )

    def extract_files(
        self,
        root: Path,
        rel_paths: Iterable[str],
        cancel_token: Optional[CancellationToken] = None,
    ) -> ExtractionBatch:
        """
        Extract from files under ``root``.

        Args:
            root: Directory the relative paths are resolved against
            rel_paths: Relative paths, already sorted by the caller
            cancel_token: Checked before each file is read

        Returns:
            ExtractionBatch; ``cancelled`` is set if files were skipped
        """
        rel_paths = list(rel_paths)
        return self._run(
            [lambda rel=rel: self._extract_file(root, rel) for rel in rel_paths],
            cancel_token,
        )

    def _extract_file(self, root: Path, rel_path: str) -> FileExtraction:
        path = root / rel_path
        label = rel_path
        try:
            text = read_text(path)
        except OSError as e:
            logger.warning(f"Skipping unreadable file {label}: {e}")
            return FileExtraction(
                file_path=label,
                issues=(Issue(
                    severity=IssueSeverity.MINOR,
                    category=IssueCategory.INPUT_ERROR,
                    message=f"Could not read file: {e}",
                    location=label,
                ),),
            )
        return extract_source(SourceUnit(file_path=label, text=text))

    def _run(
        self,
        tasks: list[Callable[[], FileExtraction]],
        cancel_token: Optional[CancellationToken],
    ) -> ExtractionBatch:
        if len(tasks) >= self.config.parallel_file_threshold and self.config.max_workers > 1:
            results = self._process_parallel(tasks, cancel_token)
        else:
            results = self._process_sequential(tasks, cancel_token)

        cancelled = any(r is None for r in results)
        if cancelled:
            done = sum(1 for r in results if r is not None)
            logger.info(f"Extraction cancelled after {done}/{len(tasks)} files")
        batch = merge_extractions((r for r in results if r is not None), cancelled=cancelled)
        logger.info(
            f"Extracted {len(batch.declarations)} declarations from {batch.files_analyzed} files"
        )
        return batch

    def _process_parallel(
        self,
        tasks: list[Callable[[], FileExtraction]],
        cancel_token: Optional[CancellationToken],
    ) -> list[Optional[FileExtraction]]:
        """Run tasks in a thread pool; slots stay None for skipped files."""
        results: list[Optional[FileExtraction]] = [None] * len(tasks)

        def guarded(task: Callable[[], FileExtraction]) -> Optional[FileExtraction]:
            if cancel_token is not None and cancel_token.cancelled:
                return None
            return task()

        processed = 0
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = {executor.submit(guarded, task): index for index, task in enumerate(tasks)}
            for future in as_completed(futures):
                results[futures[future]] = future.result()
                processed += 1
                log_progress(logger, processed, len(tasks), "Extracting", interval=50)
        return results

    def _process_sequential(
        self,
        tasks: list[Callable[[], FileExtraction]],
        cancel_token: Optional[CancellationToken],
    ) -> list[Optional[FileExtraction]]:
        results: list[Optional[FileExtraction]] = [None] * len(tasks)
        for index, task in enumerate(tasks):
            if cancel_token is not None and cancel_token.cancelled:
                break
            results[index] = task()
            log_progress(logger, index + 1, len(tasks), "Extracting", interval=25)
        return results
