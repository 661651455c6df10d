"""
Data Models for Code Analysis

Contains the records shared across the analysis modules. Every record is a
frozen dataclass with tuple-valued collections, so a finished analysis can be
handed to any consumer as an immutable snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from archinsight.analysis.dependency_graph import DependencyGraph


# ============================================================================
# ENUMERATIONS
# ============================================================================

class DeclarationKind(str, Enum):
    CLASS = "class"
    INTERFACE = "interface"
    STRUCT = "struct"


class Visibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    PROTECTED = "protected"
    INTERNAL = "internal"


class DependencyKind(str, Enum):
    INHERITANCE = "inheritance"
    USAGE = "usage"


class PatternKind(str, Enum):
    SINGLETON = "singleton"
    FACTORY = "factory"
    OBSERVER = "observer"


class IssueSeverity(str, Enum):
    INFO = "info"
    MINOR = "minor"  # Reported as "warning" by some consumers
    MAJOR = "major"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _ISSUE_SEVERITY_RANK[self]


class IssueCategory(str, Enum):
    INPUT_ERROR = "input_error"
    EXTRACTION = "extraction"
    INVARIANT = "invariant"
    CODE_SMELL = "code_smell"


class InsightSeverity(str, Enum):
    INFO = "info"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _INSIGHT_SEVERITY_RANK[self]


class InsightCategory(str, Enum):
    STRUCTURE = "structure"
    CODE_QUALITY = "code_quality"
    ARCHITECTURE = "architecture"
    DEPENDENCIES = "dependencies"
    MAINTAINABILITY = "maintainability"
    TESTING = "testing"
    DOCUMENTATION = "documentation"


class RecommendationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_ISSUE_SEVERITY_RANK = {s: i for i, s in enumerate(IssueSeverity)}
_INSIGHT_SEVERITY_RANK = {s: i for i, s in enumerate(InsightSeverity)}
_PRIORITY_RANK = {p: i for i, p in enumerate(RecommendationPriority)}


def freeze_mapping(mapping: Mapping[str, Any]) -> Mapping[str, Any]:
    """Read-only view over a private copy of ``mapping``."""
    if isinstance(mapping, MappingProxyType):
        return mapping
    return MappingProxyType(dict(mapping))


# ============================================================================
# DECLARATIONS
# ============================================================================

@dataclass(frozen=True)
class Parameter:
    """A single method parameter."""
    name: str
    type_name: str
    modifiers: tuple[str, ...] = ()  # ref, out, in, params, this
    default_value: Optional[str] = None


@dataclass(frozen=True)
class MethodDeclaration:
    """A method or constructor found inside a type body."""
    name: str
    return_type: str  # Empty for constructors
    visibility: Visibility
    modifiers: tuple[str, ...] = ()
    parameters: tuple[Parameter, ...] = ()
    attributes: tuple[str, ...] = ()
    start_line: int = 0
    end_line: int = 0
    cyclomatic_complexity: int = 1
    is_constructor: bool = False
    has_body: bool = True

    @property
    def line_count(self) -> int:
        return max(self.end_line - self.start_line + 1, 0)

    @property
    def is_static(self) -> bool:
        return "static" in self.modifiers

    @property
    def is_virtual(self) -> bool:
        return "virtual" in self.modifiers

    @property
    def is_override(self) -> bool:
        return "override" in self.modifiers

    @property
    def is_async(self) -> bool:
        return "async" in self.modifiers


@dataclass(frozen=True)
class PropertyDeclaration:
    """A property with get/set/init accessors or an expression body."""
    name: str
    type_name: str
    visibility: Visibility
    modifiers: tuple[str, ...] = ()
    has_getter: bool = False
    has_setter: bool = False
    is_auto_property: bool = False
    start_line: int = 0
    end_line: int = 0

    @property
    def is_static(self) -> bool:
        return "static" in self.modifiers


@dataclass(frozen=True)
class FieldDeclaration:
    """A field (including event fields and constants)."""
    name: str
    type_name: str
    visibility: Visibility
    modifiers: tuple[str, ...] = ()
    default_value: Optional[str] = None
    start_line: int = 0

    @property
    def is_static(self) -> bool:
        # Constants are implicitly static
        return "static" in self.modifiers or "const" in self.modifiers

    @property
    def is_readonly(self) -> bool:
        return "readonly" in self.modifiers

    @property
    def is_const(self) -> bool:
        return "const" in self.modifiers

    @property
    def is_event(self) -> bool:
        return "event" in self.modifiers


@dataclass(frozen=True)
class Declaration:
    """
    A recognized class, interface or struct with its members.

    ``full_name`` is namespace-qualified (and enclosing-type-qualified for
    nested types) and is unique within one analysis run.
    """
    name: str
    full_name: str
    namespace: str
    file_path: str
    kind: DeclarationKind
    visibility: Visibility
    modifiers: tuple[str, ...] = ()
    base_types: tuple[str, ...] = ()
    interfaces: tuple[str, ...] = ()
    type_parameters: tuple[str, ...] = ()
    methods: tuple[MethodDeclaration, ...] = ()
    properties: tuple[PropertyDeclaration, ...] = ()
    fields: tuple[FieldDeclaration, ...] = ()
    attributes: tuple[str, ...] = ()
    start_line: int = 0
    end_line: int = 0
    complexity: int = 1

    @property
    def line_count(self) -> int:
        return max(self.end_line - self.start_line + 1, 0)

    @property
    def all_base_names(self) -> tuple[str, ...]:
        return self.base_types + self.interfaces

    @property
    def is_interface(self) -> bool:
        return self.kind is DeclarationKind.INTERFACE

    @property
    def constructors(self) -> tuple[MethodDeclaration, ...]:
        return tuple(m for m in self.methods if m.is_constructor)

    def has_base(self, names: tuple[str, ...] | list[str]) -> bool:
        """Check whether any of ``names`` appears in the base/interface lists."""
        return any(name in self.all_base_names for name in names)


# ============================================================================
# DEPENDENCY GRAPH
# ============================================================================

@dataclass(frozen=True)
class DependencyNode:
    """One node per declaration; ``id`` is the declaration's full name."""
    id: str
    name: str
    kind: DeclarationKind
    file_path: str


@dataclass(frozen=True)
class DependencyEdge:
    """Directed edge; ``to_id`` may name a type with no node (dangling)."""
    from_id: str
    to_id: str
    kind: DependencyKind


@dataclass(frozen=True)
class Cycle:
    """A closed path in the dependency graph, in traversal order."""
    nodes: tuple[str, ...]

    def render(self, separator: str = " -> ") -> str:
        if not self.nodes:
            return ""
        return separator.join(self.nodes + (self.nodes[0],))

    def __str__(self) -> str:
        return self.render()

    def __len__(self) -> int:
        return len(self.nodes)


# ============================================================================
# FINDINGS
# ============================================================================

@dataclass(frozen=True)
class PatternMatch:
    """A heuristic, confidence-scored design pattern classification."""
    kind: PatternKind
    confidence: float
    involved: tuple[str, ...]
    evidence: str

    @property
    def name(self) -> str:
        return self.kind.value.capitalize()


@dataclass(frozen=True)
class Issue:
    """A problem found while reading or checking the source."""
    severity: IssueSeverity
    category: IssueCategory
    message: str
    location: str
    line: Optional[int] = None
    remediation: Optional[str] = None


@dataclass(frozen=True)
class Insight:
    """A derived, severity-classified observation about the analyzed source."""
    kind: str  # Stable key, e.g. "god_class", "circular_dependency"
    category: InsightCategory
    severity: InsightSeverity
    title: str
    description: str
    confidence: float
    evidence: tuple[str, ...] = ()
    subject: Optional[str] = None
    data: Mapping[str, Any] = field(default_factory=dict, hash=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", freeze_mapping(self.data))


@dataclass(frozen=True)
class ActionStep:
    """One step of a recommendation, with its own duration estimate."""
    description: str
    duration: timedelta


@dataclass(frozen=True)
class EffortEstimate:
    """Three-point effort estimate."""
    min_time: timedelta
    likely_time: timedelta
    max_time: timedelta
    complexity: int  # 1 (trivial) .. 5 (very hard)
    required_skills: tuple[str, ...] = ()

    @property
    def expected_time(self) -> timedelta:
        """PERT weighted average: (min + 4 * likely + max) / 6."""
        return (self.min_time + 4 * self.likely_time + self.max_time) / 6

    @property
    def expected_hours(self) -> float:
        return self.expected_time.total_seconds() / 3600


@dataclass(frozen=True)
class Recommendation:
    """A prioritized, actionable suggestion derived from an insight."""
    category: InsightCategory
    priority: RecommendationPriority
    title: str
    description: str
    rationale: str
    action_steps: tuple[ActionStep, ...]
    effort: EffortEstimate
    benefits: tuple[str, ...] = ()
    risks: tuple[str, ...] = ()
    source_insight: str = ""
    affected: tuple[str, ...] = ()


# ============================================================================
# INPUTS AND INVENTORY
# ============================================================================

@dataclass(frozen=True)
class SourceUnit:
    """One file's worth of text; the unit of parallel extraction."""
    file_path: str
    text: str


@dataclass(frozen=True)
class LineStats:
    total: int = 0
    code: int = 0
    comment: int = 0
    blank: int = 0

    def __add__(self, other: LineStats) -> LineStats:
        return LineStats(
            total=self.total + other.total,
            code=self.code + other.code,
            comment=self.comment + other.comment,
            blank=self.blank + other.blank,
        )


@dataclass(frozen=True)
class FileExtraction:
    """Everything the extractor learned from a single file."""
    file_path: str
    declarations: tuple[Declaration, ...] = ()
    issues: tuple[Issue, ...] = ()
    lines: LineStats = LineStats()


@dataclass(frozen=True)
class FileInfo:
    rel_path: str
    extension: str
    size_bytes: int
    is_source: bool
    is_test: bool


@dataclass(frozen=True)
class ProjectStructure:
    """File inventory of an analyzed root."""
    root: str
    files: tuple[FileInfo, ...] = ()
    folders: tuple[str, ...] = ()

    @property
    def total_files(self) -> int:
        return len(self.files)

    @property
    def total_size_bytes(self) -> int:
        return sum(f.size_bytes for f in self.files)

    @property
    def source_files(self) -> tuple[FileInfo, ...]:
        return tuple(f for f in self.files if f.is_source)

    @property
    def test_source_files(self) -> tuple[FileInfo, ...]:
        return tuple(f for f in self.files if f.is_source and f.is_test)

    @property
    def has_test_folders(self) -> bool:
        return any("test" in folder.lower() for folder in self.folders)


@dataclass(frozen=True)
class AssetSummary:
    """Counts and sizes of non-source files, grouped by extension."""
    total_assets: int = 0
    total_size_bytes: int = 0
    count_by_extension: Mapping[str, int] = field(default_factory=dict, hash=False)
    size_by_extension: Mapping[str, int] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "count_by_extension", freeze_mapping(self.count_by_extension))
        object.__setattr__(self, "size_by_extension", freeze_mapping(self.size_by_extension))


@dataclass(frozen=True)
class ArchitectureSummary:
    style: str = "none"  # none | mvc | service_oriented | component_based
    component_categories: Mapping[str, int] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "component_categories", freeze_mapping(self.component_categories))


@dataclass(frozen=True)
class ProjectMetrics:
    """Project-level code metrics; every ratio is 0 for empty input."""
    total_files: int = 0
    total_lines: int = 0
    code_lines: int = 0
    comment_lines: int = 0
    blank_lines: int = 0
    comment_ratio: float = 0.0
    total_classes: int = 0
    total_interfaces: int = 0
    total_methods: int = 0
    average_complexity: float = 0.0
    max_complexity: int = 0
    complexity_p90: float = 0.0
    methods_per_class: float = 0.0
    dependencies_per_class: float = 0.0
    counts_by_type: Mapping[str, int] = field(default_factory=dict, hash=False)
    technical_debt: float = 0.0
    maintainability: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "counts_by_type", freeze_mapping(self.counts_by_type))


# ============================================================================
# RESULT
# ============================================================================

@dataclass(frozen=True)
class AnalysisResult:
    """Complete, immutable result of one analysis invocation."""
    source: str
    success: bool
    declarations: tuple[Declaration, ...] = ()
    graph: Optional[DependencyGraph] = None
    cycles: tuple[Cycle, ...] = ()
    metrics: ProjectMetrics = ProjectMetrics()
    patterns: tuple[PatternMatch, ...] = ()
    issues: tuple[Issue, ...] = ()
    insights: tuple[Insight, ...] = ()
    recommendations: tuple[Recommendation, ...] = ()
    structure: Optional[ProjectStructure] = None
    assets: Optional[AssetSummary] = None
    architecture: Optional[ArchitectureSummary] = None
    incomplete: bool = False
    error_message: Optional[str] = None
    files_analyzed: int = 0
    started_at: Optional[datetime] = None
    duration: timedelta = timedelta(0)

    @property
    def summary(self) -> str:
        """Human-readable overview of the result."""
        if not self.success:
            return f"Analysis of {self.source} failed: {self.error_message}"

        m = self.metrics
        by_severity = {
            s: sum(1 for i in self.insights if i.severity is s) for s in InsightSeverity
        }
        status = " (INCOMPLETE: cancelled before all files were read)" if self.incomplete else ""
        return f"""
Analyzed {len(self.declarations)} declarations in {self.files_analyzed} file(s){status}.

CODE METRICS:
- Total lines: {m.total_lines:,} ({m.comment_ratio:.1%} comments)
- Classes: {m.total_classes}, interfaces: {m.total_interfaces}, methods: {m.total_methods}
- Average / max cyclomatic complexity: {m.average_complexity:.1f} / {m.max_complexity}
- Methods per class: {m.methods_per_class:.1f}
- Maintainability: {m.maintainability:.0%}, technical debt: {m.technical_debt:.0%}

DEPENDENCIES:
- Nodes: {self.graph.node_count if self.graph else 0}, edges: {self.graph.edge_count if self.graph else 0}
- Cycles: {len(self.cycles)}

INSIGHTS:
- Critical: {by_severity[InsightSeverity.CRITICAL]}, high: {by_severity[InsightSeverity.HIGH]}, medium: {by_severity[InsightSeverity.MEDIUM]}, low: {by_severity[InsightSeverity.LOW]}, info: {by_severity[InsightSeverity.INFO]}

RECOMMENDATIONS: {len(self.recommendations)} actionable suggestions generated.
""".strip()
