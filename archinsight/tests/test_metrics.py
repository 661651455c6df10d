"""
Tests for the metrics calculator and its scoring helpers.
"""

import pytest

from archinsight.analysis.declaration_extractor import DeclarationExtractor
from archinsight.analysis.dependency_graph import DependencyGraphBuilder
from archinsight.analysis.metrics import (
    MetricsCalculator,
    compute_percentile,
    maintainability,
    safe_ratio,
    technical_debt,
)
from archinsight.analysis.models import (
    Issue,
    IssueCategory,
    IssueSeverity,
    ProjectMetrics,
    SourceUnit,
)


def issue(severity: IssueSeverity) -> Issue:
    return Issue(severity=severity, category=IssueCategory.CODE_SMELL, message="x", location="A.cs")


class TestScoring:
    """Debt and maintainability formulas."""

    def test_debt_weights(self) -> None:
        issues = [issue(IssueSeverity.MAJOR), issue(IssueSeverity.CRITICAL), issue(IssueSeverity.MINOR)]
        assert technical_debt(issues) == pytest.approx(0.8)

    def test_debt_is_capped(self) -> None:
        assert technical_debt([issue(IssueSeverity.CRITICAL)] * 5) == 1.0

    def test_debt_without_issues(self) -> None:
        assert technical_debt([]) == 0.0

    @pytest.mark.parametrize("average, debt, expected", [
        (0.0, 0.0, 1.0),
        (1.0, 0.0, 0.95),
        (4.0, 0.1, 0.7),
        (100.0, 1.0, 0.3),
    ])
    def test_maintainability(self, average: float, debt: float, expected: float) -> None:
        assert maintainability(average, debt) == pytest.approx(expected)

    def test_safe_ratio(self) -> None:
        assert safe_ratio(1, 0) == 0.0
        assert safe_ratio(1, 4) == 0.25

    def test_percentile(self) -> None:
        assert compute_percentile([], 90) == 0
        assert compute_percentile([5], 90) == 5
        assert compute_percentile([1, 1, 2], 90) == pytest.approx(1.8)


class TestMetricsCalculator:
    """Project metrics from real extraction output."""

    SOURCE = """\
// Player logic
class Player : MonoBehaviour
{
    void Move() { if (x) { } }
    void Stop() { }
}

interface IRunner { void Run(); }
"""

    @pytest.fixture
    def metrics(self) -> ProjectMetrics:
        batch = DeclarationExtractor().extract_units([SourceUnit("Player.cs", self.SOURCE)])
        graph = DependencyGraphBuilder().build(batch.declarations)
        return MetricsCalculator().calculate(
            batch.declarations,
            lines=batch.lines,
            graph=graph,
            issues=batch.issues,
            total_files=batch.files_analyzed,
        )

    def test_counts(self, metrics: ProjectMetrics) -> None:
        assert metrics.total_files == 1
        assert metrics.total_classes == 1
        assert metrics.total_interfaces == 1
        assert metrics.total_methods == 3
        assert metrics.methods_per_class == 2.0

    def test_complexity(self, metrics: ProjectMetrics) -> None:
        assert metrics.average_complexity == pytest.approx(4 / 3)
        assert metrics.max_complexity == 2
        assert metrics.complexity_p90 == pytest.approx(1.8)

    def test_lines(self, metrics: ProjectMetrics) -> None:
        assert metrics.total_lines == 8
        assert metrics.comment_lines == 1
        assert metrics.blank_lines == 1
        assert metrics.code_lines == 6
        assert metrics.comment_ratio == pytest.approx(1 / 8)

    def test_dependencies_per_class(self, metrics: ProjectMetrics) -> None:
        # Player -> MonoBehaviour is the only edge across two nodes
        assert metrics.dependencies_per_class == pytest.approx(0.5)

    def test_counts_by_type(self, metrics: ProjectMetrics) -> None:
        assert metrics.counts_by_type == {"MonoBehaviour": 1, "ScriptableObject": 0, "Interface": 1}

    def test_scores(self, metrics: ProjectMetrics) -> None:
        assert metrics.technical_debt == 0.0
        assert metrics.maintainability == pytest.approx(1 - (4 / 3) / 20)

    def test_issues_drive_debt(self) -> None:
        metrics = MetricsCalculator().calculate(
            [], issues=[issue(IssueSeverity.MAJOR), issue(IssueSeverity.MAJOR)]
        )
        assert metrics.technical_debt == pytest.approx(0.6)
        assert metrics.maintainability == pytest.approx(0.7)

    def test_empty_input_yields_zeros(self) -> None:
        metrics = MetricsCalculator().calculate([])

        assert metrics.total_classes == 0
        assert metrics.total_methods == 0
        assert metrics.average_complexity == 0.0
        assert metrics.max_complexity == 0
        assert metrics.complexity_p90 == 0.0
        assert metrics.methods_per_class == 0.0
        assert metrics.dependencies_per_class == 0.0
        assert metrics.comment_ratio == 0.0
        assert metrics.technical_debt == 0.0
        assert metrics.maintainability == 1.0
