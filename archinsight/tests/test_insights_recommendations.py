"""
Tests for code issue detection, insight generation and recommendations.

Tests cover:
1. Per-declaration code smells
2. Instance and aggregate insights, including their size gates
3. Recommendation priority, effort estimates and ordering
"""

from datetime import timedelta

import pytest

from archinsight.analysis.architecture import ArchitectureClassifier
from archinsight.analysis.insight_generator import InsightGenerator, sort_insights
from archinsight.analysis.issue_detector import CodeIssueDetector
from archinsight.analysis.models import (
    ArchitectureSummary,
    Cycle,
    Declaration,
    DeclarationKind,
    EffortEstimate,
    FileInfo,
    Insight,
    InsightCategory,
    InsightSeverity,
    IssueSeverity,
    MethodDeclaration,
    PatternKind,
    PatternMatch,
    ProjectMetrics,
    ProjectStructure,
    RecommendationPriority,
    Visibility,
)
from archinsight.analysis.recommendation_engine import RecommendationEngine, estimate


def make_class(
    name: str,
    methods: int = 0,
    complexity: int = 1,
    lines: int = 10,
    kind: DeclarationKind = DeclarationKind.CLASS,
    base_types: tuple[str, ...] = (),
) -> Declaration:
    return Declaration(
        name=name,
        full_name=f"Game.{name}",
        namespace="Game",
        file_path=f"Scripts/{name}.cs",
        kind=kind,
        visibility=Visibility.PUBLIC,
        base_types=base_types,
        methods=tuple(
            MethodDeclaration(
                name=f"Method{i}",
                return_type="void",
                visibility=Visibility.PUBLIC,
                start_line=2 + i,
                end_line=2 + i,
                cyclomatic_complexity=complexity,
            )
            for i in range(methods)
        ),
        start_line=1,
        end_line=lines,
    )


def make_structure(scripts: int, tests: int = 0, folders: tuple[str, ...] = ()) -> ProjectStructure:
    files = [FileInfo(f"Scripts/S{i}.cs", ".cs", 100, True, False) for i in range(scripts)]
    files += [FileInfo(f"Tests/T{i}Test.cs", ".cs", 100, True, True) for i in range(tests)]
    return ProjectStructure(root="/project", files=tuple(files), folders=folders)


def kinds(insights: list[Insight]) -> list[str]:
    return [i.kind for i in insights]


class TestCodeIssueDetector:
    """Per-declaration smells become MAJOR issues."""

    def test_too_many_methods(self) -> None:
        issues = CodeIssueDetector().detect_all_issues([make_class("Big", methods=21)])

        assert len(issues) == 1
        assert issues[0].severity is IssueSeverity.MAJOR
        assert "too many methods (21)" in issues[0].message
        assert issues[0].location == "Scripts/Big.cs"

    def test_large_class_and_complex_method(self) -> None:
        issues = CodeIssueDetector().detect_all_issues([make_class("Long", methods=1, complexity=11, lines=501)])
        messages = [i.message for i in issues]

        assert any("very large (501 lines)" in m for m in messages)
        assert any("Long.Method0 has high cyclomatic complexity (11)" in m for m in messages)

    def test_within_limits(self) -> None:
        assert CodeIssueDetector().detect_all_issues([make_class("Fine", methods=20, complexity=10, lines=500)]) == []

    def test_interfaces_skipped(self) -> None:
        interface = make_class("IHuge", methods=30, kind=DeclarationKind.INTERFACE)
        assert CodeIssueDetector().detect_all_issues([interface]) == []


class TestInstanceInsights:
    """Insights about a single declaration, method, cycle or file."""

    def test_god_class(self) -> None:
        insights = InsightGenerator().generate(declarations=[make_class("Hub", methods=21)])

        god = [i for i in insights if i.kind == "god_class"]
        assert len(god) == 1
        assert god[0].severity is InsightSeverity.HIGH
        assert god[0].subject == "Game.Hub"
        assert god[0].data["method_count"] == 21

    def test_large_class(self) -> None:
        insights = InsightGenerator().generate(declarations=[make_class("Long", lines=600)])
        assert kinds(insights) == ["large_class"]
        assert insights[0].severity is InsightSeverity.MEDIUM

    @pytest.mark.parametrize("complexity, severity", [
        (11, InsightSeverity.MEDIUM),
        (19, InsightSeverity.MEDIUM),
        (20, InsightSeverity.HIGH),
    ])
    def test_complex_method_severity(self, complexity: int, severity: InsightSeverity) -> None:
        insights = InsightGenerator().generate(declarations=[make_class("Ai", methods=1, complexity=complexity)])

        complex_methods = [i for i in insights if i.kind == "complex_method"]
        assert len(complex_methods) == 1
        assert complex_methods[0].severity is severity
        assert complex_methods[0].subject == "Game.Ai.Method0"

    def test_circular_dependency(self) -> None:
        insights = InsightGenerator().generate(cycles=[Cycle(nodes=("A", "B", "C"))])

        assert kinds(insights) == ["circular_dependency"]
        cycle = insights[0]
        assert cycle.severity is InsightSeverity.HIGH
        assert cycle.confidence == pytest.approx(0.95)
        assert cycle.data["cycle"] == ("A", "B", "C")
        assert "A -> B -> C -> A" in cycle.description

    def test_large_file(self) -> None:
        structure = ProjectStructure(
            root="/project",
            files=(FileInfo("Art/Huge.psd", ".psd", 5 * 1024 * 1024, False, False),),
        )
        insights = InsightGenerator().generate(structure=structure)
        assert kinds(insights) == ["large_file"]
        assert insights[0].subject == "Art/Huge.psd"


class TestAggregateInsights:
    """Project-wide insights and their gates."""

    def test_clean_project_has_no_insights(self) -> None:
        insights = InsightGenerator().generate(metrics=ProjectMetrics(total_lines=1000, comment_ratio=0.2))
        assert insights == []

    def test_documentation_gated_on_size(self) -> None:
        small = InsightGenerator().generate(metrics=ProjectMetrics(total_lines=50, comment_ratio=0.0))
        large = InsightGenerator().generate(metrics=ProjectMetrics(total_lines=500, comment_ratio=0.0))

        assert "low_documentation" not in kinds(small)
        assert "low_documentation" in kinds(large)

    def test_metric_thresholds(self) -> None:
        metrics = ProjectMetrics(
            average_complexity=12.0,
            dependencies_per_class=9.0,
            methods_per_class=16.0,
            maintainability=0.5,
            technical_debt=0.8,
        )
        found = set(kinds(InsightGenerator().generate(metrics=metrics)))
        assert found == {
            "high_average_complexity",
            "high_dependency_density",
            "large_class_sizes",
            "low_maintainability",
            "high_technical_debt",
        }

    def test_issue_counts(self) -> None:
        issues = CodeIssueDetector().detect_all_issues(
            [make_class(f"C{i}", methods=21) for i in range(11)]
        )
        insights = InsightGenerator().generate(issues=issues)

        assert kinds(insights) == ["many_major_issues"]
        assert insights[0].data["count"] == 11

    def test_strong_patterns_reported_as_info(self) -> None:
        patterns = [
            PatternMatch(PatternKind.SINGLETON, 0.9, ("GameManager",), "static instance"),
            PatternMatch(PatternKind.OBSERVER, 0.7, ("Hud",), "events"),
        ]
        insights = InsightGenerator().generate(patterns=patterns)

        assert kinds(insights) == ["design_patterns"]
        assert insights[0].severity is InsightSeverity.INFO
        assert insights[0].data["count"] == 1

    @pytest.mark.parametrize("scripts, tests, folders, expected", [
        (5, 0, (), []),
        (12, 0, (), ["missing_tests"]),
        (12, 0, ("Tests",), ["low_test_coverage"]),
        (12, 1, ("Tests",), ["low_test_coverage"]),
        (10, 2, ("Tests",), []),
        (10, 4, ("Tests",), ["good_test_coverage"]),
    ])
    def test_testing_insights(self, scripts: int, tests: int, folders: tuple[str, ...], expected: list[str]) -> None:
        insights = InsightGenerator().generate(structure=make_structure(scripts, tests, folders))
        assert kinds(insights) == expected

    def test_architecture_style(self) -> None:
        summary = ArchitectureSummary(style="mvc", component_categories={"core": 2})
        insights = InsightGenerator().generate(architecture=summary)

        assert kinds(insights) == ["architecture_style"]
        assert insights[0].severity is InsightSeverity.INFO

    def test_no_style_no_insight(self) -> None:
        assert InsightGenerator().generate(architecture=ArchitectureSummary()) == []

    def test_ordering(self) -> None:
        insights = InsightGenerator().generate(
            declarations=[make_class("Hub", methods=21), make_class("Long", lines=600)],
            cycles=[Cycle(nodes=("A", "B"))],
            metrics=ProjectMetrics(total_lines=500, comment_ratio=0.0),
        )
        assert kinds(insights) == ["circular_dependency", "god_class", "large_class", "low_documentation"]

    def test_sort_insights_is_stable(self) -> None:
        a = Insight("a", InsightCategory.STRUCTURE, InsightSeverity.LOW, "a", "a", 0.5)
        b = Insight("b", InsightCategory.STRUCTURE, InsightSeverity.LOW, "b", "b", 0.5)
        c = Insight("c", InsightCategory.STRUCTURE, InsightSeverity.LOW, "c", "c", 0.9)
        assert [i.kind for i in sort_insights([a, b, c])] == ["c", "a", "b"]


class TestArchitectureClassifier:
    """Component categories and style detection."""

    def test_categories(self) -> None:
        classifier = ArchitectureClassifier()
        assert classifier.component_category(make_class("Enemy", base_types=("MonoBehaviour",))) == "gameplay"
        assert classifier.component_category(make_class("MainCanvas")) == "ui"
        assert classifier.component_category(make_class("AudioManager")) == "core"
        assert classifier.component_category(make_class("MathUtil")) == "utility"
        assert classifier.component_category(make_class("Inventory")) == "core"

    @pytest.mark.parametrize("names, style", [
        (["PlayerController", "PlayerView", "PlayerModel"], "mvc"),
        (["AudioManager", "SaveService"], "service_oriented"),
        ([], "none"),
        (["Inventory"], "none"),
    ])
    def test_styles(self, names: list[str], style: str) -> None:
        summary = ArchitectureClassifier().classify([make_class(n) for n in names])
        assert summary.style == style

    def test_component_based(self) -> None:
        classes = [make_class(f"Thing{i}", base_types=("MonoBehaviour",)) for i in range(3)]
        classes.append(make_class("Plain"))
        assert ArchitectureClassifier().classify(classes).style == "component_based"


class TestRecommendationEngine:
    """Handler table, priorities, estimates and ordering."""

    def test_pert_estimate(self) -> None:
        effort = estimate(6, 12, 20, 4)
        assert effort.expected_time == timedelta(hours=74) / 6
        assert effort.expected_hours == pytest.approx(74 / 6)

    def test_pert_with_equal_points(self) -> None:
        effort = EffortEstimate(timedelta(hours=2), timedelta(hours=2), timedelta(hours=2), 1)
        assert effort.expected_time == timedelta(hours=2)

    def test_god_class_recommendation(self) -> None:
        insights = InsightGenerator().generate(declarations=[make_class("Hub", methods=21)])
        recs = RecommendationEngine().generate_recommendations(insights)

        assert len(recs) == 1
        rec = recs[0]
        assert rec.priority is RecommendationPriority.HIGH
        assert rec.source_insight == "god_class"
        assert rec.affected == ("Game.Hub", "Scripts/Hub.cs")
        assert rec.effort.complexity == 4
        assert rec.effort.expected_hours == pytest.approx(74 / 6)
        assert rec.action_steps

    def test_info_insights_produce_nothing(self) -> None:
        info = Insight("design_patterns", InsightCategory.ARCHITECTURE, InsightSeverity.INFO, "t", "d", 0.8)
        assert RecommendationEngine().generate_recommendations([info]) == []

    def test_unknown_kind_produces_nothing(self) -> None:
        other = Insight("something_else", InsightCategory.STRUCTURE, InsightSeverity.HIGH, "t", "d", 0.8)
        assert RecommendationEngine().generate_recommendations([other]) == []

    def test_every_handler_builds_a_recommendation(self) -> None:
        engine = RecommendationEngine()
        for kind in engine.handlers:
            insight = Insight(kind, InsightCategory.CODE_QUALITY, InsightSeverity.MEDIUM, kind, kind, 0.8)
            recs = engine.generate_recommendations([insight])

            assert len(recs) == 1, kind
            assert recs[0].source_insight == kind
            assert recs[0].priority is RecommendationPriority.MEDIUM
            assert recs[0].effort.min_time <= recs[0].effort.likely_time <= recs[0].effort.max_time

    @pytest.mark.parametrize("severity, priority", [
        (InsightSeverity.CRITICAL, RecommendationPriority.CRITICAL),
        (InsightSeverity.HIGH, RecommendationPriority.HIGH),
        (InsightSeverity.MEDIUM, RecommendationPriority.MEDIUM),
        (InsightSeverity.LOW, RecommendationPriority.LOW),
    ])
    def test_priority_follows_severity(self, severity: InsightSeverity, priority: RecommendationPriority) -> None:
        insight = Insight("large_class", InsightCategory.MAINTAINABILITY, severity, "t", "d", 0.8)
        assert RecommendationEngine().generate_recommendations([insight])[0].priority is priority

    def test_ordering_by_priority_then_effort(self) -> None:
        insights = [
            Insight("low_documentation", InsightCategory.DOCUMENTATION, InsightSeverity.LOW, "t", "d", 0.7),
            Insight("god_class", InsightCategory.ARCHITECTURE, InsightSeverity.HIGH, "t", "d", 0.85),
            Insight("complex_method", InsightCategory.CODE_QUALITY, InsightSeverity.HIGH, "t", "d", 0.85),
        ]
        recs = RecommendationEngine().generate_recommendations(insights)

        assert [r.source_insight for r in recs] == ["complex_method", "god_class", "low_documentation"]
