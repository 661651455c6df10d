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
Recommendation Engine

Generates concrete, prioritized recommendations from actionable insights.
Each insight kind has a handler; INFO insights and kinds without a handler
produce nothing.
"""

from datetime import timedelta
from typing import Callable, Iterable, Optional

from archinsight.analysis.models import (
    ActionStep,
    EffortEstimate,
    Insight,
    InsightSeverity,
    Recommendation,
    RecommendationPriority,
)
from archinsight.utils.logging_config import get_logger

logger = get_logger(__name__)


PRIORITY_BY_SEVERITY = {
    InsightSeverity.CRITICAL: RecommendationPriority.CRITICAL,
    InsightSeverity.HIGH: RecommendationPriority.HIGH,
    InsightSeverity.MEDIUM: RecommendationPriority.MEDIUM,
    InsightSeverity.LOW: RecommendationPriority.LOW,
    InsightSeverity.INFO: RecommendationPriority.LOW,
}


def hours(value: float) -> timedelta:
    return timedelta(hours=value)


def minutes(value: float) -> timedelta:
    return timedelta(minutes=value)


def estimate(
    min_hours: float,
    likely_hours: float,
    max_hours: float,
    complexity: int,
    skills: tuple[str, ...] = (),
) -> EffortEstimate:
    """Three-point estimate from hour values."""
    return EffortEstimate(
        min_time=hours(min_hours),
        likely_time=hours(likely_hours),
        max_time=hours(max_hours),
        complexity=complexity,
        required_skills=skills,
    )


def sort_recommendations(recommendations: Iterable[Recommendation]) -> list[Recommendation]:
    """Priority descending, then expected effort ascending."""
    return sorted(recommendations, key=lambda r: (-r.priority.rank, r.effort.expected_time))


class RecommendationEngine:
    """Generates recommendations for actionable insights."""

    def __init__(self) -> None:
        self.handlers: dict[str, Callable[[Insight], Recommendation]] = {
            "god_class": self._recommend_for_god_class,
            "large_class": self._recommend_for_large_class,
            "complex_method": self._recommend_for_complex_method,
            "circular_dependency": self._recommend_for_circular_dependency,
            "large_file": self._recommend_for_large_file,
            "critical_issues": self._recommend_for_critical_issues,
            "many_major_issues": self._recommend_for_many_major_issues,
            "high_average_complexity": self._recommend_for_high_average_complexity,
            "low_documentation": self._recommend_for_low_documentation,
            "high_dependency_density": self._recommend_for_high_dependency_density,
            "low_maintainability": self._recommend_for_low_maintainability,
            "high_technical_debt": self._recommend_for_high_technical_debt,
            "large_class_sizes": self._recommend_for_large_class_sizes,
            "missing_tests": self._recommend_for_missing_tests,
            "low_test_coverage": self._recommend_for_low_test_coverage,
        }

    def generate_recommendations(self, insights: Iterable[Insight]) -> list[Recommendation]:
        """
        Generate recommendations for actionable insights.

        Recommendations are sorted by:
        1. Priority (critical -> low)
        2. Expected effort within the same priority (smallest first)
        """
        recommendations: list[Recommendation] = []
        for insight in insights:
            rec = self._recommend_for_insight(insight)
            if rec is not None:
                recommendations.append(rec)

        recommendations = sort_recommendations(recommendations)
        logger.info(f"Generated {len(recommendations)} recommendation(s)")
        return recommendations

    def _recommend_for_insight(self, insight: Insight) -> Optional[Recommendation]:
        if insight.severity is InsightSeverity.INFO:
            return None
        handler = self.handlers.get(insight.kind)
        if handler:
            return handler(insight)
        return None

    @staticmethod
    def _affected(insight: Insight) -> tuple[str, ...]:
        affected = [insight.subject] if insight.subject else []
        file_path = insight.data.get("file_path")
        if file_path:
            affected.append(file_path)
        return tuple(affected)

    def _build(self, insight: Insight, **fields) -> Recommendation:
        return Recommendation(
            category=insight.category,
            priority=PRIORITY_BY_SEVERITY[insight.severity],
            source_insight=insight.kind,
            affected=self._affected(insight),
            **fields,
        )

    # ------------------------------------------------------------------
    # Instance handlers
    # ------------------------------------------------------------------

    def _recommend_for_god_class(self, insight: Insight) -> Recommendation:
        name = insight.data.get("name", insight.subject)
        return self._build(
            insight,
            title=f"Split {name} into Focused Classes",
            description=(
                f"Break {name} ({insight.data.get('method_count')} methods) into smaller "
                f"components with one responsibility each."
            ),
            rationale="God classes violate the single responsibility principle and are hard to test",
            action_steps=(
                ActionStep("Identify the distinct responsibilities of the class", hours(2)),
                ActionStep("Extract related methods into new focused classes", hours(4)),
                ActionStep("Update references and dependencies", hours(1)),
                ActionStep("Add unit tests for the new classes", hours(2)),
            ),
            effort=estimate(6, 12, 20, 4, ("Refactoring", "Object-oriented design", "Unit testing")),
            benefits=("Better maintainability", "Easier testing", "Clearer responsibilities"),
            risks=("Temporary increase in complexity during refactoring", "Potential introduction of bugs"),
        )

    def _recommend_for_large_class(self, insight: Insight) -> Recommendation:
        name = insight.data.get("name", insight.subject)
        return self._build(
            insight,
            title=f"Reduce the Size of {name}",
            description=f"{name} spans {insight.data.get('line_count')} lines; extract cohesive parts.",
            rationale="Very long classes are hard to navigate and tend to accumulate unrelated logic",
            action_steps=(
                ActionStep("Group members by the feature they serve", hours(1)),
                ActionStep("Move each group into its own class or partial helper", hours(4)),
                ActionStep("Re-run the analysis to confirm the size dropped", minutes(15)),
            ),
            effort=estimate(4, 8, 16, 3, ("Refactoring",)),
            benefits=("Easier navigation", "Smaller review surface"),
            risks=("Merge conflicts with parallel work",),
        )

    def _recommend_for_complex_method(self, insight: Insight) -> Recommendation:
        name = insight.data.get("name", insight.subject)
        return self._build(
            insight,
            title=f"Simplify Method {name}",
            description=(
                f"Reduce the cyclomatic complexity of {insight.subject} "
                f"(currently {insight.data.get('complexity')})."
            ),
            rationale="Highly branched methods are hard to understand and need many tests to cover",
            action_steps=(
                ActionStep("Extract complex conditionals into well-named methods", hours(1)),
                ActionStep("Replace nested branches with early returns", minutes(30)),
                ActionStep("Add unit tests for each extracted path", hours(1)),
            ),
            effort=estimate(1, 2, 4, 2, ("Refactoring", "Unit testing")),
            benefits=("Easier code understanding", "Reduced bug risk"),
        )

    def _recommend_for_circular_dependency(self, insight: Insight) -> Recommendation:
        return self._build(
            insight,
            title="Resolve Circular Dependency",
            description=insight.description,
            rationale="Circular dependencies couple types so they can only change and be tested together",
            action_steps=(
                ActionStep("Map out the dependency chain", hours(1)),
                ActionStep("Introduce an interface to break a direct dependency", hours(3)),
                ActionStep("Extract shared functionality into a separate type", hours(2)),
                ActionStep("Verify no new cycles were introduced", minutes(30)),
            ),
            effort=estimate(4, 7, 12, 4, ("Dependency analysis", "Refactoring", "Interface design")),
            benefits=("Cleaner architecture", "Better testability"),
            risks=("Temporary complexity during refactoring",),
        )

    def _recommend_for_large_file(self, insight: Insight) -> Recommendation:
        return self._build(
            insight,
            title=f"Review Large File {insight.subject}",
            description=f"{insight.subject} is {insight.data.get('size_bytes', 0):,} bytes.",
            rationale="Very large files slow down tooling and reviews",
            action_steps=(
                ActionStep("Decide whether the file belongs in the repository", minutes(30)),
                ActionStep("Split or compress the file", hours(1)),
            ),
            effort=estimate(0.5, 1.5, 4, 2, ("Asset management",)),
            benefits=("Faster tooling", "Smaller repository"),
        )

    # ------------------------------------------------------------------
    # Aggregate handlers
    # ------------------------------------------------------------------

    def _recommend_for_critical_issues(self, insight: Insight) -> Recommendation:
        return self._build(
            insight,
            title="Fix Critical Issues",
            description=insight.description,
            rationale="Critical issues make the analysis itself unreliable until they are fixed",
            action_steps=tuple(ActionStep(f"Fix: {e}", hours(2)) for e in insight.evidence),
            effort=estimate(2, 4, 8, 3),
            benefits=("Reliable analysis results",),
        )

    def _recommend_for_many_major_issues(self, insight: Insight) -> Recommendation:
        return self._build(
            insight,
            title="Work Down Major Code Issues",
            description=insight.description,
            rationale="A large backlog of major issues raises the cost of every change",
            action_steps=(
                ActionStep("Triage issues by file and owner", hours(1)),
                ActionStep("Fix issues in the most frequently changed files first", hours(8)),
                ActionStep("Add a check that blocks new major issues", hours(1)),
            ),
            effort=estimate(6, 10, 24, 3, ("Refactoring",)),
            benefits=("Lower technical debt", "Fewer regressions"),
        )

    def _recommend_for_high_average_complexity(self, insight: Insight) -> Recommendation:
        return self._build(
            insight,
            title="Reduce Code Complexity",
            description=(
                f"Simplify overly complex methods "
                f"(current average: {insight.data.get('average_complexity', 0):.1f})."
            ),
            rationale="High complexity makes code harder to understand, test and maintain",
            action_steps=(
                ActionStep("Identify methods with complexity above 10", minutes(30)),
                ActionStep("Break complex methods into smaller functions", hours(4)),
                ActionStep("Extract complex conditionals into meaningful method names", hours(2)),
                ActionStep("Add unit tests for refactored methods", hours(2)),
            ),
            effort=estimate(4, 8, 16, 3, ("Refactoring", "Unit testing")),
            benefits=("Easier code understanding", "Better testability", "Reduced bug risk"),
        )

    def _recommend_for_low_documentation(self, insight: Insight) -> Recommendation:
        return self._build(
            insight,
            title="Improve Code Documentation",
            description=(
                f"Increase the comment ratio from {insight.data.get('comment_ratio', 0):.0%} "
                f"to at least 15%."
            ),
            rationale="Documentation helps with code understanding and team collaboration",
            action_steps=(
                ActionStep("Add documentation comments to public types and methods", hours(3)),
                ActionStep("Document complex algorithms and business logic", hours(2)),
                ActionStep("Set up documentation standards for the team", minutes(30)),
            ),
            effort=estimate(3, 5, 8, 2, ("Technical writing",)),
            benefits=("Easier onboarding", "Better IDE support"),
        )

    def _recommend_for_high_dependency_density(self, insight: Insight) -> Recommendation:
        return self._build(
            insight,
            title="Reduce Component Coupling",
            description=(
                f"Types average {insight.data.get('average_dependencies', 0):.1f} dependencies; "
                f"decouple them behind abstractions."
            ),
            rationale="Tightly coupled types are hard to change in isolation",
            action_steps=(
                ActionStep("Introduce interfaces to decouple dependencies", hours(3)),
                ActionStep("Use dependency injection instead of direct construction", hours(4)),
                ActionStep("Use events for loose communication", hours(2)),
            ),
            effort=estimate(6, 9, 16, 4, ("Interface design", "Dependency injection")),
            benefits=("Independent changes", "Easier mocking in tests"),
            risks=("More indirection",),
        )

    def _recommend_for_low_maintainability(self, insight: Insight) -> Recommendation:
        return self._build(
            insight,
            title="Raise the Maintainability Score",
            description=insight.description,
            rationale="Low maintainability predicts slow, error-prone changes",
            action_steps=(
                ActionStep("Address the most complex methods first", hours(4)),
                ActionStep("Fix outstanding major and critical issues", hours(8)),
                ActionStep("Track the score in every analysis run", minutes(30)),
            ),
            effort=estimate(8, 16, 32, 4, ("Refactoring",)),
            benefits=("Faster feature work", "Fewer regressions"),
        )

    def _recommend_for_high_technical_debt(self, insight: Insight) -> Recommendation:
        return self._build(
            insight,
            title="Pay Down Technical Debt",
            description=insight.description,
            rationale="Technical debt increases development time and bug risk",
            action_steps=(
                ActionStep("Reserve time in each iteration for debt reduction", hours(1)),
                ActionStep("Fix the issues that contribute most to the score", hours(12)),
            ),
            effort=estimate(8, 16, 40, 4, ("Refactoring", "Planning")),
            benefits=("Predictable delivery",),
            risks=("Competes with feature work for time",),
        )

    def _recommend_for_large_class_sizes(self, insight: Insight) -> Recommendation:
        return self._build(
            insight,
            title="Keep Classes Small",
            description=(
                f"Classes average {insight.data.get('methods_per_class', 0):.1f} methods; "
                f"aim for focused classes."
            ),
            rationale="Smaller, focused classes are easier to maintain",
            action_steps=(
                ActionStep("Identify the largest classes", minutes(30)),
                ActionStep("Extract cohesive method groups into new classes", hours(6)),
            ),
            effort=estimate(4, 8, 16, 3, ("Refactoring", "Object-oriented design")),
            benefits=("Clearer responsibilities",),
        )

    def _recommend_for_missing_tests(self, insight: Insight) -> Recommendation:
        return self._build(
            insight,
            title="Set Up Automated Testing",
            description="Add a test project and start covering critical logic.",
            rationale="Without tests every refactoring is a risk",
            action_steps=(
                ActionStep("Install a unit test framework", minutes(10)),
                ActionStep("Create a Tests folder structure", minutes(5)),
                ActionStep("Write tests for critical business logic", hours(4)),
                ActionStep("Run tests in continuous integration", hours(2)),
            ),
            effort=estimate(4, 7, 12, 3, ("Unit testing", "CI/CD")),
            benefits=("Safer refactoring", "Regression prevention"),
        )

    def _recommend_for_low_test_coverage(self, insight: Insight) -> Recommendation:
        return self._build(
            insight,
            title="Increase Test Coverage",
            description=insight.description,
            rationale="Low coverage leaves most changes unverified",
            action_steps=(
                ActionStep("Identify critical components lacking tests", hours(1)),
                ActionStep("Write unit tests for core business logic", hours(6)),
                ActionStep("Add integration tests for key workflows", hours(3)),
                ActionStep("Set up code coverage reporting", hours(1)),
            ),
            effort=estimate(8, 11, 20, 3, ("Unit testing",)),
            benefits=("Higher confidence in changes", "Easier refactoring"),
        )
