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
Insight Generator

Turns the analysis artifacts (declarations, cycles, metrics, patterns,
issues, structure) into severity-classified, explainable ``Insight``
records. Instance insights name the declaration, method, cycle or file they
are about; aggregate insights describe the project as a whole.

Insights are ordered by severity (highest first), then confidence.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Optional

from archinsight.analysis.architecture import STYLE_NONE
from archinsight.analysis.models import (
    ArchitectureSummary,
    Cycle,
    Declaration,
    Insight,
    InsightCategory,
    InsightSeverity,
    Issue,
    IssueSeverity,
    PatternMatch,
    ProjectMetrics,
    ProjectStructure,
)
from archinsight.analysis.structure_scanner import find_large_files
from archinsight.config import AnalysisConfig, DEFAULT_CONFIG
from archinsight.utils.logging_config import get_logger

logger = get_logger(__name__)


MAX_EVIDENCE_ITEMS = 5


def sort_insights(insights: Iterable[Insight]) -> list[Insight]:
    """Severity descending, then confidence descending; ties keep their order."""
    return sorted(insights, key=lambda i: (-i.severity.rank, -i.confidence))


class InsightGenerator:
    """
    Generates insights from a finished set of analysis artifacts.

    Usage:
        generator = InsightGenerator(config)
        insights = generator.generate(declarations=decls, metrics=metrics, ...)
    """

    def __init__(self, config: AnalysisConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def generate(
        self,
        declarations: Iterable[Declaration] = (),
        cycles: Iterable[Cycle] = (),
        metrics: ProjectMetrics = ProjectMetrics(),
        patterns: Iterable[PatternMatch] = (),
        issues: Iterable[Issue] = (),
        structure: Optional[ProjectStructure] = None,
        architecture: Optional[ArchitectureSummary] = None,
    ) -> list[Insight]:
        """
        Run every insight rule.

        Args:
            declarations: Extracted declarations
            cycles: Detected dependency cycles
            metrics: Project metrics
            patterns: Detected design patterns
            issues: Extraction and code issues
            structure: File inventory; structure and testing insights need it
            architecture: Architecture classification, if available

        Returns:
            Sorted list of insights
        """
        classes = [d for d in declarations if not d.is_interface]
        issues = list(issues)

        insights: list[Insight] = []
        insights.extend(self.god_classes(classes))
        insights.extend(self.large_classes(classes))
        insights.extend(self.complex_methods(classes))
        insights.extend(self.circular_dependencies(cycles))
        insights.extend(self.code_quality(metrics, issues, list(patterns)))
        insights.extend(self.dependency_density(metrics))
        insights.extend(self.maintainability(metrics))
        if structure is not None:
            insights.extend(self.large_files(structure))
            insights.extend(self.testing(structure))
        if architecture is not None:
            insights.extend(self.architecture_style(architecture))

        insights = sort_insights(insights)
        logger.info(f"Generated {len(insights)} insight(s)")
        return insights

    # ------------------------------------------------------------------
    # Instance insights
    # ------------------------------------------------------------------

    def god_classes(self, classes: list[Declaration]) -> list[Insight]:
        limit = self.config.max_methods_per_class
        return [
            Insight(
                kind="god_class",
                category=InsightCategory.ARCHITECTURE,
                severity=InsightSeverity.HIGH,
                title=f"God Class: {d.name}",
                description=(
                    f"{d.name} declares {len(d.methods)} methods (limit {limit}), "
                    f"a sign of too many responsibilities."
                ),
                confidence=0.85,
                evidence=(f"{d.file_path}:{d.start_line}",),
                subject=d.full_name,
                data={"method_count": len(d.methods), "file_path": d.file_path, "name": d.name},
            )
            for d in classes
            if len(d.methods) > limit
        ]

    def large_classes(self, classes: list[Declaration]) -> list[Insight]:
        limit = self.config.max_class_lines
        return [
            Insight(
                kind="large_class",
                category=InsightCategory.MAINTAINABILITY,
                severity=InsightSeverity.MEDIUM,
                title=f"Large Class: {d.name}",
                description=f"{d.name} spans {d.line_count} lines (limit {limit}).",
                confidence=0.8,
                evidence=(f"{d.file_path}:{d.start_line}-{d.end_line}",),
                subject=d.full_name,
                data={"line_count": d.line_count, "file_path": d.file_path, "name": d.name},
            )
            for d in classes
            if d.line_count > limit
        ]

    def complex_methods(self, classes: list[Declaration]) -> list[Insight]:
        limit = self.config.max_method_complexity
        insights: list[Insight] = []
        for d in classes:
            for method in d.methods:
                complexity = method.cyclomatic_complexity
                if complexity <= limit:
                    continue
                severity = InsightSeverity.HIGH if complexity >= 2 * limit else InsightSeverity.MEDIUM
                insights.append(Insight(
                    kind="complex_method",
                    category=InsightCategory.CODE_QUALITY,
                    severity=severity,
                    title=f"Complex Method: {d.name}.{method.name}",
                    description=(
                        f"{d.name}.{method.name} has cyclomatic complexity {complexity} "
                        f"(limit {limit})."
                    ),
                    confidence=0.85,
                    evidence=(f"{d.file_path}:{method.start_line}",),
                    subject=f"{d.full_name}.{method.name}",
                    data={"complexity": complexity, "file_path": d.file_path, "name": method.name},
                ))
        return insights

    def circular_dependencies(self, cycles: Iterable[Cycle]) -> list[Insight]:
        return [
            Insight(
                kind="circular_dependency",
                category=InsightCategory.DEPENDENCIES,
                severity=InsightSeverity.HIGH,
                title=f"Circular Dependency ({len(cycle)} types)",
                description=f"Dependency cycle: {cycle.render()}",
                confidence=0.95,
                evidence=(cycle.render(),),
                subject=cycle.nodes[0] if cycle.nodes else None,
                data={"cycle": cycle.nodes, "length": len(cycle)},
            )
            for cycle in cycles
        ]

    def large_files(self, structure: ProjectStructure) -> list[Insight]:
        limit = self.config.max_file_bytes
        return [
            Insight(
                kind="large_file",
                category=InsightCategory.STRUCTURE,
                severity=InsightSeverity.MEDIUM,
                title=f"Large File: {f.rel_path}",
                description=f"{f.rel_path} is {f.size_bytes:,} bytes (limit {limit:,}).",
                confidence=0.7,
                evidence=(f.rel_path,),
                subject=f.rel_path,
                data={"size_bytes": f.size_bytes, "is_source": f.is_source},
            )
            for f in find_large_files(structure, limit)
        ]

    # ------------------------------------------------------------------
    # Aggregate insights
    # ------------------------------------------------------------------

    def code_quality(
        self,
        metrics: ProjectMetrics,
        issues: list[Issue],
        patterns: list[PatternMatch],
    ) -> list[Insight]:
        insights: list[Insight] = []

        critical = [i for i in issues if i.severity is IssueSeverity.CRITICAL]
        if critical:
            insights.append(Insight(
                kind="critical_issues",
                category=InsightCategory.CODE_QUALITY,
                severity=InsightSeverity.CRITICAL,
                title="Critical Code Issues Found",
                description=(
                    f"Detected {len(critical)} critical issue(s) that need immediate attention."
                ),
                confidence=0.95,
                evidence=tuple(
                    f"{i.message} in {i.location}" for i in critical[:MAX_EVIDENCE_ITEMS]
                ),
                data={"count": len(critical)},
            ))

        major = [i for i in issues if i.severity is IssueSeverity.MAJOR]
        if len(major) > self.config.max_major_issues:
            by_category = Counter(i.category.value for i in major)
            insights.append(Insight(
                kind="many_major_issues",
                category=InsightCategory.CODE_QUALITY,
                severity=InsightSeverity.HIGH,
                title="High Number of Code Issues",
                description=f"Found {len(major)} major code issues that should be addressed.",
                confidence=0.9,
                evidence=tuple(
                    f"{category}: {count} issues"
                    for category, count in by_category.most_common(MAX_EVIDENCE_ITEMS)
                ),
                data={"count": len(major)},
            ))

        if metrics.average_complexity > self.config.max_average_complexity:
            insights.append(Insight(
                kind="high_average_complexity",
                category=InsightCategory.CODE_QUALITY,
                severity=InsightSeverity.MEDIUM,
                title="High Code Complexity",
                description=(
                    f"Average cyclomatic complexity is {metrics.average_complexity:.1f}, "
                    f"above the recommended {self.config.max_average_complexity:g}."
                ),
                confidence=0.85,
                evidence=(f"90th percentile method complexity: {metrics.complexity_p90:.1f}",),
                data={"average_complexity": metrics.average_complexity},
            ))

        if (
            metrics.total_lines >= self.config.min_lines_for_documentation_check
            and metrics.comment_ratio < self.config.min_comment_ratio
        ):
            insights.append(Insight(
                kind="low_documentation",
                category=InsightCategory.DOCUMENTATION,
                severity=InsightSeverity.LOW,
                title="Low Documentation Coverage",
                description=f"Only {metrics.comment_ratio:.1%} of lines contain comments.",
                confidence=0.7,
                evidence=(f"Recommended comment ratio is at least {self.config.min_comment_ratio:.0%}",),
                data={"comment_ratio": metrics.comment_ratio},
            ))

        strong = [p for p in patterns if p.confidence > self.config.strong_pattern_confidence]
        if strong:
            insights.append(Insight(
                kind="design_patterns",
                category=InsightCategory.ARCHITECTURE,
                severity=InsightSeverity.INFO,
                title="Design Patterns Detected",
                description=f"Found {len(strong)} well-implemented design pattern instance(s).",
                confidence=0.8,
                evidence=tuple(f"{p.name} pattern in {', '.join(p.involved)}" for p in strong),
                data={"count": len(strong)},
            ))

        return insights

    def dependency_density(self, metrics: ProjectMetrics) -> list[Insight]:
        density = metrics.dependencies_per_class
        if density <= self.config.max_dependencies_per_class:
            return []
        return [Insight(
            kind="high_dependency_density",
            category=InsightCategory.DEPENDENCIES,
            severity=InsightSeverity.MEDIUM,
            title="High Dependency Density",
            description=f"Types have an average of {density:.1f} dependencies each.",
            confidence=0.8,
            evidence=("High dependency counts make code harder to maintain and test",),
            data={"average_dependencies": density},
        )]

    def maintainability(self, metrics: ProjectMetrics) -> list[Insight]:
        insights: list[Insight] = []

        if metrics.maintainability < self.config.min_maintainability:
            insights.append(Insight(
                kind="low_maintainability",
                category=InsightCategory.MAINTAINABILITY,
                severity=InsightSeverity.HIGH,
                title="Low Maintainability Score",
                description=f"Maintainability score is {metrics.maintainability:.0%}.",
                confidence=0.8,
                evidence=("Score is derived from average complexity and technical debt",),
                data={"maintainability": metrics.maintainability},
            ))

        if metrics.technical_debt > self.config.max_technical_debt:
            insights.append(Insight(
                kind="high_technical_debt",
                category=InsightCategory.MAINTAINABILITY,
                severity=InsightSeverity.HIGH,
                title="High Technical Debt",
                description=f"Technical debt level is {metrics.technical_debt:.0%}.",
                confidence=0.85,
                evidence=("Debt grows with every major and critical issue",),
                data={"technical_debt": metrics.technical_debt},
            ))

        if metrics.methods_per_class > self.config.max_average_methods_per_class:
            insights.append(Insight(
                kind="large_class_sizes",
                category=InsightCategory.MAINTAINABILITY,
                severity=InsightSeverity.MEDIUM,
                title="Large Class Sizes",
                description=f"Classes average {metrics.methods_per_class:.1f} methods each.",
                confidence=0.7,
                evidence=("Smaller, focused classes are easier to maintain",),
                data={"methods_per_class": metrics.methods_per_class},
            ))

        return insights

    def testing(self, structure: ProjectStructure) -> list[Insight]:
        source_files = structure.source_files
        if len(source_files) < self.config.min_source_files_for_test_check:
            return []

        test_files = structure.test_source_files
        script_files = len(source_files) - len(test_files)

        if not test_files and not structure.has_test_folders:
            return [Insight(
                kind="missing_tests",
                category=InsightCategory.TESTING,
                severity=InsightSeverity.MEDIUM,
                title="No Test Infrastructure Found",
                description="No test folders or test source files were found.",
                confidence=0.8,
                evidence=(f"{len(source_files)} source files, none of them tests",),
                data={"test_files": 0, "source_files": len(source_files)},
            )]

        if script_files == 0:
            return []
        ratio = len(test_files) / script_files
        data = {"test_ratio": ratio, "test_files": len(test_files), "source_files": script_files}
        evidence = (f"{len(test_files)} test files for {script_files} source files",)

        if ratio < self.config.min_test_ratio:
            return [Insight(
                kind="low_test_coverage",
                category=InsightCategory.TESTING,
                severity=InsightSeverity.MEDIUM,
                title="Low Test Coverage",
                description=f"Test files amount to {ratio:.0%} of source files.",
                confidence=0.7,
                evidence=evidence,
                data=data,
            )]
        if ratio > self.config.good_test_ratio:
            return [Insight(
                kind="good_test_coverage",
                category=InsightCategory.TESTING,
                severity=InsightSeverity.INFO,
                title="Good Test Coverage",
                description=f"Test files amount to {ratio:.0%} of source files.",
                confidence=0.8,
                evidence=evidence,
                data=data,
            )]
        return []

    def architecture_style(self, architecture: ArchitectureSummary) -> list[Insight]:
        if architecture.style == STYLE_NONE:
            return []
        label = architecture.style.replace("_", " ")
        return [Insight(
            kind="architecture_style",
            category=InsightCategory.ARCHITECTURE,
            severity=InsightSeverity.INFO,
            title=f"Architecture Style: {label}",
            description=f"The code base follows a {label} structure.",
            confidence=0.8,
            evidence=tuple(
                f"{category}: {count}" for category, count in architecture.component_categories.items()
            ),
            data={"style": architecture.style},
        )]
