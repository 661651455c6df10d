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
Metrics Calculator

Project-level totals and ratios computed from the declaration set, line
statistics, the dependency graph and detected issues. Every ratio is 0 when
its denominator is 0, so an empty analysis yields a zeroed ``ProjectMetrics``.
"""

import statistics
from typing import Iterable, Optional

from archinsight.analysis.dependency_graph import DependencyGraph
from archinsight.analysis.models import (
    Declaration,
    Issue,
    IssueSeverity,
    LineStats,
    ProjectMetrics,
)
from archinsight.config import AnalysisConfig, DEFAULT_CONFIG
from archinsight.utils.logging_config import get_logger

logger = get_logger(__name__)


# Weights applied per issue when estimating technical debt
MAJOR_ISSUE_DEBT = 0.3
CRITICAL_ISSUE_DEBT = 0.5

# Caps on how much each factor can lower maintainability
COMPLEXITY_PENALTY_SCALE = 20.0
MAX_COMPLEXITY_PENALTY = 0.4
MAX_DEBT_PENALTY = 0.3

COMPLEXITY_PERCENTILE = 90


def compute_percentile(values: list[float], percentile: float) -> float:
    """Compute the percentile value from a list (linear interpolation)."""
    if not values:
        return 0
    sorted_vals = sorted(values)
    n = len(sorted_vals)
    idx = (percentile / 100) * (n - 1)
    lower = int(idx)
    upper = min(lower + 1, n - 1)
    fraction = idx - lower
    return sorted_vals[lower] + fraction * (sorted_vals[upper] - sorted_vals[lower])


def safe_ratio(numerator: float, denominator: float) -> float:
    """``numerator / denominator``, or 0.0 when the denominator is 0."""
    return numerator / denominator if denominator else 0.0


def technical_debt(issues: Iterable[Issue]) -> float:
    """
    Debt score in [0, 1]: 0.3 per major issue plus 0.5 per critical issue.
    """
    major = critical = 0
    for issue in issues:
        if issue.severity is IssueSeverity.MAJOR:
            major += 1
        elif issue.severity is IssueSeverity.CRITICAL:
            critical += 1
    return min(MAJOR_ISSUE_DEBT * major + CRITICAL_ISSUE_DEBT * critical, 1.0)


def maintainability(average_complexity: float, debt: float) -> float:
    """
    Maintainability score in [0, 1].

    Starts at 1, loses up to 0.4 for average complexity (scaled by 20) and
    up to 0.3 for technical debt.
    """
    score = 1.0
    score -= min(average_complexity / COMPLEXITY_PENALTY_SCALE, MAX_COMPLEXITY_PENALTY)
    score -= min(debt, MAX_DEBT_PENALTY)
    return max(score, 0.0)


class MetricsCalculator:
    """Computes ``ProjectMetrics`` for one analysis run."""

    def __init__(self, config: AnalysisConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def calculate(
        self,
        declarations: Iterable[Declaration],
        lines: LineStats = LineStats(),
        graph: Optional[DependencyGraph] = None,
        issues: Iterable[Issue] = (),
        total_files: int = 0,
    ) -> ProjectMetrics:
        """
        Calculate project metrics.

        Args:
            declarations: Extracted declarations
            lines: Summed line statistics of every analyzed file
            graph: Dependency graph, if built
            issues: Issues found so far (drives technical debt)
            total_files: Number of files analyzed

        Returns:
            ProjectMetrics snapshot
        """
        declarations = list(declarations)
        classes = [d for d in declarations if not d.is_interface]
        interfaces = [d for d in declarations if d.is_interface]

        complexities = [m.cyclomatic_complexity for d in declarations for m in d.methods]
        class_methods = sum(len(d.methods) for d in classes)

        average_complexity = statistics.mean(complexities) if complexities else 0.0
        debt = technical_debt(issues)

        counts_by_type = {
            label: sum(1 for d in classes if d.has_base(names))
            for label, names in self.config.category_base_types.items()
        }
        counts_by_type["Interface"] = len(interfaces)

        metrics = ProjectMetrics(
            total_files=total_files,
            total_lines=lines.total,
            code_lines=lines.code,
            comment_lines=lines.comment,
            blank_lines=lines.blank,
            comment_ratio=safe_ratio(lines.comment, lines.total),
            total_classes=len(classes),
            total_interfaces=len(interfaces),
            total_methods=len(complexities),
            average_complexity=float(average_complexity),
            max_complexity=max(complexities, default=0),
            complexity_p90=float(compute_percentile(complexities, COMPLEXITY_PERCENTILE)),
            methods_per_class=safe_ratio(class_methods, len(classes)),
            dependencies_per_class=(
                safe_ratio(graph.edge_count, graph.node_count) if graph is not None else 0.0
            ),
            counts_by_type=counts_by_type,
            technical_debt=debt,
            maintainability=maintainability(average_complexity, debt),
        )
        logger.debug(
            f"Metrics: {metrics.total_classes} classes, {metrics.total_methods} methods, "
            f"avg complexity {metrics.average_complexity:.2f}"
        )
        return metrics
