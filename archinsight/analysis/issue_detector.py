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
Code Issue Detector

Flags code smells in individual declarations against the fixed thresholds
in ``AnalysisConfig``: too many methods, too many lines and overly complex
methods. Every smell is reported as a MAJOR ``Issue``.
"""

from __future__ import annotations

from typing import Iterable

from archinsight.analysis.models import (
    Declaration,
    Issue,
    IssueCategory,
    IssueSeverity,
)
from archinsight.config import AnalysisConfig, DEFAULT_CONFIG
from archinsight.utils.logging_config import get_logger

logger = get_logger(__name__)


class CodeIssueDetector:
    """
    Detects per-declaration code smells.

    Interfaces are skipped: their members carry no bodies to be large or
    complex.
    """

    def __init__(self, config: AnalysisConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def detect_all_issues(self, declarations: Iterable[Declaration]) -> list[Issue]:
        """Run all detection methods and return found issues."""
        classes = [d for d in declarations if not d.is_interface]
        issues: list[Issue] = []
        issues.extend(self.detect_too_many_methods(classes))
        issues.extend(self.detect_large_classes(classes))
        issues.extend(self.detect_complex_methods(classes))
        if issues:
            logger.info(f"Detected {len(issues)} code issue(s)")
        return issues

    def detect_too_many_methods(self, classes: list[Declaration]) -> list[Issue]:
        """Classes with more than ``max_methods_per_class`` methods."""
        limit = self.config.max_methods_per_class
        return [
            Issue(
                severity=IssueSeverity.MAJOR,
                category=IssueCategory.CODE_SMELL,
                message=f"Class {d.name} has too many methods ({len(d.methods)})",
                location=d.file_path,
                line=d.start_line,
                remediation="Consider breaking this class into smaller, more focused classes",
            )
            for d in classes
            if len(d.methods) > limit
        ]

    def detect_large_classes(self, classes: list[Declaration]) -> list[Issue]:
        """Classes spanning more than ``max_class_lines`` lines."""
        limit = self.config.max_class_lines
        return [
            Issue(
                severity=IssueSeverity.MAJOR,
                category=IssueCategory.CODE_SMELL,
                message=f"Class {d.name} is very large ({d.line_count} lines)",
                location=d.file_path,
                line=d.start_line,
                remediation="Consider refactoring this class to reduce its size",
            )
            for d in classes
            if d.line_count > limit
        ]

    def detect_complex_methods(self, classes: list[Declaration]) -> list[Issue]:
        """Methods whose cyclomatic complexity exceeds ``max_method_complexity``."""
        limit = self.config.max_method_complexity
        issues: list[Issue] = []
        for d in classes:
            for method in d.methods:
                if method.cyclomatic_complexity > limit:
                    issues.append(Issue(
                        severity=IssueSeverity.MAJOR,
                        category=IssueCategory.CODE_SMELL,
                        message=(
                            f"Method {d.name}.{method.name} has high cyclomatic complexity "
                            f"({method.cyclomatic_complexity})"
                        ),
                        location=d.file_path,
                        line=method.start_line,
                        remediation="Consider breaking this method into smaller, simpler methods",
                    ))
        return issues
