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
Configuration settings for the analyzer.

Module-level values are the defaults. Components never read them directly;
they receive an ``AnalysisConfig`` at construction time, so callers can
override any threshold with ``dataclasses.replace(DEFAULT_CONFIG, ...)``.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from archinsight.errors import ConfigurationError


# ============================================================================
# INPUT SELECTION
# ============================================================================

SOURCE_EXTENSIONS: tuple[str, ...] = (".cs",)

# Directory names pruned while walking a root
EXCLUDED_DIRECTORIES: frozenset[str] = frozenset({
    ".git", ".svn", ".hg", ".vs", ".idea", "__pycache__",
    "node_modules", "bin", "obj", "Library", "Temp", "Logs", "Build", "Builds",
})

# Name fragments that mark a file or folder as test code
TEST_MARKERS: tuple[str, ...] = ("test",)


# ============================================================================
# TYPE CATALOGS
# ============================================================================

# Types that never become dependency edges (compared case-insensitively)
PRIMITIVE_TYPES: frozenset[str] = frozenset({
    "int", "uint", "long", "ulong", "short", "ushort", "byte", "sbyte",
    "float", "double", "decimal", "bool", "char", "string", "void",
    "object", "var", "dynamic",
})

# Categorical counts reported by the metrics calculator: label -> base names
CATEGORY_BASE_TYPES: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "MonoBehaviour": ("MonoBehaviour", "UnityEngine.MonoBehaviour"),
    "ScriptableObject": ("ScriptableObject", "UnityEngine.ScriptableObject"),
})

# Field type fragments that look like an event or delegate
EVENT_TYPE_MARKERS: tuple[str, ...] = ("Action", "Event", "Func", "Delegate", "Handler")


# ============================================================================
# THRESHOLDS
# ============================================================================

MAX_METHODS_PER_CLASS: int = 20
MAX_CLASS_LINES: int = 500
MAX_METHOD_COMPLEXITY: int = 10
MAX_FILE_BYTES: int = 1024 * 1024  # 1 MiB

MAX_AVERAGE_COMPLEXITY: float = 10.0
MIN_COMMENT_RATIO: float = 0.1
MAX_DEPENDENCIES_PER_CLASS: float = 8.0
MAX_AVERAGE_METHODS_PER_CLASS: float = 15.0
MAX_MAJOR_ISSUES: int = 10
MIN_MAINTAINABILITY: float = 0.6
MAX_TECHNICAL_DEBT: float = 0.7
MIN_TEST_RATIO: float = 0.1
GOOD_TEST_RATIO: float = 0.3
STRONG_PATTERN_CONFIDENCE: float = 0.8

# Project-wide checks that only make sense above a minimum size
MIN_LINES_FOR_DOCUMENTATION_CHECK: int = 200
MIN_SOURCE_FILES_FOR_TEST_CHECK: int = 10


# ============================================================================
# EXECUTION
# ============================================================================

DEFAULT_MAX_WORKERS: int = 4
PARALLEL_FILE_THRESHOLD: int = 8  # Below this, files are extracted sequentially


@dataclass(frozen=True)
class AnalysisConfig:
    """Immutable bundle of every tunable the analysis pipeline reads."""
    source_extensions: tuple[str, ...] = SOURCE_EXTENSIONS
    excluded_directories: frozenset[str] = EXCLUDED_DIRECTORIES
    test_markers: tuple[str, ...] = TEST_MARKERS
    primitive_types: frozenset[str] = PRIMITIVE_TYPES
    category_base_types: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: CATEGORY_BASE_TYPES
    )
    event_type_markers: tuple[str, ...] = EVENT_TYPE_MARKERS

    max_methods_per_class: int = MAX_METHODS_PER_CLASS
    max_class_lines: int = MAX_CLASS_LINES
    max_method_complexity: int = MAX_METHOD_COMPLEXITY
    max_file_bytes: int = MAX_FILE_BYTES
    max_average_complexity: float = MAX_AVERAGE_COMPLEXITY
    min_comment_ratio: float = MIN_COMMENT_RATIO
    max_dependencies_per_class: float = MAX_DEPENDENCIES_PER_CLASS
    max_average_methods_per_class: float = MAX_AVERAGE_METHODS_PER_CLASS
    max_major_issues: int = MAX_MAJOR_ISSUES
    min_maintainability: float = MIN_MAINTAINABILITY
    max_technical_debt: float = MAX_TECHNICAL_DEBT
    min_test_ratio: float = MIN_TEST_RATIO
    good_test_ratio: float = GOOD_TEST_RATIO
    strong_pattern_confidence: float = STRONG_PATTERN_CONFIDENCE
    min_lines_for_documentation_check: int = MIN_LINES_FOR_DOCUMENTATION_CHECK
    min_source_files_for_test_check: int = MIN_SOURCE_FILES_FOR_TEST_CHECK

    max_workers: int = DEFAULT_MAX_WORKERS
    parallel_file_threshold: int = PARALLEL_FILE_THRESHOLD

    def __post_init__(self) -> None:
        # Normalize caller-supplied iterables so the instance stays immutable
        object.__setattr__(self, "source_extensions", tuple(
            ext if ext.startswith(".") else f".{ext}" for ext in self.source_extensions
        ))
        object.__setattr__(self, "excluded_directories", frozenset(self.excluded_directories))
        object.__setattr__(self, "primitive_types", frozenset(
            t.lower() for t in self.primitive_types
        ))
        if not isinstance(self.category_base_types, MappingProxyType):
            object.__setattr__(self, "category_base_types", MappingProxyType(
                {label: tuple(names) for label, names in self.category_base_types.items()}
            ))

        if not self.source_extensions:
            raise ConfigurationError("At least one source extension is required")
        if self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {self.max_workers}")
        for name in ("max_methods_per_class", "max_class_lines", "max_method_complexity", "max_file_bytes"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be non-negative")

    def is_source_file(self, filename: str) -> bool:
        """Check a file name against the extension allow-list."""
        lowered = filename.lower()
        return any(lowered.endswith(ext.lower()) for ext in self.source_extensions)

    def is_test_path(self, rel_path: str) -> bool:
        """Check whether a relative path looks like test code."""
        lowered = rel_path.lower()
        return any(marker in lowered for marker in self.test_markers)


DEFAULT_CONFIG = AnalysisConfig()
