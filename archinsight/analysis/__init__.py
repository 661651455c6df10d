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
Analysis Package

Extraction, graph, metrics, pattern, insight and recommendation stages
used by the project analyzer.
"""

from archinsight.analysis.models import AnalysisResult, Declaration, Insight, Recommendation
from archinsight.analysis.declaration_extractor import DeclarationExtractor
from archinsight.analysis.dependency_graph import DependencyGraph, DependencyGraphBuilder
from archinsight.analysis.cycle_detector import find_cycles
from archinsight.analysis.metrics import MetricsCalculator
from archinsight.analysis.pattern_detector import PatternDetector, PatternRule
from archinsight.analysis.issue_detector import CodeIssueDetector
from archinsight.analysis.insight_generator import InsightGenerator
from archinsight.analysis.recommendation_engine import RecommendationEngine

__all__ = [
    "AnalysisResult",
    "Declaration",
    "Insight",
    "Recommendation",
    "DeclarationExtractor",
    "DependencyGraph",
    "DependencyGraphBuilder",
    "find_cycles",
    "MetricsCalculator",
    "PatternDetector",
    "PatternRule",
    "CodeIssueDetector",
    "InsightGenerator",
    "RecommendationEngine",
]
