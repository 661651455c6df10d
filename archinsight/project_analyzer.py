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
Project Analyzer

Orchestrates the analysis workflow over a directory, a single file or an
in-memory set of sources:

1. Inventory the project structure
2. Extract declarations, detect code issues, build the dependency graph,
   find cycles, compute metrics and detect patterns
3. Summarize non-source assets
4. Classify the architecture
5. Generate insights and recommendations

Every run produces one immutable ``AnalysisResult``.
"""

from __future__ import annotations

import asyncio
import functools
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

from archinsight.analysis.architecture import ArchitectureClassifier
from archinsight.analysis.cycle_detector import find_cycles
from archinsight.analysis.declaration_extractor import DeclarationExtractor, ExtractionBatch
from archinsight.analysis.dependency_graph import DependencyGraphBuilder
from archinsight.analysis.insight_generator import InsightGenerator
from archinsight.analysis.issue_detector import CodeIssueDetector
from archinsight.analysis.metrics import MetricsCalculator
from archinsight.analysis.models import (
    AnalysisResult,
    FileInfo,
    ProjectStructure,
    SourceUnit,
)
from archinsight.analysis.pattern_detector import PatternDetector
from archinsight.analysis.recommendation_engine import RecommendationEngine
from archinsight.analysis.structure_scanner import scan_structure, summarize_assets
from archinsight.config import AnalysisConfig, DEFAULT_CONFIG
from archinsight.utils.cancellation import CancellationToken
from archinsight.utils.logging_config import get_logger

logger = get_logger(__name__)

# Called with (stage name, fraction complete)
ProgressCallback = Callable[[str, float], None]

PROGRESS_MILESTONES: dict[str, float] = {
    "structure": 0.1,
    "scripts": 0.3,
    "assets": 0.5,
    "architecture": 0.7,
    "insights": 0.9,
    "complete": 1.0,
}

MEMORY_SOURCE = "<memory>"


class ProjectAnalyzer:
    """
    Runs the full analysis pipeline.

    Stages run sequentially on the merged extraction snapshot. Only file
    extraction is parallel, and it is merged in sorted path order, so two
    runs over the same input produce equal results.

    Usage:
        analyzer = ProjectAnalyzer()
        result = analyzer.analyze(Path("MyGame/Assets"))
        print(result.summary)
    """

    def __init__(
        self,
        config: AnalysisConfig = DEFAULT_CONFIG,
        pattern_detector: Optional[PatternDetector] = None,
    ) -> None:
        """
        Initialize the analyzer.

        Args:
            config: Thresholds, lookup tables and worker settings
            pattern_detector: Detector with custom rules; defaults to the
                built-in Singleton, Factory and Observer rules
        """
        self.config = config
        self.extractor = DeclarationExtractor(config)
        self.issue_detector = CodeIssueDetector(config)
        self.graph_builder = DependencyGraphBuilder(config)
        self.metrics_calculator = MetricsCalculator(config)
        self.pattern_detector = pattern_detector or PatternDetector(config)
        self.classifier = ArchitectureClassifier(config)
        self.insight_generator = InsightGenerator(config)
        self.recommendation_engine = RecommendationEngine()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def analyze(
        self,
        root: Union[str, Path],
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AnalysisResult:
        """
        Analyze a directory tree or a single source file.

        Args:
            root: Directory or file to analyze
            progress: Optional callback receiving stage milestones
            cancel_token: Checked between file scans

        Returns:
            AnalysisResult; ``success`` is False only for a missing root or
            an unexpected stage failure
        """
        root = Path(root)
        source = str(root)
        if not root.exists():
            logger.error(f"Path does not exist: {root}")
            return AnalysisResult(
                source=source,
                success=False,
                error_message=f"Path does not exist: {root}",
                started_at=datetime.now(),
            )

        def extract(structure: ProjectStructure) -> ExtractionBatch:
            rel_paths = [f.rel_path for f in structure.source_files]
            return self.extractor.extract_files(Path(structure.root), rel_paths, cancel_token)

        return self._run(
            source,
            lambda: scan_structure(root, self.config),
            extract,
            progress,
        )

    def analyze_texts(
        self,
        sources: Mapping[str, str],
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
        source: str = MEMORY_SOURCE,
    ) -> AnalysisResult:
        """
        Analyze in-memory sources keyed by file id.

        Every entry is treated as a source file; ids are processed in
        sorted order.

        Args:
            sources: Mapping of file id to source text
            progress: Optional callback receiving stage milestones
            cancel_token: Checked between file scans
            source: Label stored on the result

        Returns:
            AnalysisResult
        """
        file_ids = sorted(sources)

        def inventory() -> ProjectStructure:
            return ProjectStructure(
                root=source,
                files=tuple(
                    FileInfo(
                        rel_path=file_id,
                        extension=Path(file_id).suffix.lower(),
                        size_bytes=len(sources[file_id].encode("utf-8")),
                        is_source=True,
                        is_test=self.config.is_test_path(file_id),
                    )
                    for file_id in file_ids
                ),
            )

        def extract(structure: ProjectStructure) -> ExtractionBatch:
            units = [SourceUnit(file_path=file_id, text=sources[file_id]) for file_id in file_ids]
            return self.extractor.extract_units(units, cancel_token)

        return self._run(source, inventory, extract, progress)

    async def analyze_async(
        self,
        root: Union[str, Path],
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AnalysisResult:
        """
        Run ``analyze`` in the default executor.

        The progress callback is invoked from the worker thread. Cancelling
        the awaiting task trips the cancellation token so the worker stops
        reading files; the task itself still raises ``CancelledError``.

        Args:
            root: Directory or file to analyze
            progress: Optional callback receiving stage milestones
            cancel_token: Token shared with the caller; one is created if omitted

        Returns:
            AnalysisResult
        """
        token = cancel_token or CancellationToken()
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(
            None, functools.partial(self.analyze, root, progress, token)
        )
        try:
            return await asyncio.shield(future)
        except asyncio.CancelledError:
            token.cancel()
            raise

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _run(
        self,
        source: str,
        inventory: Callable[[], ProjectStructure],
        extract: Callable[[ProjectStructure], ExtractionBatch],
        progress: Optional[ProgressCallback],
    ) -> AnalysisResult:
        started_at = datetime.now()
        clock = time.monotonic()
        completed: dict[str, Any] = {}

        def report(stage: str) -> None:
            logger.debug(f"Stage {stage} reached")
            if progress is not None:
                progress(stage, PROGRESS_MILESTONES[stage])

        logger.info("=" * 60)
        logger.info(f"PROJECT ANALYSIS: {source}")
        logger.info("=" * 60)

        try:
            logger.info("Step 1/5: Scanning project structure...")
            structure = inventory()
            completed["structure"] = structure
            report("structure")

            logger.info("Step 2/5: Analyzing scripts...")
            self._analyze_scripts(structure, extract, completed)
            report("scripts")

            logger.info("Step 3/5: Summarizing assets...")
            completed["assets"] = summarize_assets(structure)
            report("assets")

            logger.info("Step 4/5: Classifying architecture...")
            completed["architecture"] = self.classifier.classify(completed["declarations"])
            report("architecture")

            logger.info("Step 5/5: Generating insights and recommendations...")
            insights = self.insight_generator.generate(
                declarations=completed["declarations"],
                cycles=completed["cycles"],
                metrics=completed["metrics"],
                patterns=completed["patterns"],
                issues=completed["issues"],
                structure=structure,
                architecture=completed["architecture"],
            )
            completed["insights"] = tuple(insights)
            completed["recommendations"] = tuple(
                self.recommendation_engine.generate_recommendations(insights)
            )
            report("insights")
        except Exception as e:
            logger.exception(f"Analysis of {source} failed")
            return AnalysisResult(
                source=source,
                success=False,
                error_message=f"{type(e).__name__}: {e}",
                started_at=started_at,
                duration=timedelta(seconds=time.monotonic() - clock),
                **completed,
            )

        result = AnalysisResult(
            source=source,
            success=True,
            started_at=started_at,
            duration=timedelta(seconds=time.monotonic() - clock),
            **completed,
        )
        report("complete")
        logger.info(
            f"Analysis complete in {result.duration.total_seconds():.2f}s: "
            f"{len(result.insights)} insights, {len(result.recommendations)} recommendations"
        )
        return result

    def _analyze_scripts(
        self,
        structure: ProjectStructure,
        extract: Callable[[ProjectStructure], ExtractionBatch],
        completed: dict[str, Any],
    ) -> None:
        """Extraction through pattern detection; fills ``completed`` as it goes."""
        batch = extract(structure)
        completed["declarations"] = batch.declarations
        completed["files_analyzed"] = batch.files_analyzed
        completed["incomplete"] = batch.cancelled
        if batch.cancelled:
            logger.warning("Analysis cancelled; continuing with the files already extracted")

        issues = list(batch.issues)
        issues.extend(self.issue_detector.detect_all_issues(batch.declarations))
        completed["issues"] = tuple(issues)

        graph = self.graph_builder.build(batch.declarations)
        completed["graph"] = graph
        cycles = find_cycles(graph)
        completed["cycles"] = tuple(cycles)

        completed["metrics"] = self.metrics_calculator.calculate(
            batch.declarations,
            lines=batch.lines,
            graph=graph,
            issues=issues,
            total_files=batch.files_analyzed,
        )
        completed["patterns"] = tuple(self.pattern_detector.detect(batch.declarations))


# ============================================================================
# REPORTING
# ============================================================================

def print_report(
    result: AnalysisResult,
    max_issues: int = 10,
    max_recommendations: int = 10,
) -> None:
    """Print a formatted report of the analysis."""
    print("\n" + "=" * 60)
    print("PROJECT ANALYSIS REPORT")
    print("=" * 60)

    print("\n" + result.summary)
    if not result.success:
        print("\n" + "=" * 60)
        return

    if result.architecture is not None:
        print(f"\nArchitecture style: {result.architecture.style}")

    if result.patterns:
        print("\n" + "-" * 60)
        print("DESIGN PATTERNS")
        print("-" * 60)
        for match in result.patterns:
            print(f"- {match.name} ({match.confidence:.0%}): {', '.join(match.involved)}")

    if result.cycles:
        print("\n" + "-" * 60)
        print(f"DEPENDENCY CYCLES ({len(result.cycles)})")
        print("-" * 60)
        for cycle in result.cycles:
            print(f"- {cycle}")

    issues = sorted(result.issues, key=lambda i: -i.severity.rank)
    if issues:
        print("\n" + "-" * 60)
        print(f"TOP ISSUES (showing {min(max_issues, len(issues))} of {len(issues)})")
        print("-" * 60)
        for i, issue in enumerate(issues[:max_issues], 1):
            where = f"{issue.location}:{issue.line}" if issue.line else issue.location
            print(f"\n{i}. [{issue.severity.value.upper()}] {issue.message}")
            print(f"   Location: {where}")
            if issue.remediation:
                print(f"   Fix: {issue.remediation}")

    recommendations = result.recommendations
    if recommendations:
        print("\n" + "-" * 60)
        print(
            f"TOP RECOMMENDATIONS (showing {min(max_recommendations, len(recommendations))} "
            f"of {len(recommendations)})"
        )
        print("-" * 60)
        for i, rec in enumerate(recommendations[:max_recommendations], 1):
            print(f"\n{i}. [{rec.priority.value.upper()}] {rec.title}")
            print(f"   {rec.description}")
            print(f"   Rationale: {rec.rationale}")
            print(f"   Effort: ~{rec.effort.expected_hours:.1f}h (complexity {rec.effort.complexity}/5)")
            if rec.affected:
                affected = ", ".join(rec.affected[:3])
                if len(rec.affected) > 3:
                    affected += "..."
                print(f"   Affects: {affected}")
            print("   Steps:")
            for step in rec.action_steps:
                print(f"     - {step.description}")

    print("\n" + "=" * 60)


def analyze_project(
    root: Union[str, Path],
    config: AnalysisConfig = DEFAULT_CONFIG,
    max_issues: int = 10,
    max_recommendations: int = 10,
) -> AnalysisResult:
    """
    Convenience function to run an analysis and print its report.

    Args:
        root: Directory or file to analyze
        config: Analysis configuration
        max_issues: Maximum number of issues to display
        max_recommendations: Maximum number of recommendations to display

    Returns:
        AnalysisResult
    """
    result = ProjectAnalyzer(config).analyze(root)
    print_report(result, max_issues=max_issues, max_recommendations=max_recommendations)
    return result
