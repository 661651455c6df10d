"""
Architecture Insight

Static analysis for C#-style source trees: declaration extraction,
dependency graphs, cycle detection, metrics, heuristic design pattern
detection, insights and effort-estimated recommendations.

Main Entry Points:
    - main.py: CLI interface
    - project_analyzer.py: ProjectAnalyzer pipeline and async entry point
    - analysis/: Individual analysis stages
    - utils/: Shared utilities
"""

from archinsight.config import AnalysisConfig, DEFAULT_CONFIG
from archinsight.errors import AnalysisError, ConfigurationError
from archinsight.project_analyzer import ProjectAnalyzer, analyze_project, print_report
from archinsight.utils.cancellation import CancellationToken

__version__ = "1.0.0"
__all__ = [
    "AnalysisConfig",
    "DEFAULT_CONFIG",
    "AnalysisError",
    "ConfigurationError",
    "ProjectAnalyzer",
    "analyze_project",
    "print_report",
    "CancellationToken",
]
