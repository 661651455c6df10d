"""
Architecture Insight for C#-style Projects
==========================================

Static analysis of a source tree: declarations, dependency graph, cycles,
metrics, design patterns, insights and effort-estimated recommendations.

Usage:
    archinsight path/to/Assets                     # Analyze a project
    archinsight Player.cs --max-complexity 15      # Analyze a single file
    archinsight path/to/Assets --workers 8 -v      # More workers, debug logs
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Optional

from archinsight.config import AnalysisConfig, DEFAULT_CONFIG
from archinsight.errors import ConfigurationError
from archinsight.project_analyzer import ProjectAnalyzer, print_report
from archinsight.utils.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


# ============================================================================
# CONFIGURATION FROM ARGUMENTS
# ============================================================================

def build_config(args: argparse.Namespace) -> AnalysisConfig:
    """Apply command-line overrides on top of the default configuration."""
    overrides = {}
    if args.ext:
        overrides["source_extensions"] = tuple(args.ext)
    if args.workers is not None:
        overrides["max_workers"] = args.workers
    if args.max_methods is not None:
        overrides["max_methods_per_class"] = args.max_methods
    if args.max_complexity is not None:
        overrides["max_method_complexity"] = args.max_complexity
    if args.max_class_lines is not None:
        overrides["max_class_lines"] = args.max_class_lines
    return dataclasses.replace(DEFAULT_CONFIG, **overrides)


# ============================================================================
# CLI INTERFACE
# ============================================================================

def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="archinsight",
        description="Architecture analysis for C#-style source trees",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  archinsight MyGame/Assets
  archinsight MyGame/Assets --ext .cs --max-methods 15
  archinsight Scripts/Player.cs --verbose
        """
    )
    parser.add_argument(
        "path", type=Path,
        help="Project directory or single source file to analyze"
    )
    parser.add_argument(
        "--ext", action="append", metavar="EXT",
        help="Source file extension to analyze (repeatable, default: .cs)"
    )
    parser.add_argument(
        "--workers", "-w", type=int,
        help=f"Parallel workers for file extraction (default: {DEFAULT_CONFIG.max_workers})"
    )
    parser.add_argument(
        "--max-methods", type=int,
        help=f"Methods per class before flagging (default: {DEFAULT_CONFIG.max_methods_per_class})"
    )
    parser.add_argument(
        "--max-complexity", type=int,
        help=f"Method complexity before flagging (default: {DEFAULT_CONFIG.max_method_complexity})"
    )
    parser.add_argument(
        "--max-class-lines", type=int,
        help=f"Class length before flagging (default: {DEFAULT_CONFIG.max_class_lines})"
    )
    parser.add_argument(
        "--max-issues", type=int, default=10,
        help="Number of issues to display (default: 10)"
    )
    parser.add_argument(
        "--max-recommendations", type=int, default=10,
        help="Number of recommendations to display (default: 10)"
    )
    parser.add_argument(
        "--log-file", type=Path,
        help="Also write logs to this file"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable debug logging"
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_file=args.log_file,
    )

    try:
        config = build_config(args)
    except ConfigurationError as e:
        parser.error(str(e))

    result = ProjectAnalyzer(config).analyze(args.path)
    print_report(
        result,
        max_issues=args.max_issues,
        max_recommendations=args.max_recommendations,
    )

    if not result.success:
        logger.error(result.error_message)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
