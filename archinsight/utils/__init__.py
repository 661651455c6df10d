"""
Utility modules for the analyzer.
"""

from archinsight.utils.cancellation import CancellationToken
from archinsight.utils.logging_config import get_logger, setup_logging, log_progress

__all__ = [
    "CancellationToken",
    "get_logger",
    "setup_logging",
    "log_progress",
]
