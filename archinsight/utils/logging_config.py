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
Logging Configuration

Every archinsight logger lives under the ``archinsight`` namespace, so a
host application can silence or redirect the whole analyzer at once.
Library modules only call ``get_logger``; handlers are installed by the
CLI through ``setup_logging``.
"""

import logging
import sys
import threading
from typing import Optional
from pathlib import Path


# Default format for log messages
DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER_NAME = "archinsight"

_setup_lock = threading.Lock()
_initialized = False


def _handler(handler: logging.Handler, formatter: logging.Formatter, level: int) -> logging.Handler:
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    format_string: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    force: bool = False
) -> None:
    """
    Install handlers on the ``archinsight`` logger.

    Records stop propagating to the root logger once this has run. Later
    calls are no-ops unless ``force`` is set.

    Args:
        level: Threshold for the logger and its handlers (default: INFO)
        log_file: Also append records to this file, creating its directory
        format_string: Record format
        date_format: Timestamp format
        force: Replace handlers installed by an earlier call
    """
    global _initialized

    with _setup_lock:
        if _initialized and not force:
            return

        package_logger = logging.getLogger(ROOT_LOGGER_NAME)
        for old in list(package_logger.handlers):
            package_logger.removeHandler(old)
            old.close()

        formatter = logging.Formatter(format_string, datefmt=date_format)
        package_logger.addHandler(_handler(logging.StreamHandler(sys.stderr), formatter, level))
        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            package_logger.addHandler(_handler(logging.FileHandler(log_file), formatter, level))

        package_logger.setLevel(level)
        package_logger.propagate = False
        _initialized = True


def get_logger(name: str) -> logging.Logger:
    """
    Return the logger for ``name`` inside the ``archinsight`` namespace.

    ``archinsight.analysis.metrics`` is used as is; anything else is
    prefixed, so ``get_logger("scripts")`` gives ``archinsight.scripts``.
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def log_progress(
    logger: logging.Logger,
    current: int,
    total: int,
    message: str = "Progress",
    interval: int = 25
) -> None:
    """
    Log ``current`` of ``total`` every ``interval`` items and at the end.

    Args:
        logger: Logger instance
        current: Items processed so far
        total: Items overall; nothing is logged when it is zero
        message: Prefix for the progress line
        interval: Log every N items
    """
    if total <= 0:
        return
    if current == total or current % interval == 0:
        logger.info(f"{message}: {current}/{total} ({100 * current // total}%)")
