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
Project structure and asset inventory.

Walks an analysis root once and records every file with its size, whether
it is source and whether it looks like test code. Source files are then
handed to the extractor; everything else is summarized as assets.
"""

import os
from collections import Counter
from pathlib import Path

from archinsight.analysis.models import AssetSummary, FileInfo, ProjectStructure
from archinsight.config import AnalysisConfig, DEFAULT_CONFIG
from archinsight.utils.logging_config import get_logger

logger = get_logger(__name__)


def _file_info(path: Path, rel_path: str, config: AnalysisConfig) -> FileInfo:
    try:
        size = path.stat().st_size
    except OSError as e:
        logger.warning(f"Could not stat {rel_path}: {e}")
        size = 0
    return FileInfo(
        rel_path=rel_path,
        extension=path.suffix.lower(),
        size_bytes=size,
        is_source=config.is_source_file(path.name),
        is_test=config.is_test_path(rel_path),
    )


def scan_structure(root: Path, config: AnalysisConfig = DEFAULT_CONFIG) -> ProjectStructure:
    """
    Inventory every file under ``root``.

    Excluded directories are pruned. Directories and files are visited in
    sorted order and relative paths use ``/`` separators, so the inventory
    is identical across runs and platforms. A file root yields a one-file
    inventory rooted at its parent directory.

    Args:
        root: Directory (or single file) to scan
        config: Extension allow-list, exclusions and test markers

    Returns:
        ProjectStructure with files and folders in sorted order
    """
    if root.is_file():
        return ProjectStructure(
            root=str(root.parent),
            files=(_file_info(root, root.name, config),),
        )

    files: list[FileInfo] = []
    folders: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in config.excluded_directories)
        current = Path(dirpath)
        rel_dir = current.relative_to(root).as_posix()
        if rel_dir != ".":
            folders.append(rel_dir)
        for filename in sorted(filenames):
            path = current / filename
            files.append(_file_info(path, path.relative_to(root).as_posix(), config))

    structure = ProjectStructure(root=str(root), files=tuple(files), folders=tuple(folders))
    logger.info(
        f"Found {structure.total_files} files in {len(folders)} folders "
        f"({len(structure.source_files)} source)"
    )
    return structure


def summarize_assets(structure: ProjectStructure) -> AssetSummary:
    """Count and size every non-source file, grouped by extension."""
    counts: Counter[str] = Counter()
    sizes: Counter[str] = Counter()
    for info in structure.files:
        if info.is_source:
            continue
        extension = info.extension or "(none)"
        counts[extension] += 1
        sizes[extension] += info.size_bytes
    return AssetSummary(
        total_assets=sum(counts.values()),
        total_size_bytes=sum(sizes.values()),
        count_by_extension=dict(sorted(counts.items())),
        size_by_extension=dict(sorted(sizes.items())),
    )


def find_large_files(structure: ProjectStructure, max_bytes: int) -> list[FileInfo]:
    """Files larger than ``max_bytes``, largest first."""
    large = [f for f in structure.files if f.size_bytes > max_bytes]
    return sorted(large, key=lambda f: (-f.size_bytes, f.rel_path))
