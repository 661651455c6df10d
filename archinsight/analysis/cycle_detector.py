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
Cycle Detector

Depth-first search over the dependency graph. A back edge to a node on the
current path closes a cycle. The traversal keeps an explicit stack, so deep
graphs cannot hit the interpreter's recursion limit.
"""

from typing import Iterator

from archinsight.analysis.dependency_graph import DependencyGraph
from archinsight.analysis.models import Cycle
from archinsight.utils.logging_config import get_logger

logger = get_logger(__name__)


def find_cycles(graph: DependencyGraph) -> list[Cycle]:
    """
    Find dependency cycles.

    Nodes are visited once across all DFS roots, in node insertion order.
    Every cycle reachable from a root is reported at least once; the same
    cycle is not de-duplicated across roots. Dangling targets have no
    outgoing edges and never take part in a cycle.

    Args:
        graph: Dependency graph to search

    Returns:
        Cycles in discovery order, each listing node ids along the path
    """
    visited: set[str] = set()
    cycles: list[Cycle] = []

    for root in graph.nodes:
        if root in visited:
            continue

        visited.add(root)
        path: list[str] = [root]
        on_path: dict[str, int] = {root: 0}
        stack: list[Iterator[str]] = [iter(graph.dependencies_of(root))]

        while stack:
            advanced = False
            for target in stack[-1]:
                if target not in graph:
                    continue
                if target in on_path:
                    cycles.append(Cycle(nodes=tuple(path[on_path[target]:])))
                elif target not in visited:
                    visited.add(target)
                    on_path[target] = len(path)
                    path.append(target)
                    stack.append(iter(graph.dependencies_of(target)))
                    advanced = True
                    break
            if not advanced:
                stack.pop()
                del on_path[path.pop()]

    if cycles:
        logger.info(f"Found {len(cycles)} dependency cycle(s)")
    return cycles
