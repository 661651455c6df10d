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
Dependency Graph

Builds a directed graph with one node per declaration. Edges come from
base-class/interface lists (INHERITANCE) and from method return and
parameter types (USAGE). Type names are resolved to declarations where
possible; anything else stays a symbolic, dangling target.
"""

from __future__ import annotations

import re
from collections import defaultdict
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from archinsight.analysis.models import (
    Declaration,
    DependencyEdge,
    DependencyKind,
    DependencyNode,
)
from archinsight.analysis.source_text import split_top_level
from archinsight.config import AnalysisConfig, DEFAULT_CONFIG
from archinsight.utils.logging_config import get_logger

logger = get_logger(__name__)

_TYPE_SUFFIX = re.compile(r"(?:\s*\[[\s,]*\]|\s*\?)+$")


class DependencyGraph:
    """
    Immutable dependency graph with forward and reverse adjacency.

    Node ids are declaration full names. Edge targets that are not node ids
    are dangling references to types outside the analyzed source.
    """

    def __init__(self, nodes: Iterable[DependencyNode] = (), edges: Iterable[DependencyEdge] = ()) -> None:
        self._nodes: dict[str, DependencyNode] = {node.id: node for node in nodes}
        self._edges: tuple[DependencyEdge, ...] = tuple(edges)

        forward: dict[str, list[str]] = defaultdict(list)
        reverse: dict[str, list[str]] = defaultdict(list)
        for edge in self._edges:
            if edge.to_id not in forward[edge.from_id]:
                forward[edge.from_id].append(edge.to_id)
            if edge.from_id not in reverse[edge.to_id]:
                reverse[edge.to_id].append(edge.from_id)

        self._forward = {k: tuple(v) for k, v in forward.items()}
        self._reverse = {k: tuple(v) for k, v in reverse.items()}

    @property
    def nodes(self) -> Mapping[str, DependencyNode]:
        return MappingProxyType(self._nodes)

    @property
    def edges(self) -> tuple[DependencyEdge, ...]:
        return self._edges

    @property
    def direct_dependencies(self) -> Mapping[str, tuple[str, ...]]:
        """node id -> ids it depends on, in edge order."""
        return MappingProxyType(self._forward)

    @property
    def reverse_dependencies(self) -> Mapping[str, tuple[str, ...]]:
        """node id -> ids that depend on it, in edge order."""
        return MappingProxyType(self._reverse)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def dependencies_of(self, node_id: str) -> tuple[str, ...]:
        return self._forward.get(node_id, ())

    def dependents_of(self, node_id: str) -> tuple[str, ...]:
        return self._reverse.get(node_id, ())

    def edges_of_kind(self, kind: DependencyKind) -> tuple[DependencyEdge, ...]:
        return tuple(e for e in self._edges if e.kind is kind)

    def dangling_targets(self) -> tuple[str, ...]:
        """Edge targets with no node, sorted."""
        return tuple(sorted({e.to_id for e in self._edges if e.to_id not in self._nodes}))

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DependencyGraph):
            return NotImplemented
        return self._nodes == other._nodes and self._edges == other._edges

    def __repr__(self) -> str:
        return f"<DependencyGraph nodes={self.node_count} edges={self.edge_count}>"


def clean_type_name(type_name: str) -> str:
    """Strip array and nullable suffixes: ``Foo[]?`` -> ``Foo``."""
    return _TYPE_SUFFIX.sub("", type_name.strip())


def referenced_type_names(type_name: str) -> list[str]:
    """
    Names referenced by a type expression, outermost first.

    ``Dictionary<string, List<Enemy>>`` yields ``Dictionary``, ``string``,
    ``List`` and ``Enemy``; tuple types yield their elements. Nesting is
    walked with an explicit stack, so depth is not limited by recursion.
    """
    names: list[str] = []
    pending = [type_name]
    while pending:
        cleaned = clean_type_name(pending.pop())
        if not cleaned:
            continue
        if cleaned.startswith("(") and cleaned.endswith(")"):
            elements: list[str] = []
            for element in split_top_level(cleaned[1:-1]):
                # Tuple elements may be named: (int count, Enemy target)
                parts = element.rsplit(" ", 1)
                elements.append(parts[0] if len(parts) == 2 and parts[1].isidentifier() else element)
            pending.extend(reversed(elements))
            continue

        lt = cleaned.find("<")
        if lt == -1 or not cleaned.endswith(">"):
            names.append(cleaned)
            continue
        names.append(cleaned[:lt].strip())
        pending.extend(reversed(split_top_level(cleaned[lt + 1:-1])))
    return names


class DependencyGraphBuilder:
    """
    Builds a DependencyGraph from extracted declarations.

    Usage:
        graph = DependencyGraphBuilder(config).build(declarations)
    """

    def __init__(self, config: AnalysisConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def build(self, declarations: Iterable[Declaration]) -> DependencyGraph:
        """
        Build the graph.

        Args:
            declarations: Declarations with unique full names

        Returns:
            DependencyGraph with one node per declaration
        """
        declarations = list(declarations)
        nodes = [
            DependencyNode(id=d.full_name, name=d.name, kind=d.kind, file_path=d.file_path)
            for d in declarations
        ]
        resolver = _NameResolver(declarations)

        edges: list[DependencyEdge] = []
        for declaration in declarations:
            edges.extend(self._edges_from(declaration, resolver))

        graph = DependencyGraph(nodes, edges)
        logger.info(
            f"Dependency graph: {graph.node_count} nodes, {graph.edge_count} edges, "
            f"{len(graph.dangling_targets())} external references"
        )
        return graph

    def _is_primitive(self, name: str) -> bool:
        return name.lower() in self.config.primitive_types

    def _edges_from(self, declaration: Declaration, resolver: _NameResolver) -> list[DependencyEdge]:
        edges: list[DependencyEdge] = []
        seen: set[tuple[str, DependencyKind]] = set()
        inheritance_targets: set[str] = set()
        skip = set(declaration.type_parameters)

        def add(target: str, kind: DependencyKind) -> None:
            if target == declaration.full_name or (target, kind) in seen:
                return
            seen.add((target, kind))
            edges.append(DependencyEdge(from_id=declaration.full_name, to_id=target, kind=kind))

        for base in declaration.all_base_names:
            names = referenced_type_names(base)
            if not names or names[0] in skip:
                continue
            target = resolver.resolve(names[0], declaration)
            inheritance_targets.add(target)
            add(target, DependencyKind.INHERITANCE)

        for method in declaration.methods:
            type_names = [method.return_type] + [p.type_name for p in method.parameters]
            for type_name in type_names:
                for name in referenced_type_names(type_name):
                    if name in skip or self._is_primitive(name):
                        continue
                    target = resolver.resolve(name, declaration)
                    kind = (
                        DependencyKind.INHERITANCE if target in inheritance_targets
                        else DependencyKind.USAGE
                    )
                    add(target, kind)
        return edges


class _NameResolver:
    """Resolves symbolic type names against the declaration set."""

    def __init__(self, declarations: list[Declaration]) -> None:
        self._full_names = {d.full_name for d in declarations}
        self._by_simple_name: dict[str, list[str]] = defaultdict(list)
        for d in declarations:
            self._by_simple_name[d.name].append(d.full_name)

    def resolve(self, name: str, context: Declaration) -> str:
        """
        Resolve ``name`` as seen from ``context``.

        Order: exact full name, nested in the referencing type, same
        namespace, then a unique simple name. Unresolved names are returned
        unchanged.
        """
        if name in self._full_names:
            return name
        for candidate in (f"{context.full_name}.{name}", self._in_namespace(name, context)):
            if candidate and candidate in self._full_names:
                return candidate
        matches = self._by_simple_name.get(name.rsplit(".", 1)[-1], [])
        if len(matches) == 1:
            return matches[0]
        return name

    @staticmethod
    def _in_namespace(name: str, context: Declaration) -> Optional[str]:
        return f"{context.namespace}.{name}" if context.namespace else None
