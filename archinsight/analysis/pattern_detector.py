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
Design Pattern Detector

Heuristic, confidence-scored pattern classification. Each rule looks at one
declaration in isolation; rules are independent and new ones can be
registered without touching the others.
"""

from typing import Iterable, Optional, Protocol, runtime_checkable

from archinsight.analysis.dependency_graph import clean_type_name
from archinsight.analysis.models import (
    Declaration,
    PatternKind,
    PatternMatch,
    Visibility,
)
from archinsight.config import AnalysisConfig, DEFAULT_CONFIG
from archinsight.utils.logging_config import get_logger

logger = get_logger(__name__)


SINGLETON_CONFIDENCE = 0.9
FACTORY_CONFIDENCE = 0.8
OBSERVER_CONFIDENCE = 0.7


@runtime_checkable
class PatternRule(Protocol):
    """A single pattern heuristic."""

    kind: PatternKind

    def match(self, declaration: Declaration) -> Optional[PatternMatch]:
        """Return a match if ``declaration`` looks like this pattern."""
        ...


class SingletonRule:
    """Static field of the declaring type plus a non-public constructor."""

    kind = PatternKind.SINGLETON

    def match(self, declaration: Declaration) -> Optional[PatternMatch]:
        own_names = {declaration.name, declaration.full_name}
        has_static_instance = any(
            f.is_static and clean_type_name(f.type_name) in own_names
            for f in declaration.fields
        )
        has_hidden_constructor = any(
            c.visibility is not Visibility.PUBLIC and not c.is_static
            for c in declaration.constructors
        )
        if not (has_static_instance and has_hidden_constructor):
            return None
        return PatternMatch(
            kind=self.kind,
            confidence=SINGLETON_CONFIDENCE,
            involved=(declaration.name,),
            evidence="Has static instance field and non-public constructor",
        )


class FactoryRule:
    """Name contains ``Factory`` and some method name contains ``Create``."""

    kind = PatternKind.FACTORY

    def match(self, declaration: Declaration) -> Optional[PatternMatch]:
        if "Factory" not in declaration.name:
            return None
        if not any("Create" in m.name for m in declaration.methods):
            return None
        return PatternMatch(
            kind=self.kind,
            confidence=FACTORY_CONFIDENCE,
            involved=(declaration.name,),
            evidence="Class name contains 'Factory' and has a Create method",
        )


class ObserverRule:
    """An event/delegate-typed field plus a ``Notify...`` or ``Update...`` method."""

    kind = PatternKind.OBSERVER

    def __init__(self, event_type_markers: Iterable[str]) -> None:
        self.event_type_markers = tuple(event_type_markers)

    def match(self, declaration: Declaration) -> Optional[PatternMatch]:
        has_event_field = any(
            f.is_event or any(marker in f.type_name for marker in self.event_type_markers)
            for f in declaration.fields
        )
        has_notify_method = any(
            m.name.startswith(("Notify", "Update")) for m in declaration.methods
        )
        if not (has_event_field and has_notify_method):
            return None
        return PatternMatch(
            kind=self.kind,
            confidence=OBSERVER_CONFIDENCE,
            involved=(declaration.name,),
            evidence="Has event fields and notify/update methods",
        )


def default_rules(config: AnalysisConfig = DEFAULT_CONFIG) -> list[PatternRule]:
    return [SingletonRule(), FactoryRule(), ObserverRule(config.event_type_markers)]


class PatternDetector:
    """
    Runs every registered rule over every non-interface declaration.

    Usage:
        detector = PatternDetector(config)
        detector.register(MyRule())
        matches = detector.detect(declarations)
    """

    def __init__(
        self,
        config: AnalysisConfig = DEFAULT_CONFIG,
        rules: Optional[Iterable[PatternRule]] = None,
    ) -> None:
        self.config = config
        self.rules: list[PatternRule] = list(rules) if rules is not None else default_rules(config)

    def register(self, rule: PatternRule) -> None:
        """Add a rule; it runs after the ones already registered."""
        self.rules.append(rule)

    def detect(self, declarations: Iterable[Declaration]) -> list[PatternMatch]:
        """
        Classify declarations.

        Returns:
            Matches in declaration order, then rule order
        """
        matches: list[PatternMatch] = []
        for declaration in declarations:
            if declaration.is_interface:
                continue
            for rule in self.rules:
                match = rule.match(declaration)
                if match is not None:
                    matches.append(match)
        if matches:
            logger.info(f"Detected {len(matches)} design pattern instance(s)")
        return matches
