"""
Tests for heuristic design pattern detection.
"""

from typing import Optional

import pytest

from archinsight.analysis.declaration_extractor import DeclarationExtractor
from archinsight.analysis.models import Declaration, PatternKind, PatternMatch
from archinsight.analysis.pattern_detector import (
    FactoryRule,
    ObserverRule,
    PatternDetector,
    PatternRule,
    SingletonRule,
)


def declarations(source: str) -> tuple[Declaration, ...]:
    return DeclarationExtractor().extract_text(source, "Patterns.cs").declarations


SINGLETON = """
namespace Game
{
    public class GameManager
    {
        private static GameManager instance;
        public static GameManager Instance { get { return instance; } }

        private GameManager() { }

        public void Tick() { }
    }
}
"""


class TestBuiltInRules:
    """Singleton, Factory and Observer heuristics."""

    def test_singleton(self) -> None:
        matches = PatternDetector().detect(declarations(SINGLETON))

        assert len(matches) == 1
        match = matches[0]
        assert match.kind is PatternKind.SINGLETON
        assert match.confidence >= 0.9
        assert match.involved == ("GameManager",)
        assert match.name == "Singleton"

    def test_singleton_needs_hidden_constructor(self) -> None:
        source = SINGLETON.replace("private GameManager()", "public GameManager()")
        assert PatternDetector().detect(declarations(source)) == []

    def test_singleton_needs_static_field(self) -> None:
        source = "class Config { private Config other; private Config() { } }"
        assert SingletonRule().match(declarations(source)[0]) is None

    def test_factory(self) -> None:
        source = """
public class EnemyFactory
{
    public Enemy CreateEnemy(string kind) { return new Enemy(); }
}
public class Enemy { }
"""
        matches = PatternDetector().detect(declarations(source))

        assert [(m.kind, m.involved) for m in matches] == [(PatternKind.FACTORY, ("EnemyFactory",))]
        assert matches[0].confidence == pytest.approx(0.8)

    def test_factory_needs_create_method(self) -> None:
        decl = declarations("class WidgetFactory { Widget Build() { return null; } }")[0]
        assert FactoryRule().match(decl) is None

    def test_observer_with_event(self) -> None:
        source = """
public class ScoreBoard
{
    public event Action<int> ScoreChanged;
    public void NotifyScore(int score) { }
}
"""
        matches = PatternDetector().detect(declarations(source))

        assert [m.kind for m in matches] == [PatternKind.OBSERVER]
        assert matches[0].confidence == pytest.approx(0.7)

    def test_observer_with_delegate_typed_field(self) -> None:
        source = "class Hud { private Action<float> onHealth; void UpdateHealth(float v) { } }"
        match = ObserverRule(["Action"]).match(declarations(source)[0])
        assert match is not None

    def test_observer_needs_notify_method(self) -> None:
        source = "class Hud { public event Action Changed; void Refresh() { } }"
        assert PatternDetector().detect(declarations(source)) == []

    def test_interfaces_are_skipped(self) -> None:
        source = "interface IWidgetFactory { Widget CreateWidget(); }"
        assert PatternDetector().detect(declarations(source)) == []


class _ManagerRule:
    """Test rule: anything named *Manager."""

    kind = PatternKind.FACTORY

    def match(self, declaration: Declaration) -> Optional[PatternMatch]:
        if not declaration.name.endswith("Manager"):
            return None
        return PatternMatch(kind=self.kind, confidence=0.5, involved=(declaration.name,), evidence="name")


class TestRuleRegistry:
    """Custom rules plug in without touching the detector."""

    def test_rules_satisfy_protocol(self) -> None:
        for rule in (SingletonRule(), FactoryRule(), ObserverRule(["Event"]), _ManagerRule()):
            assert isinstance(rule, PatternRule)

    def test_registered_rule_runs_after_defaults(self) -> None:
        detector = PatternDetector()
        detector.register(_ManagerRule())

        matches = detector.detect(declarations(SINGLETON))

        assert [m.confidence for m in matches] == [0.9, 0.5]

    def test_explicit_rule_list_replaces_defaults(self) -> None:
        detector = PatternDetector(rules=[_ManagerRule()])
        matches = detector.detect(declarations(SINGLETON))
        assert [m.evidence for m in matches] == ["name"]

    def test_matches_follow_declaration_order(self) -> None:
        source = "class AManager { } class BManager { } class Other { }"
        matches = PatternDetector(rules=[_ManagerRule()]).detect(declarations(source))
        assert [m.involved for m in matches] == [("AManager",), ("BManager",)]
