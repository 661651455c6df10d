"""
Tests for the analysis configuration.
"""

import dataclasses

import pytest

from archinsight.config import AnalysisConfig, DEFAULT_CONFIG
from archinsight.errors import AnalysisError, ConfigurationError


class TestAnalysisConfig:
    """Normalization, validation and lookups."""

    def test_defaults(self) -> None:
        assert DEFAULT_CONFIG.source_extensions == (".cs",)
        assert DEFAULT_CONFIG.max_methods_per_class == 20
        assert DEFAULT_CONFIG.max_method_complexity == 10
        assert "Library" in DEFAULT_CONFIG.excluded_directories

    def test_extensions_are_normalized(self) -> None:
        config = AnalysisConfig(source_extensions=["cs", ".csx"])
        assert config.source_extensions == (".cs", ".csx")

    def test_primitives_are_lowercased(self) -> None:
        config = AnalysisConfig(primitive_types={"Int", "STRING"})
        assert config.primitive_types == frozenset({"int", "string"})

    def test_category_base_types_are_read_only(self) -> None:
        config = AnalysisConfig(category_base_types={"Component": ["Component"]})
        assert config.category_base_types["Component"] == ("Component",)
        with pytest.raises(TypeError):
            config.category_base_types["Other"] = ("Other",)

    @pytest.mark.parametrize("overrides", [
        {"max_workers": 0},
        {"source_extensions": ()},
        {"max_class_lines": -1},
    ])
    def test_invalid_values(self, overrides: dict) -> None:
        with pytest.raises(ConfigurationError):
            AnalysisConfig(**overrides)

    def test_configuration_error_is_analysis_error(self) -> None:
        assert issubclass(ConfigurationError, AnalysisError)

    def test_replace_keeps_default_untouched(self) -> None:
        config = dataclasses.replace(DEFAULT_CONFIG, max_workers=8)
        assert config.max_workers == 8
        assert DEFAULT_CONFIG.max_workers == 4

    def test_frozen(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_CONFIG.max_workers = 2

    def test_is_source_file(self) -> None:
        assert DEFAULT_CONFIG.is_source_file("Player.cs")
        assert DEFAULT_CONFIG.is_source_file("Enemy.CS")
        assert not DEFAULT_CONFIG.is_source_file("Player.cs.meta")
        assert not DEFAULT_CONFIG.is_source_file("notes.txt")

    def test_is_test_path(self) -> None:
        assert DEFAULT_CONFIG.is_test_path("Assets/Tests/PlayerTests.cs")
        assert DEFAULT_CONFIG.is_test_path("Assets/Scripts/PlayerTest.cs")
        assert not DEFAULT_CONFIG.is_test_path("Assets/Scripts/Player.cs")
