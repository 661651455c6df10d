"""
Tests for the command line interface.
"""

import logging
from pathlib import Path

import pytest

from archinsight.main import build_config, create_parser, main
from archinsight.utils import logging_config


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo the handlers ``main`` installs so later tests see a clean logger."""
    yield
    root = logging.getLogger(logging_config.ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.propagate = True
    root.setLevel(logging.NOTSET)
    logging_config._initialized = False


@pytest.fixture
def project(tmp_path: Path) -> Path:
    scripts = tmp_path / "Scripts"
    scripts.mkdir()
    (scripts / "Player.cs").write_text(
        "public class Player : MonoBehaviour { void Update() { } }", encoding="utf-8"
    )
    (scripts / "Player.txt").write_text("class NotSource { }", encoding="utf-8")
    return tmp_path


class TestBuildConfig:
    """Argument overrides on top of the defaults."""

    def test_defaults(self, project: Path) -> None:
        config = build_config(create_parser().parse_args([str(project)]))
        assert config.source_extensions == (".cs",)
        assert config.max_workers == 4

    def test_overrides(self, project: Path) -> None:
        args = create_parser().parse_args([
            str(project), "--ext", "cs", "--ext", ".txt", "-w", "2",
            "--max-methods", "5", "--max-complexity", "3", "--max-class-lines", "50",
        ])
        config = build_config(args)

        assert config.source_extensions == (".cs", ".txt")
        assert config.max_workers == 2
        assert config.max_methods_per_class == 5
        assert config.max_method_complexity == 3
        assert config.max_class_lines == 50


class TestMain:
    """Exit codes and printed output."""

    def test_success(self, project: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([str(project), "--workers", "2"]) == 0

        out = capsys.readouterr().out
        assert "PROJECT ANALYSIS REPORT" in out
        assert "Analyzed 1 declarations in 1 file(s)" in out

    def test_extra_extension(self, project: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([str(project), "--ext", ".cs", "--ext", ".txt"]) == 0
        assert "Analyzed 2 declarations in 2 file(s)" in capsys.readouterr().out

    def test_single_file(self, project: Path) -> None:
        assert main([str(project / "Scripts" / "Player.cs"), "-v"]) == 0

    def test_missing_path(self, tmp_path: Path) -> None:
        assert main([str(tmp_path / "missing")]) == 1

    def test_invalid_workers(self, project: Path) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main([str(project), "--workers", "0"])
        assert excinfo.value.code == 2

    def test_log_file(self, project: Path, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "run.log"
        assert main([str(project), "--log-file", str(log_file)]) == 0
        assert "PROJECT ANALYSIS" in log_file.read_text(encoding="utf-8")
