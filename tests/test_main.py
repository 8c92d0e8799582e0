"""End-to-end tests for the command line interface."""

from __future__ import annotations

import json
import logging
import logging.handlers
from pathlib import Path

import pytest

from afterorder import __version__
from afterorder.main import EXIT_ERRORS, EXIT_OK, EXIT_USAGE, build_config, build_parser, main
from afterorder.utils.logger import LOGGER_NAME


def write(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A small project ``app/`` with the working directory set to its parent."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("NO_COLOR", raising=False)
    root = tmp_path / "app"
    write(root / "App.fsproj", "<Project/>\n")
    write(root / "Main.fs", "// @after Domain.fs\n// @after Api.fs\nmodule Main\n")
    write(root / "Api.fs", "// @after Domain.fs\nmodule Api\n")
    write(root / "Domain.fs", "module Domain\n")
    return root


@pytest.fixture
def detach_file_handlers():
    """Close file handlers the CLI attached to the package logger."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, logging.handlers.RotatingFileHandler):
            handler.close()
            logger.removeHandler(handler)


class TestParser:
    """Argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args(["App.fsproj"])
        assert args.projects == ["App.fsproj"]
        assert args.config is None
        assert args.workers is None
        assert not args.no_write
        assert args.log_level == "WARNING"

    def test_log_level_is_case_insensitive(self):
        assert build_parser().parse_args(["--log-level", "debug", "A.fsproj"]).log_level == "DEBUG"

    def test_projects_are_required(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestBuildConfig:
    """Configuration assembly from options."""

    def test_overrides(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        args = build_parser().parse_args(["--workers", "3", "--no-write", "A.fsproj"])
        config = build_config(args)
        assert config.max_workers == 3
        assert config.write_artifact is False
        assert config.color is True

    def test_no_color_environment(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        config = build_config(build_parser().parse_args(["A.fsproj"]))
        assert config.color is False

    def test_config_file_is_loaded(self, tmp_path, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        path = write(tmp_path / "cfg.json", json.dumps({"entry_names": ["Program.fs"]}))
        config = build_config(build_parser().parse_args(["--config", str(path), "A.fsproj"]))
        assert config.entry_names == ["Program.fs"]


class TestMain:
    """Exit codes and visible effects."""

    def test_clean_project(self, project: Path, capsys):
        assert main(["--no-color", "app/App.fsproj"]) == EXIT_OK

        assert capsys.readouterr().out == ""
        assert (project / "App.targets").read_text(encoding="utf-8") == (
            '<Project><ItemGroup><Compile Include="Domain.fs;Api.fs;Main.fs"/>'
            "</ItemGroup></Project>"
        )

    def test_cycle_is_reported(self, project: Path, capsys):
        write(project / "Domain.fs", "// @after Main.fs\nmodule Domain\n")

        assert main(["--no-color", "app/App.fsproj"]) == EXIT_ERRORS

        out = capsys.readouterr().out.splitlines()
        assert out == [
            "Cycle at: 'app/Main.fs'",
            "╭─▶ 'app/Main.fs'",
            "╰─┨ 'app/Domain.fs'",
        ]
        assert (project / "App.targets").exists()

    def test_missing_file_is_reported(self, project: Path, capsys):
        write(project / "Api.fs", "// @after Gone.fs\nmodule Api\n")

        assert main(["--no-color", "app/App.fsproj"]) == EXIT_ERRORS

        assert capsys.readouterr().out.splitlines() == [
            "File not found at: 'app/Gone.fs'",
            "Imported at: 'app/Api.fs'",
        ]

    def test_missing_entry(self, tmp_path: Path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        write(tmp_path / "lib" / "Lib.fsproj", "<Project/>")

        assert main(["--no-color", "lib/Lib.fsproj"]) == EXIT_ERRORS

        assert capsys.readouterr().out.strip() == "Entrypoint file not found for: 'lib/Lib.fsproj'"
        assert not (tmp_path / "lib" / "Lib.targets").exists()

    def test_one_bad_project_fails_the_run(self, project: Path, tmp_path: Path):
        write(tmp_path / "lib" / "Lib.fsproj", "<Project/>")

        assert main(["--no-color", "app/App.fsproj", "lib/Lib.fsproj"]) == EXIT_ERRORS
        assert (project / "App.targets").exists()

    def test_no_write(self, project: Path):
        assert main(["--no-color", "--no-write", "app/App.fsproj"]) == EXIT_OK
        assert not (project / "App.targets").exists()

    def test_colored_output(self, project: Path, capsys):
        write(project / "Api.fs", "// @after Gone.fs\n")

        main(["app/App.fsproj"])

        assert "\033[" in capsys.readouterr().out

    def test_missing_config_is_usage_error(self, project: Path, capsys):
        assert main(["--config", "nope.json", "app/App.fsproj"]) == EXIT_USAGE
        assert "afterorder: error:" in capsys.readouterr().err

    def test_invalid_config_is_usage_error(self, project: Path, tmp_path: Path):
        write(tmp_path / "bad.json", json.dumps({"auxiliary_policy": "maybe"}))
        assert main(["--config", "bad.json", "app/App.fsproj"]) == EXIT_USAGE

    def test_invalid_workers_is_usage_error(self, project: Path):
        assert main(["--workers", "0", "app/App.fsproj"]) == EXIT_USAGE

    def test_log_file(self, project: Path, tmp_path: Path, detach_file_handlers):
        log_file = tmp_path / "logs" / "run.log"

        assert main(["--no-color", "--log-file", str(log_file), "app/App.fsproj"]) == EXIT_OK

        content = log_file.read_text(encoding="utf-8")
        assert "Dependency graph complete for app/Main.fs" in content
        assert "Wrote" in content
