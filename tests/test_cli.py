"""Tests for CLI commands."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import click
import pytest
from click.testing import CliRunner, Result

from atempo import __version__
from atempo.cli import main, parse_framework_arg
from atempo.config.schema import AtempoConfig
from atempo.errors import InstallError, ValidationError
from atempo.registry import ProjectRegistry
from atempo.scaffold import ScaffoldResult


class TestParseFrameworkArg:
    def test_explicit_version(self) -> None:
        assert parse_framework_arg("laravel:10") == ("laravel", "10")

    def test_default_version(self) -> None:
        assert parse_framework_arg("django") == ("django", "5")
        assert parse_framework_arg("rails") == ("rails", "latest")

    @pytest.mark.parametrize("value", ["laravel:10:1", ":10"])
    def test_bad_format(self, value: str) -> None:
        with pytest.raises(click.BadParameter):
            parse_framework_arg(value)


class TestMain:
    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_command_shows_hint(self) -> None:
        result = CliRunner().invoke(main, [])
        assert result.exit_code == 0
        assert "atempo --help" in result.output


class TestCreateCommand:
    """Tests for `atempo create`."""

    def _invoke(self, pipeline: MagicMock, args: list[str]) -> Result:
        runner = CliRunner()
        with (
            patch("atempo.cli.load_config", return_value=AtempoConfig()),
            patch("atempo.cli.ScaffoldPipeline", return_value=pipeline),
        ):
            return runner.invoke(main, ["create", *args])

    def test_success_with_project_name(self, tmp_path: Path) -> None:
        pipeline = MagicMock()
        pipeline.run.return_value = ScaffoldResult(
            project_name="blog",
            project_dir=tmp_path / "blog",
            framework="laravel",
            version="10",
        )

        with patch("atempo.cli.Path.cwd", return_value=tmp_path):
            result = self._invoke(pipeline, ["laravel:10", "blog"])

        assert result.exit_code == 0, result.output
        pipeline.run.assert_called_once_with("laravel", "10", tmp_path / "blog")
        assert "is ready" in result.output

    def test_defaults_to_current_directory(self, tmp_path: Path) -> None:
        pipeline = MagicMock()
        pipeline.run.return_value = ScaffoldResult(
            project_name=tmp_path.name,
            project_dir=tmp_path,
            framework="django",
            version="5",
        )

        with patch("atempo.cli.Path.cwd", return_value=tmp_path):
            result = self._invoke(pipeline, ["django"])

        assert result.exit_code == 0, result.output
        pipeline.run.assert_called_once_with("django", "5", tmp_path)

    def test_warnings_listed_before_banner(self, tmp_path: Path) -> None:
        pipeline = MagicMock()
        pipeline.run.return_value = ScaffoldResult(
            project_name="blog",
            project_dir=tmp_path,
            framework="laravel",
            version="11",
            warnings=["Running framework setup: migrate failed"],
        )

        result = self._invoke(pipeline, ["laravel", "blog"])

        assert result.exit_code == 0
        assert "1 warning(s)" in result.output
        assert "migrate failed" in result.output
        assert result.output.index("migrate failed") < result.output.index(
            "is ready"
        )

    def test_validation_abort(self) -> None:
        pipeline = MagicMock()
        pipeline.run.side_effect = ValidationError("version 7.0 is too old")

        result = self._invoke(pipeline, ["laravel:7.0", "blog"])

        assert result.exit_code == 1
        assert "validate failed" in result.output
        assert "too old" in result.output

    def test_install_abort(self) -> None:
        pipeline = MagicMock()
        pipeline.run.side_effect = InstallError("installer exited 1")

        result = self._invoke(pipeline, ["laravel", "blog"])

        assert result.exit_code == 1
        assert "install failed" in result.output

    def test_bad_framework_format(self) -> None:
        result = self._invoke(MagicMock(), ["laravel:1:2"])
        assert result.exit_code == 2


class TestProjectsCommand:
    def test_lists_projects(self, tmp_path: Path) -> None:
        db_path = tmp_path / "registry.db"
        ProjectRegistry(db_path).add_project("blog", tmp_path, "laravel", "11")

        with patch(
            "atempo.cli.load_config",
            return_value=AtempoConfig(registry_path=str(db_path)),
        ):
            result = CliRunner().invoke(main, ["projects"])

        assert result.exit_code == 0
        assert "blog" in result.output
        assert "laravel 11" in result.output

    def test_empty(self, tmp_path: Path) -> None:
        with patch(
            "atempo.cli.load_config",
            return_value=AtempoConfig(registry_path=str(tmp_path / "r.db")),
        ):
            result = CliRunner().invoke(main, ["projects"])

        assert result.exit_code == 0
        assert "No projects registered" in result.output


class TestLogsCommand:
    def test_prints_latest_log(self, tmp_path: Path) -> None:
        (tmp_path / "blog_2024-01-01_00-00-00.log").write_text("old run")
        (tmp_path / "blog_2024-06-01_00-00-00.log").write_text("STDOUT: [done]")

        with patch(
            "atempo.cli.load_config",
            return_value=AtempoConfig(log_dir=str(tmp_path)),
        ):
            result = CliRunner().invoke(main, ["logs", "blog"])

        assert result.exit_code == 0
        assert "STDOUT: [done]" in result.output
        assert "old run" not in result.output

    def test_missing_logs(self, tmp_path: Path) -> None:
        with patch(
            "atempo.cli.load_config",
            return_value=AtempoConfig(log_dir=str(tmp_path)),
        ):
            result = CliRunner().invoke(main, ["logs", "ghost"])

        assert result.exit_code == 1
        assert "No logs found" in result.output
