"""Tests for CLI functionality."""

from unittest.mock import ANY, AsyncMock, patch

import pytest
from typer.testing import CliRunner

from apps.cli.main import app
from patcher.errors import CommandError, ManifestNotFoundError, PatchApplyError
from patcher.schemas import AnalyzePackagesResponse


@pytest.fixture(autouse=True)
def api_env(monkeypatch):
    monkeypatch.setenv("ROOTIO_API_KEY", "test-key")
    for name in ("DRY_RUN", "PYTHON_PATH", "USE_ALIAS", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


class TestCLI:
    """Test CLI command interface."""

    def setup_method(self):
        """Setup test fixtures."""
        self.runner = CliRunner()

    def test_cli_help_command(self):
        """Should list the ecosystem sub-commands."""
        result = self.runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "pip" in result.output
        assert "npm" in result.output
        assert "maven" in result.output

    def test_version(self):
        result = self.runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.output.startswith("rootio-patcher ")

    def test_missing_api_key(self, monkeypatch):
        """Should exit 1 before doing any work when the key is unset."""
        monkeypatch.delenv("ROOTIO_API_KEY")

        with patch("apps.cli.main.PipRemediation") as mock_cls:
            result = self.runner.invoke(app, ["pip", "remediate"])

        assert result.exit_code == 1
        assert "Failed to load environment configuration" in result.output
        assert "ROOTIO_API_KEY is required" in result.output
        mock_cls.assert_not_called()


class TestPipCommand:
    """Test ``pip remediate``."""

    def setup_method(self):
        self.runner = CliRunner()

    def test_defaults(self):
        with patch("apps.cli.main.PipRemediation") as mock_cls:
            mock_cls.return_value.run = AsyncMock()
            result = self.runner.invoke(app, ["pip", "remediate"])

        assert result.exit_code == 0
        mock_cls.assert_called_once_with(ANY, python_path="python", dry_run=True, use_alias=True)
        mock_cls.return_value.run.assert_awaited_once()
        assert mock_cls.call_args.args[0].api_key == "test-key"

    def test_flags(self):
        with patch("apps.cli.main.PipRemediation") as mock_cls:
            mock_cls.return_value.run = AsyncMock()
            result = self.runner.invoke(app, [
                "pip", "remediate",
                "--python-path", "/venv/bin/python",
                "--no-dry-run",
                "--no-use-alias",
            ])

        assert result.exit_code == 0
        mock_cls.assert_called_once_with(
            ANY, python_path="/venv/bin/python", dry_run=False, use_alias=False
        )

    def test_environment_variables(self, monkeypatch):
        monkeypatch.setenv("DRY_RUN", "false")
        monkeypatch.setenv("PYTHON_PATH", "/usr/bin/python3")
        monkeypatch.setenv("USE_ALIAS", "false")

        with patch("apps.cli.main.PipRemediation") as mock_cls:
            mock_cls.return_value.run = AsyncMock()
            result = self.runner.invoke(app, ["pip", "remediate"])

        assert result.exit_code == 0
        mock_cls.assert_called_once_with(
            ANY, python_path="/usr/bin/python3", dry_run=False, use_alias=False
        )

    def test_patch_failure_exits_1(self):
        cause = CommandError("pip install failed", 1)
        with patch("apps.cli.main.PipRemediation") as mock_cls:
            mock_cls.return_value.run = AsyncMock(side_effect=PatchApplyError(2, 3, "urllib3", cause))
            result = self.runner.invoke(app, ["pip", "remediate", "--no-dry-run"])

        assert result.exit_code == 1
        assert "Error: [2/3] patch for urllib3 failed" in result.output


class TestNpmCommand:
    """Test ``npm remediate``."""

    def setup_method(self):
        self.runner = CliRunner()

    def test_defaults(self):
        with patch("apps.cli.main.NpmRemediation") as mock_cls:
            mock_cls.return_value.run = AsyncMock()
            result = self.runner.invoke(app, ["npm", "remediate"])

        assert result.exit_code == 0
        mock_cls.assert_called_once_with(ANY, package_manager=None, dry_run=True, lock_file=None)

    def test_package_manager_and_file(self):
        with patch("apps.cli.main.NpmRemediation") as mock_cls:
            mock_cls.return_value.run = AsyncMock()
            result = self.runner.invoke(app, [
                "npm", "remediate",
                "--package-manager", "yarn",
                "--file", "web/yarn.lock",
                "--no-dry-run",
            ])

        assert result.exit_code == 0
        mock_cls.assert_called_once_with(
            ANY, package_manager="yarn", dry_run=False, lock_file="web/yarn.lock"
        )

    def test_invalid_package_manager(self):
        with patch("apps.cli.main.NpmRemediation") as mock_cls:
            result = self.runner.invoke(app, ["npm", "remediate", "--package-manager", "bun"])

        assert result.exit_code != 0
        mock_cls.assert_not_called()

    def test_end_to_end_dry_run(self, lockfile_path, sample_lockfile, make_patch):
        """Runs the real workflow with only the API mocked."""
        response = AnalyzePackagesResponse(patches=[make_patch("lodash", "4.17.20", "4.17.21")])
        with patch(
            "patcher.remediate_npm.RemediationClient.analyze_packages",
            new=AsyncMock(return_value=response),
        ):
            result = self.runner.invoke(app, ["npm", "remediate", "--file", str(lockfile_path)])

        assert result.exit_code == 0
        assert "Patched version: 4.17.21" in result.output
        assert lockfile_path.read_text() == sample_lockfile


class TestMavenCommand:
    """Test ``maven remediate``."""

    def setup_method(self):
        self.runner = CliRunner()

    def test_defaults(self):
        with patch("apps.cli.main.MavenRemediation") as mock_cls:
            mock_cls.return_value.run = AsyncMock()
            result = self.runner.invoke(app, ["maven", "remediate"])

        assert result.exit_code == 0
        mock_cls.assert_called_once_with(ANY, file_path="pom.xml", dry_run=True)

    def test_missing_file_exits_1(self, tmp_path):
        missing = tmp_path / "pom.xml"
        with patch("apps.cli.main.MavenRemediation") as mock_cls:
            mock_cls.return_value.run = AsyncMock(
                side_effect=ManifestNotFoundError(f"file not found: {missing}")
            )
            result = self.runner.invoke(app, ["maven", "remediate", "--file", str(missing)])

        assert result.exit_code == 1
        assert "file not found" in result.output
