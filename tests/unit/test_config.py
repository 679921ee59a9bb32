# ABOUTME: Unit tests for configuration management
# ABOUTME: Tests input binding, normalization, runner paths, and settings loading

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import SecretStr, ValidationError

from argocd_hydrate_setup.config import (
    ActionInputs,
    ActionSettings,
    RunnerEnvironment,
    load_settings,
)


@pytest.mark.unit
class TestActionInputs:
    """Tests for ActionInputs configuration."""

    def test_defaults(self):
        """Test inputs default to latest with host detection."""
        inputs = ActionInputs()

        assert inputs.version == "latest"
        assert inputs.target_os is None
        assert inputs.target_arch is None
        assert inputs.token.get_secret_value() == ""

    def test_reads_runner_input_variables(self):
        """Test INPUT_* variables bind to the fields."""
        env = {
            "INPUT_VERSION": "v0.5.0",
            "INPUT_OS": "darwin",
            "INPUT_ARCH": "arm64",
            "INPUT_TOKEN": "ghs_secret",
        }
        with patch.dict(os.environ, env):
            inputs = ActionInputs()

        assert inputs.version == "v0.5.0"
        assert inputs.target_os == "darwin"
        assert inputs.target_arch == "arm64"
        assert inputs.token.get_secret_value() == "ghs_secret"

    def test_blank_inputs_mean_unset(self):
        """Test the empty strings the runner sends for unset inputs."""
        env = {"INPUT_VERSION": "", "INPUT_OS": "", "INPUT_ARCH": "  "}
        with patch.dict(os.environ, env):
            inputs = ActionInputs()

        assert inputs.version == "latest"
        assert inputs.target_os is None
        assert inputs.target_arch is None

    def test_platform_overrides_are_case_insensitive(self):
        """Test OS and arch overrides are lowercased."""
        inputs = ActionInputs(target_os="Windows", target_arch="AMD64")

        assert inputs.target_os == "windows"
        assert inputs.target_arch == "amd64"

    def test_unsupported_overrides_pass_through(self):
        """Test unknown overrides are kept for the target resolver to reject."""
        inputs = ActionInputs(target_os="FreeBSD", target_arch="386")

        assert inputs.target_os == "freebsd"
        assert inputs.target_arch == "386"

    def test_token_hidden_in_repr(self):
        """Test the token never appears in the model repr."""
        inputs = ActionInputs(token=SecretStr("ghs_secret"))

        assert "ghs_secret" not in repr(inputs)


@pytest.mark.unit
class TestRunnerEnvironment:
    """Tests for RunnerEnvironment configuration."""

    def test_reads_runner_variables(self, tmp_path: Path):
        """Test runner paths come from RUNNER_* and GITHUB_* variables."""
        env = {
            "RUNNER_TOOL_CACHE": str(tmp_path / "cache"),
            "RUNNER_TEMP": str(tmp_path / "temp"),
            "GITHUB_PATH": str(tmp_path / "path"),
            "GITHUB_OUTPUT": str(tmp_path / "output"),
            "GITHUB_RUN_ID": "123456",
        }
        with patch.dict(os.environ, env):
            runner = RunnerEnvironment()

        assert runner.tool_cache == tmp_path / "cache"
        assert runner.temp == tmp_path / "temp"
        assert runner.github_path == tmp_path / "path"
        assert runner.github_output == tmp_path / "output"
        assert runner.run_id == "123456"

    def test_defaults_outside_runner(self):
        """Test fallback locations when no runner variables are set."""
        runner = RunnerEnvironment()

        assert runner.tool_cache.name == "tool-cache"
        assert runner.temp.name == "argocd-hydrate-setup"
        assert runner.github_path is None
        assert runner.github_output is None
        assert runner.run_id == ""

    def test_blank_file_commands_are_none(self):
        """Test empty GITHUB_PATH/GITHUB_OUTPUT are treated as absent."""
        with patch.dict(os.environ, {"GITHUB_PATH": "", "GITHUB_OUTPUT": ""}):
            runner = RunnerEnvironment()

        assert runner.github_path is None
        assert runner.github_output is None


@pytest.mark.unit
class TestActionSettings:
    """Tests for ActionSettings configuration."""

    def test_defaults(self):
        """Test default behaviour settings."""
        settings = ActionSettings()

        assert settings.log_level == "INFO"
        assert settings.json_logs is False
        assert settings.http_timeout == 30.0
        assert settings.inputs.version == "latest"

    def test_env_prefix(self):
        """Test ARGOCD_HYDRATE_* variables."""
        env = {
            "ARGOCD_HYDRATE_LOG_LEVEL": "debug",
            "ARGOCD_HYDRATE_JSON_LOGS": "true",
            "ARGOCD_HYDRATE_HTTP_TIMEOUT": "5",
        }
        with patch.dict(os.environ, env):
            settings = ActionSettings()

        assert settings.log_level == "DEBUG"
        assert settings.json_logs is True
        assert settings.http_timeout == 5.0

    def test_invalid_log_level(self):
        """Test unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            ActionSettings(log_level="VERBOSE")

    def test_timeout_must_be_positive(self):
        """Test a zero timeout is rejected."""
        with pytest.raises(ValidationError):
            ActionSettings(http_timeout=0)


@pytest.mark.unit
class TestLoadSettings:
    """Tests for load_settings."""

    def test_loads_from_environment(self):
        """Test inputs reach the nested settings."""
        with patch.dict(os.environ, {"INPUT_VERSION": "0.4.2"}):
            settings = load_settings()

        assert settings.inputs.version == "0.4.2"

    def test_loads_env_file(self, tmp_path: Path):
        """Test ARGOCD_HYDRATE_ENV_FILE feeds every settings class."""
        env_file = tmp_path / "action.env"
        env_file.write_text(
            "INPUT_VERSION=v0.3.0\n"
            f"RUNNER_TOOL_CACHE={tmp_path / 'cache'}\n"
            "ARGOCD_HYDRATE_LOG_LEVEL=WARNING\n"
        )
        with patch.dict(os.environ, {"ARGOCD_HYDRATE_ENV_FILE": str(env_file)}):
            settings = load_settings()

        assert settings.inputs.version == "v0.3.0"
        assert settings.runner.tool_cache == tmp_path / "cache"
        assert settings.log_level == "WARNING"
