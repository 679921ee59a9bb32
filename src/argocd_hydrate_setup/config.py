# ABOUTME: Configuration management for the Setup ArgoCD Hydrate action
# ABOUTME: Binds action inputs, runner environment, and logging settings from env vars

"""
Configuration management using pydantic-settings.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

This module handles all configuration for the setup action. It:

1. READS environment variables (INPUT_VERSION, RUNNER_TOOL_CACHE, ...)
2. VALIDATES them (supported OS/arch values, blank inputs, log levels)
3. PROVIDES typed access to settings throughout the pipeline

=============================================================================
HOW GITHUB ACTIONS PASSES INPUTS
=============================================================================

The runner exposes every `with:` input of a step as an environment variable
named INPUT_<NAME>. Inputs that the workflow did not set arrive as EMPTY
strings, not as missing variables, so every validator below treats "" the
same as "not provided".

The runner also exports a handful of RUNNER_* and GITHUB_* variables that
tell us where the tool cache lives, where scratch files go, and which files
to append to when publishing outputs or extending PATH.

=============================================================================
ARCHITECTURE: THREE CONFIGURATION CLASSES
=============================================================================

1. ActionInputs: The step's `with:` inputs (INPUT_* variables)
   - version, os, arch, token

2. RunnerEnvironment: Paths provided by the runner
   - tool cache root, temp dir, GITHUB_PATH and GITHUB_OUTPUT files

3. ActionSettings: Main configuration container (ARGOCD_HYDRATE_* prefix)
   - Log level, JSON logging, HTTP timeout
   - Contains ActionInputs and RunnerEnvironment as nested objects

=============================================================================
ENVIRONMENT VARIABLE MAPPING
=============================================================================

Action inputs:
    INPUT_VERSION     -> Requested version ("latest" or a tag, default: latest)
    INPUT_OS          -> Target OS override (linux, darwin, windows)
    INPUT_ARCH        -> Target architecture override (amd64, arm64)
    INPUT_TOKEN       -> GitHub token for authenticated release lookups

Runner environment:
    RUNNER_TOOL_CACHE -> Root directory of the tool cache
    RUNNER_TEMP       -> Scratch directory for downloads and extraction
    GITHUB_PATH       -> File that receives directories to add to PATH
    GITHUB_OUTPUT     -> File that receives step outputs
    GITHUB_RUN_ID     -> Workflow run identifier (attached to log lines)

Action behaviour:
    ARGOCD_HYDRATE_LOG_LEVEL    -> Logging level (default: INFO)
    ARGOCD_HYDRATE_JSON_LOGS    -> Emit JSON log lines (default: false)
    ARGOCD_HYDRATE_HTTP_TIMEOUT -> HTTP timeout in seconds (default: 30)
"""

# =============================================================================
# IMPORTS
# =============================================================================
#
# Import explanations:
# - __future__.annotations: Enables 'X | None' syntax everywhere.
# - os: Read optional .env file path from environment variables.
# - tempfile: Locate the system temp dir when the runner does not provide one.
# - Path: Filesystem paths (needed at runtime for Pydantic).
# - Annotated: Constrain string fields with a pattern.
# - BaseSettings: Like BaseModel, but reads values from environment variables.
# - SecretStr: Keeps the GitHub token out of logs and reprs.
# =============================================================================

from __future__ import annotations

import os
import tempfile
from pathlib import Path  # noqa: TC003 - Required at runtime for Pydantic
from typing import Annotated

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# =============================================================================
# PROJECT CONSTANTS
# =============================================================================

# The GitHub repository that publishes argocd-hydrate releases.
RELEASE_OWNER = "kazysgurskas"
RELEASE_REPO = "argocd-hydrate"

# Name of the binary inside the release archive, and the tool cache namespace.
TOOL_NAME = "argocd-hydrate"

# Version used when the "latest" lookup fails. Deliberately hardcoded: a known
# good release is preferred over failing the whole CI step.
FALLBACK_VERSION = "0.1.0"

# The special version request that triggers a release index lookup.
LATEST = "latest"

SUPPORTED_OS = ("linux", "darwin", "windows")
SUPPORTED_ARCH = ("amd64", "arm64")


def _blank_to_none(value: object) -> object:
    """Map empty/whitespace strings to None and lowercase the rest."""
    if isinstance(value, str):
        value = value.strip().lower()
        return value or None
    return value


# =============================================================================
# ACTION INPUTS
# =============================================================================


class ActionInputs(BaseSettings):
    """
    The `with:` inputs of the setup step.

    WHY validation_alias?
    ---------------------
    The runner names the variables INPUT_OS and INPUT_ARCH, but a field called
    `os` would shadow the `os` module inside this class body. The fields are
    named target_os / target_arch and read from the runner's names through
    validation_alias. populate_by_name keeps both spellings usable in tests:

        ActionInputs(target_os="darwin")
        ActionInputs(INPUT_OS="darwin")

    Overrides are only normalized here. Whether a build exists for them is
    checked when the target is resolved, so an unknown value is reported as
    an unsupported platform rather than a validation dump.
    """

    model_config = SettingsConfigDict(
        env_prefix="INPUT_",
        extra="ignore",
        populate_by_name=True,
    )

    version: str = Field(
        default=LATEST,
        description="Version to install: 'latest' or an explicit tag such as v0.5.0",
    )

    target_os: str | None = Field(
        default=None,
        validation_alias="INPUT_OS",
        description="Target operating system; detected from the host when unset",
    )

    target_arch: str | None = Field(
        default=None,
        validation_alias="INPUT_ARCH",
        description="Target architecture; detected from the host when unset",
    )

    token: SecretStr = Field(
        default=SecretStr(""),
        description="GitHub token used for authenticated release lookups",
    )
    # Usually ${{ github.token }}. Anonymous API calls are limited to 60 per
    # hour per IP, which shared runners exhaust quickly.

    @field_validator("version", mode="before")
    @classmethod
    def default_blank_version(cls, v: object) -> object:
        """An empty version input means the action default, 'latest'."""
        if isinstance(v, str):
            v = v.strip()
            return v or LATEST
        return v

    @field_validator("target_os", "target_arch", mode="before")
    @classmethod
    def normalize_platform(cls, v: object) -> object:
        """Treat blank overrides as unset and accept any letter case."""
        return _blank_to_none(v)


# =============================================================================
# RUNNER ENVIRONMENT
# =============================================================================


def _default_temp() -> Path:
    return Path(tempfile.gettempdir()) / "argocd-hydrate-setup"


def _default_tool_cache() -> Path:
    return Path(tempfile.gettempdir()) / "argocd-hydrate-setup" / "tool-cache"


class RunnerEnvironment(BaseSettings):
    """
    Paths and identifiers exported by the GitHub Actions runner.

    Outside a runner (local runs, tests) the cache and temp directories fall
    back to locations under the system temp dir, and the GITHUB_* files are
    simply absent.
    """

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    tool_cache: Path = Field(
        default_factory=_default_tool_cache,
        validation_alias="RUNNER_TOOL_CACHE",
        description="Root of the tool cache",
    )

    temp: Path = Field(
        default_factory=_default_temp,
        validation_alias="RUNNER_TEMP",
        description="Scratch directory for downloads and extraction",
    )

    github_path: Path | None = Field(
        default=None,
        validation_alias="GITHUB_PATH",
        description="File command that appends directories to PATH",
    )

    github_output: Path | None = Field(
        default=None,
        validation_alias="GITHUB_OUTPUT",
        description="File command that receives step outputs",
    )

    run_id: str = Field(
        default="",
        validation_alias="GITHUB_RUN_ID",
        description="Workflow run identifier",
    )

    @field_validator("github_path", "github_output", mode="before")
    @classmethod
    def blank_path_is_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v


# =============================================================================
# MAIN ACTION SETTINGS
# =============================================================================


class ActionSettings(BaseSettings):
    """
    Top-level configuration container.

    USAGE:
    ------
        settings = load_settings()
        settings.inputs.version        # "latest"
        settings.runner.tool_cache     # Path("/opt/hostedtoolcache")
        settings.http_timeout          # 30.0
    """

    model_config = SettingsConfigDict(
        env_prefix="ARGOCD_HYDRATE_",
        env_nested_delimiter="__",
        extra="ignore",
        populate_by_name=True,
    )

    log_level: Annotated[str, Field(pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")] = Field(
        default="INFO",
        description="Logging level",
    )
    # Runner debug logging (ACTIONS_STEP_DEBUG) does not change this; set
    # ARGOCD_HYDRATE_LOG_LEVEL=DEBUG to see individual HTTP requests.

    json_logs: bool = Field(
        default=False,
        description="Emit JSON log lines instead of console output",
    )

    http_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout in seconds for each HTTP request",
    )

    inputs: ActionInputs = Field(default_factory=ActionInputs)
    runner: RunnerEnvironment = Field(default_factory=RunnerEnvironment)

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v


# =============================================================================
# SETTINGS LOADER
# =============================================================================


def load_settings() -> ActionSettings:
    """
    Load settings from the environment with validation.

    If ARGOCD_HYDRATE_ENV_FILE is set, extra variables are read from that
    file, which makes it easy to reproduce a runner environment locally:

        INPUT_VERSION=v0.5.0
        RUNNER_TOOL_CACHE=/tmp/tool-cache
        ARGOCD_HYDRATE_LOG_LEVEL=DEBUG

    The nested settings are built explicitly because a default_factory does
    not see the parent's _env_file.

    Raises:
        pydantic.ValidationError: If a setting is malformed.
    """
    env_file = os.environ.get("ARGOCD_HYDRATE_ENV_FILE")
    return ActionSettings(
        _env_file=env_file,
        inputs=ActionInputs(_env_file=env_file),
        runner=RunnerEnvironment(_env_file=env_file),
    )
