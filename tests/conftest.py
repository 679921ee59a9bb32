# ABOUTME: Pytest fixtures and configuration for Setup ArgoCD Hydrate tests
# ABOUTME: Provides isolated runner environments, settings, and release archive fixtures

import io
import os
import tarfile
from pathlib import Path
from typing import Callable

import pytest
from pydantic import SecretStr
from tenacity import wait_none

from argocd_hydrate_setup.config import ActionInputs, ActionSettings, RunnerEnvironment
from argocd_hydrate_setup.utils.download import ArtifactFetcher
from argocd_hydrate_setup.utils.logging import set_run_id
from argocd_hydrate_setup.utils.platform import HostPlatform, TargetSpec
from argocd_hydrate_setup.utils.releases import GitHubReleasesClient
from argocd_hydrate_setup.utils.runner import WorkflowRunner

# Variables a real runner exports that would leak into settings under test.
_RUNNER_VARS = (
    "INPUT_VERSION",
    "INPUT_OS",
    "INPUT_ARCH",
    "INPUT_TOKEN",
    "RUNNER_TOOL_CACHE",
    "RUNNER_TEMP",
    "GITHUB_PATH",
    "GITHUB_OUTPUT",
    "GITHUB_RUN_ID",
    "ARGOCD_HYDRATE_ENV_FILE",
    "ARGOCD_HYDRATE_LOG_LEVEL",
    "ARGOCD_HYDRATE_JSON_LOGS",
    "ARGOCD_HYDRATE_HTTP_TIMEOUT",
)

LINUX_AMD64 = HostPlatform(system="Linux", machine="x86_64")


@pytest.fixture(autouse=True)
def clean_runner_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove runner variables so tests behave the same inside CI."""
    for name in _RUNNER_VARS:
        monkeypatch.delenv(name, raising=False)
    set_run_id("")


@pytest.fixture(autouse=True)
def no_retry_wait(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tenacity retries but skip the backoff sleeps."""
    monkeypatch.setattr(GitHubReleasesClient._get.retry, "wait", wait_none())
    monkeypatch.setattr(ArtifactFetcher._download_to.retry, "wait", wait_none())


@pytest.fixture
def linux_host() -> HostPlatform:
    return LINUX_AMD64


@pytest.fixture
def linux_amd64() -> TargetSpec:
    return TargetSpec(os="linux", arch="amd64")


@pytest.fixture
def runner_env(tmp_path: Path) -> RunnerEnvironment:
    """A runner environment whose directories and files live in tmp_path."""
    github_path = tmp_path / "github_path"
    github_output = tmp_path / "github_output"
    github_path.touch()
    github_output.touch()
    return RunnerEnvironment(
        tool_cache=tmp_path / "tool-cache",
        temp=tmp_path / "runner-temp",
        github_path=github_path,
        github_output=github_output,
        run_id="4242",
    )


@pytest.fixture
def make_settings(runner_env: RunnerEnvironment) -> Callable[..., ActionSettings]:
    """Build ActionSettings for the given inputs in the tmp runner env."""

    def _make(
        version: str = "latest",
        target_os: str | None = None,
        target_arch: str | None = None,
        token: str = "",
    ) -> ActionSettings:
        return ActionSettings(
            inputs=ActionInputs(
                version=version,
                target_os=target_os,
                target_arch=target_arch,
                token=SecretStr(token),
            ),
            runner=runner_env,
        )

    return _make


@pytest.fixture
def workflow_runner(runner_env: RunnerEnvironment) -> WorkflowRunner:
    """A runner writing file commands into tmp files and a private PATH."""
    return WorkflowRunner(
        github_path=runner_env.github_path,
        github_output=runner_env.github_output,
        environ={"PATH": "/usr/bin"},
        stream=io.StringIO(),
    )


def build_archive(members: dict[str, bytes]) -> bytes:
    """Create an in-memory .tar.gz holding the given files."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name=name)
            info.size = len(data)
            info.mode = 0o755
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


@pytest.fixture
def make_archive() -> Callable[[dict[str, bytes]], bytes]:
    return build_archive


@pytest.fixture
def release_archive() -> bytes:
    """A release tarball with the binary at its root."""
    return build_archive(
        {
            "argocd-hydrate": b"#!/bin/sh\necho argocd-hydrate\n",
            "LICENSE": b"MIT\n",
            "README.md": b"# argocd-hydrate\n",
        }
    )


@pytest.fixture
def live_github_token() -> str | None:
    """Token for integration tests against the live GitHub API."""
    return os.environ.get("GITHUB_TOKEN")
