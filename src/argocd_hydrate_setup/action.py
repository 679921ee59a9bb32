# ABOUTME: Setup ArgoCD Hydrate action pipeline and main entry point
# ABOUTME: Resolves target and version, fetches the archive, caches the binary, publishes outputs

"""Setup ArgoCD Hydrate - install the argocd-hydrate CLI in a workflow."""

from __future__ import annotations

import asyncio
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from argocd_hydrate_setup.config import TOOL_NAME, ActionSettings, load_settings
from argocd_hydrate_setup.utils.cache import ToolCache
from argocd_hydrate_setup.utils.download import (
    ArtifactFetcher,
    DownloadDescriptor,
    binary_extension,
)
from argocd_hydrate_setup.utils.errors import SetupError
from argocd_hydrate_setup.utils.logging import configure_logging, set_run_id
from argocd_hydrate_setup.utils.platform import HostPlatform, TargetSpec, resolve_target
from argocd_hydrate_setup.utils.releases import (
    GitHubReleasesClient,
    VersionResolution,
    resolve_version,
)
from argocd_hydrate_setup.utils.runner import WorkflowRunner

if TYPE_CHECKING:
    from pathlib import Path

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class InstallResult:
    """What the step installed and where."""

    version: str
    path: Path
    target: TargetSpec
    resolution: VersionResolution
    cache_hit: bool


def runner_from_settings(settings: ActionSettings) -> WorkflowRunner:
    return WorkflowRunner(
        github_path=settings.runner.github_path,
        github_output=settings.runner.github_output,
    )


async def install(
    settings: ActionSettings,
    host: HostPlatform | None = None,
    runner: WorkflowRunner | None = None,
) -> InstallResult:
    """
    Run the setup pipeline: target, version, fetch, cache, publish.

    Raises:
        SetupError: Any fatal failure. A failed "latest" lookup is not one;
            it falls back and emits a warning annotation instead.
    """
    inputs = settings.inputs
    host = host or HostPlatform.detect()
    runner = runner or runner_from_settings(settings)

    target = resolve_target(inputs.target_os, inputs.target_arch, host)
    logger.info("Setting up ArgoCD Hydrate", target=str(target))

    async with GitHubReleasesClient(
        token=inputs.token, timeout=settings.http_timeout
    ) as releases:
        resolution = await resolve_version(inputs.version, releases)

    if resolution.used_fallback:
        runner.warning(
            f"Could not determine latest version: {resolution.fallback_reason}. "
            f"Falling back to v{resolution.version}"
        )

    version = resolution.version
    logger.info("Using version", version=version, source=str(resolution.source))

    filename = f"{TOOL_NAME}{binary_extension(target)}"
    cache = ToolCache(settings.runner.tool_cache)

    entry = cache.find(TOOL_NAME, version, target.arch, filename)
    cache_hit = entry is not None
    if entry is None:
        descriptor = DownloadDescriptor.create(version, target, settings.runner.temp)
        try:
            async with ArtifactFetcher(timeout=settings.http_timeout) as fetcher:
                binary = await fetcher.fetch(descriptor)
            entry = cache.cache_file(
                binary,
                filename,
                TOOL_NAME,
                version,
                target.arch,
                executable=not target.is_windows,
            )
        finally:
            descriptor.cleanup()
    else:
        logger.info("Found in tool cache, skipping download", path=str(entry.path))

    runner.add_path(entry.directory)
    runner.set_output("version", version)
    runner.set_output("path", str(entry.path))

    logger.info(
        "Successfully installed ArgoCD Hydrate", version=f"v{version}", path=str(entry.path)
    )
    return InstallResult(
        version=version,
        path=entry.path,
        target=target,
        resolution=resolution,
        cache_hit=cache_hit,
    )


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================


def main() -> None:
    """Run the action and exit non-zero on failure."""
    configure_logging(level="INFO")
    runner = WorkflowRunner()

    try:
        settings = load_settings()
    except ValidationError as e:
        logger.error("Invalid action inputs", error=str(e))
        sys.exit(runner.set_failed(f"Action failed with error: invalid inputs: {e}"))

    configure_logging(level=settings.log_level, json_output=settings.json_logs)
    set_run_id(settings.runner.run_id)
    runner = runner_from_settings(settings)

    try:
        asyncio.run(install(settings, runner=runner))
    except SetupError as e:
        logger.error("Setup failed", error=str(e))
        sys.exit(runner.set_failed(f"Action failed with error: {e}"))
    except Exception as e:
        logger.exception("Unexpected error")
        sys.exit(runner.set_failed(f"Action failed with error: {e}"))


if __name__ == "__main__":
    main()
