# ABOUTME: Version-keyed tool cache for installed argocd-hydrate binaries
# ABOUTME: Stores binaries under tool/version/arch with completion markers for idempotent reuse

"""
Filesystem tool cache compatible with the GitHub Actions hosted tool cache.

Layout under the cache root (RUNNER_TOOL_CACHE on a runner):

    argocd-hydrate/
        0.5.0/
            amd64/
                argocd-hydrate
            amd64.complete

An entry counts only once its ".complete" marker exists. The marker is
written last, so an install interrupted half-way is treated as missing and
redone on the next run rather than reused.
"""

from __future__ import annotations

import shutil
import stat
from dataclasses import dataclass
from pathlib import Path

import structlog

from argocd_hydrate_setup.utils.errors import CacheError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A cached tool binary."""

    tool: str
    version: str
    arch: str
    path: Path

    @property
    def directory(self) -> Path:
        return self.path.parent


class ToolCache:
    """Version-keyed binary cache rooted at a directory."""

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def _entry_dir(self, tool: str, version: str, arch: str) -> Path:
        return self._root / tool / version / arch

    def _marker(self, tool: str, version: str, arch: str) -> Path:
        return self._root / tool / version / f"{arch}.complete"

    def find(self, tool: str, version: str, arch: str, filename: str) -> CacheEntry | None:
        """Return the complete cache entry for the key, or None."""
        path = self._entry_dir(tool, version, arch) / filename
        if self._marker(tool, version, arch).is_file() and path.is_file():
            logger.debug("Tool cache hit", tool=tool, version=version, arch=arch, path=str(path))
            return CacheEntry(tool=tool, version=version, arch=arch, path=path)
        return None

    def cache_file(
        self,
        source: Path,
        filename: str,
        tool: str,
        version: str,
        arch: str,
        executable: bool = True,
    ) -> CacheEntry:
        """
        Copy `source` into the cache as `filename` under (tool, version, arch).

        Idempotent: when a complete entry already exists it is returned as-is
        and `source` is not copied again.

        Args:
            source: File to cache (the extracted binary).
            filename: Name of the cached file, e.g. "argocd-hydrate.exe".
            tool: Cache namespace.
            version: Normalized version.
            arch: Target architecture.
            executable: Set the execute bits on the cached file.

        Raises:
            CacheError: Source missing or the cache directory is not writable.
        """
        existing = self.find(tool, version, arch, filename)
        if existing:
            logger.info("Already cached", path=str(existing.path))
            return existing

        if not source.is_file():
            raise CacheError(f"Cannot cache {source}: file does not exist")

        entry_dir = self._entry_dir(tool, version, arch)
        marker = self._marker(tool, version, arch)
        try:
            # Leftovers from an interrupted install are discarded
            if entry_dir.exists():
                shutil.rmtree(entry_dir)
            marker.unlink(missing_ok=True)

            entry_dir.mkdir(parents=True)
            target = entry_dir / filename
            shutil.copy2(source, target)
            if executable:
                mode = target.stat().st_mode
                target.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
            marker.write_text("")
        except OSError as e:
            raise CacheError(f"Failed to cache {tool} {version} in {entry_dir}: {e}") from e

        logger.info("Cached tool", tool=tool, version=version, arch=arch, path=str(target))
        return CacheEntry(tool=tool, version=version, arch=arch, path=target)
