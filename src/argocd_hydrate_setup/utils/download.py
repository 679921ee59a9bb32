# ABOUTME: Release archive download and extraction for argocd-hydrate
# ABOUTME: Builds deterministic asset URLs, downloads with retries, unpacks the tarball

"""
Fetch and unpack the argocd-hydrate release archive.

=============================================================================
RELEASE ASSET LAYOUT
=============================================================================

Every release publishes one gzip tarball per platform:

    https://github.com/kazysgurskas/argocd-hydrate/releases/download/
        v0.5.0/argocd-hydrate-v0.5.0-linux-amd64.tar.gz

The URL depends only on (version, os, arch), so it is built rather than
looked up. The tarball holds the binary at its root, named argocd-hydrate
on every platform (the ".exe" suffix is added when caching on Windows).

=============================================================================
SCRATCH FILES
=============================================================================

Archives and extracted trees go to unique names under the runner temp dir
(RUNNER_TEMP), which the runner wipes after the job. Both are also removed
after every install attempt, so runs outside a runner leave nothing behind:

    $RUNNER_TEMP/<uuid>                 <- downloaded archive
    $RUNNER_TEMP/<uuid>/argocd-hydrate  <- extracted binary

=============================================================================
RETRIES
=============================================================================

github.com redirects asset downloads to a CDN that occasionally returns 5xx
or drops connections. Timeouts, network errors, 408, 429 and 5xx responses
are retried (3 attempts, exponential backoff). Other 4xx responses, most
often a 404 for a version that was never released, fail immediately.
"""

from __future__ import annotations

import shutil
import tarfile
import uuid
from dataclasses import dataclass
from pathlib import Path

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from argocd_hydrate_setup import __version__
from argocd_hydrate_setup.config import RELEASE_OWNER, RELEASE_REPO, TOOL_NAME
from argocd_hydrate_setup.utils.errors import DownloadError, ExtractionError
from argocd_hydrate_setup.utils.platform import TargetSpec  # noqa: TC001

logger = structlog.get_logger(__name__)

RELEASES_URL = f"https://github.com/{RELEASE_OWNER}/{RELEASE_REPO}/releases/download"

_RETRYABLE_STATUS = frozenset({408, 429})

_CHUNK_SIZE = 64 * 1024


# =============================================================================
# NAMING
# =============================================================================


def binary_extension(target: TargetSpec) -> str:
    """Executable suffix for the target: ".exe" on Windows, "" elsewhere."""
    return ".exe" if target.is_windows else ""


def archive_name(version: str, target: TargetSpec) -> str:
    """
    Release asset file name.

        >>> archive_name("1.2.3", TargetSpec("linux", "amd64"))
        'argocd-hydrate-v1.2.3-linux-amd64.tar.gz'
    """
    return f"{TOOL_NAME}-v{version}-{target.os}-{target.arch}.tar.gz"


def download_url(version: str, target: TargetSpec) -> str:
    """Release asset URL; a pure function of (version, os, arch)."""
    return f"{RELEASES_URL}/v{version}/{archive_name(version, target)}"


@dataclass(frozen=True)
class DownloadDescriptor:
    """Where an archive comes from and where its pieces land locally."""

    url: str
    archive_path: Path
    extract_dir: Path
    binary_path: Path

    @classmethod
    def create(cls, version: str, target: TargetSpec, work_dir: Path) -> DownloadDescriptor:
        """
        Describe the download of `version` for `target` under `work_dir`.

        Local names are random so concurrent jobs sharing a temp dir and
        repeated runs never collide.
        """
        extract_dir = work_dir / str(uuid.uuid4())
        return cls(
            url=download_url(version, target),
            archive_path=work_dir / str(uuid.uuid4()),
            extract_dir=extract_dir,
            binary_path=extract_dir / TOOL_NAME,
        )

    def cleanup(self) -> None:
        """Remove the archive and the extracted tree, whichever exist."""
        try:
            self.archive_path.unlink(missing_ok=True)
            if self.extract_dir.exists():
                shutil.rmtree(self.extract_dir)
        except OSError as e:
            logger.warning(
                "Could not remove scratch files", path=str(self.extract_dir), error=str(e)
            )


# =============================================================================
# ARTIFACT FETCHER
# =============================================================================


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status >= 500 or status in _RETRYABLE_STATUS
    return isinstance(exc, httpx.TransportError)


class ArtifactFetcher:
    """
    Downloads and extracts release archives.

        async with ArtifactFetcher(timeout=30.0) as fetcher:
            binary = await fetcher.fetch(descriptor)
    """

    def __init__(self, timeout: float = 30.0) -> None:
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> ArtifactFetcher:
        self._client = httpx.AsyncClient(
            headers={"User-Agent": f"setup-argocd-hydrate/{__version__}"},
            timeout=self._timeout,
            # github.com answers asset URLs with a 302 to the CDN
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @retry(
        retry=retry_if_exception(_is_retryable),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _download_to(self, url: str, destination: Path) -> int:
        """Stream `url` into `destination`; returns the number of bytes written."""
        if not self._client:
            raise RuntimeError("Fetcher not initialized. Use 'async with' context manager.")

        logger.debug("Requesting archive", url=url)
        size = 0
        async with self._client.stream("GET", url) as response:
            response.raise_for_status()
            with destination.open("wb") as f:
                async for chunk in response.aiter_bytes(_CHUNK_SIZE):
                    f.write(chunk)
                    size += len(chunk)
        return size

    async def download(self, descriptor: DownloadDescriptor) -> Path:
        """
        Download the archive described by `descriptor`.

        Raises:
            DownloadError: HTTP error status, network failure, or the archive
                could not be written. Partial files are removed.
        """
        logger.info("Downloading archive", url=descriptor.url)
        try:
            descriptor.archive_path.parent.mkdir(parents=True, exist_ok=True)
            size = await self._download_to(descriptor.url, descriptor.archive_path)
        except httpx.HTTPStatusError as e:
            descriptor.archive_path.unlink(missing_ok=True)
            status = e.response.status_code
            raise DownloadError(
                descriptor.url, f"HTTP {status} {e.response.reason_phrase}".strip()
            ) from e
        except (httpx.HTTPError, OSError) as e:
            descriptor.archive_path.unlink(missing_ok=True)
            raise DownloadError(descriptor.url, str(e) or type(e).__name__) from e

        logger.info("Downloaded archive", path=str(descriptor.archive_path), bytes=size)
        return descriptor.archive_path

    def extract(self, descriptor: DownloadDescriptor) -> Path:
        """
        Unpack the gzip tarball and locate the binary inside it.

        The "data" extraction filter rejects absolute paths, links that
        escape the destination and device files.

        Raises:
            ExtractionError: Corrupt archive, unsafe member, or no binary.
        """
        try:
            descriptor.extract_dir.mkdir(parents=True, exist_ok=True)
            with tarfile.open(descriptor.archive_path, mode="r:gz") as archive:
                archive.extractall(descriptor.extract_dir, filter="data")
        except (tarfile.TarError, OSError, EOFError) as e:
            raise ExtractionError(
                f"Failed to extract {descriptor.archive_path}: {e}"
            ) from e

        logger.info("Extracted archive", path=str(descriptor.extract_dir))

        if not descriptor.binary_path.is_file():
            raise ExtractionError(
                f"Archive from {descriptor.url} does not contain {TOOL_NAME} at its root"
            )
        return descriptor.binary_path

    async def fetch(self, descriptor: DownloadDescriptor) -> Path:
        """Download then extract; returns the path of the extracted binary."""
        await self.download(descriptor)
        return self.extract(descriptor)
