# ABOUTME: GitHub releases client and version resolution for argocd-hydrate
# ABOUTME: Looks up the latest release tag and degrades to a fixed fallback version

"""
Version resolution against the GitHub releases API.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

This module turns the `version` input into the concrete version to install:

1. EXPLICIT VERSIONS ("v0.5.0", "0.5.0"): normalized, no network call
2. "latest": the newest published release is looked up on GitHub
3. FAILED LOOKUPS: degrade to FALLBACK_VERSION instead of failing the step

=============================================================================
GITHUB RELEASES API OVERVIEW
=============================================================================

    GET https://api.github.com/repos/{owner}/{repo}/releases/latest

returns the most recent non-draft, non-prerelease release:

    {"tag_name": "v0.5.0", "name": "v0.5.0", "html_url": "...", ...}

Authentication is optional. With a token (usually ${{ github.token }}):

    Authorization: Bearer <token>

Without one the request is anonymous and shares a 60 requests/hour limit
per IP address. Hosted runners hit that limit regularly, which is one of the
reasons a failed lookup must not fail the step.

=============================================================================
WHY A RESULT TYPE INSTEAD OF JUST A STRING?
=============================================================================

resolve_version() returns a VersionResolution that records HOW the version
was obtained:

    VersionResolution(version="0.5.0", source=VersionSource.LATEST)
    VersionResolution(version="0.1.0", source=VersionSource.FALLBACK,
                      fallback_reason="GitHub API returned 403: rate limit")

The caller can then surface a workflow warning for the fallback case
without parsing log output.
"""

# =============================================================================
# IMPORTS
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

import httpx
import structlog
from pydantic import BaseModel
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from argocd_hydrate_setup import __version__
from argocd_hydrate_setup.config import (
    FALLBACK_VERSION,
    LATEST,
    RELEASE_OWNER,
    RELEASE_REPO,
)
from argocd_hydrate_setup.utils.errors import ReleaseIndexError

if TYPE_CHECKING:
    from pydantic import SecretStr

logger = structlog.get_logger(__name__)

GITHUB_API_URL = "https://api.github.com"
USER_AGENT = f"setup-argocd-hydrate/{__version__}"


# =============================================================================
# VERSION NORMALIZATION
# =============================================================================


def normalize_version(version: str) -> str:
    """
    Strip surrounding whitespace and a single leading "v".

    Release tags are "v0.5.0" but archive names, cache keys and outputs all
    use the bare "0.5.0"; the prefix is added back only where a URL needs it.

        >>> normalize_version("v1.2.3")
        '1.2.3'
        >>> normalize_version("1.2.3")
        '1.2.3'
    """
    version = version.strip()
    if version.startswith("v"):
        version = version[1:]
    return version


# =============================================================================
# RELEASE DATA CLASS
# =============================================================================


class Release(BaseModel):
    """
    The subset of a GitHub release object this action reads.

    Only tag_name is required; a response without it is malformed and
    raises pydantic.ValidationError (a ValueError) during parsing.
    """

    model_config = {"extra": "ignore"}

    tag_name: str
    name: str | None = None
    html_url: str | None = None
    draft: bool = False
    prerelease: bool = False

    @property
    def version(self) -> str:
        return normalize_version(self.tag_name)


# =============================================================================
# RESOLUTION RESULT
# =============================================================================


class VersionSource(StrEnum):
    """Where a resolved version came from."""

    EXPLICIT = "explicit"
    LATEST = "latest"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class VersionResolution:
    """
    Outcome of version resolution.

    Fields:
    - version: normalized version, never with a leading "v"
    - source: explicit input, successful lookup, or fallback
    - fallback_reason: why the lookup failed (only for FALLBACK)
    """

    version: str
    source: VersionSource
    fallback_reason: str | None = None

    @property
    def used_fallback(self) -> bool:
        return self.source is VersionSource.FALLBACK


# =============================================================================
# GITHUB RELEASES CLIENT
# =============================================================================


class GitHubReleasesClient:
    """
    Async client for the GitHub releases API.

    LIFECYCLE:
    ----------
        async with GitHubReleasesClient(token=token) as client:
            release = await client.get_latest_release()

    The httpx connection pool is created in __aenter__ and closed in
    __aexit__, so it is released even if the lookup raises.

    RETRY LOGIC:
    ------------
    Timeouts are retried with exponential backoff (3 attempts total). HTTP
    errors are not retried: a 403 rate-limit or a 404 will not improve in a
    few seconds, and the resolver falls back anyway.
    """

    def __init__(
        self,
        token: SecretStr | None = None,
        owner: str = RELEASE_OWNER,
        repo: str = RELEASE_REPO,
        timeout: float = 30.0,
        base_url: str = GITHUB_API_URL,
    ) -> None:
        """
        Initialize the client.

        Args:
            token: GitHub token; None or an empty secret means anonymous.
            owner: Repository owner publishing the releases.
            repo: Repository name.
            timeout: HTTP request timeout in seconds.
            base_url: API root, overridable for GitHub Enterprise.
        """
        self._token = token
        self._owner = owner
        self._repo = repo
        self._timeout = timeout
        self._base_url = base_url.rstrip("/")
        self._client: httpx.AsyncClient | None = None

    @property
    def authenticated(self) -> bool:
        return bool(self._token and self._token.get_secret_value())

    async def __aenter__(self) -> GitHubReleasesClient:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": USER_AGENT,
        }
        if self.authenticated:
            token = self._token.get_secret_value()  # type: ignore[union-attr]
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=self._timeout,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @retry(
        retry=retry_if_exception_type(httpx.TimeoutException),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _get(self, path: str) -> httpx.Response:
        """
        GET an API path, converting non-2xx responses into ReleaseIndexError.

        Raises:
            ReleaseIndexError: On 4xx/5xx responses.
            httpx.HTTPError: On network failures (after retrying timeouts).
            RuntimeError: If used outside 'async with'.
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")

        log = logger.bind(path=path, authenticated=self.authenticated)
        log.debug("Making GitHub API request")

        response = await self._client.get(path)

        if not response.is_success:
            error_body = response.text
            log.debug("GitHub API error", status=response.status_code, body=error_body[:200])

            # GitHub errors look like {"message": "...", "documentation_url": "..."}
            message = response.reason_phrase or f"HTTP {response.status_code}"
            details = error_body[:200] if error_body else None
            try:
                error_json = response.json()
            except ValueError:
                error_json = None
            # Proxies and CDNs may answer with a JSON list, string or null
            if isinstance(error_json, dict):
                message = error_json.get("message") or message
                details = error_json.get("documentation_url")

            raise ReleaseIndexError(
                code=response.status_code,
                message=message,
                details=details,
            )

        return response

    async def get_latest_release(self) -> Release:
        """
        Fetch the latest published release.

        GitHub API: GET /repos/{owner}/{repo}/releases/latest

        Raises:
            ReleaseIndexError: Non-2xx response.
            httpx.HTTPError: Network failure.
            ValueError: Body is not JSON or lacks tag_name.
        """
        response = await self._get(f"/repos/{self._owner}/{self._repo}/releases/latest")
        return Release.model_validate(response.json())


# =============================================================================
# VERSION RESOLVER
# =============================================================================


async def resolve_version(
    request: str,
    client: GitHubReleasesClient,
) -> VersionResolution:
    """
    Resolve a version request to a concrete, normalized version.

    FAILURE POLICY:
    ---------------
    This function never raises for lookup problems. Any API error, network
    error or malformed response produces a FALLBACK resolution with the
    error message as the reason. The client is only used for "latest".

    Args:
        request: "latest" or an explicit version ("v0.5.0", "0.5.0").
        client: An entered GitHubReleasesClient.

    Returns:
        VersionResolution describing the chosen version.
    """
    if request != LATEST:
        version = normalize_version(request)
        logger.info("Using requested version", version=version)
        return VersionResolution(version=version, source=VersionSource.EXPLICIT)

    if client.authenticated:
        logger.info("Getting latest version using GitHub token")
    else:
        logger.info("Getting latest version with an unauthenticated API request")

    try:
        release = await client.get_latest_release()
    except (ReleaseIndexError, httpx.HTTPError, ValueError) as e:
        reason = str(e) or type(e).__name__
        logger.warning(
            "Could not determine latest version, falling back",
            error=reason,
            fallback=FALLBACK_VERSION,
        )
        return VersionResolution(
            version=FALLBACK_VERSION,
            source=VersionSource.FALLBACK,
            fallback_reason=reason,
        )

    logger.info("Latest version found", tag=release.tag_name, version=release.version)
    return VersionResolution(version=release.version, source=VersionSource.LATEST)
