# ABOUTME: Exception hierarchy for the Setup ArgoCD Hydrate action
# ABOUTME: Separates fatal setup failures from the recoverable release lookup error

"""
Exceptions raised by the setup pipeline.

Every fatal failure derives from SetupError, so the entry point can turn any
of them into a single failed-run message. ReleaseIndexError is also a
SetupError but never escapes the version resolver: a failed "latest" lookup
degrades to the fallback version instead.
"""

from __future__ import annotations


class SetupError(Exception):
    """Base class for errors that abort the setup step."""


class UnsupportedArchitectureError(SetupError):
    """The host or requested architecture has no published build."""

    def __init__(self, arch: str) -> None:
        self.arch = arch
        super().__init__(f"Unsupported architecture: {arch}")


class UnsupportedOperatingSystemError(SetupError):
    """The requested operating system has no published build."""

    def __init__(self, os_name: str) -> None:
        self.os_name = os_name
        super().__init__(f"Unsupported operating system: {os_name}")


class ReleaseIndexError(SetupError):
    """
    Structured GitHub releases API error.

    Keeps the status code and GitHub's message so the fallback warning can
    say why the lookup failed (rate limiting shows up as a 403 with a
    descriptive message, for example).
    """

    def __init__(self, code: int, message: str, details: str | None = None) -> None:
        self.code = code
        self.message = message
        self.details = details
        super().__init__(str(self))

    def __str__(self) -> str:
        base = f"GitHub API returned {self.code}: {self.message}"
        if self.details:
            base += f" - {self.details}"
        return base


class DownloadError(SetupError):
    """The release archive could not be downloaded."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to download {url}: {reason}")


class ExtractionError(SetupError):
    """The release archive could not be unpacked or lacks the binary."""


class CacheError(SetupError):
    """The binary could not be placed into the tool cache."""
