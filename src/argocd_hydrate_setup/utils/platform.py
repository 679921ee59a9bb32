# ABOUTME: Target platform resolution for the argocd-hydrate binary
# ABOUTME: Maps explicit overrides or host platform strings to a supported OS/arch pair

"""Resolve which (OS, architecture) build of argocd-hydrate to install."""

from __future__ import annotations

import platform as _platform
from dataclasses import dataclass

import structlog

from argocd_hydrate_setup.config import SUPPORTED_ARCH, SUPPORTED_OS
from argocd_hydrate_setup.utils.errors import (
    UnsupportedArchitectureError,
    UnsupportedOperatingSystemError,
)

logger = structlog.get_logger(__name__)

# platform.machine() spellings seen on Linux, macOS and Windows runners.
_MACHINE_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "arm64": "arm64",
    "aarch64": "arm64",
}


@dataclass(frozen=True)
class HostPlatform:
    """Raw description of the machine the step runs on."""

    system: str
    machine: str

    @classmethod
    def detect(cls) -> HostPlatform:
        """Inspect the running interpreter's host."""
        return cls(system=_platform.system(), machine=_platform.machine())


@dataclass(frozen=True)
class TargetSpec:
    """The (OS, architecture) pair the downloaded binary must match."""

    os: str
    arch: str

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"

    def __str__(self) -> str:
        return f"{self.os}/{self.arch}"


def detect_os(host: HostPlatform) -> str:
    """Map a host system name to linux, darwin or windows (linux by default)."""
    system = host.system.lower()
    if system.startswith("win"):
        return "windows"
    if system == "darwin":
        return "darwin"
    return "linux"


def detect_arch(host: HostPlatform) -> str:
    """
    Map a host machine name to amd64 or arm64.

    Raises:
        UnsupportedArchitectureError: For anything else (i386, armv7l, ...).
    """
    arch = _MACHINE_ALIASES.get(host.machine.lower())
    if arch is None:
        raise UnsupportedArchitectureError(host.machine)
    return arch


def resolve_target(
    os_override: str | None,
    arch_override: str | None,
    host: HostPlatform,
) -> TargetSpec:
    """
    Produce the TargetSpec for this run.

    Explicit overrides win; otherwise the host description decides. The host
    is a parameter so callers (and tests) control it instead of the process
    environment.

    Args:
        os_override: "linux", "darwin", "windows", or None to detect.
        arch_override: "amd64", "arm64", or None to detect.
        host: The platform to fall back on.

    Raises:
        UnsupportedOperatingSystemError: Override outside the supported set.
        UnsupportedArchitectureError: Override or host arch not supported.
    """
    if os_override:
        os_name = os_override.lower()
        if os_name not in SUPPORTED_OS:
            raise UnsupportedOperatingSystemError(os_override)
    else:
        os_name = detect_os(host)

    if arch_override:
        arch = arch_override.lower()
        if arch not in SUPPORTED_ARCH:
            raise UnsupportedArchitectureError(arch_override)
    else:
        arch = detect_arch(host)

    target = TargetSpec(os=os_name, arch=arch)
    logger.debug(
        "Resolved target platform",
        target=str(target),
        host_system=host.system,
        host_machine=host.machine,
    )
    return target
