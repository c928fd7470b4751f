"""Platform detection and micromamba platform mapping."""
import platform
from dataclasses import dataclass
from typing import NamedTuple


@dataclass(frozen=True)
class PlatformInfo:
    """Platform information."""
    os_name: str
    arch: str
    mamba_platform: str
    binary_member: str


class PlatformMapping(NamedTuple):
    """Platform-specific values."""
    prefix: str
    binary_member: str


# Architecture suffixes used in conda platform names
ARCH_MAPPINGS = {
    "x86_64": "64",
    "amd64": "64",
    "aarch64": "aarch64",
    "arm64": "arm64",
    "ppc64le": "ppc64le",
}

PLATFORM_MAPPINGS = {
    "Linux": PlatformMapping(prefix="linux", binary_member="bin/micromamba"),
    "Darwin": PlatformMapping(prefix="osx", binary_member="bin/micromamba"),
    "Windows": PlatformMapping(prefix="win", binary_member="Library/bin/micromamba.exe"),
}


def get_platform_info(system: str = None, machine: str = None) -> PlatformInfo:
    """Get platform information for the current (or given) system."""
    system = system or platform.system()
    machine = (machine or platform.machine()).lower()

    if system not in PLATFORM_MAPPINGS:
        raise RuntimeError(f"Unsupported operating system: {system}")

    if machine not in ARCH_MAPPINGS:
        raise RuntimeError(f"Unsupported architecture: {machine}")

    arch = ARCH_MAPPINGS[machine]
    # conda names Apple silicon osx-arm64 but Linux ARM linux-aarch64
    if system == "Darwin" and arch == "aarch64":
        arch = "arm64"
    elif system == "Linux" and arch == "arm64":
        arch = "aarch64"

    platform_map = PLATFORM_MAPPINGS[system]
    return PlatformInfo(
        os_name=system.lower(),
        arch=machine,
        mamba_platform=f"{platform_map.prefix}-{arch}",
        binary_member=platform_map.binary_member,
    )


def is_platform_supported() -> bool:
    """Check if current platform is supported."""
    try:
        get_platform_info()
        return True
    except RuntimeError:
        return False
