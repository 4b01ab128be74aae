"""
StealthPay - Version Management
=================================
Gestione versioning semantico.
"""

from typing import NamedTuple


class VersionInfo(NamedTuple):
    """Version information structure"""
    major: int
    minor: int
    patch: int
    prerelease: str = ""


VERSION = VersionInfo(major=1, minor=0, patch=0)


def get_version_string() -> str:
    """
    Get version as string.

    Example:
        >>> get_version_string()
        '1.0.0'
    """
    version_str = f"{VERSION.major}.{VERSION.minor}.{VERSION.patch}"

    if VERSION.prerelease:
        version_str += f"-{VERSION.prerelease}"

    return version_str


def is_compatible(other_version: str) -> bool:
    """
    Check compatibilità protocollo con un'altra versione.

    Stessa major version = compatibile (stessi domain tag e formati).
    """
    try:
        other_major = int(other_version.split('.')[0])
    except (ValueError, AttributeError):
        return False
    return other_major == VERSION.major


__version__ = get_version_string()

__all__ = [
    "__version__",
    "VERSION",
    "get_version_string",
    "is_compatible",
]
