from __future__ import annotations

"""
commit_escrow.version - package version string.

ESCROW_VERSION in the environment overrides BASE_VERSION (handy for packaging/CI).
"""


import os

# Bump this on intentional releases.
BASE_VERSION = "0.1.0"

__version__ = os.getenv("ESCROW_VERSION") or BASE_VERSION


def get_version() -> str:
    """Public helper returning the resolved version string."""
    return __version__


__all__ = ["__version__", "get_version", "BASE_VERSION"]
