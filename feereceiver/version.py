"""
feereceiver.version — package version string.

Kept dependency-free so it can be imported during packaging.
"""

from __future__ import annotations

# Bump this when making a tagged release. Use semver (major.minor.patch).
__version__ = "0.1.0"

__all__ = ["__version__"]
