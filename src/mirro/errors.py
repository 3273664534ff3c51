"""Error types raised at the edges of mirro (config, network).

The dashboard core never raises for user input; these only surface from
the shims around it and are reported by the CLI.
"""

from __future__ import annotations


class MirroError(RuntimeError):
    """Base error for mirro."""


class ConfigError(MirroError):
    """Configuration file or command line value is invalid."""


class FetchError(MirroError):
    """Mirror status could not be downloaded or decoded."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to load mirror status from {url}: {reason}")
