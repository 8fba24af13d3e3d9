"""Exceptions raised at the host boundary. The analysis core never raises these."""

from typing import Optional


class SeamScanError(Exception):
    """Base class for seamscan errors."""


class ConfigError(SeamScanError):
    """A configuration file is missing or cannot be parsed."""


class SnapshotError(SeamScanError):
    """A syntax-tree snapshot is missing, unreadable or malformed."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)
