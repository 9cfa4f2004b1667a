from __future__ import annotations


class VaultError(Exception):
    """Base class for every failure raised by vault operations."""


class AccessDenied(VaultError, PermissionError):
    """Raised when a requested path is hidden or resolves outside the vault roots."""


class ParentMissing(VaultError, FileNotFoundError):
    """Raised when neither the path nor its parent directory exists."""


class NoteNotFound(VaultError, FileNotFoundError):
    """Raised when a write may not create a note that does not exist."""


class IOFailure(VaultError, OSError):
    """Raised when the underlying read, write or mkdir call fails."""


class ConfigError(VaultError):
    """Raised at startup when the configured vault directories are unusable."""
