"""
Obsidian vault MCP server.
"""

from .config import VaultConfig, VaultRoot, load_config
from .errors import AccessDenied, ConfigError, IOFailure, NoteNotFound, ParentMissing, VaultError
from .notes import NoteStore, ReadResult
from .search import SearchEngine, format_search_results
from .security import SandboxValidator, normalize_path

__all__ = [
    "AccessDenied",
    "ConfigError",
    "IOFailure",
    "NoteNotFound",
    "NoteStore",
    "ParentMissing",
    "ReadResult",
    "SandboxValidator",
    "SearchEngine",
    "VaultConfig",
    "VaultError",
    "VaultRoot",
    "format_search_results",
    "load_config",
    "normalize_path",
]
