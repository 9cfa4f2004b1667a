"""Configuration for the Obsidian vault MCP server."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple

from dotenv import load_dotenv

from .errors import ConfigError
from .security import expand_home, normalize_path

load_dotenv()

# Maximum number of search results returned to the caller.
DEFAULT_SEARCH_LIMIT: int = 200
DEFAULT_NOTE_EXTENSION: str = ".md"
DEFAULT_LOG_LEVEL: str = "INFO"


@dataclass(frozen=True)
class VaultRoot:
    """One allowed directory: its real location and its normalized comparison key."""

    path: Path
    key: str

    @classmethod
    def from_path(cls, path: Path) -> "VaultRoot":
        return cls(path=path, key=normalize_path(str(path)))


@dataclass(frozen=True)
class VaultConfig:
    """Immutable runtime configuration, built once at process start."""

    roots: Tuple[VaultRoot, ...]
    search_limit: int = DEFAULT_SEARCH_LIMIT
    note_extension: str = DEFAULT_NOTE_EXTENSION

    @property
    def primary_root(self) -> VaultRoot:
        return self.roots[0]


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got '{raw}'") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


def default_log_level() -> str:
    return os.getenv("OBSIDIAN_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()


def _resolve_root(raw: str) -> VaultRoot:
    path = Path(expand_home(raw))
    try:
        resolved = path.resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        raise ConfigError(f"Error accessing directory {raw}: {exc}") from exc
    if not resolved.is_dir():
        raise ConfigError(f"Error: {raw} is not a directory")
    return VaultRoot.from_path(resolved)


def load_config(
    raw_roots: Iterable[str],
    search_limit: Optional[int] = None,
    note_extension: str = DEFAULT_NOTE_EXTENSION,
) -> VaultConfig:
    """
    Build the Root Set from CLI arguments, falling back to OBSIDIAN_VAULT_PATH.

    Every directory must exist and be a directory; the first one is the primary
    root that read and write paths are anchored to.
    """
    candidates = [raw for raw in raw_roots if raw]
    if not candidates:
        env_root = os.getenv("OBSIDIAN_VAULT_PATH", "")
        if env_root:
            candidates = [env_root]
    if not candidates:
        raise ConfigError("Usage: mcp-obsidian-vault <vault-directory> [<vault-directory> ...]")

    roots = tuple(_resolve_root(raw) for raw in candidates)
    limit = search_limit if search_limit is not None else _env_int("OBSIDIAN_SEARCH_LIMIT", DEFAULT_SEARCH_LIMIT)
    if limit <= 0:
        raise ConfigError(f"search limit must be positive, got {limit}")
    return VaultConfig(roots=roots, search_limit=limit, note_extension=note_extension)
