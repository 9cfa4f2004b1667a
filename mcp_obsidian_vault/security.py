from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Tuple

from .errors import AccessDenied, ParentMissing

if TYPE_CHECKING:
    from .config import VaultRoot

logger = logging.getLogger(__name__)

_SEGMENT_SPLIT = re.compile(r"[\\/]" if os.sep == "\\" else r"/")


def normalize_path(path: str) -> str:
    """
    Canonical form of a path used only for containment checks, never for I/O.

    Collapses redundant separators and `.`/`..` segments lexically and folds
    case on every platform, so case variations can never widen the sandbox.
    """
    return os.path.normcase(os.path.normpath(path)).lower()


def is_within(key: str, root_key: str) -> bool:
    """True if normalized `key` is `root_key` itself or lies beneath it."""
    if key == root_key:
        return True
    prefix = root_key if root_key.endswith(os.sep) else root_key + os.sep
    return key.startswith(prefix)


def expand_home(path: str) -> str:
    """Expand a leading `~` or `~/` to the current user's home directory."""
    if path == "~" or path.startswith("~/") or path.startswith("~" + os.sep):
        return str(Path.home()) + path[1:]
    return path


def has_hidden_segment(path: str) -> bool:
    return any(part.startswith(".") for part in _SEGMENT_SPLIT.split(path))


class SandboxValidator:
    """Admits or rejects candidate paths against an immutable Root Set."""

    def __init__(self, roots: Iterable["VaultRoot"]) -> None:
        self._roots: Tuple["VaultRoot", ...] = tuple(roots)
        if not self._roots:
            raise AccessDenied("Access denied - no allowed directories configured")

    @property
    def roots(self) -> Tuple["VaultRoot", ...]:
        return self._roots

    def is_allowed(self, path: str) -> bool:
        key = normalize_path(path)
        return any(is_within(key, root.key) for root in self._roots)

    def contains_real(self, real_path: Path) -> bool:
        """Exact containment for a symlink-resolved path; case is significant here."""
        return any(real_path == root.path or real_path.is_relative_to(root.path) for root in self._roots)

    def _allowed_str(self) -> str:
        return ", ".join(str(root.path) for root in self._roots)

    def validate(self, requested_path: str) -> Path:
        """
        Resolve `requested_path` and verify it stays inside the vault roots.

        Existing paths are returned symlink-resolved. A path that does not
        exist yet is returned in absolute form below its resolved parent, so
        new files always land inside a root's real directory tree.
        """
        requested = str(requested_path)
        if has_hidden_segment(requested):
            raise AccessDenied("Access denied - hidden files/directories not allowed")

        absolute = os.path.abspath(expand_home(requested))
        if not self.is_allowed(absolute):
            raise AccessDenied(
                f"Access denied - path outside allowed directories: {absolute} not in {self._allowed_str()}"
            )

        try:
            real_path = Path(absolute).resolve(strict=True)
        except FileNotFoundError:
            return self._validate_new(Path(absolute))
        except (OSError, RuntimeError, ValueError) as exc:
            raise AccessDenied(f"Access denied - cannot resolve {absolute}: {exc}") from exc

        if not self.contains_real(real_path):
            raise AccessDenied("Access denied - symlink target outside allowed directories")
        return real_path

    def _validate_new(self, absolute: Path) -> Path:
        if absolute.is_symlink():
            # Dangling link: whatever gets created lands at its target.
            try:
                target = absolute.resolve(strict=False)
            except (OSError, RuntimeError, ValueError) as exc:
                raise AccessDenied(f"Access denied - cannot resolve {absolute}: {exc}") from exc
            if not self.contains_real(target):
                raise AccessDenied("Access denied - symlink target outside allowed directories")

        parent = absolute.parent
        try:
            real_parent = parent.resolve(strict=True)
        except ValueError as exc:
            raise AccessDenied(f"Access denied - cannot resolve {parent}: {exc}") from exc
        except (OSError, RuntimeError) as exc:
            raise ParentMissing(f"Parent directory does not exist: {parent}") from exc

        if not self.contains_real(real_parent):
            raise AccessDenied("Access denied - parent directory outside allowed directories")
        logger.debug("Admitting new path %s under %s", absolute.name, real_parent)
        return real_parent / absolute.name
