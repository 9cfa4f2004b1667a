from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .config import VaultConfig
from .errors import IOFailure, NoteNotFound, VaultError
from .security import SandboxValidator

logger = logging.getLogger(__name__)

ENTRY_SEPARATOR = "\n---\n"


@dataclass(slots=True)
class ReadResult:
    """Outcome of reading one requested note."""

    path: str
    content: Optional[str] = None
    error: Optional[str] = None

    def as_text(self) -> str:
        if self.error is not None:
            return f"{self.path}: Error - {self.error}"
        return f"{self.path}:\n{self.content}\n"


def _strip_leading_separators(path: str) -> str:
    return path.lstrip("/\\")


class NoteStore:
    """Read and write notes relative to the primary vault root."""

    def __init__(self, config: VaultConfig, validator: Optional[SandboxValidator] = None) -> None:
        self.config = config
        self.validator = validator or SandboxValidator(config.roots)

    def resolve(self, note_path: str) -> Path:
        """Anchor a caller path to the primary root and validate it."""
        relative = _strip_leading_separators(note_path)
        return self.validator.validate(str(self.config.primary_root.path / relative))

    def _read_one(self, note_path: str) -> ReadResult:
        try:
            target = self.resolve(note_path)
            with target.open("r", encoding="utf-8", errors="replace", newline="") as f:
                content = f.read()
        except (VaultError, OSError) as exc:
            logger.debug("Read of %s failed: %s", note_path, exc)
            return ReadResult(path=note_path, error=str(exc))
        return ReadResult(path=note_path, content=content)

    async def read_many(self, paths: List[str]) -> List[ReadResult]:
        """Read every path concurrently; results keep the requested order."""
        return list(await asyncio.gather(*(asyncio.to_thread(self._read_one, p) for p in paths)))

    async def read_notes(self, paths: List[str]) -> str:
        results = await self.read_many(paths)
        return ENTRY_SEPARATOR.join(result.as_text() for result in results)

    def _write(self, note_path: str, content: str, create_if_not_exists: bool) -> str:
        target = self.resolve(note_path)

        existed = target.exists()
        if not existed and not create_if_not_exists:
            raise NoteNotFound(f"File does not exist: {note_path}")

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("w", encoding="utf-8", newline="") as f:
                f.write(content)
        except OSError as exc:
            raise IOFailure(str(exc)) from exc

        action = "updated" if existed else "created"
        logger.info("Note %s: %s", action, target)
        return f"Successfully {action} note: {note_path}"

    async def write_note(self, note_path: str, content: str, create_if_not_exists: bool = True) -> str:
        """
        Overwrite (or create) a note with `content`.

        Fails with NoteNotFound, without touching the filesystem, when the note
        is absent and creation is disallowed. Every failure is re-raised with a
        "Failed to write note" message but keeps its error class.
        """
        try:
            return await asyncio.to_thread(self._write, note_path, content, create_if_not_exists)
        except VaultError as exc:
            raise type(exc)(f"Failed to write note: {exc}") from exc
