from __future__ import annotations

import asyncio
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Pattern

from .config import DEFAULT_SEARCH_LIMIT, VaultConfig, VaultRoot
from .errors import VaultError
from .security import SandboxValidator

logger = logging.getLogger(__name__)

NO_MATCHES = "No matches found"


def wildcard_to_regex(query: str) -> Optional[Pattern[str]]:
    """Compile `query` with `*` as "any sequence"; other characters match literally."""
    pattern = ".*".join(re.escape(part) for part in query.split("*"))
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error:
        return None


@dataclass
class QueryMatcher:
    """Layered filename matcher: substring, then wildcard, then any keyword."""

    query: str
    _needle: str = field(init=False)
    _regex: Optional[Pattern[str]] = field(init=False)
    _keywords: List[str] = field(init=False)

    def __post_init__(self) -> None:
        self._needle = self.query.lower()
        self._regex = wildcard_to_regex(self.query)
        self._keywords = [k for k in self._needle.split() if k]

    def matches(self, name: str) -> bool:
        folded = name.lower()
        if self._needle in folded:
            return True
        if self._regex is not None and self._regex.search(name):
            return True
        return any(keyword in folded for keyword in self._keywords)


class SearchEngine:
    """Walks every vault root and collects notes whose file name matches a query."""

    def __init__(self, config: VaultConfig, validator: Optional[SandboxValidator] = None) -> None:
        self.config = config
        self.validator = validator or SandboxValidator(config.roots)

    async def search(self, query: str) -> List[str]:
        matcher = QueryMatcher(query)
        per_root = await asyncio.gather(
            *(asyncio.to_thread(self._search_root, root, matcher) for root in self.config.roots)
        )
        results: List[str] = []
        for matches in per_root:
            results.extend(matches)
        logger.debug("Query %r matched %d notes", query, len(results))
        return results

    def _list_dir(self, directory: str) -> Iterator[os.DirEntry]:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as exc:
            logger.debug("Skipping unreadable directory %s: %s", directory, exc)
            return iter(())
        return iter(entries)

    def _search_root(self, root: VaultRoot, matcher: QueryMatcher) -> List[str]:
        base = str(root.path)
        results: List[str] = []
        stack: List[Iterator[os.DirEntry]] = [self._list_dir(base)]

        while stack:
            entry = next(stack[-1], None)
            if entry is None:
                stack.pop()
                continue

            try:
                self.validator.validate(entry.path)
            except VaultError as exc:
                logger.debug("Skipping %s: %s", entry.path, exc)
                continue

            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_note = entry.name.endswith(self.config.note_extension) and entry.is_file()
            except OSError as exc:
                logger.debug("Skipping %s: %s", entry.path, exc)
                continue

            if is_note and matcher.matches(entry.name):
                results.append(entry.path[len(base):])
            if is_dir:
                stack.append(self._list_dir(entry.path))

        return results


def format_search_results(results: List[str], limit: int = DEFAULT_SEARCH_LIMIT) -> str:
    """Render matches for the caller, truncated to `limit` with a trailing notice."""
    shown = results[:limit]
    text = "\n".join(shown) if shown else NO_MATCHES
    if len(results) > limit:
        text += f"\n\n... {len(results) - limit} more results not shown."
    return text
