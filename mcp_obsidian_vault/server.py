from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Sequence

from mcp.server.fastmcp import FastMCP

from .config import VaultConfig, default_log_level, load_config
from .errors import ConfigError
from .notes import NoteStore
from .search import SearchEngine, format_search_results
from .security import SandboxValidator

SERVER_NAME = "obsidian-vault"

logger = logging.getLogger(__name__)


def create_server(config: VaultConfig) -> FastMCP:
    """Build a FastMCP server whose tools are bound to `config`'s Root Set."""
    server = FastMCP(SERVER_NAME)
    validator = SandboxValidator(config.roots)
    notes = NoteStore(config, validator)
    engine = SearchEngine(config, validator)

    @server.tool()
    async def read_notes(paths: List[str]) -> str:
        """
        Read the contents of multiple notes. Each note's content is returned with its
        path as a reference. Failed reads for individual notes won't stop
        the entire operation. Reading too many at once may result in an error.
        """
        return await notes.read_notes(paths)

    @server.tool()
    async def search_notes(query: str) -> str:
        """
        Searches for a note by its name. The search is case-insensitive and
        matches partial names; `*` matches any sequence of characters and
        whitespace-separated words match notes containing any of them.
        Only .md files are listed; a directory is searched but never listed,
        even if its name ends in .md. Returns paths of the notes that match the query.
        """
        results = await engine.search(query)
        return format_search_results(results, config.search_limit)

    @server.tool()
    async def write_note(path: str, content: str, createIfNotExists: bool = True) -> str:
        """
        Write content to a note in the Obsidian vault. If the note doesn't exist,
        it will be created by default. Returns success or error message.
        """
        return await notes.write_note(path, content, create_if_not_exists=createIfNotExists)

    return server


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcp-obsidian-vault",
        description="Obsidian vault MCP server (stdio).",
    )
    parser.add_argument(
        "vaults",
        nargs="*",
        metavar="VAULT",
        help="Vault directory (repeatable; the first one anchors read/write paths). "
        "Defaults to $OBSIDIAN_VAULT_PATH.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Logging level (default: $OBSIDIAN_LOG_LEVEL or INFO).",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    _configure_logging(args.log_level or default_log_level())

    try:
        config = load_config(args.vaults)
    except ConfigError as exc:
        logger.error("%s", exc)
        sys.exit(1)

    server = create_server(config)
    logger.info("MCP Obsidian server running on stdio")
    logger.info("Allowed directories: %s", [str(root.path) for root in config.roots])
    server.run("stdio")


if __name__ == "__main__":
    main()
