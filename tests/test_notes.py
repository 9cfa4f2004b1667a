from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from mcp_obsidian_vault.config import VaultConfig
from mcp_obsidian_vault.errors import AccessDenied, NoteNotFound, ParentMissing
from mcp_obsidian_vault.notes import ENTRY_SEPARATOR, NoteStore, ReadResult


@pytest.fixture
def store(config: VaultConfig) -> NoteStore:
    return NoteStore(config)


def test_write_then_read_round_trip(store: NoteStore) -> None:
    content = "# Title\r\nline one\nlinje två\n"
    asyncio.run(store.write_note("round.md", content))
    assert asyncio.run(store.read_notes(["round.md"])) == f"round.md:\n{content}\n"


def test_write_reports_created_then_updated(store: NoteStore, vault_dir: Path) -> None:
    assert asyncio.run(store.write_note("idea.md", "v1")) == "Successfully created note: idea.md"
    assert asyncio.run(store.write_note("idea.md", "v2")) == "Successfully updated note: idea.md"
    assert (vault_dir / "idea.md").read_text(encoding="utf-8") == "v2"


def test_write_without_create_flag_fails_without_mutation(store: NoteStore, vault_dir: Path) -> None:
    with pytest.raises(NoteNotFound, match="Failed to write note: File does not exist: ghost.md"):
        asyncio.run(store.write_note("ghost.md", "boo", create_if_not_exists=False))
    assert not (vault_dir / "ghost.md").exists()
    assert list(vault_dir.iterdir()) == []


def test_write_without_create_flag_updates_existing(store: NoteStore, vault_dir: Path) -> None:
    (vault_dir / "kept.md").write_text("old", encoding="utf-8")
    result = asyncio.run(store.write_note("kept.md", "new", create_if_not_exists=False))
    assert result == "Successfully updated note: kept.md"
    assert (vault_dir / "kept.md").read_text(encoding="utf-8") == "new"


def test_write_strips_leading_separator(store: NoteStore, vault_dir: Path) -> None:
    (vault_dir / "daily").mkdir()
    asyncio.run(store.write_note("/daily/today.md", "hi"))
    assert (vault_dir / "daily" / "today.md").read_text(encoding="utf-8") == "hi"


def test_write_hidden_path_denied(store: NoteStore, vault_dir: Path) -> None:
    with pytest.raises(AccessDenied, match="Failed to write note: Access denied"):
        asyncio.run(store.write_note(".obsidian/app.md", "{}"))
    assert not (vault_dir / ".obsidian").exists()


def test_write_missing_parent_fails(store: NoteStore) -> None:
    with pytest.raises(ParentMissing, match="Failed to write note"):
        asyncio.run(store.write_note("a/b/c.md", "deep"))


def test_write_through_escaping_symlink_denied(store: NoteStore, vault_dir: Path, outside_dir: Path) -> None:
    (vault_dir / "link.md").symlink_to(outside_dir / "secret.md")
    with pytest.raises(AccessDenied):
        asyncio.run(store.write_note("link.md", "overwritten"))
    assert (outside_dir / "secret.md").read_text(encoding="utf-8") == "secret"


def test_read_mixed_batch_reports_inline_errors(store: NoteStore, vault_dir: Path) -> None:
    (vault_dir / "good.md").write_text("fine", encoding="utf-8")
    text = asyncio.run(store.read_notes(["good.md", "../outside/secret.md"]))
    good, bad = text.split(ENTRY_SEPARATOR)
    assert good == "good.md:\nfine\n"
    assert bad.startswith("../outside/secret.md: Error - Access denied")


def test_read_symlink_escape_reports_inline_error(store: NoteStore, vault_dir: Path, outside_dir: Path) -> None:
    (vault_dir / "leak.md").symlink_to(outside_dir / "secret.md")
    text = asyncio.run(store.read_notes(["leak.md"]))
    assert text.startswith("leak.md: Error - Access denied")
    assert "secret\n" not in text


def test_read_preserves_requested_order(store: NoteStore, vault_dir: Path) -> None:
    names = [f"n{i}.md" for i in range(8)]
    for name in names:
        (vault_dir / name).write_text(name.upper(), encoding="utf-8")
    requested = list(reversed(names)) + ["missing.md"]
    results = asyncio.run(store.read_many(requested))
    assert [r.path for r in results] == requested
    assert [r.content for r in results[:-1]] == [name.upper() for name in reversed(names)]
    assert results[-1].error is not None


def test_read_leading_separator_and_directory(store: NoteStore, vault_dir: Path) -> None:
    (vault_dir / "top.md").write_text("top", encoding="utf-8")
    (vault_dir / "folder").mkdir()
    results = asyncio.run(store.read_many(["/top.md", "folder"]))
    assert results[0].content == "top"
    assert results[1].error is not None


def test_read_result_rendering() -> None:
    assert ReadResult(path="a.md", content="x").as_text() == "a.md:\nx\n"
    assert ReadResult(path="a.md", error="boom").as_text() == "a.md: Error - boom"


def test_read_batch_with_null_byte_keeps_siblings(store: NoteStore, vault_dir: Path) -> None:
    (vault_dir / "good.md").write_text("fine", encoding="utf-8")
    results = asyncio.run(store.read_many(["good.md", "bad\x00.md"]))
    assert results[0].content == "fine"
    assert results[1].error is not None and results[1].error.startswith("Access denied")
    text = asyncio.run(store.read_notes(["good.md", "bad\x00.md"]))
    assert len(text.split(ENTRY_SEPARATOR)) == 2


def test_write_with_null_byte_is_wrapped(store: NoteStore) -> None:
    with pytest.raises(AccessDenied, match="Failed to write note: Access denied"):
        asyncio.run(store.write_note("bad\x00.md", "x"))


def test_read_through_link_to_case_variant_sibling_denied(store: NoteStore, vault_dir: Path) -> None:
    sibling = vault_dir.parent / vault_dir.name.upper()
    try:
        sibling.mkdir()
    except FileExistsError:
        pytest.skip("filesystem is case-insensitive")
    (sibling / "secret.md").write_text("TOPSECRET", encoding="utf-8")
    (vault_dir / "leak.md").symlink_to(sibling / "secret.md")
    text = asyncio.run(store.read_notes(["leak.md"]))
    assert text.startswith("leak.md: Error - Access denied")
    assert "TOPSECRET" not in text
