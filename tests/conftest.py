from __future__ import annotations

from pathlib import Path

import pytest

from mcp_obsidian_vault.config import VaultConfig, load_config


@pytest.fixture
def vault_dir(tmp_path: Path) -> Path:
    vault = tmp_path / "vault"
    vault.mkdir()
    return vault.resolve()


@pytest.fixture
def outside_dir(tmp_path: Path) -> Path:
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "secret.md").write_text("secret", encoding="utf-8")
    return outside.resolve()


@pytest.fixture
def config(vault_dir: Path) -> VaultConfig:
    return load_config([str(vault_dir)], search_limit=200)
