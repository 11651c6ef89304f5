"""Shared fixtures: an isolated Config and a plugin source tree builder."""

from __future__ import annotations

from pathlib import Path

import pytest

from ocm.core.config import Config


@pytest.fixture
def config(tmp_path):
    project = tmp_path / "project"
    project.mkdir()
    return Config(
        cwd=project,
        config_dir=tmp_path / "config",
        skills_path=tmp_path / "agents",
    )


@pytest.fixture
def make_plugin(tmp_path):
    """Build a plugin directory from a {relative path: content} mapping."""

    def _make(name: str, files: dict[str, str | bytes], parent: Path | None = None) -> Path:
        root = (parent or tmp_path / "sources") / name
        root.mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content)
        return root

    return _make
