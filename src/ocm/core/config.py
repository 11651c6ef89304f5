"""Configuration: env, config dir, skills base, target dir override."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

CONFIG_FILE_NAME = "ocm-config.json"
IMPORT_FILE_NAME = "ocm-import.json"

# Project scope always lives under this directory of the working tree.
PROJECT_DIR_NAME = ".opencode"


def _default_config_dir() -> Path:
    return Path.home() / ".config" / "opencode"


def _default_skills_path() -> Path:
    return Path.home() / ".agents"


@dataclass
class Config:
    cwd: Path = field(default_factory=Path.cwd)
    config_dir: Path = field(default_factory=_default_config_dir)
    skills_path: Path = field(default_factory=_default_skills_path)
    verbose: bool = False

    @property
    def config_file(self) -> Path:
        return self.config_dir / CONFIG_FILE_NAME

    @property
    def import_file(self) -> Path:
        return self.config_dir / IMPORT_FILE_NAME

    @property
    def project_dir(self) -> Path:
        return self.cwd / PROJECT_DIR_NAME

    @property
    def user_skills_dir(self) -> Path:
        return self.skills_path / "skills"


def _expand_home(value: str) -> Path:
    if value == "~" or value.startswith("~/"):
        return Path.home() / value[2:]
    return Path(value)


def _apply_settings(config: Config, path: Path) -> None:
    """Apply ocm-config.json to config. Only ``skillsPath`` is read."""
    if not path.exists():
        return
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return
    if not isinstance(data, dict):
        return
    skills_path = data.get("skillsPath")
    if isinstance(skills_path, str) and skills_path:
        config.skills_path = _expand_home(skills_path)


def load_config(
    cwd: Path | None = None,
    verbose: bool = False,
    agents: bool = False,
) -> Config:
    """Load config with priority: CLI args > env > ocm-config.json > .env > defaults.

    ``agents`` forces user-scope skills into the default ``~/.agents/skills``
    regardless of what ocm-config.json says.
    """
    load_dotenv()

    config = Config()
    config.verbose = verbose
    if cwd is not None:
        config.cwd = cwd

    if env_dir := os.getenv("OCM_CONFIG_DIR"):
        config.config_dir = _expand_home(env_dir)

    _apply_settings(config, config.config_file)

    if env_skills := os.getenv("OCM_SKILLS_PATH"):
        config.skills_path = _expand_home(env_skills)

    if agents:
        config.skills_path = _default_skills_path()

    return config
