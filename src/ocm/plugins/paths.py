"""Install locations per scope: component directories and registry file."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .models import COMPONENT_TYPES, ComponentType, Scope

if TYPE_CHECKING:
    from ocm.core.config import Config

REGISTRY_FILE = Path("plugins") / "installed.json"


@dataclass(frozen=True)
class ScopeLayout:
    """Where one scope keeps its components and its registry.

    ``target_dir`` overrides the user-scope base for commands, agents,
    skills and the registry. Project scope ignores it.
    """

    config: Config
    scope: Scope
    target_dir: Path | None = None

    @property
    def base_dir(self) -> Path:
        if self.scope == Scope.PROJECT:
            return self.config.project_dir
        return self.target_dir or self.config.config_dir

    @property
    def registry_path(self) -> Path:
        return self.base_dir / REGISTRY_FILE

    def component_dir(self, ctype: ComponentType) -> Path:
        if self.scope == Scope.USER and ctype == ComponentType.SKILL and self.target_dir is None:
            return self.config.user_skills_dir
        return self.base_dir / ctype.plural

    def target_path(self, ctype: ComponentType, target_name: str) -> Path:
        return self.component_dir(ctype) / target_name

    def ensure_component_dirs(self) -> None:
        """Create commands/, agents/ and skills/ if missing. Idempotent."""
        for ctype in COMPONENT_TYPES:
            self.component_dir(ctype).mkdir(parents=True, exist_ok=True)
