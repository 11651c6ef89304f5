"""Plugin data models: components, sources, registry records, results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Union


class Scope(str, Enum):
    USER = "user"
    PROJECT = "project"


class ComponentType(str, Enum):
    COMMAND = "command"
    AGENT = "agent"
    SKILL = "skill"

    @property
    def plural(self) -> str:
        return f"{self.value}s"


# Registry lists and uninstall both walk the types in this order.
COMPONENT_TYPES = (ComponentType.COMMAND, ComponentType.AGENT, ComponentType.SKILL)


def target_name_for(plugin_name: str, original_name: str) -> str:
    """Namespaced install name: ``{plugin}--{original}``."""
    return f"{plugin_name}--{original_name}"


@dataclass(frozen=True)
class PluginIdentity:
    name: str
    hash: str


@dataclass(frozen=True)
class DiscoveredComponent:
    """A component found in a plugin source, before installation."""

    type: ComponentType
    source_path: Path
    name: str
    target_name: str


@dataclass(frozen=True)
class LocalSource:
    path: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "local", "path": self.path}

    def describe(self) -> str:
        return self.path


@dataclass(frozen=True)
class RemoteSource:
    url: str
    ref: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": "remote", "url": self.url}
        if self.ref:
            data["ref"] = self.ref
        return data

    def describe(self) -> str:
        return f"{self.url}#{self.ref}" if self.ref else self.url


PluginSource = Union[LocalSource, RemoteSource]


def source_from_dict(data: dict[str, Any]) -> PluginSource:
    kind = data.get("type")
    if kind == "local":
        return LocalSource(path=str(data["path"]))
    if kind == "remote":
        ref = data.get("ref")
        return RemoteSource(url=str(data["url"]), ref=str(ref) if ref else None)
    raise ValueError(f"unknown plugin source type: {kind!r}")


@dataclass
class InstalledComponents:
    commands: list[str] = field(default_factory=list)
    agents: list[str] = field(default_factory=list)
    skills: list[str] = field(default_factory=list)

    def names_for(self, ctype: ComponentType) -> list[str]:
        return getattr(self, ctype.plural)

    def all_targets(self) -> list[tuple[ComponentType, str]]:
        """(type, target name) pairs: commands, then agents, then skills."""
        return [(ctype, name) for ctype in COMPONENT_TYPES for name in self.names_for(ctype)]

    @property
    def total(self) -> int:
        return len(self.commands) + len(self.agents) + len(self.skills)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "commands": list(self.commands),
            "agents": list(self.agents),
            "skills": list(self.skills),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InstalledComponents:
        def _names(key: str) -> list[str]:
            values = data.get(key, [])
            if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
                raise ValueError(f"components.{key} must be a list of strings")
            return list(values)

        return cls(commands=_names("commands"), agents=_names("agents"), skills=_names("skills"))


@dataclass
class InstalledPlugin:
    """A registry record: what the latest install of a plugin produced."""

    name: str
    hash: str
    scope: Scope
    source: PluginSource
    installed_at: str
    components: InstalledComponents = field(default_factory=InstalledComponents)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "hash": self.hash,
            "scope": self.scope.value,
            "source": self.source.to_dict(),
            "installedAt": self.installed_at,
            "components": self.components.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InstalledPlugin:
        return cls(
            name=str(data["name"]),
            hash=str(data["hash"]),
            scope=Scope(data["scope"]),
            source=source_from_dict(data["source"]),
            installed_at=str(data["installedAt"]),
            components=InstalledComponents.from_dict(data.get("components", {})),
        )

    @property
    def identity(self) -> PluginIdentity:
        return PluginIdentity(name=self.name, hash=self.hash)


REGISTRY_VERSION = 2


@dataclass
class PluginRegistry:
    version: int = REGISTRY_VERSION
    plugins: dict[str, InstalledPlugin] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "plugins": {name: p.to_dict() for name, p in self.plugins.items()},
        }


# ── Operation results ───────────────────────────────────────────────


class InstallStatus(str, Enum):
    INSTALLED = "installed"
    UPDATED = "updated"
    SKIPPED = "skipped"


class InstallAction(str, Enum):
    INSTALL = "install"
    REINSTALL = "reinstall"
    UPDATE = "update"


@dataclass(frozen=True)
class Conflict:
    """A target path that exists and is not owned by the installing plugin."""

    component: DiscoveredComponent
    target_path: Path
    owner: str | None  # None = untracked

    def describe(self) -> str:
        label = f"{self.component.type.value}/{self.component.target_name}"
        if self.owner:
            return f'{label} already installed by plugin "{self.owner}"'
        return f"{label} exists but is untracked"


@dataclass
class InstallOptions:
    scope: Scope = Scope.USER
    force: bool = False
    interactive: bool = False
    skip_if_same_hash: bool = False
    target_dir: Path | None = None


@dataclass
class InstallResult:
    name: str
    hash: str
    scope: Scope
    status: InstallStatus
    action: InstallAction
    components: InstalledComponents = field(default_factory=InstalledComponents)
    overridden: list[Conflict] = field(default_factory=list)
    cancelled: bool = False


@dataclass
class UninstallResult:
    name: str
    scope: Scope
    removed: list[tuple[ComponentType, str]] = field(default_factory=list)
    already_deleted: list[tuple[ComponentType, str]] = field(default_factory=list)


@dataclass
class SelectionResult:
    """What the interactive picker returned."""

    selected: list[DiscoveredComponent] = field(default_factory=list)
    cancelled: bool = False


@dataclass
class ScanResult:
    name: str
    hash: str | None
    components: list[DiscoveredComponent] = field(default_factory=list)
    hash_error: str = ""

    def count(self, ctype: ComponentType) -> int:
        return sum(1 for c in self.components if c.type == ctype)
