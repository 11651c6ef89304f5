"""Installed-plugin registry: one JSON file per scope, written atomically."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .models import REGISTRY_VERSION, InstalledPlugin, PluginRegistry, Scope
from .paths import ScopeLayout

if TYPE_CHECKING:
    from ocm.core.config import Config

logger = logging.getLogger(__name__)


def _parse_registry(data: Any) -> PluginRegistry:
    if not isinstance(data, dict) or not isinstance(data.get("plugins"), dict):
        raise ValueError("expected an object with a 'plugins' mapping")
    plugins: dict[str, InstalledPlugin] = {}
    for key, record in data["plugins"].items():
        if not isinstance(record, dict):
            raise ValueError(f"plugin record {key!r} is not an object")
        plugin = InstalledPlugin.from_dict(record)
        if plugin.name != key:
            raise ValueError(f"plugin record {key!r} is named {plugin.name!r}")
        plugins[key] = plugin
    return PluginRegistry(version=REGISTRY_VERSION, plugins=plugins)


def load_registry(layout: ScopeLayout) -> PluginRegistry:
    """Load the registry for a scope.

    A missing file is an empty registry. Obsolete schema versions and
    unreadable content are reported and also read as empty; they never
    raise.
    """
    path = layout.registry_path
    if not path.exists():
        return PluginRegistry()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
        logger.error(f"Error loading registry from {path}: {e}")
        return PluginRegistry()

    version = data.get("version") if isinstance(data, dict) else None
    if isinstance(version, int) and version < REGISTRY_VERSION:
        logger.warning(
            f"Registry v{version} detected at {path}. "
            f"Please reinstall plugins for v{REGISTRY_VERSION} compatibility."
        )
        return PluginRegistry()
    if version != REGISTRY_VERSION:
        logger.error(f"Error loading registry from {path}: unsupported version {version!r}")
        return PluginRegistry()

    try:
        return _parse_registry(data)
    except (KeyError, TypeError, ValueError) as e:
        logger.error(f"Error loading registry from {path}: {e}")
        return PluginRegistry()


def _atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    """Write to a temp file in the same directory, then rename over *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(data, indent=2) + "\n"
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp", prefix=f".{path.stem}-")
    closed = False
    try:
        os.write(fd, content.encode("utf-8"))
        os.fsync(fd)
        os.close(fd)
        closed = True
        os.replace(tmp_path, path)
    except BaseException:
        if not closed:
            os.close(fd)
        if Path(tmp_path).exists():
            os.unlink(tmp_path)
        raise


def save_registry(registry: PluginRegistry, layout: ScopeLayout) -> None:
    _atomic_write_json(layout.registry_path, registry.to_dict())


def get_installed_plugin(name: str, layout: ScopeLayout) -> InstalledPlugin | None:
    return load_registry(layout).plugins.get(name)


def get_all_installed_plugins(
    config: Config, scope: Scope | None = None, target_dir: Path | None = None
) -> list[InstalledPlugin]:
    """All plugins for *scope*, or both scopes merged by name (project wins)."""
    if scope is not None:
        return list(load_registry(ScopeLayout(config, scope, target_dir)).plugins.values())

    merged: dict[str, InstalledPlugin] = {}
    for s in (Scope.USER, Scope.PROJECT):
        for plugin in load_registry(ScopeLayout(config, s, target_dir)).plugins.values():
            merged[plugin.name] = plugin
    return list(merged.values())
