"""Conflict detection: who owns each target path a plugin wants to write."""

from __future__ import annotations

from .models import ComponentType, Conflict, DiscoveredComponent, PluginRegistry
from .paths import ScopeLayout


def find_owning_plugin(
    registry: PluginRegistry, ctype: ComponentType, target_name: str
) -> str | None:
    """Name of the plugin whose record lists *target_name*, or None if untracked."""
    for name, plugin in registry.plugins.items():
        if target_name in plugin.components.names_for(ctype):
            return name
    return None


def detect_conflicts(
    components: list[DiscoveredComponent],
    plugin_name: str,
    registry: PluginRegistry,
    layout: ScopeLayout,
) -> list[Conflict]:
    """Every occupied target not owned by *plugin_name*. Scans all components."""
    conflicts: list[Conflict] = []
    for component in components:
        target = layout.target_path(component.type, component.target_name)
        if not (target.exists() or target.is_symlink()):
            continue
        owner = find_owning_plugin(registry, component.type, component.target_name)
        if owner != plugin_name:
            conflicts.append(Conflict(component=component, target_path=target, owner=owner))
    return conflicts


def release_ownership(registry: PluginRegistry, conflicts: list[Conflict]) -> None:
    """Drop overwritten targets from their previous owners' records."""
    for conflict in conflicts:
        if conflict.owner is None or conflict.owner not in registry.plugins:
            continue
        names = registry.plugins[conflict.owner].components.names_for(conflict.component.type)
        if conflict.component.target_name in names:
            names.remove(conflict.component.target_name)
