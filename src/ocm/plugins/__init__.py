"""Plugins: identity, component discovery, registry, lifecycle management."""

from .discovery import discover_components
from .errors import OcmError
from .identity import compute_plugin_hash, infer_plugin_name, resolve_plugin_name
from .importer import ImportSummary, import_plugins, load_import_config
from .lifecycle import install_plugin, list_plugins, scan_plugin, uninstall_plugin, update_plugin
from .models import (
    ComponentType,
    DiscoveredComponent,
    InstalledPlugin,
    InstallOptions,
    InstallResult,
    InstallStatus,
    PluginRegistry,
    Scope,
)
from .registry import get_all_installed_plugins, load_registry, save_registry

__all__ = [
    "ComponentType",
    "DiscoveredComponent",
    "ImportSummary",
    "InstallOptions",
    "InstallResult",
    "InstallStatus",
    "InstalledPlugin",
    "OcmError",
    "PluginRegistry",
    "Scope",
    "compute_plugin_hash",
    "discover_components",
    "get_all_installed_plugins",
    "import_plugins",
    "infer_plugin_name",
    "install_plugin",
    "list_plugins",
    "load_import_config",
    "load_registry",
    "resolve_plugin_name",
    "save_registry",
    "scan_plugin",
    "uninstall_plugin",
    "update_plugin",
]
