"""Plugin lifecycle: install, uninstall, update, scan, list.

Install runs through fixed stages (resolving, discovering, hashing,
conflict checking, copying, registry updating). Nothing is written before
the copying stage, so every validation or conflict failure leaves the
filesystem and the registry untouched. A failure while copying is not
rolled back: files already copied stay in place and the registry keeps its
previous record for the plugin.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from ocm.core.utils import short_hash

from .conflicts import detect_conflicts, release_ownership
from .discovery import discover_components, expected_directories
from .errors import (
    ConflictError,
    CopyError,
    DeletionError,
    HashComputationError,
    NoComponentsFoundError,
    NotInstalledError,
    OcmError,
    SourceNotFoundError,
    UpdateNotSupportedError,
)
from .identity import compute_plugin_hash, infer_plugin_name
from .models import (
    ComponentType,
    DiscoveredComponent,
    InstallAction,
    InstalledComponents,
    InstalledPlugin,
    InstallOptions,
    InstallResult,
    InstallStatus,
    PluginIdentity,
    RemoteSource,
    ScanResult,
    Scope,
    SelectionResult,
    UninstallResult,
)
from .paths import ScopeLayout
from .registry import load_registry, save_registry
from .sources import AcquiredSource, acquire_source

if TYPE_CHECKING:
    from ocm.core.config import Config

    from .models import PluginRegistry

logger = logging.getLogger(__name__)

Selector = Callable[[str, list[DiscoveredComponent]], SelectionResult]


class InstallStage(str, Enum):
    RESOLVING = "resolving"
    DISCOVERING = "discovering"
    HASHING = "hashing"
    CONFLICT_CHECKING = "conflict-checking"
    COPYING = "copying"
    REGISTRY_UPDATING = "registry-updating"
    DONE = "done"


def _remove_path(path: Path) -> None:
    """Delete a file, symlink or directory tree. Raises FileNotFoundError if absent."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def _copy_component(component: DiscoveredComponent, target: Path) -> None:
    # Replace rather than merge so the target mirrors the source exactly.
    try:
        _remove_path(target)
    except FileNotFoundError:
        pass
    if component.type == ComponentType.SKILL:
        shutil.copytree(component.source_path, target, symlinks=True)
    else:
        shutil.copy2(component.source_path, target)


def _select(select: Selector | None, plugin_name: str, components: list[DiscoveredComponent]):
    if select is None:
        from ocm.tui.component_picker import pick_components_tui

        select = pick_components_tui
    try:
        return select(plugin_name, components)
    except KeyboardInterrupt:
        return SelectionResult(selected=[], cancelled=True)


def _remove_stale_targets(
    previous: InstalledPlugin, installed: InstalledComponents, layout: ScopeLayout
) -> None:
    """Delete targets the previous install produced and this one did not.

    A target that cannot be deleted stays listed in the new record so the
    registry never loses track of a file that still exists.
    """
    for ctype, target_name in previous.components.all_targets():
        current = installed.names_for(ctype)
        if target_name in current:
            continue
        path = layout.target_path(ctype, target_name)
        try:
            _remove_path(path)
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning(f"Could not remove stale {ctype.value}/{target_name}: {e}")
            current.append(target_name)
            continue
        logger.debug(f"Removed stale {ctype.value}/{target_name}")


def _install_from_root(
    config: Config,
    acquired: AcquiredSource,
    options: InstallOptions,
    select: Selector | None = None,
    name: str | None = None,
) -> InstallResult:
    root = acquired.local_root
    stage = InstallStage.RESOLVING
    try:
        if not root.is_dir():
            raise SourceNotFoundError(acquired.locator)
        plugin_name = name or infer_plugin_name(
            root, acquired.locator if acquired.is_remote else None
        )
        logger.debug(f"Resolved plugin name: {plugin_name}")
        layout = ScopeLayout(config, options.scope, options.target_dir)

        stage = InstallStage.DISCOVERING
        components = discover_components(root, plugin_name)
        if not components:
            raise NoComponentsFoundError(acquired.locator, expected_directories())
        logger.debug(f"Found {len(components)} component(s)")

        stage = InstallStage.HASHING
        plugin_hash = compute_plugin_hash(components)
        logger.debug(f"Plugin hash: {plugin_hash}")

        registry = load_registry(layout)
        existing = registry.plugins.get(plugin_name)
        if existing is None:
            action = InstallAction.INSTALL
        elif existing.hash == plugin_hash:
            action = InstallAction.REINSTALL
            logger.debug("Reinstalling existing plugin (same hash)")
        else:
            action = InstallAction.UPDATE
            logger.debug(
                f"Updating plugin from [{short_hash(existing.hash)}] to [{short_hash(plugin_hash)}]"
            )

        if options.skip_if_same_hash and existing is not None and action == InstallAction.REINSTALL:
            # Bulk import path: identical content means no writes at all.
            logger.debug(f"Skipping {plugin_name}: already installed with the same hash")
            return InstallResult(
                name=plugin_name,
                hash=plugin_hash,
                scope=options.scope,
                status=InstallStatus.SKIPPED,
                action=action,
                components=existing.components,
            )

        if options.interactive:
            selection = _select(select, plugin_name, components)
            if selection.cancelled or not selection.selected:
                logger.debug("Nothing selected; installation skipped")
                return InstallResult(
                    name=plugin_name,
                    hash=plugin_hash,
                    scope=options.scope,
                    status=InstallStatus.SKIPPED,
                    action=action,
                    cancelled=selection.cancelled,
                )
            components = selection.selected

        stage = InstallStage.CONFLICT_CHECKING
        conflicts = detect_conflicts(components, plugin_name, registry, layout)
        if conflicts and not options.force:
            raise ConflictError(plugin_name, conflicts)
        if conflicts:
            logger.debug(f"Overriding {len(conflicts)} conflicting file(s) with --force")

        stage = InstallStage.COPYING
        layout.ensure_component_dirs()
        installed = InstalledComponents()
        for component in sorted(components, key=lambda c: c.name):
            target = layout.target_path(component.type, component.target_name)
            _copy_component(component, target)
            installed.names_for(component.type).append(component.target_name)
            logger.debug(f"Copied {component.type.value}/{component.target_name}")
        if existing is not None:
            _remove_stale_targets(existing, installed, layout)

        stage = InstallStage.REGISTRY_UPDATING
        release_ownership(registry, conflicts)
        registry.plugins[plugin_name] = InstalledPlugin(
            name=plugin_name,
            hash=plugin_hash,
            scope=options.scope,
            source=acquired.source,
            installed_at=datetime.now(timezone.utc).isoformat(),
            components=installed,
        )
        save_registry(registry, layout)
        stage = InstallStage.DONE
    except (OcmError, OSError) as e:
        logger.debug(f"Install failed while {stage.value}: {e}")
        if stage == InstallStage.COPYING and not isinstance(e, OcmError):
            raise CopyError(e) from e
        raise

    return InstallResult(
        name=plugin_name,
        hash=plugin_hash,
        scope=options.scope,
        status=InstallStatus.UPDATED if action == InstallAction.UPDATE else InstallStatus.INSTALLED,
        action=action,
        components=installed,
        overridden=conflicts,
    )


def install_plugin(
    config: Config,
    source: str,
    options: InstallOptions | None = None,
    select: Selector | None = None,
) -> InstallResult:
    """Install a plugin from a local directory or a GitHub URL.

    *select* narrows the component set when ``options.interactive`` is set;
    it defaults to the terminal picker.
    """
    options = options or InstallOptions()
    with acquire_source(source) as acquired:
        return _install_from_root(config, acquired, options, select)


def uninstall_plugin(
    config: Config,
    name: str,
    scope: Scope = Scope.USER,
    target_dir: Path | None = None,
) -> UninstallResult:
    """Delete a plugin's installed components, then drop its registry record.

    Targets that are already gone are reported, not treated as errors. Any
    other deletion failure aborts before the registry is touched.
    """
    layout = ScopeLayout(config, scope, target_dir)
    registry = load_registry(layout)
    plugin = registry.plugins.get(name)
    if plugin is None:
        raise NotInstalledError(name, scope.value)

    result = UninstallResult(name=name, scope=scope)
    for ctype, target_name in plugin.components.all_targets():
        path = layout.target_path(ctype, target_name)
        try:
            _remove_path(path)
        except FileNotFoundError:
            logger.debug(f"Already deleted: {ctype.value}/{target_name}")
            result.already_deleted.append((ctype, target_name))
            continue
        except OSError as e:
            raise DeletionError(path, e) from e
        logger.debug(f"Deleted {ctype.value}/{target_name}")
        result.removed.append((ctype, target_name))

    del registry.plugins[name]
    save_registry(registry, layout)
    return result


def update_plugin(
    config: Config,
    name: str,
    scope: Scope = Scope.USER,
    target_dir: Path | None = None,
) -> InstallResult:
    """Re-fetch a remote plugin and reinstall it if its content hash changed."""
    layout = ScopeLayout(config, scope, target_dir)
    plugin = load_registry(layout).plugins.get(name)
    if plugin is None:
        raise NotInstalledError(name, scope.value)
    if not isinstance(plugin.source, RemoteSource):
        raise UpdateNotSupportedError(name)

    with acquire_source(plugin.source.url) as acquired:
        if not acquired.local_root.is_dir():
            raise SourceNotFoundError(acquired.locator)
        new_hash = compute_plugin_hash(discover_components(acquired.local_root, name))
        if PluginIdentity(name=name, hash=new_hash) == plugin.identity:
            logger.debug(f"{name} is already up to date [{short_hash(new_hash)}]")
            return InstallResult(
                name=name,
                hash=new_hash,
                scope=scope,
                status=InstallStatus.SKIPPED,
                action=InstallAction.REINSTALL,
                components=plugin.components,
            )
        logger.debug(f"Hash changed: {short_hash(plugin.hash)} -> {short_hash(new_hash)}")
        options = InstallOptions(scope=scope, force=True, target_dir=target_dir)
        return _install_from_root(config, acquired, options, name=name)


def scan_plugin(source: str) -> ScanResult:
    """Dry run: resolve, discover and hash without writing anything."""
    with acquire_source(source) as acquired:
        root = acquired.local_root
        if not root.is_dir():
            raise SourceNotFoundError(acquired.locator)
        name = infer_plugin_name(root, acquired.locator if acquired.is_remote else None)
        components = discover_components(root, name)
        try:
            plugin_hash = compute_plugin_hash(components)
        except HashComputationError as e:
            logger.warning(f"Failed to compute hash: {e}")
            return ScanResult(name=name, hash=None, components=components, hash_error=str(e))
        logger.debug(f"Computed hash: {plugin_hash}")
        return ScanResult(name=name, hash=plugin_hash, components=components)


def list_plugins(
    config: Config, scope: Scope | None = None, target_dir: Path | None = None
) -> dict[Scope, list[InstalledPlugin]]:
    """Installed plugins per scope (user first), sorted by name."""
    scopes = [scope] if scope is not None else [Scope.USER, Scope.PROJECT]
    result: dict[Scope, list[InstalledPlugin]] = {}
    for s in scopes:
        registry: PluginRegistry = load_registry(ScopeLayout(config, s, target_dir))
        result[s] = sorted(registry.plugins.values(), key=lambda p: p.name)
    return result
