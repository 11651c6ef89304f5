"""CLI entry point: install, uninstall, list, scan, update and import plugins."""

from __future__ import annotations

import functools
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from .core.config import load_config
from .core.utils import format_component_count, short_hash, short_path
from .plugins import (
    ComponentType,
    InstallOptions,
    InstallStatus,
    OcmError,
    Scope,
    import_plugins,
    install_plugin,
    list_plugins,
    load_import_config,
    scan_plugin,
    uninstall_plugin,
    update_plugin,
)
from .plugins.discovery import expected_directories

console = Console()
err_console = Console(stderr=True)

SCOPE_CHOICE = click.Choice([s.value for s in Scope])


# ── Shared plumbing ─────────────────────────────────────────────────


def _configure_logging(verbose: bool) -> None:
    handler = RichHandler(console=err_console, show_time=False, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    log = logging.getLogger("ocm")
    log.handlers = [handler]
    log.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _fail(e: OcmError | OSError, verbose: bool = False) -> None:
    err_console.print(f"error: {e}", style="bold", markup=False, highlight=False)
    hint = getattr(e, "hint", "")
    if hint:
        err_console.print(hint, style="dim", markup=False, highlight=False)
    if verbose and not isinstance(e, OcmError):
        err_console.print_exception()
    sys.exit(1)


def _common_options(fn):
    @click.option("--verbose", "-v", is_flag=True, help="Trace every step")
    @click.option(
        "--agents", is_flag=True, help="Install user-scope skills into ~/.agents/skills"
    )
    @functools.wraps(fn)
    def wrapper(*args, verbose: bool, agents: bool, **kwargs):
        _configure_logging(verbose)
        config = load_config(verbose=verbose, agents=agents)
        return fn(config, *args, **kwargs)

    return wrapper


def _target_dir_option(fn):
    return click.option(
        "--target-dir",
        type=click.Path(file_okay=False, path_type=Path),
        default=None,
        help="Install user-scope components under this directory instead",
    )(fn)


def _counts(components) -> str:
    return format_component_count(
        len(components.commands), len(components.agents), len(components.skills)
    ) or "no components"


# ── Commands ────────────────────────────────────────────────────────


@click.group()
@click.version_option(package_name="opencode-marketplace", prog_name="ocm")
def cli() -> None:
    """Install OpenCode plugins (commands, agents, skills) from local dirs or GitHub."""


@cli.command()
@click.argument("source")
@click.option("--scope", "-s", type=SCOPE_CHOICE, default="user", show_default=True)
@click.option("--force", "-f", is_flag=True, help="Overwrite conflicting files")
@click.option("--interactive", "-i", is_flag=True, help="Choose components to install")
@_target_dir_option
@_common_options
def install(config, source: str, scope: str, force: bool, interactive: bool, target_dir):
    """Install a plugin from a local directory or GitHub URL."""
    options = InstallOptions(
        scope=Scope(scope),
        force=force,
        interactive=interactive,
        target_dir=target_dir,
    )
    try:
        result = install_plugin(config, source, options)
    except (OcmError, OSError) as e:
        _fail(e, config.verbose)
        return

    label = f"{result.name} [{short_hash(result.hash)}]"
    if result.status == InstallStatus.SKIPPED:
        reason = "selection cancelled" if result.cancelled else "nothing selected"
        console.print(f"Skipped {label}: {reason}", style="dim", markup=False)
        return

    for conflict in result.overridden:
        console.print(f"  overriding {conflict.describe()}", style="yellow", markup=False)
    for ctype in (ComponentType.COMMAND, ComponentType.AGENT, ComponentType.SKILL):
        for name in result.components.names_for(ctype):
            console.print(f"  → {ctype.value}/{name}", markup=False)

    verb = "Updated" if result.status == InstallStatus.UPDATED else "Installed"
    console.print(
        f"\n{verb} {label} ({_counts(result.components)}) to {result.scope.value} scope.",
        markup=False,
    )


@cli.command()
@click.argument("name")
@click.option("--scope", "-s", type=SCOPE_CHOICE, default="user", show_default=True)
@_target_dir_option
@_common_options
def uninstall(config, name: str, scope: str, target_dir):
    """Remove an installed plugin and its components."""
    console.print(f"Uninstalling {name}...", markup=False)
    try:
        result = uninstall_plugin(config, name, Scope(scope), target_dir)
    except (OcmError, OSError) as e:
        _fail(e, config.verbose)
        return

    for ctype, target in result.removed:
        console.print(f"  ✗ {ctype.value}/{target}", markup=False)
    for ctype, target in result.already_deleted:
        err_console.print(
            f"  warning: {ctype.value}/{target} was already deleted", style="yellow", markup=False
        )

    counts = {ctype: 0 for ctype in ComponentType}
    for ctype, _ in result.removed + result.already_deleted:
        counts[ctype] += 1
    summary = format_component_count(
        counts[ComponentType.COMMAND], counts[ComponentType.AGENT], counts[ComponentType.SKILL]
    )
    detail = f" ({summary})" if summary else ""
    console.print(f"\nUninstalled {name}{detail} from {result.scope.value} scope.", markup=False)


@cli.command(name="list")
@click.option("--scope", "-s", type=SCOPE_CHOICE, default=None, help="Only this scope")
@_target_dir_option
@_common_options
def list_cmd(config, scope: str | None, target_dir):
    """List installed plugins."""
    try:
        grouped = list_plugins(config, Scope(scope) if scope else None, target_dir)
    except OSError as e:
        _fail(e, config.verbose)
        return
    if not any(grouped.values()):
        console.print("no plugins installed", style="dim")
        console.print("use `ocm install <path>` to add one", style="dim")
        return

    first = True
    for s, plugins in grouped.items():
        if not plugins:
            continue
        if not first:
            console.print()
        first = False
        console.print(f"[bold]{s.value.capitalize()} scope:[/bold]")
        for p in plugins:
            console.print(
                f"  {p.name} [{short_hash(p.hash)}]  ({_counts(p.components)})",
                markup=False,
                highlight=False,
            )
            if config.verbose:
                console.print(f"    source: {p.source.describe()}", style="dim", markup=False)
                console.print(f"    installed: {p.installed_at}", style="dim", markup=False)
                for ctype, target in p.components.all_targets():
                    console.print(f"    {ctype.value}/{target}", style="dim", markup=False)


@cli.command()
@click.argument("source")
@_common_options
def scan(config, source: str):
    """Show what a plugin source would install (dry run)."""
    try:
        result = scan_plugin(source)
    except (OcmError, OSError) as e:
        _fail(e, config.verbose)
        return

    label = short_hash(result.hash) if result.hash else "????????"
    console.print(f"Scanning {result.name} [{label}]...", markup=False)

    if not result.components:
        console.print("\nNo components found.\n\nExpected directories:")
        for kind, paths in expected_directories().items():
            console.print(f"  - {kind}: {', '.join(p + '/' for p in paths)}", markup=False)
        return

    for c in result.components:
        suffix = "/" if c.type == ComponentType.SKILL else ""
        console.print(f"  → {c.type.value}/{c.target_name}{suffix}", markup=False)
    summary = format_component_count(
        result.count(ComponentType.COMMAND),
        result.count(ComponentType.AGENT),
        result.count(ComponentType.SKILL),
    )
    console.print(f"\nFound {summary}")


@cli.command()
@click.argument("name")
@click.option("--scope", "-s", type=SCOPE_CHOICE, default="user", show_default=True)
@_target_dir_option
@_common_options
def update(config, name: str, scope: str, target_dir):
    """Re-fetch a plugin installed from GitHub and reinstall it if it changed."""
    try:
        result = update_plugin(config, name, Scope(scope), target_dir)
    except (OcmError, OSError) as e:
        _fail(e, config.verbose)
        return

    label = f"{result.name} [{short_hash(result.hash)}]"
    if result.status == InstallStatus.SKIPPED:
        console.print(f"Plugin {label} is already up to date.", markup=False)
    else:
        console.print(f"Updated {label} ({_counts(result.components)}).", markup=False)


@cli.command(name="import")
@click.argument("config_path", required=False, type=click.Path(path_type=Path))
@click.option("--force", "-f", is_flag=True, help="Overwrite conflicting files")
@_target_dir_option
@_common_options
def import_cmd(config, config_path: Path | None, force: bool, target_dir):
    """Install every plugin listed in an import file (default: ocm-import.json)."""
    path = config_path or config.import_file
    console.print(f"Importing plugins from {short_path(path)}...\n", markup=False)
    try:
        sources = load_import_config(path)
    except (OcmError, OSError) as e:
        _fail(e, config.verbose)
        return

    if not sources:
        console.print("No plugins found in configuration.")
        return

    def _report(index: int, item) -> None:
        console.print(f"[{index + 1}/{len(sources)}] {item.source}", markup=False)
        if item.result is None:
            err_console.print(f"  error: {item.error}", style="bold", markup=False)
        else:
            status = item.result.status.value
            console.print(
                f"  {status} {item.result.name} [{short_hash(item.result.hash)}]",
                markup=False,
            )

    summary = import_plugins(config, sources, force=force, target_dir=target_dir, on_item=_report)
    console.print("\nImport complete:")
    console.print(f"  Installed: {summary.installed}")
    console.print(f"  Updated:   {summary.updated}")
    console.print(f"  Skipped:   {summary.skipped}")
    console.print(f"  Failed:    {summary.failed}")
    if summary.failed:
        sys.exit(1)


def main():
    cli()


if __name__ == "__main__":
    main()
