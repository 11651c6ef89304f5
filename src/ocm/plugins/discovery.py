"""Component discovery: commands, agents and skills under priority sub-paths."""

from __future__ import annotations

import logging
from pathlib import Path

from .identity import SKILL_FILE
from .models import COMPONENT_TYPES, ComponentType, DiscoveredComponent, target_name_for

logger = logging.getLogger(__name__)

# Most specific first; the first existing directory wins, nothing is merged.
SEARCH_PATHS: dict[ComponentType, tuple[str, ...]] = {
    ComponentType.COMMAND: (".opencode/commands", ".claude/commands", "commands", "command"),
    ComponentType.AGENT: (".opencode/agents", ".claude/agents", "agents", "agent"),
    ComponentType.SKILL: (".opencode/skills", ".claude/skills", "skills", "skill"),
}

MARKDOWN_SUFFIX = ".md"


def expected_directories() -> dict[str, tuple[str, ...]]:
    return {ctype.plural: paths for ctype, paths in SEARCH_PATHS.items()}


def _has_skill_file(skill_dir: Path) -> bool:
    # Exact name match, even on case-insensitive filesystems.
    return any(entry.name == SKILL_FILE and entry.is_file() for entry in skill_dir.iterdir())


def _scan_directory(
    dir_path: Path, plugin_name: str, ctype: ComponentType
) -> list[DiscoveredComponent]:
    found: list[DiscoveredComponent] = []
    for entry in sorted(dir_path.iterdir(), key=lambda p: p.name):
        if ctype == ComponentType.SKILL:
            if not entry.is_dir():
                continue
            try:
                is_skill = _has_skill_file(entry)
            except OSError as e:
                logger.debug(f"Skipping unreadable skill directory {entry}: {e}")
                continue
            if not is_skill:
                continue
        elif not (entry.is_file() and entry.name.endswith(MARKDOWN_SUFFIX)):
            continue
        found.append(
            DiscoveredComponent(
                type=ctype,
                source_path=entry,
                name=entry.name,
                target_name=target_name_for(plugin_name, entry.name),
            )
        )
    return found


def discover_type(
    plugin_root: Path, plugin_name: str, ctype: ComponentType
) -> list[DiscoveredComponent]:
    """Scan the first readable candidate directory for *ctype*."""
    for relative in SEARCH_PATHS[ctype]:
        candidate = plugin_root / relative
        if not candidate.is_dir():
            continue
        try:
            found = _scan_directory(candidate, plugin_name, ctype)
        except OSError as e:
            logger.debug(f"Skipping unreadable {ctype.value} directory {candidate}: {e}")
            continue
        logger.debug(f"Found {len(found)} {ctype.value}(s) in {relative}")
        return found
    return []


def discover_components(plugin_root: Path, plugin_name: str) -> list[DiscoveredComponent]:
    """Discover all components. Never raises; an empty list is a valid result."""
    components: list[DiscoveredComponent] = []
    for ctype in COMPONENT_TYPES:
        components.extend(discover_type(plugin_root, plugin_name, ctype))
    return components
