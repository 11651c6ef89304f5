"""Display helpers: short hashes, component counts, home-relative paths."""

from __future__ import annotations

from pathlib import Path

SHORT_HASH_LENGTH = 8


def short_hash(digest: str) -> str:
    """Display form of a content hash. Never compare these."""
    return digest[:SHORT_HASH_LENGTH]


def pluralize(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def format_component_count(commands: int, agents: int, skills: int) -> str:
    """'1 command, 2 agents, 1 skill' (zero counts omitted)."""
    parts = []
    if commands:
        parts.append(pluralize(commands, "command"))
    if agents:
        parts.append(pluralize(agents, "agent"))
    if skills:
        parts.append(pluralize(skills, "skill"))
    return ", ".join(parts)


def short_path(p: Path) -> str:
    """Return path relative to home directory, using ~ prefix."""
    try:
        rel = p.relative_to(Path.home())
        return f"~/{rel}" if str(rel) != "." else "~"
    except ValueError:
        return str(p)
