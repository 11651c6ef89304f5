"""Plugin identity: name resolution from path/manifest/URL and content hashing."""

from __future__ import annotations

import hashlib
import json
import re
from pathlib import Path

from .errors import HashComputationError, InvalidNameError
from .models import ComponentType, DiscoveredComponent
from .sources import is_github_url, parse_github_url

NAME_PATTERN = re.compile(r"^[a-z0-9-]+$")
MANIFEST_FILE = "plugin.json"
SKILL_FILE = "SKILL.md"


def validate_plugin_name(name: str) -> bool:
    return bool(NAME_PATTERN.fullmatch(name))


def _normalize(segment: str) -> str:
    return segment.lstrip(".").lower()


def resolve_plugin_name(plugin_path: str | Path) -> str:
    """Lowercased, dot-stripped last path segment, validated as a slug."""
    parts = [p for p in re.split(r"[\\/]", str(plugin_path)) if p]
    name = _normalize(parts[-1] if parts else "")
    if not validate_plugin_name(name):
        raise InvalidNameError(name)
    return name


def read_plugin_manifest(plugin_path: Path) -> str | None:
    """Return the ``name`` declared in plugin.json, if any.

    Every other manifest field is ignored. Missing or unparseable manifests
    read as no override.
    """
    manifest_path = plugin_path / MANIFEST_FILE
    if not manifest_path.is_file():
        return None
    try:
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError, UnicodeDecodeError):
        return None
    if not isinstance(data, dict):
        return None
    name = data.get("name")
    return name if isinstance(name, str) and name else None


def infer_plugin_name(plugin_path: Path, locator: str | None = None) -> str:
    """Name priority: plugin.json, then GitHub URL, then directory name."""
    manifest_name = read_plugin_manifest(plugin_path)
    if manifest_name:
        name = manifest_name.lower()
        if not validate_plugin_name(name):
            raise InvalidNameError(name, "in plugin.json")
        return name

    if locator and is_github_url(locator):
        github = parse_github_url(locator)
        if github is not None:
            last = github.subpath.rstrip("/").split("/")[-1] if github.subpath else ""
            name = _normalize(last or github.repo)
            if not validate_plugin_name(name):
                raise InvalidNameError(name, "derived from URL")
            return name

    return resolve_plugin_name(plugin_path)


def _content_path(component: DiscoveredComponent) -> Path:
    if component.type == ComponentType.SKILL:
        return component.source_path / SKILL_FILE
    return component.source_path


def compute_plugin_hash(components: list[DiscoveredComponent]) -> str:
    """SHA-256 over components sorted by (type, name).

    Skills contribute only their SKILL.md. A missing input fails the whole
    hash instead of producing a digest for a broken plugin.
    """
    digest = hashlib.sha256()
    for component in sorted(components, key=lambda c: (c.type.value, c.name)):
        digest.update(f"{component.type.value}:{component.name}:".encode())
        path = _content_path(component)
        try:
            digest.update(path.read_bytes())
        except OSError as e:
            raise HashComputationError(path, e) from e
    return digest.hexdigest()
