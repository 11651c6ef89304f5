"""Bulk import: install every plugin listed in an import config file."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from .errors import ImportConfigError, OcmError
from .lifecycle import install_plugin
from .models import InstallOptions, InstallResult, InstallStatus, Scope
from .sources import is_github_url

if TYPE_CHECKING:
    from ocm.core.config import Config

logger = logging.getLogger(__name__)


def load_import_config(config_path: Path) -> list[str]:
    """Parse ``{"plugins": [...]}``. Relative local entries resolve against the file's dir."""
    path = config_path.expanduser().resolve()
    if not path.is_file():
        raise ImportConfigError(f"Import configuration file not found: {config_path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ImportConfigError(f"Failed to parse import configuration (invalid JSON): {e}") from e
    except OSError as e:
        raise ImportConfigError(f"Failed to read import configuration: {e}") from e

    if not isinstance(data, dict):
        raise ImportConfigError("Invalid import configuration: expected an object")
    entries = data.get("plugins")
    if not isinstance(entries, list):
        raise ImportConfigError("Invalid import configuration: 'plugins' must be an array")

    sources: list[str] = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, str) or not entry.strip():
            raise ImportConfigError(
                f"Invalid import configuration: 'plugins[{i}]' must be a non-empty string"
            )
        entry = entry.strip()
        if is_github_url(entry) or Path(entry).expanduser().is_absolute():
            sources.append(entry)
        else:
            sources.append(str((path.parent / entry).resolve()))
    return sources


@dataclass
class ImportItem:
    source: str
    result: InstallResult | None = None
    error: str = ""


@dataclass
class ImportSummary:
    items: list[ImportItem] = field(default_factory=list)

    def _count(self, status: InstallStatus) -> int:
        return sum(1 for i in self.items if i.result is not None and i.result.status == status)

    @property
    def installed(self) -> int:
        return self._count(InstallStatus.INSTALLED)

    @property
    def updated(self) -> int:
        return self._count(InstallStatus.UPDATED)

    @property
    def skipped(self) -> int:
        return self._count(InstallStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return sum(1 for i in self.items if i.result is None)


def import_plugins(
    config: Config,
    sources: list[str],
    force: bool = False,
    target_dir: Path | None = None,
    on_item: Callable[[int, ImportItem], None] | None = None,
) -> ImportSummary:
    """Install each source into user scope, continuing past failures.

    Sources whose content hash matches the installed record are skipped
    without writing anything.
    """
    summary = ImportSummary()
    options = InstallOptions(
        scope=Scope.USER, force=force, skip_if_same_hash=True, target_dir=target_dir
    )
    for index, source in enumerate(sources):
        item = ImportItem(source=source)
        try:
            item.result = install_plugin(config, source, options)
        except (OcmError, OSError) as e:
            logger.debug(f"Import of {source} failed: {e}")
            item.error = str(e)
        summary.items.append(item)
        if on_item is not None:
            on_item(index, item)
    return summary
