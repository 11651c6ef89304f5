"""Error types raised by plugin operations.

Every error carries an optional ``hint``: a concrete next step (a flag to
pass, a command to run) that the CLI prints under the message.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .models import Conflict


class OcmError(Exception):
    """Base class for all plugin operation errors."""

    def __init__(self, message: str, hint: str = ""):
        self.hint = hint
        super().__init__(message)


class InvalidNameError(OcmError):
    def __init__(self, name: str, origin: str = ""):
        self.name = name
        where = f" {origin}" if origin else ""
        super().__init__(
            f'Invalid plugin name "{name}"{where}. '
            "Plugin names must be lowercase alphanumeric with hyphens.",
            hint="rename the plugin directory or set 'name' in plugin.json",
        )


class SourceNotFoundError(OcmError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Plugin directory not found: {path}")


class NoComponentsFoundError(OcmError):
    def __init__(self, source: str, candidates: dict[str, Sequence[str]]):
        self.source = source
        self.candidates = candidates
        expected = "; ".join(f"{kind}: {', '.join(paths)}" for kind, paths in candidates.items())
        super().__init__(
            f"No components found in {source}. Expected one of these directories ({expected})."
        )


class ConflictError(OcmError):
    def __init__(self, plugin_name: str, conflicts: list[Conflict]):
        self.plugin_name = plugin_name
        self.conflicts = conflicts
        lines = "\n".join(f"  {c.describe()}" for c in conflicts)
        super().__init__(
            f"Installation of {plugin_name} aborted due to conflicts:\n{lines}",
            hint="use --force to override existing files",
        )


class NotInstalledError(OcmError):
    def __init__(self, name: str, scope: str):
        self.name = name
        self.scope = scope
        super().__init__(
            f'Plugin "{name}" is not installed in {scope} scope.',
            hint=f"run 'ocm list --scope {scope}' to see installed plugins",
        )


class HashComputationError(OcmError):
    def __init__(self, path: Path, cause: OSError):
        self.path = path
        super().__init__(f"Failed to read component content for hashing: {path} ({cause})")


class DeletionError(OcmError):
    def __init__(self, path: Path, cause: OSError):
        self.path = path
        super().__init__(
            f"Failed to delete {path}: {cause}",
            hint="fix the permissions and run uninstall again; the registry was left unchanged",
        )


class CopyError(OcmError):
    def __init__(self, cause: OSError):
        self.cause = cause
        super().__init__(
            f"Failed to copy plugin files: {cause}",
            hint="already copied files stay in place; fix the cause and install again",
        )


class AcquisitionError(OcmError):
    """Cloning or otherwise fetching a remote plugin source failed."""


class UpdateNotSupportedError(OcmError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f'Cannot update local plugin "{name}". '
            "Local plugins must be updated at their source and reinstalled.",
            hint=f"run 'ocm install <path>' again for {name}",
        )


class ImportConfigError(OcmError):
    """The bulk-import configuration file is missing or malformed."""


class InteractiveUnavailableError(OcmError):
    def __init__(self):
        super().__init__(
            "Interactive mode requires a terminal", hint="drop --interactive when piping input"
        )
