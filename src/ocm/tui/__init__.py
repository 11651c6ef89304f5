"""Public API for the ocm TUI package."""

from .component_picker import pick_components_tui

__all__ = ["pick_components_tui"]
