"""Interactive checkbox picker for choosing which plugin components to install."""

from __future__ import annotations

import sys

from prompt_toolkit import Application
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import Layout
from prompt_toolkit.layout.containers import HSplit, Window
from prompt_toolkit.layout.controls import FormattedTextControl

from ocm.plugins.errors import InteractiveUnavailableError
from ocm.plugins.models import COMPONENT_TYPES, ComponentType, DiscoveredComponent, SelectionResult

_HEADINGS = {
    ComponentType.COMMAND: "Commands",
    ComponentType.AGENT: "Agents",
    ComponentType.SKILL: "Skills",
}


def order_for_display(components: list[DiscoveredComponent]) -> list[DiscoveredComponent]:
    """Group by type (commands, agents, skills), keeping discovery order within a group."""
    return [c for ctype in COMPONENT_TYPES for c in components if c.type == ctype]


def pick_components_tui(
    plugin_name: str, components: list[DiscoveredComponent]
) -> SelectionResult:
    """Show a checkbox list of *components*. Everything starts selected."""
    if not sys.stdin.isatty():
        raise InteractiveUnavailableError()

    items = order_for_display(components)
    if not items:
        return SelectionResult()

    cursor = [0]
    checked = [True] * len(items)
    cancelled = [False]

    def _get_text():
        lines = [("bold", f" Select components to install from {plugin_name!r}:\n")]
        current_type = None
        for i, c in enumerate(items):
            if c.type != current_type:
                current_type = c.type
                count = sum(1 for x in items if x.type == current_type)
                lines.append(("bold", f"\n {_HEADINGS[current_type]} ({count})\n"))
            marker = ">" if i == cursor[0] else " "
            box = "[x]" if checked[i] else "[ ]"
            suffix = "/" if c.type == ComponentType.SKILL else ""
            lines.append(("bold" if i == cursor[0] else "", f" {marker} {box} {c.name}{suffix}\n"))
        lines.append(("dim", "\n ↑/↓ navigate  space toggle  a all  enter confirm  esc cancel"))
        return lines

    kb = KeyBindings()

    @kb.add("up")
    @kb.add("k")
    def _up(event):
        cursor[0] = max(0, cursor[0] - 1)

    @kb.add("down")
    @kb.add("j")
    def _down(event):
        cursor[0] = min(len(items) - 1, cursor[0] + 1)

    @kb.add("space")
    def _toggle(event):
        checked[cursor[0]] = not checked[cursor[0]]

    @kb.add("a")
    def _toggle_all(event):
        value = not all(checked)
        for i in range(len(checked)):
            checked[i] = value

    @kb.add("enter")
    def _confirm(event):
        event.app.exit()

    @kb.add("escape")
    @kb.add("q")
    @kb.add("c-c")
    def _cancel(event):
        cancelled[0] = True
        event.app.exit()

    layout = Layout(HSplit([Window(FormattedTextControl(_get_text))]))
    app: Application = Application(layout=layout, key_bindings=kb, full_screen=False)
    app.run()

    if cancelled[0]:
        return SelectionResult(selected=[], cancelled=True)
    return SelectionResult(selected=[c for c, on in zip(items, checked) if on])
