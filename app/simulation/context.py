"""
SimulationContext - everything one built diagram owns.

Replaces diagram-wide global maps: the registry, wire index, push-link
tables, consistency rules and the callbacks to rendering and display
collaborators all live here and are torn down together.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from models.component import ComponentData
from models.diagram import DiagramModel
from models.rule import ConsistencyRule
from models.settings import SimulationSettings

from .registry import ComponentRegistry
from .wire_index import WireIndex

logger = logging.getLogger(__name__)

RenderCallback = Callable[[str, bool], None]
DisplayCallback = Callable[[str, str], None]
NotifyCallback = Callable[[Any, bool], None]


@dataclass(frozen=True)
class Destination:
    """Push-link target: a component and the input index it receives on."""

    target: str
    index: int = 0


class SimulationContext:
    """
    State owned by one diagram instance.

    Render callbacks are invoked once per changed component after state
    settles (see ``flush``), never in the middle of a propagation.
    """

    def __init__(self, settings: Optional[SimulationSettings] = None,
                 model: Optional[DiagramModel] = None):
        self.settings = settings or SimulationSettings()
        self.model = model
        self.registry = ComponentRegistry()
        self.wire_index = WireIndex()
        self.rules: list[ConsistencyRule] = []
        self.testable = False
        self.consistency = False

        # Push links: ordered destinations per component, and per port for relays
        self.destinations: dict[str, list[Destination]] = {}
        self.port_destinations: dict[str, dict[str, Destination]] = {}

        # Numeric aggregators by name (see simulation.decoder)
        self.decoders: dict[str, Any] = {}

        self._render_callbacks: list[RenderCallback] = []
        self._display_callbacks: list[DisplayCallback] = []
        self._notifies: dict[str, list[tuple[NotifyCallback, Any]]] = {}
        self._dirty: dict[str, None] = {}
        self._texts: dict[str, str] = {}
        self._held = 0

    # --- Rendering collaborator ---

    def add_render_callback(self, callback: RenderCallback) -> None:
        """Register a callback receiving (name, state) after each settle."""
        if callback not in self._render_callbacks:
            self._render_callbacks.append(callback)

    def remove_render_callback(self, callback: RenderCallback) -> None:
        if callback in self._render_callbacks:
            self._render_callbacks.remove(callback)

    def mark_dirty(self, name: str) -> None:
        """Record that ``name`` needs a visual refresh."""
        self._dirty[name] = None

    def pending(self) -> list[str]:
        """Names awaiting a refresh, in first-change order."""
        return list(self._dirty)

    def hold(self) -> None:
        """Defer ``flush`` until the matching ``release``. Holds nest."""
        self._held += 1

    def release(self) -> list[str]:
        """End one hold; the outermost release flushes what was deferred."""
        self._held -= 1
        if self._held:
            return []
        return self.flush()

    def flush(self) -> list[str]:
        """
        Report every dirty component/wire to the render callbacks, then
        the latest queued text of each display to the display callbacks.

        Does nothing while a hold is active.

        Returns:
            The names that were refreshed.
        """
        if self._held:
            return []

        names = list(self._dirty)
        self._dirty.clear()
        for name in names:
            component = self.registry.find(name)
            if component is None:
                continue
            for callback in list(self._render_callbacks):
                callback(name, component.state)

        texts = list(self._texts.items())
        self._texts.clear()
        for name, text in texts:
            for callback in list(self._display_callbacks):
                callback(name, text)
        return names

    def add_display_callback(self, callback: DisplayCallback) -> None:
        """Register a callback receiving (name, text) when a numeric display changes."""
        if callback not in self._display_callbacks:
            self._display_callbacks.append(callback)

    def remove_display_callback(self, callback: DisplayCallback) -> None:
        if callback in self._display_callbacks:
            self._display_callbacks.remove(callback)

    def display(self, name: str, text: str) -> None:
        """Queue new display text; the next ``flush`` delivers it."""
        self._texts[name] = text

    # --- Output subscriptions (decoders) ---

    def set_notify_change(self, name: str, callback: NotifyCallback, param: Any = None) -> None:
        """
        Subscribe to a component's output; the callback gets (param, output).

        The callback is invoked immediately with the current output.
        """
        component = self.registry.get(name)
        self._notifies.setdefault(name, []).append((callback, param))
        callback(param, component.output)

    def notify_all(self, component: ComponentData) -> None:
        for callback, param in self._notifies.get(component.name, []):
            callback(param, component.output)

    # --- Lifecycle ---

    def teardown(self) -> None:
        """Release every component, link and callback."""
        self.registry.clear()
        self.wire_index.clear()
        self.rules.clear()
        self.destinations.clear()
        self.port_destinations.clear()
        self.decoders.clear()
        self._render_callbacks.clear()
        self._display_callbacks.clear()
        self._notifies.clear()
        self._dirty.clear()
        self._texts.clear()
        self._held = 0
        logger.debug("Simulation context torn down")
