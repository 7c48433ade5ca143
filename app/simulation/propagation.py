"""
simulation/propagation.py

Push-based propagation of boolean outputs through a built diagram.

A change at one component's output is forwarded synchronously, depth
first, to every registered destination; each destination recomputes and
forwards further only when its own output actually changed. That change
check is what lets feedback diagrams reach a fixed point.
"""

import logging
from typing import Optional

from models.component import GATE_FUNCTIONS, ComponentData, ComponentKind

from . import relay as relay_state
from .context import Destination, SimulationContext
from .errors import PropagationDepthError

logger = logging.getLogger(__name__)

# Kinds that forward to at most one destination; attaching a new wire replaces the old one
SINGLE_DESTINATION_KINDS = frozenset({ComponentKind.WIRE, ComponentKind.LIGHT, ComponentKind.LOGIC_GATE})


class PropagationEngine:
    """
    Implements the set-output / set-input protocol over a SimulationContext.

    Render callbacks are flushed when the outermost call returns, once
    the whole cascade has settled.
    """

    def __init__(self, context: SimulationContext):
        self.context = context
        self._depth = 0

    # --- Destinations ---

    def is_single_destination(self, component: ComponentData) -> bool:
        if component.kind == ComponentKind.BUTTON:
            return component.momentary
        return component.kind in SINGLE_DESTINATION_KINDS

    def set_destination(self, source: str, target: str, index: int = 0) -> None:
        """Replace the single destination of ``source`` and push its current value there."""
        component = self.context.registry.get(source)
        self.context.destinations[source] = [Destination(target, index)]
        self.set_input(target, index, component.output)

    def add_destination(self, source: str, target: str, index: int = 0) -> None:
        """Append a destination to ``source`` and push its current value to it only."""
        component = self.context.registry.get(source)
        self.context.destinations.setdefault(source, []).append(Destination(target, index))
        self.set_input(target, index, component.output)

    def set_port_destination(self, source: str, port: str, target: str, index: int = 0) -> None:
        """Attach a destination to one output port of a relay."""
        component = self.context.registry.get(source)
        self.context.port_destinations.setdefault(source, {})[port] = Destination(target, index)
        self.set_input(target, index, relay_state.branch_values(component)[port])

    def attach(self, source: str, target: str, index: int = 0, port: Optional[str] = None) -> None:
        """Attach ``target`` as a destination of ``source`` using the source kind's shape."""
        component = self.context.registry.get(source)
        if component.kind == ComponentKind.RELAY:
            self.set_port_destination(source, port or "out0", target, index)
        elif self.is_single_destination(component):
            if self.context.destinations.get(source):
                logger.debug("%s already had a destination; replacing it with %s", source, target)
            self.set_destination(source, target, index)
        else:
            self.add_destination(source, target, index)

    # --- State changes ---

    def set_output(self, name: str, value: bool) -> bool:
        """
        Store a new output and forward it when it changed.

        Returns:
            True if the stored output changed.
        """
        component = self.context.registry.get(name)
        self._enter(name)
        try:
            changed = self._store(component, value)
            if changed and not component.do_not_propagate:
                self._forward(component)
        finally:
            self._depth -= 1
        self._settle()
        return changed

    def set_input(self, name: str, index: int, value: bool) -> None:
        """Deliver ``value`` on input ``index`` of component ``name``."""
        component = self.context.registry.get(name)
        self._enter(name)
        try:
            _INPUT_HANDLERS[component.kind](self, component, index, bool(value))
        finally:
            self._depth -= 1
        self._settle()

    def set_switch(self, name: str, closed: bool) -> bool:
        """Move a switch lever and re-run its output update."""
        component = self.context.registry.get(name)
        if component.closed != bool(closed):
            component.closed = bool(closed)
            self.context.mark_dirty(name)
        return self.set_output(name, component.closed and component.inputs[0])

    def propagate(self, name: str) -> None:
        """Forward the current output of ``name`` to all of its destinations."""
        component = self.context.registry.get(name)
        self._enter(name)
        try:
            self._forward(component)
        finally:
            self._depth -= 1
        self._settle()

    # --- Internals ---

    def _enter(self, name: str) -> None:
        limit = self.context.settings.max_propagation_depth
        if self._depth >= limit:
            raise PropagationDepthError(
                f"Propagation through '{name}' exceeded {limit} nested updates; "
                f"the diagram contains feedback that never settles."
            )
        self._depth += 1

    def _settle(self) -> None:
        if self._depth == 0:
            self.context.flush()

    def _store(self, component: ComponentData, value: bool) -> bool:
        value = bool(value)
        if component.output == value:
            return False
        component.output = value
        self.context.mark_dirty(component.name)
        self.context.notify_all(component)
        return True

    def _forward(self, component: ComponentData) -> None:
        if component.kind == ComponentKind.RELAY:
            values = relay_state.branch_values(component)
            for port, dest in list(self.context.port_destinations.get(component.name, {}).items()):
                self.set_input(dest.target, dest.index, values[port])
            return

        for dest in list(self.context.destinations.get(component.name, [])):
            self.set_input(dest.target, dest.index, component.output)


# --- Input handlers, one per component kind ---


def _pass_through(engine: PropagationEngine, component: ComponentData, index: int, value: bool) -> None:
    if engine._store(component, value) and not component.do_not_propagate:
        engine._forward(component)


def _terminal_input(engine: PropagationEngine, component: ComponentData, index: int, value: bool) -> None:
    engine._store(component, value)


def _gate_input(engine: PropagationEngine, component: ComponentData, index: int, value: bool) -> None:
    component.inputs[index] = value
    result = GATE_FUNCTIONS[component.gate](component.inputs)
    if engine._store(component, result) and not component.do_not_propagate:
        engine._forward(component)


def _switch_input(engine: PropagationEngine, component: ComponentData, index: int, value: bool) -> None:
    component.inputs[0] = value
    if engine._store(component, component.closed and value) and not component.do_not_propagate:
        engine._forward(component)


def _relay_input(engine: PropagationEngine, component: ComponentData, index: int, value: bool) -> None:
    before = relay_state.branch_values(component)
    component.inputs[index] = value
    if index == 0 and relay_state.set_triggered(component, value):
        logger.debug("Relay %s is now %s", component.name, relay_state.state_of(component).value)

    component.sync_relay()
    after = relay_state.branch_values(component)
    if after == before:
        return

    engine.context.mark_dirty(component.name)
    engine.context.notify_all(component)
    if component.do_not_propagate:
        return

    ports = engine.context.port_destinations.get(component.name, {})
    for port, dest in list(ports.items()):
        if after[port] != before[port]:
            engine.set_input(dest.target, dest.index, after[port])


def _ignored_input(engine: PropagationEngine, component: ComponentData, index: int, value: bool) -> None:
    logger.debug("%s (%s) has no inputs; ignoring %s", component.name, component.component_type, value)


_INPUT_HANDLERS = {
    ComponentKind.WIRE: _pass_through,
    ComponentKind.JOINT: _pass_through,
    ComponentKind.LIGHT: _pass_through,
    ComponentKind.GROUND: _terminal_input,
    ComponentKind.LOGIC_GATE: _gate_input,
    ComponentKind.SWITCH: _switch_input,
    ComponentKind.RELAY: _relay_input,
    ComponentKind.SOURCE: _ignored_input,
    ComponentKind.BUTTON: _ignored_input,
    ComponentKind.DISPLAY: _ignored_input,
}
