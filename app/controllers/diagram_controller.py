"""
DiagramController - Drives a built diagram from user input events.

This module contains no Qt dependencies. It owns the simulation context
built from a DiagramModel and notifies views of state changes through an
observer pattern. Every input event runs to completion (consistency
pre-pass, propagation and, for testable diagrams, a full solve) before
the method returns.
"""

import logging
from typing import Any, Callable, Optional

from models.component import ComponentData, ComponentKind
from models.diagram import DiagramModel
from models.loop import ClosedLoop
from simulation import relay as relay_state
from simulation.builder import BuildResult, DiagramBuilder
from simulation.solver import SolveResult

logger = logging.getLogger(__name__)


class DiagramController:
    """
    Controller for diagram input events.

    Observer events:
        diagram_loaded (DiagramModel) - A diagram was built
        state_changed (tuple[str, bool]) - A component or wire changed display state
        display_changed (tuple[str, str]) - A numeric display shows new text
        switch_toggled (tuple[str, bool]) - A switch lever moved (name, closed)
        button_pressed (str) - A button was pressed
        button_released (str) - A button was released
        coil_changed (tuple[str, bool]) - A relay coil was driven externally
        circuit_solved (SolveResult) - A testable diagram was re-solved
        diagram_cleared (None) - The diagram was torn down
    """

    def __init__(self, model: Optional[DiagramModel] = None,
                 builder: Optional[DiagramBuilder] = None):
        self.model = model or DiagramModel()
        self.builder = builder or DiagramBuilder()
        self._observers: list[Callable[[str, Any], None]] = []
        self._built: Optional[BuildResult] = None
        self._last_solve: Optional[SolveResult] = None

    def add_observer(self, callback: Callable[[str, Any], None]) -> None:
        """Register a callback for diagram events."""
        if callback not in self._observers:
            self._observers.append(callback)

    def remove_observer(self, callback: Callable[[str, Any], None]) -> None:
        """Unregister a previously registered callback."""
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify(self, event: str, data: Any) -> None:
        """Notify all observers of a diagram event."""
        for observer in self._observers:
            try:
                observer(event, data)
            except (TypeError, AttributeError, RuntimeError) as e:
                logger.error("Error notifying observer: %s", e)

    # --- Lifecycle ---

    def load(self, model: Optional[DiagramModel] = None) -> None:
        """
        Build ``model`` (or the current model) and report every initial state.

        Raises:
            DiagramBuildError: If the diagram cannot be built. The previous
                diagram is left in place.
        """
        model = model or self.model
        built = self.builder.build(model)

        if self._built is not None:
            self._built.context.teardown()
        self.model = model
        self._built = built
        self._last_solve = None

        context = built.context
        context.add_render_callback(self._on_render)
        context.add_display_callback(self._on_display)

        self._notify("diagram_loaded", model)
        for component in context.registry:
            context.mark_dirty(component.name)
        for name, decoder in context.decoders.items():
            context.display(name, decoder.text)
        context.flush()

        if context.testable:
            self._solve()

    def clear(self) -> None:
        """Tear down the built diagram and clear the model."""
        if self._built is not None:
            self._built.context.teardown()
        self._built = None
        self._last_solve = None
        self.model.clear()
        self._notify("diagram_cleared", None)

    @property
    def is_loaded(self) -> bool:
        return self._built is not None

    @property
    def context(self):
        return self._require().context

    # --- Input events ---

    def toggle(self, name: str) -> bool:
        """
        Flip a switch lever.

        Returns:
            The new lever position, or False if ``name`` is not a switch.
        """
        built = self._require()
        component = self._find(name, ComponentKind.SWITCH)
        if component is None:
            return False

        closed = not component.closed
        built.context.hold()
        try:
            component.closed = closed
            built.context.mark_dirty(name)
            built.consistency.apply(name)
            if not built.context.testable:
                built.engine.set_switch(name, closed)
            self._notify("switch_toggled", (name, closed))
            self._resolve()
        finally:
            built.context.release()
        self._report_solve()
        return closed

    def press(self, name: str) -> None:
        """Press a button: momentary buttons turn on, latching buttons flip."""
        built = self._require()
        component = self._find(name, ComponentKind.BUTTON)
        if component is None:
            return

        value = True if component.momentary else not component.closed
        built.context.hold()
        try:
            component.closed = value
            built.context.mark_dirty(name)
            if not built.context.testable:
                built.engine.set_output(name, value)
            self._notify("button_pressed", name)
            self._resolve()
        finally:
            built.context.release()
        self._report_solve()

    def release(self, name: str) -> None:
        """Release a button; latching buttons keep their state."""
        built = self._require()
        component = self._find(name, ComponentKind.BUTTON)
        if component is None:
            return

        built.context.hold()
        try:
            if component.momentary:
                component.closed = False
                built.context.mark_dirty(name)
                if not built.context.testable:
                    built.engine.set_output(name, False)
            self._notify("button_released", name)
            self._resolve()
        finally:
            built.context.release()
        self._report_solve()

    def set_coil_input(self, name: str, value: bool) -> None:
        """Drive a relay coil from outside the diagram."""
        built = self._require()
        component = self._find(name, ComponentKind.RELAY)
        if component is None:
            return

        built.context.hold()
        try:
            if built.context.testable:
                if relay_state.set_triggered(component, value):
                    built.context.mark_dirty(name)
            else:
                built.engine.set_input(name, 0, value)
            self._notify("coil_changed", (name, bool(value)))
            self._resolve()
        finally:
            built.context.release()
        self._report_solve()

    # --- Queries ---

    def state(self, name: str) -> bool:
        """Return the display state of a component or wire."""
        return self._require().context.registry.get(name).state

    def component(self, name: str) -> ComponentData:
        return self._require().context.registry.get(name)

    def energized(self) -> set[str]:
        """Names of components and wires currently reported as on."""
        context = self._require().context
        return {c.name for c in context.registry if c.state}

    def display_text(self, name: str) -> str:
        return self._require().context.decoders[name].text

    @property
    def loops(self) -> list[ClosedLoop]:
        """Loops found by the last solve (testable diagrams only)."""
        return list(self._last_solve.loops) if self._last_solve else []

    # --- Internals ---

    def _require(self) -> BuildResult:
        if self._built is None:
            raise RuntimeError("No diagram is loaded.")
        return self._built

    def _find(self, name: str, kind: ComponentKind) -> Optional[ComponentData]:
        component = self._built.context.registry.find(name)
        if component is None or component.kind != kind:
            logger.debug("Ignoring event for %s: not a %s", name, kind.value)
            return None
        return component

    # Events hold the context so renderers and displays only see settled
    # state; the release after _resolve delivers it in one flush.

    def _resolve(self) -> None:
        if self._built.context.testable:
            self._last_solve = self._built.solver.run()

    def _report_solve(self) -> None:
        if self._built.context.testable:
            self._notify("circuit_solved", self._last_solve)

    def _solve(self) -> None:
        self._last_solve = self._built.solver.run()
        self._notify("circuit_solved", self._last_solve)

    def _on_render(self, name: str, state: bool) -> None:
        self._notify("state_changed", (name, state))

    def _on_display(self, name: str, text: str) -> None:
        self._notify("display_changed", (name, text))
