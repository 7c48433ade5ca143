"""
simulation/builder.py

DiagramBuilder - turns a declared DiagramModel into a live SimulationContext.

Building happens in a fixed order: nested ``External`` diagrams are
flattened under ``parent.child`` names, components are registered, wire
endpoints are resolved and indexed, and push links are attached so that
every wire receives its source's value and forwards it to the input its
last point names. Testable diagrams get no push links; the closed
circuit solver alone decides their state. A failure at any step tears
the half-built context down and raises a DiagramBuildError.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from models.component import ComponentData, ComponentKind
from models.diagram import EXTERNAL_TYPE, DiagramModel
from models.rule import ConsistencyRule
from models.wire import WireData, full_name

from . import relay as relay_state
from .consistency import ConsistencyRuleEvaluator
from .context import SimulationContext
from .decoder import NumericAggregator
from .errors import (
    DanglingWireError,
    DiagramBuildError,
    UnknownComponentTypeError,
    UnresolvedReferenceError,
)
from .ports import PortResolver
from .propagation import PropagationEngine
from .solver import ClosedCircuitSolver

logger = logging.getLogger(__name__)

ExternalResolver = Callable[[str], DiagramModel]


@dataclass
class _FlatItem:
    """One declared item together with the prefix it was declared under."""

    item: dict
    prefix: Optional[str]

    @property
    def name(self) -> str:
        return full_name(self.item["name"], self.prefix)


@dataclass
class BuildResult:
    """A built context and the collaborators that operate on it."""

    context: SimulationContext
    engine: PropagationEngine
    solver: ClosedCircuitSolver
    consistency: ConsistencyRuleEvaluator


class DiagramBuilder:
    """
    Builds simulation contexts from diagram models.

    Args:
        resolve_external: Called with an ``External`` item's ``file`` value
            when the model's library does not hold that diagram.
    """

    def __init__(self, resolve_external: Optional[ExternalResolver] = None):
        self.resolve_external = resolve_external

    def build(self, model: DiagramModel) -> BuildResult:
        """
        Build a live diagram.

        Raises:
            DiagramBuildError: If any item is malformed, duplicated or unresolved.
            PropagationDepthError: If initial values never settle.
            CircuitLoopError: If the initial solve of a testable diagram never finishes.
        """
        context = SimulationContext(settings=model.settings, model=model)
        engine = PropagationEngine(context)
        solver = ClosedCircuitSolver(context)
        result = BuildResult(context, engine, solver, ConsistencyRuleEvaluator(context, engine))

        try:
            components: list[_FlatItem] = []
            wires: list[_FlatItem] = []
            self._flatten(model, None, [model.library], components, wires, context.rules, [])

            context.testable = model.testable
            context.consistency = model.consistency

            for flat in components:
                context.registry.register(self._make_component(flat, model.testable))

            resolver = PortResolver(context.registry)
            resolved = [self._make_wire(context, resolver, flat, n) for n, flat in enumerate(wires)]
            if not model.testable:
                for wire in resolved:
                    self._attach(engine, resolver, wire)

            # Every display exists before any connects; byte displays read other displays
            displays = [flat for flat in components if flat.item["type"] == "DynamicDecimal"]
            for flat in displays:
                context.decoders[flat.name] = NumericAggregator.from_properties(
                    flat.name, flat.item, on_text=context.display
                )
            for flat in displays:
                context.decoders[flat.name].connect(context, flat.item, flat.prefix)

            if model.testable:
                solver.run()
        except Exception:
            context.teardown()
            raise

        logger.info(
            "Built diagram '%s': %d component(s), %d wire(s)%s",
            model.name, len(context.registry) - len(context.wire_index), len(context.wire_index),
            " (testable)" if model.testable else "",
        )
        return result

    # --- Flattening ---

    def _flatten(self, model: DiagramModel, prefix: Optional[str], libraries: list[dict],
                 components: list[_FlatItem], wires: list[_FlatItem],
                 rules: list[ConsistencyRule], stack: list[str]) -> None:
        libraries = [model.library, *libraries] if model.library else libraries

        for item in model.component_items():
            if "name" not in item or "type" not in item:
                raise DiagramBuildError(f"Component item {item!r} needs both 'name' and 'type'.")
            if item["type"] != EXTERNAL_TYPE:
                components.append(_FlatItem(item, prefix))
                continue

            file = item.get("file")
            if not file:
                raise DiagramBuildError(f"External item '{item['name']}' has no 'file'.")
            if file in stack:
                raise DiagramBuildError(f"External diagram '{file}' includes itself.")
            sub = self._lookup_external(file, libraries)
            logger.debug("Flattening %s from %s", full_name(item["name"], prefix), file)
            self._flatten(sub, full_name(item["name"], prefix), libraries,
                          components, wires, rules, [*stack, file])

        for item in model.wire_items():
            wires.append(_FlatItem(item, prefix))

        for rule in model.dependencies:
            rules.append(ConsistencyRule(
                switch=full_name(rule.switch, prefix),
                value=rule.value,
                accordance=[full_name(n, prefix) for n in rule.accordance],
                contrary=[full_name(n, prefix) for n in rule.contrary],
            ))

    def _lookup_external(self, file: str, libraries: list[dict]) -> DiagramModel:
        for library in libraries:
            if file in library:
                return library[file]
        if self.resolve_external is not None:
            sub = self.resolve_external(file)
            if sub is not None:
                return sub
        raise UnresolvedReferenceError(f"External diagram '{file}' could not be found.")

    # --- Components and wires ---

    def _make_component(self, flat: _FlatItem, testable: bool) -> ComponentData:
        try:
            component = ComponentData.from_dict(flat.item, name=flat.name)
        except KeyError:
            raise UnknownComponentTypeError(
                f"Component '{flat.name}' has unknown type '{flat.item['type']}'."
            ) from None
        except (TypeError, ValueError) as e:
            raise DiagramBuildError(f"Component '{flat.name}': {e}") from e

        if testable:
            component.do_not_propagate = True
        return component

    def _make_wire(self, context: SimulationContext, resolver: PortResolver,
                   flat: _FlatItem, number: int) -> WireData:
        try:
            wire = WireData.from_dict(flat.item, prefix=flat.prefix,
                                      default_name=full_name(f"wire#{number}", flat.prefix))
        except ValueError as e:
            raise DanglingWireError(str(e)) from e

        wire.first_port = resolver.resolve(wire.first_component, wire.first_port).port
        wire.last_port = resolver.resolve(wire.last_component, wire.last_port).port
        if wire.destination_input is not None:
            wire.destination_input = resolver.check_input(wire.last_component, wire.destination_input)
        if wire.hook:
            resolver.resolve(wire.hook)

        context.wire_index.add(wire)
        context.registry.register(ComponentData(
            name=wire.name, component_type="Wire", kind=ComponentKind.WIRE,
            do_not_propagate=context.testable,
        ))
        return wire

    def _attach(self, engine: PropagationEngine, resolver: PortResolver, wire: WireData) -> None:
        """Link first endpoint (or hook) -> wire -> last endpoint input."""
        if not wire.propagate:
            logger.debug("Wire %s does not propagate", wire.name)
            return

        source = wire.hook or wire.first_component
        component = engine.context.registry.get(source)
        if component.kind == ComponentKind.RELAY:
            port = wire.source_output if isinstance(wire.source_output, str) else wire.first_port
            if port not in relay_state.branch_values(component):
                logger.debug("Wire %s leaves relay %s at input %s; not a push link",
                             wire.name, source, port)
                return
            engine.attach(source, wire.name, port=port)
        else:
            engine.attach(source, wire.name)

        if wire.destination_input is None and not resolver.accepts_input(wire.last_component, wire.last_port):
            logger.debug("Wire %s ends on output %s of %s; not a push link",
                         wire.name, wire.last_port, wire.last_component)
            return

        if wire.destination_input is not None:
            index = wire.destination_input
        else:
            index = resolver.input_index(wire.last_component, wire.last_port)
        engine.attach(wire.name, wire.last_component, index)
