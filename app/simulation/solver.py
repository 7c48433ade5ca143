"""
simulation/solver.py

Closed circuit solver for switch and battery diagrams.

Every source starts a depth-first trace over the wire index. A trace
stops at an open switch or released button (no record), or records a
closed loop when it reaches a ground or a second source. Everything on
at least one loop is energized; everything else is not. Relays are gated
at traversal time because their flag may change between solves.
"""

import logging
from dataclasses import dataclass, field

from models.component import RELAY_CONDUCTING_PORTS, ComponentData, ComponentKind
from models.loop import ClosedLoop, LoopNode

from . import relay as relay_state
from .context import SimulationContext
from .errors import CircuitLoopError, RelayOscillationError

logger = logging.getLogger(__name__)


@dataclass
class SolveResult:
    """Verdict of one solve."""

    loops: list[ClosedLoop] = field(default_factory=list)
    energized_components: set[str] = field(default_factory=set)
    energized_wires: set[str] = field(default_factory=set)
    # relay name -> [coilOut, out0, out1] conducting
    relays: dict[str, list[bool]] = field(default_factory=dict)

    def is_energized(self, name: str) -> bool:
        return name in self.energized_components or name in self.energized_wires

    @property
    def energized(self) -> set[str]:
        return self.energized_components | self.energized_wires


class ClosedCircuitSolver:
    """Traces complete source-to-terminal paths through a SimulationContext."""

    def __init__(self, context: SimulationContext):
        self.context = context

    def trace(self) -> list[ClosedLoop]:
        """Trace from every source in registry order and return the loops found."""
        loops: list[ClosedLoop] = []
        for source in self.context.registry.of_kind(ComponentKind.SOURCE):
            self._trace(source.name, "", [], frozenset(), loops)
        logger.debug("Traced %d closed loop(s)", len(loops))
        return loops

    def _trace(self, name: str, port: str, path: list[LoopNode],
               wires_on_path: frozenset, loops: list[ClosedLoop]) -> None:
        component = self.context.registry.get(name)

        if component.kind in (ComponentKind.SWITCH, ComponentKind.BUTTON) and not component.closed:
            return

        if component.kind == ComponentKind.GROUND or (component.kind == ComponentKind.SOURCE and path):
            loops.append(ClosedLoop(path + [LoopNode(name)]))
            return

        if component.kind == ComponentKind.RELAY:
            path = path + [LoopNode(name, port)]
        else:
            path = path + [LoopNode(name)]

        for edge in self.context.wire_index.outgoing(name):
            step = path
            if component.kind == ComponentKind.RELAY:
                if not relay_state.passes(component, port, edge.near.port):
                    continue
                step = path + [LoopNode(name, edge.near.port)]

            if edge.wire in wires_on_path:
                raise CircuitLoopError(
                    f"Wire '{edge.wire}' is part of a loop with no open switch; "
                    f"the trace from '{path[0].name}' would never finish."
                )
            self._trace(edge.far.component, edge.far.port,
                        step + [LoopNode(edge.wire)], wires_on_path | {edge.wire}, loops)

    def solve(self) -> SolveResult:
        """Trace the diagram and union the loops into an energized verdict."""
        loops = self.trace()
        result = SolveResult(loops=loops)

        on_loops: set[tuple[str, str]] = set()
        for loop in loops:
            for node in loop.nodes:
                on_loops.add((node.name, node.port))
        names = {name for name, _ in on_loops}

        for wire in self.context.wire_index:
            if wire.name in names:
                result.energized_wires.add(wire.name)

        for component in self.context.registry:
            if component.kind == ComponentKind.WIRE:
                continue
            if component.kind == ComponentKind.RELAY:
                result.relays[component.name] = [(component.name, p) in on_loops for p in RELAY_CONDUCTING_PORTS]
            elif component.name in names:
                result.energized_components.add(component.name)

        return result

    def apply(self, result: SolveResult) -> None:
        """Colour every wire and component from the verdict and mark changes dirty."""
        for wire in self.context.wire_index:
            self._set(self.context.registry.find(wire.name), result.is_energized(wire.name))

        for component in self.context.registry:
            if component.kind == ComponentKind.WIRE:
                continue
            if component.kind == ComponentKind.RELAY:
                conducting = result.relays.get(component.name, [False, False, False])
                if component.conducting != conducting:
                    component.conducting = list(conducting)
                    self.context.mark_dirty(component.name)
            else:
                self._set(component, component.name in result.energized_components)

    def _set(self, component: ComponentData, value: bool) -> None:
        if component is not None and component.output != value:
            component.output = value
            self.context.mark_dirty(component.name)
            self.context.notify_all(component)

    def run(self) -> SolveResult:
        """
        Solve, colour and refresh the whole diagram.

        Relays whose coil is wired follow their coil verdict; the diagram is
        re-solved until no relay changes state.

        Raises:
            RelayOscillationError: If relays still change after the allowed passes.
            CircuitLoopError: If a trace revisits a wire.
        """
        passes = self.context.settings.max_solve_passes
        for attempt in range(passes):
            result = self.solve()
            self.apply(result)
            if not self._settle_relays(result):
                logger.info(
                    "Solved %d loop(s); %d energized item(s)", len(result.loops), len(result.energized)
                )
                self.context.flush()
                return result
            logger.debug("Relay state changed on pass %d; solving again", attempt + 1)

        raise RelayOscillationError(f"Relays did not settle after {passes} solve passes.")

    def _settle_relays(self, result: SolveResult) -> bool:
        """Let coil-wired relays follow their coil verdict. Returns True if any changed."""
        if not self.context.settings.relay_follows_coil:
            return False

        changed = False
        for component in self.context.registry.of_kind(ComponentKind.RELAY):
            if not self.context.wire_index.is_attached(component.name, "coilIn"):
                continue
            coil_energized = result.relays.get(component.name, [False])[0]
            if relay_state.set_triggered(component, coil_energized):
                self.context.mark_dirty(component.name)
                changed = True
        return changed
