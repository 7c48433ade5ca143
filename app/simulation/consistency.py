"""
simulation/consistency.py

Forces interlocked switches into agreement after a switch changes.
"""

import logging

from models.component import ComponentKind

from .context import SimulationContext
from .propagation import PropagationEngine

logger = logging.getLogger(__name__)


class ConsistencyRuleEvaluator:
    """Applies the diagram's consistency rules keyed by a changed switch."""

    def __init__(self, context: SimulationContext, engine: PropagationEngine):
        self.context = context
        self.engine = engine

    def apply(self, switch: str) -> list[str]:
        """
        Run every rule keyed by ``switch`` against its current lever position.

        Accordance switches take the same position, contrary switches the
        opposite one. Forced switches do not trigger rules of their own.
        In testable diagrams only the levers move; outputs are left for
        the next solve.

        Returns:
            Names of the switches that were forced, in rule order.
        """
        component = self.context.registry.find(switch)
        if component is None:
            logger.debug("Consistency pass for unknown switch %s skipped", switch)
            return []

        closed = component.closed
        forced: list[str] = []
        for rule in self.context.rules:
            if not rule.matches(switch, closed):
                continue
            for name in rule.accordance:
                if self._force(name, closed):
                    forced.append(name)
            for name in rule.contrary:
                if self._force(name, not closed):
                    forced.append(name)

        if forced:
            logger.debug("%s forced %s", switch, ", ".join(forced))
        return forced

    def _force(self, name: str, closed: bool) -> bool:
        target = self.context.registry.find(name)
        if target is None or target.kind != ComponentKind.SWITCH:
            logger.debug("Consistency rule names %s, which is not a switch; ignored", name)
            return False

        if self.context.testable:
            # Only the lever moves; the solver decides what is energized
            if target.closed != closed:
                target.closed = closed
                self.context.mark_dirty(name)
        else:
            self.engine.set_switch(name, closed)
        return True
