from .GUI import RenderBridge
from .simulation import (ClosedCircuitSolver, ComponentRegistry, DiagramBuilder,
                         PropagationEngine, SimulationContext)

__all__ = ['ClosedCircuitSolver', 'ComponentRegistry', 'DiagramBuilder',
    'PropagationEngine',
    'RenderBridge',
    'SimulationContext',
]
