from .builder import BuildResult, DiagramBuilder
from .consistency import ConsistencyRuleEvaluator
from .context import SimulationContext
from .decoder import NumericAggregator
from .errors import (
    CircuitLoopError,
    DanglingWireError,
    DiagramBuildError,
    DuplicateComponentError,
    PropagationDepthError,
    RelayOscillationError,
    SimulationError,
    UnknownComponentTypeError,
    UnresolvedReferenceError,
)
from .ports import PortResolver
from .propagation import PropagationEngine
from .registry import ComponentRegistry
from .solver import ClosedCircuitSolver, SolveResult
from .wire_index import Edge, WireIndex

__all__ = [
    'BuildResult',
    'CircuitLoopError',
    'ClosedCircuitSolver',
    'ComponentRegistry',
    'ConsistencyRuleEvaluator',
    'DanglingWireError',
    'DiagramBuildError',
    'DiagramBuilder',
    'DuplicateComponentError',
    'Edge',
    'NumericAggregator',
    'PortResolver',
    'PropagationDepthError',
    'PropagationEngine',
    'RelayOscillationError',
    'SimulationContext',
    'SimulationError',
    'SolveResult',
    'UnknownComponentTypeError',
    'UnresolvedReferenceError',
    'WireIndex',
]
