"""
Pure Python data models for circuit diagrams.

This package contains Qt-free data classes that describe diagram
components, wires, consistency rules and traced loops.
All models use only Python standard library types (no PyQt6 dependencies).
"""

from .component import (
    COMPONENT_TYPES,
    GATE_FUNCTIONS,
    INPUT_PORTS,
    PORT_LABELS,
    ComponentData,
    ComponentKind,
)
from .diagram import DiagramModel
from .loop import ClosedLoop, LoopNode
from .rule import ConsistencyRule
from .settings import SimulationSettings
from .wire import PortRef, WireData

__all__ = [
    "ClosedLoop",
    "ComponentData",
    "ComponentKind",
    "COMPONENT_TYPES",
    "ConsistencyRule",
    "DiagramModel",
    "GATE_FUNCTIONS",
    "INPUT_PORTS",
    "LoopNode",
    "PORT_LABELS",
    "PortRef",
    "SimulationSettings",
    "WireData",
]
