"""
ClosedLoop - one traced path from a source to a terminal.

This module contains no Qt dependencies.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class LoopNode:
    """One visited step of a trace: a component (at a port) or a wire."""

    name: str
    port: str = ""


@dataclass
class ClosedLoop:
    """Ordered nodes visited while tracing a complete circuit."""

    nodes: list[LoopNode] = field(default_factory=list)

    def touches(self, name: str, port: Optional[str] = None) -> bool:
        """Check whether ``name`` (at ``port``, if given) lies on this loop."""
        for node in self.nodes:
            if node.name == name and (port is None or node.port == port):
                return True
        return False

    def names(self) -> list[str]:
        return [node.name for node in self.nodes]

    def __len__(self) -> int:
        return len(self.nodes)

    def __repr__(self) -> str:
        path = " -> ".join(f"{n.name}:{n.port}" if n.port else n.name for n in self.nodes)
        return f"ClosedLoop({path})"
