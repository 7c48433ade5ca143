"""
WireIndex - adjacency over declared wires, keyed by endpoint identity.

Built once per diagram while wires are resolved; read by the closed
circuit solver on every solve.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

from models.wire import PortRef, WireData

from .errors import DuplicateComponentError


@dataclass(frozen=True)
class Edge:
    """A wire seen from one of its endpoints."""

    wire: str
    near: PortRef
    far: PortRef


class WireIndex:
    """Insertion-ordered index of wires by name and by endpoint."""

    def __init__(self):
        self._wires: dict[str, WireData] = {}
        self._by_component: dict[str, list[Edge]] = {}
        self._outgoing: dict[str, list[Edge]] = {}

    def add(self, wire: WireData) -> None:
        """
        Index a resolved wire.

        Raises:
            DuplicateComponentError: If a wire with that name is already indexed.
        """
        if wire.name in self._wires:
            raise DuplicateComponentError(f"Duplicate wire name '{wire.name}'.")
        self._wires[wire.name] = wire

        forward = Edge(wire.name, wire.first, wire.last)
        backward = Edge(wire.name, wire.last, wire.first)
        self._outgoing.setdefault(wire.first_component, []).append(forward)
        self._by_component.setdefault(wire.first_component, []).append(forward)
        self._by_component.setdefault(wire.last_component, []).append(backward)

    def edges_from(self, name: str, port: Optional[str] = None) -> list[Edge]:
        """
        Return every wire attached to ``name`` (at ``port``, if given),
        traversable from either endpoint toward the other.
        """
        edges = self._by_component.get(name, [])
        if port is None:
            return list(edges)
        return [edge for edge in edges if edge.near.port == port]

    def outgoing(self, name: str) -> list[Edge]:
        """Return wires whose first endpoint is ``name``, in declaration order."""
        return list(self._outgoing.get(name, []))

    def get(self, name: str) -> Optional[WireData]:
        return self._wires.get(name)

    def wires(self) -> list[WireData]:
        return list(self._wires.values())

    def is_attached(self, name: str, port: str) -> bool:
        """Check whether any wire ends at (name, port)."""
        return bool(self.edges_from(name, port))

    def clear(self) -> None:
        self._wires.clear()
        self._by_component.clear()
        self._outgoing.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._wires

    def __iter__(self) -> Iterator[WireData]:
        return iter(self._wires.values())

    def __len__(self) -> int:
        return len(self._wires)
