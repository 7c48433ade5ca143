"""
WireData - Pure Python data model for diagram wires.

This module contains no Qt dependencies. Only the first and last named
points of a declared wire carry simulation meaning; bend points are kept
as raw waypoints for the renderer.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class PortRef:
    """A (component, port) attachment point used as graph identity."""

    component: str
    port: str

    def __str__(self) -> str:
        return f"{self.component}.{self.port}" if self.port else self.component


def full_name(name: str, prefix: Optional[str] = None) -> str:
    """Form the flattened name of an item declared inside a sub-diagram."""
    if prefix:
        return f"{prefix}.{name}"
    return name


@dataclass
class WireData:
    """
    Pure Python data class representing a wire between two endpoints.

    ``first`` and ``last`` hold the declared (flattened) names and the
    declared ``io`` labels, which may be None until the port resolver
    assigns the component's default port.
    """

    name: str
    first_component: str
    last_component: str
    first_port: Optional[str] = None
    last_port: Optional[str] = None

    # Intermediate bend points, irrelevant to simulation
    waypoints: list[dict[str, Any]] = field(default_factory=list)

    # Push-link details for digital diagrams
    source_output: Any = None  # "output" selector on the first point
    destination_input: Optional[int] = None  # "input" index on the last point
    hook: Optional[str] = None  # replaces the first component as push source
    propagate: bool = True

    @property
    def first(self) -> PortRef:
        return PortRef(self.first_component, self.first_port or "")

    @property
    def last(self) -> PortRef:
        return PortRef(self.last_component, self.last_port or "")

    def get_endpoints(self) -> list[PortRef]:
        """
        Get both endpoints of this wire.

        Returns:
            List of two PortRef, first endpoint first.
        """
        return [self.first, self.last]

    def connects_component(self, name: str) -> bool:
        """Check if this wire ends at the given component."""
        return self.first_component == name or self.last_component == name

    def other_end(self, name: str, port: Optional[str] = None) -> Optional[PortRef]:
        """Return the endpoint opposite (name, port), or None if not attached there."""
        if self.first_component == name and (port is None or self.first_port == port):
            return self.last
        if self.last_component == name and (port is None or self.last_port == port):
            return self.first
        return None

    def to_dict(self) -> dict:
        """
        Serialize wire to a declared diagram item.

        Only endpoints are written back; bend points carry no identity.
        """
        first = {"name": self.first_component}
        if self.first_port:
            first["io"] = self.first_port
        if self.source_output is not None:
            first["output"] = self.source_output
        if self.hook:
            first["hook"] = self.hook

        last = {"name": self.last_component}
        if self.last_port:
            last["io"] = self.last_port
        if self.destination_input is not None:
            last["input"] = self.destination_input

        data = {"name": self.name, "points": [first, *self.waypoints, last]}
        if not self.propagate:
            data["propagate"] = False
        return data

    @classmethod
    def from_dict(cls, data: dict, prefix: Optional[str] = None, default_name: str = "") -> "WireData":
        """
        Deserialize a declared wire item.

        Args:
            data: The wire item ({"name": ..., "points": [...]}).
            prefix: Sub-diagram prefix applied to every referenced name.
            default_name: Name used when the item is unnamed.

        Raises:
            ValueError: If the first or last point does not reference a component.
        """
        points = data.get("points", [])
        name = full_name(data["name"], prefix) if data.get("name") else default_name

        if len(points) < 2 or "name" not in points[0] or "name" not in points[-1]:
            raise ValueError(f"Wire '{name}' must start and end on a named component.")

        first, last = points[0], points[-1]
        hook = first.get("hook")

        return cls(
            name=name,
            first_component=full_name(first["name"], prefix),
            last_component=full_name(last["name"], prefix),
            first_port=first.get("io"),
            last_port=last.get("io"),
            waypoints=[dict(p) for p in points[1:-1]],
            source_output=first.get("output"),
            destination_input=last.get("input"),
            hook=full_name(hook, prefix) if hook else None,
            propagate=data.get("propagate", True) is not False,
        )

    def __repr__(self) -> str:
        return f"WireData({self.name}: {self.first} -> {self.last})"
