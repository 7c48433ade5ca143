"""
simulation/ports.py

Maps (component, port label) pairs to the attachment points used as
graph identity. Ports here are labels only; pixel coordinates belong to
the renderer.
"""

from typing import Any, Optional

from models.component import INPUT_PORTS, ComponentKind
from models.wire import PortRef

from .errors import DiagramBuildError, UnresolvedReferenceError
from .registry import ComponentRegistry


class PortResolver:
    """Resolves and validates port references against a registry."""

    def __init__(self, registry: ComponentRegistry):
        self.registry = registry

    def resolve(self, name: str, port: Optional[str] = None) -> PortRef:
        """
        Resolve a port reference.

        Args:
            name: Flattened component name.
            port: Port label, or None for the component's default port.

        Raises:
            UnresolvedReferenceError: If the component or the port label is unknown.
        """
        component = self.registry.get(name)
        if port is None or port == "":
            return PortRef(name, component.default_port)
        if port not in component.ports:
            raise UnresolvedReferenceError(
                f"Component '{name}' ({component.component_type}) has no port '{port}'. "
                f"Valid ports: {', '.join(component.ports)}"
            )
        return PortRef(name, port)

    def input_index(self, name: str, port: Optional[str] = None) -> int:
        """Return the input index addressed by a port label (0 when not an input port)."""
        ref = self.resolve(name, port)
        return INPUT_PORTS.get(ref.port, 0)

    def input_count(self, name: str) -> int:
        """Number of numbered inputs; single-input kinds report 1."""
        return len(self.registry.get(name).inputs) or 1

    def check_input(self, name: str, index: Any) -> int:
        """
        Validate an explicit ``input`` number for a wire ending at ``name``.

        Raises:
            DiagramBuildError: If ``index`` is not a whole number.
            UnresolvedReferenceError: If ``name`` has no input with that number.
        """
        try:
            number = int(index)
        except (TypeError, ValueError):
            raise DiagramBuildError(f"Input {index!r} of '{name}' is not an input number.") from None

        count = self.input_count(name)
        if not 0 <= number < count:
            raise UnresolvedReferenceError(
                f"Component '{name}' has no input {number}. Valid inputs: 0-{count - 1}"
            )
        return number

    def accepts_input(self, name: str, port: Optional[str] = None) -> bool:
        """Check whether a wire ending at (name, port) drives one of its inputs."""
        component = self.registry.get(name)
        if component.kind in (ComponentKind.RELAY, ComponentKind.LOGIC_GATE):
            return self.resolve(name, port).port in INPUT_PORTS
        return True
