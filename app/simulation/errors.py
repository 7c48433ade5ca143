"""
simulation/errors.py

Exception hierarchy for diagram construction and simulation.

Construction errors are fatal to a build. Runtime errors only signal
topologies that would otherwise never settle.
"""


class SimulationError(Exception):
    """Base class for all diagram simulation errors."""


class DiagramBuildError(SimulationError, ValueError):
    """Raised when a diagram cannot be constructed from its description."""


class DuplicateComponentError(DiagramBuildError):
    """Raised when two items flatten to the same name."""


class UnresolvedReferenceError(DiagramBuildError, KeyError):
    """Raised when a component, port or nested diagram reference does not resolve."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ""


class DanglingWireError(DiagramBuildError):
    """Raised when a wire does not start and end on a named component."""


class UnknownComponentTypeError(DiagramBuildError):
    """Raised when a component item declares an unsupported type."""


class PropagationDepthError(SimulationError, RecursionError):
    """Raised when push propagation nests deeper than the configured limit."""


class CircuitLoopError(SimulationError):
    """Raised when a closed circuit trace would revisit a wire forever."""


class RelayOscillationError(SimulationError):
    """Raised when relays with wired coils never reach a stable state."""
