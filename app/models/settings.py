"""Simulation settings read from a diagram's top-level keys."""

from dataclasses import dataclass

DEFAULT_MAX_PROPAGATION_DEPTH = 150
DEFAULT_MAX_SOLVE_PASSES = 16


@dataclass
class SimulationSettings:
    """
    Tunables for one diagram.

    max_propagation_depth bounds nested push notifications so that a
    feedback loop which never settles raises instead of overflowing the
    interpreter stack. max_solve_passes bounds solver re-runs while
    relays with wired coils follow their own verdict.
    """

    max_propagation_depth: int = DEFAULT_MAX_PROPAGATION_DEPTH
    max_solve_passes: int = DEFAULT_MAX_SOLVE_PASSES
    relay_follows_coil: bool = True

    def to_dict(self) -> dict:
        return {
            "maxPropagationDepth": self.max_propagation_depth,
            "maxSolvePasses": self.max_solve_passes,
            "relayFollowsCoil": self.relay_follows_coil,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SimulationSettings":
        """Read settings from a diagram dict, ignoring unrelated keys."""
        settings = cls()
        if "maxPropagationDepth" in data:
            settings.max_propagation_depth = int(data["maxPropagationDepth"])
        if "maxSolvePasses" in data:
            settings.max_solve_passes = int(data["maxSolvePasses"])
        if "relayFollowsCoil" in data:
            settings.relay_follows_coil = bool(data["relayFollowsCoil"])
        if settings.max_propagation_depth < 1:
            raise ValueError("maxPropagationDepth must be at least 1.")
        if settings.max_solve_passes < 1:
            raise ValueError("maxSolvePasses must be at least 1.")
        return settings
