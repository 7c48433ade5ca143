"""
simulation/relay.py

Relay state machine. A relay is idle until its coil input goes true,
then triggered until it goes false again. While idle the pivot is
continuous with ``out0``; while triggered, with ``out1``. The inactive
branch is open whatever is wired to it.
"""

from enum import Enum

from models.component import ComponentData

PIVOT_PORTS = ("pivot", "pivotSide")
BRANCH_PORTS = ("out0", "out1")


class RelayState(Enum):
    IDLE = "idle"
    TRIGGERED = "triggered"


def state_of(relay: ComponentData) -> RelayState:
    return RelayState.TRIGGERED if relay.triggered else RelayState.IDLE


def set_triggered(relay: ComponentData, value: bool) -> bool:
    """
    Apply a coil level to the relay.

    Returns:
        True if the relay transitioned between idle and triggered.
    """
    value = bool(value)
    if relay.triggered == value:
        return False
    relay.triggered = value
    return True


def active_branch(relay: ComponentData) -> str:
    """Return the branch port currently continuous with the pivot."""
    return "out1" if relay.triggered else "out0"


def passes(relay: ComponentData, entry: str, exit: str) -> bool:
    """
    Gating rule consulted while tracing through a relay.

    The coil side always conducts between ``coilIn`` and ``coilOut``. The
    pivot side conducts only between the pivot and the active branch, in
    either direction.
    """
    if entry == "coilIn":
        return exit == "coilOut"
    if entry == "coilOut":
        return exit == "coilIn"
    if entry in PIVOT_PORTS:
        return exit == active_branch(relay)
    if entry in BRANCH_PORTS:
        return exit in PIVOT_PORTS and entry == active_branch(relay)
    return False


def branch_values(relay: ComponentData) -> dict[str, bool]:
    """
    Values a relay pushes on its output ports in digital diagrams.

    Each branch carries its enabled status: the pivot level when the
    branch is selected, false otherwise. ``coilOut`` repeats the coil.
    """
    coil, pivot = relay.inputs[0], relay.inputs[1]
    return {
        "coilOut": bool(coil),
        "out0": bool(pivot) and not relay.triggered,
        "out1": bool(pivot) and relay.triggered,
    }
