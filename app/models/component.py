"""
ComponentData - Pure Python data model for simulated diagram components.

This module contains no Qt dependencies. Components carry only their
simulation state (outputs, switch levers, relay flags); positions and
transforms belong to the rendering layer.

Component types use the declared diagram type names as canonical
identifiers: 'Battery', 'Switch', 'Relay', 'AndGate', 'Lightbulb', ...
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ComponentKind(str, Enum):
    """Closed set of behaviours a component can have."""

    SOURCE = "Source"
    GROUND = "Ground"
    SWITCH = "Switch"
    BUTTON = "Button"
    RELAY = "Relay"
    LOGIC_GATE = "LogicGate"
    LIGHT = "Light"
    DISPLAY = "Display"
    JOINT = "Joint"
    WIRE = "Wire"


# Declared type name -> kind
COMPONENT_TYPES = {
    "Battery": ComponentKind.SOURCE,
    "V": ComponentKind.SOURCE,
    "Ground": ComponentKind.GROUND,
    "Switch": ComponentKind.SWITCH,
    "MomentaryButton": ComponentKind.BUTTON,
    "DigitButton": ComponentKind.BUTTON,
    "Relay": ComponentKind.RELAY,
    "AndGate": ComponentKind.LOGIC_GATE,
    "OrGate": ComponentKind.LOGIC_GATE,
    "NandGate": ComponentKind.LOGIC_GATE,
    "NorGate": ComponentKind.LOGIC_GATE,
    "XorGate": ComponentKind.LOGIC_GATE,
    "Inverter": ComponentKind.LOGIC_GATE,
    "Buffer": ComponentKind.LOGIC_GATE,
    "Lightbulb": ComponentKind.LIGHT,
    "SimpleLight": ComponentKind.LIGHT,
    "BitLight": ComponentKind.LIGHT,
    "DynamicDecimal": ComponentKind.DISPLAY,
    "Joint": ComponentKind.JOINT,
    "Node": ComponentKind.JOINT,
    "Wire": ComponentKind.WIRE,
}

# Port labels per type. The first label is the default port used when a
# wire endpoint omits "io".
PORT_LABELS = {
    "Battery": ("neg", "pos"),
    "V": ("out",),
    "Ground": ("in",),
    "Switch": ("left", "out", "middle", "center"),
    "MomentaryButton": ("right", "left", "top", "bottom"),
    "DigitButton": ("right", "left", "top", "bottom"),
    "Relay": ("coilIn", "coilOut", "pivot", "pivotSide", "out0", "out1"),
    "AndGate": ("in0", "in1", "out"),
    "OrGate": ("in0", "in1", "out"),
    "NandGate": ("in0", "in1", "out"),
    "NorGate": ("in0", "in1", "out"),
    "XorGate": ("in0", "in1", "out"),
    "Inverter": ("in0", "out"),
    "Buffer": ("in0", "out"),
    "Lightbulb": ("left", "right"),
    "SimpleLight": ("left", "right", "top", "bottom"),
    "BitLight": ("left", "right", "top", "bottom"),
    "DynamicDecimal": ("center",),
    "Joint": ("center",),
    "Node": ("center",),
    "Wire": ("beg", "end"),
}

# Input port label -> input index, for components with several inputs
INPUT_PORTS = {
    "in0": 0,
    "in1": 1,
    "coilIn": 0,
    "pivot": 1,
    "pivotSide": 1,
}

# Gate type -> gate function name
GATE_TYPES = {
    "AndGate": "and",
    "OrGate": "or",
    "NandGate": "nand",
    "NorGate": "nor",
    "XorGate": "xor",
    "Inverter": "not",
    "Buffer": "buffer",
}

GATE_FUNCTIONS = {
    "and": lambda inputs: all(inputs),
    "or": lambda inputs: any(inputs),
    "nand": lambda inputs: not all(inputs),
    "nor": lambda inputs: not any(inputs),
    "xor": lambda inputs: sum(bool(i) for i in inputs) % 2 == 1,
    "not": lambda inputs: not inputs[0],
    "buffer": lambda inputs: bool(inputs[0]),
}

# Number of inputs per gate function
GATE_INPUT_COUNTS = {
    "not": 1,
    "buffer": 1,
}

# Relay ports whose conducting status is reported after a solve, in order
RELAY_CONDUCTING_PORTS = ("coilOut", "out0", "out1")

# Item keys that describe placement, not simulation state
LAYOUT_KEYS = frozenset({"name", "type", "relative", "x", "y", "scale", "rotate", "comment", "file"})


@dataclass
class ComponentData:
    """
    Pure Python data class representing one simulated component.

    The boolean ``output`` is the value pushed downstream (digital
    diagrams) or the energized verdict (closed circuit diagrams).
    """

    name: str
    component_type: str
    kind: ComponentKind
    output: bool = False

    # Switch lever position
    closed: bool = False

    # Relay state: coil flag and (coilOut, out0, out1) conducting verdicts
    triggered: bool = False
    conducting: list[bool] = field(default_factory=lambda: [False, False, False])

    # Input values for gates, relays (coil, pivot) and switches (supply)
    inputs: list[bool] = field(default_factory=list)

    # Buttons: momentary (press/release) or latching (press toggles)
    momentary: bool = False

    gate: Optional[str] = None
    do_not_propagate: bool = False
    hidden: bool = False
    properties: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Set up the kind-specific initial state."""
        if self.kind == ComponentKind.LOGIC_GATE:
            if self.gate is None:
                self.gate = GATE_TYPES.get(self.component_type, "and")
            count = GATE_INPUT_COUNTS.get(self.gate, 2)
            if not self.inputs:
                self.inputs = [False] * count
            self.output = GATE_FUNCTIONS[self.gate](self.inputs)
        elif self.kind == ComponentKind.RELAY:
            if not self.inputs:
                # Coil unpowered, pivot tied to the supply until a wire drives it
                self.inputs = [False, True]
            self.sync_relay()
        elif self.kind == ComponentKind.SWITCH:
            if not self.inputs:
                # Supply input: a switch with nothing wired into it acts as a source
                self.inputs = [True]
            self.output = self.closed
        elif self.kind == ComponentKind.SOURCE:
            self.output = self.component_type == "V"
        elif self.kind == ComponentKind.BUTTON and self.component_type == "MomentaryButton":
            self.momentary = True

    def sync_relay(self) -> None:
        """Recompute relay (coilOut, out0, out1) levels from coil, pivot and flag."""
        coil, pivot = bool(self.inputs[0]), bool(self.inputs[1])
        self.conducting = [coil, pivot and not self.triggered, pivot and self.triggered]
        self.output = coil

    @property
    def ports(self) -> tuple[str, ...]:
        """Return the port labels of this component's type."""
        return PORT_LABELS.get(self.component_type, ("center",))

    @property
    def default_port(self) -> str:
        return self.ports[0]

    @property
    def state(self) -> bool:
        """Boolean display state reported to renderers."""
        if self.kind == ComponentKind.RELAY:
            return any(self.conducting)
        return bool(self.output)

    def set_property(self, key: str, value: Any) -> None:
        """Apply one declared property."""
        self.properties[key] = value

        if key == "closed":
            self.closed = bool(value)
            if self.kind == ComponentKind.SWITCH:
                self.output = self.closed
        elif key == "initial":
            self.output = bool(value)
        elif key == "triggered":
            self.triggered = bool(value)
            if self.kind == ComponentKind.RELAY:
                self.sync_relay()
        elif key == "hidden":
            self.hidden = bool(value)
        elif key == "momentary":
            self.momentary = bool(value)
        elif key == "gate" and self.kind == ComponentKind.LOGIC_GATE:
            if value not in GATE_FUNCTIONS:
                raise ValueError(f"Unknown gate function '{value}' on {self.name}.")
            self.gate = value
            self.inputs = [False] * GATE_INPUT_COUNTS.get(value, 2)
            self.output = GATE_FUNCTIONS[value](self.inputs)

    def to_dict(self) -> dict:
        """Serialize the component's declared description."""
        data = {"name": self.name, "type": self.component_type}
        data.update(self.properties)
        return data

    @classmethod
    def from_dict(cls, data: dict, name: Optional[str] = None) -> "ComponentData":
        """
        Build a component from a declared diagram item.

        Args:
            data: The item dict ({"name": ..., "type": ..., props...}).
            name: Flattened name to use instead of ``data["name"]``.

        Raises:
            KeyError: If the declared type is not a known component type.
        """
        component_type = data["type"]
        kind = COMPONENT_TYPES[component_type]
        component = cls(name=name or data["name"], component_type=component_type, kind=kind)

        for key, value in data.items():
            if key not in LAYOUT_KEYS:
                component.set_property(key, value)

        return component

    def __repr__(self) -> str:
        return (
            f"ComponentData(name={self.name!r}, type={self.component_type!r}, "
            f"output={self.output}, closed={self.closed}, triggered={self.triggered})"
        )
