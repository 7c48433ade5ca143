"""
Shared test fixtures for the Propagating Circuits test suite.

All fixtures build pure-Python model objects (no Qt dependencies).
"""

import os
import sys
from pathlib import Path

# Run Qt headless when no display platform is configured (e.g. CI).
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Ensure app/ is on sys.path so bare imports (models, simulation, GUI, controllers)
# work when running individual test files (e.g., python -m pytest app/tests/unit/test_foo.py).
_app_dir = str(Path(__file__).resolve().parent.parent)
if _app_dir not in sys.path:
    sys.path.insert(0, _app_dir)

import pytest
from models.component import ComponentData
from models.diagram import DiagramModel
from simulation.builder import DiagramBuilder

EXAMPLES_DIR = Path(_app_dir) / "examples"


def make_component(component_type, name, **properties):
    """Helper to create a ComponentData with minimal boilerplate."""
    return ComponentData.from_dict({"name": name, "type": component_type, **properties})


def make_wire(name, first, last, **options):
    """Helper to create a declared wire item from (name, io) pairs or bare names."""
    points = []
    for ref in (first, last):
        if isinstance(ref, tuple):
            points.append({"name": ref[0], "io": ref[1]})
        else:
            points.append({"name": ref})
    item = {"points": points, **options}
    if name:
        item["name"] = name
    return item


def build(model):
    """Build a DiagramModel and return the BuildResult."""
    return DiagramBuilder().build(model)


@pytest.fixture
def events():
    """Fixture that returns a list and a callback that appends events to it."""
    recorded = []

    def callback(event, data):
        recorded.append((event, data))

    return recorded, callback


@pytest.fixture
def series_model():
    """
    battery.neg -- switch1 -- switch2 -- light -- battery.pos

    The light is on only when both switches are closed.
    """
    model = DiagramModel(name="series", testable=True)
    model.add_component("Switch", "switch1")
    model.add_component("Switch", "switch2")
    model.add_component("Lightbulb", "light")
    model.add_component("Battery", "battery")
    model.wires = [
        make_wire("wireNegSw1", ("battery", "neg"), ("switch1", "left")),
        make_wire("wireSw1Sw2", ("switch1", "out"), "switch2"),
        make_wire("wireSw2Light", ("switch2", "out"), ("light", "left")),
        make_wire("wireLightPos", ("light", "right"), ("battery", "pos")),
    ]
    return model


@pytest.fixture
def relay_model():
    """
    A switch powers the relay coil; the pivot is fed from the battery and
    routes it to lamp0 (idle) or lamp1 (triggered).
    """
    model = DiagramModel(name="relay", testable=True)
    model.add_component("Battery", "battery")
    model.add_component("Switch", "switch")
    model.add_component("Relay", "relay")
    model.add_component("Lightbulb", "lamp0")
    model.add_component("Lightbulb", "lamp1")
    model.wires = [
        make_wire("wireBatSwitch", ("battery", "neg"), ("switch", "left")),
        make_wire("wireBatPivot", ("battery", "neg"), ("relay", "pivot")),
        make_wire("wireSwitchCoil", ("switch", "out"), ("relay", "coilIn")),
        make_wire("wireCoilPos", ("relay", "coilOut"), ("battery", "pos")),
        make_wire("wireOut0", ("relay", "out0"), ("lamp0", "left")),
        make_wire("wireOut1", ("relay", "out1"), ("lamp1", "left")),
        make_wire("wireLamp0Pos", ("lamp0", "right"), ("battery", "pos")),
        make_wire("wireLamp1Pos", ("lamp1", "right"), ("battery", "pos")),
    ]
    return model


@pytest.fixture
def and_gate_model():
    """Two latching buttons into an AND gate driving a lamp."""
    model = DiagramModel(name="and")
    model.add_component("DigitButton", "a")
    model.add_component("DigitButton", "b")
    model.add_component("AndGate", "gate")
    model.add_component("Lightbulb", "lamp")
    model.wires = [
        make_wire("wireA", "a", ("gate", "in0")),
        make_wire("wireB", "b", ("gate", "in1")),
        make_wire("wireOut", ("gate", "out"), ("lamp", "left")),
    ]
    return model
