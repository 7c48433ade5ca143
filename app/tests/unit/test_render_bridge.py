"""Tests for RenderBridge, the Qt signal adapter over DiagramController."""

import pytest
from controllers.diagram_controller import DiagramController
from GUI.render_bridge import RenderBridge


@pytest.fixture
def controller():
    return DiagramController()


@pytest.fixture
def bridge(qtbot, controller):
    return RenderBridge(controller)


def collect(signal):
    received = []
    signal.connect(lambda *args: received.append(args))
    return received


class TestSignals:
    def test_load_emits_loaded_and_states(self, bridge, controller, series_model):
        loaded = collect(bridge.diagramLoaded)
        states = collect(bridge.stateChanged)
        controller.load(series_model)

        assert loaded == [("series",)]
        assert ("light", False) in states
        assert ("battery", False) in states

    def test_toggle_emits_state_and_solve(self, bridge, controller, series_model):
        controller.load(series_model)
        states = collect(bridge.stateChanged)
        solved = collect(bridge.circuitSolved)

        controller.toggle("switch1")
        controller.toggle("switch2")
        assert ("light", True) in states
        assert len(solved) == 2
        assert len(solved[-1][0].loops) == 1

    def test_display_changes(self, bridge, controller, and_gate_model):
        and_gate_model.add_component("DynamicDecimal", "inputs", digits={"0": "a", "1": "b"}, hexOnly=True)
        controller.load(and_gate_model)
        displays = collect(bridge.displayChanged)

        controller.press("b")
        assert displays == [("inputs", "02h")]

    def test_wait_for_cleared(self, qtbot, bridge, controller, series_model):
        controller.load(series_model)
        with qtbot.waitSignal(bridge.diagramCleared, timeout=1000):
            controller.clear()


class TestAttach:
    def test_detach_stops_forwarding(self, bridge, controller, series_model):
        states = collect(bridge.stateChanged)
        bridge.detach()
        controller.load(series_model)
        assert states == []
        assert bridge.controller is None

    def test_attach_replaces_previous_controller(self, qtbot, controller, series_model):
        other = DiagramController()
        bridge = RenderBridge(controller)
        bridge.attach(other)
        loaded = collect(bridge.diagramLoaded)

        controller.load(series_model)
        assert loaded == []
        other.load(series_model)
        assert loaded == [("series",)]
