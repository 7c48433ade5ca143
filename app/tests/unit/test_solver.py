"""Tests for the closed circuit solver."""

import pytest
from models.diagram import DiagramModel
from models.settings import SimulationSettings
from simulation.errors import CircuitLoopError, RelayOscillationError
from tests.conftest import build, make_wire


def close(built, *names):
    for name in names:
        built.context.registry.get(name).closed = True
    return built.solver.run()


class TestSeries:
    def test_open_switches_leave_everything_off(self, series_model):
        built = build(series_model)
        result = built.solver.run()
        assert result.loops == []
        assert result.energized == set()
        assert built.context.registry.get("light").output is False

    def test_one_closed_switch_is_not_enough(self, series_model):
        built = build(series_model)
        close(built, "switch1")
        assert built.context.registry.get("light").output is False

    def test_both_switches_close_the_loop(self, series_model):
        built = build(series_model)
        result = close(built, "switch1", "switch2")

        assert len(result.loops) == 1
        assert result.loops[0].names() == [
            "battery", "wireNegSw1", "switch1", "wireSw1Sw2", "switch2",
            "wireSw2Light", "light", "wireLightPos", "battery",
        ]
        registry = built.context.registry
        assert registry.get("light").output is True
        assert registry.get("wireSw1Sw2").output is True
        assert result.energized_wires == {"wireNegSw1", "wireSw1Sw2", "wireSw2Light", "wireLightPos"}

    def test_reopening_clears_the_colouring(self, series_model):
        built = build(series_model)
        close(built, "switch1", "switch2")
        built.context.registry.get("switch2").closed = False
        result = built.solver.run()
        assert result.energized == set()
        assert built.context.registry.get("wireNegSw1").output is False

    def test_render_callbacks_report_changes(self, series_model):
        built = build(series_model)
        recorded = []
        built.context.add_render_callback(lambda name, state: recorded.append((name, state)))
        close(built, "switch1", "switch2")
        assert ("light", True) in recorded
        assert ("wireLightPos", True) in recorded


class TestIndependentLoops:
    @pytest.fixture
    def parallel(self):
        model = DiagramModel(name="parallel", testable=True)
        model.add_component("Battery", "battery")
        model.add_component("Switch", "swA")
        model.add_component("Switch", "swB")
        model.add_component("Lightbulb", "lampA")
        model.add_component("Lightbulb", "lampB")
        model.wires = [
            make_wire("wNegA", ("battery", "neg"), ("swA", "left")),
            make_wire("wNegB", ("battery", "neg"), ("swB", "left")),
            make_wire("wA", ("swA", "out"), ("lampA", "left")),
            make_wire("wB", ("swB", "out"), ("lampB", "left")),
            make_wire("wPosA", ("lampA", "right"), ("battery", "pos")),
            make_wire("wPosB", ("lampB", "right"), ("battery", "pos")),
        ]
        return build(model)

    def test_each_loop_lights_only_its_lamp(self, parallel):
        result = close(parallel, "swA")
        assert len(result.loops) == 1
        assert parallel.context.registry.get("lampA").output is True
        assert parallel.context.registry.get("lampB").output is False
        assert not result.is_energized("wB")

    def test_both_loops(self, parallel):
        result = close(parallel, "swA", "swB")
        assert len(result.loops) == 2
        assert {"lampA", "lampB", "battery"} <= result.energized_components


class TestTerminals:
    def test_minimal_loop_from_positive_terminal(self):
        model = DiagramModel(name="minimal", testable=True)
        model.add_component("Battery", "battery")
        model.add_component("Lightbulb", "light")
        model.wires = [
            make_wire("w1", ("battery", "pos"), ("light", "left")),
            make_wire("w2", ("light", "right"), ("battery", "neg")),
        ]
        result = build(model).solver.run()
        assert result.energized == {"battery", "w1", "light", "w2"}

    def test_source_to_ground(self):
        model = DiagramModel(name="ground", testable=True)
        model.add_component("V", "v")
        model.add_component("Lightbulb", "lamp")
        model.add_component("Ground", "gnd")
        model.wires = [
            make_wire("w1", "v", ("lamp", "left")),
            make_wire("w2", ("lamp", "right"), "gnd"),
        ]
        built = build(model)
        result = built.solver.run()
        assert result.loops[0].names() == ["v", "w1", "lamp", "w2", "gnd"]
        assert built.context.registry.get("gnd").output is True

    def test_dead_end_is_not_energized(self):
        model = DiagramModel(name="dead-end", testable=True)
        model.add_component("Battery", "battery")
        model.add_component("Lightbulb", "lamp")
        model.wires = [make_wire("w1", ("battery", "neg"), ("lamp", "left"))]
        built = build(model)
        result = built.solver.run()
        assert result.loops == []
        assert built.context.registry.get("lamp").output is False


class TestRelays:
    def test_idle_relay_routes_to_out0(self, relay_model):
        built = build(relay_model)
        registry = built.context.registry
        assert registry.get("lamp0").output is True
        assert registry.get("lamp1").output is False
        assert registry.get("relay").conducting == [False, True, False]

    def test_energized_coil_triggers_relay(self, relay_model):
        built = build(relay_model)
        close(built, "switch")
        registry = built.context.registry
        assert registry.get("relay").triggered is True
        assert registry.get("relay").conducting == [True, False, True]
        assert registry.get("lamp0").output is False
        assert registry.get("lamp1").output is True

    def test_relay_can_ignore_coil_verdict(self, relay_model):
        relay_model.settings = SimulationSettings(relay_follows_coil=False)
        built = build(relay_model)
        close(built, "switch")
        registry = built.context.registry
        assert registry.get("relay").triggered is False
        assert registry.get("relay").conducting[0] is True
        assert registry.get("lamp0").output is True

    def test_self_interrupting_relay_raises(self):
        model = DiagramModel(name="buzzer", testable=True, settings=SimulationSettings(max_solve_passes=4))
        model.add_component("Battery", "battery")
        model.add_component("Relay", "relay")
        model.wires = [
            make_wire("wPivot", ("battery", "neg"), ("relay", "pivot")),
            make_wire("wFeedback", ("relay", "out0"), ("relay", "coilIn")),
            make_wire("wCoilPos", ("relay", "coilOut"), ("battery", "pos")),
        ]
        with pytest.raises(RelayOscillationError):
            build(model)


class TestUnboundedTraces:
    def test_wire_cycle_without_switch_raises(self):
        model = DiagramModel(name="cycle", testable=True)
        model.add_component("Battery", "battery")
        model.add_component("Joint", "j1")
        model.add_component("Joint", "j2")
        model.wires = [
            make_wire("w0", ("battery", "neg"), "j1"),
            make_wire("w1", "j1", "j2"),
            make_wire("w2", "j2", "j1"),
        ]
        with pytest.raises(CircuitLoopError, match="w1"):
            build(model)

    def test_open_switch_breaks_the_cycle(self):
        model = DiagramModel(name="cycle", testable=True)
        model.add_component("Battery", "battery")
        model.add_component("Joint", "j1")
        model.add_component("Switch", "gate")
        model.wires = [
            make_wire("w0", ("battery", "neg"), "j1"),
            make_wire("w1", "j1", ("gate", "left")),
            make_wire("w2", ("gate", "out"), "j1"),
        ]
        built = build(model)
        assert built.solver.run().loops == []
        with pytest.raises(CircuitLoopError):
            close(built, "gate")
