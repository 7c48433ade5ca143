"""
Propagating Circuits Scripting API: programmatic diagram creation and simulation.

This package provides a headless Python API for declaring, building and
driving diagrams without the GUI.

Usage::

    from scripting import Diagram

    d = Diagram(testable=True)
    d.add_component("Battery", "battery")
    d.add_component("Switch", "switch1")
    d.add_component("Lightbulb", "light")
    d.add_wire("wireNeg", ("battery", "neg"), ("switch1", "left"))
    d.add_wire("wireOut", ("switch1", "out"), ("light", "left"))
    d.add_wire("wirePos", ("light", "right"), ("battery", "pos"))

    d.toggle("switch1")
    print(d.state("light"))
"""

from scripting.diagram import Diagram

__all__ = ["Diagram"]
