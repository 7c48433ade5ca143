"""
Diagram: high-level scripting API for building and driving diagrams.

No GUI dependency. Wraps the model, DiagramController and the simulation
core behind a small fluent interface for headless use and tests.
"""

import json
from pathlib import Path
from typing import Optional, Union

from controllers.diagram_controller import DiagramController
from models.component import COMPONENT_TYPES
from models.diagram import EXTERNAL_TYPE, DiagramModel
from models.loop import ClosedLoop
from models.rule import ConsistencyRule


def _point(ref) -> dict:
    """Turn a name, a (name, io) pair or a point dict into a wire point."""
    if isinstance(ref, dict):
        return dict(ref)
    if isinstance(ref, (tuple, list)):
        name, io = ref
        return {"name": name, "io": io}
    return {"name": str(ref)}


class Diagram:
    """A scriptable diagram that can be declared, built and driven programmatically.

    Args:
        model: An existing DiagramModel to wrap. If None, creates an empty diagram.
        testable: Solve as a closed circuit instead of propagating digitally.
    """

    def __init__(self, model: Optional[DiagramModel] = None, testable: Optional[bool] = None):
        self._model = model or DiagramModel()
        if testable is not None:
            self._model.testable = testable
        self._controller = DiagramController(self._model)
        self._builder = None

    # --- Factory methods ---

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Diagram":
        """Load and build a diagram from a JSON file.

        External items are resolved from sibling files.

        Raises:
            FileNotFoundError: If the file does not exist.
            json.JSONDecodeError: If the file is not valid JSON.
            ValueError: If the JSON structure is invalid or the diagram cannot be built.
        """
        from controllers.file_controller import FileController, read_diagram

        path = Path(path)
        model = read_diagram(path)
        if not model.name:
            model.name = path.stem
        diagram = cls(model)
        diagram._builder = FileController(model).builder_for(path)
        diagram.build()
        return diagram

    # --- Declaration ---

    def add_component(self, component_type: str, name: str, **properties) -> "Diagram":
        """Declare a component.

        Raises:
            ValueError: If the component_type is not recognized.
        """
        if component_type not in COMPONENT_TYPES and component_type != EXTERNAL_TYPE:
            raise ValueError(
                f"Unknown component type '{component_type}'. Valid types: {', '.join(COMPONENT_TYPES)}"
            )
        self._model.add_component(component_type, name, **properties)
        return self

    def add_external(self, name: str, sub: "Diagram", file: Optional[str] = None) -> "Diagram":
        """Nest another diagram under ``name``."""
        file = file or sub.model.name or name
        self._model.library[file] = sub.model
        self._model.add_external(name, file)
        return self

    def add_wire(self, name: Optional[str], *points, **options) -> "Diagram":
        """Declare a wire through ``points``: names, (name, io) pairs or point dicts."""
        self._model.add_wire(name, [_point(p) for p in points], **options)
        return self

    def add_rule(self, switch: str, value: Optional[bool] = None,
                 accordance: Optional[list[str]] = None,
                 contrary: Optional[list[str]] = None) -> "Diagram":
        """Declare a consistency rule keyed by ``switch``."""
        self._model.add_rule(ConsistencyRule(switch, value, list(accordance or []), list(contrary or [])))
        return self

    # --- Lifecycle ---

    def build(self) -> "Diagram":
        """Build (or rebuild) the declared diagram.

        Raises:
            DiagramBuildError: If the diagram cannot be built.
        """
        if self._builder is not None:
            self._controller.builder = self._builder
        self._controller.load(self._model)
        return self

    def _ensure_built(self) -> DiagramController:
        if not self._controller.is_loaded:
            self.build()
        return self._controller

    def save(self, path: Union[str, Path]) -> None:
        """Save the declared diagram as JSON."""
        with open(Path(path), "w") as f:
            json.dump(self._model.to_dict(), f, indent=2)

    # --- Events ---

    def toggle(self, name: str) -> bool:
        return self._ensure_built().toggle(name)

    def press(self, name: str) -> None:
        self._ensure_built().press(name)

    def release(self, name: str) -> None:
        self._ensure_built().release(name)

    def set_coil_input(self, name: str, value: bool) -> None:
        self._ensure_built().set_coil_input(name, value)

    # --- Queries ---

    def state(self, name: str) -> bool:
        return self._ensure_built().state(name)

    def energized(self) -> set[str]:
        return self._ensure_built().energized()

    def display_text(self, name: str) -> str:
        return self._ensure_built().display_text(name)

    @property
    def loops(self) -> list[ClosedLoop]:
        return self._ensure_built().loops

    @property
    def controller(self) -> DiagramController:
        return self._controller

    @property
    def model(self) -> DiagramModel:
        return self._model

    @property
    def testable(self) -> bool:
        return self._model.testable

    @testable.setter
    def testable(self, value: bool) -> None:
        self._model.testable = bool(value)

    def __repr__(self) -> str:
        return (
            f"Diagram({self._model.name!r}, components={len(self._model.components)}, "
            f"wires={len(self._model.wires)})"
        )
