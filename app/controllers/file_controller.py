"""
FileController - Handles diagram file I/O.

File dialog interaction is the responsibility of the view layer.
Recent files tracking uses QSettings for cross-session persistence.
Nested ``External`` diagrams are read from ``<file>.json`` documents
next to the diagram that references them.
"""

import json
import logging
import os
from pathlib import Path
from typing import List, Optional

from models.diagram import EXTERNAL_TYPE, DiagramModel
from PyQt6.QtCore import QSettings
from simulation.builder import BuildResult, DiagramBuilder

logger = logging.getLogger(__name__)

MAX_RECENT_FILES = 10
SETTINGS_ORG = "PropagatingCircuits"
SETTINGS_APP = "Propagating Circuits"


def validate_diagram_data(data) -> None:
    """
    Validate JSON structure before loading.

    Raises ValueError with a descriptive message if anything is wrong.
    Layout keys are not checked; only what the simulation needs.
    """
    if not isinstance(data, dict):
        raise ValueError("File does not contain a valid diagram object.")

    if "components" not in data or not isinstance(data["components"], list):
        raise ValueError("Missing or invalid 'components' list.")
    if data.get("wires") is not None and not isinstance(data["wires"], list):
        raise ValueError("Invalid 'wires' list.")

    names = set()
    for i, comp in enumerate(data["components"]):
        if not isinstance(comp, dict):
            raise ValueError(f"Component #{i + 1} is not an object.")
        if "comment" in comp:
            continue
        for key in ("name", "type"):
            if key not in comp:
                raise ValueError(f"Component #{i + 1} is missing required field '{key}'.")
        if comp["type"] == EXTERNAL_TYPE and not comp.get("file"):
            raise ValueError(f"External component '{comp['name']}' is missing required field 'file'.")
        if comp["name"] in names:
            raise ValueError(f"Duplicate component name '{comp['name']}'.")
        names.add(comp["name"])

    for i, wire in enumerate(data.get("wires") or []):
        if not isinstance(wire, dict):
            raise ValueError(f"Wire #{i + 1} is not an object.")
        if "comment" in wire:
            continue
        points = wire.get("points")
        if not isinstance(points, list) or len(points) < 2:
            raise ValueError(f"Wire #{i + 1} needs a 'points' list with at least two points.")
        for end, point in (("first", points[0]), ("last", points[-1])):
            if not isinstance(point, dict) or "name" not in point:
                raise ValueError(f"Wire #{i + 1} {end} point does not name a component.")

    for i, rule in enumerate(data.get("dependencies") or []):
        if not isinstance(rule, dict) or "name" not in rule:
            raise ValueError(f"Dependency #{i + 1} is missing required field 'name'.")


def read_diagram(filepath) -> DiagramModel:
    """
    Read and validate one diagram file.

    Raises:
        json.JSONDecodeError: If file is not valid JSON.
        ValueError: If file structure is invalid.
        OSError: If the file cannot be read.
    """
    with open(filepath, "r") as f:
        data = json.load(f)
    validate_diagram_data(data)
    return DiagramModel.from_dict(data)


class FileController:
    """
    Manages diagram file I/O.

    Handles saving/loading diagram data as JSON and tracking the current
    file path for quick-save. When a DiagramController is attached, a
    loaded diagram is built and handed to it.
    """

    def __init__(self, model: Optional[DiagramModel] = None, diagram_ctrl=None):
        self.model = model or DiagramModel()
        self.diagram_ctrl = diagram_ctrl
        self.current_file: Optional[Path] = None

    def new_diagram(self) -> None:
        """Clear the diagram and reset file state."""
        if self.diagram_ctrl is not None and self.diagram_ctrl.is_loaded:
            self.diagram_ctrl.clear()
        self.model.clear()
        self.current_file = None

    def save_diagram(self, filepath) -> None:
        """
        Save diagram to JSON file.

        Raises:
            OSError: If the file cannot be written.
            TypeError: If model data is not JSON-serializable.
        """
        filepath = Path(filepath)
        data = self.model.to_dict()
        with open(filepath, "w") as f:
            json.dump(data, f, indent=2)
        self.current_file = filepath
        self.add_recent_file(filepath)
        logger.info("Saved diagram to %s", filepath)

    def load_diagram(self, filepath) -> DiagramModel:
        """
        Load diagram from JSON file and build it if a controller is attached.

        Raises:
            json.JSONDecodeError: If file is not valid JSON.
            ValueError: If file structure is invalid.
            DiagramBuildError: If the diagram cannot be built.
            OSError: If the file cannot be read.
        """
        filepath = Path(filepath)
        model = read_diagram(filepath)
        if not model.name:
            model.name = filepath.stem

        if self.diagram_ctrl is not None:
            self.diagram_ctrl.builder = self.builder_for(filepath)
            self.diagram_ctrl.load(model)

        self.model = model
        self.current_file = filepath
        self.add_recent_file(filepath)
        logger.info("Loaded diagram %s from %s", model.name, filepath)
        return model

    def builder_for(self, filepath) -> DiagramBuilder:
        """Return a builder resolving External items next to ``filepath``."""
        base_dir = Path(filepath).resolve().parent

        def resolve(file: str) -> Optional[DiagramModel]:
            path = base_dir / file
            if not path.suffix:
                path = path.with_suffix(".json")
            if not path.exists():
                logger.debug("External diagram %s not found at %s", file, path)
                return None
            return read_diagram(path)

        return DiagramBuilder(resolve_external=resolve)

    def build(self, filepath=None) -> BuildResult:
        """Build the current model without a controller (headless use)."""
        return self.builder_for(filepath or self.current_file or ".").build(self.model)

    def has_file(self) -> bool:
        """Return whether a current file path is set (for quick-save)."""
        return self.current_file is not None

    def get_window_title(self, base: str = "Propagating Circuits") -> str:
        """Get window title based on current file."""
        if self.current_file:
            return f"{base} - {self.current_file.name}"
        return base

    def get_recent_files(self) -> List[str]:
        """
        Get list of recently opened files from QSettings.

        Returns:
            List of file paths (most recent first), with non-existent files removed.
        """
        settings = QSettings(SETTINGS_ORG, SETTINGS_APP)
        recent = settings.value("file/recent_files", [])

        if not isinstance(recent, list):
            recent = []

        existing = [f for f in recent if os.path.exists(f)]
        if len(existing) != len(recent):
            settings.setValue("file/recent_files", existing)

        return existing

    def add_recent_file(self, filepath: Path) -> None:
        """Move ``filepath`` to the front of the recent files list."""
        filepath_str = str(Path(filepath).absolute())
        recent = self.get_recent_files()

        if filepath_str in recent:
            recent.remove(filepath_str)
        recent.insert(0, filepath_str)

        settings = QSettings(SETTINGS_ORG, SETTINGS_APP)
        settings.setValue("file/recent_files", recent[:MAX_RECENT_FILES])

    def clear_recent_files(self) -> None:
        """Clear the recent files list."""
        settings = QSettings(SETTINGS_ORG, SETTINGS_APP)
        settings.setValue("file/recent_files", [])
