"""
Controllers for Propagating Circuits.

This package contains controller classes that orchestrate operations
between diagram models, the simulation core and views using an observer
pattern.
"""

from .diagram_controller import DiagramController
from .file_controller import FileController, read_diagram, validate_diagram_data

__all__ = [
    "DiagramController",
    "FileController",
    "read_diagram",
    "validate_diagram_data",
]
