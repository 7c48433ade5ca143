"""
ComponentRegistry - owns every simulated component by flattened name.

Insertion order is preserved; the solver starts its traces from sources
in the order they were registered.
"""

import logging
from typing import Iterator, Optional

from models.component import ComponentData, ComponentKind

from .errors import DuplicateComponentError, UnresolvedReferenceError

logger = logging.getLogger(__name__)


class ComponentRegistry:
    """Arena of components indexed by unique name."""

    def __init__(self):
        self._components: dict[str, ComponentData] = {}

    def register(self, component: ComponentData) -> ComponentData:
        """
        Add a component.

        Raises:
            DuplicateComponentError: If the name is already registered.
        """
        if component.name in self._components:
            raise DuplicateComponentError(f"Duplicate component name '{component.name}'.")
        self._components[component.name] = component
        logger.debug("Registered %s (%s)", component.name, component.component_type)
        return component

    def get(self, name: str) -> ComponentData:
        """
        Look up a component by name.

        Raises:
            UnresolvedReferenceError: If no component has that name.
        """
        component = self._components.get(name)
        if component is None:
            raise UnresolvedReferenceError(f"Unknown component '{name}'.")
        return component

    def find(self, name: str) -> Optional[ComponentData]:
        """Look up a component by name, returning None when missing."""
        return self._components.get(name)

    def of_kind(self, *kinds: ComponentKind) -> list[ComponentData]:
        """Return components of the given kinds in insertion order."""
        return [c for c in self._components.values() if c.kind in kinds]

    def names(self) -> list[str]:
        return list(self._components)

    def clear(self) -> None:
        self._components.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._components

    def __iter__(self) -> Iterator[ComponentData]:
        return iter(self._components.values())

    def __len__(self) -> int:
        return len(self._components)
