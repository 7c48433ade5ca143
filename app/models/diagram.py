"""
DiagramModel - Declarative description of one circuit diagram.

This module contains no Qt dependencies. It holds the component and wire
items as declared (before flattening), the consistency rules, the
diagram flags and any nested diagrams referenced by ``External`` items.
"""

from dataclasses import dataclass, field
from typing import Optional

from .rule import ConsistencyRule
from .settings import SimulationSettings

EXTERNAL_TYPE = "External"


@dataclass
class DiagramModel:
    """
    Central store for a declared diagram.

    ``testable`` diagrams are solved as closed circuits on every switch
    or relay change; ``consistency`` diagrams only run the rule pre-pass;
    all others propagate digitally.
    """

    name: str = ""
    components: list[dict] = field(default_factory=list)
    wires: list[dict] = field(default_factory=list)
    dependencies: list[ConsistencyRule] = field(default_factory=list)
    testable: bool = False
    consistency: bool = False
    settings: SimulationSettings = field(default_factory=SimulationSettings)

    # Nested diagrams by the name External items use in their "file" key
    library: dict[str, "DiagramModel"] = field(default_factory=dict)

    # --- Item operations ---

    def add_component(self, component_type: str, name: str, **properties) -> dict:
        """Declare a component and return its item dict."""
        item = {"name": name, "type": component_type, **properties}
        self.components.append(item)
        return item

    def add_external(self, name: str, file: str) -> dict:
        """Declare a nested diagram instance named ``name``."""
        item = {"name": name, "type": EXTERNAL_TYPE, "file": file}
        self.components.append(item)
        return item

    def add_wire(self, name: Optional[str], points: list[dict], **options) -> dict:
        """Declare a wire through the given point references."""
        item = {"points": [dict(p) for p in points], **options}
        if name:
            item["name"] = name
        self.wires.append(item)
        return item

    def add_rule(self, rule: ConsistencyRule) -> None:
        self.dependencies.append(rule)

    def component_items(self) -> list[dict]:
        """Return component items, skipping comment entries."""
        return [item for item in self.components if "comment" not in item]

    def wire_items(self) -> list[dict]:
        """Return wire items, skipping comment entries."""
        return [item for item in self.wires if "comment" not in item]

    def clear(self) -> None:
        """Clear all diagram data."""
        self.components.clear()
        self.wires.clear()
        self.dependencies.clear()
        self.library.clear()
        self.testable = False
        self.consistency = False
        self.settings = SimulationSettings()

    # --- Serialization ---

    def to_dict(self) -> dict:
        """Serialize diagram to dictionary (matches the JSON diagram format)."""
        data = {
            "name": self.name,
            "components": [dict(c) for c in self.components],
            "wires": [dict(w) for w in self.wires],
        }
        if self.testable:
            data["testable"] = True
        if self.consistency:
            data["consistency"] = True
        if self.dependencies:
            data["dependencies"] = [rule.to_dict() for rule in self.dependencies]
        if self.settings != SimulationSettings():
            data.update(self.settings.to_dict())
        if self.library:
            data["library"] = {key: sub.to_dict() for key, sub in self.library.items()}
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "DiagramModel":
        """
        Deserialize diagram from dictionary.

        Layout-only keys (transform, nodeRadius, ...) are accepted and ignored.
        """
        model = cls(
            name=data.get("name", ""),
            components=[dict(c) for c in data.get("components", [])],
            wires=[dict(w) for w in data.get("wires") or []],
            testable=bool(data.get("testable", False)),
            consistency=bool(data.get("consistency", False)),
            settings=SimulationSettings.from_dict(data),
        )
        for rule_data in data.get("dependencies") or []:
            model.dependencies.append(ConsistencyRule.from_dict(rule_data))
        for key, sub in (data.get("library") or {}).items():
            model.library[key] = cls.from_dict(sub)
        return model
