"""
ConsistencyRule - Pure Python data model for interlocked switch rules.

A rule keyed by one switch forces other switches to the same
(``accordance``) or opposite (``contrary``) lever position whenever the
keyed switch changes, optionally only when it reaches a required value.
"""

from dataclasses import dataclass, field
from typing import Optional


def _names(entries) -> list[str]:
    """Accept both {"name": ...} dicts and bare strings."""
    names = []
    for entry in entries or []:
        if isinstance(entry, dict):
            names.append(entry["name"])
        else:
            names.append(str(entry))
    return names


@dataclass
class ConsistencyRule:
    """Forcing relationship between one switch and others."""

    switch: str
    value: Optional[bool] = None
    accordance: list[str] = field(default_factory=list)
    contrary: list[str] = field(default_factory=list)

    def matches(self, switch: str, closed: bool) -> bool:
        """Return whether this rule fires for ``switch`` at lever position ``closed``."""
        if switch != self.switch:
            return False
        return self.value is None or self.value == closed

    def to_dict(self) -> dict:
        data = {"name": self.switch}
        if self.value is not None:
            data["value"] = self.value
        if self.accordance:
            data["accordance"] = [{"name": n} for n in self.accordance]
        if self.contrary:
            data["contrary"] = [{"name": n} for n in self.contrary]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ConsistencyRule":
        value = data.get("value")
        return cls(
            switch=data["name"],
            value=None if value is None else bool(value),
            accordance=_names(data.get("accordance")),
            contrary=_names(data.get("contrary")),
        )
