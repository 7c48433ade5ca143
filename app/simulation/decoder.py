"""
simulation/decoder.py

NumericAggregator - turns a group of component outputs into display text.

A ``DynamicDecimal`` item names the components making up its value,
either one per bit (``digits``: {"0": "bit0Light", ...}) or one per byte
(``bytes``: {"0": "lowByte", ...}). Bit sources are component outputs;
byte sources are other displays, typically 8-bit ``digits`` displays, so
a wide value is composed from its bytes. The aggregator re-renders on
every change.
"""

import logging
from typing import Callable, Optional

from models.wire import full_name

from .errors import DiagramBuildError, UnresolvedReferenceError

logger = logging.getLogger(__name__)

DisplayCallback = Callable[[str, str], None]


class NumericAggregator:
    """Running value and formatted text of one numeric display."""

    def __init__(self, name: str, hex_only: bool = False, twos_comp: bool = False,
                 show_bits: int = 0, lookup: Optional[dict] = None, lookup_only: bool = False,
                 on_text: Optional[DisplayCallback] = None):
        self.name = name
        self.hex_only = hex_only
        self.twos_comp = twos_comp
        self.show_bits = int(show_bits or 0)
        self.lookup = {str(k): str(v) for k, v in lookup.items()} if lookup else None
        self.lookup_only = lookup_only
        self.on_text = on_text

        self.value = 0
        self.byte_values: list[int] = []
        self.is_bytes = False
        self.text = ""
        self._listeners: list[tuple[Callable[[int, int], None], int]] = []

    @classmethod
    def from_properties(cls, name: str, properties: dict,
                        on_text: Optional[DisplayCallback] = None) -> "NumericAggregator":
        return cls(
            name,
            hex_only=bool(properties.get("hexOnly", False)),
            twos_comp=bool(properties.get("twosComp", False)),
            show_bits=properties.get("showBits", 0),
            lookup=properties.get("lookup"),
            lookup_only=bool(properties.get("lookupOnly", False)),
            on_text=on_text,
        )

    def connect(self, context, properties: dict, prefix: Optional[str] = None) -> None:
        """
        Subscribe to the bit or byte sources named in ``properties``.

        Bit sources are component outputs. Byte sources are other numeric
        displays (looked up in ``context.decoders``), whose value supplies
        the byte at that position.

        Raises:
            DiagramBuildError: If the positions are not usable bit or byte numbers.
            UnresolvedReferenceError: If a named source is not registered.
        """
        if "bytes" in properties:
            self.is_bytes = True
            sources = properties["bytes"]
        else:
            sources = properties.get("digits") or {}
        positions = self._positions(sources)

        if self.is_bytes:
            self.byte_values = [0] * len(positions)
            for position, source in positions:
                name = full_name(source, prefix)
                display = context.decoders.get(name)
                if display is None or display is self:
                    raise UnresolvedReferenceError(
                        f"Byte source '{name}' of '{self.name}' is not another numeric display."
                    )
                display.add_listener(self.on_change, position)
        else:
            for position, source in positions:
                context.set_notify_change(full_name(source, prefix), self.on_change, position)
        logger.debug("%s decodes %d source(s)", self.name, len(positions))

    def add_listener(self, callback: Callable[[int, int], None], param: int) -> None:
        """Report this display's value to ``callback(param, value)``, starting now."""
        self._listeners.append((callback, param))
        callback(param, self.value)

    def on_change(self, position: int, value) -> None:
        """Receive a bit (or byte) at ``position`` and re-render."""
        before = self.value
        if self.is_bytes:
            self.byte_values[position] = int(value) & 0xFF
            self.value = self._byte_total()
            self.text = self._byte_text()
        else:
            bit = 1 << position
            self.value &= ~bit
            if value:
                self.value |= bit
            self.text = self._bit_text()

        if self.on_text is not None:
            self.on_text(self.name, self.text)
        if self.value != before:
            for callback, param in list(self._listeners):
                callback(param, self.value)

    def _positions(self, sources) -> list[tuple[int, str]]:
        kind = "byte" if self.is_bytes else "bit"
        if not isinstance(sources, dict):
            raise DiagramBuildError(f"Display '{self.name}' needs a mapping of {kind} positions to sources.")
        try:
            positions = [(int(position), source) for position, source in sources.items()]
        except (TypeError, ValueError):
            raise DiagramBuildError(
                f"Display '{self.name}' has a {kind} position that is not a number: {list(sources)}"
            ) from None

        numbers = sorted(position for position, _ in positions)
        if self.is_bytes and numbers != list(range(len(numbers))):
            raise DiagramBuildError(
                f"Display '{self.name}' byte positions must run 0-{len(numbers) - 1}, got {numbers}."
            )
        if numbers and numbers[0] < 0:
            raise DiagramBuildError(f"Display '{self.name}' has negative bit position {numbers[0]}.")
        return positions

    def _bit_text(self) -> str:
        if self.show_bits:
            text = "".join(" 1" if self.value & (1 << i) else " 0" for i in reversed(range(self.show_bits)))
        elif self.value < 256:
            text = f"{self.value:02X}h"
        else:
            text = f"{self.value:X}h"

        if self.lookup is not None:
            return self._looked_up(text, self.value)
        if not self.hex_only:
            signed = self.value - 256 if self.twos_comp and self.value >= 128 else self.value
            text += f" = {signed}"
        return text

    def _byte_total(self) -> int:
        total = 0
        for byte in reversed(self.byte_values):
            total = 256 * total + byte
        return total

    def _byte_text(self) -> str:
        total = self.value
        text = " ".join(f"{byte:02X}" for byte in reversed(self.byte_values))
        if len(self.byte_values) == 1:
            text += "h"

        if self.lookup is not None:
            return self._looked_up(text, total)
        if not self.hex_only:
            # Multi-byte values are signed by their top bit
            if len(self.byte_values) > 1 and self.byte_values[-1] & 0x80:
                total -= 1 << (8 * len(self.byte_values))
            text += f" = {total}"
        return text

    def _looked_up(self, text: str, value: int) -> str:
        entry = self.lookup.get(str(value))
        if entry is None:
            return ""
        if self.lookup_only:
            return entry
        return f"{text} = {entry}"

    def __repr__(self) -> str:
        return f"NumericAggregator({self.name!r}, value={self.value}, text={self.text!r})"
