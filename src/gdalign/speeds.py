from __future__ import annotations

from enum import Enum

from .float_bits import parse_decimal

__all__ = [
    "SPEED_LABELS",
    "SpeedPreset",
    "parse_speed",
]


class SpeedPreset(Enum):
    """Horizontal speed portals, in units per second (exact float32 values)."""

    HALF = parse_decimal("251.16008")
    NORMAL = parse_decimal("311.5801")
    DOUBLE = parse_decimal("387.42014")
    TRIPLE = parse_decimal("468.00015")
    QUADRUPLE = parse_decimal("576.0002")

    @property
    def units_per_second(self) -> float:
        return float(self.value)

    @property
    def label(self) -> str:
        return SPEED_LABELS[self]


SPEED_LABELS: dict[SpeedPreset, str] = {
    SpeedPreset.HALF: "0.5x",
    SpeedPreset.NORMAL: "1x",
    SpeedPreset.DOUBLE: "2x",
    SpeedPreset.TRIPLE: "3x",
    SpeedPreset.QUADRUPLE: "4x",
}

_SPEED_BY_KEY: dict[str, SpeedPreset] = {
    "0.5": SpeedPreset.HALF,
    ".5": SpeedPreset.HALF,
    "1": SpeedPreset.NORMAL,
    "2": SpeedPreset.DOUBLE,
    "3": SpeedPreset.TRIPLE,
    "4": SpeedPreset.QUADRUPLE,
}


def parse_speed(text: str | SpeedPreset) -> SpeedPreset:
    """Accept `1x`, `1`, `0.5X`, or a preset name such as `normal`."""

    if isinstance(text, SpeedPreset):
        return text
    raw = str(text).strip().lower()
    key = raw.replace("x", "")
    preset = _SPEED_BY_KEY.get(key)
    if preset is not None:
        return preset
    by_name = raw.upper()
    if by_name in SpeedPreset.__members__:
        return SpeedPreset[by_name]
    choices = ", ".join(SPEED_LABELS.values())
    raise ValueError(f"unknown speed {text!r}; expected one of {choices}")
