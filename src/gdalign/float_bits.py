from __future__ import annotations

"""IEEE-754 bit helpers for single/double precision position math."""

from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
import math
import re
import struct

__all__ = [
    "DOUBLE",
    "FloatFormat",
    "Precision",
    "SINGLE",
    "f32",
    "f32_bits",
    "f32_from_bits",
    "float_format",
    "parse_decimal",
]

_DECIMAL_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class Precision(str, Enum):
    SINGLE = "single"
    DOUBLE = "double"


def f32(value: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", float(value)))[0]
    except OverflowError:
        # `struct` refuses finite values that round past FLT_MAX; IEEE rounds them to inf.
        return math.copysign(math.inf, float(value))


def f32_bits(value: float) -> int:
    return struct.unpack("<i", struct.pack("<f", float(value)))[0]


def f32_from_bits(bits: int) -> float:
    return struct.unpack("<f", struct.pack("<I", int(bits) & 0xFFFFFFFF))[0]


@dataclass(frozen=True, slots=True)
class FloatFormat:
    """Arithmetic and bit reinterpretation at one IEEE-754 binary width.

    Bits are exposed as signed integers (two's complement view of the raw
    pattern), so `bits - 1` / `bits + 1` step to the adjacent representable
    value for non-negative floats.

    `key()` maps floats onto a monotone integer line (`-0.0` and `+0.0` share
    key 0) used for interval searches over the representable values.
    """

    precision: Precision
    width: int
    float_code: str
    int_code: str
    uint_code: str

    @property
    def sign_mask(self) -> int:
        return 1 << (self.width - 1)

    @property
    def raw_mask(self) -> int:
        return (1 << self.width) - 1

    @property
    def max_key(self) -> int:
        return self.key(math.inf)

    @property
    def min_key(self) -> int:
        return self.key(-math.inf)

    def round(self, value: float) -> float:
        if self.precision is Precision.SINGLE:
            return f32(value)
        return float(value)

    def add(self, a: float, b: float) -> float:
        # Operands are representable at this width, so the binary64 sum rounds
        # exactly once to the correct binary32 result.
        return self.round(float(a) + float(b))

    def sub(self, a: float, b: float) -> float:
        return self.round(float(a) - float(b))

    def div(self, a: float, b: float) -> float:
        if float(b) == 0.0:
            raise ZeroDivisionError("float division by zero")
        return self.round(float(a) / float(b))

    def bits(self, value: float) -> int:
        return struct.unpack("<" + self.int_code, struct.pack("<" + self.float_code, float(value)))[0]

    def from_bits(self, bits: int) -> float:
        raw = int(bits) & self.raw_mask
        return struct.unpack("<" + self.float_code, struct.pack("<" + self.uint_code, raw))[0]

    def same_bits(self, a: float, b: float) -> bool:
        return self.bits(a) == self.bits(b)

    def key(self, value: float) -> int:
        raw = self.bits(value) & self.raw_mask
        if raw & self.sign_mask:
            return -(raw & ~self.sign_mask)
        return raw

    def from_key(self, key: int) -> float:
        key = int(key)
        if key >= 0:
            return self.from_bits(key)
        return self.from_bits(self.sign_mask | -key)

    def next_up(self, value: float) -> float:
        return self.from_key(self.key(value) + 1)

    def next_down(self, value: float) -> float:
        return self.from_key(self.key(value) - 1)

    def parse(self, text: str) -> float:
        return parse_decimal(text, self)


SINGLE = FloatFormat(Precision.SINGLE, 32, "f", "i", "I")
DOUBLE = FloatFormat(Precision.DOUBLE, 64, "d", "q", "Q")


def float_format(precision: Precision | str) -> FloatFormat:
    precision = Precision(precision)
    if precision is Precision.SINGLE:
        return SINGLE
    return DOUBLE


def parse_decimal(text: str, fmt: FloatFormat = SINGLE) -> float:
    """Round a decimal literal to the nearest value at `fmt` width (ties to even).

    Goes through the exact rational value so single precision never suffers
    the binary64 -> binary32 double rounding that `f32(float(text))` can hit.
    Raises ValueError for anything that is not a plain finite decimal.
    """

    raw = str(text).strip()
    if not _DECIMAL_RE.fullmatch(raw):
        raise ValueError(f"not a decimal number: {text!r}")
    wide = float(raw)
    if fmt.precision is Precision.DOUBLE:
        return wide
    value = f32(wide)
    if not math.isfinite(value):
        return value
    exact = Fraction(raw)
    best = value
    best_err = abs(Fraction(value) - exact)
    for neighbour in (fmt.next_down(value), fmt.next_up(value)):
        if not math.isfinite(neighbour):
            continue
        err = abs(Fraction(neighbour) - exact)
        if err < best_err or (err == best_err and fmt.bits(neighbour) % 2 == 0 and fmt.bits(best) % 2 != 0):
            best = neighbour
            best_err = err
    return best
