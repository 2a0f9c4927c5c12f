"""
Bounds layer for saturating integers.

Bounds describe the representable range of a fixed-width integer.
Every saturating operation computes its exact mathematical result on
unbounded Python ints first and then uses the bounds to bring that
result back into range - the result is never wrapped and never trapped.

This module also provides the C-style truncating division helpers that
the operators are defined in terms of.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Bounds:
    """
    An integer domain [lo, hi] of a fixed-width integer type.

    `bits` and `signed` are informational; they are filled in by
    `for_width` and left as None for ad-hoc ranges.
    """

    lo: int
    hi: int
    bits: int | None = None
    signed: bool | None = None

    def __post_init__(self):
        if self.lo > self.hi:
            raise ValueError(f"lo ({self.lo}) must be <= hi ({self.hi})")

    @classmethod
    def for_width(cls, bits: int, signed: bool = True) -> Bounds:
        """Range of a two's-complement (or unsigned) integer of `bits` bits."""
        if bits < 1:
            raise ValueError(f"bit width must be >= 1, got {bits}")
        if signed:
            return cls(lo=-(1 << (bits - 1)), hi=(1 << (bits - 1)) - 1,
                       bits=bits, signed=True)
        return cls(lo=0, hi=(1 << bits) - 1, bits=bits, signed=False)

    @property
    def width(self) -> int:
        """Total number of representable values."""
        return self.hi - self.lo + 1

    def contains(self, value: int) -> bool:
        return self.lo <= value <= self.hi

    def all_values(self) -> range:
        return range(self.lo, self.hi + 1)

    def clamp(self, raw: int) -> int:
        """Replace an out-of-range value by the nearest bound."""
        if raw > self.hi:
            return self.hi
        if raw < self.lo:
            return self.lo
        return raw


# ---------------------------------------------------------------------------
# Truncating division
# ---------------------------------------------------------------------------

def truncdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero (not floor division).

    Python's ``//`` rounds toward negative infinity.  Fixed-width
    integers in C, Java and Rust truncate toward zero instead.
    """
    q, r = divmod(a, b)
    # divmod rounds toward -inf; adjust when the result is negative
    # and there is a remainder.
    if r != 0 and (a < 0) != (b < 0):
        q += 1
    return q


def truncmod(a: int, b: int) -> int:
    """Remainder matching `truncdiv`: takes the sign of the dividend."""
    return a - b * truncdiv(a, b)


# ---------------------------------------------------------------------------
# Common bounds presets
# ---------------------------------------------------------------------------

INT8 = Bounds.for_width(8, signed=True)
INT16 = Bounds.for_width(16, signed=True)
INT32 = Bounds.for_width(32, signed=True)
INT64 = Bounds.for_width(64, signed=True)
UINT8 = Bounds.for_width(8, signed=False)
UINT16 = Bounds.for_width(16, signed=False)
UINT32 = Bounds.for_width(32, signed=False)
UINT64 = Bounds.for_width(64, signed=False)

# Small bounds useful for exhaustive verification
TINY = Bounds.for_width(4, signed=True)
UTINY = Bounds.for_width(4, signed=False)
