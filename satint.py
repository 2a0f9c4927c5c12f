"""
Saturating fixed-width integers.

A SaturatingInt behaves like a native fixed-width integer (signed or
unsigned, any bit width) but never wraps and never raises on
arithmetic faults.  Every out-of-range result is replaced by the
nearest representable bound:

    overflow                -> max()
    underflow               -> min()
    division by zero        -> max()
    min() / -1              -> max()
    min() % -1              -> 0
    -min()                  -> min()

The operators form a closed, total set of functions: for every pair of
in-range operands there is exactly one in-range result.  Overflow is
therefore silent - a caller that needs to know compares against
min()/max() (or uses is_min()/is_max()).

Concrete types are subclasses that carry a `bounds` class attribute.
The standard ones are defined at the bottom of this module; any other
width is obtained through `saturating_int(bits, signed)`.
"""

from __future__ import annotations

import logging
import operator
from functools import lru_cache
from typing import Any, Callable

from pydantic_core import core_schema

from bounds import Bounds, truncdiv, truncmod

logger = logging.getLogger(__name__)


class SaturatingInt:
    """
    Base class of all saturating integer types.

    Instances hold a single int within `bounds` at every observable
    point.  Compound operators and the increment/decrement methods
    mutate the instance in place, so instances are not hashable.
    """

    __slots__ = ("_value",)
    __hash__ = None

    bounds: Bounds

    def __init__(self, value: Any = 0) -> None:
        if getattr(type(self), "bounds", None) is None:
            raise TypeError(
                f"{type(self).__name__} has no bounds; use a concrete type "
                f"such as Int8 or saturating_int(bits, signed)"
            )
        self._value = self._coerce(value)

    # -- construction helpers ----------------------------------------------

    @classmethod
    def _new(cls, value: int) -> SaturatingInt:
        """Wrap an int already known to be in range."""
        obj = cls.__new__(cls)
        obj._value = value
        return obj

    @classmethod
    def _coerce(cls, value: Any) -> int:
        """Bring a native int or another saturating int into range.

        The range check runs on unbounded Python ints, so an extreme
        source value can never alias during the comparison itself.
        """
        if isinstance(value, SaturatingInt):
            raw = value._value
        else:
            try:
                raw = operator.index(value)
            except TypeError:
                raise TypeError(
                    f"{cls.__name__} requires an integer, "
                    f"got {type(value).__name__}"
                ) from None
        return cls._saturate(raw)

    @classmethod
    def _saturate(cls, raw: int) -> int:
        result = cls.bounds.clamp(raw)
        if result != raw:
            logger.debug("%s saturated %d to %d", cls.__name__, raw, result)
        return result

    @classmethod
    def min(cls) -> SaturatingInt:
        return cls._new(cls.bounds.lo)

    @classmethod
    def max(cls) -> SaturatingInt:
        return cls._new(cls.bounds.hi)

    @property
    def value(self) -> int:
        return self._value

    def copy(self) -> SaturatingInt:
        return self._new(self._value)

    def is_min(self) -> bool:
        return self._value == self.bounds.lo

    def is_max(self) -> bool:
        return self._value == self.bounds.hi

    # -- saturating kernels ------------------------------------------------
    #
    # Each kernel takes two ints (a native operand may be out of range)
    # and returns an in-range int.

    @classmethod
    def _add(cls, a: int, b: int) -> int:
        return cls._saturate(a + b)

    @classmethod
    def _sub(cls, a: int, b: int) -> int:
        return cls._saturate(a - b)

    @classmethod
    def _mul(cls, a: int, b: int) -> int:
        if a == 0 or b == 0:
            return 0
        return cls._saturate(a * b)

    @classmethod
    def _div(cls, a: int, b: int) -> int:
        if b == 0:
            logger.debug("%s division by zero saturated to %d",
                         cls.__name__, cls.bounds.hi)
            return cls.bounds.hi
        # min() / -1 is the one quotient that leaves the range; it
        # saturates to max() like any other overflow.
        return cls._saturate(truncdiv(a, b))

    @classmethod
    def _mod(cls, a: int, b: int) -> int:
        if b == 0:
            logger.debug("%s modulo by zero saturated to %d",
                         cls.__name__, cls.bounds.hi)
            return cls.bounds.hi
        # min() % -1 comes out as 0.  A negative native dividend can
        # still leave an unsigned range, e.g. -7 % UInt8(2).
        return cls._saturate(truncmod(a, b))

    # -- operator plumbing -------------------------------------------------

    def _operand(self, other: Any) -> int | None:
        """Value of `other` as this type, or None if it can't take part.

        Saturating ints only combine with the same type.  Native ints
        pass through unbounded; the kernel saturates the exact result.
        """
        if isinstance(other, SaturatingInt):
            if other.bounds != self.bounds:
                return None
            return other._value
        if isinstance(other, int):
            return operator.index(other)
        return None

    def _binop(self, other: Any, kernel: Callable[[int, int], int]):
        b = self._operand(other)
        if b is None:
            return NotImplemented
        return self._new(kernel(self._value, b))

    def _rbinop(self, other: Any, kernel: Callable[[int, int], int]):
        a = self._operand(other)
        if a is None:
            return NotImplemented
        return self._new(kernel(a, self._value))

    def _ibinop(self, other: Any, kernel: Callable[[int, int], int]):
        b = self._operand(other)
        if b is None:
            return NotImplemented
        self._value = kernel(self._value, b)
        return self

    # -- arithmetic --------------------------------------------------------

    def __add__(self, other):
        return self._binop(other, self._add)

    def __radd__(self, other):
        return self._rbinop(other, self._add)

    def __iadd__(self, other):
        return self._ibinop(other, self._add)

    def __sub__(self, other):
        return self._binop(other, self._sub)

    def __rsub__(self, other):
        return self._rbinop(other, self._sub)

    def __isub__(self, other):
        return self._ibinop(other, self._sub)

    def __mul__(self, other):
        return self._binop(other, self._mul)

    def __rmul__(self, other):
        return self._rbinop(other, self._mul)

    def __imul__(self, other):
        return self._ibinop(other, self._mul)

    # `/` and `//` are both the fixed-width integer quotient, truncated
    # toward zero.
    def __truediv__(self, other):
        return self._binop(other, self._div)

    def __rtruediv__(self, other):
        return self._rbinop(other, self._div)

    def __itruediv__(self, other):
        return self._ibinop(other, self._div)

    __floordiv__ = __truediv__
    __rfloordiv__ = __rtruediv__
    __ifloordiv__ = __itruediv__

    def __mod__(self, other):
        return self._binop(other, self._mod)

    def __rmod__(self, other):
        return self._rbinop(other, self._mod)

    def __imod__(self, other):
        return self._ibinop(other, self._mod)

    def __divmod__(self, other):
        b = self._operand(other)
        if b is None:
            return NotImplemented
        a = self._value
        return self._new(self._div(a, b)), self._new(self._mod(a, b))

    def __rdivmod__(self, other):
        a = self._operand(other)
        if a is None:
            return NotImplemented
        b = self._value
        return self._new(self._div(a, b)), self._new(self._mod(a, b))

    def __neg__(self) -> SaturatingInt:
        if self._value == self.bounds.lo:
            return self._new(self._value)
        return self._new(self._saturate(-self._value))

    def __pos__(self) -> SaturatingInt:
        return self.copy()

    # -- increment / decrement ---------------------------------------------

    def increment(self) -> SaturatingInt:
        """Pre-increment: add one unless already at max(); return self."""
        if self._value < self.bounds.hi:
            self._value += 1
        return self

    def post_increment(self) -> SaturatingInt:
        """Post-increment: like increment() but return the prior value."""
        prior = self.copy()
        self.increment()
        return prior

    def decrement(self) -> SaturatingInt:
        """Pre-decrement: subtract one unless already at min(); return self."""
        if self._value > self.bounds.lo:
            self._value -= 1
        return self

    def post_decrement(self) -> SaturatingInt:
        """Post-decrement: like decrement() but return the prior value."""
        prior = self.copy()
        self.decrement()
        return prior

    # -- comparisons -------------------------------------------------------

    @staticmethod
    def _comparable(other: Any) -> int | None:
        if isinstance(other, SaturatingInt):
            return other._value
        if isinstance(other, int):
            return other
        return None

    def __eq__(self, other):
        v = self._comparable(other)
        if v is None:
            return NotImplemented
        return self._value == v

    def __ne__(self, other):
        v = self._comparable(other)
        if v is None:
            return NotImplemented
        return self._value != v

    def __lt__(self, other):
        v = self._comparable(other)
        if v is None:
            return NotImplemented
        return self._value < v

    def __le__(self, other):
        v = self._comparable(other)
        if v is None:
            return NotImplemented
        return self._value <= v

    def __gt__(self, other):
        v = self._comparable(other)
        if v is None:
            return NotImplemented
        return self._value > v

    def __ge__(self, other):
        v = self._comparable(other)
        if v is None:
            return NotImplemented
        return self._value >= v

    # -- int protocol ------------------------------------------------------

    def __int__(self) -> int:
        return self._value

    def __index__(self) -> int:
        return self._value

    def __bool__(self) -> bool:
        return self._value != 0

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value})"

    def __str__(self) -> str:
        return str(self._value)

    def __format__(self, format_spec: str) -> str:
        return format(self._value, format_spec)

    # -- pydantic ----------------------------------------------------------

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any):
        """Validate ints by clamping into this type; dump as plain int."""
        from_int = core_schema.no_info_after_validator_function(
            cls, core_schema.int_schema(strict=True)
        )
        from_saturating = core_schema.no_info_after_validator_function(
            cls, core_schema.is_instance_schema(SaturatingInt)
        )
        return core_schema.json_or_python_schema(
            json_schema=from_int,
            python_schema=core_schema.union_schema([from_saturating, from_int]),
            serialization=core_schema.plain_serializer_function_ser_schema(int),
        )


# ---------------------------------------------------------------------------
# Type factory
# ---------------------------------------------------------------------------

def saturating_int(bits: int, signed: bool = True) -> type[SaturatingInt]:
    """Return the saturating type for a bit width and signedness.

    Types are cached, so the same (bits, signed) always yields the same
    class and its instances combine with each other.
    """
    if isinstance(bits, bool) or not isinstance(bits, int):
        raise TypeError(f"bit width must be an int, got {type(bits).__name__}")
    return _build_type(bits, bool(signed))


@lru_cache(maxsize=None)
def _build_type(bits: int, signed: bool) -> type[SaturatingInt]:
    bounds = Bounds.for_width(bits, signed)
    name = f"{'Int' if signed else 'UInt'}{bits}"
    return type(name, (SaturatingInt,), {
        "__slots__": (),
        "__module__": __name__,
        "__qualname__": name,
        "bounds": bounds,
    })


Int8 = saturating_int(8, signed=True)
Int16 = saturating_int(16, signed=True)
Int32 = saturating_int(32, signed=True)
Int64 = saturating_int(64, signed=True)
UInt8 = saturating_int(8, signed=False)
UInt16 = saturating_int(16, signed=False)
UInt32 = saturating_int(32, signed=False)
UInt64 = saturating_int(64, signed=False)
