"""
Contract layer for saturating integers.

One Spec per operator group (addition, division, negation, ...) lists
the saturation rules that group must obey, e.g. "overflow clamps to
max()" or "min() % -1 is 0".  Every rule is a Property whose predicate
receives the saturating type under test and raw in-range operand ints,
builds instances from them and returns whether the rule held.

The reference_* functions state the operator rules the slow, literal
way: every overflow is detected by comparing an operand against a bound
*before* the operation, exactly as a fixed-width implementation has to.
The satint kernels instead compute on unbounded ints and clamp, so the
two formulations cross-check each other.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass, field
from typing import Any, Callable

from bounds import Bounds, truncdiv, truncmod
from satint import SaturatingInt, saturating_int


# ---------------------------------------------------------------------------
# Contract primitives
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Property:
    """One saturation rule; `check(sat_type, *operands)` evaluates it."""

    name: str
    description: str
    predicate: Callable[..., bool]
    bounds: Bounds

    def check(self, *args: Any) -> bool:
        return self.predicate(*args)


@dataclass
class Spec:
    """The rules of one operator group, in the order they are reported."""

    name: str
    properties: list[Property] = field(default_factory=list)

    def add(self, prop: Property) -> None:
        self.properties.append(prop)

    def __iter__(self):
        return iter(self.properties)

    def __len__(self):
        return len(self.properties)


# ---------------------------------------------------------------------------
# Reference rules
# ---------------------------------------------------------------------------

def reference_add(bounds: Bounds, a: int, b: int) -> int:
    lo, hi = bounds.lo, bounds.hi
    if b > 0 and a > hi - b:
        return hi
    if b < 0 and a < lo - b:
        return lo
    return a + b


def reference_sub(bounds: Bounds, a: int, b: int) -> int:
    lo, hi = bounds.lo, bounds.hi
    if b > 0 and a < lo + b:
        return lo
    if b < 0 and a > hi + b:
        return hi
    return a - b


def reference_mul(bounds: Bounds, a: int, b: int) -> int:
    lo, hi = bounds.lo, bounds.hi
    if a == 0 or b == 0:
        return 0
    if a > 0 and b > 0 and a > truncdiv(hi, b):
        return hi
    if a > 0 and b < 0 and a > truncdiv(lo, b):
        return lo
    if a < 0 and b > 0 and a < truncdiv(lo, b):
        return lo
    if a < 0 and b < 0 and a < truncdiv(hi, b):
        return hi
    return a * b


def reference_div(bounds: Bounds, a: int, b: int) -> int:
    if b == 0:
        return bounds.hi
    if a == bounds.lo and b == -1:
        return bounds.hi
    return truncdiv(a, b)


def reference_mod(bounds: Bounds, a: int, b: int) -> int:
    if b == 0:
        return bounds.hi
    if a == bounds.lo and b == -1:
        return 0
    return truncmod(a, b)


def reference_neg(bounds: Bounds, a: int) -> int:
    if a == bounds.lo:
        return a
    # Unsigned types have no negative values: anything but 0 floors.
    return bounds.clamp(-a)


# ---------------------------------------------------------------------------
# Predicate helpers
# ---------------------------------------------------------------------------

def _apply(T: type[SaturatingInt], op: Callable, a: int, b: int) -> int:
    return op(T(a), T(b)).value


def _compound_matches(
    T: type[SaturatingInt], op: Callable, iop: Callable, a: int, b: int
) -> bool:
    x = T(a)
    result = iop(x, T(b))
    return result is x and x.value == _apply(T, op, a, b)


def _fixed_point(
    T: type[SaturatingInt], op: Callable, a: int, b: int
) -> bool:
    """Re-applying an operation whose result sits at a bound stays there."""
    first = _apply(T, op, a, b)
    if first not in (T.bounds.lo, T.bounds.hi):
        return True
    # Only meaningful when the operand pushes further out of range.
    again = _apply(T, op, first, b)
    pushes_out = (
        (first == T.bounds.hi and op(first, b) >= first)
        or (first == T.bounds.lo and op(first, b) <= first)
    )
    return again == first if pushes_out else True


def _arith_spec(
    name: str,
    bounds: Bounds,
    op: Callable,
    iop: Callable,
    reference: Callable[[Bounds, int, int], int],
) -> Spec:
    lo, hi = bounds.lo, bounds.hi

    spec = Spec(name=name)

    spec.add(Property(
        name="closure",
        description="Result stays within bounds",
        predicate=lambda T, a, b: lo <= _apply(T, op, a, b) <= hi,
        bounds=bounds,
    ))

    spec.add(Property(
        name="reference",
        description=f"Result matches the bound-checked reference {name}",
        predicate=lambda T, a, b: (
            _apply(T, op, a, b) == reference(bounds, a, b)
        ),
        bounds=bounds,
    ))

    spec.add(Property(
        name="compound",
        description="In-place form mutates self to the binary result",
        predicate=lambda T, a, b: _compound_matches(T, op, iop, a, b),
        bounds=bounds,
    ))

    return spec


# ---------------------------------------------------------------------------
# Spec builders
# ---------------------------------------------------------------------------

def conversion_spec(bounds: Bounds) -> Spec:
    """Construction from native ints and from other saturating widths."""
    lo, hi = bounds.lo, bounds.hi

    # A signed source type wide enough to hold every a * width exactly.
    magnitude = max(hi.bit_length(), lo.bit_length())
    wide = saturating_int(2 * magnitude + 3, signed=True)

    spec = Spec(name="conversion")

    spec.add(Property(
        name="in_range_unchanged",
        description="T(v) stores v unchanged when v is representable",
        predicate=lambda T, a: T(a).value == a,
        bounds=bounds,
    ))

    spec.add(Property(
        name="native_clamps",
        description="T(v) clamps an out-of-range native int",
        predicate=lambda T, a: (
            T(a * bounds.width).value == bounds.clamp(a * bounds.width)
        ),
        bounds=bounds,
    ))

    spec.add(Property(
        name="cross_width_clamps",
        description="T(U(v)) == clamp(v) for a wider source type U",
        predicate=lambda T, a: (
            T(wide(a * bounds.width)).value == bounds.clamp(a * bounds.width)
        ),
        bounds=bounds,
    ))

    spec.add(Property(
        name="bound_accessors",
        description="min() and max() hold lo and hi",
        predicate=lambda T, a: T.min().value == lo and T.max().value == hi,
        bounds=bounds,
    ))

    return spec


def addition_spec(bounds: Bounds) -> Spec:
    spec = _arith_spec("addition", bounds, operator.add, operator.iadd,
                       reference_add)

    spec.add(Property(
        name="commutativity",
        description="a + b == b + a",
        predicate=lambda T, a, b: (
            _apply(T, operator.add, a, b) == _apply(T, operator.add, b, a)
        ),
        bounds=bounds,
    ))

    spec.add(Property(
        name="identity",
        description="a + 0 == a",
        predicate=lambda T, a: _apply(T, operator.add, a, 0) == a,
        bounds=bounds,
    ))

    spec.add(Property(
        name="fixed_point",
        description="A saturated sum stays saturated when added to again",
        predicate=lambda T, a, b: _fixed_point(T, operator.add, a, b),
        bounds=bounds,
    ))

    return spec


def subtraction_spec(bounds: Bounds) -> Spec:
    spec = _arith_spec("subtraction", bounds, operator.sub, operator.isub,
                       reference_sub)

    spec.add(Property(
        name="identity",
        description="a - 0 == a",
        predicate=lambda T, a: _apply(T, operator.sub, a, 0) == a,
        bounds=bounds,
    ))

    spec.add(Property(
        name="self_inverse",
        description="a - a == 0",
        predicate=lambda T, a: _apply(T, operator.sub, a, a) == 0,
        bounds=bounds,
    ))

    spec.add(Property(
        name="fixed_point",
        description="A saturated difference stays saturated",
        predicate=lambda T, a, b: _fixed_point(T, operator.sub, a, b),
        bounds=bounds,
    ))

    return spec


def multiplication_spec(bounds: Bounds) -> Spec:
    spec = _arith_spec("multiplication", bounds, operator.mul, operator.imul,
                       reference_mul)

    spec.add(Property(
        name="commutativity",
        description="a * b == b * a",
        predicate=lambda T, a, b: (
            _apply(T, operator.mul, a, b) == _apply(T, operator.mul, b, a)
        ),
        bounds=bounds,
    ))

    spec.add(Property(
        name="identity",
        description="a * 1 == a  (when 1 is representable)",
        predicate=lambda T, a: (
            _apply(T, operator.mul, a, 1) == a if bounds.contains(1) else True
        ),
        bounds=bounds,
    ))

    spec.add(Property(
        name="zero",
        description="a * 0 == 0",
        predicate=lambda T, a: _apply(T, operator.mul, a, 0) == 0,
        bounds=bounds,
    ))

    return spec


def division_spec(bounds: Bounds) -> Spec:
    hi = bounds.hi

    spec = _arith_spec("division", bounds, operator.truediv,
                       operator.itruediv, reference_div)

    spec.add(Property(
        name="zero_divisor",
        description="a / 0 == max()",
        predicate=lambda T, a: _apply(T, operator.truediv, a, 0) == hi,
        bounds=bounds,
    ))

    spec.add(Property(
        name="identity",
        description="a / 1 == a  (when 1 is representable)",
        predicate=lambda T, a: (
            _apply(T, operator.truediv, a, 1) == a
            if bounds.contains(1) else True
        ),
        bounds=bounds,
    ))

    spec.add(Property(
        name="floor_division_alias",
        description="a // b == a / b  (both truncate toward zero)",
        predicate=lambda T, a, b: (
            _apply(T, operator.floordiv, a, b)
            == _apply(T, operator.truediv, a, b)
        ),
        bounds=bounds,
    ))

    return spec


def modulo_spec(bounds: Bounds) -> Spec:
    hi = bounds.hi

    spec = _arith_spec("modulo", bounds, operator.mod, operator.imod,
                       reference_mod)

    spec.add(Property(
        name="zero_divisor",
        description="a % 0 == max()",
        predicate=lambda T, a: _apply(T, operator.mod, a, 0) == hi,
        bounds=bounds,
    ))

    spec.add(Property(
        name="divmod",
        description="divmod(a, b) == (a / b, a % b)",
        predicate=lambda T, a, b: (
            tuple(x.value for x in divmod(T(a), T(b)))
            == (_apply(T, operator.truediv, a, b),
                _apply(T, operator.mod, a, b))
        ),
        bounds=bounds,
    ))

    return spec


def step_spec(bounds: Bounds) -> Spec:
    """Pre/post increment and decrement."""
    lo, hi = bounds.lo, bounds.hi

    def pre(T, a, method):
        x = T(a)
        return getattr(x, method)() is x, x.value

    def post(T, a, method):
        x = T(a)
        prior = getattr(x, method)()
        return prior is not x and prior.value == a, x.value

    spec = Spec(name="step")

    spec.add(Property(
        name="increment",
        description="++a adds one below max(), is a no-op at max()",
        predicate=lambda T, a: pre(T, a, "increment") == (
            True, a + 1 if a < hi else a
        ),
        bounds=bounds,
    ))

    spec.add(Property(
        name="post_increment",
        description="a++ returns the prior value and saturates like ++a",
        predicate=lambda T, a: post(T, a, "post_increment") == (
            True, a + 1 if a < hi else a
        ),
        bounds=bounds,
    ))

    spec.add(Property(
        name="decrement",
        description="--a subtracts one above min(), is a no-op at min()",
        predicate=lambda T, a: pre(T, a, "decrement") == (
            True, a - 1 if a > lo else a
        ),
        bounds=bounds,
    ))

    spec.add(Property(
        name="post_decrement",
        description="a-- returns the prior value and saturates like --a",
        predicate=lambda T, a: post(T, a, "post_decrement") == (
            True, a - 1 if a > lo else a
        ),
        bounds=bounds,
    ))

    return spec


def negation_spec(bounds: Bounds) -> Spec:
    lo, hi = bounds.lo, bounds.hi

    spec = Spec(name="negation")

    spec.add(Property(
        name="closure",
        description="Result stays within bounds",
        predicate=lambda T, a: lo <= (-T(a)).value <= hi,
        bounds=bounds,
    ))

    spec.add(Property(
        name="reference",
        description="-a, except -min() == min()",
        predicate=lambda T, a: (-T(a)).value == reference_neg(bounds, a),
        bounds=bounds,
    ))

    return spec


def ordering_spec(bounds: Bounds) -> Spec:
    spec = Spec(name="ordering")

    spec.add(Property(
        name="natural_order",
        description="Comparisons agree with the stored values",
        predicate=lambda T, a, b: (
            (T(a) == T(b)) == (a == b)
            and (T(a) != T(b)) == (a != b)
            and (T(a) < T(b)) == (a < b)
            and (T(a) <= T(b)) == (a <= b)
            and (T(a) > T(b)) == (a > b)
            and (T(a) >= T(b)) == (a >= b)
        ),
        bounds=bounds,
    ))

    spec.add(Property(
        name="antisymmetry",
        description="a <= b and b <= a implies a == b",
        predicate=lambda T, a, b: (
            not (T(a) <= T(b) and T(b) <= T(a)) or T(a) == T(b)
        ),
        bounds=bounds,
    ))

    return spec


def full_contract(bounds: Bounds) -> list[Spec]:
    """Every spec a saturating type of the given bounds must satisfy."""
    return [
        conversion_spec(bounds),
        addition_spec(bounds),
        subtraction_spec(bounds),
        multiplication_spec(bounds),
        division_spec(bounds),
        modulo_spec(bounds),
        step_spec(bounds),
        negation_spec(bounds),
        ordering_spec(bounds),
    ]
