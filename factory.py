"""
Verified creation of saturating integer types.

`VerifiedFactory.create(bits, signed)` builds the type for a width and
checks every rule of `contract.full_contract` against it before the
caller sees it.  A type whose operators wrap or raise instead of
clamping is refused with a VerificationError carrying the report.

Types up to EXHAUSTIVE_THRESHOLD values wide (8-bit and narrower) are
checked on every operand pair.  Wider ones get the edge operands
(min, min+1, -1, 0, 1, max-1, max) crossed with each other, topped up
with seeded random operands so a failure always reproduces.
"""

from __future__ import annotations

import inspect
import itertools
import logging
import random
from dataclasses import dataclass, field
from typing import ClassVar

from bounds import Bounds
from contract import Property, Spec, full_contract
from satint import SaturatingInt, saturating_int

logger = logging.getLogger(__name__)


@dataclass
class VerificationResult:
    """One contract rule checked against one type, and where it broke."""

    property_name: str
    passed: bool
    counterexample: tuple | None = None
    tests_run: int = 0

    def __repr__(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        ce = f"  counterexample={self.counterexample}" if self.counterexample else ""
        return f"[{status}] {self.property_name} ({self.tests_run} tests){ce}"


@dataclass
class VerificationReport:
    """Every rule checked for one saturating type, in contract order."""

    type_name: str
    results: list[VerificationResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.results)

    @property
    def failures(self) -> list[VerificationResult]:
        return [r for r in self.results if not r.passed]

    @property
    def tests_run(self) -> int:
        return sum(r.tests_run for r in self.results)

    def summary(self) -> str:
        lines = [f"--- {self.type_name} ---"]
        for r in self.results:
            lines.append(f"  {r}")
        status = "ALL PASSED" if self.passed else "FAILED"
        lines.append(f"  => {status}")
        return "\n".join(lines)


class VerificationError(Exception):
    """A saturating type broke at least one rule; `report` has the operands."""

    def __init__(self, report: VerificationReport):
        self.report = report
        super().__init__(f"Verification failed:\n{report.summary()}")


# ---------------------------------------------------------------------------
# The factory
# ---------------------------------------------------------------------------

class VerifiedFactory:
    """
    Hands out saturating types only after their operators have been
    shown to clamp instead of wrapping or raising.

    Verified types are remembered, so asking twice for Int16 checks it
    once.
    """

    EXHAUSTIVE_THRESHOLD: ClassVar[int] = 256  # max width for brute-force check
    SAMPLE_COUNT: ClassVar[int] = 2_000
    SEED: ClassVar[int] = 0

    _verified: ClassVar[set[type[SaturatingInt]]] = set()

    @classmethod
    def create(cls, bits: int, signed: bool = True) -> type[SaturatingInt]:
        """Build, verify, and return a saturating type."""
        sat_type = saturating_int(bits, signed)
        if sat_type in cls._verified:
            return sat_type
        report = cls.verify(sat_type)
        if not report.passed:
            logger.warning("%s failed verification: %d of %d properties",
                           sat_type.__name__, len(report.failures),
                           len(report.results))
            raise VerificationError(report)
        cls._verified.add(sat_type)
        return sat_type

    @classmethod
    def verify(
        cls, sat_type: type[SaturatingInt], specs: list[Spec] | None = None
    ) -> VerificationReport:
        """Check a type against its contract and report, without raising."""
        bounds = sat_type.bounds
        if specs is None:
            specs = full_contract(bounds)
        logger.debug("verifying %s over [%d, %d]", sat_type.__name__,
                     bounds.lo, bounds.hi)

        report = VerificationReport(type_name=sat_type.__name__)
        for spec in specs:
            for prop in spec:
                result = cls._verify_property(spec, prop, sat_type, bounds)
                report.results.append(result)

        logger.info("%s: %s after %d checks", sat_type.__name__,
                    "verified" if report.passed else "FAILED",
                    report.tests_run)
        return report

    # -- internal ---------------------------------------------------------

    @classmethod
    def _verify_property(
        cls,
        spec: Spec,
        prop: Property,
        sat_type: type[SaturatingInt],
        bounds: Bounds,
    ) -> VerificationResult:
        arity = _predicate_arity(prop)
        if bounds.width <= cls.EXHAUSTIVE_THRESHOLD:
            combos = itertools.product(bounds.all_values(), repeat=arity)
        else:
            combos = _generate_samples(bounds, arity, cls.SAMPLE_COUNT, cls.SEED)

        name = f"{spec.name}.{prop.name}"
        tests_run = 0
        for combo in combos:
            tests_run += 1
            try:
                held = prop.check(sat_type, *combo)
            except ArithmeticError:
                # The operators are total; raising is itself a violation.
                held = False
            if not held:
                return VerificationResult(
                    property_name=name,
                    passed=False,
                    counterexample=combo,
                    tests_run=tests_run,
                )

        return VerificationResult(
            property_name=name,
            passed=True,
            tests_run=tests_run,
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _predicate_arity(prop: Property) -> int:
    """Number of operand ints a rule takes after the type under test."""
    sig = inspect.signature(prop.predicate)
    return len(sig.parameters) - 1


def _generate_samples(
    bounds: Bounds, arity: int, count: int, seed: int
) -> list[tuple[int, ...]]:
    """Operand tuples for a type too wide to check exhaustively.

    Every combination of the in-range edge operands comes first, then
    random operands drawn from `seed` until `count` tuples exist.
    """
    rng = random.Random(seed)

    edge_values = [bounds.lo, bounds.lo + 1, -1, 0, 1, bounds.hi - 1, bounds.hi]
    edge_values = sorted({v for v in edge_values if bounds.contains(v)})

    samples: list[tuple[int, ...]] = list(
        itertools.product(edge_values, repeat=arity)
    )

    while len(samples) < count:
        samples.append(
            tuple(rng.randint(bounds.lo, bounds.hi) for _ in range(arity))
        )

    return samples
