"""
Contract conformance tests.

These test the factory's end-to-end verification:
  - A correct saturating type passes verification.
  - A broken type is rejected with a counterexample.
  - Exhaustive verification actually checks all combinations.
"""

import logging

import pytest

from bounds import Bounds, TINY, UTINY, INT8
from contract import (
    Property,
    Spec,
    addition_spec,
    conversion_spec,
    full_contract,
    reference_add,
    reference_div,
    reference_mod,
    reference_mul,
    reference_neg,
    reference_sub,
)
from factory import (
    VerifiedFactory,
    VerificationError,
    VerificationReport,
    VerificationResult,
    _generate_samples,
)
from satint import SaturatingInt, saturating_int, Int8, Int64, UInt64


@pytest.fixture(autouse=True)
def fresh_factory(monkeypatch):
    """Each test starts with nothing verified and a small sample budget."""
    monkeypatch.setattr(VerifiedFactory, "_verified", set())
    monkeypatch.setattr(VerifiedFactory, "SAMPLE_COUNT", 200)


# ---------------------------------------------------------------------------
# A deliberately broken type: wrapping addition instead of saturating
# ---------------------------------------------------------------------------

class WrappingInt4(SaturatingInt):
    __slots__ = ()
    bounds = TINY

    @classmethod
    def _add(cls, a, b):
        return (a + b - cls.bounds.lo) % cls.bounds.width + cls.bounds.lo


class RaisingInt4(SaturatingInt):
    __slots__ = ()
    bounds = TINY

    @classmethod
    def _div(cls, a, b):
        return a // b


# ---------------------------------------------------------------------------
# Reference rules
# ---------------------------------------------------------------------------

class TestReferenceRules:
    """The bound-checked reference agrees with clamping the exact result."""

    @pytest.mark.parametrize("bounds", [TINY, UTINY, Bounds.for_width(1)])
    def test_additive_and_multiplicative(self, bounds):
        for a in bounds.all_values():
            for b in bounds.all_values():
                assert reference_add(bounds, a, b) == bounds.clamp(a + b)
                assert reference_sub(bounds, a, b) == bounds.clamp(a - b)
                assert reference_mul(bounds, a, b) == bounds.clamp(a * b)

    def test_int8_literals(self):
        assert reference_add(INT8, 100, 100) == 127
        assert reference_sub(INT8, -100, 100) == -128
        assert reference_mul(INT8, -100, 2) == -128
        assert reference_div(INT8, -5, 0) == 127
        assert reference_div(INT8, -128, -1) == 127
        assert reference_mod(INT8, -128, -1) == 0
        assert reference_neg(INT8, -128) == -128
        assert reference_neg(INT8, 5) == -5


# ---------------------------------------------------------------------------
# Factory produces verified types
# ---------------------------------------------------------------------------

class TestFactoryProducesVerified:
    def test_tiny_signed(self):
        """Exhaustive verification on a 4-bit signed type should pass."""
        T = VerifiedFactory.create(4, signed=True)
        assert T is saturating_int(4)
        assert T.bounds == TINY

    def test_tiny_unsigned(self):
        T = VerifiedFactory.create(4, signed=False)
        assert T.bounds == UTINY

    def test_one_bit(self):
        T = VerifiedFactory.create(1, signed=True)
        assert (T.bounds.lo, T.bounds.hi) == (-1, 0)

    @pytest.mark.parametrize("signed", [True, False])
    def test_sampled_64_bit(self, signed):
        """64-bit types are too wide for brute force and get sampled."""
        T = VerifiedFactory.create(64, signed=signed)
        assert T is (Int64 if signed else UInt64)

    def test_verified_types_are_remembered(self, monkeypatch):
        VerifiedFactory.create(4)
        calls = []
        monkeypatch.setattr(
            VerifiedFactory, "verify",
            classmethod(lambda cls, t, specs=None: calls.append(t)),
        )
        VerifiedFactory.create(4)
        assert calls == []

    def test_invalid_width(self):
        with pytest.raises(ValueError):
            VerifiedFactory.create(0)

    def test_outcome_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="factory"):
            VerifiedFactory.create(4, signed=False)
        assert "UInt4: verified" in caplog.text


# ---------------------------------------------------------------------------
# Factory rejects broken types
# ---------------------------------------------------------------------------

class TestFactoryRejectsBroken:
    def test_wrapping_addition_fails(self):
        report = VerifiedFactory.verify(WrappingInt4)
        assert not report.passed
        failed = {r.property_name for r in report.failures}
        assert "addition.closure" not in failed  # wrapping stays in range
        assert "addition.reference" in failed

    def test_counterexample_is_reported(self):
        report = VerifiedFactory.verify(WrappingInt4, [addition_spec(TINY)])
        reference = next(
            r for r in report.results if r.property_name == "addition.reference"
        )
        a, b = reference.counterexample
        assert reference_add(TINY, a, b) != WrappingInt4._add(a, b)

    def test_raising_operator_is_a_violation(self):
        report = VerifiedFactory.verify(RaisingInt4)
        failed = {r.property_name for r in report.failures}
        assert "division.zero_divisor" in failed

    def test_create_raises_verification_error(self, monkeypatch):
        monkeypatch.setattr("factory.saturating_int",
                            lambda bits, signed: WrappingInt4)
        with pytest.raises(VerificationError, match="Verification failed") as info:
            VerifiedFactory.create(4)
        assert not info.value.report.passed
        assert WrappingInt4 not in VerifiedFactory._verified

    def test_failure_logged_as_warning(self, monkeypatch, caplog):
        monkeypatch.setattr("factory.saturating_int",
                            lambda bits, signed: WrappingInt4)
        with caplog.at_level(logging.WARNING, logger="factory"):
            with pytest.raises(VerificationError):
                VerifiedFactory.create(4)
        assert "failed verification" in caplog.text

    def test_custom_failing_property(self):
        bad_spec = Spec(name="bad")
        bad_spec.add(Property(
            name="always_negative",
            description="every sum is negative",
            predicate=lambda T, a, b: (T(a) + T(b)).value < 0,
            bounds=TINY,
        ))
        report = VerifiedFactory.verify(saturating_int(4), [bad_spec])
        assert not report.passed
        assert report.results[0].counterexample is not None
        assert "[FAIL] bad.always_negative" in report.summary()


# ---------------------------------------------------------------------------
# Exhaustive verification coverage
# ---------------------------------------------------------------------------

class TestExhaustiveVerification:
    def test_binary_property_checks_all_pairs(self):
        """For TINY bounds (-8..7), addition closure checks 16*16 pairs."""
        spec = addition_spec(TINY)
        closure = spec.properties[0]
        assert closure.name == "closure"

        result = VerifiedFactory._verify_property(
            spec, closure, saturating_int(4), TINY
        )
        assert result.passed
        assert result.tests_run == TINY.width ** 2

    def test_unary_property_checks_all_singles(self):
        spec = addition_spec(TINY)
        identity = next(p for p in spec if p.name == "identity")

        result = VerifiedFactory._verify_property(
            spec, identity, saturating_int(4), TINY
        )
        assert result.passed
        assert result.tests_run == TINY.width

    def test_full_contract_covers_every_operator(self):
        names = [s.name for s in full_contract(TINY)]
        assert names == [
            "conversion", "addition", "subtraction", "multiplication",
            "division", "modulo", "step", "negation", "ordering",
        ]

    def test_report_totals(self):
        report = VerifiedFactory.verify(saturating_int(4), [conversion_spec(TINY)])
        assert report.passed
        assert report.tests_run == len(conversion_spec(TINY)) * TINY.width
        assert report.summary().endswith("=> ALL PASSED")


# ---------------------------------------------------------------------------
# Sampling for wide types
# ---------------------------------------------------------------------------

class TestSampling:
    def test_edges_come_first(self):
        bounds = Int8.bounds
        samples = _generate_samples(bounds, arity=1, count=20, seed=0)
        edges = [s[0] for s in samples[:7]]
        assert edges == [-128, -127, -1, 0, 1, 126, 127]
        assert len(samples) == 20

    def test_unsigned_edges_are_deduplicated(self):
        samples = _generate_samples(UInt64.bounds, arity=2, count=0, seed=0)
        # {0, 1, hi - 1, hi}: -1 is out of range, lo and lo + 1 repeat 0 and 1
        assert len(samples) == 4 ** 2

    def test_seeded_samples_are_reproducible(self):
        a = _generate_samples(Int64.bounds, arity=2, count=100, seed=7)
        b = _generate_samples(Int64.bounds, arity=2, count=100, seed=7)
        assert a == b

    def test_samples_stay_in_bounds(self):
        bounds = Int64.bounds
        for combo in _generate_samples(bounds, arity=3, count=500, seed=1):
            assert all(bounds.contains(v) for v in combo)


# ---------------------------------------------------------------------------
# Report formatting
# ---------------------------------------------------------------------------

class TestReportFormatting:
    def test_result_repr(self):
        ok = VerificationResult(property_name="addition.closure", passed=True,
                                tests_run=256)
        bad = VerificationResult(property_name="addition.reference",
                                 passed=False, counterexample=(7, 1),
                                 tests_run=3)
        assert repr(ok) == "[PASS] addition.closure (256 tests)"
        assert repr(bad) == (
            "[FAIL] addition.reference (3 tests)  counterexample=(7, 1)"
        )

    def test_empty_report_passes(self):
        report = VerificationReport(type_name="Int4")
        assert report.passed
        assert report.failures == []
