"""Tests for confidence/surprisal calculation."""

import math

import pytest

from src.services.metrics import (
    compute_confidence,
    compute_rule_metrics,
    compute_surprisal,
    to_number,
)


class TestToNumber:
    """Tests for fail-soft numeric coercion."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (3, 3.0),
            (2.5, 2.5),
            ("7", 7.0),
            (" 4.5 ", 4.5),
            (True, 1.0),
        ],
    )
    def test_numeric_values(self, value, expected):
        assert to_number(value) == expected

    @pytest.mark.parametrize(
        "value",
        [None, "abc", "", float("nan"), float("inf"), "Infinity", [1], {"a": 1}],
    )
    def test_bad_values_fall_back_to_zero(self, value):
        assert to_number(value) == 0.0

    def test_caller_fallback(self):
        assert to_number(None, fallback=-1.0) == -1.0
        assert to_number("nope", fallback=9.0) == 9.0

    def test_huge_integer_falls_back(self):
        assert to_number(10**400) == 0.0


class TestConfidence:
    """Tests for smoothed confidence."""

    def test_worked_example(self):
        assert compute_confidence(10, 12, 5) == pytest.approx(0.8)
        assert compute_confidence(10, 5, 5) == pytest.approx(1 / 3)
        assert compute_confidence(10, 0, 5) == 0.0

    def test_non_positive_denominator_is_zero(self):
        assert compute_confidence(0, 3, 0) == 0.0
        assert compute_confidence(-5, 3, 5) == 0.0

    @pytest.mark.parametrize("body_size", [0, 1, 10, 250])
    def test_within_unit_interval_when_support_bounded(self, body_size):
        for support in range(0, body_size + 6):
            conf = compute_confidence(body_size, support, 5)
            assert 0.0 <= conf <= 1.0


class TestSurprisal:
    """Tests for -ln(1 - conf)."""

    def test_zero_at_zero_confidence(self):
        assert compute_surprisal(0.0) == 0.0
        assert compute_surprisal(-0.3) == 0.0

    def test_infinite_at_full_confidence(self):
        assert compute_surprisal(1.0) == math.inf
        assert compute_surprisal(1.2) == math.inf

    def test_close_to_one_is_finite(self):
        assert math.isfinite(compute_surprisal(0.999999))

    def test_worked_example(self):
        assert compute_surprisal(0.8) == pytest.approx(1.609, abs=1e-3)
        assert compute_surprisal(1 / 3) == pytest.approx(0.405, abs=1e-3)

    def test_monotonic_in_confidence(self):
        confidences = [i / 100 for i in range(0, 101)]
        surprisals = [compute_surprisal(c) for c in confidences]
        assert surprisals == sorted(surprisals)


def test_rule_metrics_coerces_raw_values():
    """Missing and string counts are coerced before metrics are derived."""
    body_size, supp, conf, surprisal = compute_rule_metrics("10", None, 5)

    assert body_size == 10.0
    assert supp == 0.0
    assert conf == 0.0
    assert surprisal == 0.0


def test_rule_metrics_full_confidence():
    """Support equal to bodySize + num_unseen gives infinite surprisal."""
    _, _, conf, surprisal = compute_rule_metrics(5, 10, 5)

    assert conf == 1.0
    assert surprisal == math.inf
