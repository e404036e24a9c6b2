"""
Tests for metric normalization and signal assessment
"""

import math

import pytest

from modem_console.telemetry.metrics import (
    classify_signal,
    composite_score,
    metric_percentages,
    normalize_metric,
    overall_signal,
    round_half_up,
    round_metric,
    rsrp_percentage,
    rsrq_percentage,
    rssi_percentage,
    sinr_percentage,
)
from modem_console.telemetry.models import SignalAssessment


class TestRounding:
    def test_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(62.5) == 63
        assert round_half_up(2.49) == 2

    def test_round_metric(self):
        assert round_metric(-95.04) == -95.0
        assert round_metric(-88.26) == -88.3
        assert round_metric(None) is None
        assert round_metric(float("nan")) is None


class TestCurves:
    def test_rsrp(self):
        assert rsrp_percentage(-65) == 100
        assert rsrp_percentage(-50) == 100
        assert rsrp_percentage(-95) == 57
        assert rsrp_percentage(-135) == 15
        assert rsrp_percentage(-140) == 15
        assert rsrp_percentage(-141) == 0

    def test_rssi_cutoff_is_inclusive(self):
        assert rssi_percentage(-110) == 0
        assert rssi_percentage(-109) == 15
        assert rssi_percentage(-60) == 63
        assert rssi_percentage(-30) == 100

    def test_rsrq(self):
        assert rsrq_percentage(-20) == 15
        assert rsrq_percentage(-21) == 0
        assert rsrq_percentage(-11) == 75
        assert rsrq_percentage(-8) == 100

    def test_sinr(self):
        assert sinr_percentage(-10) == 15
        assert sinr_percentage(-10.5) == 0
        assert sinr_percentage(12) == 49
        assert sinr_percentage(35) == 100

    def test_missing_values(self):
        assert rsrp_percentage(None) == 0
        assert sinr_percentage(float("nan")) == 0

    def test_unknown_metric(self):
        with pytest.raises(ValueError):
            normalize_metric("rscp", -80)

    def test_monotonic_non_decreasing(self):
        for metric, low, high in [("rssi", -120, -20), ("rsrp", -150, -50), ("rsrq", -25, 0), ("sinr", -15, 40)]:
            values = [normalize_metric(metric, v) for v in range(low, high)]
            assert values == sorted(values), metric

    def test_bounds(self):
        for metric in ("rssi", "rsrp", "rsrq", "sinr"):
            for value in range(-160, 60):
                pct = normalize_metric(metric, value)
                assert pct == 0 or 15 <= pct <= 100

    def test_metric_percentages(self):
        result = metric_percentages({"rsrp": -95.0, "sinr": 12.0})
        assert result == {"rssi": 0, "rsrp": 57, "rsrq": 0, "sinr": 49}


class TestAssessment:
    @pytest.mark.parametrize(
        "pct,expected",
        [
            (100, SignalAssessment.EXCELLENT),
            (80, SignalAssessment.EXCELLENT),
            (79, SignalAssessment.GOOD),
            (60, SignalAssessment.GOOD),
            (59, SignalAssessment.FAIR),
            (40, SignalAssessment.FAIR),
            (39, SignalAssessment.POOR),
            (0, SignalAssessment.POOR),
            (None, SignalAssessment.NO_SIGNAL),
        ],
    )
    def test_thresholds(self, pct, expected):
        assert classify_signal(pct) == expected

    def test_composite(self):
        assert composite_score(57, 49) == 53
        assert composite_score(64, 67) == 66

    def test_overall_mean(self):
        assert overall_signal([53, 38, 66]) == (52, SignalAssessment.FAIR)

    def test_overall_without_scores(self):
        assert overall_signal([]) == (0, SignalAssessment.NO_SIGNAL)

    def test_overall_is_not_nan(self):
        pct, _ = overall_signal([0])
        assert not math.isnan(pct)
