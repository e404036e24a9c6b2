"""
Metric Normalizer
Maps raw RSSI/RSRP/RSRQ/SINR readings to bounded quality percentages
"""

import math
from typing import Dict, Iterable, Optional, Tuple

from .constants import METRIC_CURVES, METRIC_MIN_PERCENT, SIGNAL_ASSESSMENT_THRESHOLDS
from .models import SignalAssessment


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def round_metric(value: Optional[float]) -> Optional[float]:
    """Round a reading to one decimal place; non-finite values and None become None"""
    if value is None or not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return math.floor(value * 10 + 0.5) / 10


def normalize_metric(metric: str, value: Optional[float]) -> int:
    """
    Linear interpolation between the metric's floor and ceiling, clamped to
    [15, 100] for detectable values and 0 at or past the hard cutoff.
    """
    curve = METRIC_CURVES.get(metric)
    if curve is None:
        raise ValueError(f"Unknown metric: {metric}")

    if value is None or not math.isfinite(value):
        return 0

    if curve["inclusive"]:
        if value <= curve["cutoff"]:
            return 0
    elif value < curve["cutoff"]:
        return 0

    percentage = (value - curve["floor"]) / (curve["ceiling"] - curve["floor"]) * 100
    percentage = min(percentage, 100)
    percentage = max(percentage, METRIC_MIN_PERCENT)
    return round_half_up(percentage)


def rssi_percentage(value: Optional[float]) -> int:
    return normalize_metric("rssi", value)


def rsrp_percentage(value: Optional[float]) -> int:
    return normalize_metric("rsrp", value)


def rsrq_percentage(value: Optional[float]) -> int:
    return normalize_metric("rsrq", value)


def sinr_percentage(value: Optional[float]) -> int:
    return normalize_metric("sinr", value)


def metric_percentages(metrics: Dict[str, Optional[float]]) -> Dict[str, int]:
    return {key: normalize_metric(key, metrics.get(key)) for key in METRIC_CURVES}


def composite_score(rsrp_pct: int, sinr_pct: int) -> int:
    """RSRP and SINR carry the composite; RSSI and RSRQ are informational"""
    return round_half_up((rsrp_pct + sinr_pct) / 2)


def classify_signal(percentage: Optional[float]) -> SignalAssessment:
    if percentage is None:
        return SignalAssessment.NO_SIGNAL
    for threshold, label in SIGNAL_ASSESSMENT_THRESHOLDS:
        if percentage >= threshold:
            return SignalAssessment(label)
    return SignalAssessment.NO_SIGNAL


def overall_signal(scores: Iterable[int]) -> Tuple[int, SignalAssessment]:
    """Mean of composite scores and its assessment; no scores means no signal"""
    samples = list(scores)
    if not samples:
        return 0, SignalAssessment.NO_SIGNAL
    percentage = round_half_up(sum(samples) / len(samples))
    return percentage, classify_signal(percentage)
