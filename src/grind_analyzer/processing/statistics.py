"""Particle-size distribution statistics."""

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from grind_analyzer.core.config import MAX_HISTOGRAM_BINS, Thresholds
from grind_analyzer.core.exceptions import InvalidInputError
from .geometry import quantile


@dataclass
class DistributionStats:
    """Summary of a diameter distribution, in microns."""

    count: int
    mean: float
    std_dev: float
    min: float
    max: float
    p10: float
    p50: float
    p90: float
    mode_bin_center: float
    span: float  # (D90 - D10) / D50
    coefficient_of_variation: float  # std / mean

    @classmethod
    def empty(cls) -> "DistributionStats":
        return cls(0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)


@dataclass
class HistogramBin:
    """One histogram bar: ``[x0, x1)`` in microns."""

    x0: float
    x1: float
    mid: float
    count: int


def _check_bin_width(bin_width: float) -> None:
    if bin_width is None or not math.isfinite(bin_width) or bin_width <= 0:
        raise InvalidInputError(
            "Histogram bin width must be a positive number",
            details={"bin_width_microns": str(bin_width)},
        )


def _bin_counts(values: np.ndarray, bin_width: float) -> np.ndarray:
    """Counts per bin, bins anchored at the minimum value."""
    lowest = values.min()
    span = (values.max() - lowest) / bin_width
    if span > MAX_HISTOGRAM_BINS:
        raise InvalidInputError(
            "Histogram bin width is too small for the measured range",
            details={"bin_width_microns": bin_width, "max_bins": MAX_HISTOGRAM_BINS},
        )
    bin_count = max(1, math.ceil(span))
    # Clamp so the maximum lands in the last bin
    indices = np.minimum(bin_count - 1, np.floor((values - lowest) / bin_width).astype(int))
    return np.bincount(indices, minlength=bin_count)


def compute_stats(values: Sequence[float], bin_width: float) -> DistributionStats:
    """
    Summarize particle diameters.

    Args:
        values: Particle equivalent diameters in microns
        bin_width: Histogram bin width in microns, used for the mode

    Returns:
        DistributionStats; all zeros with count 0 for an empty input

    Raises:
        InvalidInputError: If bin_width is not a positive number or would need
            more than MAX_HISTOGRAM_BINS bins
    """
    _check_bin_width(bin_width)
    if len(values) == 0:
        return DistributionStats.empty()

    arr = np.sort(np.asarray(values, dtype=float))
    n = len(arr)
    mean = float(np.mean(arr))
    std_dev = float(np.sqrt(np.mean((arr - mean) ** 2)))
    lowest = float(arr[0])
    highest = float(arr[-1])

    p10 = quantile(arr, 0.10)
    p50 = quantile(arr, 0.50)
    p90 = quantile(arr, 0.90)

    counts = _bin_counts(arr, bin_width)
    # argmax returns the first maximum, so ties go to the leftmost bin
    mode_idx = int(np.argmax(counts))
    mode_bin_center = lowest + (mode_idx + 0.5) * bin_width

    return DistributionStats(
        count=n,
        mean=mean,
        std_dev=std_dev,
        min=lowest,
        max=highest,
        p10=p10,
        p50=p50,
        p90=p90,
        mode_bin_center=mode_bin_center,
        span=(p90 - p10) / p50 if p50 > 0 else 0.0,
        coefficient_of_variation=std_dev / mean if mean > 0 else 0.0,
    )


def build_histogram(values: Sequence[float], bin_width: float) -> list[HistogramBin]:
    """Histogram bars anchored at the smallest value; empty input gives no bars."""
    _check_bin_width(bin_width)
    if len(values) == 0:
        return []

    arr = np.asarray(values, dtype=float)
    lowest = float(arr.min())
    return [
        HistogramBin(
            x0=lowest + i * bin_width,
            x1=lowest + (i + 1) * bin_width,
            mid=lowest + (i + 0.5) * bin_width,
            count=int(count),
        )
        for i, count in enumerate(_bin_counts(arr, bin_width))
    ]


def classify(values: Sequence[float], thresholds: Thresholds) -> tuple[float, float]:
    """
    Percentage of fine and coarse particles.

    Fine particles are strictly below ``fine_microns``; coarse ones strictly above
    ``coarse_microns``.

    Returns:
        (fine_pct, coarse_pct), both 0 for an empty input
    """
    thresholds.validate()
    total = len(values)
    if total == 0:
        return 0.0, 0.0

    fine = sum(1 for v in values if v < thresholds.fine_microns)
    coarse = sum(1 for v in values if v > thresholds.coarse_microns)
    return 100 * fine / total, 100 * coarse / total
