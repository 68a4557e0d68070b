"""Unit tests for processing/statistics.py."""

import pytest

from grind_analyzer.core.config import MAX_HISTOGRAM_BINS, Thresholds
from grind_analyzer.core.exceptions import InvalidInputError
from grind_analyzer.processing.statistics import (
    DistributionStats,
    build_histogram,
    classify,
    compute_stats,
)

GRIND = [100.0, 150.0, 150.0, 200.0, 800.0]


class TestComputeStats:
    """Tests for distribution statistics."""

    def test_reference_grind(self) -> None:
        stats = compute_stats(GRIND, bin_width=25)

        assert stats.count == 5
        assert stats.mean == pytest.approx(280.0)
        assert stats.std_dev == pytest.approx(261.9160171)  # population, not sample
        assert stats.min == 100.0
        assert stats.max == 800.0
        assert stats.p10 == pytest.approx(120.0)
        assert stats.p50 == 150.0
        assert stats.p90 == pytest.approx(560.0)
        assert stats.mode_bin_center == pytest.approx(162.5)
        assert stats.span == pytest.approx((560 - 120) / 150)
        assert stats.coefficient_of_variation == pytest.approx(261.9160171 / 280)

    def test_unsorted_input(self) -> None:
        assert compute_stats(list(reversed(GRIND)), 25) == compute_stats(GRIND, 25)

    def test_uniform_values(self) -> None:
        stats = compute_stats([300.0] * 4, bin_width=25)

        assert stats.std_dev == 0
        assert stats.coefficient_of_variation == 0
        assert stats.p10 == stats.p50 == stats.p90 == 300.0
        assert stats.span == 0
        assert stats.mode_bin_center == 312.5

    def test_empty_input_is_all_zero(self) -> None:
        stats = compute_stats([], bin_width=25)
        assert stats == DistributionStats.empty()
        assert stats.count == 0
        assert stats.mean == stats.p50 == stats.span == 0

    def test_mode_ties_go_to_first_bin(self) -> None:
        # Three bins with one value each
        stats = compute_stats([0.0, 25.0, 60.0], bin_width=25)
        assert stats.mode_bin_center == 12.5

    def test_zero_median_gives_zero_span(self) -> None:
        stats = compute_stats([0.0, 0.0, 0.0, 10.0], bin_width=5)
        assert stats.p50 == 0
        assert stats.span == 0

    @pytest.mark.parametrize("bin_width", [0, -25, float("inf"), float("nan")])
    def test_invalid_bin_width(self, bin_width) -> None:
        with pytest.raises(InvalidInputError):
            compute_stats(GRIND, bin_width)

    def test_too_many_bins_is_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            compute_stats([100.0, 800.0], 1e-9)


class TestHistogram:
    """Tests for histogram binning."""

    def test_bins_anchored_at_minimum(self) -> None:
        bins = build_histogram(GRIND, 25)

        assert len(bins) == 28  # ceil((800 - 100) / 25)
        assert bins[0].x0 == 100.0
        assert bins[0].x1 == 125.0
        assert bins[0].mid == 112.5
        assert [b.count for b in bins[:5]] == [1, 0, 2, 0, 1]

    def test_maximum_lands_in_last_bin(self) -> None:
        bins = build_histogram(GRIND, 25)
        assert bins[-1].count == 1
        assert bins[-1].x1 == 800.0

    @pytest.mark.parametrize("bin_width", [1.0, 7.5, 25.0, 333.0, 10_000.0])
    def test_counts_sum_to_sample_size(self, bin_width) -> None:
        values = [112.3, 145.0, 199.9, 200.0, 388.8, 402.1, 655.0, 655.0, 910.4]
        assert sum(b.count for b in build_histogram(values, bin_width)) == len(values)

    def test_single_value_gives_single_bin(self) -> None:
        bins = build_histogram([42.0], 25)
        assert len(bins) == 1
        assert bins[0].count == 1

    def test_empty_input(self) -> None:
        assert build_histogram([], 25) == []

    def test_too_many_bins_is_rejected(self) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            build_histogram([100.0, 800.0], 1e-9)
        assert exc_info.value.details["max_bins"] == MAX_HISTOGRAM_BINS

    def test_bin_limit_is_inclusive(self) -> None:
        bins = build_histogram([0.0, float(MAX_HISTOGRAM_BINS)], 1.0)
        assert len(bins) == MAX_HISTOGRAM_BINS


class TestClassify:
    """Tests for fine/coarse classification."""

    def test_reference_grind(self) -> None:
        fine, coarse = classify(GRIND, Thresholds(fine_microns=200, coarse_microns=700))
        assert fine == pytest.approx(40.0)
        assert coarse == pytest.approx(20.0)

    def test_thresholds_are_strict(self) -> None:
        fine, coarse = classify([200.0, 700.0], Thresholds(fine_microns=200, coarse_microns=700))
        assert fine == 0
        assert coarse == 0

    def test_empty_input(self) -> None:
        assert classify([], Thresholds()) == (0.0, 0.0)

    def test_non_positive_threshold(self) -> None:
        with pytest.raises(InvalidInputError):
            classify(GRIND, Thresholds(fine_microns=0, coarse_microns=700))

    def test_non_finite_threshold(self) -> None:
        with pytest.raises(InvalidInputError):
            classify(GRIND, Thresholds(fine_microns=200, coarse_microns=float("inf")))
