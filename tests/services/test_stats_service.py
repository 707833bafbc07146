"""
Tests for StatsService - percentile ranks, z-scores, bands and thresholds.
"""

import pytest

from creatorlens.services.stats_service import StatsService


# ============================================================================
# calculate_percentile
# ============================================================================

class TestCalculatePercentile:
    def test_example_rank(self):
        assert StatsService.calculate_percentile(40, [10, 20, 30, 40, 50]) == 80

    def test_max_value_is_100(self):
        assert StatsService.calculate_percentile(50, [10, 20, 30, 40, 50]) == 100

    def test_empty_population(self):
        assert StatsService.calculate_percentile(10, []) == 0

    def test_ties_share_a_rank(self):
        values = [5, 5, 5, 5]
        assert StatsService.calculate_percentile(5, values) == 100

    def test_monotone_in_value(self):
        values = [3.2, 1.0, 7.5, 7.5, 0.0, 12.1, 4.4]
        ranks = [StatsService.calculate_percentile(v, values) for v in sorted(values)]
        assert ranks == sorted(ranks)

    def test_rounds_half_up(self):
        # 1 of 8 -> 12.5 -> 13
        assert StatsService.calculate_percentile(1, [1, 2, 3, 4, 5, 6, 7, 8]) == 13


# ============================================================================
# z-scores
# ============================================================================

class TestZScores:
    def test_zero_spread_gives_zero(self):
        assert StatsService.calculate_zscores([4, 4, 4]) == [0.0, 0.0, 0.0]
        assert StatsService.calculate_zscore(4, [4, 4, 4]) == 0.0

    def test_single_value_gives_zero(self):
        assert StatsService.calculate_zscores([42]) == [0.0]
        assert StatsService.calculate_zscore(42, [42]) == 0.0

    def test_population_std(self):
        # mean 5, population std 2
        values = [2, 4, 4, 4, 5, 5, 7, 9]
        assert StatsService.calculate_zscore(9, values) == pytest.approx(2.0)
        assert StatsService.calculate_zscores(values)[0] == pytest.approx(-1.5)

    def test_zscores_sum_to_zero(self):
        zs = StatsService.calculate_zscores([1, 2, 3, 10])
        assert sum(zs) == pytest.approx(0.0, abs=1e-9)


# ============================================================================
# Bands, thresholds, mean
# ============================================================================

class TestBandsAndThresholds:
    def test_percentile_band_picks_sorted_index(self):
        band = StatsService.calculate_percentile_band(list(range(10, 0, -1)))
        assert band.p10 == 2
        assert band.p50 == 6
        assert band.p90 == 10

    def test_percentile_band_empty(self):
        band = StatsService.calculate_percentile_band([])
        assert (band.p10, band.p50, band.p90) == (0, 0, 0)

    def test_top_threshold(self):
        values = [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]
        assert StatsService.calculate_top_threshold(values, 0.1) == 9
        assert StatsService.calculate_top_threshold(values, 0.3) == 7

    def test_top_threshold_small_population(self):
        assert StatsService.calculate_top_threshold([3, 1], 0.1) == 3

    def test_top_threshold_empty(self):
        assert StatsService.calculate_top_threshold([], 0.1) == 0.0

    def test_mean(self):
        assert StatsService.calculate_mean([1, 2, 3]) == pytest.approx(2.0)
        assert StatsService.calculate_mean([]) == 0.0

    def test_round_half_up(self):
        assert StatsService.round_half_up(2.5) == 3
        assert StatsService.round_half_up(2.49) == 2
