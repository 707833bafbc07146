"""
StatsService - Percentile and z-score calculations over a video catalogue.

Provides pure statistical functions with no side effects.
"""

import math
from typing import List, Sequence

import numpy as np

from .models import PercentileBand


class StatsService:
    """
    Statistical calculations service.

    Provides statistical methods for:
    - Percentile rank of a value within a population
    - Z-scores against population mean / standard deviation
    - p10 / p50 / p90 bands
    - Top-N% thresholds
    """

    @staticmethod
    def round_half_up(value: float) -> int:
        """Round .5 away from zero for positive values (JS Math.round)."""
        return int(math.floor(value + 0.5))

    @staticmethod
    def calculate_percentile(value: float, values: Sequence[float]) -> int:
        """
        Calculate percentile rank of a value.

        The rank is the share of the population less than or equal to the
        value, so ties share a percentile and the result is monotonically
        non-decreasing in ``value``.

        Args:
            value: Value to rank
            values: Population

        Returns:
            Percentile (0-100), 0 for an empty population

        Example:
            >>> StatsService.calculate_percentile(40, [10, 20, 30, 40, 50])
            80
        """
        if not values:
            return 0

        rank = sum(1 for v in values if v <= value)
        return StatsService.round_half_up(rank / len(values) * 100)

    @staticmethod
    def calculate_zscore(value: float, values: Sequence[float]) -> float:
        """
        Calculate z-score for a single value.

        Uses the population standard deviation. Returns 0 when the population
        has fewer than two members or no spread.

        Args:
            value: Value to calculate z-score for
            values: Population

        Returns:
            Z-score
        """
        if len(values) < 2:
            return 0.0

        scores = np.asarray(values, dtype=float)
        std = float(np.std(scores))

        if std == 0:
            return 0.0

        return float((value - float(np.mean(scores))) / std)

    @staticmethod
    def calculate_zscores(values: Sequence[float]) -> List[float]:
        """Z-score of every member of the population, in input order."""
        if len(values) < 2:
            return [0.0] * len(values)

        scores = np.asarray(values, dtype=float)
        std = float(np.std(scores))

        if std == 0:
            return [0.0] * len(values)

        return [float(z) for z in (scores - np.mean(scores)) / std]

    @staticmethod
    def calculate_percentile_band(values: Sequence[float]) -> PercentileBand:
        """
        p10 / p50 / p90 of a population.

        Picks ``sorted[floor(n * q)]`` rather than interpolating.
        """
        if not values:
            return PercentileBand()

        sorted_values = sorted(values)
        n = len(sorted_values)

        def pick(q: float) -> float:
            return float(sorted_values[min(int(math.floor(n * q)), n - 1)])

        return PercentileBand(p10=pick(0.1), p50=pick(0.5), p90=pick(0.9))

    @staticmethod
    def calculate_top_threshold(values: Sequence[float], fraction: float) -> float:
        """
        Smallest value still inside the top ``fraction`` of a population.

        Args:
            values: Population
            fraction: e.g. 0.1 for the top 10%

        Returns:
            ``sorted_desc[floor(n * fraction)]``, 0 for an empty population
        """
        if not values:
            return 0.0

        sorted_desc = sorted(values, reverse=True)
        index = min(int(math.floor(len(sorted_desc) * fraction)), len(sorted_desc) - 1)
        return float(sorted_desc[index])

    @staticmethod
    def calculate_mean(values: Sequence[float]) -> float:
        if not values:
            return 0.0
        return float(np.mean(np.asarray(values, dtype=float)))

