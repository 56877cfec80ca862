"""
Statistical reduction of benchmark samples.

Calculates, per endpoint:
- Median latency
- Jitter (sample standard deviation of latencies)
- Success percentage
"""

from typing import Optional, Sequence

import numpy as np

from .models import BenchmarkSample, SampleStats


class StatisticsEngine:
    """Calculates per-endpoint statistics from raw samples."""

    @staticmethod
    def median(latencies: Sequence[float]) -> Optional[float]:
        """Middle latency; the mean of the two middle values for even counts."""
        if len(latencies) == 0:
            return None
        return float(np.median(np.asarray(latencies, dtype=float)))

    @staticmethod
    def jitter(latencies: Sequence[float]) -> Optional[float]:
        """
        Sample standard deviation (n - 1 denominator) of latencies.

        A single sample has zero jitter; no samples have none.
        """
        n = len(latencies)
        if n == 0:
            return None
        if n == 1:
            return 0.0
        return float(np.std(np.asarray(latencies, dtype=float), ddof=1))

    @staticmethod
    def aggregate(samples: Sequence[BenchmarkSample]) -> SampleStats:
        """
        Reduce an endpoint's samples to summary statistics.

        Latencies of failed samples are included.

        Args:
            samples: Samples in the order they were taken

        Returns:
            SampleStats for the endpoint
        """
        latencies = [s.elapsed_ms for s in samples]
        successes = sum(1 for s in samples if s.success)

        if samples:
            success_percent = 100.0 * successes / len(samples)
        else:
            success_percent = 0.0

        return SampleStats(
            median_ms=StatisticsEngine.median(latencies),
            jitter_ms=StatisticsEngine.jitter(latencies),
            success_percent=success_percent,
            successes=successes,
        )
