import pytest

from dnsbench.models import BenchmarkSample
from dnsbench.statistics import StatisticsEngine


def samples(*latencies, ok=True):
    return [BenchmarkSample(elapsed_ms=v, success=ok) for v in latencies]


def test_median_odd_and_even():
    assert StatisticsEngine.aggregate(samples(30, 10, 20)).median_ms == 20
    assert StatisticsEngine.aggregate(samples(40, 10, 30, 20)).median_ms == 25


def test_jitter_is_sample_standard_deviation():
    stats = StatisticsEngine.aggregate(samples(10, 20, 30))
    assert stats.jitter_ms == pytest.approx(10.0)

    stats = StatisticsEngine.aggregate(samples(2, 4, 4, 4, 5, 5, 7, 9))
    assert stats.jitter_ms == pytest.approx(2.138089935)


def test_single_sample_has_zero_jitter():
    stats = StatisticsEngine.aggregate(samples(42.5))
    assert stats.jitter_ms == 0.0
    assert stats.median_ms == 42.5


def test_no_samples():
    stats = StatisticsEngine.aggregate([])
    assert stats.median_ms is None
    assert stats.jitter_ms is None
    assert stats.success_percent == 0.0
    assert stats.query_successful is False


@pytest.mark.parametrize("successes,total", [(0, 3), (1, 3), (2, 5), (5, 5), (1, 1)])
def test_success_percent(successes, total):
    batch = samples(*[10.0] * successes) + samples(*[50.0] * (total - successes), ok=False)
    stats = StatisticsEngine.aggregate(batch)

    assert stats.success_percent == pytest.approx(100 * successes / total)
    assert 0.0 <= stats.success_percent <= 100.0
    assert stats.query_successful == (successes > 0)


def test_failed_samples_count_toward_latency():
    batch = samples(10.0) + samples(1000.0, 1000.0, ok=False)
    assert StatisticsEngine.aggregate(batch).median_ms == 1000.0
