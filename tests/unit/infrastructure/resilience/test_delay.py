import pytest
from unittest.mock import patch

from promptgate.infrastructure.resilience.delay import (
    calculate_delay_with_jitter,
    calculate_exponential_backoff,
)

def test_jitter_disabled_returns_base_delay():
    assert calculate_delay_with_jitter(2.0, use_jitter=False) == 2.0

@pytest.mark.parametrize("jitter_factor", [0.0, 0.1, 0.3, 1.0])
def test_jitter_stays_within_bounds(jitter_factor):
    """Jittered delay lies in [d*(1-f), d*(1+f)] and is never negative."""
    base = 1.5
    for _ in range(200):
        delay = calculate_delay_with_jitter(base, True, jitter_factor)
        assert delay >= 0
        assert base * (1 - jitter_factor) - 1e-9 <= delay <= base * (1 + jitter_factor) + 1e-9

@pytest.mark.parametrize("sample, expected", [(-1.0, 0.7), (0.0, 1.0), (1.0, 1.3)])
def test_jitter_uses_uniform_sample(sample, expected):
    with patch("promptgate.infrastructure.resilience.delay.random.uniform", return_value=sample):
        assert calculate_delay_with_jitter(1.0, True, 0.3) == pytest.approx(expected)

def test_full_jitter_never_goes_negative():
    with patch("promptgate.infrastructure.resilience.delay.random.uniform", return_value=-1.0):
        assert calculate_delay_with_jitter(1.0, True, 1.0) == 0.0

def test_backoff_without_jitter_doubles_until_cap():
    delays = [calculate_exponential_backoff(n, 1.0, 10.0, use_jitter=False) for n in range(6)]
    assert delays == [1.0, 2.0, 4.0, 8.0, 10.0, 10.0]

def test_backoff_is_bounded_by_cap_plus_jitter():
    """0 <= delay <= max_delay * (1 + 0.25) for every attempt."""
    for attempt in range(12):
        for _ in range(50):
            delay = calculate_exponential_backoff(attempt, 1.0, 30.0)
            assert 0 <= delay <= 30.0 * 1.25 + 1e-9

def test_backoff_minimum_is_monotonic():
    """With zero jitter sampled, successive delays never decrease."""
    with patch("promptgate.infrastructure.resilience.delay.random.random", return_value=0.0):
        delays = [calculate_exponential_backoff(n, 0.5, 8.0) for n in range(10)]
    assert delays == sorted(delays)
    assert delays[-1] == 8.0

def test_backoff_jitter_is_added_on_top_of_capped_delay():
    with patch("promptgate.infrastructure.resilience.delay.random.random", return_value=1.0):
        assert calculate_exponential_backoff(3, 1.0, 30.0) == pytest.approx(8.0 * 1.25)

def test_backoff_handles_huge_attempt_numbers():
    assert calculate_exponential_backoff(10_000, 1.0, 5.0, use_jitter=False) == 5.0
