"""Delay calculations shared by the throttle gate and the retry engine.

Pure functions; all values are in seconds.
"""

import random

DEFAULT_JITTER_FACTOR = 0.3
DEFAULT_BACKOFF_JITTER_FACTOR = 0.25

def calculate_delay_with_jitter(
    base_delay: float,
    use_jitter: bool = True,
    jitter_factor: float = DEFAULT_JITTER_FACTOR,
) -> float:
    """Returns `base_delay * (1 ± jitter_factor)`, uniformly sampled, floored at 0.

    Args:
        base_delay: The delay to randomize, in seconds.
        use_jitter: When False the delay is returned unchanged.
        jitter_factor: Fraction of the delay used as the jitter span (0-1).
    """
    if not use_jitter:
        return base_delay

    jitter_amount = base_delay * jitter_factor
    random_jitter = random.uniform(-1.0, 1.0) * jitter_amount
    return max(0.0, base_delay + random_jitter)

def calculate_exponential_backoff(
    attempt: int,
    base_delay: float,
    max_delay: float,
    use_jitter: bool = True,
    jitter_factor: float = DEFAULT_BACKOFF_JITTER_FACTOR,
) -> float:
    """Capped exponential backoff with additive jitter.

    delay = min(base_delay * 2**attempt, max_delay) + uniform(0, jitter_factor * capped)

    Args:
        attempt: Zero-based index of the attempt that just failed.
        base_delay: Delay after the first failure, in seconds.
        max_delay: Cap applied before jitter, in seconds.
        use_jitter: When False the capped delay is returned.
        jitter_factor: Upper bound of the jitter as a fraction of the capped delay.
    """
    # Cap the exponent first so huge attempt numbers cannot overflow a float.
    exponential_delay = base_delay * (2 ** min(attempt, 64))
    capped_delay = min(exponential_delay, max_delay)

    if not use_jitter:
        return capped_delay

    return capped_delay + random.random() * jitter_factor * capped_delay
