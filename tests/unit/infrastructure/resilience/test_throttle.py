import pytest

from promptgate.infrastructure.resilience.throttle import ThrottleGate

@pytest.mark.asyncio
async def test_throttle_without_interval_returns_immediately(fake_clock):
    gate = ThrottleGate(min_interval=None, clock=fake_clock, sleep=fake_clock.sleep)
    assert await gate.throttle() == 0.0
    assert await gate.throttle() == 0.0
    assert fake_clock.sleeps == []
    assert gate.last_request_time is None

@pytest.mark.asyncio
async def test_first_request_is_not_delayed(fake_clock):
    gate = ThrottleGate(min_interval=1.0, use_jitter=False, clock=fake_clock, sleep=fake_clock.sleep)
    assert await gate.throttle() == 0.0
    assert gate.last_request_time == fake_clock.now

@pytest.mark.asyncio
async def test_back_to_back_requests_are_spaced(fake_clock):
    gate = ThrottleGate(min_interval=1.0, use_jitter=False, clock=fake_clock, sleep=fake_clock.sleep)
    await gate.throttle()
    fake_clock.advance(0.25)

    slept = await gate.throttle()

    assert slept == pytest.approx(0.75)
    assert fake_clock.sleeps == [pytest.approx(0.75)]
    assert gate.last_request_time == fake_clock.now

@pytest.mark.asyncio
async def test_no_delay_once_interval_has_elapsed(fake_clock):
    gate = ThrottleGate(min_interval=1.0, use_jitter=False, clock=fake_clock, sleep=fake_clock.sleep)
    await gate.throttle()
    fake_clock.advance(1.5)
    assert await gate.throttle() == 0.0
    assert fake_clock.sleeps == []

@pytest.mark.asyncio
async def test_jittered_wait_stays_within_factor(fake_clock):
    gate = ThrottleGate(min_interval=2.0, use_jitter=True, jitter_factor=0.3, clock=fake_clock, sleep=fake_clock.sleep)
    for _ in range(20):
        await gate.throttle()
        slept = await gate.throttle()
        assert 2.0 * 0.7 - 1e-9 <= slept <= 2.0 * 1.3 + 1e-9

@pytest.mark.asyncio
async def test_last_request_time_is_set_after_sleep(fake_clock):
    gate = ThrottleGate(min_interval=1.0, use_jitter=False, clock=fake_clock, sleep=fake_clock.sleep)
    await gate.throttle()
    start = fake_clock.now
    await gate.throttle()
    assert gate.last_request_time == pytest.approx(start + 1.0)

def test_pending_delay(fake_clock):
    gate = ThrottleGate(min_interval=1.0, clock=fake_clock)
    assert gate.pending_delay() == 0.0
    gate.last_request_time = fake_clock.now
    fake_clock.advance(0.4)
    assert gate.pending_delay() == pytest.approx(0.6)
