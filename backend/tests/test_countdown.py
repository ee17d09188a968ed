import pytest

from interviewer.interview.countdown import Countdown


@pytest.mark.asyncio
async def test_countdown_ticks_then_expires_once(fake_clock):
    ticks: list[int] = []
    expired: list[str] = []
    countdown = Countdown(
        "answer_window",
        3,
        on_expire=lambda: expired.append("done"),
        on_tick=ticks.append,
        sleep=fake_clock.sleep,
    ).start()

    await fake_clock.advance(2)
    assert ticks == [2, 1]
    assert expired == []
    assert countdown.running

    await fake_clock.advance(5)
    assert ticks == [2, 1, 0]
    assert expired == ["done"]
    assert countdown.expired is True
    assert countdown.ticks == 3
    assert not countdown.running


@pytest.mark.asyncio
async def test_cancelled_countdown_never_expires(fake_clock):
    expired: list[str] = []
    countdown = Countdown("start_window", 30, on_expire=lambda: expired.append("x"), sleep=fake_clock.sleep).start()

    await fake_clock.advance(10)
    countdown.cancel()
    await countdown.wait()
    await fake_clock.advance(60)

    assert expired == []
    assert countdown.cancelled is True
    assert countdown.remaining == 20


@pytest.mark.asyncio
async def test_cancel_after_expiry_is_noop(fake_clock):
    countdown = Countdown("start_window", 1, on_expire=lambda: None, sleep=fake_clock.sleep).start()
    await fake_clock.advance(1)

    countdown.cancel()

    assert countdown.expired is True
    assert countdown.cancelled is False


@pytest.mark.asyncio
async def test_countdown_cannot_start_twice(fake_clock):
    countdown = Countdown("start_window", 5, on_expire=lambda: None, sleep=fake_clock.sleep).start()

    with pytest.raises(RuntimeError):
        countdown.start()

    countdown.cancel()
    await countdown.wait()


@pytest.mark.asyncio
async def test_zero_duration_expires_immediately(fake_clock, fakes):
    expired: list[str] = []
    countdown = Countdown("start_window", 0, on_expire=lambda: expired.append("x"), sleep=fake_clock.sleep).start()
    await fakes.settle()

    assert expired == ["x"]
    assert countdown.ticks == 0
