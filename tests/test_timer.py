from __future__ import annotations

import pytest

from quizbank.engine.timer import (
    DEFAULT_TIME_LIMIT_MINUTES,
    CountdownTimer,
    format_clock,
    resolve_time_limit,
)


@pytest.mark.parametrize(
    "minutes, expected",
    [
        (20, 1200),
        (1, 60),
        ("15", 900),
        (" 3 ", 180),
        (2.0, 120),
        (None, 600),
        (0, 600),
        (-5, 600),
        ("abc", 600),
        ("", 600),
        (2.5, 600),
        (True, 600),
    ],
)
def test_resolve_time_limit(minutes, expected) -> None:
    assert resolve_time_limit(minutes) == expected


def test_default_time_limit_is_ten_minutes() -> None:
    assert DEFAULT_TIME_LIMIT_MINUTES == 10


def test_format_clock() -> None:
    assert format_clock(0) == "00:00:00"
    assert format_clock(600) == "00:10:00"
    assert format_clock(3661) == "01:01:01"
    assert format_clock(-5) == "00:00:00"


def test_timer_rejects_non_positive_limit(clock) -> None:
    with pytest.raises(ValueError):
        CountdownTimer(0, clock=clock)


def test_sixty_ticks_expire_exactly_once(clock) -> None:
    timer = CountdownTimer(60, clock=clock)
    events: list[str] = []
    timer.subscribe(lambda: events.append("expired"))
    timer.start()

    for _ in range(60):
        timer.tick()

    assert timer.remaining_seconds == 0
    assert timer.expired is True
    assert timer.running is False
    assert events == ["expired"]

    timer.tick()
    timer.start()
    assert timer.remaining_seconds == 0
    assert events == ["expired"]


def test_tick_is_ignored_while_stopped(clock) -> None:
    timer = CountdownTimer(10, clock=clock)

    timer.tick()

    assert timer.remaining_seconds == 10
    assert timer.elapsed_seconds == 0


def test_poll_applies_whole_seconds(clock) -> None:
    timer = CountdownTimer(60, clock=clock)
    timer.start()

    clock.advance(2.5)
    assert timer.poll() == 2
    assert timer.remaining_seconds == 58

    clock.advance(0.5)
    assert timer.poll() == 1
    assert timer.remaining_seconds == 57
    assert timer.elapsed_seconds == 3

    assert timer.poll() == 0


def test_poll_past_the_limit_stops_at_zero(clock) -> None:
    timer = CountdownTimer(60, clock=clock)
    events: list[str] = []
    timer.subscribe(lambda: events.append("expired"))
    timer.start()

    clock.advance(1000)

    assert timer.poll() == 60
    assert timer.remaining_seconds == 0
    assert events == ["expired"]
    assert timer.poll() == 0


def test_stop_cancels_pending_ticks_and_is_idempotent(clock) -> None:
    timer = CountdownTimer(30, clock=clock)
    timer.start()
    clock.advance(5)
    timer.poll()

    timer.stop()
    timer.stop()
    clock.advance(10)

    assert timer.poll() == 0
    assert timer.remaining_seconds == 25
    assert timer.running is False

    timer.start()
    clock.advance(1)
    assert timer.poll() == 1
    assert timer.remaining_seconds == 24


def test_reset_zeroes_without_expiring(clock) -> None:
    timer = CountdownTimer(30, clock=clock)
    events: list[str] = []
    timer.subscribe(lambda: events.append("expired"))
    timer.start()

    timer.reset()
    timer.start()

    assert timer.remaining_seconds == 0
    assert timer.running is False
    assert events == []
