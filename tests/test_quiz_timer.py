import asyncio
from datetime import datetime, timedelta

from nokhba.services.quiz_timer import AutoSubmitScheduler, QuizTimer, format_remaining

START = datetime(2026, 1, 10, 9, 0, 0)


def test_counts_down_in_whole_seconds():
    timer = QuizTimer.for_minutes(2, START)

    assert timer.remaining_seconds(START) == 120
    assert timer.remaining_seconds(START + timedelta(seconds=1.9)) == 119
    assert timer.remaining_seconds(START + timedelta(seconds=61)) == 59


def test_never_reports_negative_time():
    timer = QuizTimer(30, START)

    assert timer.remaining_seconds(START + timedelta(hours=1)) == 0
    assert timer.is_expired(START + timedelta(seconds=30))
    assert not timer.is_expired(START + timedelta(seconds=29))


def test_uses_injected_clock():
    now = [START]
    timer = QuizTimer(60, START, clock=lambda: now[0])

    now[0] = START + timedelta(seconds=45)
    assert timer.remaining_seconds() == 15


def test_format_remaining():
    assert format_remaining(600) == "10:00"
    assert format_remaining(65) == "1:05"
    assert format_remaining(0) == "0:00"
    assert format_remaining(-3) == "0:00"


def test_scheduler_fires_once():
    fired = []

    async def callback(attempt_id):
        fired.append(attempt_id)

    async def run():
        scheduler = AutoSubmitScheduler()
        scheduler.schedule("a1", 0.01, callback)
        await asyncio.sleep(0.05)
        return scheduler.pending()

    assert asyncio.run(run()) == 0
    assert fired == ["a1"]


def test_cancelled_timer_never_fires():
    fired = []

    async def callback(attempt_id):
        fired.append(attempt_id)

    async def run():
        scheduler = AutoSubmitScheduler()
        scheduler.schedule("a1", 0.02, callback)
        cancelled = scheduler.cancel("a1")
        await asyncio.sleep(0.05)
        return cancelled

    assert asyncio.run(run()) is True
    assert fired == []


def test_rescheduling_replaces_pending_timer():
    fired = []

    async def callback(attempt_id):
        fired.append(attempt_id)

    async def run():
        scheduler = AutoSubmitScheduler()
        scheduler.schedule("a1", 0.01, callback)
        scheduler.schedule("a1", 0.01, callback)
        await asyncio.sleep(0.05)

    asyncio.run(run())
    assert fired == ["a1"]
