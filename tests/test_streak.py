"""
Tests for streak calculation and streak rules.
"""

from datetime import date, datetime
from unittest.mock import AsyncMock, patch

import pytest

from kidvocab.modules.progress.streak import StreakCalculator

TODAY = date(2024, 1, 17)


def activity_on(*days: int):
    return [datetime(2024, 1, day, 12, 0) for day in days]


@pytest.fixture
def db_ops():
    return AsyncMock()


@pytest.fixture
def tracker():
    return AsyncMock()


@pytest.fixture
def calculator(db_ops, tracker):
    return StreakCalculator(db_ops=db_ops, tracker=tracker, lookback_days=30)


@pytest.mark.asyncio
async def test_five_consecutive_days(calculator, db_ops):
    db_ops.get_activity_timestamps.return_value = activity_on(13, 14, 15, 16, 17)

    with patch("kidvocab.core.dates.today", return_value=TODAY):
        assert await calculator.get_streak("child-1") == 5


@pytest.mark.asyncio
async def test_gap_ends_the_streak(calculator, db_ops):
    db_ops.get_activity_timestamps.return_value = activity_on(17, 16, 14, 13)

    with patch("kidvocab.core.dates.today", return_value=TODAY):
        assert await calculator.get_streak("child-1") == 2


@pytest.mark.asyncio
async def test_no_activity_today_means_zero(calculator, db_ops):
    db_ops.get_activity_timestamps.return_value = activity_on(16, 15, 14)

    with patch("kidvocab.core.dates.today", return_value=TODAY):
        assert await calculator.get_streak("child-1") == 0


@pytest.mark.asyncio
async def test_several_entries_on_one_day_count_once(calculator, db_ops):
    db_ops.get_activity_timestamps.return_value = [
        datetime(2024, 1, 17, 8, 0),
        datetime(2024, 1, 17, 19, 30),
        datetime(2024, 1, 16, 9, 15),
    ]

    with patch("kidvocab.core.dates.today", return_value=TODAY):
        assert await calculator.get_streak("child-1") == 2


@pytest.mark.asyncio
async def test_lookback_window_is_passed_to_query(db_ops, tracker):
    db_ops.get_activity_timestamps.return_value = []
    calculator = StreakCalculator(db_ops=db_ops, tracker=tracker, lookback_days=7)

    await calculator.get_streak("child-1")

    learner_id, since = db_ops.get_activity_timestamps.call_args.args
    assert learner_id == "child-1"
    assert since.tzinfo is not None


@pytest.mark.asyncio
async def test_streak_rules(calculator, tracker):
    async def completion(learner_id, kind):
        return kind == "quiz"

    tracker.check_daily_completion.side_effect = completion

    assert await calculator.streak_rule_met_today("child-1", "quiz") is True
    assert await calculator.streak_rule_met_today("child-1", "learn") is False
    assert await calculator.streak_rule_met_today("child-1", "either") is True
    assert await calculator.streak_rule_met_today("child-1", "both") is False


@pytest.mark.asyncio
async def test_unknown_streak_rule(calculator):
    with pytest.raises(ValueError):
        await calculator.streak_rule_met_today("child-1", "sometimes")
