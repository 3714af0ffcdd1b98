"""
Tests for daily and weekly mission periods.
"""

import asyncio
from datetime import date
from unittest.mock import AsyncMock, patch

import pytest

from kidvocab.modules.missions.db_operations import MissionDBOperations
from kidvocab.modules.missions.mission_tracker import MissionTracker, period_start_date
from kidvocab.modules.missions.models import MissionState, PeriodType

WEDNESDAY = date(2024, 1, 17)


def make_mission(**overrides) -> MissionState:
    fields = {
        "id": "m1",
        "learner_id": "child-1",
        "period_type": PeriodType.DAILY,
        "mission_key": "learn_words",
        "target": 5,
        "period_start_date": "2024-01-17",
    }
    fields.update(overrides)
    return MissionState(**fields)


@pytest.fixture
def db_ops():
    ops = AsyncMock()
    ops.get_or_create_mission_state.return_value = make_mission()
    ops.increment_mission_progress.return_value = make_mission(progress=1)
    return ops


@pytest.fixture
def tracker(db_ops, bus):
    return MissionTracker(db_ops=db_ops, bus=bus)


def test_daily_period_is_the_day():
    assert period_start_date(PeriodType.DAILY, WEDNESDAY) == "2024-01-17"


def test_weekly_period_starts_monday():
    assert period_start_date(PeriodType.WEEKLY, WEDNESDAY) == "2024-01-15"
    assert period_start_date("WEEKLY", date(2024, 1, 15)) == "2024-01-15"
    # Sunday closes the week that began six days earlier
    assert period_start_date(PeriodType.WEEKLY, date(2024, 1, 21)) == "2024-01-15"
    assert period_start_date(PeriodType.WEEKLY, date(2024, 1, 22)) == "2024-01-22"


@pytest.mark.asyncio
async def test_weekly_mission_rolls_over_on_monday(tracker, db_ops):
    with patch("kidvocab.core.dates.today", return_value=WEDNESDAY):
        await tracker.update_mission_progress("child-1", PeriodType.WEEKLY, "quiz_words", 20)
    with patch("kidvocab.core.dates.today", return_value=date(2024, 1, 22)):
        await tracker.update_mission_progress("child-1", PeriodType.WEEKLY, "quiz_words", 20)

    starts = [call.args[4] for call in db_ops.get_or_create_mission_state.call_args_list]
    assert starts == ["2024-01-15", "2024-01-22"]


@pytest.mark.asyncio
async def test_progress_is_capped_at_target(tracker, db_ops, invalidated):
    db_ops.get_or_create_mission_state.return_value = make_mission(progress=4)
    db_ops.increment_mission_progress.return_value = make_mission(progress=5, completed=True)

    update = await tracker.update_mission_progress("child-1", PeriodType.DAILY, "learn_words", 5, delta=3)

    assert update.progress == 5
    assert update.completed is True
    db_ops.increment_mission_progress.assert_awaited_once_with("m1", 3, 5)
    assert invalidated == ["/progress"]


@pytest.mark.asyncio
async def test_progress_below_target(tracker, db_ops, invalidated):
    update = await tracker.update_mission_progress(
        "child-1", PeriodType.DAILY, "learn_words", 5, skip_side_effect=True
    )

    assert (update.progress, update.completed) == (1, False)
    assert invalidated == []


@pytest.mark.asyncio
async def test_target_must_be_positive(tracker):
    with pytest.raises(ValueError):
        await tracker.get_or_create_mission_state("child-1", PeriodType.DAILY, "learn_words", 0, "2024-01-17")


@pytest.mark.asyncio
async def test_get_all_missions_uses_current_periods(tracker, db_ops):
    with patch("kidvocab.core.dates.today", return_value=WEDNESDAY):
        await tracker.get_all_missions("child-1")

    db_ops.list_current_missions.assert_awaited_once_with("child-1", "2024-01-17", "2024-01-15")


@pytest.mark.asyncio
async def test_concurrent_updates_both_count(mission_store, bus):
    tracker = MissionTracker(db_ops=mission_store, bus=bus)

    with patch("kidvocab.core.dates.today", return_value=WEDNESDAY):
        await asyncio.gather(
            tracker.update_mission_progress("child-1", PeriodType.DAILY, "learn_words", 5),
            tracker.update_mission_progress("child-1", PeriodType.DAILY, "learn_words", 5),
        )

    (row,) = mission_store.rows.values()
    assert (row.progress, row.completed) == (2, False)


@pytest.mark.asyncio
async def test_stored_target_follows_the_caller(mission_store, bus):
    tracker = MissionTracker(db_ops=mission_store, bus=bus)

    with patch("kidvocab.core.dates.today", return_value=WEDNESDAY):
        await tracker.update_mission_progress("child-1", PeriodType.DAILY, "learn_words", 5, delta=3)
        update = await tracker.update_mission_progress("child-1", PeriodType.DAILY, "learn_words", 3)

    (row,) = mission_store.rows.values()
    assert (row.target, row.progress, row.completed) == (3, 3, True)
    assert (update.progress, update.completed) == (3, True)


@pytest.mark.asyncio
async def test_increment_is_applied_in_sql():
    row = {
        "id": "m1",
        "learner_id": "child-1",
        "period_type": "DAILY",
        "mission_key": "learn_words",
        "target": 5,
        "progress": 2,
        "completed": False,
        "period_start_date": "2024-01-17",
    }
    with patch("kidvocab.modules.missions.db_operations.get_db_connection") as mock_get_conn:
        mock_conn = AsyncMock()
        mock_get_conn.return_value = mock_conn
        mock_conn.fetchrow.return_value = row

        mission = await MissionDBOperations().increment_mission_progress("m1", 1, 5)

        sql, *params = mock_conn.fetchrow.call_args.args
        assert "LEAST(progress + $2, $3)" in sql
        assert "target = $3" in sql
        assert params == ["m1", 1, 5]
        assert mission.progress == 2
        mock_conn.close.assert_awaited_once()
