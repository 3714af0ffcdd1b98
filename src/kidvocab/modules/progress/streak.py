"""
Streak Calculator

Consecutive days of activity, derived on every read from the progress rows
touched inside the lookback window. Nothing about streaks is stored.
"""

import logging
from datetime import timedelta
from typing import Optional

from kidvocab.core import dates
from kidvocab.settings import get_settings

from .db_operations import ProgressDBOperations, get_progress_db_operations
from .progress_tracker import ProgressTracker, get_progress_tracker

logger = logging.getLogger(__name__)

STREAK_RULES = ("learn", "quiz", "either", "both")


class StreakCalculator:
    def __init__(
        self,
        db_ops: Optional[ProgressDBOperations] = None,
        tracker: Optional[ProgressTracker] = None,
        lookback_days: Optional[int] = None,
    ):
        self.db_ops = db_ops or get_progress_db_operations()
        self.tracker = tracker or get_progress_tracker()
        self.lookback_days = lookback_days if lookback_days is not None else get_settings().STREAK_LOOKBACK_DAYS

    async def get_streak(self, learner_id: str) -> int:
        """Days in a row with activity, counting back from today.

        A day without activity ends the count, today included: a learner who
        has not practised yet today has a streak of 0.
        """
        since = dates.utcnow() - timedelta(days=self.lookback_days)
        timestamps = await self.db_ops.get_activity_timestamps(learner_id, since)
        active_days = {dates.local_date(moment) for moment in timestamps}

        streak = 0
        day = dates.today()
        while day in active_days:
            streak += 1
            day -= timedelta(days=1)
        return streak

    async def streak_rule_met_today(self, learner_id: str, rule: str) -> bool:
        """Evaluate an account's streak rule against today's activity."""
        if rule not in STREAK_RULES:
            raise ValueError(f"Unknown streak rule: {rule}")
        if rule == "learn":
            return await self.tracker.check_daily_completion(learner_id, "learn")
        if rule == "quiz":
            return await self.tracker.check_daily_completion(learner_id, "quiz")

        learned = await self.tracker.check_daily_completion(learner_id, "learn")
        if rule == "either" and learned:
            return True
        if rule == "both" and not learned:
            return False
        return await self.tracker.check_daily_completion(learner_id, "quiz")


# Singleton instance
_streak_calculator = None


def get_streak_calculator() -> StreakCalculator:
    global _streak_calculator
    if _streak_calculator is None:
        _streak_calculator = StreakCalculator()
    return _streak_calculator
