"""
Learner endpoints: progress, quizzes, levels, missions, plans and letters
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from kidvocab.interfaces.api.schemas import (
    AutoPlanRequest,
    LearningSessionRequest,
    LetterAttemptRequest,
    MissionProgressRequest,
    PlanRequest,
    QuizAttemptRequest,
    XPRequest,
)
from kidvocab.modules.learning.session import get_learning_session_service
from kidvocab.modules.leveling.leveling_engine import get_leveling_engine
from kidvocab.modules.letters.letter_tracker import get_letter_tracker
from kidvocab.modules.missions.mission_tracker import get_mission_tracker
from kidvocab.modules.plans.plan_generator import get_plan_generator
from kidvocab.modules.progress.progress_tracker import get_progress_tracker
from kidvocab.modules.progress.streak import STREAK_RULES, get_streak_calculator

learner_router = APIRouter(prefix="/learners/{learner_id}", tags=["learners"])


@learner_router.get("/progress")
async def get_all_progress(learner_id: str):
    return await get_progress_tracker().get_all_progress(learner_id)


@learner_router.delete("/progress")
async def reset_progress(learner_id: str):
    return {"deleted": await get_progress_tracker().reset_progress(learner_id)}


@learner_router.get("/progress/review")
async def get_words_needing_review(learner_id: str, level: Optional[int] = Query(None, ge=1)):
    return await get_progress_tracker().get_words_needing_review(learner_id, level)


@learner_router.get("/words/unseen")
async def get_unseen_words(learner_id: str, level: Optional[int] = Query(None, ge=1)):
    return await get_progress_tracker().get_unseen_words(learner_id, level)


@learner_router.get("/words/{item_id}/progress")
async def get_progress(learner_id: str, item_id: str):
    progress = await get_progress_tracker().get_progress(learner_id, item_id)
    if progress is None:
        raise HTTPException(status_code=404, detail="No progress for this word")
    return progress


@learner_router.post("/words/{item_id}/seen")
async def mark_word_seen(learner_id: str, item_id: str):
    await get_progress_tracker().mark_word_seen(learner_id, item_id)
    return {"success": True}


@learner_router.post("/words/{item_id}/quiz")
async def record_quiz_attempt(learner_id: str, item_id: str, attempt: QuizAttemptRequest):
    return await get_progress_tracker().record_quiz_attempt(
        learner_id, item_id, attempt.question_type, attempt.correct, attempt.is_extra
    )


@learner_router.get("/streak")
async def get_streak(learner_id: str):
    return {"streak": await get_streak_calculator().get_streak(learner_id)}


@learner_router.get("/streak/rule/{rule}")
async def streak_rule_met_today(learner_id: str, rule: str):
    if rule not in STREAK_RULES:
        raise HTTPException(status_code=400, detail=f"rule must be one of {', '.join(STREAK_RULES)}")
    return {"met": await get_streak_calculator().streak_rule_met_today(learner_id, rule)}


@learner_router.get("/daily-completion/{kind}")
async def check_daily_completion(learner_id: str, kind: str):
    if kind not in ("learn", "quiz"):
        raise HTTPException(status_code=400, detail="kind must be 'learn' or 'quiz'")
    return {"completed": await get_progress_tracker().check_daily_completion(learner_id, kind)}


@learner_router.get("/level")
async def get_level(learner_id: str):
    return await get_leveling_engine().get_level_progress(learner_id)


@learner_router.post("/xp")
async def add_xp(learner_id: str, request: XPRequest):
    return await get_leveling_engine().add_xp(learner_id, request.amount)


@learner_router.get("/missions")
async def get_all_missions(learner_id: str):
    return await get_mission_tracker().get_all_missions(learner_id)


@learner_router.post("/missions/{mission_key}")
async def update_mission_progress(learner_id: str, mission_key: str, request: MissionProgressRequest):
    return await get_mission_tracker().update_mission_progress(
        learner_id, request.period_type, mission_key, request.target, request.delta
    )


@learner_router.get("/plans/today")
async def get_today_plan(learner_id: str):
    plan = await get_plan_generator().get_today_plan(learner_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="No plan for today")
    return plan


@learner_router.get("/plans/{date}")
async def get_daily_plan(learner_id: str, date: str):
    plan = await get_plan_generator().get_daily_plan(learner_id, date)
    if plan is None:
        raise HTTPException(status_code=404, detail=f"No plan for {date}")
    return plan


@learner_router.put("/plans/{date}")
async def create_daily_plan(learner_id: str, date: str, request: PlanRequest):
    return await get_plan_generator().create_daily_plan(learner_id, date, request.item_ids)


@learner_router.post("/plans/{date}/starter-pack")
async def generate_starter_pack(learner_id: str, date: str, count: Optional[int] = Query(None, ge=1, le=100)):
    return await get_plan_generator().generate_starter_pack(learner_id, date, count)


@learner_router.post("/plans/{date}/auto")
async def auto_generate_plan(learner_id: str, date: str, request: AutoPlanRequest):
    return await get_plan_generator().auto_generate_plan(learner_id, date, **request.model_dump())


@learner_router.post("/sessions")
async def complete_learning_session(learner_id: str, request: LearningSessionRequest):
    return await get_learning_session_service().complete_learning_session(
        learner_id, request.item_id, request.words_count, request.xp_amount
    )


@learner_router.get("/letters")
async def get_all_letter_progress(learner_id: str):
    return await get_letter_tracker().get_all_letter_progress(learner_id)


@learner_router.get("/letters/level1-complete")
async def check_level1_complete(learner_id: str):
    return {"complete": await get_letter_tracker().check_level1_complete(learner_id)}


@learner_router.get("/letters/unmastered")
async def get_unmastered_letters(learner_id: str):
    return await get_letter_tracker().get_unmastered_letters(learner_id)


@learner_router.post("/letters/{letter_id}/seen")
async def mark_letter_seen(learner_id: str, letter_id: str, request: LetterAttemptRequest):
    return await get_letter_tracker().mark_letter_seen(learner_id, letter_id, request.correct)
