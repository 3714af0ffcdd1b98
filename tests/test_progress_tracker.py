"""
Tests for progress tracking: exposure counts, quiz attempts and mastery.
"""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from kidvocab.modules.progress.models import LearnerProgress, QuestionType, compute_mastery
from kidvocab.modules.progress.progress_tracker import ProgressTracker


def make_progress(**overrides) -> LearnerProgress:
    fields = {"id": "p1", "learner_id": "child-1", "item_id": "w1"}
    fields.update(overrides)
    return LearnerProgress(**fields)


@pytest.fixture
def db_ops():
    ops = AsyncMock()
    ops.get_or_create_progress.return_value = make_progress()
    ops.increment_times_seen.return_value = make_progress(times_seen_in_learn=1)
    ops.record_quiz_result.return_value = make_progress(quiz_attempts=1, quiz_correct=1, mastery_score=100)
    return ops


@pytest.fixture
def tracker(db_ops, mock_catalog, registry, bus):
    return ProgressTracker(db_ops=db_ops, catalog=mock_catalog, registry=registry, bus=bus)


def test_compute_mastery():
    assert compute_mastery(0, 0) == 0
    assert compute_mastery(3, 4) == 75
    assert compute_mastery(2, 3) == 67
    assert compute_mastery(1, 8) == 13
    assert compute_mastery(5, 5) == 100


@pytest.mark.asyncio
async def test_mark_word_seen_increments_and_signals(tracker, db_ops, invalidated):
    await tracker.mark_word_seen("child-1", "w1")

    db_ops.increment_times_seen.assert_awaited_once()
    progress_id, seen_at = db_ops.increment_times_seen.call_args.args
    assert progress_id == "p1"
    assert isinstance(seen_at, datetime)
    assert invalidated == ["/progress"]


@pytest.mark.asyncio
async def test_mark_word_seen_skip_side_effect(tracker, invalidated):
    await tracker.mark_word_seen("child-1", "w1", skip_side_effect=True)
    assert invalidated == []


@pytest.mark.asyncio
async def test_concurrent_mark_word_seen_writes_once(tracker, db_ops):
    await asyncio.gather(*(tracker.mark_word_seen("child-1", "w1") for _ in range(3)))

    db_ops.get_or_create_progress.assert_awaited_once_with("child-1", "w1")
    db_ops.increment_times_seen.assert_awaited_once()


@pytest.mark.asyncio
async def test_mark_word_seen_different_words_not_coalesced(tracker, db_ops):
    await asyncio.gather(tracker.mark_word_seen("child-1", "w1"), tracker.mark_word_seen("child-1", "w2"))
    assert db_ops.increment_times_seen.await_count == 2


@pytest.mark.asyncio
async def test_record_quiz_attempt_updates_mastery(progress_store, mock_catalog, registry, bus):
    tracker = ProgressTracker(db_ops=progress_store, catalog=mock_catalog, registry=registry, bus=bus)
    await tracker.record_quiz_attempt("child-1", "w1", QuestionType.TARGET_TO_EN, False)

    progress = await tracker.record_quiz_attempt("child-1", "w1", QuestionType.EN_TO_TARGET, True)

    assert progress_store.attempts[-1] == ("child-1", "w1", QuestionType.EN_TO_TARGET, True, False)
    assert progress.quiz_attempts == 2
    assert progress.quiz_correct == 1
    assert progress.mastery_score == 50
    # A correct answer does not clear the review flag
    assert progress.needs_review is True


@pytest.mark.asyncio
async def test_wrong_answer_flags_review(tracker, db_ops, invalidated):
    await tracker.record_quiz_attempt("child-1", "w1", "TARGET_TO_EN", False)

    db_ops.create_quiz_attempt.assert_awaited_once_with("child-1", "w1", QuestionType.TARGET_TO_EN, False, False)
    progress_id, correct, _ = db_ops.record_quiz_result.call_args.args
    assert (progress_id, correct) == ("p1", False)
    assert invalidated == ["/progress"]


@pytest.mark.asyncio
async def test_concurrent_quiz_attempts_write_once(tracker, db_ops, invalidated):
    await asyncio.gather(
        *(tracker.record_quiz_attempt("child-1", "w1", QuestionType.EN_TO_TARGET, True) for _ in range(3))
    )

    db_ops.create_quiz_attempt.assert_awaited_once()
    db_ops.record_quiz_result.assert_awaited_once()
    assert invalidated == ["/progress"]


@pytest.mark.asyncio
async def test_get_unseen_words_excludes_seen(tracker, db_ops, mock_catalog, word_factory):
    db_ops.get_seen_item_ids.return_value = {"w2", "w1"}
    mock_catalog.find_words.return_value = [word_factory("w3"), word_factory("w4")]

    words = await tracker.get_unseen_words("child-1")

    assert [word.id for word in words] == ["w3", "w4"]
    mock_catalog.find_words.assert_awaited_once_with(level=None, exclude_ids=["w1", "w2"])


@pytest.mark.asyncio
async def test_get_all_progress_coalesces_reads(tracker, db_ops):
    db_ops.list_progress.return_value = [make_progress()]

    results = await asyncio.gather(tracker.get_all_progress("child-1"), tracker.get_all_progress("child-1"))

    assert results[0] == results[1]
    db_ops.list_progress.assert_awaited_once_with("child-1")


@pytest.mark.asyncio
async def test_words_needing_review_filters(tracker, db_ops):
    await tracker.get_words_needing_review("child-1", level=2)
    db_ops.list_progress.assert_awaited_once_with("child-1", needs_review=True, level=2)


@pytest.mark.asyncio
async def test_check_daily_completion(tracker, db_ops):
    db_ops.has_progress_seen_since.return_value = True
    db_ops.has_quiz_attempt_since.return_value = False

    assert await tracker.check_daily_completion("child-1", "learn") is True
    assert await tracker.check_daily_completion("child-1", "quiz") is False
    with pytest.raises(ValueError):
        await tracker.check_daily_completion("child-1", "sleep")


@pytest.mark.asyncio
async def test_reset_progress(tracker, db_ops, invalidated):
    db_ops.delete_learner_progress.return_value = 4

    assert await tracker.reset_progress("child-1") == 4
    assert invalidated == ["/progress"]


@pytest.mark.asyncio
async def test_get_or_create_progress_falls_back_to_select():
    from kidvocab.modules.progress.db_operations import ProgressDBOperations

    row = {
        "id": "p1",
        "learner_id": "child-1",
        "item_id": "w1",
        "times_seen_in_learn": 1,
        "quiz_attempts": 0,
        "quiz_correct": 0,
        "mastery_score": 0,
        "needs_review": False,
        "last_seen_at": None,
    }
    with patch("kidvocab.modules.progress.db_operations.get_db_connection") as mock_get_conn:
        mock_conn = AsyncMock()
        mock_get_conn.return_value = mock_conn
        mock_conn.fetchrow.side_effect = [None, row]

        progress = await ProgressDBOperations().get_or_create_progress("child-1", "w1")

        assert progress.times_seen_in_learn == 1
        insert_sql = mock_conn.fetchrow.call_args_list[0][0][0]
        assert "ON CONFLICT (learner_id, item_id) DO NOTHING" in insert_sql
        mock_conn.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_concurrent_answers_of_different_kinds_all_count(progress_store, mock_catalog, registry, bus):
    tracker = ProgressTracker(db_ops=progress_store, catalog=mock_catalog, registry=registry, bus=bus)

    await asyncio.gather(
        tracker.record_quiz_attempt("child-1", "w1", QuestionType.EN_TO_TARGET, True),
        tracker.record_quiz_attempt("child-1", "w1", QuestionType.TARGET_TO_EN, False),
    )

    row = progress_store.rows[("child-1", "w1")]
    assert (row.quiz_attempts, row.quiz_correct, row.mastery_score) == (2, 1, 50)
    assert row.needs_review is True
    assert len(progress_store.attempts) == 2


@pytest.mark.asyncio
async def test_concurrent_mark_seen_of_different_words(progress_store, mock_catalog, registry, bus):
    tracker = ProgressTracker(db_ops=progress_store, catalog=mock_catalog, registry=registry, bus=bus)

    await tracker.mark_word_seen("child-1", "w1")
    await asyncio.gather(tracker.mark_word_seen("child-1", "w1"), tracker.mark_word_seen("child-1", "w2"))

    assert progress_store.rows[("child-1", "w1")].times_seen_in_learn == 2
    assert progress_store.rows[("child-1", "w2")].times_seen_in_learn == 1


@pytest.mark.asyncio
async def test_record_quiz_result_increments_in_sql():
    from kidvocab.modules.progress.db_operations import ProgressDBOperations

    row = {
        "id": "p1",
        "learner_id": "child-1",
        "item_id": "w1",
        "times_seen_in_learn": 0,
        "quiz_attempts": 4,
        "quiz_correct": 3,
        "mastery_score": 75,
        "needs_review": True,
        "last_seen_at": None,
    }
    with patch("kidvocab.modules.progress.db_operations.get_db_connection") as mock_get_conn:
        mock_conn = AsyncMock()
        mock_get_conn.return_value = mock_conn
        mock_conn.transaction = MagicMock()
        mock_conn.fetchrow.side_effect = [{"quiz_attempts": 4, "quiz_correct": 3}, row]

        progress = await ProgressDBOperations().record_quiz_result("p1", False, datetime(2024, 1, 17))

        assert progress.mastery_score == 75
        mock_conn.transaction.assert_called_once()
        counter_sql, *params = mock_conn.fetchrow.call_args_list[0].args
        assert "quiz_attempts = quiz_attempts + 1" in counter_sql
        assert "quiz_correct = quiz_correct + $2" in counter_sql
        assert "needs_review = needs_review OR $3" in counter_sql
        assert params[:3] == ["p1", 0, True]
        assert mock_conn.fetchrow.call_args_list[1].args[1:] == ("p1", 75)
        mock_conn.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_increment_times_seen_in_sql():
    from kidvocab.modules.progress.db_operations import ProgressDBOperations

    with patch("kidvocab.modules.progress.db_operations.get_db_connection") as mock_get_conn:
        mock_conn = AsyncMock()
        mock_get_conn.return_value = mock_conn
        mock_conn.fetchrow.return_value = {
            "id": "p1",
            "learner_id": "child-1",
            "item_id": "w1",
            "times_seen_in_learn": 3,
            "quiz_attempts": 0,
            "quiz_correct": 0,
            "mastery_score": 0,
            "needs_review": False,
            "last_seen_at": None,
        }

        progress = await ProgressDBOperations().increment_times_seen("p1", datetime(2024, 1, 17))

        assert progress.times_seen_in_learn == 3
        assert "times_seen_in_learn = times_seen_in_learn + 1" in mock_conn.fetchrow.call_args.args[0]
        mock_conn.close.assert_awaited_once()
