"""
Tests for the relational store.
"""

import pytest

from study_buddy.quiz.schema import Question, Quiz, QuizResult
from study_buddy.storage import StorageError, StudyStore


def make_quiz(quiz_id: str, user_id: str = "alice", created_at: str = "2025-01-01T00:00:00+00:00",
              topic: str = "Geography") -> Quiz:
    return Quiz(
        id=quiz_id,
        user_id=user_id,
        topic=topic,
        questions=[
            Question(id="q1", question="Capital of France?", answer="Paris",
                     options=["Paris", "London", "Berlin", "Madrid"]),
        ],
        created_at=created_at,
    )


def make_result(result_id: str, quiz_id: str, user_id: str = "alice", score: int = 1,
                created_at: str = "2025-01-02T00:00:00+00:00") -> QuizResult:
    return QuizResult(
        id=result_id,
        quiz_id=quiz_id,
        user_id=user_id,
        answers=["A"],
        score=score,
        total_questions=1,
        created_at=created_at,
    )


class TestStoreSetup:
    """Tests for construction and schema creation."""

    def test_requires_url_or_engine(self):
        with pytest.raises(ValueError):
            StudyStore()

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, tmp_path):
        """Test initialize can be run again on an existing database."""
        url = f"sqlite+aiosqlite:///{tmp_path / 'again.db'}"
        first = StudyStore(url)
        await first.initialize()
        await first.record_activity("alice")
        await first.close()

        second = StudyStore(url)
        await second.initialize()
        await second.initialize()
        state = await second.get_user_state("alice")
        await second.close()

        assert state.streak == 1

    @pytest.mark.asyncio
    async def test_unreachable_database_raises_storage_error(self, tmp_path):
        """Test driver failures surface as StorageError."""
        store = StudyStore(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'x.db'}")

        with pytest.raises(StorageError):
            await store.initialize()
        await store.close()


class TestUserState:
    """Tests for per-user state."""

    @pytest.mark.asyncio
    async def test_unknown_user_is_fresh(self, store):
        state = await store.get_user_state("nobody")

        assert state.user_id == "nobody"
        assert state.streak == 0
        assert state.last_topic is None
        assert state.quizzes == []
        assert state.attempts == 0

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, store):
        """Test unspecified fields keep their stored values."""
        await store.update_user_state("alice", streak=4, last_topic="Algebra")
        await store.update_user_state("alice", last_active="2025-03-01T10:00:00+00:00")

        state = await store.get_user_state("alice")

        assert state.streak == 4
        assert state.last_topic == "Algebra"
        assert state.last_active == "2025-03-01T10:00:00+00:00"

    @pytest.mark.asyncio
    async def test_touch_keeps_streak(self, store):
        """Test a last_active-only update leaves streak and topic alone."""
        for _ in range(3):
            await store.record_activity("alice", last_topic="Algebra")

        await store.update_user_state("alice", last_active="2025-04-01T00:00:00+00:00")

        state = await store.get_user_state("alice")
        assert state.streak == 3
        assert state.last_topic == "Algebra"
        assert state.last_active == "2025-04-01T00:00:00+00:00"

    @pytest.mark.asyncio
    async def test_touch_creates_fresh_row(self, store):
        await store.update_user_state("carol", last_active="2025-04-01T00:00:00+00:00")
        await store.update_user_state("carol")

        state = await store.get_user_state("carol")
        assert state.streak == 0
        assert state.last_active == "2025-04-01T00:00:00+00:00"

    @pytest.mark.asyncio
    async def test_record_activity_increments(self, store):
        """Test each activity adds exactly one to the streak."""
        assert await store.record_activity("alice", last_topic="Biology") == 1
        assert await store.record_activity("alice") == 2

        state = await store.get_user_state("alice")

        assert state.streak == 2
        assert state.last_topic == "Biology"

    @pytest.mark.asyncio
    async def test_record_activity_replaces_topic(self, store):
        await store.record_activity("alice", last_topic="Biology")
        await store.record_activity("alice", last_topic="Chemistry")

        assert (await store.get_user_state("alice")).last_topic == "Chemistry"


class TestQuizzes:
    """Tests for quiz storage."""

    @pytest.mark.asyncio
    async def test_round_trip(self, store):
        """Test a stored quiz comes back identical."""
        quiz = make_quiz("quiz_1")
        await store.insert_quiz(quiz)

        assert await store.get_quiz("alice", "quiz_1") == quiz

    @pytest.mark.asyncio
    async def test_get_quiz_is_user_scoped(self, store):
        """Test another user's quiz id behaves like an unknown id."""
        await store.insert_quiz(make_quiz("quiz_1", user_id="alice"))

        assert await store.get_quiz("bob", "quiz_1") is None
        assert await store.get_quiz("alice", "quiz_nope") is None

    @pytest.mark.asyncio
    async def test_list_newest_first(self, store):
        await store.insert_quiz(make_quiz("quiz_old", created_at="2025-01-01T00:00:00+00:00"))
        await store.insert_quiz(make_quiz("quiz_new", created_at="2025-02-01T00:00:00+00:00"))
        await store.insert_quiz(make_quiz("quiz_mid", created_at="2025-01-15T00:00:00+00:00"))
        await store.insert_quiz(make_quiz("quiz_bob", user_id="bob"))

        quizzes = await store.list_quizzes("alice")

        assert [q.id for q in quizzes] == ["quiz_new", "quiz_mid", "quiz_old"]
        assert [q.id for q in await store.list_quizzes("alice", limit=1)] == ["quiz_new"]

    @pytest.mark.asyncio
    async def test_duplicate_id_raises_storage_error(self, store):
        await store.insert_quiz(make_quiz("quiz_1"))

        with pytest.raises(StorageError):
            await store.insert_quiz(make_quiz("quiz_1"))

    @pytest.mark.asyncio
    async def test_state_includes_quizzes(self, store):
        await store.insert_quiz(make_quiz("quiz_1"))

        state = await store.get_user_state("alice")

        assert state.quiz_count == 1
        assert state.quizzes[0].id == "quiz_1"


class TestQuizResults:
    """Tests for grading records."""

    @pytest.mark.asyncio
    async def test_record_result_increments_streak(self, store):
        await store.insert_quiz(make_quiz("quiz_1"))
        await store.record_activity("alice")

        streak = await store.record_quiz_result(make_result("result_1", "quiz_1"))

        assert streak == 2
        state = await store.get_user_state("alice")
        assert state.streak == 2
        assert state.attempts == 1

    @pytest.mark.asyncio
    async def test_list_results(self, store):
        await store.insert_quiz(make_quiz("quiz_1"))
        await store.insert_quiz(make_quiz("quiz_2"))
        await store.record_quiz_result(make_result("result_1", "quiz_1", created_at="2025-01-02T00:00:00+00:00"))
        await store.record_quiz_result(make_result("result_2", "quiz_2", created_at="2025-01-03T00:00:00+00:00"))

        all_results = await store.list_quiz_results("alice")
        quiz_1_results = await store.list_quiz_results("alice", quiz_id="quiz_1")

        assert [r.id for r in all_results] == ["result_2", "result_1"]
        assert [r.id for r in quiz_1_results] == ["result_1"]
        assert quiz_1_results[0].answers == ["A"]
        assert await store.list_quiz_results("bob") == []

    @pytest.mark.asyncio
    async def test_failed_result_leaves_streak_unchanged(self, store):
        """Test result row and streak increment commit together or not at all."""
        await store.insert_quiz(make_quiz("quiz_1"))
        await store.record_quiz_result(make_result("result_1", "quiz_1"))

        with pytest.raises(StorageError):
            await store.record_quiz_result(make_result("result_1", "quiz_1"))

        state = await store.get_user_state("alice")
        assert state.streak == 1
        assert state.attempts == 1
