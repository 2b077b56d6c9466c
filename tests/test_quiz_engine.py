"""
Tests for the quiz engine.
"""

import re

import pytest

from study_buddy.events import Outcome
from study_buddy.providers.mock import (
    FailingProvider,
    MockProvider,
    create_quiz_mock,
    create_recording_mock,
)
from study_buddy.quiz.engine import (
    NO_QUIZZES_TO_ANSWER,
    NO_QUIZZES_YET,
    QUIZ_GENERATION_ERROR,
    QUIZ_MALFORMED,
    QUIZ_NOT_FOUND,
    QuizEngine,
    format_date,
    format_grade_result,
    new_id,
    percentage,
)
from study_buddy.quiz.schema import GradeResult, Question, Quiz, QuizNotFoundError


def paris_quiz(user_id: str = "alice", quiz_id: str = "quiz_paris") -> Quiz:
    return Quiz(
        id=quiz_id,
        user_id=user_id,
        topic="Geography",
        questions=[
            Question(id="q1", question="What is the capital of France?", answer="Paris",
                     options=["Paris", "London", "Berlin", "Madrid"]),
        ],
        created_at="2025-01-01T00:00:00+00:00",
    )


class TestHelpers:
    """Tests for id, percentage and formatting helpers."""

    def test_new_id_shape(self):
        assert re.fullmatch(r"quiz_\d{13}_[0-9a-f]{6}", new_id("quiz"))
        assert new_id("quiz") != new_id("quiz")

    def test_percentage_rounds_half_up(self):
        assert percentage(2, 3) == 67
        assert percentage(1, 3) == 33
        assert percentage(1, 8) == 13  # 12.5
        assert percentage(3, 3) == 100
        assert percentage(0, 0) == 0

    def test_format_date(self):
        assert format_date("2025-03-07T12:00:00+00:00") == "3/7/2025"
        assert format_date("not a date") == "not a date"

    def test_grade_messages(self):
        def result(pct):
            return GradeResult(quiz_id="q", result_id="r", score=0, total=0, percentage=pct, streak=2)

        assert format_grade_result(result(80)).startswith("🎉")
        assert format_grade_result(result(60)).startswith("👍")
        assert format_grade_result(result(59)).startswith("📚")
        assert "streak is now 2 days" in format_grade_result(result(100))


class TestGenerateQuiz:
    """Tests for quiz generation."""

    @pytest.mark.asyncio
    async def test_generates_and_stores(self, store, events):
        engine = QuizEngine(store, create_quiz_mock("Photosynthesis"), events=events)

        text = await engine.generate_quiz("Photosynthesis", "alice")

        assert text.startswith("🧠 **Quiz: Photosynthesis**")
        assert "**Question 1:**" in text
        assert "A. " in text
        quizzes = await store.list_quizzes("alice")
        assert len(quizzes) == 1
        assert quizzes[0].question_count == 3
        assert events.last("quiz.generate").outcome == Outcome.OK

    @pytest.mark.asyncio
    async def test_default_mock_reads_prompt(self, store):
        """Test the prompt carries topic and question count through to the provider."""
        engine = QuizEngine(store, MockProvider())

        quiz = await engine.create_quiz("fractions", "alice")

        assert quiz is not None
        assert quiz.topic == "fractions"
        assert quiz.question_count == 3
        assert "fractions" in quiz.questions[0].question

    @pytest.mark.asyncio
    async def test_generation_does_not_change_streak(self, store):
        engine = QuizEngine(store, create_quiz_mock())

        await engine.generate_quiz("example", "alice")

        assert (await store.get_user_state("alice")).streak == 0

    @pytest.mark.asyncio
    async def test_provider_failure_is_soft(self, store, events):
        engine = QuizEngine(store, FailingProvider(), events=events)

        text = await engine.generate_quiz("anything", "alice")

        assert text == QUIZ_GENERATION_ERROR
        assert await store.list_quizzes("alice") == []
        assert events.last("quiz.generate").outcome == Outcome.SOFT_FAILURE

    @pytest.mark.asyncio
    async def test_malformed_output_is_soft(self, store):
        engine = QuizEngine(store, MockProvider(fixed_response="I'd rather not."))

        assert await engine.generate_quiz("anything", "alice") == QUIZ_MALFORMED
        assert await store.list_quizzes("alice") == []

    @pytest.mark.asyncio
    async def test_empty_output_is_soft(self, store):
        engine = QuizEngine(store, MockProvider(fixed_response=""))

        assert await engine.generate_quiz("anything", "alice") == QUIZ_MALFORMED

    @pytest.mark.asyncio
    async def test_prompt_includes_topic(self, store):
        provider, prompts = create_recording_mock("not a quiz")
        engine = QuizEngine(store, provider)

        await engine.generate_quiz("the water cycle", "alice")

        assert 'quiz about "the water cycle"' in prompts[0]


class TestListAndShow:
    """Tests for listing and showing quizzes."""

    @pytest.mark.asyncio
    async def test_empty_list(self, store):
        engine = QuizEngine(store, MockProvider())

        assert await engine.list_quizzes("alice") == NO_QUIZZES_YET

    @pytest.mark.asyncio
    async def test_list_shows_recent_first_and_limits(self, store):
        engine = QuizEngine(store, MockProvider())
        for i in range(7):
            await store.insert_quiz(Quiz(
                id=f"quiz_{i}", user_id="alice", topic=f"Topic {i}",
                questions=paris_quiz().questions,
                created_at=f"2025-01-0{i + 1}T00:00:00+00:00",
            ))

        text = await engine.list_quizzes("alice")

        assert text.index("Topic 6") < text.index("Topic 5")
        assert "Topic 1" not in text
        assert "(1 questions) - 1/7/2025" in text
        assert "ID: `quiz_6`" in text

    @pytest.mark.asyncio
    async def test_show_quiz(self, store):
        engine = QuizEngine(store, MockProvider())
        await store.insert_quiz(paris_quiz())

        text = await engine.show_quiz("alice", "quiz_paris")

        assert "🧠 **Quiz: Geography**" in text
        assert "A. Paris" in text
        assert "D. Madrid" in text

    @pytest.mark.asyncio
    async def test_show_other_users_quiz_is_not_found(self, store, events):
        engine = QuizEngine(store, MockProvider(), events=events)
        await store.insert_quiz(paris_quiz(user_id="alice"))

        assert await engine.show_quiz("bob", "quiz_paris") == QUIZ_NOT_FOUND
        assert events.last("quiz.show").outcome == Outcome.NOT_FOUND


class TestGrading:
    """Tests for grading submissions."""

    @pytest.mark.asyncio
    async def test_correct_answer(self, store):
        engine = QuizEngine(store, MockProvider())
        await store.insert_quiz(paris_quiz())

        result = await engine.grade_quiz("alice", "quiz_paris", ["A"])

        assert (result.score, result.total, result.percentage) == (1, 1, 100)
        assert result.correct == [True]

    @pytest.mark.asyncio
    async def test_wrong_answer_still_counts_as_activity(self, store):
        engine = QuizEngine(store, MockProvider())
        await store.insert_quiz(paris_quiz())

        result = await engine.grade_quiz("alice", "quiz_paris", ["B"])

        assert result.score == 0
        assert result.percentage == 0
        assert result.streak == 1

    @pytest.mark.asyncio
    async def test_lowercase_answer(self, store):
        engine = QuizEngine(store, MockProvider())
        await store.insert_quiz(paris_quiz())

        result = await engine.grade_quiz("alice", "quiz_paris", [" a "])

        assert result.score == 1

    @pytest.mark.asyncio
    async def test_missing_answers_count_as_wrong(self, store):
        engine = QuizEngine(store, create_quiz_mock("example", 3))
        quiz = await engine.create_quiz("example", "alice")

        first = quiz.questions[0].correct_letter
        result = await engine.grade_quiz("alice", quiz.id, [first])

        assert result.score == 1
        assert result.total == 3
        assert result.percentage == 33
        assert result.correct == [True, False, False]

    @pytest.mark.asyncio
    async def test_non_string_answers_are_graded(self, store):
        engine = QuizEngine(store, create_quiz_mock("example", 3))
        quiz = await engine.create_quiz("example", "alice")

        result = await engine.grade_quiz("alice", quiz.id, [1, 2, 3])

        assert (result.score, result.total) == (0, 3)
        stored = await store.list_quiz_results("alice", quiz_id=quiz.id)
        assert stored[0].answers == ["1", "2", "3"]

    @pytest.mark.asyncio
    async def test_extra_answers_ignored(self, store):
        engine = QuizEngine(store, MockProvider())
        await store.insert_quiz(paris_quiz())

        result = await engine.grade_quiz("alice", "quiz_paris", ["A", "B", "C"])

        assert (result.score, result.total) == (1, 1)

    @pytest.mark.asyncio
    async def test_grading_records_result_and_streak(self, store):
        engine = QuizEngine(store, MockProvider())
        await store.insert_quiz(paris_quiz())
        await store.record_activity("alice")

        result = await engine.grade_quiz("alice", "quiz_paris", ["A"])

        assert result.streak == 2
        stored = await store.list_quiz_results("alice", quiz_id="quiz_paris")
        assert len(stored) == 1
        assert stored[0].id == result.result_id
        assert stored[0].score == 1

    @pytest.mark.asyncio
    async def test_other_users_quiz_raises_not_found(self, store, events):
        engine = QuizEngine(store, MockProvider(), events=events)
        await store.insert_quiz(paris_quiz(user_id="alice"))

        with pytest.raises(QuizNotFoundError):
            await engine.grade_quiz("bob", "quiz_paris", ["A"])

        assert await store.list_quiz_results("bob") == []
        assert (await store.get_user_state("bob")).streak == 0
        assert events.last("quiz.grade").outcome == Outcome.NOT_FOUND


class TestSubmitLatest:
    """Tests for chat-style answers against the newest quiz."""

    @pytest.mark.asyncio
    async def test_no_quizzes(self, store):
        engine = QuizEngine(store, MockProvider())

        assert await engine.submit_latest("alice", ["A"]) == NO_QUIZZES_TO_ANSWER
        assert (await store.get_user_state("alice")).streak == 0

    @pytest.mark.asyncio
    async def test_grades_newest_quiz(self, store):
        engine = QuizEngine(store, MockProvider())
        await store.insert_quiz(paris_quiz(quiz_id="quiz_old"))
        newer = paris_quiz(quiz_id="quiz_new")
        newer.created_at = "2025-06-01T00:00:00+00:00"
        await store.insert_quiz(newer)

        text = await engine.submit_latest("alice", ["A"])

        assert "Score: 1/1 (100%)" in text
        assert text.startswith("🎉")
        assert [r.quiz_id for r in await store.list_quiz_results("alice")] == ["quiz_new"]
