"""
Quiz engine

Creates quizzes with a text generation provider, stores them, lists and
renders them, and grades submissions. Generation problems come back as
friendly messages; storage problems are raised to the caller.
"""

import logging
import math
import time
import uuid
from datetime import datetime
from typing import Optional

from ..config import Config, config as default_config
from ..events import EventSink, LoggingEventSink, Outcome, StudyEvent
from ..prompts import QUIZ_SYSTEM_PROMPT, format_quiz_prompt
from ..providers.base import ModelProvider
from ..storage import StudyStore, utc_now
from .parser import parse_quiz_questions
from .schema import GradeResult, Quiz, QuizNotFoundError, QuizResult, option_letter

logger = logging.getLogger(__name__)

QUIZ_GENERATION_ERROR = "Sorry, I encountered an error while generating the quiz. Please try again."
QUIZ_MALFORMED = "Sorry, I couldn't generate a proper quiz. Please try again with a different topic."
QUIZ_NOT_FOUND = '❌ Quiz not found. Use "list quizzes" to see your available quizzes.'
NO_QUIZZES_TO_ANSWER = "❌ No quizzes available to answer. Create a quiz first!"
NO_QUIZZES_YET = '📝 **Your Quizzes**\n\nNo quizzes yet! Try creating one with "quiz me on [topic]".'


def new_id(prefix: str) -> str:
    """Unique id from the clock plus a random suffix, e.g. quiz_1718031234567_a1b2c3."""
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


def percentage(score: int, total: int) -> int:
    """score/total as a whole percentage, halves rounded up."""
    if total <= 0:
        return 0
    return int(math.floor(score / total * 100 + 0.5))


def format_date(iso_timestamp: str) -> str:
    """Render a stored timestamp as M/D/YYYY."""
    try:
        dt = datetime.fromisoformat(iso_timestamp)
    except (TypeError, ValueError):
        return iso_timestamp or ""
    return f"{dt.month}/{dt.day}/{dt.year}"


def format_questions(quiz: Quiz) -> str:
    """Every question with its lettered options."""
    lines = []
    for index, question in enumerate(quiz.questions):
        lines.append(f"**Question {index + 1}:** {question.question}")
        for i, option in enumerate(question.options or []):
            lines.append(f"{option_letter(i)}. {option}")
        lines.append("")
    return "\n".join(lines) + "\n"


def format_quiz(quiz: Quiz, footer: str) -> str:
    return f"🧠 **Quiz: {quiz.topic}**\n\n{format_questions(quiz)}💡 {footer}"


def format_grade_result(result: GradeResult) -> str:
    """Score line, streak and a short verdict."""
    if result.percentage >= 80:
        emoji, verdict = "🎉", "Excellent work!"
    elif result.percentage >= 60:
        emoji, verdict = "👍", "Good job!"
    else:
        emoji, verdict = "📚", "Keep studying!"

    return (
        f"{emoji} **Quiz Results**\n\n"
        f"📊 Score: {result.score}/{result.total} ({result.percentage}%)\n"
        f"🔥 Your study streak is now {result.streak} days!\n\n"
        f"{verdict}"
    )


class QuizEngine:
    """
    Quiz lifecycle: generate, store, list, show, grade.

    All lookups are scoped to the requesting user; another user's quiz id
    behaves exactly like an unknown id.
    """

    def __init__(
        self,
        store: StudyStore,
        provider: ModelProvider,
        *,
        events: Optional[EventSink] = None,
        settings: Optional[Config] = None,
        model: Optional[str] = None,
    ):
        """
        Initialize engine.

        Args:
            store: Persistence store
            provider: Text generation provider
            events: Where boundary events go (logs by default)
            settings: Config tree (module singleton by default)
            model: Optional model override
        """
        self.store = store
        self.provider = provider
        self.events = events or LoggingEventSink()
        self.settings = settings or default_config
        self.model = model

    def _emit(self, kind: str, user_id: str, outcome: str, **details) -> None:
        self.events.emit(StudyEvent(kind=kind, user_id=user_id, outcome=outcome, details=details))

    async def _create(self, topic: str, user_id: str) -> tuple[Optional[Quiz], Optional[str]]:
        """Generate and store a quiz; on a soft failure return the message to show instead."""
        gen = self.settings.generation
        prompt = format_quiz_prompt(
            topic,
            count=self.settings.quiz.question_count,
            distractors=self.settings.quiz.distractor_count,
        )

        try:
            response = await self.provider.generate(
                prompt=prompt,
                system=QUIZ_SYSTEM_PROMPT,
                model=self.model,
                max_tokens=gen.quiz_max_tokens,
                temperature=gen.quiz_temperature,
            )
        except Exception as e:
            logger.warning(f"Quiz generation failed for topic {topic!r}: {e}")
            self._emit("quiz.generate", user_id, Outcome.SOFT_FAILURE, topic=topic, reason="generation_error")
            return None, QUIZ_GENERATION_ERROR

        outcome = parse_quiz_questions(response.content)
        if not outcome.ok:
            logger.warning(f"No usable questions in generated quiz for topic {topic!r}")
            self._emit("quiz.generate", user_id, Outcome.SOFT_FAILURE, topic=topic, reason="malformed_output")
            return None, QUIZ_MALFORMED

        quiz = Quiz(
            id=new_id("quiz"),
            user_id=user_id,
            topic=topic,
            questions=outcome.questions,
            created_at=utc_now(),
        )
        await self.store.insert_quiz(quiz)

        logger.debug(f"Stored quiz {quiz.id} with {quiz.question_count} questions ({outcome.strategy})")
        self._emit(
            "quiz.generate", user_id, Outcome.OK,
            topic=topic, quiz_id=quiz.id, questions=quiz.question_count,
        )
        return quiz, None

    async def create_quiz(self, topic: str, user_id: str) -> Optional[Quiz]:
        """
        Generate and store a quiz.

        Returns:
            The stored Quiz, or None when generation failed or produced
            nothing usable (nothing is stored in that case)

        Raises:
            StorageError: If the quiz could not be saved
        """
        quiz, _ = await self._create(topic, user_id)
        return quiz

    async def generate_quiz(self, topic: str, user_id: str) -> str:
        """Generate a quiz and render it, or explain why there isn't one."""
        quiz, failure = await self._create(topic, user_id)
        if quiz is None:
            return failure
        return format_quiz(quiz, "*Answer the questions and I'll check them for you!*")

    async def get_quiz(self, user_id: str, quiz_id: str) -> Optional[Quiz]:
        return await self.store.get_quiz(user_id, quiz_id)

    async def list_quizzes(self, user_id: str) -> str:
        """Summary of the most recent quizzes, newest first."""
        user_quizzes = await self.store.list_quizzes(user_id)
        if not user_quizzes:
            self._emit("quiz.list", user_id, Outcome.OK, count=0)
            return NO_QUIZZES_YET

        lines = ["📝 **Your Recent Quizzes**", ""]
        for index, quiz in enumerate(user_quizzes[:self.settings.quiz.list_limit]):
            lines.append(
                f"{index + 1}. **{quiz.topic}** ({quiz.question_count} questions) - {format_date(quiz.created_at)}"
            )
            lines.append(f"   ID: `{quiz.id}`")
            lines.append("")
        lines.append('💡 Use "show quiz [ID]" to view a specific quiz, or "answer A,B,C" to submit answers.')

        self._emit("quiz.list", user_id, Outcome.OK, count=len(user_quizzes))
        return "\n".join(lines)

    async def show_quiz(self, user_id: str, quiz_id: str) -> str:
        """Render one of the user's quizzes."""
        quiz = await self.store.get_quiz(user_id, quiz_id)
        if quiz is None:
            self._emit("quiz.show", user_id, Outcome.NOT_FOUND, quiz_id=quiz_id)
            return QUIZ_NOT_FOUND

        self._emit("quiz.show", user_id, Outcome.OK, quiz_id=quiz_id)
        return format_quiz(quiz, 'Use "answer A,B,C" to submit your answers.')

    async def grade_quiz(self, user_id: str, quiz_id: str, answers: list[str]) -> GradeResult:
        """
        Score answers against a quiz and record the attempt.

        Answers line up with questions by position. Missing answers count as
        wrong. Every graded attempt counts as study activity, whatever the
        score.

        Raises:
            QuizNotFoundError: If quiz_id doesn't belong to user_id
            StorageError: If the result could not be recorded
        """
        quiz = await self.store.get_quiz(user_id, quiz_id)
        if quiz is None:
            self._emit("quiz.grade", user_id, Outcome.NOT_FOUND, quiz_id=quiz_id)
            raise QuizNotFoundError(quiz_id, user_id)

        correct = [
            question.is_correct(answers[i] if i < len(answers) else None)
            for i, question in enumerate(quiz.questions)
        ]
        score = sum(correct)
        total = quiz.question_count

        result = QuizResult(
            id=new_id("result"),
            quiz_id=quiz.id,
            user_id=user_id,
            answers=["" if a is None else str(a) for a in answers],
            score=score,
            total_questions=total,
            created_at=utc_now(),
        )
        streak = await self.store.record_quiz_result(result)

        grade = GradeResult(
            quiz_id=quiz.id,
            result_id=result.id,
            score=score,
            total=total,
            percentage=percentage(score, total),
            streak=streak,
            correct=correct,
        )
        self._emit(
            "quiz.grade", user_id, Outcome.OK,
            quiz_id=quiz.id, score=score, total=total, streak=streak,
        )
        return grade

    async def submit_latest(self, user_id: str, answers: list[str]) -> str:
        """
        Grade answers against the user's most recent quiz.

        Chat answers don't name a quiz, so they always go to the newest one.
        """
        latest = await self.store.list_quizzes(user_id, limit=1)
        if not latest:
            self._emit("quiz.grade", user_id, Outcome.NOT_FOUND, reason="no_quizzes")
            return NO_QUIZZES_TO_ANSWER

        try:
            result = await self.grade_quiz(user_id, latest[0].id, answers)
        except QuizNotFoundError:
            return QUIZ_NOT_FOUND
        return format_grade_result(result)
