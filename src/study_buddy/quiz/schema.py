"""
Quiz schema and data structures

Defines quizzes, their questions, and the records produced by grading.
"""

from dataclasses import dataclass, field
from typing import Optional


def option_letter(index: int) -> str:
    """Letter label for a zero-based option position (0 -> A, 1 -> B, ...)."""
    return chr(ord("A") + index)


@dataclass
class Question:
    """A single quiz question."""
    id: str
    question: str
    answer: str
    options: Optional[list[str]] = None

    @property
    def correct_index(self) -> Optional[int]:
        """Position of the option whose text equals the answer, if any."""
        if not self.options:
            return None
        correct = (self.answer or "").strip()
        if not correct:
            return None
        for i, option in enumerate(self.options):
            if option.strip() == correct:
                return i
        return None

    @property
    def correct_letter(self) -> Optional[str]:
        """Letter of the correct option, or None when this question can't be scored."""
        index = self.correct_index
        return option_letter(index) if index is not None else None

    def is_correct(self, submitted) -> bool:
        """Check a submitted letter against the correct option. Non-strings are compared by their text."""
        letter = self.correct_letter
        if letter is None or submitted is None:
            return False
        return str(submitted).strip().upper() == letter

    def to_dict(self) -> dict:
        result = {
            "id": self.id,
            "question": self.question,
            "answer": self.answer,
        }
        if self.options is not None:
            result["options"] = list(self.options)
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "Question":
        options = data.get("options")
        return cls(
            id=str(data.get("id", "")),
            question=str(data.get("question", "")),
            answer=str(data.get("answer", "")),
            options=[str(o) for o in options] if isinstance(options, list) else None,
        )


@dataclass
class Quiz:
    """
    A generated quiz.

    Quizzes are immutable once stored; nothing in the package updates one.
    """
    id: str
    user_id: str
    topic: str
    questions: list[Question] = field(default_factory=list)
    created_at: str = ""

    @property
    def question_count(self) -> int:
        return len(self.questions)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "topic": self.topic,
            "questions": [q.to_dict() for q in self.questions],
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Quiz":
        return cls(
            id=data["id"],
            user_id=data.get("user_id", ""),
            topic=data.get("topic", ""),
            questions=[Question.from_dict(q) for q in data.get("questions", [])],
            created_at=data.get("created_at", ""),
        )


@dataclass
class QuizResult:
    """A stored grading submission. Append-only."""
    id: str
    quiz_id: str
    user_id: str
    answers: list[str]
    score: int
    total_questions: int
    created_at: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "quiz_id": self.quiz_id,
            "user_id": self.user_id,
            "answers": list(self.answers),
            "score": self.score,
            "total_questions": self.total_questions,
            "created_at": self.created_at,
        }


@dataclass
class GradeResult:
    """Outcome of grading one submission, as handed back to callers."""
    quiz_id: str
    result_id: str
    score: int
    total: int
    percentage: int
    streak: int
    correct: list[bool] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "quiz_id": self.quiz_id,
            "result_id": self.result_id,
            "score": self.score,
            "total": self.total,
            "percentage": self.percentage,
            "streak": self.streak,
            "correct": list(self.correct),
        }


class QuizNotFoundError(LookupError):
    """No quiz with this id belongs to this user."""

    def __init__(self, quiz_id: str, user_id: str):
        super().__init__(f"Quiz {quiz_id!r} not found for user {user_id!r}")
        self.quiz_id = quiz_id
        self.user_id = user_id
