"""
Quiz system for study-buddy

Quiz data structures and extraction of quizzes from generated text. The
engine that ties them to storage lives in study_buddy.quiz.engine.
"""

from .schema import (
    Question,
    Quiz,
    QuizResult,
    GradeResult,
    QuizNotFoundError,
    option_letter,
)
from .parser import ParseOutcome, parse_quiz_questions

__all__ = [
    "Question",
    "Quiz",
    "QuizResult",
    "GradeResult",
    "QuizNotFoundError",
    "option_letter",
    "ParseOutcome",
    "parse_quiz_questions",
]
