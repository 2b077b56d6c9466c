"""
study-buddy: a stateful AI study assistant.

Summarizes topics, generates and grades multiple-choice quizzes, and keeps a
per-user study streak in a relational store.
"""

__version__ = "0.1.0"

from .config import config, Config
from .events import StudyEvent, LoggingEventSink, RecordingEventSink, Outcome
from .intent import Intent, IntentType, parse_intent
from .storage import StudyStore, StorageError, UserState
from .quiz import Question, Quiz, QuizResult, GradeResult, QuizNotFoundError
from .quiz.engine import QuizEngine
from .orchestrator import StudyBuddyAgent, ChatReply

__all__ = [
    # Config
    "config",
    "Config",
    # Events
    "StudyEvent",
    "LoggingEventSink",
    "RecordingEventSink",
    "Outcome",
    # Intent
    "Intent",
    "IntentType",
    "parse_intent",
    # Storage
    "StudyStore",
    "StorageError",
    "UserState",
    # Quiz
    "Question",
    "Quiz",
    "QuizResult",
    "GradeResult",
    "QuizNotFoundError",
    "QuizEngine",
    # Orchestrator
    "StudyBuddyAgent",
    "ChatReply",
]
