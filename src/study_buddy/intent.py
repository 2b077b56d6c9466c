"""
Intent parsing

Maps a raw chat message to one intent from a closed set, plus whatever the
handler needs (topic, quiz id, answers). Matching is plain prefix/substring
work on the lowercased message; the first rule that matches wins.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

DEFAULT_TOPIC = "general knowledge"

_SUMMARIZE_PREFIX = re.compile(r"^(?:summarize|explain)\s+", re.IGNORECASE)
_QUIZ_ME_PREFIX = re.compile(r"^quiz me on\s+", re.IGNORECASE)
_TOPIC_AFTER_VERB = re.compile(
    r"(?:summarize|explain|quiz me|generate quiz|create quiz)\s+(.+)",
    re.IGNORECASE,
)
_LIST_QUIZZES = re.compile(r"^list quizzes", re.IGNORECASE)
_SHOW_QUIZ = re.compile(r"^show quiz\s+(\S+)", re.IGNORECASE)
_ANSWER_PREFIX = re.compile(r"^answer[:\s]", re.IGNORECASE)
_ANSWER_SPLIT = re.compile(r"[,\s]+")


class IntentType(str, Enum):
    """Closed set of things a message can ask for."""
    SUMMARIZE = "summarize"
    QUIZ_GENERATE = "quiz_generate"
    QUIZ_LIST = "quiz_list"
    QUIZ_SHOW = "quiz_show"
    QUIZ_ANSWER = "quiz_answer"
    PROGRESS = "progress"
    GENERAL = "general"


@dataclass
class Intent:
    """A classified message."""
    type: IntentType
    topic: Optional[str] = None
    quiz_id: Optional[str] = None
    answers: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        result = {"type": self.type.value}
        if self.topic is not None:
            result["topic"] = self.topic
        if self.quiz_id is not None:
            result["quiz_id"] = self.quiz_id
        if self.type == IntentType.QUIZ_ANSWER:
            result["answers"] = list(self.answers)
        return result


def _clean_topic(text: Optional[str]) -> str:
    topic = (text or "").strip()
    return topic or DEFAULT_TOPIC


def extract_topic(message: str) -> str:
    """
    Find the topic that follows a study verb anywhere in the message.

    Args:
        message: Raw chat message

    Returns:
        Trimmed topic, or the default topic when none follows a verb
    """
    match = _TOPIC_AFTER_VERB.search(message)
    return _clean_topic(match.group(1) if match else None)


def parse_intent(message: str) -> Intent:
    """
    Classify a chat message.

    Rules, in priority order:
    1. "summarize X" / "explain X" -> summarize
    2. "quiz me on X", or "generate quiz" / "create quiz" anywhere -> quiz_generate
    3. "list quizzes" -> quiz_list
    4. "show quiz <id>" -> quiz_show
    5. "answer A, B, C" / "answer: A B C" -> quiz_answer
    6. "progress" or "streak" anywhere -> progress
    7. anything else (including an empty message) -> general

    Args:
        message: Raw chat message

    Returns:
        The classified Intent
    """
    message = message or ""
    m = message.lower()

    if m.startswith("summarize ") or m.startswith("explain "):
        return Intent(
            type=IntentType.SUMMARIZE,
            topic=_clean_topic(_SUMMARIZE_PREFIX.sub("", message, count=1)),
        )

    if m.startswith("quiz me on ") or "generate quiz" in m or "create quiz" in m:
        if m.startswith("quiz me on "):
            topic = _clean_topic(_QUIZ_ME_PREFIX.sub("", message, count=1))
        else:
            topic = extract_topic(message)
        return Intent(type=IntentType.QUIZ_GENERATE, topic=topic)

    if _LIST_QUIZZES.match(message):
        return Intent(type=IntentType.QUIZ_LIST)

    show_match = _SHOW_QUIZ.match(message)
    if show_match:
        return Intent(type=IntentType.QUIZ_SHOW, quiz_id=show_match.group(1))

    answer_match = _ANSWER_PREFIX.match(message)
    if answer_match:
        remainder = message[answer_match.end():]
        answers = [a for a in _ANSWER_SPLIT.split(remainder) if a]
        return Intent(type=IntentType.QUIZ_ANSWER, answers=answers)

    if "progress" in m or "streak" in m:
        return Intent(type=IntentType.PROGRESS)

    return Intent(type=IntentType.GENERAL)
