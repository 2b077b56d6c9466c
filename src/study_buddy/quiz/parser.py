"""
Quiz extraction from generated text

Models rarely return bare JSON. They wrap it in prose, fence it, or both.
Extraction tries a fenced block first, then scans for the first balanced
{...} object, and reports total failure as an empty outcome instead of
raising.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Any

from .schema import Question

logger = logging.getLogger(__name__)

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


@dataclass
class ParseOutcome:
    """Questions pulled out of a generation, and how they were found."""
    questions: list[Question] = field(default_factory=list)
    strategy: str = "none"  # "fenced", "scan" or "none"

    @property
    def ok(self) -> bool:
        return len(self.questions) > 0


def _balanced_objects(text: str):
    """
    Yield every balanced {...} substring, in order of its opening brace.

    Braces inside JSON strings are ignored.
    """
    for start, char in enumerate(text):
        if char != "{":
            continue
        depth = 0
        in_string = False
        escaped = False
        for end in range(start, len(text)):
            c = text[end]
            if in_string:
                if escaped:
                    escaped = False
                elif c == "\\":
                    escaped = True
                elif c == '"':
                    in_string = False
                continue
            if c == '"':
                in_string = True
            elif c == "{":
                depth += 1
            elif c == "}":
                depth -= 1
                if depth == 0:
                    yield text[start:end + 1]
                    break


def _quiz_object(raw: str) -> Optional[dict]:
    """Parse raw as a JSON object carrying a questions list, else None."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if isinstance(data, dict) and isinstance(data.get("questions"), list):
        return data
    return None


def extract_json_object(text: str) -> tuple[Optional[dict], str]:
    """
    Locate the quiz block embedded in generated text.

    Objects without a "questions" list are skipped, so a stray fenced note
    doesn't hide the real quiz further on.

    Args:
        text: Raw model output

    Returns:
        (parsed object or None, strategy name)
    """
    if not text:
        return None, "none"

    for match in _FENCED_BLOCK.finditer(text):
        data = _quiz_object(match.group(1))
        if data is not None:
            return data, "fenced"
        logger.debug("Fenced block is not a quiz object, trying next")

    for candidate in _balanced_objects(text):
        data = _quiz_object(candidate)
        if data is not None:
            return data, "scan"

    return None, "none"


def _parse_question(data: Any, position: int) -> Optional[Question]:
    """Build a Question from one raw entry, or None if it has no text."""
    if not isinstance(data, dict):
        return None
    text = str(data.get("question") or "").strip()
    if not text:
        return None

    options = data.get("options")
    if isinstance(options, list) and options and all(isinstance(o, (str, int, float)) for o in options):
        options = [str(o) for o in options]
    else:
        options = None

    return Question(
        id=str(data.get("id") or f"q{position + 1}"),
        question=text,
        answer=str(data.get("answer") or ""),
        options=options,
    )


def parse_quiz_questions(text: str) -> ParseOutcome:
    """
    Extract quiz questions from generated text.

    Args:
        text: Raw model output

    Returns:
        ParseOutcome; ok is False when no usable question list was found
    """
    data, strategy = extract_json_object(text)
    if data is None:
        logger.debug("No quiz object found in generated quiz text")
        return ParseOutcome()

    questions = []
    for raw in data["questions"]:
        question = _parse_question(raw, len(questions))
        if question:
            questions.append(question)

    if not questions:
        return ParseOutcome()

    return ParseOutcome(questions=questions, strategy=strategy)
