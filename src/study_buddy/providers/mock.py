"""
Mock provider for testing

Returns configurable responses without making API calls.
"""

import asyncio
import json
import random
import re
from typing import Optional, Callable
from dataclasses import dataclass

from .base import ModelProvider, ModelResponse, ProviderError


def _quoted_topic(prompt: str, fallback: str = "the topic") -> str:
    """Pull the first double-quoted string out of a prompt."""
    quoted = re.findall(r'"([^"]+)"', prompt)
    return quoted[0] if quoted else fallback


def generate_mock_questions(topic: str, count: int = 3) -> list[dict]:
    """
    Generate mock quiz questions for a topic.

    Args:
        topic: Topic the questions are about
        count: Number of questions

    Returns:
        List of question dicts in the shape the quiz prompt asks for
    """
    templates = [
        (
            f"Which statement best defines {topic}?",
            f"The core definition of {topic}",
            ["An unrelated definition", "A common misconception", "A vague description"],
        ),
        (
            f"Which example shows {topic} in practice?",
            f"A scenario applying {topic}",
            ["A scenario with no connection", "A contradictory scenario", "A historical footnote"],
        ),
        (
            f"Why is {topic} worth studying?",
            f"It explains how {topic} works",
            ["It is rarely used", "It has no applications", "It was disproven"],
        ),
    ]

    questions = []
    for i in range(count):
        question, answer, wrong = templates[i % len(templates)]
        options = [answer] + wrong
        # Correct answer of question i sits at position i (A, B, C, ...)
        shift = i % len(options)
        if shift:
            options = options[-shift:] + options[:-shift]
        questions.append({
            "id": f"q{i + 1}",
            "question": question,
            "answer": answer,
            "options": options,
        })
    return questions


def generate_mock_quiz_text(topic: str, count: int = 3) -> str:
    """Render a mock quiz the way chatty models tend to: prose around a fenced JSON block."""
    payload = json.dumps({"questions": generate_mock_questions(topic, count)}, indent=2)
    return f"Here is your quiz about {topic}:\n\n```json\n{payload}\n```\n\nGood luck!"


@dataclass
class MockProvider(ModelProvider):
    """
    Mock provider for testing.

    Can be configured with custom response generators or fixed responses.
    """

    _name: str = "mock"
    _default_model: str = "mock-model-v1"
    fixed_response: Optional[str] = None
    response_generator: Optional[Callable[[str], str]] = None
    delay_seconds: float = 0.0
    fail_rate: float = 0.0  # Probability of raising an error
    token_count: int = 100

    @property
    def name(self) -> str:
        return self._name

    @property
    def default_model(self) -> str:
        return self._default_model

    async def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: int = 1024,
        temperature: float = 0.7,
        **kwargs
    ) -> ModelResponse:
        """Generate a mock response."""
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

        if self.fail_rate > 0 and random.random() < self.fail_rate:
            raise ProviderError("Simulated mock provider failure")

        if self.fixed_response is not None:
            content = self.fixed_response
        elif self.response_generator is not None:
            content = self.response_generator(prompt)
        else:
            content = self._default_response(prompt, system)

        return ModelResponse(
            content=content,
            model=model or self._default_model,
            provider=self.name,
            usage={
                "input_tokens": len(prompt.split()) * 2,
                "output_tokens": self.token_count,
            },
        )

    def _default_response(self, prompt: str, system: Optional[str] = None) -> str:
        """
        Generate a contextual mock response based on prompt content.

        Detects whether a quiz, a summary or a chat reply is expected.
        """
        prompt_lower = prompt.lower()

        # Quiz generation request
        if '"questions"' in prompt_lower:
            count_match = re.search(r"create a (\d+)-question quiz", prompt_lower)
            count = int(count_match.group(1)) if count_match else 3
            return generate_mock_quiz_text(_quoted_topic(prompt), count)

        # Summary request
        if "summary of" in prompt_lower:
            topic = _quoted_topic(prompt)
            return (
                f"{topic} is a core idea worth knowing.\n\n"
                f"- Key concept: what {topic} is and where it shows up\n"
                f"- Example: a simple, everyday case of {topic}\n"
                f"- Why it matters: {topic} connects to many other subjects"
            )

        return "Hi! I'm Study Buddy. Ask me to summarize a topic or quiz you on something."


class FailingProvider(MockProvider):
    """Mock provider that always raises the given error."""

    def __init__(self, error: Optional[Exception] = None):
        super().__init__(_name="failing")
        self.error = error or ProviderError("Simulated mock provider failure")

    async def generate(self, prompt: str, **kwargs) -> ModelResponse:
        raise self.error


def create_quiz_mock(topic: str = "example", count: int = 3) -> MockProvider:
    """Create a mock provider that always answers with a quiz about topic."""

    def generator(prompt: str) -> str:
        return generate_mock_quiz_text(topic, count)

    return MockProvider(response_generator=generator)


def create_recording_mock(response: str = "ok") -> tuple[MockProvider, list[str]]:
    """Create a mock provider that remembers every prompt it was given."""
    prompts: list[str] = []

    def generator(prompt: str) -> str:
        prompts.append(prompt)
        return response

    return MockProvider(response_generator=generator), prompts
