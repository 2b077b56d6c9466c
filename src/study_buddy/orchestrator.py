"""
Study Buddy conversation orchestrator

The single entry point for chat. Each message runs start to finish on its own:
1. Load the user's state
2. Classify the message
3. Dispatch to summarize / quiz engine / progress / general chat
4. Record study activity
5. Return display text

Nothing raises out of chat(); every path ends in a string.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import Config, config as default_config
from .events import EventSink, LoggingEventSink, Outcome, StudyEvent
from .intent import Intent, IntentType, parse_intent
from .prompts import SUMMARY_SYSTEM_PROMPT, format_chat_prompt, format_summary_prompt
from .providers.base import ModelProvider
from .providers.mock import MockProvider
from .quiz.engine import QuizEngine
from .quiz.schema import GradeResult, Quiz
from .storage import StorageError, StudyStore, UserState, utc_now

logger = logging.getLogger(__name__)

SUMMARY_ERROR = "Sorry, I encountered an error while generating the summary. Please try again."
GENERAL_FALLBACK = (
    "Hello! I'm Study Buddy, your AI study companion. I can help you with topic summaries, "
    "quizzes, and tracking your study progress. What would you like to study today?"
)
EMPTY_MESSAGE = 'Please type a message. Try "summarize photosynthesis" or "quiz me on fractions".'
INTERNAL_ERROR = (
    "Sorry, something went wrong on our side and your progress may not have been saved. "
    "Please try again in a moment."
)
UNEXPECTED_ERROR = "Sorry, I encountered an error. Please try again."


@dataclass
class ChatReply:
    """What chat produced. ok is False only for internal (storage) failures."""
    text: str
    ok: bool = True
    intent: Optional[IntentType] = None

    def to_dict(self) -> dict:
        return {
            "response": self.text,
            "intent": self.intent.value if self.intent else None,
            "ok": self.ok,
        }


class StudyBuddyAgent:
    """
    Stateful study assistant.

    All durable state lives in the store; the agent itself only holds
    collaborators, so one instance can serve every user.
    """

    def __init__(
        self,
        store: StudyStore,
        provider: Optional[ModelProvider] = None,
        *,
        events: Optional[EventSink] = None,
        settings: Optional[Config] = None,
        model: Optional[str] = None,
        use_mock: bool = False,
    ):
        """
        Initialize agent.

        Args:
            store: Persistence store
            provider: Text generation provider (defaults to mock if None)
            events: Where boundary events go (logs by default)
            settings: Config tree (module singleton by default)
            model: Optional model override
            use_mock: Force use of the mock provider
        """
        if use_mock or provider is None:
            provider = MockProvider()

        self.store = store
        self.provider = provider
        self.events = events or LoggingEventSink()
        self.settings = settings or default_config
        self.model = model
        self.quizzes = QuizEngine(
            store,
            provider,
            events=self.events,
            settings=self.settings,
            model=model,
        )

    def _emit(self, kind: str, user_id: str, outcome: str, **details) -> None:
        self.events.emit(StudyEvent(kind=kind, user_id=user_id, outcome=outcome, details=details))

    async def initialize(self) -> None:
        """Make sure the schema exists."""
        await self.store.initialize()

    async def close(self) -> None:
        await self.provider.close()
        await self.store.close()

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def chat(self, message: str, user_id: str = "default") -> str:
        """Handle one chat message and return the text to display."""
        reply = await self.respond(message, user_id)
        return reply.text

    async def respond(self, message: str, user_id: str = "default") -> ChatReply:
        """
        Handle one chat message.

        Args:
            message: Raw user message
            user_id: Who sent it

        Returns:
            ChatReply; ok is False when storage failed and nothing can be
            assumed saved
        """
        if not message or not message.strip():
            self._emit("chat", user_id, Outcome.REJECTED, reason="empty_message")
            return ChatReply(text=EMPTY_MESSAGE)

        intent: Optional[Intent] = None
        try:
            await self.initialize()

            state = await self.store.get_user_state(user_id)
            await self.store.update_user_state(user_id, last_active=utc_now())

            intent = parse_intent(message)
            logger.debug(f"user={user_id} intent={intent.type.value}")

            text = await self._dispatch(intent, message, state)

        except StorageError as e:
            logger.exception(f"Storage failure while handling chat for {user_id}: {e}")
            self._emit(
                f"chat.{intent.type.value}" if intent else "chat",
                user_id, Outcome.INTERNAL_ERROR, error=str(e),
            )
            return ChatReply(
                text=INTERNAL_ERROR,
                ok=False,
                intent=intent.type if intent else None,
            )
        except Exception as e:
            logger.exception(f"Unexpected error while handling chat for {user_id}: {e}")
            self._emit(
                f"chat.{intent.type.value}" if intent else "chat",
                user_id, Outcome.ERROR, error=str(e),
            )
            return ChatReply(text=UNEXPECTED_ERROR, intent=intent.type if intent else None)

        self._emit(f"chat.{intent.type.value}", user_id, Outcome.OK)
        return ChatReply(text=text, intent=intent.type)

    async def _dispatch(self, intent: Intent, message: str, state: UserState) -> str:
        default_topic = self.settings.quiz.default_topic

        if intent.type == IntentType.SUMMARIZE:
            return await self.summarize_topic(intent.topic or default_topic, state)
        if intent.type == IntentType.QUIZ_GENERATE:
            return await self.quizzes.generate_quiz(intent.topic or default_topic, state.user_id)
        if intent.type == IntentType.QUIZ_LIST:
            return await self.quizzes.list_quizzes(state.user_id)
        if intent.type == IntentType.QUIZ_SHOW:
            return await self.quizzes.show_quiz(state.user_id, intent.quiz_id or "")
        if intent.type == IntentType.QUIZ_ANSWER:
            return await self.quizzes.submit_latest(state.user_id, intent.answers)
        if intent.type == IntentType.PROGRESS:
            return self.get_progress_message(state)
        return await self.handle_general_question(message, state)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _generate_text(self, prompt: str, *, max_tokens: int, temperature: float,
                             system: Optional[str] = None) -> Optional[str]:
        """Call the provider; None means it failed or returned nothing."""
        try:
            response = await self.provider.generate(
                prompt=prompt,
                system=system,
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except Exception as e:
            logger.warning(f"Text generation failed: {e}")
            return None
        return response.text or None

    async def summarize_topic(self, topic: str, state: UserState) -> str:
        """Summarize a topic, then count it as study activity and remember the topic."""
        gen = self.settings.generation
        summary = await self._generate_text(
            format_summary_prompt(topic, word_limit=gen.summary_word_limit),
            system=SUMMARY_SYSTEM_PROMPT,
            max_tokens=gen.summary_max_tokens,
            temperature=gen.summary_temperature,
        )
        if summary is None:
            self._emit("summarize", state.user_id, Outcome.SOFT_FAILURE, topic=topic)
            return SUMMARY_ERROR

        streak = await self.store.record_activity(state.user_id, last_topic=topic)
        self._emit("summarize", state.user_id, Outcome.OK, topic=topic, streak=streak)

        return (
            f"📚 **Summary of {topic}**\n\n{summary}\n\n"
            f"💡 *Great job! Your study streak is now {streak} days.*"
        )

    async def handle_general_question(self, message: str, state: UserState) -> str:
        """Answer in the Study Buddy persona and count it as study activity."""
        gen = self.settings.generation
        answer = await self._generate_text(
            format_chat_prompt(message, state.streak, word_limit=gen.chat_word_limit),
            max_tokens=gen.chat_max_tokens,
            temperature=gen.chat_temperature,
        )
        if answer is None:
            self._emit("general", state.user_id, Outcome.SOFT_FAILURE)
            return GENERAL_FALLBACK

        streak = await self.store.record_activity(state.user_id)
        self._emit("general", state.user_id, Outcome.OK, streak=streak)
        return answer

    def get_progress_message(self, state: UserState) -> str:
        """Read-only progress report."""
        return (
            f"📊 **Your Study Progress**\n\n"
            f"🔥 Study Streak: {state.streak} days\n"
            f"📚 Last Topic: {state.last_topic or 'None yet'}\n"
            f"📝 Quizzes Created: {state.quiz_count}\n"
            f"✅ Quiz Attempts: {state.attempts}\n\n"
            f"Keep up the great work! 🎉"
        )

    # ------------------------------------------------------------------
    # Direct quiz access (no chat parsing)
    # ------------------------------------------------------------------

    async def list_quizzes(self, user_id: str) -> list[Quiz]:
        """All of a user's quizzes, newest first."""
        await self.initialize()
        return await self.store.list_quizzes(user_id)

    async def get_quiz(self, user_id: str, quiz_id: str) -> Optional[Quiz]:
        """One of the user's quizzes, or None."""
        await self.initialize()
        return await self.quizzes.get_quiz(user_id, quiz_id)

    async def submit_answers(self, user_id: str, quiz_id: str, answers: list[str]) -> GradeResult:
        """
        Grade answers for an explicitly named quiz.

        Raises:
            QuizNotFoundError: If quiz_id doesn't belong to user_id
            StorageError: If the result could not be recorded
        """
        await self.initialize()
        return await self.quizzes.grade_quiz(user_id, quiz_id, answers)
