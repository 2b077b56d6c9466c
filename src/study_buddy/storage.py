"""
Relational persistence for study-buddy

Three record kinds live here: per-user state, quizzes and quiz results.
Built on SQLAlchemy Core with an async engine (aiosqlite by default, any
dialect with ON CONFLICT upserts works). Every database failure is raised
as StorageError.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, AsyncIterator

from sqlalchemy import (
    JSON, Column, ForeignKey, Integer, MetaData, String, Table, Text,
    func, select,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from .quiz.schema import Question, Quiz, QuizResult

logger = logging.getLogger(__name__)


metadata = MetaData()

user_states = Table(
    "user_states",
    metadata,
    Column("user_id", String, primary_key=True),
    Column("streak", Integer, nullable=False, default=0),
    Column("last_topic", String),
    Column("last_active", String),
    Column("data", Text),
)

quizzes = Table(
    "quizzes",
    metadata,
    Column("id", String, primary_key=True),
    Column("user_id", String, nullable=False, index=True),
    Column("topic", String, nullable=False),
    Column("questions", JSON, nullable=False),
    Column("created_at", String, nullable=False),
)

quiz_results = Table(
    "quiz_results",
    metadata,
    Column("id", String, primary_key=True),
    Column("quiz_id", String, ForeignKey("quizzes.id"), nullable=False),
    Column("user_id", String, nullable=False, index=True),
    Column("answers", JSON, nullable=False),
    Column("score", Integer, nullable=False),
    Column("total_questions", Integer, nullable=False),
    Column("created_at", String, nullable=False),
)


class StorageError(Exception):
    """The store is unavailable or an operation failed."""
    pass


def utc_now() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


@dataclass
class UserState:
    """
    Per-user study state, assembled for a single request.

    A user with no stored row is a fresh user with streak 0.
    """
    user_id: str
    streak: int = 0
    last_topic: Optional[str] = None
    last_active: str = field(default_factory=utc_now)
    quizzes: list[Quiz] = field(default_factory=list)
    attempts: int = 0

    @property
    def quiz_count(self) -> int:
        return len(self.quizzes)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "streak": self.streak,
            "last_topic": self.last_topic,
            "last_active": self.last_active,
            "quiz_count": self.quiz_count,
            "attempts": self.attempts,
        }


def _row_to_quiz(row) -> Quiz:
    return Quiz(
        id=row["id"],
        user_id=row["user_id"],
        topic=row["topic"],
        questions=[Question.from_dict(q) for q in (row["questions"] or [])],
        created_at=row["created_at"],
    )


def _row_to_result(row) -> QuizResult:
    return QuizResult(
        id=row["id"],
        quiz_id=row["quiz_id"],
        user_id=row["user_id"],
        answers=list(row["answers"] or []),
        score=row["score"],
        total_questions=row["total_questions"],
        created_at=row["created_at"],
    )


class StudyStore:
    """
    Async relational store.

    Usage:
        store = StudyStore("sqlite+aiosqlite:///study_buddy.db")
        await store.initialize()
        state = await store.get_user_state("alice")
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        *,
        engine: Optional[AsyncEngine] = None,
        echo: bool = False,
    ):
        """
        Initialize store.

        Args:
            database_url: SQLAlchemy async URL (ignored when engine is given)
            engine: Pre-built async engine
            echo: Log every SQL statement
        """
        if engine is None:
            if not database_url:
                raise ValueError("StudyStore needs a database_url or an engine")
            engine = create_async_engine(database_url, echo=echo)
        self.engine = engine
        self._initialized = False

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncConnection]:
        """One transaction; commits on success, rolls back and raises StorageError on failure."""
        try:
            async with self.engine.begin() as conn:
                yield conn
        except SQLAlchemyError as e:
            logger.error(f"Storage operation failed: {e}")
            raise StorageError(f"Storage operation failed: {e}") from e

    def _insert(self, table: Table):
        """Dialect-specific INSERT that supports ON CONFLICT."""
        if self.engine.dialect.name == "postgresql":
            return postgresql.insert(table)
        return sqlite.insert(table)

    async def initialize(self) -> None:
        """Create the tables if they are absent. Safe to call repeatedly."""
        if self._initialized:
            return
        async with self._transaction() as conn:
            await conn.run_sync(metadata.create_all)
        self._initialized = True

    async def close(self) -> None:
        await self.engine.dispose()

    # ------------------------------------------------------------------
    # User state
    # ------------------------------------------------------------------

    async def get_user_state(self, user_id: str) -> UserState:
        """
        Load a user's state, including their quizzes.

        Unknown users come back as a fresh state with streak 0; nothing is
        written.
        """
        async with self._transaction() as conn:
            row = (await conn.execute(
                select(user_states).where(user_states.c.user_id == user_id)
            )).mappings().first()
            quiz_rows = (await conn.execute(
                select(quizzes)
                .where(quizzes.c.user_id == user_id)
                .order_by(quizzes.c.created_at.desc())
            )).mappings().all()
            attempts = (await conn.execute(
                select(func.count()).select_from(quiz_results)
                .where(quiz_results.c.user_id == user_id)
            )).scalar_one()

        user_quizzes = [_row_to_quiz(r) for r in quiz_rows]
        if row is None:
            return UserState(user_id=user_id, quizzes=user_quizzes, attempts=attempts)

        return UserState(
            user_id=user_id,
            streak=row["streak"] or 0,
            last_topic=row["last_topic"],
            last_active=row["last_active"] or utc_now(),
            quizzes=user_quizzes,
            attempts=attempts,
        )

    async def update_user_state(
        self,
        user_id: str,
        *,
        streak: Optional[int] = None,
        last_topic: Optional[str] = None,
        last_active: Optional[str] = None,
    ) -> None:
        """
        Merge the given fields into the user's row, creating it if needed.

        Fields left as None keep their stored value. Only the given columns
        are written on conflict, so a last_active touch never clobbers a
        streak increment committed by another request.
        """
        changes = {
            name: value
            for name, value in (("streak", streak), ("last_topic", last_topic), ("last_active", last_active))
            if value is not None
        }

        stmt = self._insert(user_states).values(
            user_id=user_id,
            streak=streak if streak is not None else 0,
            last_topic=last_topic,
            last_active=last_active or utc_now(),
        )
        if changes:
            stmt = stmt.on_conflict_do_update(index_elements=[user_states.c.user_id], set_=changes)
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=[user_states.c.user_id])

        async with self._transaction() as conn:
            await conn.execute(stmt)

    async def _increment_streak(
        self,
        conn: AsyncConnection,
        user_id: str,
        last_topic: Optional[str],
        at: str,
    ) -> int:
        stmt = self._insert(user_states).values(
            user_id=user_id,
            streak=1,
            last_topic=last_topic,
            last_active=at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[user_states.c.user_id],
            set_={
                "streak": user_states.c.streak + 1,
                "last_active": stmt.excluded.last_active,
                "last_topic": func.coalesce(stmt.excluded.last_topic, user_states.c.last_topic),
            },
        )
        await conn.execute(stmt)
        return (await conn.execute(
            select(user_states.c.streak).where(user_states.c.user_id == user_id)
        )).scalar_one()

    async def record_activity(
        self,
        user_id: str,
        *,
        last_topic: Optional[str] = None,
        at: Optional[str] = None,
    ) -> int:
        """
        Count one study activity: streak +1, last_active now, optional topic.

        Returns:
            The streak after the increment
        """
        async with self._transaction() as conn:
            return await self._increment_streak(conn, user_id, last_topic, at or utc_now())

    # ------------------------------------------------------------------
    # Quizzes
    # ------------------------------------------------------------------

    async def insert_quiz(self, quiz: Quiz) -> None:
        """Store a new quiz with all its questions in one row."""
        async with self._transaction() as conn:
            await conn.execute(quizzes.insert().values(
                id=quiz.id,
                user_id=quiz.user_id,
                topic=quiz.topic,
                questions=[q.to_dict() for q in quiz.questions],
                created_at=quiz.created_at,
            ))

    async def get_quiz(self, user_id: str, quiz_id: str) -> Optional[Quiz]:
        """Fetch a quiz only if it belongs to user_id."""
        async with self._transaction() as conn:
            row = (await conn.execute(
                select(quizzes).where(
                    quizzes.c.id == quiz_id,
                    quizzes.c.user_id == user_id,
                )
            )).mappings().first()
        return _row_to_quiz(row) if row else None

    async def list_quizzes(self, user_id: str, limit: Optional[int] = None) -> list[Quiz]:
        """A user's quizzes, newest first."""
        query = (
            select(quizzes)
            .where(quizzes.c.user_id == user_id)
            .order_by(quizzes.c.created_at.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        async with self._transaction() as conn:
            rows = (await conn.execute(query)).mappings().all()
        return [_row_to_quiz(r) for r in rows]

    # ------------------------------------------------------------------
    # Quiz results
    # ------------------------------------------------------------------

    async def record_quiz_result(self, result: QuizResult) -> int:
        """
        Append a grading result and count it as study activity.

        The result row and the streak increment commit together or not at all.

        Returns:
            The streak after the increment
        """
        async with self._transaction() as conn:
            await conn.execute(quiz_results.insert().values(**result.to_dict()))
            return await self._increment_streak(conn, result.user_id, None, result.created_at)

    async def list_quiz_results(self, user_id: str, quiz_id: Optional[str] = None) -> list[QuizResult]:
        """A user's grading results, newest first, optionally for one quiz."""
        query = select(quiz_results).where(quiz_results.c.user_id == user_id)
        if quiz_id is not None:
            query = query.where(quiz_results.c.quiz_id == quiz_id)
        query = query.order_by(quiz_results.c.created_at.desc())
        async with self._transaction() as conn:
            rows = (await conn.execute(query)).mappings().all()
        return [_row_to_result(r) for r in rows]
