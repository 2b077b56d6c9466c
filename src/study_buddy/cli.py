"""
Command-line interface for study-buddy

A thin local driver over the orchestrator: one-shot chat, an interactive
loop, and direct access to stored quizzes.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from .config import Config, config
from .orchestrator import StudyBuddyAgent
from .providers import get_provider
from .quiz.engine import format_date, format_grade_result, format_quiz
from .quiz.schema import QuizNotFoundError
from .storage import StorageError, StudyStore

EXIT_OK = 0
EXIT_ERROR = 1


def build_agent(args) -> StudyBuddyAgent:
    """Wire store and provider from command-line options and config."""
    settings = Config.offline_mode() if args.provider == "mock" else config
    store = StudyStore(
        args.database_url or settings.storage.database_url,
        echo=settings.storage.echo,
    )
    provider = get_provider(args.provider or settings.models.provider)
    return StudyBuddyAgent(
        store,
        provider,
        settings=settings,
        model=settings.models.model or None,
    )


def split_answers(raw: List[str]) -> List[str]:
    """Accept "A B C", "A,B,C" or any mix of the two."""
    answers = []
    for item in raw:
        answers.extend(a for a in item.replace(",", " ").split() if a)
    return answers


async def run_chat(agent: StudyBuddyAgent, args) -> int:
    reply = await agent.respond(" ".join(args.message), args.user)
    if args.json:
        print(json.dumps(reply.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(reply.text)
    return EXIT_OK if reply.ok else EXIT_ERROR


async def run_repl(agent: StudyBuddyAgent, args) -> int:
    print(f"📚 Study Buddy (user: {args.user}). Type 'quit' to leave.\n")
    loop = asyncio.get_running_loop()
    while True:
        try:
            message = await loop.run_in_executor(None, input, "you> ")
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if message.strip().lower() in ("quit", "exit"):
            break
        reply = await agent.respond(message, args.user)
        print(f"\n{reply.text}\n")
    return EXIT_OK


async def run_quizzes(agent: StudyBuddyAgent, args) -> int:
    quizzes = await agent.list_quizzes(args.user)
    if args.json:
        print(json.dumps([q.to_dict() for q in quizzes], indent=2, ensure_ascii=False))
        return EXIT_OK

    if not quizzes:
        print("No quizzes yet.")
        return EXIT_OK
    for quiz in quizzes:
        print(f"{quiz.id}  {quiz.topic} ({quiz.question_count} questions) - {format_date(quiz.created_at)}")
    return EXIT_OK


async def run_show(agent: StudyBuddyAgent, args) -> int:
    quiz = await agent.get_quiz(args.user, args.quiz_id)
    if quiz is None:
        print(f"Quiz not found: {args.quiz_id}", file=sys.stderr)
        return EXIT_ERROR
    if args.json:
        print(json.dumps(quiz.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(format_quiz(quiz, f'Run "study-buddy submit {quiz.id} A B C" to submit your answers.'))
    return EXIT_OK


async def run_submit(agent: StudyBuddyAgent, args) -> int:
    try:
        result = await agent.submit_answers(args.user, args.quiz_id, split_answers(args.answers))
    except QuizNotFoundError as e:
        print(str(e), file=sys.stderr)
        return EXIT_ERROR
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(format_grade_result(result))
    return EXIT_OK


COMMANDS = {
    "chat": run_chat,
    "repl": run_repl,
    "quizzes": run_quizzes,
    "show": run_show,
    "submit": run_submit,
}


async def run(args) -> int:
    agent = build_agent(args)
    try:
        return await COMMANDS[args.command](agent, args)
    except StorageError as e:
        print(f"Storage error: {e}", file=sys.stderr)
        return EXIT_ERROR
    finally:
        await agent.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="study-buddy",
        description="AI study assistant: topic summaries, quizzes and study streaks",
        epilog='Example: study-buddy chat "quiz me on photosynthesis"'
    )
    parser.add_argument(
        "--user", "-u",
        default="default",
        help="User id to act as (default: default)"
    )
    parser.add_argument(
        "--provider",
        choices=["cloudflare", "claude", "deepseek", "mock"],
        help=f"Text generation provider (default: {config.models.provider})"
    )
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy async database URL (default from STUDY_BUDDY_DATABASE_URL)"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log debug output to stderr"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    chat_parser = subparsers.add_parser("chat", help="Send one chat message")
    chat_parser.add_argument("message", nargs="+", help="Message text")

    subparsers.add_parser("repl", help="Interactive chat session")
    subparsers.add_parser("quizzes", help="List your quizzes, newest first")

    show_parser = subparsers.add_parser("show", help="Show one quiz")
    show_parser.add_argument("quiz_id", help="Quiz id")

    submit_parser = subparsers.add_parser("submit", help="Submit answers for a quiz")
    submit_parser.add_argument("quiz_id", help="Quiz id")
    submit_parser.add_argument("answers", nargs="+", help="Answer letters, e.g. A B C or A,B,C")

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(EXIT_ERROR)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
