"""
Prompt templates for the study assistant

All prompt engineering lives here. Prompts are designed to:
1. Produce short, student-friendly topic summaries
2. Produce multiple-choice quizzes in a parseable JSON shape
3. Keep general chat on-topic and encouraging
"""

# =============================================================================
# SUMMARY PROMPTS
# =============================================================================

SUMMARY_SYSTEM_PROMPT = """You are Study Buddy, a patient tutor who explains topics clearly to students."""

SUMMARY_PROMPT = """Provide a concise, educational summary of "{topic}". Include:
1. Key concepts and definitions
2. 2-3 practical examples
3. Why it's important to understand

Keep it under {word_limit} words and make it engaging for a student."""


# =============================================================================
# QUIZ PROMPTS
# =============================================================================

QUIZ_SYSTEM_PROMPT = """You write short multiple-choice quizzes for students.

Rules:
1. Every question is self-contained and specific.
2. Exactly one option is correct, and the "answer" field repeats that option's text exactly.
3. Distractors are plausible, never jokes.

Output format: JSON only, no commentary."""

QUIZ_PROMPT = """Create a {count}-question quiz about "{topic}". For each question:
1. Write a clear, specific question
2. Provide the correct answer
3. Include {distractors} plausible wrong options

Format as JSON with this structure:
{{
  "questions": [
    {{
      "id": "q1",
      "question": "Question text?",
      "answer": "Correct answer",
      "options": ["Option A", "Option B", "Option C", "Option D"]
    }}
  ]
}}

The "options" list holds the correct answer plus the wrong options, in any order."""


# =============================================================================
# GENERAL CHAT PROMPTS
# =============================================================================

CHAT_PROMPT = """You are Study Buddy, an AI-powered study companion. The user asked: "{message}".

Respond as a friendly, helpful study assistant. Keep your response concise (under {word_limit} words) and encourage them to use your study features like:
- Topic summarization
- Quiz generation
- Progress tracking

{streak_line}"""

STREAK_LINE = "Be encouraging and mention their current study streak of {streak} days."

NO_STREAK_LINE = "Be encouraging; they are just getting started."


def format_summary_prompt(topic: str, word_limit: int = 300) -> str:
    """Format the summarization prompt for a topic."""
    return SUMMARY_PROMPT.format(topic=topic, word_limit=word_limit)


def format_quiz_prompt(topic: str, count: int = 3, distractors: int = 3) -> str:
    """
    Format the quiz generation prompt.

    Args:
        topic: Topic to quiz on
        count: Number of questions to ask for
        distractors: Wrong options per question

    Returns:
        Formatted prompt string
    """
    return QUIZ_PROMPT.format(topic=topic, count=count, distractors=distractors)


def format_chat_prompt(message: str, streak: int, word_limit: int = 100) -> str:
    """Format the persona prompt for general chat, mentioning the streak when there is one."""
    streak_line = STREAK_LINE.format(streak=streak) if streak > 0 else NO_STREAK_LINE
    return CHAT_PROMPT.format(
        message=message,
        word_limit=word_limit,
        streak_line=streak_line,
    )
