from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

DEFAULT_QUESTION_COUNT = 10
DEFAULT_FLASHCARD_COUNT = 10


class QuizMode(str, Enum):
    MCQ = "mcq"
    DESCRIPTIVE = "descriptive"


def parse_mode(raw: Optional[str]) -> QuizMode:
    """Anything other than "mcq" (case-insensitive) is a descriptive quiz."""
    value = (raw or "").strip().lower()
    if value == QuizMode.MCQ.value:
        return QuizMode.MCQ
    return QuizMode.DESCRIPTIVE


def parse_question_count(raw: Optional[str], default: int = DEFAULT_QUESTION_COUNT) -> int:
    try:
        n = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return n if n > 0 else default


@dataclass(frozen=True)
class QuizRequest:
    mode: QuizMode
    question_count: int
    source_text: str

    @classmethod
    def from_form(
        cls,
        source_text: str,
        quiz_type: Optional[str],
        num_questions: Optional[str],
        default_count: int = DEFAULT_QUESTION_COUNT,
    ) -> "QuizRequest":
        return cls(
            mode=parse_mode(quiz_type),
            question_count=parse_question_count(num_questions, default=default_count),
            source_text=source_text,
        )


MCQ_EXAMPLE = """{
  "quiz": [
    {
      "question": "...",
      "options": ["A", "B", "C", "D"],
      "answer": "A"
    }
  ],
  "flashcards": [
    { "front": "...", "back": "..." }
  ]
}"""

DESCRIPTIVE_EXAMPLE = """{
  "quiz": [
    { "question": "...", "answer": "..." }
  ],
  "flashcards": [
    { "front": "...", "back": "..." }
  ]
}"""


def quiz_instruction(mode: QuizMode, question_count: int) -> str:
    if mode == QuizMode.MCQ:
        return (
            f"{question_count} MULTIPLE CHOICE questions. "
            "Each must have 4 options and the correct answer."
        )
    return f"{question_count} DESCRIPTIVE questions with answers."


def build_prompt(
    source_text: str,
    mode: QuizMode,
    question_count: int,
    flashcard_count: int = DEFAULT_FLASHCARD_COUNT,
) -> str:
    """
    Output schema is taught by example: both JSON shapes are shown and the
    model picks the one matching the quiz instruction. The source text is the
    last section, verbatim.
    """
    prompt = f"""You are a study assistant.

From the following text, generate:
1) {quiz_instruction(mode, question_count)}
2) {flashcard_count} flashcards (term + definition).

Return ONLY valid JSON.

If quiz type is "mcq", use this format:
{MCQ_EXAMPLE}

If quiz type is "descriptive", use this format:
{DESCRIPTIVE_EXAMPLE}

IMPORTANT:
- Do NOT use LaTeX.
- Use plain text for math (e.g., 10^-3).
- Do NOT use markdown.
- Do NOT use backticks.
- Return ONLY JSON.

TEXT:
{source_text}
"""
    return prompt
