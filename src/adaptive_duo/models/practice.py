"""Practice question models and answer lookup helpers."""

import math
from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter

from adaptive_duo.models.profile import Skill


class MCQQuestion(BaseModel):
    """Multiple-choice question.

    The correct answer may arrive as an index into ``choices``, as the text
    of the correct choice, or both.
    """

    type: Literal["mcq"] = "mcq"
    id: str
    prompt: str
    choices: list[str]
    answer_index: float | None = None
    answer: str | None = None
    explanation: str | None = None
    skill: Skill = Skill.VOCAB


class TypingQuestion(BaseModel):
    """Free-text question answered by typing."""

    type: Literal["typing"] = "typing"
    id: str
    prompt: str
    answer: str
    answer_text: str | None = None  # legacy field name for the answer
    explanation: str | None = None
    skill: Skill = Skill.VOCAB


PracticeQuestion = Annotated[MCQQuestion | TypingQuestion, Field(discriminator="type")]

practice_question_adapter: TypeAdapter[MCQQuestion | TypingQuestion] = TypeAdapter(
    PracticeQuestion
)


def _normalize(text: str) -> str:
    return text.strip().lower()


def get_answer_index(question: MCQQuestion | TypingQuestion) -> int:
    """Return the index of the correct MCQ choice without ever raising.

    Uses ``answer_index`` when it points inside ``choices``, then falls back
    to matching ``answer`` against the choice texts, then to 0.
    """
    if not isinstance(question, MCQQuestion):
        return 0

    index = question.answer_index
    if index is not None and math.isfinite(index):
        idx = math.floor(index)
        if 0 <= idx < len(question.choices):
            return idx

    wanted = _normalize(question.answer or "")
    if wanted:
        for i, choice in enumerate(question.choices):
            if _normalize(choice) == wanted:
                return i

    return 0


def get_typing_answer(question: TypingQuestion) -> str:
    return question.answer or question.answer_text or ""


def get_correct_choice(question: MCQQuestion | TypingQuestion) -> str:
    """Text of the correct answer, for display."""
    if isinstance(question, TypingQuestion):
        return get_typing_answer(question)
    if not question.choices:
        return ""
    return question.choices[get_answer_index(question)]


def check_answer(question: MCQQuestion | TypingQuestion, response: int | str) -> bool:
    """Grade a learner response.

    MCQ responses may be a choice index or the choice text; typing responses
    are compared trimmed and case-insensitively.
    """
    if isinstance(question, TypingQuestion):
        expected = get_typing_answer(question)
        return bool(expected) and _normalize(str(response)) == _normalize(expected)

    if isinstance(response, int) and not isinstance(response, bool):
        return response == get_answer_index(question)
    return _normalize(str(response)) == _normalize(get_correct_choice(question))
