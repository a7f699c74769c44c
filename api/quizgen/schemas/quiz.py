from __future__ import annotations

from typing import Any, Dict, List, Type, Union

from pydantic import BaseModel, Field, ValidationError

from quizgen.core.errors import SchemaMismatchError
from quizgen.quiz.prompt import QuizMode


class McqQuestion(BaseModel):
    question: str = Field(min_length=1)
    options: List[str] = Field(min_length=4, max_length=4)
    answer: str = Field(min_length=1)


class DescriptiveQuestion(BaseModel):
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)


class Flashcard(BaseModel):
    front: str = Field(min_length=1)
    back: str = Field(min_length=1)


class McqQuizDocument(BaseModel):
    quiz: List[McqQuestion]
    flashcards: List[Flashcard]


class DescriptiveQuizDocument(BaseModel):
    quiz: List[DescriptiveQuestion]
    flashcards: List[Flashcard]


QuizDocument = Union[McqQuizDocument, DescriptiveQuizDocument]

_DOCUMENT_MODELS: Dict[QuizMode, Type[BaseModel]] = {
    QuizMode.MCQ: McqQuizDocument,
    QuizMode.DESCRIPTIVE: DescriptiveQuizDocument,
}


def _describe(err: ValidationError) -> List[str]:
    out = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e.get("loc", ()))
        out.append(f"{loc}: {e.get('msg', '')}")
    return out


def validate_quiz_document(data: Any, mode: QuizMode) -> QuizDocument:
    """
    Check parsed model output against the item shape of the requested mode.
    Descriptive items that carry extra keys (e.g. options) are accepted.
    """
    model = _DOCUMENT_MODELS[mode]
    if not isinstance(data, dict):
        raise SchemaMismatchError(context={"mode": mode.value, "problems": ["payload is not a JSON object"]})

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise SchemaMismatchError(context={"mode": mode.value, "problems": _describe(e)}) from e
