from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from quizgen.core.errors import SchemaMismatchError
from quizgen.core.logging import excerpt
from quizgen.core.openrouter import OpenRouterClient
from quizgen.ingestion.parser import PdfTextExtractor
from quizgen.quiz.prompt import DEFAULT_FLASHCARD_COUNT, DEFAULT_QUESTION_COUNT, QuizRequest, build_prompt
from quizgen.quiz.sanitizer import clean_json_string, extract_json_block, sanitize
from quizgen.schemas.quiz import validate_quiz_document

logger = logging.getLogger("pipeline")


class QuizPipeline:
    """
    PDF bytes -> extracted text -> prompt -> model reply -> parsed quiz JSON.
    Any stage failure propagates as its QuizGenError subclass.
    """

    def __init__(
        self,
        extractor: PdfTextExtractor,
        generator: OpenRouterClient,
        validate_schema: bool = True,
        default_question_count: int = DEFAULT_QUESTION_COUNT,
        flashcard_count: int = DEFAULT_FLASHCARD_COUNT,
    ) -> None:
        self.extractor = extractor
        self.generator = generator
        self.validate_schema = validate_schema
        self.default_question_count = default_question_count
        self.flashcard_count = flashcard_count

    async def run(
        self,
        data: bytes,
        quiz_type: Optional[str] = None,
        num_questions: Optional[str] = None,
    ) -> Dict[str, Any]:
        t0 = time.perf_counter()

        doc = self.extractor.extract(data)
        req = QuizRequest.from_form(
            doc.truncated_text,
            quiz_type=quiz_type,
            num_questions=num_questions,
            default_count=self.default_question_count,
        )
        prompt = build_prompt(
            req.source_text,
            mode=req.mode,
            question_count=req.question_count,
            flashcard_count=self.flashcard_count,
        )

        t_llm0 = time.perf_counter()
        gen = await self.generator.generate(prompt)
        llm_ms = int((time.perf_counter() - t_llm0) * 1000)

        parsed = sanitize(gen.text)

        if self.validate_schema:
            try:
                document = validate_quiz_document(parsed, req.mode)
            except SchemaMismatchError as e:
                e.context.update(
                    raw=excerpt(gen.text),
                    cleaned=excerpt(clean_json_string(extract_json_block(gen.text))),
                )
                raise
            result = document.model_dump()
            self._check_counts(req, len(document.quiz), len(document.flashcards))
        else:
            result = parsed

        total_ms = int((time.perf_counter() - t0) * 1000)
        logger.info(
            "quiz generated mode=%s requested=%s model=%s pages=%s llm_ms=%s total_ms=%s",
            req.mode.value,
            req.question_count,
            gen.model,
            doc.page_count,
            llm_ms,
            total_ms,
        )
        return result

    def _check_counts(self, req: QuizRequest, quiz_count: int, flashcard_count: int) -> None:
        if quiz_count != req.question_count:
            logger.warning("quiz count mismatch requested=%s got=%s", req.question_count, quiz_count)
        if flashcard_count != self.flashcard_count:
            logger.warning("flashcard count mismatch requested=%s got=%s", self.flashcard_count, flashcard_count)
