import asyncio
import contextlib
import logging
from typing import Any, AsyncIterator, Awaitable, Dict, Optional

import httpx
from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from quizgen.core.config import settings
from quizgen.core.errors import ErrorClass, NoInputError, QuizGenError
from quizgen.core.logging import setup_logging
from quizgen.core.openrouter import OpenRouterClient
from quizgen.ingestion.parser import PdfTextExtractor
from quizgen.quiz.pipeline import QuizPipeline

setup_logging(settings.log_level)
logger = logging.getLogger("api")

app = FastAPI(
    title="Notes-to-Quiz API",
    version="0.2.0",
    description="Upload a PDF, get a quiz and flashcards back as JSON.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ClientDisconnected(Exception):
    pass


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient() as client:
        yield client


def build_pipeline(client: httpx.AsyncClient) -> QuizPipeline:
    return QuizPipeline(
        extractor=PdfTextExtractor(max_chars=settings.max_source_chars),
        generator=OpenRouterClient(client, settings),
        validate_schema=settings.validate_schema,
        default_question_count=settings.default_question_count,
        flashcard_count=settings.flashcard_count,
    )


async def run_unless_disconnected(request: Request, work: Awaitable[Any]) -> Any:
    """
    Await `work`, cancelling it if the caller goes away first.
    """
    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=settings.disconnect_poll_s)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.info("client disconnected, abandoning generation path=%s", request.url.path)
                raise ClientDisconnected()
    finally:
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task


@app.exception_handler(QuizGenError)
async def quizgen_error_handler(request: Request, exc: QuizGenError) -> JSONResponse:
    logger.warning(
        "request failed path=%s error=%s status=%s message=%s context=%s",
        request.url.path,
        type(exc).__name__,
        exc.status_code,
        exc.message,
        exc.context,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "kind": exc.error_class.value},
    )


@app.exception_handler(ClientDisconnected)
async def disconnected_handler(request: Request, exc: ClientDisconnected) -> JSONResponse:
    # nobody is listening; 499 only shows up in access logs
    return JSONResponse(status_code=499, content={"error": "Client closed request"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error path=%s err=%s", request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"error": QuizGenError.default_message, "kind": ErrorClass.INTERNAL.value},
    )


@app.get("/")
async def root() -> Dict[str, str]:
    return {"message": "Notes-to-Quiz API is running. See /docs, /health, /upload."}


@app.get("/health")
async def health() -> Dict[str, Any]:
    return {
        "status": "ok",
        "env": settings.app_env,
        "model": settings.openrouter_model,
        "api_key_configured": bool(settings.openrouter_api_key.strip()),
        "max_source_chars": settings.max_source_chars,
        "validate_schema": settings.validate_schema,
    }


@app.post("/upload")
async def upload(
    request: Request,
    file: Optional[UploadFile] = File(default=None),
    quiz_type: Optional[str] = Form(default=None, alias="quizType"),
    num_questions: Optional[str] = Form(default=None, alias="numQuestions"),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> Dict[str, Any]:
    """
    Multipart upload -> extract -> prompt -> OpenRouter -> sanitize -> validate.
    """
    if file is None:
        raise NoInputError()

    raw = await file.read()
    if not raw:
        raise NoInputError("Uploaded file is empty")

    logger.info(
        "upload name=%s size=%s quizType=%s numQuestions=%s",
        file.filename,
        len(raw),
        quiz_type,
        num_questions,
    )

    pipeline = build_pipeline(client)
    return await run_unless_disconnected(
        request,
        pipeline.run(raw, quiz_type=quiz_type, num_questions=num_questions),
    )
