import json
from typing import Any, Callable, Dict, List, Optional

import fitz
import httpx
import pytest

from quizgen.core.config import Settings

PAGE_ONE = "Photosynthesis converts light to energy."
PAGE_TWO = "Mitochondria produce ATP."


def make_pdf(pages: List[List[str]]) -> bytes:
    """One entry per page, each a list of lines drawn top to bottom."""
    doc = fitz.open()
    for lines in pages:
        page = doc.new_page()
        y = 72
        for line in lines:
            page.insert_text((72, y), line)
            y += 20
    data = doc.tobytes()
    doc.close()
    return data


def mcq_payload(questions: int = 3, cards: int = 10) -> Dict[str, Any]:
    return {
        "quiz": [
            {
                "question": f"Question {i}?",
                "options": ["ATP", "Light", "Water", "Oxygen"],
                "answer": "ATP",
            }
            for i in range(1, questions + 1)
        ],
        "flashcards": [{"front": f"Term {i}", "back": f"Definition {i}"} for i in range(1, cards + 1)],
    }


def completion(content: Any) -> Dict[str, Any]:
    return {
        "id": "gen-1",
        "model": "mistralai/mistral-7b-instruct",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
    }


@pytest.fixture
def two_page_pdf() -> bytes:
    return make_pdf([[PAGE_ONE], [PAGE_TWO]])


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        openrouter_api_key="test-key",
        openrouter_base_url="https://openrouter.test/api/v1",
        openrouter_model="test/model",
    )


@pytest.fixture
def mock_upstream() -> Callable[..., httpx.AsyncClient]:
    """
    Build an AsyncClient whose transport answers every request with `body`
    (or calls `handler`). Sent requests are appended to `client.sent`.
    """

    def factory(
        body: Optional[Any] = None,
        status_code: int = 200,
        handler: Optional[Callable[[httpx.Request], httpx.Response]] = None,
    ) -> httpx.AsyncClient:
        sent: List[httpx.Request] = []

        def respond(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            if handler is not None:
                return handler(request)
            return httpx.Response(status_code, json=body)

        client = httpx.AsyncClient(transport=httpx.MockTransport(respond))
        client.sent = sent
        return client

    return factory


def sent_json(request: httpx.Request) -> Dict[str, Any]:
    return json.loads(request.content)
