import asyncio
import json
from types import SimpleNamespace

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import completion, mcq_payload
from quizgen.core.config import settings
from quizgen.main import ClientDisconnected, app, disconnected_handler, get_http_client, run_unless_disconnected


@pytest.fixture
def upstream(monkeypatch):
    """Route the app's outbound calls to a canned OpenRouter reply."""
    monkeypatch.setattr(settings, "openrouter_api_key", "test-key")
    state = {"handler": lambda request: httpx.Response(200, json=completion("{}"))}

    async def override():
        transport = httpx.MockTransport(lambda request: state["handler"](request))
        async with httpx.AsyncClient(transport=transport) as client:
            yield client

    app.dependency_overrides[get_http_client] = override
    yield state
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


def upload(client, pdf, **form):
    return client.post("/upload", files={"file": ("notes.pdf", pdf, "application/pdf")}, data=form)


def test_root(client):
    r = client.get("/")
    assert r.status_code == 200
    assert "message" in r.json()


def test_health(client, upstream):
    r = client.get("/health")
    data = r.json()

    assert r.status_code == 200
    assert data["status"] == "ok"
    assert data["api_key_configured"] is True
    assert data["max_source_chars"] == 4000


def test_upload_mcq(client, upstream, two_page_pdf):
    upstream["handler"] = lambda request: httpx.Response(200, json=completion(json.dumps(mcq_payload(3))))

    r = upload(client, two_page_pdf, quizType="mcq", numQuestions="3")

    assert r.status_code == 200
    body = r.json()
    assert len(body["quiz"]) == 3
    assert len(body["flashcards"]) == 10


def test_no_file(client, upstream):
    r = client.post("/upload", data={"quizType": "mcq"})

    assert r.status_code == 400
    assert r.json() == {"error": "No file uploaded", "kind": "bad_input"}


def test_empty_file(client, upstream):
    r = upload(client, b"")

    assert r.status_code == 400
    assert r.json()["kind"] == "bad_input"


def test_unreadable_pdf(client, upstream):
    r = upload(client, b"definitely not a pdf")

    assert r.status_code == 400
    assert r.json()["kind"] == "bad_input"


def test_upstream_without_choices(client, upstream, two_page_pdf):
    upstream["handler"] = lambda request: httpx.Response(200, json={"choices": []})

    r = upload(client, two_page_pdf)

    assert r.status_code == 502
    assert r.json() == {"error": "AI response invalid", "kind": "upstream"}


def test_upstream_down(client, upstream, two_page_pdf):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    upstream["handler"] = refuse

    r = upload(client, two_page_pdf)

    assert r.status_code == 503
    assert r.json()["kind"] == "upstream"


def test_reply_without_json(client, upstream, two_page_pdf):
    upstream["handler"] = lambda request: httpx.Response(200, json=completion("No quiz today."))

    r = upload(client, two_page_pdf)

    assert r.status_code == 502
    assert r.json()["error"] == "Could not find JSON in AI response"


def test_missing_api_key(client, upstream, monkeypatch, two_page_pdf):
    monkeypatch.setattr(settings, "openrouter_api_key", "")

    r = upload(client, two_page_pdf)

    assert r.status_code == 500
    assert r.json()["kind"] == "internal"


class AlwaysGone:
    url = SimpleNamespace(path="/upload")

    async def is_disconnected(self):
        return True


def test_generation_cancelled_when_client_disconnects(monkeypatch):
    monkeypatch.setattr(settings, "disconnect_poll_s", 0.01)
    seen = []

    async def slow_generation():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            seen.append("cancelled")
            raise

    with pytest.raises(ClientDisconnected):
        asyncio.run(run_unless_disconnected(AlwaysGone(), slow_generation()))

    assert seen == ["cancelled"]


def test_finished_work_returned_without_disconnect_check(monkeypatch):
    monkeypatch.setattr(settings, "disconnect_poll_s", 0.01)

    async def quick():
        return {"quiz": [], "flashcards": []}

    assert asyncio.run(run_unless_disconnected(AlwaysGone(), quick())) == {"quiz": [], "flashcards": []}


def test_disconnect_answers_499():
    response = asyncio.run(disconnected_handler(AlwaysGone(), ClientDisconnected()))

    assert response.status_code == 499
    assert json.loads(response.body) == {"error": "Client closed request"}
