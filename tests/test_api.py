import pytest
from fastapi.testclient import TestClient

from resume_annex.api import create_app
from resume_annex.config import CLOSING_MESSAGES, MAX_MESSAGE_CHARS, MAX_MESSAGES, MAX_SEGMENT_CHARS
from resume_annex.interview import IntakeOrchestrator
from resume_annex.interview.testing import (
    FailingLLMClient, SAMPLE_RESUME_TEXT, create_test_config,
)


@pytest.fixture
def client(orchestrator):
    return TestClient(create_app(orchestrator))


def _upload(client, content=SAMPLE_RESUME_TEXT.encode(), plan=None):
    data = {"plan": plan} if plan else None
    return client.post("/upload", files={"file": ("resume.txt", content, "text/plain")}, data=data)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "UP"
    assert body["aiEnabled"] is True
    assert body["metrics"]["interviews_started"] == 0
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_upload_returns_first_question(client):
    response = _upload(client, plan="pro")
    assert response.status_code == 200
    body = response.json()
    assert body["reply"] == "What revenue growth did you drive?"
    assert body["questionCount"] == 1
    assert body["isComplete"] is False
    assert body["sessionId"]
    assert body["initialContext"]["sourceText"].startswith("Jane Doe")


def test_upload_without_text_asks_to_paste(client, llm):
    response = _upload(client, content=b"   ")
    assert response.status_code == 200
    assert response.json()["questionCount"] == 0
    assert "paste" in response.json()["reply"]
    assert llm.call_count == 0


def test_upload_unsupported_file(client):
    response = client.post("/upload", files={"file": ("scan.png", b"\x89PNG", "image/png")})
    assert response.status_code == 400
    assert response.json() == {"error": "Could not read file. Please paste your resume text directly."}


def test_upload_requires_file(client):
    response = client.post("/upload")
    assert response.status_code == 400
    assert "error" in response.json()


def test_session_chat_until_done(client, llm):
    sid = _upload(client, plan="executive").json()["sessionId"]

    response = client.post("/chat", json={"sessionId": sid, "message": "Revenue grew 40%"})
    assert response.status_code == 200
    body = response.json()
    assert body == {"reply": "What revenue growth did you drive?", "isComplete": False, "questionCount": 2}

    llm.default_response = "```html\n<h1>Jane Doe</h1>\n```"
    response = client.post("/chat", json={"sessionId": sid, "message": "I'm done"})
    body = response.json()
    assert body["isComplete"] is True
    assert body["generatedResume"] == "<h1>Jane Doe</h1>"
    assert body["reply"] == CLOSING_MESSAGES["executive"]


def test_stateless_chat(client):
    upload = _upload(client).json()
    response = client.post("/chat", json={
        "messages": [
            {"role": "assistant", "content": upload["reply"]},
            {"role": "user", "content": "Twelve reps"},
        ],
        "questionCount": 1,
        "initialContext": upload["initialContext"],
    })
    assert response.status_code == 200
    assert response.json()["questionCount"] == 2


def test_chat_without_messages(client):
    response = client.post("/chat", json={})
    assert response.status_code == 400
    assert response.json() == {"error": "No messages provided"}


def test_chat_with_invalid_role(client):
    response = client.post("/chat", json={"messages": [{"role": "robot", "content": "hi"}]})
    assert response.status_code == 400


def test_chat_with_negative_count(client):
    response = client.post("/chat", json={"messages": [{"role": "user", "content": "hi"}], "questionCount": -1})
    assert response.status_code == 400


def test_chat_unknown_session(client):
    response = client.post("/chat", json={"sessionId": "missing", "message": "hi"})
    assert response.status_code == 404


def test_generation_outage_is_503(config):
    client = TestClient(create_app(IntakeOrchestrator(config, llm_client=FailingLLMClient())))
    response = client.post("/chat", json={"messages": [{"role": "user", "content": "hi"}]})
    assert response.status_code == 503
    assert response.json() == {"error": "AI Service Unavailable"}


def test_synthesis_failure_is_503(config):
    client = TestClient(create_app(IntakeOrchestrator(config, llm_client=FailingLLMClient())))
    response = client.post("/chat", json={"messages": [{"role": "user", "content": "done"}]})
    assert response.status_code == 503


def test_unconfigured_ai_is_503():
    client = TestClient(create_app(IntakeOrchestrator(create_test_config(google_cloud_project=None))))
    assert client.get("/health").json()["aiEnabled"] is False
    response = client.post("/optimize", json={"text": "grew sales"})
    assert response.status_code == 503
    assert response.json() == {"error": "AI service is not configured"}


def test_optimize(client, llm):
    llm.default_response = "Drove 40% revenue growth."
    response = client.post("/optimize", json={"text": "grew sales"})
    assert response.status_code == 200
    assert response.json() == {"enhanced": "Drove 40% revenue growth."}


def test_optimize_accepts_bullet_point_alias(client):
    response = client.post("/optimize", json={"bulletPoint": "grew sales"})
    assert response.status_code == 200


def test_optimize_without_content(client):
    response = client.post("/optimize", json={"text": ""})
    assert response.status_code == 400
    assert response.json() == {"error": "No content"}


def test_ai_routes_are_rate_limited(llm):
    orchestrator = IntakeOrchestrator(create_test_config(rate_limit="2/minute"), llm_client=llm)
    client = TestClient(create_app(orchestrator))

    statuses = [client.post("/optimize", json={"text": "grew sales"}).status_code for _ in range(3)]
    assert statuses == [200, 200, 429]
    assert client.post("/chat", json={}).status_code == 400  # counted per route
    assert client.get("/health").status_code == 200


def test_rate_limit_can_be_disabled(llm):
    orchestrator = IntakeOrchestrator(create_test_config(rate_limit=None), llm_client=llm)
    client = TestClient(create_app(orchestrator))
    statuses = {client.post("/optimize", json={"text": "grew sales"}).status_code for _ in range(5)}
    assert statuses == {200}


def test_oversized_answer_is_rejected(client, llm):
    sid = _upload(client).json()["sessionId"]
    calls = llm.call_count
    response = client.post("/chat", json={"sessionId": sid, "message": "x" * (MAX_MESSAGE_CHARS + 1)})
    assert response.status_code == 400
    assert llm.call_count == calls


def test_oversized_optimize_text_is_rejected(client):
    response = client.post("/optimize", json={"text": "x" * (MAX_MESSAGE_CHARS + 1)})
    assert response.status_code == 400


def test_too_many_messages_are_rejected(client):
    messages = [{"role": "user", "content": "more"}] * (MAX_MESSAGES + 1)
    response = client.post("/chat", json={"messages": messages})
    assert response.status_code == 400


def test_oversized_initial_context_is_rejected(client):
    context = {"segments": [{"role": "system", "content": "x" * (MAX_SEGMENT_CHARS + 1)}], "sourceText": ""}
    response = client.post("/chat", json={"messages": [], "initialContext": context})
    assert response.status_code == 400


def test_initial_context_round_trips_within_limits(client):
    upload = _upload(client, content=("Sales lead " * 3000).encode()).json()
    response = client.post("/chat", json={
        "messages": [{"role": "assistant", "content": upload["reply"]}, {"role": "user", "content": "12 reps"}],
        "questionCount": 1,
        "initialContext": upload["initialContext"],
    })
    assert response.status_code == 200


def test_blank_stateless_message_is_rejected(client, llm):
    response = client.post("/chat", json={"messages": [{"role": "user", "content": "   "}]})
    assert response.status_code == 400
    assert llm.call_count == 0
