"""Chat orchestration with a scripted stand-in for the model."""

import json
import time
from types import SimpleNamespace

import pytest

from app.assistant import chat as chat_module
from app.assistant.chat import ChatOrchestrator
from app.core.database import SessionLocal
from app.models.task import Task


def text_chunk(content, finish_reason=None):
    delta = SimpleNamespace(content=content, tool_calls=None)
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta, finish_reason=finish_reason)])


def tool_chunk(index, arguments, call_id=None, name=None, finish_reason=None):
    fragment = SimpleNamespace(
        index=index,
        id=call_id,
        function=SimpleNamespace(name=name, arguments=arguments),
    )
    delta = SimpleNamespace(content=None, tool_calls=[fragment])
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta, finish_reason=finish_reason)])


class ScriptedModel:
    """Replays one list of chunks per completion call and records the requests"""

    def __init__(self, *steps):
        self.steps = list(steps)
        self.requests = []

    def __call__(self, **kwargs):
        self.requests.append(kwargs)
        return iter(self.steps.pop(0))


@pytest.fixture
def scripted(monkeypatch):
    def install(*steps):
        model = ScriptedModel(*steps)
        monkeypatch.setattr(chat_module, "completion", model)
        return model
    return install


def _run(user, messages=None, **kwargs):
    orchestrator = ChatOrchestrator(user_id=user.id, session_factory=SessionLocal, **kwargs)
    return list(orchestrator.stream(messages or [{"role": "user", "content": "Add gym"}]))


def test_plain_reply_streams_text_then_finishes(user, scripted):
    model = scripted([text_chunk("Hello"), text_chunk(" there", finish_reason="stop")])

    events = _run(user)

    assert events == [
        {"type": "text-delta", "delta": "Hello"},
        {"type": "text-delta", "delta": " there"},
        {"type": "finish", "finishReason": "stop", "steps": 1},
    ]
    request = model.requests[0]
    assert request["model"] == "test/fake-model"
    assert request["stream"] is True
    assert request["messages"][0]["role"] == "system"
    assert request["messages"][-1] == {"role": "user", "content": "Add gym"}
    assert {t["function"]["name"] for t in request["tools"]} >= {"createTask", "createPlan"}


def test_tool_call_fragments_are_assembled_and_executed(user, db, scripted):
    model = scripted(
        [
            text_chunk("On it."),
            tool_chunk(0, '{"title": ', call_id="call_a", name="createTask"),
            tool_chunk(0, '"Gym", "priority": "high"}', finish_reason="tool_calls"),
        ],
        [text_chunk("Added Gym.", finish_reason="stop")],
    )

    events = _run(user)

    kinds = [event["type"] for event in events]
    assert kinds == ["text-delta", "tool-call", "tool-result", "text-delta", "finish"]
    call, result = events[1], events[2]
    assert call == {
        "type": "tool-call",
        "toolCallId": "call_a",
        "toolName": "createTask",
        "input": {"title": "Gym", "priority": "high"},
    }
    assert result["toolCallId"] == "call_a"
    assert result["output"]["ok"] is True
    assert events[-1]["steps"] == 2

    task = db.query(Task).one()
    assert task.title == "Gym"
    assert task.user_id == user.id

    followup = model.requests[1]["messages"]
    assert followup[-2]["tool_calls"][0]["id"] == "call_a"
    assert followup[-1]["role"] == "tool"
    assert json.loads(followup[-1]["content"])["ok"] is True


def test_tool_failures_are_reported_to_the_model(user, scripted):
    model = scripted(
        [tool_chunk(0, '{"taskId": "00000000-0000-0000-0000-000000000000", "title": "x"}', name="updateTask")],
        [text_chunk("That task does not exist.", finish_reason="stop")],
    )

    events = _run(user)

    result = next(event for event in events if event["type"] == "tool-result")
    assert result["toolCallId"] == "call_0"
    assert result["output"]["code"] == "not_found"
    assert json.loads(model.requests[1]["messages"][-1]["content"])["ok"] is False


def test_step_limit_ends_the_turn(user, scripted):
    looping = [tool_chunk(0, "{}", call_id="call_x", name="listTasks", finish_reason="tool_calls")]
    scripted(looping, looping, looping)

    events = _run(user, max_steps=2)

    assert events[-1] == {"type": "finish", "finishReason": "max-steps", "steps": 2}
    assert sum(1 for event in events if event["type"] == "tool-result") == 2


def test_slow_model_produces_timeout_error(user, monkeypatch):
    def slow(**kwargs):
        def chunks():
            time.sleep(0.05)
            yield text_chunk("late")
        return chunks()

    monkeypatch.setattr(chat_module, "completion", slow)

    events = _run(user, max_duration=0.01)

    assert events == [{"type": "error", "error": "The assistant took too long to respond."}]


def test_model_failure_produces_error_event(user, monkeypatch):
    def broken(**kwargs):
        raise RuntimeError("provider down")

    monkeypatch.setattr(chat_module, "completion", broken)

    events = _run(user)

    assert events == [{"type": "error", "error": "The assistant is unavailable right now."}]


def test_chat_endpoint_streams_server_sent_events(client, headers, scripted):
    scripted([text_chunk("Hi!", finish_reason="stop")])

    resp = client.post("/api/chat/", json={"messages": [{"role": "user", "content": "hello"}]}, headers=headers)

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    frames = [line[len("data: "):] for line in resp.text.splitlines() if line.startswith("data: ")]
    assert frames[-1] == "[DONE]"
    assert [json.loads(frame)["type"] for frame in frames[:-1]] == ["text-delta", "finish"]


def test_chat_endpoint_requires_auth(client):
    resp = client.post("/api/chat/", json={"messages": [{"role": "user", "content": "hello"}]})

    assert resp.status_code == 401


def test_chat_endpoint_rejects_empty_conversation(client, headers):
    resp = client.post("/api/chat/", json={"messages": []}, headers=headers)

    assert resp.status_code == 400
    assert resp.json()["detail"][0]["field"] == "messages"
