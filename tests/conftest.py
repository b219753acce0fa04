"""Shared fixtures: fake OpenAI upstream, settings with fake credentials, test app."""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from configs.settings import Settings
from runtime.api.server import create_app


class FakeOpenAI:
    """In-memory stand-in for the OpenAI endpoints the relay calls.

    Use as an httpx.MockTransport handler. Every request is recorded in
    `calls` as (operation, request). Runs start in `initial_run_status`
    and take the next entry of `run_status_script` on every retrieve; once
    the script is empty the status stays put. A run that reaches
    `completed` gets `assistant_reply` appended to its thread.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, httpx.Request]] = []
        self.threads: dict[str, list[dict[str, Any]]] = {}
        self.runs: dict[str, dict[str, Any]] = {}
        self.initial_run_status = "queued"
        self.run_status_script: list[str] = ["in_progress", "completed"]
        self.assistant_reply: str | None = "Hello!"
        self.session_payload: dict[str, Any] = {
            "id": "cksess_123",
            "object": "chatkit.session",
            "client_secret": "ek_test_secret",
            "workflow": {"id": "wf_123"},
            "expires_at": 1760000000,
        }
        self.failures: dict[str, tuple[int, str]] = {}
        self._counter = 0

    # -- helpers -------------------------------------------------------

    def count(self, operation: str) -> int:
        return sum(1 for op, _ in self.calls if op == operation)

    def operations(self) -> list[str]:
        return [op for op, _ in self.calls]

    def requests(self, operation: str) -> list[httpx.Request]:
        return [request for op, request in self.calls if op == operation]

    def add_thread(self, thread_id: str) -> None:
        self.threads[thread_id] = []

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}_{self._counter}"

    def _message(self, thread_id: str, role: str, text: str | None) -> dict[str, Any]:
        content = []
        if text is not None:
            content.append({"type": "text", "text": {"value": text, "annotations": []}})
        message = {
            "id": self._next_id("msg"),
            "object": "thread.message",
            "thread_id": thread_id,
            "role": role,
            "content": content,
        }
        self.threads[thread_id].append(message)
        return message

    def _set_status(self, run: dict[str, Any], status: str) -> None:
        run["status"] = status
        if status == "completed" and not run.get("replied"):
            run["replied"] = True
            self._message(run["thread_id"], "assistant", self.assistant_reply)

    # -- transport -----------------------------------------------------

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/v1"):
            path = path[len("/v1"):]
        parts = [p for p in path.split("/") if p]
        method = request.method

        if method == "POST" and parts == ["chatkit", "sessions"]:
            operation = "create_session"
        elif method == "POST" and parts == ["threads"]:
            operation = "create_thread"
        elif len(parts) == 3 and parts[0] == "threads" and parts[2] == "messages":
            operation = "add_message" if method == "POST" else "list_messages"
        elif method == "POST" and len(parts) == 3 and parts[0] == "threads" and parts[2] == "runs":
            operation = "create_run"
        elif method == "GET" and len(parts) == 4 and parts[0] == "threads" and parts[2] == "runs":
            operation = "retrieve_run"
        else:
            return httpx.Response(404, json={"error": {"message": f"Unknown route {method} {path}"}})

        self.calls.append((operation, request))

        if operation in self.failures:
            status, body = self.failures[operation]
            return httpx.Response(status, text=body, headers={"content-type": "application/json"})

        body = json.loads(request.content) if request.content else {}

        if operation == "create_session":
            return httpx.Response(200, json=self.session_payload)

        if operation == "create_thread":
            thread_id = self._next_id("thread")
            self.add_thread(thread_id)
            return httpx.Response(200, json={"id": thread_id, "object": "thread"})

        thread_id = parts[1]
        if thread_id not in self.threads:
            return httpx.Response(404, json={"error": {"message": f"No thread found with id '{thread_id}'."}})

        if operation == "add_message":
            return httpx.Response(200, json=self._message(thread_id, body["role"], body["content"]))

        if operation == "list_messages":
            data = list(self.threads[thread_id])
            if request.url.params.get("order", "desc") == "desc":
                data.reverse()
            limit = int(request.url.params.get("limit", 20))
            return httpx.Response(200, json={"object": "list", "data": data[:limit]})

        if operation == "create_run":
            run = {
                "id": self._next_id("run"),
                "object": "thread.run",
                "thread_id": thread_id,
                "assistant_id": body["assistant_id"],
            }
            self.runs[run["id"]] = run
            self._set_status(run, self.initial_run_status)
            return httpx.Response(200, json={k: v for k, v in run.items() if k != "replied"})

        run = self.runs[parts[3]]
        if self.run_status_script:
            self._set_status(run, self.run_status_script.pop(0))
        return httpx.Response(200, json={k: v for k, v in run.items() if k != "replied"})


@pytest.fixture
def fake_openai() -> FakeOpenAI:
    """Fresh fake upstream per test."""
    return FakeOpenAI()


@pytest.fixture
def http_client(fake_openai: FakeOpenAI) -> httpx.AsyncClient:
    """httpx client whose transport is the fake upstream."""
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_openai))


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Factory for settings with fake credentials; keyword args override."""

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "openai_api_key": "sk-test",
            "openai_base_url": "https://api.openai.com/v1",
            "workflow_id": "wf_123",
            "assistant_id": "asst_123",
            "poll_interval": 1.0,
            "max_polls": 60,
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def sleeps() -> list[float]:
    """Durations passed to the recording sleep."""
    return []


@pytest.fixture
def no_sleep(sleeps: list[float]) -> Callable[[float], Any]:
    """Awaitable sleep that records the interval and returns immediately."""

    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep


@pytest.fixture
def make_client(
    make_settings: Callable[..., Settings],
    http_client: httpx.AsyncClient,
    no_sleep: Callable[[float], Any],
) -> Callable[..., TestClient]:
    """Factory for a TestClient over a relay app wired to the fake upstream."""

    def _make(**overrides: Any) -> TestClient:
        app = create_app(settings=make_settings(**overrides), http_client=http_client, sleep=no_sleep)
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client: Callable[..., TestClient]) -> TestClient:
    """Relay client with complete configuration."""
    return make_client()
