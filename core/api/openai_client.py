"""
core.api.openai_client

Thin wrapper around the OpenAI REST API for the chat relay.

Used by:
  - runtime/agents/session_agent.py    (ChatKit sessions)
  - runtime/agents/conversation_agent.py (threads, messages, runs)

The endpoints the relay needs are feature-flagged (`OpenAI-Beta` header),
so calls go through the SDK's raw HTTP verbs (`client.post` / `client.get`
with `cast_to=httpx.Response`) instead of typed resources. The SDK still
owns authentication, base URL resolution and status-error mapping.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from exceptions.exceptions import InvalidRequestError, UpstreamError
from runtime.models.run_models import RunInfo, ThreadMessage


logger = logging.getLogger(__name__)


def _segment(value: str) -> str:
    """Percent-encode an id for use as a single URL path segment."""
    if value in ("", ".", ".."):
        raise InvalidRequestError(f"Invalid id: {value!r}")
    return quote(value, safe="")


def _run_info(data: Dict[str, Any], thread_id: str, operation: str) -> RunInfo:
    run_id = data.get("id")
    if not isinstance(run_id, str) or not run_id:
        logger.error("[UPSTREAM] %s response has no run id", operation)
        raise UpstreamError(operation, None, "response has no run id")
    return RunInfo.from_payload(data, thread_id)


class OpenAIRelayClient:
    """Async client for the handful of OpenAI endpoints the relay calls.

    Parameters
    ----------
    api_key : str
        Server-held OpenAI API key.
    beta : str
        Value of the `OpenAI-Beta` header sent with every call
        (e.g. "chatkit_beta=v1" or "assistants=v2").
    base_url : str, optional
        Override the API base URL.
    timeout : float
        Per-call timeout in seconds.
    http_client : httpx.AsyncClient, optional
        Injected transport. When given, the caller owns it and `close()`
        leaves it open.

    Failed upstream calls are never retried (`max_retries=0`).
    """

    def __init__(
        self,
        api_key: str,
        *,
        beta: str,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._beta = beta
        self._owns_http_client = http_client is None
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    async def __aenter__(self) -> "OpenAIRelayClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_http_client:
            await self._client.close()

    # -------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        *,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Send one call and return the decoded JSON object.

        Raises UpstreamError on a non-2xx status (raw body logged), on a
        transport failure, or when the body is not a JSON object.
        """
        options: Dict[str, Any] = {"headers": {"OpenAI-Beta": self._beta}}
        if params:
            options["params"] = params

        try:
            if method == "GET":
                response = await self._client.get(path, cast_to=httpx.Response, options=options)
            else:
                response = await self._client.post(
                    path, cast_to=httpx.Response, body=body or {}, options=options
                )
        except APIStatusError as e:
            text = e.response.text
            logger.error("[UPSTREAM] %s error (%s): %s", operation, e.status_code, text)
            raise UpstreamError(operation, e.status_code, text) from e
        except APIConnectionError as e:
            logger.error("[UPSTREAM] %s connection error: %s", operation, e)
            raise UpstreamError(operation, None, str(e)) from e

        text = response.text
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error("[UPSTREAM] %s returned non-JSON body: %s", operation, text)
            raise UpstreamError(operation, response.status_code, text) from e
        if not isinstance(data, dict):
            raise UpstreamError(operation, response.status_code, text)
        return data

    # -------------------------------------------------------------------
    # ChatKit sessions
    # -------------------------------------------------------------------

    async def create_chatkit_session(self, workflow_id: str, user: Optional[str] = None) -> str:
        """Mint a ChatKit session and return only its client secret."""
        body: Dict[str, Any] = {"workflow_id": workflow_id}
        if user:
            body["user"] = user
        data = await self._request("POST", "/chatkit/sessions", "Create ChatKit session", body=body)

        client_secret = data.get("client_secret")
        if not isinstance(client_secret, str) or not client_secret:
            logger.error("[UPSTREAM] ChatKit session response has no client_secret")
            raise UpstreamError("Create ChatKit session", None, "response has no client_secret")
        return client_secret

    # -------------------------------------------------------------------
    # Threads / messages / runs
    # -------------------------------------------------------------------

    async def create_thread(self) -> str:
        data = await self._request("POST", "/threads", "Create thread")
        thread_id = data.get("id")
        if not isinstance(thread_id, str) or not thread_id:
            raise UpstreamError("Create thread", None, "response has no thread id")
        return thread_id

    async def add_user_message(self, thread_id: str, content: str) -> str:
        data = await self._request(
            "POST",
            f"/threads/{_segment(thread_id)}/messages",
            "Add message",
            body={"role": "user", "content": content},
        )
        return data.get("id", "")

    async def create_run(self, thread_id: str, assistant_id: str) -> RunInfo:
        data = await self._request(
            "POST",
            f"/threads/{_segment(thread_id)}/runs",
            "Create run",
            body={"assistant_id": assistant_id},
        )
        return _run_info(data, thread_id, "Create run")

    async def retrieve_run(self, thread_id: str, run_id: str) -> RunInfo:
        data = await self._request(
            "GET",
            f"/threads/{_segment(thread_id)}/runs/{_segment(run_id)}",
            "Retrieve run",
        )
        return _run_info(data, thread_id, "Retrieve run")

    async def list_messages(self, thread_id: str, limit: int = 20) -> List[ThreadMessage]:
        """Return the thread's messages, newest first."""
        data = await self._request(
            "GET",
            f"/threads/{_segment(thread_id)}/messages",
            "List messages",
            params={"order": "desc", "limit": limit},
        )
        return [ThreadMessage.from_payload(item) for item in data.get("data") or []]
