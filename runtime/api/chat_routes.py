"""HTTP routes for conversation mode.

Exposes:

- POST /api/chat -> takes {"message", "threadId"?} and returns either
                    {"reply", "threadId"} or {"error", "threadId"}
                    (both HTTP 200; see ConversationAgent).
"""

import json
import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from configs.settings import Settings
from core.api.openai_client import OpenAIRelayClient
from exceptions.exceptions import InvalidRequestError
from ..agents.conversation_agent import ConversationAgent, SleepFn
from ..models.api_models import ChatRequest, ChatResponse
from .dependencies import get_http_client, get_settings, get_sleep


logger = logging.getLogger(__name__)

router = APIRouter()


async def _parse_chat_request(request: Request) -> ChatRequest:
    raw = await request.body()
    try:
        data = json.loads(raw) if raw.strip() else {}
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InvalidRequestError("Request body must be a JSON object")
    if not isinstance(data, dict):
        raise InvalidRequestError("Request body must be a JSON object")

    try:
        payload = ChatRequest.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(loc) for loc in err["loc"]) for err in e.errors())
        raise InvalidRequestError(f"Invalid request body: {fields}")

    if payload.message is None or not payload.message.strip():
        raise InvalidRequestError("Missing 'message' in request body")
    return payload


@router.post("/chat", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(
    request: Request,
    settings: Settings = Depends(get_settings),
    http_client: Optional[httpx.AsyncClient] = Depends(get_http_client),
    sleep: Optional[SleepFn] = Depends(get_sleep),
) -> ChatResponse:
    """Relay one user message and wait (bounded) for the assistant's reply."""
    # Configuration first: nothing is parsed or sent upstream without it.
    api_key, assistant_id = settings.require_conversation_config()
    payload = await _parse_chat_request(request)

    logger.info(
        "[CHAT] Incoming message: thread_id=%s message_len=%d",
        payload.thread_id,
        len(payload.message),
    )

    async with OpenAIRelayClient(
        api_key,
        beta=settings.assistants_beta,
        base_url=settings.openai_base_url,
        timeout=settings.upstream_timeout,
        http_client=http_client,
    ) as client:
        agent = ConversationAgent(
            client,
            assistant_id,
            poll_interval=settings.poll_interval,
            max_polls=settings.max_polls,
            sleep=sleep,
        )
        return await agent.handle_user_message(payload.message, thread_id=payload.thread_id)
