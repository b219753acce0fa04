"""HTTP routes for session mode.

Exposes:

- POST /api/session      -> {"client_secret": ...} (strict CORS policy)
- POST /api/session/open -> {"client_secret": ...} (any origin allowed)

The request body is ignored.
"""

import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends

from configs.settings import Settings
from core.api.openai_client import OpenAIRelayClient
from ..agents.session_agent import SessionAgent
from ..models.api_models import SessionResponse
from .dependencies import get_http_client, get_settings


logger = logging.getLogger(__name__)

router = APIRouter()


async def _open_session(settings: Settings, http_client: Optional[httpx.AsyncClient]) -> SessionResponse:
    # Fails with ConfigurationError before any upstream client exists.
    api_key, workflow_id = settings.require_session_config()

    async with OpenAIRelayClient(
        api_key,
        beta=settings.chatkit_beta,
        base_url=settings.openai_base_url,
        timeout=settings.upstream_timeout,
        http_client=http_client,
    ) as client:
        agent = SessionAgent(client, workflow_id, user=settings.chatkit_user)
        return await agent.open_session()


@router.post("/session", response_model=SessionResponse)
async def create_session(
    settings: Settings = Depends(get_settings),
    http_client: Optional[httpx.AsyncClient] = Depends(get_http_client),
) -> SessionResponse:
    """Mint a ChatKit client secret for an allow-listed origin."""
    return await _open_session(settings, http_client)


@router.post("/session/open", response_model=SessionResponse)
async def create_open_session(
    settings: Settings = Depends(get_settings),
    http_client: Optional[httpx.AsyncClient] = Depends(get_http_client),
) -> SessionResponse:
    """Same as /session, served with the permissive CORS policy."""
    return await _open_session(settings, http_client)
