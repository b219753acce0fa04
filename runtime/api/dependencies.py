"""Request-scoped accessors for the objects `create_app` stores on app.state."""

from typing import Optional

import httpx
from fastapi import HTTPException, Request

from configs.settings import Settings
from ..agents.conversation_agent import SleepFn


def get_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        raise HTTPException(
            status_code=500,
            detail="Settings are not configured on the server.",
        )
    return settings


def get_http_client(request: Request) -> Optional[httpx.AsyncClient]:
    return getattr(request.app.state, "http_client", None)


def get_sleep(request: Request) -> Optional[SleepFn]:
    return getattr(request.app.state, "sleep", None)
