"""
HTTP request/response models for the chat relay API.
"""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional


# Upstream thread ids are opaque but never contain path characters.
THREAD_ID_PATTERN = re.compile(r"thread_[A-Za-z0-9]+")


class SessionResponse(BaseModel):
    """Only the client-usable credential is forwarded, never the full upstream session."""
    client_secret: str


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    thread_id: Optional[str] = Field(default=None, alias="threadId")

    @field_validator("thread_id")
    @classmethod
    def validate_thread_id(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        if not THREAD_ID_PATTERN.fullmatch(value):
            raise ValueError("threadId is not a valid thread id")
        return value


class ChatResponse(BaseModel):
    """
    Result of one conversation turn:

    - run completed:
        reply: str (latest assistant text)
        threadId: str
    - run not completed (still pending after the poll budget, failed,
      cancelled, expired, ...):
        error: "Run status: <status> (not completed)"
        threadId: str

    Both shapes are sent with HTTP 200; clients must check `error`.
    """
    model_config = ConfigDict(populate_by_name=True)

    reply: Optional[str] = None
    error: Optional[str] = None
    thread_id: str = Field(alias="threadId")


class ErrorResponse(BaseModel):
    error: str
