"""
Run-related models for the conversation relay.

These describe:
- RunStatus enum (the statuses the OpenAI API reports for a run)
- RunInfo / ThreadMessage (the parts of upstream payloads the relay reads)
- RelayState enum (where a conversation turn currently is)
"""

from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel


class RunStatus(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"
    FAILED = "failed"
    INCOMPLETE = "incomplete"
    EXPIRED = "expired"
    COMPLETED = "completed"


PENDING_STATUSES = frozenset({RunStatus.QUEUED.value, RunStatus.IN_PROGRESS.value})


class RelayState(str, Enum):
    NO_THREAD = "NO_THREAD"
    THREAD_READY = "THREAD_READY"
    MESSAGE_POSTED = "MESSAGE_POSTED"
    RUN_STARTED = "RUN_STARTED"
    RUN_QUEUED = "RUN_QUEUED"
    RUN_IN_PROGRESS = "RUN_IN_PROGRESS"
    RUN_TERMINAL = "RUN_TERMINAL"


class RunInfo(BaseModel):
    id: str
    thread_id: str
    # Raw string; the upstream may report statuses RunStatus does not list.
    status: str

    @property
    def is_pending(self) -> bool:
        return self.status in PENDING_STATUSES

    @property
    def is_completed(self) -> bool:
        return self.status == RunStatus.COMPLETED.value

    @classmethod
    def from_payload(cls, data: Dict[str, Any], thread_id: str) -> "RunInfo":
        return cls(
            id=data["id"],
            thread_id=data.get("thread_id") or thread_id,
            status=data.get("status") or "unknown",
        )


class ThreadMessage(BaseModel):
    id: str
    role: str
    text: str = ""

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "ThreadMessage":
        """Build a message from an upstream message object.

        Content is a list of typed parts; only `text` parts contribute,
        joined with newlines. A plain string content is accepted as-is.
        """
        content = data.get("content")
        parts: List[str] = []
        if isinstance(content, str):
            parts.append(content)
        elif isinstance(content, list):
            for part in content:
                if not isinstance(part, dict) or part.get("type") != "text":
                    continue
                text = part.get("text")
                if isinstance(text, dict):
                    text = text.get("value")
                if isinstance(text, str) and text:
                    parts.append(text)
        return cls(
            id=data.get("id", ""),
            role=data.get("role", ""),
            text="\n".join(parts),
        )
