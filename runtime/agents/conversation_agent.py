"""ConversationAgent implementation.

Drives one conversation turn against the OpenAI threads/runs API:

- reuse the client's thread, or create a new one
- append the user's message
- start a run with the configured assistant
- poll the run until it leaves `queued` / `in_progress`, at most
  `max_polls` times, sleeping `poll_interval` before every poll
- on `completed`, read the newest assistant message as the reply

A run that is still pending when the poll budget runs out is reported the
same way as any other non-completed status: an HTTP 200 payload carrying
`error` and the thread id, so the client can ask again on the same thread.
The run itself keeps going upstream; the relay never cancels it.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from core.api.openai_client import OpenAIRelayClient
from ..models.api_models import ChatResponse
from ..models.run_models import RelayState, RunInfo, RunStatus


logger = logging.getLogger(__name__)

NO_REPLY_PLACEHOLDER = "(no reply text)"

SleepFn = Callable[[float], Awaitable[None]]


class ConversationAgent:
    """Conversation-mode orchestration.

    Parameters
    ----------
    client:
        Upstream client configured with the assistants beta header.
    assistant_id:
        Assistant every run is started with.
    poll_interval:
        Seconds to wait before each status poll.
    max_polls:
        Hard ceiling on status polls per turn. Elapsed time is bounded by
        max_polls * poll_interval plus upstream latency.
    sleep:
        Awaitable sleep used between polls. Defaults to asyncio.sleep;
        tests pass a no-op so the loop runs without wall-clock delay.
    """

    def __init__(
        self,
        client: OpenAIRelayClient,
        assistant_id: str,
        poll_interval: float = 1.0,
        max_polls: int = 60,
        sleep: Optional[SleepFn] = None,
    ):
        self.client = client
        self.assistant_id = assistant_id
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.sleep = sleep or asyncio.sleep
        self.state = RelayState.NO_THREAD

    def _advance(self, state: RelayState, thread_id: Optional[str] = None) -> None:
        logger.debug("[CHAT] %s -> %s (thread_id=%s)", self.state.value, state.value, thread_id)
        self.state = state

    async def handle_user_message(self, message: str, thread_id: Optional[str] = None) -> ChatResponse:
        """Run one turn and return the reply (or the non-completed status).

        Flow:
        - NO_THREAD -> THREAD_READY
        - THREAD_READY -> MESSAGE_POSTED
        - MESSAGE_POSTED -> RUN_STARTED
        - RUN_STARTED -> RUN_QUEUED / RUN_IN_PROGRESS -> RUN_TERMINAL

        Any UpstreamError raised along the way aborts the turn unchanged.
        """
        self.state = RelayState.NO_THREAD

        # (1) Thread: reuse the client's, or create one upstream.
        if thread_id:
            logger.info("[CHAT] Reusing thread_id=%s", thread_id)
        else:
            thread_id = await self.client.create_thread()
            logger.info("[CHAT] Created thread_id=%s", thread_id)
        self._advance(RelayState.THREAD_READY, thread_id)

        # (2) Append the user's message. Must finish before the run starts.
        await self.client.add_user_message(thread_id, message)
        self._advance(RelayState.MESSAGE_POSTED, thread_id)

        # (3) Start the run.
        run = await self.client.create_run(thread_id, self.assistant_id)
        self._advance(RelayState.RUN_STARTED, thread_id)
        logger.info("[CHAT] Started run_id=%s status=%s", run.id, run.status)

        # (4) Poll until terminal or out of budget.
        run = await self._wait_for_run(run)
        self._advance(RelayState.RUN_TERMINAL, thread_id)

        if not run.is_completed:
            logger.warning(
                "[CHAT] Run run_id=%s thread_id=%s ended with status=%s",
                run.id,
                thread_id,
                run.status,
            )
            return ChatResponse(
                error=f"Run status: {run.status} (not completed)",
                thread_id=thread_id,
            )

        # (5) Completed: newest assistant message is the reply.
        reply = await self._latest_assistant_text(thread_id)
        return ChatResponse(reply=reply, thread_id=thread_id)

    async def _wait_for_run(self, run: RunInfo) -> RunInfo:
        polls = 0
        while run.is_pending and polls < self.max_polls:
            if run.status == RunStatus.QUEUED.value:
                self._advance(RelayState.RUN_QUEUED, run.thread_id)
            else:
                self._advance(RelayState.RUN_IN_PROGRESS, run.thread_id)
            await self.sleep(self.poll_interval)
            run = await self.client.retrieve_run(run.thread_id, run.id)
            polls += 1

        if run.is_pending:
            logger.warning(
                "[CHAT] Poll budget exhausted after %d polls for run_id=%s (status=%s)",
                polls,
                run.id,
                run.status,
            )
        else:
            logger.info("[CHAT] Run run_id=%s reached %s after %d polls", run.id, run.status, polls)
        return run

    async def _latest_assistant_text(self, thread_id: str) -> str:
        messages = await self.client.list_messages(thread_id)
        for message in messages:
            if message.role == "assistant":
                return message.text or NO_REPLY_PLACEHOLDER
        return NO_REPLY_PLACEHOLDER
