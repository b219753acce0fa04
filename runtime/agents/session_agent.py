"""SessionAgent implementation.

Mints a short-lived ChatKit client secret for the browser with a single
upstream call. The full upstream session object is never returned; only
`client_secret` leaves this module.
"""

import logging
from typing import Optional

from core.api.openai_client import OpenAIRelayClient
from ..models.api_models import SessionResponse


logger = logging.getLogger(__name__)


class SessionAgent:
    """Session-mode orchestration.

    Parameters
    ----------
    client:
        Upstream client configured with the ChatKit beta header.
    workflow_id:
        Workflow the minted session is bound to.
    user:
        Optional user identifier forwarded to the workflow.
    """

    def __init__(self, client: OpenAIRelayClient, workflow_id: str, user: Optional[str] = None):
        self.client = client
        self.workflow_id = workflow_id
        self.user = user

    async def open_session(self) -> SessionResponse:
        logger.info("[SESSION] Creating ChatKit session for workflow_id=%s", self.workflow_id)
        client_secret = await self.client.create_chatkit_session(self.workflow_id, user=self.user)
        logger.info("[SESSION] ChatKit session created")
        return SessionResponse(client_secret=client_secret)
