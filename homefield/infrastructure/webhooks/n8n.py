"""
n8n Workflow Webhook Client
Posts onboarding events to the client-onboarding automation
"""
import logging
from typing import Any, Dict

import httpx

from homefield.core.errors import DownstreamNotificationError

logger = logging.getLogger(__name__)


class WorkflowWebhookClient:
    """
    JSON POST to an n8n webhook.

    Any transport error or non-2xx response raises
    DownstreamNotificationError; callers decide whether to absorb it.
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        self.webhook_url = webhook_url
        self.timeout = timeout

    async def send(self, payload: Dict[str, Any]) -> None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.webhook_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError as e:
            raise DownstreamNotificationError(f"Webhook request failed: {e}") from e

        if response.status_code >= 400:
            raise DownstreamNotificationError(
                f"Webhook returned {response.status_code}: {response.text[:200]}"
            )

        logger.info(f"Onboarding webhook delivered (status={response.status_code})")
