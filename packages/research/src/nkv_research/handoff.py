"""Handoff to the downstream generation stage.

Research completion notifies the next stage (script writing) without
waiting on it. With no URL configured the handoff only logs.
"""

from typing import Optional
from uuid import UUID

import httpx
from nkv_common import get_logger
from nkv_contracts import ResearchSource

logger = get_logger(__name__)


class WebhookHandoff:
    """POSTs a research-complete notification to a webhook."""

    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout

    async def notify(
        self,
        draft_id: UUID,
        topic: str,
        sources: list[ResearchSource],
        correlation_id: Optional[str] = None,
    ) -> None:
        """Send the notification.

        Raises:
            httpx.HTTPError: On transport failure or non-2xx response
        """
        headers = {"x-correlation-id": correlation_id} if correlation_id else {}
        payload = {
            "draft_id": str(draft_id),
            "topic": topic,
            "source_count": len(sources),
            "origins": sorted({s.origin.value for s in sources}),
            "correlation_id": correlation_id,
        }

        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
            response = await client.post(self.url, json=payload, headers=headers)
            response.raise_for_status()

        logger.info("handoff_sent", draft_id=str(draft_id), status=response.status_code)


class LoggingHandoff:
    """Handoff used when no downstream URL is configured."""

    async def notify(
        self,
        draft_id: UUID,
        topic: str,
        sources: list[ResearchSource],
        correlation_id: Optional[str] = None,
    ) -> None:
        logger.info("handoff_skipped", draft_id=str(draft_id), source_count=len(sources))


def get_handoff() -> WebhookHandoff | LoggingHandoff:
    """Handoff from settings."""
    from nkv_common import get_settings

    url = get_settings().handoff_url
    return WebhookHandoff(url) if url else LoggingHandoff()
