"""Fire-and-forget delivery of milestone/release events to a webhook."""

import asyncio
import logging
from typing import Any, Dict, Optional, Set
import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential
from tracker.core.config import settings
from tracker.utils.time import utcnow

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Client for posting domain events to the notification webhook."""

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        timeout: float = 5.0,
        max_attempts: int = 3,
    ):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.max_attempts = max_attempts
        self._pending: Set[asyncio.Task] = set()

    def dispatch(self, event: str, payload: Dict[str, Any]) -> None:
        """Schedule delivery and return immediately; failures never reach the caller."""
        body = {
            "event": event,
            "occurred_at": utcnow().isoformat(),
            "payload": payload,
        }
        if not self.webhook_url:
            logger.info(f"📣 {event}: {payload}")
            return

        task = asyncio.get_running_loop().create_task(self._deliver(body))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, body: Dict[str, Any]) -> None:
        try:
            await self._post_with_retry(body)
            logger.info(f"📣 Delivered {body['event']}")
        except Exception as e:
            logger.error(f"⚠️ Failed to deliver {body['event']} after {self.max_attempts} attempts: {str(e)}")

    async def _post_with_retry(self, body: Dict[str, Any]) -> None:
        @retry(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            retry=retry_if_exception_type(httpx.HTTPError),
            reraise=True,
        )
        async def _post():
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.webhook_url, json=body)
                response.raise_for_status()

        await _post()

    async def drain(self) -> None:
        """Wait for in-flight deliveries; used on shutdown."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


notification_dispatcher = NotificationDispatcher(
    webhook_url=settings.NOTIFICATION_WEBHOOK_URL,
    timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
)


def get_notification_dispatcher() -> NotificationDispatcher:
    return notification_dispatcher
