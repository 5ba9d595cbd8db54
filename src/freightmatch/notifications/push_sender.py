import logging
from typing import Protocol

import httpx

from ..settings import PushSettings
from .models import PushMessage, is_expo_push_token

logger = logging.getLogger(__name__)


class PushSender(Protocol):
    def send(self, messages: list[PushMessage]) -> int: ...


class ExpoPushSender:
    """Delivers push messages through the Expo push HTTP API.

    Delivery is best effort: invalid tokens are dropped and HTTP failures are
    logged, never raised to the caller.
    """

    def __init__(self, settings: PushSettings | None = None, client: httpx.Client | None = None):
        self.settings = settings or PushSettings()
        self._client = client or httpx.Client(timeout=self.settings.timeout_seconds)

    def send(self, messages: list[PushMessage]) -> int:
        """Send messages in batches; returns how many were accepted by the API."""
        if not self.settings.enabled:
            return 0

        valid = [m for m in messages if is_expo_push_token(m.to)]
        if len(valid) < len(messages):
            logger.warning(
                "Dropped %d message(s) with invalid push tokens", len(messages) - len(valid)
            )
        if not valid:
            logger.debug("No valid push tokens to send to")
            return 0

        sent = 0
        size = self.settings.batch_size
        for start in range(0, len(valid), size):
            batch = valid[start : start + size]
            try:
                response = self._client.post(
                    self.settings.endpoint,
                    json=[m.model_dump(exclude_none=True) for m in batch],
                    headers={"Accept": "application/json"},
                )
                response.raise_for_status()
            except httpx.HTTPError as e:
                logger.warning("Push batch of %d failed: %s", len(batch), e)
                continue
            sent += len(batch)

        logger.info("Sent %d push notification(s)", sent)
        return sent

    def close(self) -> None:
        self._client.close()
