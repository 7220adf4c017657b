"""
Module: push.py
Description: Push delivery through the platform push gateway.

The gateway fronts the FCM and APNS provider transports. This client
posts single and bulk sends to it and maps every token to an outcome.

Key Components:
- PushOutcome: Per-token outcome (delivered, rejected, failed)
- PushSender: Protocol of the push provider collaborator
- HttpPushGatewayClient: httpx implementation with tenacity retries
"""

from enum import Enum
from typing import Any, Dict, List, Protocol

import httpx
from tenacity.wait import wait_base

from fanout.delivery.retry import DEFAULT_WAIT, TransientGatewayError, gateway_retry
from fanout.models.push import PushMessage
from fanout.utils.logger import get_logger

logger = get_logger(__name__)

# Statuses meaning the token itself is invalid or unregistered
REJECTED_STATUS_CODES = {400, 404, 410}

# Statuses meaning a bulk request can never succeed as sent
BULK_REJECTED_STATUS_CODES = REJECTED_STATUS_CODES | {413, 422}


class PushOutcome(str, Enum):
    """Outcome of sending to one token."""

    DELIVERED = "delivered"
    REJECTED = "rejected"
    FAILED = "failed"

    @property
    def retryable(self) -> bool:
        return self is PushOutcome.FAILED


class PushSender(Protocol):
    """Sends push messages to device tokens."""

    async def send(self, token: str, message: PushMessage) -> PushOutcome:
        ...

    async def send_bulk(self, tokens: List[str], message: PushMessage) -> List[PushOutcome]:
        ...


class HttpPushGatewayClient:
    """
    HTTP client for the push gateway of one platform.

    Handles delivery attempts with proper timeout and retries transient
    errors; exhausted retries yield FAILED outcomes rather than raising.
    """

    def __init__(
        self,
        gateway_url: str,
        timeout_seconds: int = 10,
        max_attempts: int = 3,
        retry_wait: wait_base = DEFAULT_WAIT
    ):
        """
        Initialize push gateway client.

        Args:
            gateway_url: Base URL of the push gateway
            timeout_seconds: HTTP timeout in seconds
            max_attempts: Attempts per gateway call
            retry_wait: Wait strategy between attempts

        Raises:
            ValueError: If gateway_url is invalid
        """
        if not gateway_url or not isinstance(gateway_url, str):
            raise ValueError("gateway_url must be a non-empty string")
        if not gateway_url.startswith(('http://', 'https://')):
            raise ValueError("gateway_url must be a valid HTTP/HTTPS URL")

        self.gateway_url = gateway_url.rstrip('/')
        self.timeout = httpx.Timeout(timeout_seconds, connect=timeout_seconds)
        self.max_attempts = max_attempts
        self.retry_wait = retry_wait

        logger.info(
            "Push gateway client initialized",
            gateway_url=self.gateway_url,
            timeout_seconds=timeout_seconds
        )

    async def _post(self, path: str, payload: Dict[str, Any]) -> httpx.Response:
        """POST with retries; returns the final non-transient response."""
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            async for attempt in gateway_retry(self.max_attempts, self.retry_wait):
                with attempt:
                    response = await client.post(f"{self.gateway_url}{path}", json=payload)
                    if response.status_code == 429 or response.status_code >= 500:
                        raise TransientGatewayError(response.status_code)
        return response

    async def send(self, token: str, message: PushMessage) -> PushOutcome:
        """
        Send a message to one token.

        Returns:
            DELIVERED on 2xx, REJECTED when the gateway rejects the token,
            FAILED on transient or unexpected errors
        """
        try:
            response = await self._post('/send', {
                'token': token,
                'message': message.model_dump(),
            })

        except (TransientGatewayError, httpx.TimeoutException, httpx.NetworkError) as e:
            logger.warning(
                "Push send failed after retries",
                gateway_url=self.gateway_url,
                error=str(e),
                error_type=type(e).__name__
            )
            return PushOutcome.FAILED

        if response.is_success:
            return PushOutcome.DELIVERED

        if response.status_code in REJECTED_STATUS_CODES:
            logger.info(
                "Push token rejected by gateway",
                gateway_url=self.gateway_url,
                status_code=response.status_code
            )
            return PushOutcome.REJECTED

        logger.warning(
            "Push send HTTP error",
            gateway_url=self.gateway_url,
            status_code=response.status_code,
            response=response.text[:500]  # Truncate large responses
        )
        return PushOutcome.FAILED

    async def send_bulk(self, tokens: List[str], message: PushMessage) -> List[PushOutcome]:
        """
        Send a message to many tokens in one gateway call.

        The gateway answers with {"rejected": [token, ...]}; every other
        token counts as delivered. A request the gateway refuses outright
        rejects every token.

        Returns:
            One outcome per token, in token order
        """
        if not tokens:
            return []

        try:
            response = await self._post('/send-bulk', {
                'tokens': tokens,
                'message': message.model_dump(),
            })
            if response.status_code in BULK_REJECTED_STATUS_CODES:
                logger.error(
                    "Bulk push rejected by gateway",
                    gateway_url=self.gateway_url,
                    token_count=len(tokens),
                    status_code=response.status_code,
                    response=response.text[:500]
                )
                return [PushOutcome.REJECTED] * len(tokens)
            response.raise_for_status()
            rejected = set(response.json().get('rejected', []))

        except (TransientGatewayError, httpx.TimeoutException, httpx.NetworkError) as e:
            logger.warning(
                "Bulk push failed after retries",
                gateway_url=self.gateway_url,
                token_count=len(tokens),
                error=str(e),
                error_type=type(e).__name__
            )
            return [PushOutcome.FAILED] * len(tokens)

        except (httpx.HTTPStatusError, ValueError, AttributeError) as e:
            logger.error(
                "Bulk push returned an unusable response",
                gateway_url=self.gateway_url,
                token_count=len(tokens),
                error=str(e),
                error_type=type(e).__name__
            )
            return [PushOutcome.FAILED] * len(tokens)

        logger.info(
            "Bulk push sent",
            gateway_url=self.gateway_url,
            token_count=len(tokens),
            rejected_count=len(rejected)
        )

        return [
            PushOutcome.REJECTED if token in rejected else PushOutcome.DELIVERED
            for token in tokens
        ]
