"""
Module: delivery/retry.py
Description: Retry logic for push gateway calls.

Retries transient gateway failures with exponential backoff before a
record is reported failed and left to queue redelivery.
"""

import logging

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from fanout.utils.logger import get_logger

logger = get_logger(__name__)


class TransientGatewayError(Exception):
    """Gateway answered with a status worth retrying (429, 5xx)."""

    def __init__(self, status_code: int):
        super().__init__(f"Push gateway returned {status_code}")
        self.status_code = status_code


RETRYABLE_EXCEPTIONS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    TransientGatewayError,
)

DEFAULT_WAIT = wait_exponential(multiplier=0.5, min=0.5, max=5)


def gateway_retry(max_attempts: int = 3, wait: wait_base = DEFAULT_WAIT) -> AsyncRetrying:
    """
    Build the retry controller for one gateway call.

    Args:
        max_attempts: Attempts including the first one
        wait: Wait strategy between attempts

    Returns:
        tenacity AsyncRetrying re-raising the last error once exhausted
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait,
        retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
