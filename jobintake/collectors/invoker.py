from __future__ import annotations

import logging
import threading
import time
from typing import Callable

import httpx

from jobintake.core.errors import NetworkError
from jobintake.core.models import ClassifierRequest

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS = 429


class RetryingInvoker:
    """Sends one classifier request, retrying only while the service answers 429.

    Attempt ``n`` that comes back rate limited waits ``n * backoff_seconds``
    before the next attempt. When attempts run out, or ``cancel`` is set, the
    last rate-limited response is returned so the caller decides what it means.
    Transport failures surface as ``NetworkError`` and are never retried here.
    """

    def __init__(
        self,
        send: Callable[[ClassifierRequest], httpx.Response],
        max_attempts: int = 3,
        backoff_seconds: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
        cancel: threading.Event | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.send = send
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.sleep = sleep
        self.cancel = cancel

    def invoke(self, request: ClassifierRequest) -> httpx.Response:
        attempt = 1
        while True:
            try:
                response = self.send(request)
            except httpx.RequestError as exc:
                logger.warning("classifier_network_error", extra={"extra_fields": {"url": request.url, "attempt": attempt}})
                raise NetworkError() from exc

            if response.status_code != RATE_LIMIT_STATUS:
                return response
            if attempt >= self.max_attempts:
                logger.warning("classifier_retries_exhausted", extra={"extra_fields": {"url": request.url, "attempts": attempt}})
                return response

            delay = attempt * self.backoff_seconds
            logger.info(
                "classifier_rate_limited",
                extra={"extra_fields": {"url": request.url, "attempt": attempt, "retry_in_seconds": delay}},
            )
            if self._wait(delay):
                logger.info("classifier_retry_cancelled", extra={"extra_fields": {"url": request.url, "attempt": attempt}})
                return response
            attempt += 1

    def _wait(self, delay: float) -> bool:
        """Back off for ``delay`` seconds; True when cancellation cut the wait short."""
        if self.cancel is None:
            self.sleep(delay)
            return False
        if self.cancel.is_set():
            return True
        return self.cancel.wait(delay)
