from __future__ import annotations

import logging
from typing import Any

import httpx

from jobintake.collectors import prompts
from jobintake.collectors.invoker import RATE_LIMIT_STATUS, RetryingInvoker
from jobintake.core.errors import ApiRequestFailedError, MalformedJsonError, NetworkError, RateLimitedError
from jobintake.core.models import ClassifierRequest, HandlingMode

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.anthropic.com/v1/messages"
DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_MAX_TOKENS = 1500
DEFAULT_API_VERSION = "2023-06-01"
WEB_SEARCH_TOOL = {"type": "web_search_20250305", "name": "web_search"}


class ClassifierClient:
    """Talks to the AI classification service.

    Auto requests ask the service to fetch and read the page itself and go
    through the retrying invoker. Manual requests carry pasted text and are
    sent once, since a person is already waiting on them.
    """

    def __init__(
        self,
        api_key: str,
        http_client: httpx.Client | None = None,
        endpoint: str = DEFAULT_ENDPOINT,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        api_version: str = DEFAULT_API_VERSION,
        timeout_seconds: float = 120.0,
        invoker: RetryingInvoker | None = None,
    ) -> None:
        self.api_key = api_key
        self.http = http_client or httpx.Client(timeout=timeout_seconds)
        self.endpoint = endpoint
        self.model = model
        self.max_tokens = max_tokens
        self.api_version = api_version
        self.invoker = invoker or RetryingInvoker(self.send)

    @classmethod
    def from_config(
        cls,
        classifier_cfg: dict[str, Any],
        api_key: str,
        http_client: httpx.Client | None = None,
        **invoker_kwargs: Any,
    ) -> "ClassifierClient":
        client = cls(
            api_key=api_key,
            http_client=http_client,
            endpoint=classifier_cfg.get("endpoint", DEFAULT_ENDPOINT),
            model=classifier_cfg.get("model", DEFAULT_MODEL),
            max_tokens=int(classifier_cfg.get("max_tokens", DEFAULT_MAX_TOKENS)),
            api_version=classifier_cfg.get("anthropic_version", DEFAULT_API_VERSION),
            timeout_seconds=float(classifier_cfg.get("timeout_seconds", 120.0)),
        )
        client.invoker = RetryingInvoker(
            client.send,
            max_attempts=int(classifier_cfg.get("max_attempts", 3)),
            backoff_seconds=float(classifier_cfg.get("backoff_seconds", 5.0)),
            **invoker_kwargs,
        )
        return client

    def build_auto_request(self, url: str) -> ClassifierRequest:
        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "tools": [WEB_SEARCH_TOOL],
            "messages": [{"role": "user", "content": prompts.auto_prompt(url)}],
        }
        return ClassifierRequest(mode=HandlingMode.AUTO, url=url, payload=payload)

    def build_manual_request(self, url: str, description: str, mode: HandlingMode = HandlingMode.MANUAL_PASTE) -> ClassifierRequest:
        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompts.manual_prompt(url, description)}],
        }
        return ClassifierRequest(mode=mode, url=url, payload=payload, description=description)

    def send(self, request: ClassifierRequest) -> httpx.Response:
        return self.http.post(
            self.endpoint,
            headers={
                "Content-Type": "application/json",
                "x-api-key": self.api_key,
                "anthropic-version": self.api_version,
            },
            json=request.payload,
        )

    def analyze_url(self, url: str) -> dict[str, Any]:
        request = self.build_auto_request(url)
        response = self.invoker.invoke(request)
        return self._envelope(request, response)

    def analyze_description(self, url: str, description: str, mode: HandlingMode = HandlingMode.MANUAL_PASTE) -> dict[str, Any]:
        request = self.build_manual_request(url, description, mode)
        try:
            response = self.send(request)
        except httpx.RequestError as exc:
            logger.warning("classifier_network_error", extra={"extra_fields": {"url": url, "mode": mode.value}})
            raise NetworkError() from exc
        return self._envelope(request, response)

    @staticmethod
    def _envelope(request: ClassifierRequest, response: httpx.Response) -> dict[str, Any]:
        status = response.status_code
        if status == RATE_LIMIT_STATUS:
            raise RateLimitedError()
        if not response.is_success:
            logger.warning("classifier_request_failed", extra={"extra_fields": {"url": request.url, "status": status}})
            raise ApiRequestFailedError(status)
        try:
            envelope = response.json()
        except ValueError as exc:
            raise MalformedJsonError() from exc
        if not isinstance(envelope, dict):
            raise MalformedJsonError()
        return envelope
