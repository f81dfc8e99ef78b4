from __future__ import annotations

import json

import httpx
import pytest

from jobintake.collectors.classifier import WEB_SEARCH_TOOL, ClassifierClient
from jobintake.core.errors import ApiRequestFailedError, MalformedJsonError, NetworkError, RateLimitedError
from jobintake.core.models import HandlingMode

from fakes import WAREHOUSE_REPLY, envelope


class Recorder:
    def __init__(self, responses: list[httpx.Response]) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


def make_client(recorder: Recorder, sleeps: list[float] | None = None) -> ClassifierClient:
    http = httpx.Client(transport=httpx.MockTransport(recorder))
    sleep = sleeps.append if sleeps is not None else (lambda _: None)
    return ClassifierClient.from_config({"model": "test-model", "max_tokens": 900}, "test-key", http, sleep=sleep)


def test_auto_request_enables_web_search_and_sends_headers() -> None:
    recorder = Recorder([httpx.Response(200, json=envelope(WAREHOUSE_REPLY))])
    result = make_client(recorder).analyze_url("https://acme.example/job/123")

    assert result["content"][0]["type"] == "text"
    sent = recorder.requests[0]
    assert sent.headers["x-api-key"] == "test-key"
    assert sent.headers["anthropic-version"] == "2023-06-01"
    body = json.loads(sent.content)
    assert body["model"] == "test-model"
    assert body["max_tokens"] == 900
    assert body["tools"] == [WEB_SEARCH_TOOL]
    assert "https://acme.example/job/123" in body["messages"][0]["content"]


def test_manual_request_carries_description_without_tools() -> None:
    recorder = Recorder([httpx.Response(200, json=envelope(WAREHOUSE_REPLY))])
    make_client(recorder).analyze_description("https://www.indeed.com/viewjob?jk=1", "Forklift operator wanted", HandlingMode.QUICK_ENTRY)

    body = json.loads(recorder.requests[0].content)
    assert "tools" not in body
    assert "Forklift operator wanted" in body["messages"][0]["content"]


def test_three_rate_limits_surface_as_rate_limited_after_backoff() -> None:
    recorder = Recorder([httpx.Response(429), httpx.Response(429), httpx.Response(429)])
    sleeps: list[float] = []
    with pytest.raises(RateLimitedError) as excinfo:
        make_client(recorder, sleeps).analyze_url("https://acme.example/job/123")
    assert sleeps == [5.0, 10.0]
    assert len(recorder.requests) == 3
    assert "canAddAnyway" not in excinfo.value.to_body()


def test_manual_request_is_sent_once_even_when_rate_limited() -> None:
    recorder = Recorder([httpx.Response(429)])
    sleeps: list[float] = []
    with pytest.raises(RateLimitedError):
        make_client(recorder, sleeps).analyze_description("https://jobs.lever.co/acme/1", "Driver needed")
    assert len(recorder.requests) == 1
    assert sleeps == []


def test_hard_failure_carries_status() -> None:
    recorder = Recorder([httpx.Response(503, text="unavailable")])
    with pytest.raises(ApiRequestFailedError) as excinfo:
        make_client(recorder).analyze_url("https://acme.example/job/123")
    assert excinfo.value.status == 503
    assert excinfo.value.troubleshoot == "Server returned 503. Try again."


def test_transport_error_is_network_error() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = ClassifierClient("test-key", http_client=httpx.Client(transport=httpx.MockTransport(refuse)))
    with pytest.raises(NetworkError):
        client.analyze_description("https://jobs.lever.co/acme/1", "Driver needed")
    with pytest.raises(NetworkError):
        client.analyze_url("https://acme.example/job/123")


def test_undecodable_response_body_is_network_error() -> None:
    def garbled(request: httpx.Request) -> httpx.Response:
        raise httpx.DecodingError("bad gzip stream", request=request)

    client = ClassifierClient("test-key", http_client=httpx.Client(transport=httpx.MockTransport(garbled)))
    with pytest.raises(NetworkError):
        client.analyze_url("https://acme.example/job/123")
    with pytest.raises(NetworkError):
        client.analyze_description("https://jobs.lever.co/acme/1", "Driver needed")


def test_non_json_envelope_is_malformed() -> None:
    recorder = Recorder([httpx.Response(200, text="<html>oops</html>")])
    with pytest.raises(MalformedJsonError):
        make_client(recorder).analyze_url("https://acme.example/job/123")
