from __future__ import annotations

from pathlib import Path

import httpx

from jobintake.core.handlers import handle_analyze, handle_analyze_manual
from jobintake.core.pipeline import IntakePipeline
from jobintake.storage.repository import JobRepository

from fakes import WAREHOUSE_REPLY, envelope, fixed_clock, make_pipeline


def test_scenario_well_formed_reply_returns_job(tmp_path: Path) -> None:
    pipeline = make_pipeline(tmp_path, [envelope(WAREHOUSE_REPLY)])

    status, body = handle_analyze(pipeline, {"url": "https://acme.example/job/123"})

    assert status == 200
    assert body["success"] is True
    job = body["job"]
    assert (job["title"], job["grade"], job["needsReview"]) == ("Warehouse Associate", "best", False)
    assert job["directUrl"] == "https://acme.example/apply/123"
    assert job["frequentHirerTag"] is None


def test_missing_url_is_400(tmp_path: Path) -> None:
    pipeline = make_pipeline(tmp_path)
    assert handle_analyze(pipeline, {})[0] == 400
    assert handle_analyze(pipeline, None)[0] == 400
    status, body = handle_analyze_manual(pipeline, {"url": "https://jobs.lever.co/acme/1"})
    assert status == 400
    assert body["error"] == "URL and description are required"


def test_quick_entry_url_signals_mode_without_calling_classifier(tmp_path: Path) -> None:
    pipeline = make_pipeline(tmp_path)

    status, body = handle_analyze(pipeline, {"url": "https://www.indeed.com/viewjob?jk=77ab"})

    assert status == 200
    assert body["handlingMode"] == "quick_entry"
    assert body["trackingKey"] == "77ab"
    assert "success" not in body
    assert pipeline.classifier.calls == []


def test_recoverable_content_failures_offer_add_anyway(tmp_path: Path) -> None:
    pipeline = make_pipeline(tmp_path, [envelope(" "), envelope("```json\n{oops\n```"), envelope({"isLegitimate": False})])
    for expected in ("Empty response", "Failed to parse response", "Flagged as not legitimate"):
        status, body = handle_analyze(pipeline, {"url": "https://acme.example/job/123"})
        assert status == 200
        assert body["error"] == expected
        assert body["canAddAnyway"] is True
        assert body["troubleshoot"]


def test_duplicate_is_rejected(tmp_path: Path) -> None:
    pipeline = make_pipeline(tmp_path, [envelope(WAREHOUSE_REPLY)])
    pipeline.submit("https://acme.example/job/123")
    status, body = handle_analyze(pipeline, {"url": "https://acme.example/job/123"})
    assert status == 409
    assert body["error"] == "Duplicate URL"


def test_manual_route_returns_job(tmp_path: Path) -> None:
    pipeline = make_pipeline(tmp_path, [envelope({"jobTitle": "Janitor", "experienceCategory": "custodial"})])
    status, body = handle_analyze_manual(
        pipeline, {"url": "https://acme.icims.com/jobs/1", "description": "Nightly cleaning crew"}
    )
    assert status == 200
    assert body["job"]["title"] == "Janitor"
    assert body["job"]["category"] == "custodial"


def test_unexpected_errors_become_500(tmp_path: Path) -> None:
    pipeline = make_pipeline(tmp_path, [RuntimeError("boom"), RuntimeError("boom")])
    status, body = handle_analyze(pipeline, {"url": "https://acme.example/job/123"})
    assert status == 500
    assert body["canAddAnyway"] is True
    status, body = handle_analyze_manual(pipeline, {"url": "https://acme.example/job/9", "description": "x"})
    assert status == 500
    assert "canAddAnyway" not in body


def build_http_pipeline(tmp_path: Path, handler, sleeps: list[float]) -> IntakePipeline:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return IntakePipeline.from_config(
        {"classifier": {"api_key": "test-key"}},
        repository=JobRepository(str(tmp_path / "jobs.db")),
        http_client=http,
        sleep=sleeps.append,
        clock=fixed_clock,
    )


def test_scenario_three_rate_limits_end_to_end(tmp_path: Path) -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(429, json={"type": "error", "error": {"type": "rate_limit_error"}})

    sleeps: list[float] = []
    pipeline = build_http_pipeline(tmp_path, handler, sleeps)

    status, body = handle_analyze(pipeline, {"url": "https://acme.example/job/123"})

    assert status == 429
    assert body == {"error": "Rate limited", "troubleshoot": "Too many requests. Wait 30 seconds and try again."}
    assert sleeps == [5.0, 10.0]
    assert len(calls) == 3


def test_upstream_failure_status_passes_through(tmp_path: Path) -> None:
    pipeline = build_http_pipeline(tmp_path, lambda request: httpx.Response(529), [])
    status, body = handle_analyze(pipeline, {"url": "https://acme.example/job/123"})
    assert status == 529
    assert body["troubleshoot"] == "Server returned 529. Try again."
    assert "canAddAnyway" not in body


def test_network_failure_is_502(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    pipeline = build_http_pipeline(tmp_path, handler, [])
    status, body = handle_analyze(pipeline, {"url": "https://acme.example/job/123"})
    assert status == 502
    assert body["error"] == "Request failed"
