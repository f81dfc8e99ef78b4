"""Request/response shape the pipeline exposes to an HTTP layer.

Handlers take the decoded JSON request body and return ``(status, body)``.
Content-level failures the user can still act on (empty reply, bad JSON,
flagged posting) come back as 200 with an ``error`` field and
``canAddAnyway``.
"""
from __future__ import annotations

import logging
from typing import Any

from jobintake.core.errors import IntakeError, InvalidInputError
from jobintake.core.models import HandlingMode
from jobintake.core.pipeline import IntakePipeline

logger = logging.getLogger(__name__)

Response = tuple[int, dict[str, Any]]


def _error(exc: IntakeError) -> Response:
    return exc.status, exc.to_body()


def _server_error() -> Response:
    return 500, {
        "error": "Server error",
        "troubleshoot": "An unexpected error occurred. Please try again.",
        "canAddAnyway": True,
    }


def handle_analyze(pipeline: IntakePipeline, payload: Any) -> Response:
    url = payload.get("url") if isinstance(payload, dict) else None
    try:
        if not isinstance(url, str) or not url.strip():
            raise InvalidInputError()
        url = url.strip()
        mode = pipeline.triage.classify(url)
        if mode != HandlingMode.AUTO:
            body: dict[str, Any] = {
                "error": "Manual entry required",
                "troubleshoot": "This site blocks automatic reading. Paste the job description instead.",
                "handlingMode": mode.value,
            }
            if mode == HandlingMode.QUICK_ENTRY:
                body["trackingKey"] = pipeline.triage.extract_tracking_key(url)
            return 200, body
        job = pipeline.analyze_url(url)
    except IntakeError as exc:
        return _error(exc)
    except Exception:  # noqa: BLE001
        logger.exception("analyze_handler_failed", extra={"extra_fields": {"url": url}})
        return _server_error()
    return 200, {"success": True, "job": job.to_dict()}


def handle_analyze_manual(pipeline: IntakePipeline, payload: Any) -> Response:
    payload = payload if isinstance(payload, dict) else {}
    try:
        job = pipeline.analyze_description(payload.get("url"), payload.get("description"))
    except IntakeError as exc:
        return _error(exc)
    except Exception:  # noqa: BLE001
        logger.exception("analyze_manual_handler_failed", extra={"extra_fields": {"url": payload.get("url")}})
        status, body = _server_error()
        body.pop("canAddAnyway")
        return status, body
    return 200, {"success": True, "job": job.to_dict()}
