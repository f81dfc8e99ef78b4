"""Turn the classifier's free-form reply into a validated ``Analysis``.

The classifier is asked for a JSON object but nothing about its reply is
trusted: text blocks are concatenated, code fences are stripped, and then
every field is read on its own with a fixed fallback. A missing or mistyped
field never fails the parse; only an empty reply, unparseable JSON, or (in
auto mode) a present but falsy ``isLegitimate`` does.
"""
from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from typing import Any, Callable

from jobintake.core.errors import EmptyResponseError, MalformedJsonError, NotLegitimateError
from jobintake.core.models import CATEGORIES, DEFAULT_CATEGORY, DEFAULT_GRADE, GRADES, Analysis, HandlingMode
from jobintake.utils.text import strip_code_fences

logger = logging.getLogger(__name__)

MANUAL_MALFORMED_HINT = "Please try again, or paste a shorter excerpt of the description."


def extract_text(envelope: Any) -> str:
    """Concatenate the ``text`` blocks of a response envelope, in order."""
    if not isinstance(envelope, dict):
        return ""
    blocks = envelope.get("content")
    if not isinstance(blocks, list):
        return ""
    parts = []
    for block in blocks:
        if isinstance(block, dict) and block.get("type") == "text" and isinstance(block.get("text"), str):
            parts.append(block["text"])
    return "".join(parts)


def _text(data: dict[str, Any], key: str, default: str) -> str:
    value = data.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _flag(data: dict[str, Any], key: str) -> bool:
    value = data.get(key)
    return value if isinstance(value, bool) else False


def _choice(data: dict[str, Any], key: str, choices: tuple[str, ...], default: str) -> str:
    value = data.get(key)
    if isinstance(value, str) and value.strip().lower() in choices:
        return value.strip().lower()
    return default


def _iso_date(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()).isoformat()
    except ValueError:
        return None


class ResponseParser:
    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def parse(self, envelope: Any, mode: HandlingMode = HandlingMode.AUTO) -> Analysis:
        text = extract_text(envelope)
        if not text.strip():
            raise EmptyResponseError()
        return self.parse_text(text, mode)

    def parse_text(self, text: str, mode: HandlingMode = HandlingMode.AUTO) -> Analysis:
        auto = mode == HandlingMode.AUTO
        cleaned = strip_code_fences(text)
        if not cleaned:
            raise EmptyResponseError()
        try:
            data = json.loads(cleaned)
        except (ValueError, RecursionError) as exc:
            logger.info("classifier_reply_unparseable", extra={"extra_fields": {"mode": mode.value, "chars": len(cleaned)}})
            raise MalformedJsonError(None if auto else MANUAL_MALFORMED_HINT) from exc
        if not isinstance(data, dict):
            raise MalformedJsonError(None if auto else MANUAL_MALFORMED_HINT)

        analysis = Analysis(
            job_title=_text(data, "jobTitle", "Unknown Position"),
            company=_text(data, "company", "Unknown Company"),
            location=_text(data, "location", "Location not specified"),
            grade=_choice(data, "grade", GRADES, DEFAULT_GRADE),
            grade_reason=_text(data, "gradeReason", ""),
            experience_category=_choice(data, "experienceCategory", CATEGORIES, DEFAULT_CATEGORY),
            ceo_match=_text(data, "ceoMatch", ""),
            salary=_text(data, "salary", "Not listed"),
            requires_diploma=_flag(data, "requiresDiploma"),
            requires_license=_flag(data, "requiresLicense"),
            date_posted=self.clock().date().isoformat(),
        )
        if not auto:
            return analysis

        # Fields only the fetch-and-read prompt asks for.
        legitimate = data.get("isLegitimate")
        analysis.is_legitimate = legitimate if isinstance(legitimate, bool) else None
        analysis.legitimacy_reason = _text(data, "legitimacyReason", "")
        analysis.direct_application_url = _text(data, "directApplicationUrl", "")
        analysis.date_posted = _iso_date(data, "datePosted") or analysis.date_posted
        analysis.expiration_date = _iso_date(data, "expirationDate")

        if "isLegitimate" in data and not legitimate:
            raise NotLegitimateError(analysis.legitimacy_reason)
        return analysis
