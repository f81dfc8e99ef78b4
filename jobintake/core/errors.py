"""Intake failure taxonomy.

Each error carries the short label and the longer troubleshooting hint shown to
staff, whether the URL may still be force-added for review, and the HTTP-like
status used by the request handlers.
"""
from __future__ import annotations

from typing import Any

from jobintake.core.models import ErrorReport


class IntakeError(Exception):
    kind = "intake_error"
    error = "Server error"
    troubleshoot = "An unexpected error occurred. Please try again."
    can_add_anyway = False
    status = 500

    def __init__(self, troubleshoot: str | None = None, *, error: str | None = None) -> None:
        if troubleshoot is not None:
            self.troubleshoot = troubleshoot
        if error is not None:
            self.error = error
        super().__init__(f"{self.error}: {self.troubleshoot}")

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error, "troubleshoot": self.troubleshoot}
        if self.can_add_anyway:
            body["canAddAnyway"] = True
        return body

    def to_report(self, url: str) -> ErrorReport:
        return ErrorReport(
            url=url,
            error_kind=self.kind,
            error=self.error,
            troubleshoot=self.troubleshoot,
            can_retry_manually=self.can_add_anyway,
        )


class InvalidInputError(IntakeError):
    kind = "invalid_input"
    error = "URL is required"
    troubleshoot = "Enter a job posting URL."
    status = 400


class NetworkError(IntakeError):
    kind = "network_error"
    error = "Request failed"
    troubleshoot = "Network error - try again"
    status = 502


class RateLimitedError(IntakeError):
    kind = "rate_limited"
    error = "Rate limited"
    troubleshoot = "Too many requests. Wait 30 seconds and try again."
    status = 429


class ApiRequestFailedError(IntakeError):
    kind = "api_request_failed"
    error = "API request failed"

    def __init__(self, status_code: int) -> None:
        self.status = status_code
        super().__init__(f"Server returned {status_code}. Try again.")


class EmptyResponseError(IntakeError):
    kind = "empty_response"
    error = "Empty response"
    troubleshoot = "The page may be blocked or require login"
    can_add_anyway = True
    status = 200


class MalformedJsonError(IntakeError):
    kind = "malformed_json"
    error = "Failed to parse response"
    troubleshoot = "Try the direct employer page instead of a job board."
    can_add_anyway = True
    status = 200


class NotLegitimateError(IntakeError):
    kind = "not_legitimate"
    error = "Flagged as not legitimate"
    troubleshoot = "Posting may be expired"
    can_add_anyway = True
    status = 200

    def __init__(self, legitimacy_reason: str = "") -> None:
        self.legitimacy_reason = legitimacy_reason
        super().__init__(legitimacy_reason or None)


class DuplicateUrlError(IntakeError):
    kind = "duplicate_url"
    error = "Duplicate URL"
    troubleshoot = "This job is already on the board."
    status = 409


class StoreWriteFailedError(IntakeError):
    kind = "store_write_failed"
    error = "Failed to save job to database"
    troubleshoot = "The job was analyzed but could not be saved. Try again later."
    status = 500
