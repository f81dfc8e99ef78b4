from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Any

DEFAULT_EXPIRY_DAYS = 21
DEFAULT_SUBMITTED_BY = "CEO Fresno Staff"


class HandlingMode(str, Enum):
    AUTO = "auto"
    MANUAL_PASTE = "manual_paste"
    QUICK_ENTRY = "quick_entry"


GRADES = ("best", "better", "good", "fair", "poor")
DEFAULT_GRADE = "good"

CATEGORIES = ("construction", "warehouse", "transportation", "foodservice", "hospitality", "custodial", "other")
DEFAULT_CATEGORY = "other"


@dataclass(slots=True)
class ClassifierRequest:
    mode: HandlingMode
    url: str
    payload: dict[str, Any]
    description: str | None = None


@dataclass(slots=True)
class Analysis:
    is_legitimate: bool | None = None
    legitimacy_reason: str = ""
    job_title: str = "Unknown Position"
    company: str = "Unknown Company"
    location: str = "Location not specified"
    direct_application_url: str = ""
    grade: str = DEFAULT_GRADE
    grade_reason: str = ""
    experience_category: str = DEFAULT_CATEGORY
    ceo_match: str = ""
    salary: str = "Not listed"
    requires_diploma: bool = False
    requires_license: bool = False
    date_posted: str = ""
    expiration_date: str | None = None


@dataclass(slots=True)
class SubmissionContext:
    url: str
    mode: HandlingMode
    submitted_by: str = DEFAULT_SUBMITTED_BY


@dataclass(slots=True)
class Job:
    id: str
    url: str
    direct_url: str
    title: str
    company: str
    location: str
    grade: str
    grade_reason: str
    category: str
    ceo_match: str
    salary: str
    requires_diploma: bool
    requires_license: bool
    date_posted: str
    expiration_date: str | None
    submitted_at: str
    submitted_by: str
    needs_review: bool = False
    frequent_hirer_tag: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "directUrl": self.direct_url,
            "title": self.title,
            "company": self.company,
            "location": self.location,
            "grade": self.grade,
            "gradeReason": self.grade_reason,
            "category": self.category,
            "ceoMatch": self.ceo_match,
            "salary": self.salary,
            "requiresDiploma": self.requires_diploma,
            "requiresLicense": self.requires_license,
            "datePosted": self.date_posted,
            "expirationDate": self.expiration_date,
            "submittedAt": self.submitted_at,
            "submittedBy": self.submitted_by,
            "needsReview": self.needs_review,
            "frequentHirerTag": self.frequent_hirer_tag,
        }

    def is_expired(self, now: datetime | None = None, expiry_days: int = DEFAULT_EXPIRY_DAYS) -> bool:
        now = now or datetime.now(timezone.utc)
        if self.expiration_date:
            expires = datetime.combine(date.fromisoformat(self.expiration_date), time.min, tzinfo=timezone.utc)
            return now >= expires
        submitted = datetime.fromisoformat(self.submitted_at)
        if submitted.tzinfo is None:
            submitted = submitted.replace(tzinfo=timezone.utc)
        return now - submitted > timedelta(days=expiry_days)

    @staticmethod
    def now_iso() -> str:
        return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


@dataclass(slots=True)
class ErrorReport:
    url: str
    error_kind: str
    error: str
    troubleshoot: str
    can_retry_manually: bool
    occurred_at: str = field(default_factory=Job.now_iso)


@dataclass(slots=True)
class SubmissionOutcome:
    url: str
    mode: HandlingMode
    job: Job | None = None
    tracking_key: str | None = None

    @property
    def needs_manual_entry(self) -> bool:
        return self.job is None


@dataclass(slots=True)
class BatchResult:
    added: int = 0
    failed: int = 0
    needs_manual: list[str] = field(default_factory=list)
    errors: list[ErrorReport] = field(default_factory=list)
    jobs: list[Job] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {"added": self.added, "failed": self.failed, "needs_manual": len(self.needs_manual)}

    def summary(self) -> str:
        message = f"Added {self.added} job{'s' if self.added != 1 else ''}"
        if self.failed:
            message += f", {self.failed} failed"
        if self.needs_manual:
            message += f". {len(self.needs_manual)} URL(s) need manual entry."
        return message
