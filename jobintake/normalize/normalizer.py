from __future__ import annotations

import secrets
import string
from datetime import datetime, timezone
from typing import Callable

from jobintake.core.models import (
    DEFAULT_CATEGORY,
    DEFAULT_GRADE,
    DEFAULT_SUBMITTED_BY,
    Analysis,
    HandlingMode,
    Job,
    SubmissionContext,
)
from jobintake.normalize.hirers import FrequentHirerTable

_ID_ALPHABET = string.digits + string.ascii_lowercase


def make_job_id(now: datetime) -> str:
    """Millisecond timestamp followed by a 9-character base-36 random suffix."""
    millis = int(now.timestamp() * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{millis}{suffix}"


class JobNormalizer:
    def __init__(
        self,
        hirers: FrequentHirerTable | None = None,
        submitted_by: str = DEFAULT_SUBMITTED_BY,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[datetime], str] = make_job_id,
    ) -> None:
        self.hirers = hirers or FrequentHirerTable()
        self.submitted_by = submitted_by
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.id_factory = id_factory

    def context(self, url: str, mode: HandlingMode) -> SubmissionContext:
        return SubmissionContext(url=url, mode=mode, submitted_by=self.submitted_by)

    def normalize(self, analysis: Analysis, context: SubmissionContext) -> Job:
        now = self.clock()
        return Job(
            id=self.id_factory(now),
            url=context.url,
            direct_url=analysis.direct_application_url or context.url,
            title=analysis.job_title,
            company=analysis.company,
            location=analysis.location,
            grade=analysis.grade,
            grade_reason=analysis.grade_reason,
            category=analysis.experience_category,
            ceo_match=analysis.ceo_match,
            salary=analysis.salary,
            requires_diploma=analysis.requires_diploma,
            requires_license=analysis.requires_license,
            date_posted=analysis.date_posted or now.date().isoformat(),
            expiration_date=analysis.expiration_date,
            submitted_at=now.isoformat(timespec="milliseconds"),
            submitted_by=context.submitted_by,
            needs_review=False,
            frequent_hirer_tag=self.hirers.match(analysis.company, analysis.job_title),
        )

    def manual_fallback(self, url: str) -> Job:
        """Placeholder job for a URL the classifier could not handle, flagged for review."""
        now = self.clock()
        return Job(
            id=self.id_factory(now),
            url=url,
            direct_url=url,
            title="Needs Review",
            company="Unknown",
            location="Unknown",
            grade=DEFAULT_GRADE,
            grade_reason="Added manually - needs review",
            category=DEFAULT_CATEGORY,
            ceo_match="",
            salary="Not listed",
            requires_diploma=False,
            requires_license=False,
            date_posted=now.date().isoformat(),
            expiration_date=None,
            submitted_at=now.isoformat(timespec="milliseconds"),
            submitted_by=self.submitted_by,
            needs_review=True,
            frequent_hirer_tag=self.hirers.match(url),
        )
