from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime
from typing import Any, Callable

import httpx

from jobintake.collectors.classifier import ClassifierClient
from jobintake.core.errors import IntakeError, InvalidInputError, StoreWriteFailedError
from jobintake.core.models import DEFAULT_SUBMITTED_BY, HandlingMode, Job, SubmissionOutcome
from jobintake.dedupe.service import DuplicateGuard
from jobintake.normalize.hirers import FrequentHirerTable
from jobintake.normalize.normalizer import JobNormalizer
from jobintake.parsing.response_parser import ResponseParser
from jobintake.sources.triage import SourceClassifier
from jobintake.storage.repository import JobRepository
from jobintake.utils.config import resolve_api_key, section

logger = logging.getLogger(__name__)


class IntakePipeline:
    """Single-submission intake: triage, duplicate guard, classify, parse, normalize, store."""

    def __init__(
        self,
        classifier: ClassifierClient,
        repository: JobRepository,
        triage: SourceClassifier | None = None,
        parser: ResponseParser | None = None,
        normalizer: JobNormalizer | None = None,
    ) -> None:
        self.classifier = classifier
        self.repository = repository
        self.triage = triage or SourceClassifier()
        self.parser = parser or ResponseParser()
        self.normalizer = normalizer or JobNormalizer()

    @classmethod
    def from_config(
        cls,
        config: dict[str, Any],
        repository: JobRepository | None = None,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] | None = None,
        cancel: threading.Event | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> "IntakePipeline":
        classifier_cfg = section(config, "classifier")
        invoker_kwargs: dict[str, Any] = {"cancel": cancel}
        if sleep is not None:
            invoker_kwargs["sleep"] = sleep
        classifier = ClassifierClient.from_config(classifier_cfg, resolve_api_key(classifier_cfg), http_client, **invoker_kwargs)
        storage_cfg = section(config, "storage")
        return cls(
            classifier=classifier,
            repository=repository or JobRepository(storage_cfg.get("db_path", "data/jobintake.db")),
            triage=SourceClassifier.from_config(section(config, "triage")),
            parser=ResponseParser(clock=clock),
            normalizer=JobNormalizer(
                hirers=FrequentHirerTable.from_config(config.get("frequent_hirers")),
                submitted_by=config.get("submitted_by", DEFAULT_SUBMITTED_BY),
                clock=clock,
            ),
        )

    @staticmethod
    def _require(value: Any, message: str, hint: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise InvalidInputError(hint, error=message)
        return value.strip()

    def check_duplicate(self, url: str, existing_urls: set[str] | None = None) -> None:
        existing = self.repository.existing_urls() if existing_urls is None else existing_urls
        DuplicateGuard.check(url, existing)

    def analyze_url(self, url: Any, existing_urls: set[str] | None = None) -> Job:
        """Auto-mode analysis of a bare URL; the result is not stored."""
        url = self._require(url, "URL is required", "Enter a job posting URL.")
        mode = self.triage.classify(url)
        if mode != HandlingMode.AUTO:
            raise InvalidInputError(
                "This site blocks automatic reading. Paste the job description instead.",
                error="Manual entry required",
            )
        self.check_duplicate(url, existing_urls)
        envelope = self.classifier.analyze_url(url)
        analysis = self.parser.parse(envelope, HandlingMode.AUTO)
        return self.normalizer.normalize(analysis, self.normalizer.context(url, mode))

    def analyze_description(self, url: Any, description: Any) -> Job:
        """Manual or quick-entry analysis of pasted text; the result is not stored."""
        if not isinstance(url, str) or not url.strip() or not isinstance(description, str) or not description.strip():
            raise InvalidInputError("Paste both the job URL and the job description.", error="URL and description are required")
        url, description = url.strip(), description.strip()
        mode = self.triage.classify(url)
        if mode == HandlingMode.AUTO:
            mode = HandlingMode.MANUAL_PASTE
        self.check_duplicate(url)
        envelope = self.classifier.analyze_description(url, description, mode)
        analysis = self.parser.parse(envelope, mode)
        return self.normalizer.normalize(analysis, self.normalizer.context(url, mode))

    def store(self, job: Job) -> Job:
        try:
            self.repository.insert(job)
        except sqlite3.Error as exc:
            logger.error("job_store_failed", extra={"extra_fields": {"url": job.url, "reason": str(exc)}})
            raise StoreWriteFailedError() from exc
        return job

    def record_failure(self, url: str, exc: IntakeError, run_id: int | None = None) -> None:
        report = exc.to_report(url)
        logger.warning(
            "intake_failed",
            extra={"extra_fields": {"url": url, "kind": report.error_kind, "troubleshoot": report.troubleshoot}},
        )
        try:
            self.repository.add_intake_error(report, run_id)
        except sqlite3.Error:
            logger.exception("intake_error_log_failed", extra={"extra_fields": {"url": url}})

    def submit(self, url: Any) -> SubmissionOutcome:
        url = self._require(url, "URL is required", "Enter a job posting URL.")
        mode = self.triage.classify(url)
        if mode != HandlingMode.AUTO:
            tracking_key = self.triage.extract_tracking_key(url) if mode == HandlingMode.QUICK_ENTRY else None
            logger.info("manual_entry_required", extra={"extra_fields": {"url": url, "mode": mode.value}})
            return SubmissionOutcome(url=url, mode=mode, tracking_key=tracking_key)
        try:
            job = self.store(self.analyze_url(url))
        except IntakeError as exc:
            self.record_failure(url, exc)
            raise
        return SubmissionOutcome(url=url, mode=mode, job=job)

    def submit_manual(self, url: Any, description: Any) -> Job:
        try:
            return self.store(self.analyze_description(url, description))
        except IntakeError as exc:
            self.record_failure(str(url or ""), exc)
            raise

    def add_anyway(self, url: Any) -> Job:
        """Store a review-flagged placeholder, skipping classification entirely."""
        url = self._require(url, "URL is required", "Enter a job posting URL.")
        job = self.normalizer.manual_fallback(url)
        logger.info("job_added_for_review", extra={"extra_fields": {"url": url, "job_id": job.id}})
        return self.store(job)
