from __future__ import annotations

import logging
import time
from typing import Any, Callable

from jobintake.core.errors import IntakeError
from jobintake.core.models import BatchResult, HandlingMode, Job
from jobintake.core.pipeline import IntakePipeline
from jobintake.dedupe.service import DuplicateGuard
from jobintake.utils.config import section
from jobintake.utils.text import unique_lines
from jobintake.utils.throttle import Pacer

logger = logging.getLogger(__name__)

DEFAULT_PACING_SECONDS = 1.0


class BatchOrchestrator:
    """Runs a bulk submission one URL at a time.

    Items never run concurrently: the classifier shares one rate limit, so
    calls are paced and a failing item only records its error report.
    """

    def __init__(self, pipeline: IntakePipeline, pacer: Pacer | None = None) -> None:
        self.pipeline = pipeline
        self.pacer = pacer or Pacer(DEFAULT_PACING_SECONDS)

    @classmethod
    def from_config(
        cls,
        config: dict[str, Any],
        pipeline: IntakePipeline,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "BatchOrchestrator":
        pacing = float(section(config, "batch").get("pacing_seconds", DEFAULT_PACING_SECONDS))
        return cls(pipeline, Pacer(pacing, sleep=sleep))

    def run(self, lines: str | list[str]) -> BatchResult:
        urls = unique_lines(lines)
        repository = self.pipeline.repository
        run_id = repository.create_run(Job.now_iso(), num_submitted=len(urls))
        existing = repository.existing_urls()
        result = BatchResult()
        self.pacer.reset()

        try:
            for url in urls:
                mode = self.pipeline.triage.classify(url)
                if mode != HandlingMode.AUTO:
                    result.needs_manual.append(url)
                    logger.info("batch_item_needs_manual", extra={"extra_fields": {"url": url, "mode": mode.value}})
                    continue
                try:
                    DuplicateGuard.check(url, existing)
                    job = self.pipeline.store(self._analyze(url, existing))
                except IntakeError as exc:
                    result.failed += 1
                    result.errors.append(exc.to_report(url))
                    self.pipeline.record_failure(url, exc, run_id)
                    continue
                result.added += 1
                result.jobs.append(job)
                existing |= DuplicateGuard.urls_of([job])
        finally:
            counts = result.counts()
            repository.finish_run(run_id, Job.now_iso(), counts)
            logger.info("batch_completed", extra={"extra_fields": {"run_id": run_id, **counts}})
        return result

    def _analyze(self, url: str, existing: set[str]) -> Job:
        # The delay runs from the end of the previous call, retries included.
        self.pacer.wait()
        try:
            return self.pipeline.analyze_url(url, existing_urls=existing)
        finally:
            self.pacer.mark()
