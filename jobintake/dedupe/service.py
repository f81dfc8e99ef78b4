from __future__ import annotations

from collections.abc import Iterable

from jobintake.core.errors import DuplicateUrlError
from jobintake.core.models import Job


class DuplicateGuard:
    """Exact-match URL guard; no trailing-slash or query normalization."""

    @staticmethod
    def is_duplicate(candidate_url: str, existing_urls: set[str]) -> bool:
        return candidate_url in existing_urls

    @classmethod
    def check(cls, candidate_url: str, existing_urls: set[str]) -> None:
        if cls.is_duplicate(candidate_url, existing_urls):
            raise DuplicateUrlError()

    @staticmethod
    def urls_of(jobs: Iterable[Job]) -> set[str]:
        urls: set[str] = set()
        for job in jobs:
            urls.add(job.url)
            if job.direct_url:
                urls.add(job.direct_url)
        return urls
