from __future__ import annotations

import pytest

from jobintake.core.errors import DuplicateUrlError
from jobintake.dedupe.service import DuplicateGuard

from fakes import mkjob


def test_exact_identity_only() -> None:
    existing = {"https://acme.example/job/123"}
    assert DuplicateGuard.is_duplicate("https://acme.example/job/123", existing)
    assert not DuplicateGuard.is_duplicate("https://acme.example/job/123/", existing)
    assert not DuplicateGuard.is_duplicate("https://ACME.example/job/123", existing)
    assert not DuplicateGuard.is_duplicate("https://acme.example/job/123?a=1", existing)


def test_check_raises_duplicate_error() -> None:
    with pytest.raises(DuplicateUrlError) as excinfo:
        DuplicateGuard.check("https://acme.example/job/123", {"https://acme.example/job/123"})
    report = excinfo.value.to_report("https://acme.example/job/123")
    assert report.error_kind == "duplicate_url"
    assert report.can_retry_manually is False


def test_urls_of_includes_direct_urls() -> None:
    job = mkjob("j1", "https://board.example/1", direct_url="https://acme.example/apply/1")
    assert DuplicateGuard.urls_of([job]) == {"https://board.example/1", "https://acme.example/apply/1"}
