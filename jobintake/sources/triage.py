from __future__ import annotations

from urllib.parse import parse_qs, urlparse

from jobintake.core.models import HandlingMode

# Job-board family whose pages resist automated reading.
QUICK_ENTRY_PATTERNS = ("indeed.com", "indeed.ca", "indeed.co")

# Applicant-tracking platforms known to block automated fetch.
MANUAL_ONLY_DOMAINS = (
    "workforcenow.adp.com",
    "workday.com",
    "myworkday",
    "taleo.net",
    "icims.com",
    "ultipro.com",
    "paycomonline.net",
    "lever.co",
    "greenhouse.io",
    "jobvite.com",
    "smartrecruiters.com",
)

TRACKING_KEY_PARAM = "jk"


class SourceClassifier:
    def __init__(
        self,
        quick_entry_patterns: tuple[str, ...] | list[str] = QUICK_ENTRY_PATTERNS,
        manual_only_domains: tuple[str, ...] | list[str] = MANUAL_ONLY_DOMAINS,
        tracking_key_param: str = TRACKING_KEY_PARAM,
    ) -> None:
        self.quick_entry_patterns = tuple(p.lower() for p in quick_entry_patterns)
        self.manual_only_domains = tuple(d.lower() for d in manual_only_domains)
        self.tracking_key_param = tracking_key_param

    @classmethod
    def from_config(cls, triage_cfg: dict) -> "SourceClassifier":
        return cls(
            quick_entry_patterns=triage_cfg.get("quick_entry_patterns", QUICK_ENTRY_PATTERNS),
            manual_only_domains=triage_cfg.get("manual_only_domains", MANUAL_ONLY_DOMAINS),
            tracking_key_param=triage_cfg.get("tracking_key_param", TRACKING_KEY_PARAM),
        )

    def is_quick_entry(self, url: str) -> bool:
        lowered = url.lower() if isinstance(url, str) else ""
        return bool(lowered) and any(p in lowered for p in self.quick_entry_patterns)

    def is_manual_only(self, url: str) -> bool:
        lowered = url.lower() if isinstance(url, str) else ""
        return bool(lowered) and any(d in lowered for d in self.manual_only_domains)

    def classify(self, url: str) -> HandlingMode:
        # Quick entry is checked first so it always wins over a manual-only match.
        if self.is_quick_entry(url):
            return HandlingMode.QUICK_ENTRY
        if self.is_manual_only(url):
            return HandlingMode.MANUAL_PASTE
        return HandlingMode.AUTO

    def extract_tracking_key(self, url: str) -> str | None:
        if not isinstance(url, str) or not url:
            return None
        try:
            query = parse_qs(urlparse(url).query)
        except ValueError:
            return None
        values = query.get(self.tracking_key_param)
        return values[0] if values and values[0] else None
