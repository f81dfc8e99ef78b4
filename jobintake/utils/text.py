from __future__ import annotations

import re

FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*")


def strip_code_fences(text: str) -> str:
    """Remove Markdown code-fence markers (with or without a language tag)."""
    return FENCE_RE.sub("", text).strip()


def unique_lines(raw: str | list[str]) -> list[str]:
    """Trimmed, non-blank lines in input order with repeats dropped."""
    lines = raw.splitlines() if isinstance(raw, str) else raw
    seen: set[str] = set()
    result: list[str] = []
    for line in lines:
        value = line.strip()
        if not value or value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result
