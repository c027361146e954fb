from __future__ import annotations

import re
from dataclasses import dataclass

_ADDRESS_RE = re.compile(r'^(?:"?([^"<]*?)"?\s*<)?([^<>]+?)>?$')
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class MailAddress:
    name: str
    email: str


def parse_email_address(value: str | None) -> MailAddress:
    """Split `"Name" <user@host>` or a bare address into name and email."""
    if not value:
        return MailAddress(name="", email="")
    m = _ADDRESS_RE.match(value.strip())
    if m is None:
        return MailAddress(name="", email=value.strip().lower())
    return MailAddress(
        name=(m.group(1) or "").strip(),
        email=(m.group(2) or "").strip().lower(),
    )


def is_allowed_domain(address: str | None, domains: list[str]) -> bool:
    if not address:
        return False
    lower = address.strip().lower()
    return any(lower.endswith(f"@{domain}") for domain in domains)


def extract_preview(text: str | None, max_chars: int = 150) -> str:
    if not text:
        return ""
    cleaned = _WHITESPACE_RE.sub(" ", text).strip()
    if len(cleaned) <= max_chars:
        return cleaned
    return cleaned[:max_chars] + "..."
