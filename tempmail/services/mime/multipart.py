from __future__ import annotations

import re

from tempmail.services.mime.headers import parse_headers
from tempmail.services.mime.types import DecodeIssue, MimePart, ParserConfig

BLANK_LINE_RE = re.compile(r"\r?\n\r?\n")
_TRAILING_BREAK_RE = re.compile(r"\r?\n\Z")


def split_multipart(
    body: str,
    boundary: str,
    config: ParserConfig,
    issues: list[DecodeIssue] | None = None,
) -> list[MimePart]:
    """Split a multipart body on `--boundary` into header/body parts.

    The preamble is dropped. A section that starts with `--` (the
    `--boundary--` terminator and the epilogue after it) is skipped, as are
    sections without a blank line between headers and body.
    """
    parts: list[MimePart] = []
    sections = body.split(f"--{boundary}")

    for raw_section in sections[1:]:
        section = raw_section.strip()
        if not section or section.startswith("--"):
            continue
        sep = BLANK_LINE_RE.search(section)
        if sep is None:
            continue
        headers = parse_headers(section[: sep.start()], config, issues)
        part_body = _TRAILING_BREAK_RE.sub("", section[sep.end() :], count=1)
        parts.append(MimePart(headers=headers, body=part_body))

    return parts
