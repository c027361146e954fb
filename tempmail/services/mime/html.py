from __future__ import annotations

import re

_STYLE_RE = re.compile(r"<style[^>]*>[\s\S]*?</style>", re.IGNORECASE)
_SCRIPT_RE = re.compile(r"<script[^>]*>[\s\S]*?</script>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_ENTITY_RE = re.compile(r"&(nbsp|amp|lt|gt|quot);")
_WHITESPACE_RE = re.compile(r"\s+")

_ENTITIES = {
    "nbsp": " ",
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
}


def html_to_text(html: str | None) -> str:
    """Rough plain-text rendering of an HTML body, used when no text part exists."""
    if not html:
        return ""
    text = _STYLE_RE.sub("", html)
    text = _SCRIPT_RE.sub("", text)
    text = _TAG_RE.sub(" ", text)
    # Single pass: "&amp;lt;" becomes "&lt;", not "<".
    text = _ENTITY_RE.sub(lambda m: _ENTITIES[m.group(1)], text)
    return _WHITESPACE_RE.sub(" ", text).strip()
