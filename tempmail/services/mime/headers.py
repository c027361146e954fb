from __future__ import annotations

import re

from tempmail.services.mime.charset import clean_text, decode_bytes
from tempmail.services.mime.transfer import (
    TransferDecodeError,
    decode_base64,
    decode_quoted_printable,
)
from tempmail.services.mime.types import Decoded, DecodeIssue, ParserConfig

_ENCODED_WORD_RE = re.compile(r"=\?([^?]+)\?([BQ])\?([^?]*)\?=", re.IGNORECASE)
_LINE_SPLIT_RE = re.compile(r"\r?\n")


def _decode_word(charset: str, encoding: str, text: str, config: ParserConfig) -> Decoded[str]:
    try:
        if encoding.upper() == "B":
            data = decode_base64(text)
        else:
            data = decode_quoted_printable(text.replace("_", " "))
    except TransferDecodeError as e:
        return Decoded.fallback("", str(e))
    return decode_bytes(data, charset, config)


def decode_encoded_words_detailed(value: str, config: ParserConfig) -> Decoded[str]:
    """Decode every RFC 2047 encoded-word in `value` independently.

    A token that fails to decode keeps its literal text; the result is then
    marked degraded with the first failure as its error.
    """
    if not value:
        return Decoded("")

    errors: list[str] = []

    def _replace(match: re.Match[str]) -> str:
        charset, encoding, text = match.groups()
        decoded = _decode_word(charset, encoding, text, config)
        if not decoded.ok:
            errors.append(f"{match.group(0)}: {decoded.error}")
            return match.group(0)
        return decoded.value

    result = clean_text(_ENCODED_WORD_RE.sub(_replace, value))
    if errors:
        return Decoded.fallback(result, errors[0])
    return Decoded(result)


def decode_encoded_words(value: str, config: ParserConfig) -> str:
    return decode_encoded_words_detailed(value, config).value


def parse_headers(
    block: str,
    config: ParserConfig,
    issues: list[DecodeIssue] | None = None,
) -> dict[str, str]:
    """Parse a raw header block into a lower-cased name -> decoded value dict.

    Folded lines are joined with a single space. Lines without a colon are
    skipped and leave the header being accumulated untouched. A repeated
    header keeps its last value.
    """
    headers: dict[str, str] = {}
    current_key = ""
    current_value = ""

    def _flush() -> None:
        if not current_key:
            return
        decoded = decode_encoded_words_detailed(current_value, config)
        if not decoded.ok and issues is not None:
            issues.append(DecodeIssue(stage="header", detail=f"{current_key}: {decoded.error}"))
        headers[current_key] = decoded.value

    for line in _LINE_SPLIT_RE.split(block):
        if line[:1].isspace():
            if current_key:
                current_value += " " + line.strip()
            continue
        colon = line.find(":")
        if colon <= 0:
            continue
        _flush()
        current_key = line[:colon].strip().lower()
        current_value = line[colon + 1 :].strip()

    _flush()
    return headers
