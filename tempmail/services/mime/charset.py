from __future__ import annotations

import codecs
import re

from tempmail.services.mime.types import Decoded, ParserConfig

_NON_ALNUM_RE = re.compile(r"[^0-9a-zA-Z]")
FALLBACK_CODEC = "utf-8"


def normalize_label(label: str | None) -> str:
    return _NON_ALNUM_RE.sub("", label or "").lower()


def _codec_exists(codec: str) -> bool:
    try:
        codecs.lookup(codec)
    except LookupError:
        return False
    return True


def resolve_codec(label: str | None, config: ParserConfig) -> str:
    """Map a charset label to a Python codec name; never an unknown codec."""
    for codec in (config.charsets.get(normalize_label(label)), config.default_charset):
        if codec and _codec_exists(codec):
            return codec
    return FALLBACK_CODEC


def decode_bytes(data: bytes, label: str | None, config: ParserConfig) -> Decoded[str]:
    codec = resolve_codec(label, config)
    try:
        return Decoded(data.decode(codec))
    except UnicodeDecodeError as e:
        return Decoded.fallback(data.decode(codec, errors="replace"), f"{codec}: {e.reason}")


def has_raw_bytes(text: str) -> bool:
    """True when wire text carries bytes that were not valid UTF-8."""
    return any("\udc80" <= ch <= "\udcff" for ch in text)


def wire_bytes(text: str) -> bytes:
    try:
        return text.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError:
        # Lone surrogates outside the escape range only arrive via str input.
        return text.encode("utf-8", "replace")


def clean_text(text: str) -> str:
    if not has_raw_bytes(text):
        return text
    return wire_bytes(text).decode("utf-8", errors="replace")
