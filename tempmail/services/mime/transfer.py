from __future__ import annotations

import base64
import binascii
import re

from tempmail.services.mime.charset import clean_text, decode_bytes, has_raw_bytes, wire_bytes
from tempmail.services.mime.types import Decoded, ParserConfig

_WHITESPACE_RE = re.compile(r"\s+")
_SOFT_BREAK_RE = re.compile(r"=\r?\n")
_HEX_DIGITS = "0123456789abcdefABCDEF"
_HEX_PAIRS = frozenset(a + b for a in _HEX_DIGITS for b in _HEX_DIGITS)


class TransferDecodeError(ValueError):
    pass


def decode_base64(text: str) -> bytes:
    data = _WHITESPACE_RE.sub("", text).rstrip("=")
    # Missing padding is tolerated; a dangling single character is not.
    if len(data) % 4 == 1:
        raise TransferDecodeError("base64: truncated input")
    data += "=" * (-len(data) % 4)
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise TransferDecodeError(f"base64: {e}") from e


def decode_quoted_printable(text: str) -> bytes:
    cleaned = _SOFT_BREAK_RE.sub("", text)
    out = bytearray()
    i = 0
    n = len(cleaned)
    while i < n:
        ch = cleaned[i]
        if ch == "=" and i + 2 < n and cleaned[i + 1 : i + 3] in _HEX_PAIRS:
            out.append(int(cleaned[i + 1 : i + 3], 16))
            i += 3
            continue
        out += wire_bytes(ch)
        i += 1
    return bytes(out)


def _encoding_kind(transfer_encoding: str | None) -> str:
    encoding = (transfer_encoding or "").lower()
    if "base64" in encoding:
        return "base64"
    if "quoted-printable" in encoding:
        return "quoted-printable"
    return "identity"


def decode_content(
    body: str,
    transfer_encoding: str | None,
    charset: str | None,
    config: ParserConfig,
) -> Decoded[str]:
    if not body:
        return Decoded("")

    kind = _encoding_kind(transfer_encoding)
    if kind == "identity":
        if not has_raw_bytes(body):
            return Decoded(body)
        # 8bit body that is not UTF-8: recover the bytes, honour the charset.
        return decode_bytes(wire_bytes(body), charset, config)

    try:
        if kind == "base64":
            data = decode_base64(body)
        else:
            data = decode_quoted_printable(body)
    except TransferDecodeError as e:
        return Decoded.fallback(clean_text(body), str(e))
    return decode_bytes(data, charset, config)


def decode_binary(body: str, transfer_encoding: str | None) -> Decoded[bytes]:
    kind = _encoding_kind(transfer_encoding)
    if kind == "base64":
        try:
            return Decoded(decode_base64(body))
        except TransferDecodeError as e:
            return Decoded.fallback(wire_bytes(body), str(e))
    if kind == "quoted-printable":
        # Round-trips through UTF-8 text, so non-UTF-8 binary is not preserved.
        data = decode_quoted_printable(body)
        text = data.decode("utf-8", errors="replace")
        content = text.encode("utf-8")
        if content != data:
            return Decoded.fallback(content, "quoted-printable: binary payload is not utf-8")
        return Decoded(content)
    return Decoded(wire_bytes(body))
