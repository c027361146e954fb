from __future__ import annotations

from urllib.parse import unquote_to_bytes

DEFAULT_CONTENT_TYPE = "text/plain"


def _split_params(value: str) -> list[str]:
    # Split on ';' outside double quotes, honouring backslash escapes.
    pieces: list[str] = []
    buf: list[str] = []
    in_quotes = False
    escaped = False
    for ch in value:
        if escaped:
            buf.append(ch)
            escaped = False
        elif ch == "\\" and in_quotes:
            buf.append(ch)
            escaped = True
        elif ch == '"':
            buf.append(ch)
            in_quotes = not in_quotes
        elif ch == ";" and not in_quotes:
            pieces.append("".join(buf))
            buf = []
        else:
            buf.append(ch)
    pieces.append("".join(buf))
    return pieces


def _unquote(raw: str) -> str:
    raw = raw.strip()
    if len(raw) >= 2 and raw[0] == raw[-1] == '"':
        out: list[str] = []
        escaped = False
        for ch in raw[1:-1]:
            if escaped:
                out.append(ch)
                escaped = False
            elif ch == "\\":
                escaped = True
            else:
                out.append(ch)
        return "".join(out)
    if raw.startswith('"'):
        # Unterminated quote: keep what follows it.
        return raw[1:]
    return raw.strip("'")


def _decode_extended(raw: str) -> str | None:
    # RFC 2231: charset'language'percent-encoded
    parts = raw.split("'", 2)
    if len(parts) != 3:
        return None
    charset, _language, encoded = parts
    try:
        return unquote_to_bytes(encoded).decode(charset or "us-ascii")
    except (LookupError, UnicodeDecodeError):
        return None


def parse_header_params(value: str | None) -> tuple[str, dict[str, str]]:
    """Split a structured header value into its main value and parameters.

    Parameter names are lower-cased, values keep their case. Plain values
    win over RFC 2231 extended (`name*=`) values only when the extended
    value cannot be decoded.
    """
    pieces = _split_params(value or "")
    main = pieces[0].strip().lower()
    params: dict[str, str] = {}
    extended: dict[str, str] = {}
    continuations: dict[str, list[tuple[int, str]]] = {}

    for piece in pieces[1:]:
        name, sep, raw = piece.partition("=")
        if not sep:
            continue
        name = name.strip().lower()
        if not name:
            continue
        if name.endswith("*") and name.count("*") == 1:
            decoded = _decode_extended(_unquote(raw))
            if decoded is not None:
                extended[name[:-1]] = decoded
            continue
        base, star, index = name.partition("*")
        if star and index.rstrip("*").isdigit():
            continuations.setdefault(base, []).append((int(index.rstrip("*")), _unquote(raw)))
            continue
        params[name] = _unquote(raw)

    for name, chunks in continuations.items():
        joined = "".join(chunk for _i, chunk in sorted(chunks))
        decoded = _decode_extended(joined) if "'" in joined else None
        params.setdefault(name, decoded if decoded is not None else joined)

    params.update(extended)
    return main, params


def primary_type(content_type: str | None) -> str:
    main, _params = parse_header_params(content_type)
    return main or DEFAULT_CONTENT_TYPE


def extract_charset(content_type: str | None) -> str | None:
    # None lets the decoder apply the configured default charset.
    _main, params = parse_header_params(content_type)
    return params.get("charset") or None


def extract_boundary(content_type: str | None) -> str | None:
    _main, params = parse_header_params(content_type)
    return params.get("boundary") or None


def extract_filename(disposition: str | None) -> str | None:
    _main, params = parse_header_params(disposition)
    return params.get("filename") or None
