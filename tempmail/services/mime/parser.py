from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field

from tempmail.services.mime.headers import decode_encoded_words_detailed, parse_headers
from tempmail.services.mime.html import html_to_text
from tempmail.services.mime.multipart import BLANK_LINE_RE, split_multipart
from tempmail.services.mime.params import (
    DEFAULT_CONTENT_TYPE,
    extract_boundary,
    extract_charset,
    extract_filename,
    primary_type,
)
from tempmail.services.mime.transfer import decode_binary, decode_content
from tempmail.services.mime.types import (
    Attachment,
    DecodeIssue,
    MimePart,
    ParsedEmail,
    ParserConfig,
)

logger = logging.getLogger("tempmail.mime")


@dataclass
class _Bodies:
    text: str = ""
    html: str = ""
    attachments: list[Attachment] = field(default_factory=list)


def split_message(wire: str) -> tuple[str, str]:
    sep = BLANK_LINE_RE.search(wire)
    if sep is None:
        return wire, ""
    return wire[: sep.start()], wire[sep.end() :]


def _decode_text(
    body: str,
    *,
    transfer_encoding: str,
    content_type: str,
    config: ParserConfig,
    issues: list[DecodeIssue],
) -> str:
    decoded = decode_content(body, transfer_encoding, extract_charset(content_type), config)
    if not decoded.ok:
        issues.append(DecodeIssue(stage="body", detail=decoded.error or "decode failed"))
    return decoded.value


def _build_attachment(
    part: MimePart,
    *,
    content_type: str,
    disposition: str,
    transfer_encoding: str,
    config: ParserConfig,
    issues: list[DecodeIssue],
) -> Attachment:
    filename = config.default_filename
    raw_filename = extract_filename(disposition)
    if raw_filename:
        decoded_name = decode_encoded_words_detailed(raw_filename, config)
        if not decoded_name.ok:
            issues.append(DecodeIssue(stage="header", detail=f"filename: {decoded_name.error}"))
        filename = decoded_name.value or config.default_filename

    content = decode_binary(part.body, transfer_encoding)
    if not content.ok:
        issues.append(DecodeIssue(stage="attachment", detail=f"{filename}: {content.error}"))

    return Attachment(
        filename=filename,
        content_type=primary_type(content_type),
        content=content.value,
    )


def _collect_parts(
    parts: list[MimePart],
    bodies: _Bodies,
    *,
    depth: int,
    config: ParserConfig,
    issues: list[DecodeIssue],
) -> None:
    for part in parts:
        content_type = part.headers.get("content-type") or DEFAULT_CONTENT_TYPE
        content_type_lc = content_type.lower()
        disposition = part.headers.get("content-disposition") or ""
        transfer_encoding = part.headers.get("content-transfer-encoding") or ""

        if "attachment" in disposition.lower():
            bodies.attachments.append(
                _build_attachment(
                    part,
                    content_type=content_type,
                    disposition=disposition,
                    transfer_encoding=transfer_encoding,
                    config=config,
                    issues=issues,
                )
            )
        elif "text/html" in content_type_lc:
            bodies.html = _decode_text(
                part.body,
                transfer_encoding=transfer_encoding,
                content_type=content_type,
                config=config,
                issues=issues,
            )
        elif "text/plain" in content_type_lc:
            bodies.text = _decode_text(
                part.body,
                transfer_encoding=transfer_encoding,
                content_type=content_type,
                config=config,
                issues=issues,
            )
        elif "multipart" in content_type_lc:
            if depth >= config.max_depth:
                issues.append(
                    DecodeIssue(stage="depth", detail=f"nesting deeper than {config.max_depth}")
                )
                bodies.text = _decode_text(
                    part.body,
                    transfer_encoding=transfer_encoding,
                    content_type=content_type,
                    config=config,
                    issues=issues,
                )
                continue
            boundary = extract_boundary(content_type)
            if boundary is None:
                issues.append(
                    DecodeIssue(stage="boundary", detail=f"nested {primary_type(content_type)}")
                )
                continue
            _collect_parts(
                split_multipart(part.body, boundary, config, issues),
                bodies,
                depth=depth + 1,
                config=config,
                issues=issues,
            )


def parse_email(raw: bytes | str, config: ParserConfig | None = None) -> ParsedEmail:
    """Decode a raw RFC 5322 message into headers, text, HTML and attachments.

    Never raises on malformed input: fragments that cannot be decoded keep
    their literal form and are listed in `ParsedEmail.issues`.
    """
    config = config or ParserConfig()
    if isinstance(raw, (bytes, bytearray)):
        data = bytes(raw)
        wire = data.decode("utf-8", errors="surrogateescape")
        raw_email = data.decode("utf-8", errors="replace")
    else:
        wire = raw
        raw_email = raw

    issues: list[DecodeIssue] = []
    header_block, body = split_message(wire)
    headers = parse_headers(header_block, config, issues)

    content_type = headers.get("content-type") or DEFAULT_CONTENT_TYPE
    content_type_lc = content_type.lower()
    transfer_encoding = headers.get("content-transfer-encoding") or ""
    bodies = _Bodies()

    if "multipart" in content_type_lc:
        boundary = extract_boundary(content_type)
        if boundary is None:
            # Without a boundary the body cannot be split; nothing is extracted.
            issues.append(DecodeIssue(stage="boundary", detail=primary_type(content_type)))
        else:
            _collect_parts(
                split_multipart(body, boundary, config, issues),
                bodies,
                depth=1,
                config=config,
                issues=issues,
            )
    elif "text/html" in content_type_lc:
        bodies.html = _decode_text(
            body,
            transfer_encoding=transfer_encoding,
            content_type=content_type,
            config=config,
            issues=issues,
        )
    else:
        bodies.text = _decode_text(
            body,
            transfer_encoding=transfer_encoding,
            content_type=content_type,
            config=config,
            issues=issues,
        )

    text_content = bodies.text
    if not text_content and bodies.html:
        text_content = html_to_text(bodies.html)

    for issue in issues:
        logger.debug(
            json.dumps(
                {"event": "mime.decode.degraded", "stage": issue.stage, "detail": issue.detail},
                separators=(",", ":"),
                sort_keys=True,
            )
        )

    return ParsedEmail(
        headers=headers,
        text_content=text_content,
        html_content=bodies.html,
        attachments=bodies.attachments,
        raw_email=raw_email,
        issues=issues,
    )
