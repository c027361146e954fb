from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from uuid import uuid4

from tempmail.core.config import Settings, parser_config_from_settings
from tempmail.core.metrics import observe_inbound, observe_parsed_email
from tempmail.services.ingest.addresses import (
    extract_preview,
    is_allowed_domain,
    parse_email_address,
)
from tempmail.services.ingest.sanitize import sanitize_html
from tempmail.services.mime.parser import parse_email
from tempmail.services.mime.types import ParsedEmail
from tempmail.storage.base import MessageStore, StoredAttachment, StoredMessage

logger = logging.getLogger("tempmail.ingest")


def new_message_id() -> str:
    return uuid4().hex


def _log_event(event: str, **fields: object) -> None:
    logger.info(json.dumps({"event": event, **fields}, separators=(",", ":"), sort_keys=True))


def build_stored_message(
    parsed: ParsedEmail,
    *,
    message_id: str,
    address: str,
    received_at: datetime,
    settings: Settings,
) -> StoredMessage:
    sender = parse_email_address(parsed.headers.get("from"))
    return StoredMessage(
        message_id=message_id,
        address=address.strip().lower(),
        from_address=sender.email,
        from_name=sender.name,
        subject=parsed.subject or settings.NO_SUBJECT_PLACEHOLDER,
        text_content=parsed.text_content,
        html_content=parsed.html_content,
        html_sanitized=sanitize_html(parsed.html_content),
        preview=extract_preview(parsed.text_content, settings.PREVIEW_MAX_CHARS),
        raw_email=parsed.raw_email,
        has_attachments=parsed.has_attachments,
        received_at=received_at,
        attachments=[
            StoredAttachment(
                attachment_id=new_message_id(),
                filename=a.filename,
                content_type=a.content_type,
                size=a.size,
                content=a.content,
            )
            for a in parsed.attachments
        ],
    )


def handle_inbound_email(
    *,
    raw: bytes,
    recipient: str,
    store: MessageStore,
    settings: Settings,
    received_at: datetime | None = None,
) -> StoredMessage | None:
    """Parse and store one delivered message; None if the recipient is not ours."""
    recipient = (recipient or "").strip().lower()
    if not is_allowed_domain(recipient, settings.mail_domains):
        observe_inbound("rejected")
        _log_event("inbound.message.rejected", recipient=recipient, reason="domain not allowed")
        return None

    parsed = parse_email(raw, parser_config_from_settings(settings))
    observe_parsed_email(parsed)

    message = build_stored_message(
        parsed,
        message_id=new_message_id(),
        address=recipient,
        received_at=received_at or datetime.now(UTC),
        settings=settings,
    )
    store.save_message(message)
    observe_inbound("stored")
    _log_event(
        "inbound.message.stored",
        message_id=message.message_id,
        recipient=recipient,
        sender=message.from_address,
        attachment_count=len(message.attachments),
        decode_issue_count=len(parsed.issues),
    )
    return message
