from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class StoredAttachment:
    attachment_id: str
    filename: str
    content_type: str
    size: int
    content: bytes


@dataclass(frozen=True)
class StoredMessage:
    message_id: str
    address: str
    from_address: str
    from_name: str
    subject: str
    text_content: str
    html_content: str
    html_sanitized: str | None
    preview: str
    raw_email: str
    has_attachments: bool
    received_at: datetime
    attachments: list[StoredAttachment] = field(default_factory=list)


class MessageStoreError(RuntimeError):
    pass


class MessageStore:
    def save_message(self, message: StoredMessage) -> None:  # pragma: no cover
        raise NotImplementedError

    def get_message(
        self, *, address: str, message_id: str
    ) -> StoredMessage | None:  # pragma: no cover
        raise NotImplementedError

    def list_messages(
        self, *, address: str, limit: int = 50
    ) -> list[StoredMessage]:  # pragma: no cover
        raise NotImplementedError

    def delete_message(self, *, address: str, message_id: str) -> bool:  # pragma: no cover
        raise NotImplementedError
