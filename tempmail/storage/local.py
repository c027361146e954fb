from __future__ import annotations

import os
import re
import shutil
from datetime import datetime
from pathlib import Path

import orjson

from tempmail.storage.base import (
    MessageStore,
    MessageStoreError,
    StoredAttachment,
    StoredMessage,
)

_UNSAFE_SEGMENT_RE = re.compile(r"[^a-z0-9@._+-]")


def _safe_segment(value: str) -> str:
    segment = _UNSAFE_SEGMENT_RE.sub("_", value.lower()).lstrip(".")
    return segment or "_"


def _write_atomic(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with open(tmp_path, "wb") as f:
        f.write(data)
    os.replace(tmp_path, path)


class LocalMessageStore(MessageStore):
    """One JSON document per message, attachment bytes in sibling files."""

    def __init__(self, root_dir: str) -> None:
        self._root = Path(root_dir)
        self._root.mkdir(parents=True, exist_ok=True)

    def _message_path(self, address: str, message_id: str) -> Path:
        return self._root / _safe_segment(address) / f"{_safe_segment(message_id)}.json"

    def _attachment_dir(self, address: str, message_id: str) -> Path:
        return self._root / _safe_segment(address) / _safe_segment(message_id)

    def save_message(self, message: StoredMessage) -> None:
        doc = {
            "message_id": message.message_id,
            "address": message.address,
            "from_address": message.from_address,
            "from_name": message.from_name,
            "subject": message.subject,
            "text_content": message.text_content,
            "html_content": message.html_content,
            "html_sanitized": message.html_sanitized,
            "preview": message.preview,
            "raw_email": message.raw_email,
            "has_attachments": message.has_attachments,
            "received_at": message.received_at,
            "attachments": [
                {
                    "attachment_id": a.attachment_id,
                    "filename": a.filename,
                    "content_type": a.content_type,
                    "size": a.size,
                }
                for a in message.attachments
            ],
        }
        att_dir = self._attachment_dir(message.address, message.message_id)
        try:
            for att in message.attachments:
                _write_atomic(att_dir / f"{_safe_segment(att.attachment_id)}.bin", att.content)
            _write_atomic(
                self._message_path(message.address, message.message_id),
                orjson.dumps(doc, option=orjson.OPT_SORT_KEYS),
            )
        except (OSError, orjson.JSONEncodeError) as e:
            raise MessageStoreError(str(e)) from e

    def _load(self, path: Path) -> StoredMessage:
        try:
            doc = orjson.loads(path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as e:
            raise MessageStoreError(str(e)) from e

        att_dir = self._attachment_dir(doc["address"], doc["message_id"])
        attachments: list[StoredAttachment] = []
        for meta in doc.get("attachments") or []:
            blob_path = att_dir / f"{_safe_segment(meta['attachment_id'])}.bin"
            try:
                content = blob_path.read_bytes()
            except OSError as e:
                raise MessageStoreError(str(e)) from e
            attachments.append(StoredAttachment(content=content, **meta))

        return StoredMessage(
            message_id=doc["message_id"],
            address=doc["address"],
            from_address=doc["from_address"],
            from_name=doc["from_name"],
            subject=doc["subject"],
            text_content=doc["text_content"],
            html_content=doc["html_content"],
            html_sanitized=doc["html_sanitized"],
            preview=doc["preview"],
            raw_email=doc["raw_email"],
            has_attachments=doc["has_attachments"],
            received_at=datetime.fromisoformat(doc["received_at"]),
            attachments=attachments,
        )

    def get_message(self, *, address: str, message_id: str) -> StoredMessage | None:
        path = self._message_path(address, message_id)
        if not path.exists():
            return None
        return self._load(path)

    def list_messages(self, *, address: str, limit: int = 50) -> list[StoredMessage]:
        addr_dir = self._root / _safe_segment(address)
        if not addr_dir.is_dir():
            return []
        messages = [self._load(p) for p in addr_dir.glob("*.json")]
        messages.sort(key=lambda m: m.received_at, reverse=True)
        return messages[:limit]

    def delete_message(self, *, address: str, message_id: str) -> bool:
        path = self._message_path(address, message_id)
        if not path.exists():
            return False
        try:
            path.unlink()
            shutil.rmtree(self._attachment_dir(address, message_id), ignore_errors=True)
        except OSError as e:
            raise MessageStoreError(str(e)) from e
        return True
