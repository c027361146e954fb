from __future__ import annotations

import threading

from tempmail.storage.base import MessageStore, StoredMessage


class MemoryMessageStore(MessageStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_address: dict[str, dict[str, StoredMessage]] = {}

    def save_message(self, message: StoredMessage) -> None:
        with self._lock:
            self._by_address.setdefault(message.address, {})[message.message_id] = message

    def get_message(self, *, address: str, message_id: str) -> StoredMessage | None:
        with self._lock:
            return self._by_address.get(address.lower(), {}).get(message_id)

    def list_messages(self, *, address: str, limit: int = 50) -> list[StoredMessage]:
        with self._lock:
            messages = list(self._by_address.get(address.lower(), {}).values())
        messages.sort(key=lambda m: m.received_at, reverse=True)
        return messages[:limit]

    def delete_message(self, *, address: str, message_id: str) -> bool:
        with self._lock:
            return self._by_address.get(address.lower(), {}).pop(message_id, None) is not None
