from __future__ import annotations

from functools import lru_cache

from tempmail.core.config import get_settings
from tempmail.storage.base import MessageStore
from tempmail.storage.local import LocalMessageStore
from tempmail.storage.memory import MemoryMessageStore


def build_message_store() -> MessageStore:
    settings = get_settings()
    if settings.MESSAGE_STORE == "local":
        return LocalMessageStore(settings.LOCAL_MESSAGE_DIR)
    if settings.MESSAGE_STORE == "memory":
        return MemoryMessageStore()
    raise ValueError(f"Unsupported MESSAGE_STORE: {settings.MESSAGE_STORE}")


@lru_cache(maxsize=1)
def get_message_store() -> MessageStore:
    # The in-memory store only works if every request sees the same instance.
    return build_message_store()
