from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from tempmail.core.config import get_settings
from tempmail.storage.base import MessageStore, StoredAttachment, StoredMessage
from tempmail.storage.factory import build_message_store
from tempmail.storage.local import LocalMessageStore
from tempmail.storage.memory import MemoryMessageStore

_T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _message(message_id: str, *, address: str = "box@tmp.test", offset: int = 0) -> StoredMessage:
    return StoredMessage(
        message_id=message_id,
        address=address,
        from_address="a@example.com",
        from_name="A",
        subject=f"subject {message_id}",
        text_content="text",
        html_content="<p>text</p>",
        html_sanitized="<p>text</p>",
        preview="text",
        raw_email="Subject: x\r\n\r\ntext",
        has_attachments=True,
        received_at=_T0 + timedelta(minutes=offset),
        attachments=[
            StoredAttachment(
                attachment_id=f"{message_id}-att",
                filename="blob.bin",
                content_type="application/octet-stream",
                size=4,
                content=b"\x00\xff\x10\x80",
            )
        ],
    )


@pytest.fixture(params=["memory", "local"])
def store(request, tmp_path) -> MessageStore:
    if request.param == "local":
        return LocalMessageStore(str(tmp_path / "messages"))
    return MemoryMessageStore()


def test_save_get_round_trip(store: MessageStore) -> None:
    msg = _message("m1")
    store.save_message(msg)
    loaded = store.get_message(address="box@tmp.test", message_id="m1")
    assert loaded == msg
    assert loaded.attachments[0].content == b"\x00\xff\x10\x80"


def test_list_is_newest_first_and_limited(store: MessageStore) -> None:
    for i in range(3):
        store.save_message(_message(f"m{i}", offset=i))
    store.save_message(_message("other", address="else@tmp.test"))

    listed = store.list_messages(address="box@tmp.test")
    assert [m.message_id for m in listed] == ["m2", "m1", "m0"]
    assert [m.message_id for m in store.list_messages(address="box@tmp.test", limit=1)] == ["m2"]
    assert store.list_messages(address="nobody@tmp.test") == []


def test_delete(store: MessageStore) -> None:
    store.save_message(_message("m1"))
    assert store.delete_message(address="box@tmp.test", message_id="m1") is True
    assert store.get_message(address="box@tmp.test", message_id="m1") is None
    assert store.delete_message(address="box@tmp.test", message_id="m1") is False


def test_local_store_keeps_paths_inside_root(tmp_path) -> None:
    root = tmp_path / "messages"
    store = LocalMessageStore(str(root))
    store.save_message(_message("../../escape", address="../x@tmp.test"))
    written = [p for p in tmp_path.rglob("*") if p.is_file()]
    assert written
    assert all(root in p.parents for p in written)


def test_factory_selects_store(monkeypatch, tmp_path) -> None:
    assert isinstance(build_message_store(), MemoryMessageStore)

    monkeypatch.setenv("MESSAGE_STORE", "local")
    monkeypatch.setenv("LOCAL_MESSAGE_DIR", str(tmp_path / "local"))
    get_settings.cache_clear()
    assert isinstance(build_message_store(), LocalMessageStore)

    monkeypatch.setenv("MESSAGE_STORE", "s3")
    get_settings.cache_clear()
    with pytest.raises(ValueError, match="Unsupported MESSAGE_STORE"):
        build_message_store()
