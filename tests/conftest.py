from __future__ import annotations

import pytest

from tempmail.services.mime.types import ParserConfig

MAIL_DOMAIN = "tmp.test"


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch) -> None:
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("MAIL_DOMAINS", MAIL_DOMAIN)
    monkeypatch.setenv("MESSAGE_STORE", "memory")

    # Clear cached settings/stores so each test sees its own environment.
    from tempmail.core.config import get_settings
    from tempmail.storage.factory import get_message_store

    get_settings.cache_clear()
    get_message_store.cache_clear()
    yield
    get_settings.cache_clear()
    get_message_store.cache_clear()


@pytest.fixture()
def config() -> ParserConfig:
    return ParserConfig()
