from __future__ import annotations

import base64

from tempmail.services.mime.headers import (
    decode_encoded_words,
    decode_encoded_words_detailed,
    parse_headers,
)
from tempmail.services.mime.types import DecodeIssue, ParserConfig


def _b_word(text: str, charset: str) -> str:
    payload = base64.b64encode(text.encode(charset)).decode("ascii")
    return f"=?{charset}?B?{payload}?="


def test_folded_header_is_joined_with_single_space(config: ParserConfig) -> None:
    assert parse_headers("Subject: Hello\r\n World", config) == {"subject": "Hello World"}
    assert parse_headers("Subject: Hello\n\t   World\n  again", config) == {
        "subject": "Hello World again"
    }


def test_keys_are_lowercased_and_values_trimmed(config: ParserConfig) -> None:
    headers = parse_headers("X-Custom-Header:   spaced value  \r\nFROM: a@b.test", config)
    assert headers == {"x-custom-header": "spaced value", "from": "a@b.test"}


def test_value_keeps_everything_after_first_colon(config: ParserConfig) -> None:
    headers = parse_headers("Date: Mon, 1 Jan 2024 10:20:30 +0000", config)
    assert headers["date"] == "Mon, 1 Jan 2024 10:20:30 +0000"


def test_line_without_colon_is_dropped_without_resetting_current_header(
    config: ParserConfig,
) -> None:
    block = "Subject: Hi\r\nthis line is junk\r\n there\r\nTo: x@y.test"
    assert parse_headers(block, config) == {"subject": "Hi there", "to": "x@y.test"}


def test_leading_colon_and_leading_continuation_are_ignored(config: ParserConfig) -> None:
    assert parse_headers(":no-name\r\n orphan continuation\r\nA: 1", config) == {"a": "1"}


def test_repeated_header_last_one_wins(config: ParserConfig) -> None:
    headers = parse_headers("Received: one\r\nReceived: two\r\nreceived: three", config)
    assert headers == {"received": "three"}


def test_no_headers_yields_empty_mapping(config: ParserConfig) -> None:
    assert parse_headers("", config) == {}
    assert parse_headers("just text\r\nmore text", config) == {}


def test_encoded_word_base64_and_q(config: ParserConfig) -> None:
    assert decode_encoded_words(_b_word("你好", "utf-8"), config) == "你好"
    assert decode_encoded_words("=?utf-8?Q?caf=C3=A9_au_lait?=", config) == "café au lait"
    assert decode_encoded_words("=?UTF-8?b?" + "aGk=" + "?=", config) == "hi"
    assert decode_encoded_words("=?iso-8859-1?q?na=EFve?=", config) == "naïve"


def test_mixed_charset_tokens_decode_independently(config: ParserConfig) -> None:
    value = _b_word("中文", "gb2312") + " " + "=?utf-8?Q?plain?="
    assert decode_encoded_words(value, config) == "中文 plain"


def test_plain_text_around_tokens_passes_through(config: ParserConfig) -> None:
    value = "Re: " + _b_word("报告", "gbk") + " (final)"
    assert decode_encoded_words(value, config) == "Re: 报告 (final)"
    assert decode_encoded_words("no tokens here =? nope", config) == "no tokens here =? nope"


def test_failing_token_keeps_literal_while_others_decode(config: ParserConfig) -> None:
    value = "=?utf-8?B?@@@@?= =?utf-8?Q?ok?="
    decoded = decode_encoded_words_detailed(value, config)
    assert decoded.value == "=?utf-8?B?@@@@?= ok"
    assert not decoded.ok

    # Bytes that are not valid in the declared charset also keep the literal.
    assert decode_encoded_words("=?utf-8?Q?=FF?=", config) == "=?utf-8?Q?=FF?="


def test_unknown_charset_in_token_decodes_as_utf8(config: ParserConfig) -> None:
    assert decode_encoded_words("=?x-unknown?Q?hi_there?=", config) == "hi there"


def test_header_values_are_decoded_and_issues_recorded(config: ParserConfig) -> None:
    issues: list[DecodeIssue] = []
    block = "Subject: " + _b_word("测试", "utf-8") + "\r\nX-Bad: =?utf-8?B?@@@@?="
    headers = parse_headers(block, config, issues)
    assert headers["subject"] == "测试"
    assert headers["x-bad"] == "=?utf-8?B?@@@@?="
    assert [i.stage for i in issues] == ["header"]
    assert issues[0].detail.startswith("x-bad:")


def test_raw_8bit_header_bytes_do_not_leak_surrogates(config: ParserConfig) -> None:
    block = b"Subject: caf\xe9".decode("utf-8", errors="surrogateescape")
    assert parse_headers(block, config) == {"subject": "caf�"}
