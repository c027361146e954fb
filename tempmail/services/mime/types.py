from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Generic, TypeVar

T = TypeVar("T")

DEFAULT_CHARSETS: Mapping[str, str] = MappingProxyType(
    {
        "utf8": "utf-8",
        "usascii": "utf-8",
        "ascii": "utf-8",
        "gbk": "gbk",
        "gb2312": "gbk",
        "cp936": "gbk",
        "gb18030": "gb18030",
        "big5": "big5",
        "iso88591": "iso-8859-1",
        "latin1": "iso-8859-1",
        "windows1252": "cp1252",
        "cp1252": "cp1252",
    }
)


@dataclass(frozen=True)
class ParserConfig:
    max_depth: int = 10
    default_charset: str = "utf-8"
    charsets: Mapping[str, str] = field(default_factory=lambda: DEFAULT_CHARSETS)
    default_filename: str = "attachment"


@dataclass(frozen=True)
class Decoded(Generic[T]):
    """Outcome of one decode step.

    `ok` is False when the step degraded to a literal or lossy value instead
    of decoding cleanly; `value` is always usable either way.
    """

    value: T
    ok: bool = True
    error: str | None = None

    @classmethod
    def fallback(cls, value: T, error: str) -> Decoded[T]:
        return cls(value=value, ok=False, error=error)


@dataclass(frozen=True)
class DecodeIssue:
    stage: str  # header|body|attachment|boundary|depth
    detail: str


@dataclass(frozen=True)
class MimePart:
    headers: dict[str, str]
    body: str


@dataclass(frozen=True)
class Attachment:
    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class ParsedEmail:
    headers: dict[str, str]
    text_content: str = ""
    html_content: str = ""
    attachments: list[Attachment] = field(default_factory=list)
    raw_email: str = ""
    issues: list[DecodeIssue] = field(default_factory=list)

    @property
    def subject(self) -> str | None:
        return self.headers.get("subject")

    @property
    def has_attachments(self) -> bool:
        return len(self.attachments) > 0
