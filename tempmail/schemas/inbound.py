from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AttachmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    attachment_id: str
    filename: str
    content_type: str
    size: int


class InboundAcceptedResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    accepted: bool = True
    message_id: str
    address: str
    from_address: str
    subject: str
    preview: str
    has_attachments: bool
    received_at: datetime
    attachments: list[AttachmentOut]


class InboundRejectedResponse(BaseModel):
    accepted: bool = False
    detail: str
