from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from tempmail.core.config import get_settings
from tempmail.schemas.inbound import InboundAcceptedResponse, InboundRejectedResponse
from tempmail.services.ingest.inbound import handle_inbound_email
from tempmail.storage.base import MessageStore, MessageStoreError
from tempmail.storage.factory import get_message_store

router = APIRouter(prefix="/inbound", tags=["inbound"])


@router.post(
    "/{address}",
    response_model=InboundAcceptedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_202_ACCEPTED: {"model": InboundRejectedResponse}},
)
async def inbound_deliver(
    address: str,
    request: Request,
    store: MessageStore = Depends(get_message_store),
) -> InboundAcceptedResponse | JSONResponse:
    settings = get_settings()
    raw = await request.body()
    if len(raw) > settings.INBOUND_MAX_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="message too large",
        )
    if not raw.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="empty message",
        )

    try:
        # Parsing is CPU-bound; keep it off the event loop.
        stored = await run_in_threadpool(
            handle_inbound_email,
            raw=raw,
            recipient=address,
            store=store,
            settings=settings,
        )
    except MessageStoreError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="message store unavailable",
        ) from e

    if stored is None:
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content=InboundRejectedResponse(detail="domain not allowed").model_dump(),
        )
    return InboundAcceptedResponse.model_validate(stored)
