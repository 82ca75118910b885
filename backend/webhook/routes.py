from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from backend.context import AppContext, get_context
from backend.errors import ValidationError

router = APIRouter()


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as exc:
        raise ValidationError("Webhook body is not valid JSON") from exc


@router.post("/recall")
async def recall_webhook(
    request: Request,
    meeting_id: str | None = Query(default=None, alias="id"),
    ctx: AppContext = Depends(get_context),
):
    payload = await _json_body(request)
    return await ctx.webhooks.handle_recall_event(meeting_id, payload)


@router.post("/transcript")
async def transcript_webhook(
    request: Request,
    meeting_id: str | None = Query(default=None, alias="meetingId"),
    ctx: AppContext = Depends(get_context),
):
    payload = await _json_body(request)
    return await ctx.webhooks.handle_transcript_chunk(meeting_id, payload)
