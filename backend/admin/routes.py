from fastapi import APIRouter, Depends

from backend.context import AppContext, get_context

router = APIRouter()


@router.get("/meetings")
def list_meetings(ctx: AppContext = Depends(get_context)):
    return [meeting.model_dump(mode="json") for meeting in ctx.repository.list_meetings()]


@router.get("/meetings/{meeting_id}")
def get_meeting(meeting_id: str, ctx: AppContext = Depends(get_context)):
    return ctx.repository.require_meeting(meeting_id).model_dump(mode="json")
