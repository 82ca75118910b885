from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from backend.context import AppContext, get_context

router = APIRouter()


class JoinMeetingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    meeting_url: str | None = Field(default=None, alias="meetingUrl")
    bot_name: str | None = Field(default=None, alias="botName")


class LeaveMeetingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    meeting_id: str | None = Field(default=None, alias="meetingId")


@router.post("/join-meeting")
async def join_meeting(payload: JoinMeetingRequest, ctx: AppContext = Depends(get_context)):
    return await ctx.sessions.join_meeting(payload.meeting_url, payload.bot_name)


@router.post("/leave-meeting")
async def leave_meeting(payload: LeaveMeetingRequest, ctx: AppContext = Depends(get_context)):
    return await ctx.sessions.leave_meeting(payload.meeting_id)
