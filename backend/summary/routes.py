from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from backend.context import AppContext, get_context

router = APIRouter()


class SummarizeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    meeting_id: str | None = Field(default=None, alias="meetingId")


@router.post("/summarize")
async def summarize(payload: SummarizeRequest, ctx: AppContext = Depends(get_context)):
    summary = await ctx.summaries.summarize_meeting(payload.meeting_id)
    return {"success": True, "summary": summary.model_dump(mode="json")}
