from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ChatSendRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: str = Field(...)
    screen_image: Optional[str] = Field(default=None, description="Base64 data URL of the current frame")
    canvas_state: Optional[Dict[str, Any]] = Field(default=None)
    analysis_type: Optional[str] = Field(default=None)

    @model_validator(mode="before")
    @classmethod
    def _coerce_message(cls, data: Any) -> Any:
        if isinstance(data, dict) and "message" in data:
            data["message"] = "" if data["message"] is None else str(data["message"])
        return data


class ScreenAnalysisRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    screen_image: str = Field(..., min_length=1)
    canvas_state: Optional[Dict[str, Any]] = Field(default=None)
    analysis_type: Optional[str] = Field(default=None)


class ChatSendResponse(BaseModel):
    ok: bool = True
    response: str
    is_error: bool = False
    turn_count: int
    summary_count: int
    capture_error: Optional[str] = None


class ScreenAnalysisResponse(BaseModel):
    ok: bool = True
    analysis: str
    turn_count: int


class TurnPayload(BaseModel):
    user_message: str
    ai_response: str
    created_at: datetime
    has_screen_snapshot: bool = False
    screen_analysis: Optional[str] = None
    is_error: bool = False


class SummaryPayload(BaseModel):
    round_number: int
    created_at: datetime
    text: str
    covered_turns: List[TurnPayload] = Field(default_factory=list)


class ChatHistoryResponse(BaseModel):
    turns: List[TurnPayload] = Field(default_factory=list)


class ChatSummariesResponse(BaseModel):
    summaries: List[SummaryPayload] = Field(default_factory=list)


class ChatHistoryClearResponse(BaseModel):
    ok: bool = True


class AnalysisTypesResponse(BaseModel):
    analysis_types: List[str] = Field(default_factory=list)
