"""Pydantic schemas for the progress endpoints."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from codedex.models.progress.user_progress_model import ProgressStatus


class ProgressUpdateRequest(BaseModel):
    """Body of ``POST /progress/update``; camelCase keys kept for the frontend."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., min_length=1, alias="userId")
    exercise_slug: str = Field(..., min_length=1, alias="exerciseSlug")


class ProgressUpdateResponse(BaseModel):
    message: str
    exercise_id: str
    status: ProgressStatus
    completed_at: Optional[datetime] = None
    total_xp: int


class ProgressSummaryResponse(BaseModel):
    total_xp: int = 0
    completed_count: int = 0
    completed_exercises: List[str] = Field(default_factory=list)
