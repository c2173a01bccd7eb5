from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SettingIn(BaseModel):
    key: str = Field(..., min_length=1)
    value: str
    label: Optional[str] = None
    type: Optional[str] = None
    group: Optional[str] = None


class SettingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    key: str
    value: str
    label: str
    type: str
    group: Optional[str] = None


class StaticPageIn(BaseModel):
    title: str
    content: str


class StaticPageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    slug: str
    title: str
    content: str
    updated_at: Optional[datetime] = None


class PlatformStats(BaseModel):
    totalUsers: int
    totalCompletedExercises: int
    totalSystemXP: int
