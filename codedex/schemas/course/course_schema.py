from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Courses ---
class CourseIn(BaseModel):
    title: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    description: Optional[str] = None
    image_url: Optional[str] = None


class CourseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Pagination(BaseModel):
    total: int
    skip: int
    take: int
    totalPages: int
    currentPage: int


class CoursePage(BaseModel):
    data: List[CourseOut]
    pagination: Pagination


class CourseCatalogEntry(CourseOut):
    chapter_count: int = 0


# --- Chapters ---
class ChapterIn(BaseModel):
    title: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    description: Optional[str] = None
    order: int


class ChapterOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    course_id: str
    title: str
    slug: str
    description: Optional[str] = None
    order: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --- Exercises ---
class ExerciseIn(BaseModel):
    title: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    description: Optional[str] = None
    instructions: Optional[str] = None
    initial_code: Optional[str] = None
    expected_output: Optional[str] = None
    xp_value: int = Field(..., ge=0)
    order: int


class ExerciseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    chapter_id: str
    title: str
    slug: str
    description: Optional[str] = None
    instructions: Optional[str] = None
    initial_code: Optional[str] = None
    expected_output: Optional[str] = None
    xp_value: Optional[int] = None
    order: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
