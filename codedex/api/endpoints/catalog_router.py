from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from codedex.api.dependencies import get_db
from codedex.crud import course_crud
from codedex.schemas.course import course_schema

router = APIRouter()


@router.get("/courses", response_model=List[course_schema.CourseCatalogEntry])
def list_courses(db: Session = Depends(get_db)):
    return [
        course_schema.CourseCatalogEntry.model_validate(course).model_copy(update={"chapter_count": count})
        for course, count in course_crud.list_catalog(db)
    ]


@router.get("/exercises/{slug}", response_model=course_schema.ExerciseOut)
def read_exercise(slug: str, db: Session = Depends(get_db)):
    exercise = course_crud.get_exercise_by_slug(db, slug)
    if exercise is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exercise not found")
    return exercise
