"""Admin CRUD for the course hierarchy.

Every route sits behind ``require_admin``. Unique slugs and titles are
checked up front for a readable 409; the database constraints remain the
last line and an ``IntegrityError`` is reported the same way.
"""

import logging
import math
from typing import Callable, List, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from codedex.api.dependencies import get_db, require_admin
from codedex.crud import course_crud
from codedex.models.course.chapter_model import Chapter
from codedex.models.course.course_model import Course
from codedex.models.course.exercise_model import Exercise
from codedex.schemas.course import course_schema

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])

T = TypeVar("T")

MAX_PAGE_SIZE = 100


def _conflict(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


def _not_found(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def _write(db: Session, operation: Callable[[], T], conflict_detail: str) -> T:
    try:
        return operation()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Integrity error on admin write: %s", exc.orig)
        raise _conflict(conflict_detail) from exc
    except SQLAlchemyError:
        db.rollback()
        raise


def _get_course_or_404(db: Session, course_id: str) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise _not_found("Course not found")
    return course


def _get_chapter_or_404(db: Session, course_id: str, chapter_id: str) -> Chapter:
    chapter = course_crud.get_chapter(db, course_id, chapter_id)
    if chapter is None:
        raise _not_found("Chapter not found")
    return chapter


def _get_exercise_or_404(db: Session, course_id: str, chapter_id: str, exercise_id: str) -> Exercise:
    _get_chapter_or_404(db, course_id, chapter_id)
    exercise = course_crud.get_exercise(db, chapter_id, exercise_id)
    if exercise is None:
        raise _not_found("Exercise not found")
    return exercise


def _course_conflict_detail(field: str) -> str:
    return f"A course with this {field} already exists"


# --- Courses ---
@router.get("/courses", response_model=course_schema.CoursePage)
def list_courses(
    skip: int = Query(0, ge=0),
    take: int = Query(10),
    db: Session = Depends(get_db),
):
    take = min(max(take, 1), MAX_PAGE_SIZE)
    courses, total = course_crud.list_courses(db, skip=skip, take=take)
    return {
        "data": courses,
        "pagination": {
            "total": total,
            "skip": skip,
            "take": take,
            "totalPages": math.ceil(total / take),
            "currentPage": skip // take + 1,
        },
    }


@router.post("/courses", response_model=course_schema.CourseOut, status_code=status.HTTP_201_CREATED)
def create_course(payload: course_schema.CourseIn, db: Session = Depends(get_db)):
    field = course_crud.find_course_conflict(db, title=payload.title, slug=payload.slug)
    if field:
        raise _conflict(_course_conflict_detail(field))

    course = _write(db, lambda: course_crud.create_course(db, payload), "A course with this slug or title already exists")
    logger.info("Course %s created", course.slug)
    return course


@router.get("/courses/{course_id}", response_model=course_schema.CourseOut)
def read_course(course_id: str, db: Session = Depends(get_db)):
    return _get_course_or_404(db, course_id)


@router.put("/courses/{course_id}", response_model=course_schema.CourseOut)
def update_course(course_id: str, payload: course_schema.CourseIn, db: Session = Depends(get_db)):
    course = _get_course_or_404(db, course_id)
    field = course_crud.find_course_conflict(db, title=payload.title, slug=payload.slug, exclude_id=course.id)
    if field:
        raise _conflict(_course_conflict_detail(field))

    return _write(db, lambda: course_crud.update_course(db, course, payload), "A course with this slug or title already exists")


@router.delete("/courses/{course_id}")
def delete_course(course_id: str, db: Session = Depends(get_db)):
    course = _get_course_or_404(db, course_id)
    course_crud.delete_instance(db, course)
    logger.info("Course %s deleted", course_id)
    return {"message": "Course deleted successfully"}


# --- Chapters ---
@router.get("/courses/{course_id}/chapters", response_model=List[course_schema.ChapterOut])
def list_chapters(course_id: str, db: Session = Depends(get_db)):
    _get_course_or_404(db, course_id)
    return course_crud.list_chapters(db, course_id)


@router.post(
    "/courses/{course_id}/chapters",
    response_model=course_schema.ChapterOut,
    status_code=status.HTTP_201_CREATED,
)
def create_chapter(course_id: str, payload: course_schema.ChapterIn, db: Session = Depends(get_db)):
    _get_course_or_404(db, course_id)
    if course_crud.chapter_slug_taken(db, course_id, payload.slug):
        raise _conflict("A chapter with this slug already exists in this course")

    return _write(
        db,
        lambda: course_crud.create_chapter(db, course_id, payload),
        "A chapter with this slug already exists in this course",
    )


@router.get("/courses/{course_id}/chapters/{chapter_id}", response_model=course_schema.ChapterOut)
def read_chapter(course_id: str, chapter_id: str, db: Session = Depends(get_db)):
    return _get_chapter_or_404(db, course_id, chapter_id)


@router.put("/courses/{course_id}/chapters/{chapter_id}", response_model=course_schema.ChapterOut)
def update_chapter(
    course_id: str,
    chapter_id: str,
    payload: course_schema.ChapterIn,
    db: Session = Depends(get_db),
):
    chapter = _get_chapter_or_404(db, course_id, chapter_id)
    if course_crud.chapter_slug_taken(db, course_id, payload.slug, exclude_id=chapter.id):
        raise _conflict("A chapter with this slug already exists in this course")

    return _write(
        db,
        lambda: course_crud.update_chapter(db, chapter, payload),
        "A chapter with this slug already exists in this course",
    )


@router.delete("/courses/{course_id}/chapters/{chapter_id}")
def delete_chapter(course_id: str, chapter_id: str, db: Session = Depends(get_db)):
    chapter = _get_chapter_or_404(db, course_id, chapter_id)
    course_crud.delete_instance(db, chapter)
    return {"message": "Chapter deleted successfully"}


# --- Exercises ---
@router.get(
    "/courses/{course_id}/chapters/{chapter_id}/exercises",
    response_model=List[course_schema.ExerciseOut],
)
def list_exercises(course_id: str, chapter_id: str, db: Session = Depends(get_db)):
    _get_chapter_or_404(db, course_id, chapter_id)
    return course_crud.list_exercises(db, chapter_id)


@router.post(
    "/courses/{course_id}/chapters/{chapter_id}/exercises",
    response_model=course_schema.ExerciseOut,
    status_code=status.HTTP_201_CREATED,
)
def create_exercise(
    course_id: str,
    chapter_id: str,
    payload: course_schema.ExerciseIn,
    db: Session = Depends(get_db),
):
    _get_chapter_or_404(db, course_id, chapter_id)
    if course_crud.exercise_slug_taken(db, payload.slug):
        raise _conflict("An exercise with this slug already exists")

    exercise = _write(
        db,
        lambda: course_crud.create_exercise(db, chapter_id, payload),
        "An exercise with this slug already exists",
    )
    logger.info("Exercise %s created (%s XP)", exercise.slug, exercise.xp_value)
    return exercise


@router.get(
    "/courses/{course_id}/chapters/{chapter_id}/exercises/{exercise_id}",
    response_model=course_schema.ExerciseOut,
)
def read_exercise(course_id: str, chapter_id: str, exercise_id: str, db: Session = Depends(get_db)):
    return _get_exercise_or_404(db, course_id, chapter_id, exercise_id)


@router.put(
    "/courses/{course_id}/chapters/{chapter_id}/exercises/{exercise_id}",
    response_model=course_schema.ExerciseOut,
)
def update_exercise(
    course_id: str,
    chapter_id: str,
    exercise_id: str,
    payload: course_schema.ExerciseIn,
    db: Session = Depends(get_db),
):
    exercise = _get_exercise_or_404(db, course_id, chapter_id, exercise_id)
    if course_crud.exercise_slug_taken(db, payload.slug, exclude_id=exercise.id):
        raise _conflict("An exercise with this slug already exists")

    return _write(
        db,
        lambda: course_crud.update_exercise(db, exercise, payload),
        "An exercise with this slug already exists",
    )


@router.delete("/courses/{course_id}/chapters/{chapter_id}/exercises/{exercise_id}")
def delete_exercise(course_id: str, chapter_id: str, exercise_id: str, db: Session = Depends(get_db)):
    exercise = _get_exercise_or_404(db, course_id, chapter_id, exercise_id)
    course_crud.delete_instance(db, exercise)
    return {"message": "Exercise deleted successfully"}
