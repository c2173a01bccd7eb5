"""Persistence helpers for the course hierarchy (course > chapter > exercise)."""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from codedex.models.course.chapter_model import Chapter
from codedex.models.course.course_model import Course
from codedex.models.course.exercise_model import Exercise
from codedex.schemas.course.course_schema import ChapterIn, CourseIn, ExerciseIn


# --- Courses ---
def list_courses(db: Session, *, skip: int = 0, take: int = 10) -> tuple[list[Course], int]:
    total = db.query(func.count(Course.id)).scalar() or 0
    courses = (
        db.query(Course)
        .order_by(Course.created_at.desc(), Course.id)
        .offset(skip)
        .limit(take)
        .all()
    )
    return courses, total


def list_catalog(db: Session) -> list[tuple[Course, int]]:
    """Every course with its number of chapters, alphabetically."""
    rows = (
        db.query(Course, func.count(Chapter.id))
        .outerjoin(Chapter, Chapter.course_id == Course.id)
        .group_by(Course.id)
        .order_by(Course.title.asc())
        .all()
    )
    return [(course, count) for course, count in rows]


def find_course_conflict(db: Session, *, title: str, slug: str, exclude_id: str | None = None) -> Optional[str]:
    """Return which unique field (``"slug"`` or ``"title"``) is already taken, if any."""
    for field, value in (("slug", slug), ("title", title)):
        query = db.query(Course).filter(getattr(Course, field) == value)
        if exclude_id is not None:
            query = query.filter(Course.id != exclude_id)
        if query.first() is not None:
            return field
    return None


def create_course(db: Session, payload: CourseIn) -> Course:
    course = Course(**payload.model_dump())
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


def update_course(db: Session, course: Course, payload: CourseIn) -> Course:
    for field, value in payload.model_dump().items():
        setattr(course, field, value)
    db.commit()
    db.refresh(course)
    return course


def delete_instance(db: Session, instance) -> None:
    db.delete(instance)
    db.commit()


# --- Chapters ---
def get_chapter(db: Session, course_id: str, chapter_id: str) -> Optional[Chapter]:
    return db.query(Chapter).filter_by(id=chapter_id, course_id=course_id).first()


def list_chapters(db: Session, course_id: str) -> list[Chapter]:
    return db.query(Chapter).filter_by(course_id=course_id).order_by(Chapter.order.asc()).all()


def chapter_slug_taken(db: Session, course_id: str, slug: str, exclude_id: str | None = None) -> bool:
    query = db.query(Chapter).filter_by(course_id=course_id, slug=slug)
    if exclude_id is not None:
        query = query.filter(Chapter.id != exclude_id)
    return query.first() is not None


def create_chapter(db: Session, course_id: str, payload: ChapterIn) -> Chapter:
    chapter = Chapter(course_id=course_id, **payload.model_dump())
    db.add(chapter)
    db.commit()
    db.refresh(chapter)
    return chapter


def update_chapter(db: Session, chapter: Chapter, payload: ChapterIn) -> Chapter:
    for field, value in payload.model_dump().items():
        setattr(chapter, field, value)
    db.commit()
    db.refresh(chapter)
    return chapter


# --- Exercises ---
def get_exercise(db: Session, chapter_id: str, exercise_id: str) -> Optional[Exercise]:
    return db.query(Exercise).filter_by(id=exercise_id, chapter_id=chapter_id).first()


def get_exercise_by_slug(db: Session, slug: str) -> Optional[Exercise]:
    return db.query(Exercise).filter(Exercise.slug == slug).first()


def list_exercises(db: Session, chapter_id: str) -> list[Exercise]:
    return db.query(Exercise).filter_by(chapter_id=chapter_id).order_by(Exercise.order.asc()).all()


def exercise_slug_taken(db: Session, slug: str, exclude_id: str | None = None) -> bool:
    query = db.query(Exercise).filter(Exercise.slug == slug)
    if exclude_id is not None:
        query = query.filter(Exercise.id != exclude_id)
    return query.first() is not None


def create_exercise(db: Session, chapter_id: str, payload: ExerciseIn) -> Exercise:
    exercise = Exercise(chapter_id=chapter_id, **payload.model_dump())
    db.add(exercise)
    db.commit()
    db.refresh(exercise)
    return exercise


def update_exercise(db: Session, exercise: Exercise, payload: ExerciseIn) -> Exercise:
    for field, value in payload.model_dump().items():
        setattr(exercise, field, value)
    db.commit()
    db.refresh(exercise)
    return exercise
