"""Utility helpers for test factories."""

from __future__ import annotations

from codedex.core.security import get_password_hash
from codedex.models.course.chapter_model import Chapter
from codedex.models.course.course_model import Course
from codedex.models.course.exercise_model import Exercise
from codedex.models.user.user_model import User, UserRole


def create_user(db, *, password: str | None = None, **kwargs) -> User:
    defaults = {
        "email": "user@example.com",
        "name": "User",
        "role": UserRole.USER,
        "password_hash": get_password_hash(password) if password else "x",
    }
    defaults.update(kwargs)
    user = User(**defaults)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_exercise_graph(
    db,
    *,
    slug: str = "02-hello-world",
    xp_value: int | None = 10,
    course_slug: str = "python",
    chapter_slug: str = "setup",
) -> Exercise:
    """Create a course > chapter > exercise chain and return the exercise."""
    course = db.query(Course).filter_by(slug=course_slug).first()
    if course is None:
        course = Course(title=course_slug.title(), slug=course_slug)
        db.add(course)
        db.flush()

    chapter = db.query(Chapter).filter_by(course_id=course.id, slug=chapter_slug).first()
    if chapter is None:
        chapter = Chapter(course_id=course.id, title=chapter_slug.title(), slug=chapter_slug, order=1)
        db.add(chapter)
        db.flush()

    exercise = Exercise(chapter_id=chapter.id, title=slug, slug=slug, xp_value=xp_value, order=1)
    db.add(exercise)
    db.commit()
    db.refresh(exercise)
    return exercise


def login(client, email: str, password: str):
    return client.post("/api/auth/login", json={"email": email, "password": password})
