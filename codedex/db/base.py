"""Registers every SQLAlchemy model on ``Base.metadata``."""

from codedex.db.base_class import Base

# Users
from codedex.models.user.user_model import User

# Course content
from codedex.models.course.course_model import Course
from codedex.models.course.chapter_model import Chapter
from codedex.models.course.exercise_model import Exercise

# Progress & XP
from codedex.models.progress.user_progress_model import UserProgress
from codedex.models.progress.user_xp_model import UserXP

# CMS
from codedex.models.cms.static_page_model import StaticPage
from codedex.models.cms.setting_model import Setting

__all__ = (
    "Base",
    "User",
    "Course",
    "Chapter",
    "Exercise",
    "UserProgress",
    "UserXP",
    "StaticPage",
    "Setting",
)
