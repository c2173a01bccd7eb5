"""SQLAdmin back-office: model views and the admin-only authentication backend."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from sqladmin import Admin, ModelView
from sqladmin.authentication import AuthenticationBackend
from starlette.requests import Request

from codedex.api.dependencies import admin_denial_reason
from codedex.core import security
from codedex.crud import user_crud
from codedex.db.session import Database
from codedex.models.cms.setting_model import Setting
from codedex.models.cms.static_page_model import StaticPage
from codedex.models.course.chapter_model import Chapter
from codedex.models.course.course_model import Course
from codedex.models.course.exercise_model import Exercise
from codedex.models.progress.user_progress_model import UserProgress
from codedex.models.progress.user_xp_model import UserXP
from codedex.models.user.user_model import User, UserRole

logger = logging.getLogger(__name__)


class UserAdmin(ModelView, model=User):
    name = "User"
    name_plural = "Users"
    icon = "fa-solid fa-user"
    category = "Accounts"
    column_list = [User.id, User.email, User.name, User.role, User.created_at]
    column_searchable_list = [User.email, User.name]
    column_sortable_list = [User.created_at, User.email]
    column_default_sort = [(User.created_at, True)]  # newest first
    column_details_exclude_list = [User.password_hash]
    form_excluded_columns = ["password_hash", "progress", "xp_ledger", "created_at", "updated_at"]
    can_create = False


class UserXPAdmin(ModelView, model=UserXP):
    name = "XP ledger"
    name_plural = "XP ledgers"
    icon = "fa-solid fa-star"
    category = "Accounts"
    column_list = [UserXP.id, UserXP.user_id, UserXP.total_xp]
    column_sortable_list = [UserXP.total_xp]
    column_default_sort = [(UserXP.total_xp, True)]


class UserProgressAdmin(ModelView, model=UserProgress):
    name = "Progress"
    name_plural = "Progress"
    icon = "fa-solid fa-list-check"
    category = "Accounts"
    column_list = [
        UserProgress.id,
        UserProgress.user_id,
        UserProgress.exercise_id,
        UserProgress.status,
        UserProgress.completed_at,
    ]
    column_sortable_list = [UserProgress.completed_at]
    column_default_sort = [(UserProgress.completed_at, True)]


class CourseAdmin(ModelView, model=Course):
    name = "Course"
    name_plural = "Courses"
    icon = "fa-solid fa-book"
    category = "Content"
    column_list = [Course.id, Course.title, Course.slug, Course.created_at]
    column_searchable_list = [Course.title, Course.slug]
    form_excluded_columns = ["chapters", "created_at", "updated_at"]


class ChapterAdmin(ModelView, model=Chapter):
    name = "Chapter"
    name_plural = "Chapters"
    icon = "fa-solid fa-bookmark"
    category = "Content"
    column_list = [Chapter.id, Chapter.course_id, Chapter.order, Chapter.title, Chapter.slug]
    column_searchable_list = [Chapter.title, Chapter.slug]
    column_sortable_list = [Chapter.order]
    form_excluded_columns = ["exercises", "created_at", "updated_at"]


class ExerciseAdmin(ModelView, model=Exercise):
    name = "Exercise"
    name_plural = "Exercises"
    icon = "fa-solid fa-code"
    category = "Content"
    column_list = [Exercise.id, Exercise.chapter_id, Exercise.order, Exercise.title, Exercise.slug, Exercise.xp_value]
    column_searchable_list = [Exercise.title, Exercise.slug]
    column_sortable_list = [Exercise.order, Exercise.xp_value]
    form_excluded_columns = ["progress_entries", "created_at", "updated_at"]


class StaticPageAdmin(ModelView, model=StaticPage):
    name = "Static page"
    name_plural = "Static pages"
    icon = "fa-solid fa-file-lines"
    category = "Site"
    column_list = [StaticPage.slug, StaticPage.title, StaticPage.updated_at]
    column_searchable_list = [StaticPage.slug, StaticPage.title]
    form_excluded_columns = ["created_at", "updated_at"]


class SettingAdmin(ModelView, model=Setting):
    name = "Setting"
    name_plural = "Settings"
    icon = "fa-solid fa-gear"
    category = "Site"
    column_list = [Setting.group, Setting.key, Setting.label, Setting.value, Setting.type]
    column_searchable_list = [Setting.key, Setting.label]


ADMIN_VIEWS = (
    UserAdmin,
    UserXPAdmin,
    UserProgressAdmin,
    CourseAdmin,
    ChapterAdmin,
    ExerciseAdmin,
    StaticPageAdmin,
    SettingAdmin,
)


class AdminAuth(AuthenticationBackend):
    """Back-office login backed by the regular session token.

    The token is kept in the back-office session and re-checked on every
    request with the same role policy as the admin API.
    """

    def __init__(self, secret_key: str, database: Database):
        super().__init__(secret_key=secret_key)
        self.database = database

    async def login(self, request: Request) -> bool:
        form = await request.form()
        email = form.get("username")
        password = form.get("password")

        with self.database.session() as db:
            user = user_crud.get_user_by_email(db, str(email or ""))
            if (
                user is None
                or user.role != UserRole.ADMIN
                or not security.verify_password(password, user.password_hash)
            ):
                logger.warning("Back-office login refused for %s", email)
                return False
            token = security.create_session_token(user)

        request.session.update({"token": token})
        logger.info("Back-office login for %s", email)
        return True

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        token = request.session.get("token")
        if not token:
            return False

        try:
            identity = security.decode_session_token(token)
        except security.InvalidToken:
            request.session.clear()
            return False

        with self.database.session() as db:
            reason = admin_denial_reason(identity, db)
        if reason is not None:
            logger.warning("Back-office access denied for user %s: %s", identity.user_id, reason)
            request.session.clear()
            return False
        return True


def mount_back_office(app: FastAPI, database: Database, secret_key: str) -> Admin:
    admin = Admin(
        app,
        database.admin_engine,
        authentication_backend=AdminAuth(secret_key=secret_key, database=database),
        base_url="/admin",
        title="Codedex Admin",
    )
    for view in ADMIN_VIEWS:
        admin.add_view(view)
    return admin
