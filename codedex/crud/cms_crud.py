"""Site settings, static pages and platform-wide statistics."""

from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from codedex.models.cms.setting_model import Setting
from codedex.models.cms.static_page_model import StaticPage
from codedex.models.progress.user_progress_model import ProgressStatus, UserProgress
from codedex.models.progress.user_xp_model import UserXP
from codedex.models.user.user_model import User
from codedex.schemas.cms.cms_schema import SettingIn


def list_settings(db: Session) -> list[Setting]:
    return db.query(Setting).order_by(Setting.group.asc(), Setting.key.asc()).all()


def upsert_settings(db: Session, items: Iterable[SettingIn]) -> list[Setting]:
    """Create or update every setting in a single transaction.

    Optional fields only overwrite the stored value when provided; a new
    setting falls back to its key as label and ``text`` as type.
    """
    try:
        for item in items:
            setting = db.query(Setting).filter(Setting.key == item.key).first()
            if setting is None:
                setting = Setting(
                    key=item.key,
                    value=item.value,
                    label=item.label or item.key,
                    type=item.type or "text",
                    group=item.group,
                )
                db.add(setting)
                continue

            setting.value = item.value
            for field in ("label", "type", "group"):
                value = getattr(item, field)
                if value is not None:
                    setattr(setting, field, value)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return list_settings(db)


def list_static_pages(db: Session) -> list[StaticPage]:
    return db.query(StaticPage).order_by(StaticPage.title.asc()).all()


def get_static_page(db: Session, slug: str) -> Optional[StaticPage]:
    return db.query(StaticPage).filter(StaticPage.slug == slug).first()


def upsert_static_page(db: Session, slug: str, title: str, content: str) -> StaticPage:
    page = get_static_page(db, slug)
    if page is None:
        page = StaticPage(slug=slug, title=title, content=content)
        db.add(page)
    else:
        page.title = title
        page.content = content
    db.commit()
    db.refresh(page)
    return page


def platform_stats(db: Session) -> dict[str, int]:
    total_users = db.query(func.count(User.id)).scalar() or 0
    total_completed = (
        db.query(func.count(UserProgress.id))
        .filter(UserProgress.status == ProgressStatus.COMPLETED)
        .scalar()
        or 0
    )
    total_xp = db.query(func.sum(UserXP.total_xp)).scalar() or 0
    return {
        "totalUsers": int(total_users),
        "totalCompletedExercises": int(total_completed),
        "totalSystemXP": int(total_xp),
    }
