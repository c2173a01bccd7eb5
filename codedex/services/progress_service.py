import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from codedex.core.config import settings
from codedex.db.base_class import new_id
from codedex.models.course.exercise_model import Exercise
from codedex.models.progress.user_progress_model import ProgressStatus, UserProgress
from codedex.models.progress.user_xp_model import UserXP

logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class ExerciseNotFound(Exception):
    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Exercise with slug '{slug}' not found")


class StoreError(Exception):
    """Persistence failure while recording progress; nothing was written."""


@dataclass(slots=True)
class CompletionResult:
    exercise_id: str
    status: ProgressStatus
    completed_at: Optional[datetime]
    total_xp: int
    xp_awarded: int


class ProgressService:
    """Completion state and XP ledger of a single learner.

    Both writes of :meth:`record_completion` happen in one transaction so a
    failure on the ledger never leaves a completion without its XP.
    """

    def __init__(self, db: Session, user_id: str, *, award_xp_on_repeat: bool | None = None):
        self.db = db
        self.user_id = user_id
        if award_xp_on_repeat is None:
            award_xp_on_repeat = settings.PROGRESS_AWARD_XP_ON_REPEAT
        self.award_xp_on_repeat = award_xp_on_repeat

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def record_completion(self, exercise_slug: str) -> CompletionResult:
        """Mark ``exercise_slug`` completed and credit its XP.

        Re-completing an exercise re-stamps ``completed_at`` and, unless
        ``award_xp_on_repeat`` is off, credits the XP again.
        """
        try:
            exercise = self.db.query(Exercise).filter(Exercise.slug == exercise_slug).first()
        except SQLAlchemyError as exc:
            logger.error("Exercise lookup failed for slug %s", exercise_slug, exc_info=True)
            raise StoreError("exercise lookup failed") from exc

        if exercise is None:
            raise ExerciseNotFound(exercise_slug)

        if exercise.xp_value is None:
            logger.warning("Exercise '%s' has no xp_value, crediting 0 XP.", exercise_slug)
        xp = exercise.xp_value or 0

        now = self._utcnow()
        try:
            progress, already_completed = self._upsert_progress(exercise.id, now)
            awarded = xp if (self.award_xp_on_repeat or not already_completed) else 0
            total_xp = self._credit_xp(awarded)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(
                "Progress write failed for user %s on exercise %s",
                self.user_id,
                exercise.id,
                exc_info=True,
            )
            raise StoreError("progress write failed") from exc

        logger.info(
            "User %s completed exercise %s (+%s XP, total %s)",
            self.user_id,
            exercise_slug,
            awarded,
            total_xp,
        )
        return CompletionResult(
            exercise_id=exercise.id,
            status=progress.status,
            completed_at=progress.completed_at,
            total_xp=total_xp,
            xp_awarded=awarded,
        )

    def get_total_xp(self) -> int:
        ledger = self.db.query(UserXP).filter_by(user_id=self.user_id).first()
        return ledger.total_xp if ledger else 0

    def get_progress_summary(self) -> dict:
        completed_slugs = [
            slug
            for (slug,) in (
                self.db.query(Exercise.slug)
                .join(UserProgress, UserProgress.exercise_id == Exercise.id)
                .filter(
                    UserProgress.user_id == self.user_id,
                    UserProgress.status == ProgressStatus.COMPLETED,
                )
                .order_by(Exercise.slug.asc())
                .all()
            )
        ]
        return {
            "total_xp": self.get_total_xp(),
            "completed_count": len(completed_slugs),
            "completed_exercises": completed_slugs,
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _insert(self, model):
        """Dialect ``INSERT`` supporting ``ON CONFLICT DO UPDATE``."""
        dialect = self.db.get_bind().dialect.name
        try:
            return _UPSERT_INSERTS[dialect](model)
        except KeyError:
            raise NotImplementedError(f"Upserts are not supported on '{dialect}'") from None

    def _was_completed(self, exercise_id: str) -> bool:
        status = self.db.execute(
            select(UserProgress.status).where(
                UserProgress.user_id == self.user_id,
                UserProgress.exercise_id == exercise_id,
            )
        ).scalar_one_or_none()
        return status == ProgressStatus.COMPLETED

    def _upsert_progress(self, exercise_id: str, now: datetime) -> tuple[UserProgress, bool]:
        already_completed = self._was_completed(exercise_id)

        # A concurrent first completion lands on the conflict branch instead
        # of failing on the (user_id, exercise_id) unique constraint.
        stmt = self._insert(UserProgress).values(
            id=new_id(),
            user_id=self.user_id,
            exercise_id=exercise_id,
            status=ProgressStatus.COMPLETED,
            completed_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[UserProgress.user_id, UserProgress.exercise_id],
            set_={"status": ProgressStatus.COMPLETED, "completed_at": now},
        )
        self.db.execute(stmt)

        progress = (
            self.db.query(UserProgress)
            .filter_by(user_id=self.user_id, exercise_id=exercise_id)
            .populate_existing()
            .one()
        )
        return progress, already_completed

    def _credit_xp(self, xp: int) -> int:
        # Created or incremented in a single statement so concurrent
        # completions both count.
        stmt = self._insert(UserXP).values(id=new_id(), user_id=self.user_id, total_xp=xp)
        stmt = stmt.on_conflict_do_update(
            index_elements=[UserXP.user_id],
            set_={"total_xp": UserXP.total_xp + xp},
        ).returning(UserXP.total_xp)
        return self.db.execute(stmt).scalar_one()

    @staticmethod
    def _utcnow() -> datetime:
        return datetime.now(timezone.utc)
