import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from codedex.api.dependencies import get_current_identity, get_db
from codedex.core.security import SessionIdentity
from codedex.schemas.progress import progress_schema
from codedex.services.progress_service import ExerciseNotFound, ProgressService, StoreError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/update", response_model=progress_schema.ProgressUpdateResponse)
def update_progress(
    payload: progress_schema.ProgressUpdateRequest,
    db: Session = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
):
    """Record the completion of an exercise for the signed-in learner."""

    if payload.user_id != identity.user_id:
        logger.warning(
            "User %s tried to record progress for user %s", identity.user_id, payload.user_id
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: You can only update your own progress",
        )

    service = ProgressService(db=db, user_id=identity.user_id)
    try:
        result = service.record_completion(payload.exercise_slug)
    except ExerciseNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update progress",
        ) from exc

    return {
        "message": "Progress updated successfully",
        "exercise_id": result.exercise_id,
        "status": result.status,
        "completed_at": result.completed_at,
        "total_xp": result.total_xp,
    }


@router.get("/me", response_model=progress_schema.ProgressSummaryResponse)
def read_my_progress(
    db: Session = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
):
    return ProgressService(db=db, user_id=identity.user_id).get_progress_summary()
