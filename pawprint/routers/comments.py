from __future__ import annotations

from fastapi import APIRouter, Depends

from pawprint.db.models import User
from pawprint.routers.schemas import ActiveProfile
from pawprint.services.interaction_service import InteractionService
from pawprint.services.session_service import current_account

router = APIRouter(prefix="/comments", tags=["comments"])
interaction_service = InteractionService()


@router.post("/{comment_id}/like")
def like_comment(comment_id: int, data: ActiveProfile, account: User = Depends(current_account)):
    profile = interaction_service.profile_for_account(data.active_id, account.id)
    outcome = interaction_service.like_comment(comment_id, profile.id)
    return {"message": "Successfully liked comment", "liked": outcome.liked, "totalLikes": outcome.total_likes}


@router.delete("/{comment_id}/like")
def unlike_comment(comment_id: int, data: ActiveProfile, account: User = Depends(current_account)):
    profile = interaction_service.profile_for_account(data.active_id, account.id)
    outcome = interaction_service.unlike_comment(comment_id, profile.id)
    return {"message": "Successfully unliked comment", "liked": outcome.liked, "totalLikes": outcome.total_likes}


@router.delete("/{comment_id}")
def delete_comment(comment_id: int, account: User = Depends(current_account)):
    interaction_service.delete_comment(comment_id, account.id)
    return {"message": "Successfully deleted comment"}
