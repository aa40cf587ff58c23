from __future__ import annotations

from fastapi import APIRouter, Depends

from pawprint.db.models import User
from pawprint.routers.schemas import ActiveProfile, CommentBody
from pawprint.services.interaction_service import InteractionService
from pawprint.services.session_service import current_account

router = APIRouter(prefix="/posts", tags=["posts"])
interaction_service = InteractionService()


@router.get("/{post_id}/comments")
def get_comments(post_id: int):
    comments = interaction_service.get_comments(post_id)
    return {"comments": [c.to_dict() for c in comments], "message": "Successfully fetched comments"}


@router.post("/{post_id}/comment")
def create_comment(post_id: int, data: CommentBody, account: User = Depends(current_account)):
    profile = interaction_service.profile_for_account(data.active_id, account.id)
    comment = interaction_service.create_comment(post_id, profile.id, data.text)
    return {"message": "Successfully created comment", "comment": {"id": comment.id, "text": comment.text}}


@router.post("/{post_id}/like")
def like_post(post_id: int, data: ActiveProfile, account: User = Depends(current_account)):
    profile = interaction_service.profile_for_account(data.active_id, account.id)
    outcome = interaction_service.like_post(post_id, profile.id)
    return {"message": "Successfully liked post", "liked": outcome.liked, "totalLikes": outcome.total_likes}


@router.delete("/{post_id}/like")
def unlike_post(post_id: int, data: ActiveProfile, account: User = Depends(current_account)):
    profile = interaction_service.profile_for_account(data.active_id, account.id)
    outcome = interaction_service.unlike_post(post_id, profile.id)
    return {"message": "Successfully unliked post", "liked": outcome.liked, "totalLikes": outcome.total_likes}
