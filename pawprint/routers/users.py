from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from pawprint.db.models import User
from pawprint.routers.schemas import AccountFields, Credentials
from pawprint.services.account_service import AccountService
from pawprint.services.guest_service import GuestService
from pawprint.services.session_service import (
    clear_session_cookie,
    current_account,
    end_session,
    set_session_cookie,
)

router = APIRouter(prefix="/users", tags=["users"])
account_service = AccountService()
guest_service = GuestService()


@router.post("")
def create_user(data: AccountFields):
    result = account_service.create_account(data.as_fields())
    return {
        "message": "Successfully created account",
        "user": result.account.to_dict(),
        "profile": result.profile.to_dict(),
    }


@router.post("/guest")
def create_guest_user(response: Response):
    """Create a guest and log it in straight away with the generated credentials."""
    guest = guest_service.create_guest()
    outcome = account_service.login({"email": guest.email, "password": guest.password})
    set_session_cookie(response, outcome.session_token)
    return {
        "message": "Successfully logged in",
        "user": outcome.account.to_dict(),
        "profile": guest.profile.to_dict(),
        "token": outcome.session_token,
    }


@router.post("/login")
def login(data: Credentials, response: Response):
    outcome = account_service.login(data.model_dump())
    set_session_cookie(response, outcome.session_token)
    return {"message": "Successfully logged in", "user": outcome.account.to_dict(), "token": outcome.session_token}


@router.post("/logout")
def logout(request: Request, response: Response):
    end_session(request)
    clear_session_cookie(response)
    return {"message": "Successfully logged out"}


@router.get("/me")
def get_user(account: User = Depends(current_account)):
    user = account_service.get_account(account.id)
    profiles = account_service.get_profiles(user.id)
    return {"user": user.to_dict(), "profiles": [p.to_dict() for p in profiles]}


@router.put("/me")
def edit_user(data: AccountFields, account: User = Depends(current_account)):
    updated = account_service.edit_account(account.id, data.as_fields())
    return {"user": updated.to_dict(), "message": "Successfully updated account"}


@router.delete("/me")
def delete_user(response: Response, account: User = Depends(current_account)):
    user = account_service.delete_account(account.id)
    clear_session_cookie(response)
    return {"user": user.to_dict(), "message": "Successfully deleted user"}
