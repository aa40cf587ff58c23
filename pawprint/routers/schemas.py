"""Request bodies shared by the routers (camelCase on the wire)."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AccountFields(BaseModel):
    """Every field is optional here so missing ones surface as field errors, not 422s."""

    model_config = ConfigDict(populate_by_name=True)

    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    email: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = Field(None, alias="confirmPassword")

    def as_fields(self) -> dict:
        return self.model_dump(by_alias=True)


class Credentials(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ActiveProfile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    active_id: int = Field(..., alias="activeId")


class CommentBody(ActiveProfile):
    text: Optional[str] = None
