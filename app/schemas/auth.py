from __future__ import annotations

from pydantic import BaseModel, Field


class Credentials(BaseModel):
    email: str = Field(min_length=3, max_length=320, description="Account email")
    password: str = Field(min_length=6, max_length=128, description="Account password")


class AuthUser(BaseModel):
    id: str = Field(description="Auth user UUID")
    email: str | None = Field(default=None, description="Account email")


class SessionResponse(BaseModel):
    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"
    expires_in: int | None = None
    user: AuthUser


class SignUpResponse(BaseModel):
    user: AuthUser | None = None
    session: SessionResponse | None = None
    confirmation_required: bool = Field(
        default=False, description="True when the account must be confirmed by email first"
    )
