from __future__ import annotations

from pydantic import BaseModel

from hrportal.schemas.user import UserPublic


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserPublic
