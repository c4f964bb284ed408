from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Request, Security
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from hrportal.core.errors import UnauthenticatedError
from hrportal.core.logging import log_security_event
from hrportal.core.rbac import Principal, principal_for
from hrportal.core.security import decode_token
from hrportal.db.session import get_db
from hrportal.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_current_user(
    request: Request,
    token: Optional[str] = Security(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    if not token:
        log_security_event("token_missing", request)
        raise UnauthenticatedError("Not authenticated")

    try:
        payload = decode_token(token)
        raw_user_id = payload.get("sub")
        if raw_user_id is None:
            log_security_event("token_missing_sub", request, level=logging.WARNING)
            raise UnauthenticatedError()
        user_id = int(raw_user_id)
    except (JWTError, ValueError, TypeError):
        log_security_event("token_invalid", request, level=logging.WARNING)
        raise UnauthenticatedError()

    user = db.get(User, user_id)
    if not user or not user.is_active:
        log_security_event("user_inactive_or_missing", request, level=logging.WARNING, user_id=user_id)
        raise UnauthenticatedError()
    request.state.user_id = user.id
    request.state.role = user.role.value
    return user


def get_current_principal(current_user: User = Depends(get_current_user)) -> Principal:
    return principal_for(current_user)
