#app/core/auth_deps.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from app.core.security import decode_token
from app.models.enums import ActorRole
from app.policies.rbac import Principal

bearer = HTTPBearer(auto_error=True)


def principal_from_claims(payload: Dict[str, Any]) -> Principal:
    """
    Build the acting principal from verified token claims.
    Required: user_id (int-like) and role (an ActorRole value).
    """
    role = payload.get("role")
    user_id = payload.get("user_id")
    if not role or user_id is None:
        raise HTTPException(status_code=401, detail="Token missing required claims.")

    try:
        return Principal(
            user_id=int(user_id),
            role=ActorRole(role),
            display_name=str(payload.get("display_name") or "Unknown"),
        )
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid role or user id in token.")


def get_current_principal(
    request: Request,
    creds: HTTPAuthorizationCredentials = Depends(bearer),
) -> Principal:
    try:
        payload = decode_token(creds.credentials)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token.")

    principal = principal_from_claims(payload)
    # audit rows and error logs read it from here
    request.state.principal = principal
    return principal
