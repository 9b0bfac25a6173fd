# app/core/auth.py
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from app.core.config import Settings, get_settings

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header is turned into our own
#   401 below instead of FastAPI's default 403.
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """
    Authenticated caller.

    user_id is the teacher id for cart routes; token is the raw JWT,
    forwarded to the order service at checkout.
    """

    user_id: str
    role: str
    token: str


def decode_access_token(token: str, settings: Settings) -> dict[str, Any]:
    """
    Decode and verify an access token (JWT).

    Verification:
      - signature (JWT_ALG using JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified (issuers differ between environments)

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> Principal:
    """
    Resolve the caller from the bearer JWT.

    Claims:
      - sub  : user id (teacher id)
      - role : "teacher" | "admin" (defaults to "teacher")

    Raises:
        HTTPException(401): missing token, bad token, or missing sub.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    payload = decode_access_token(credentials.credentials, settings)
    sub = payload.get("sub")
    if not sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub",
        )

    return Principal(
        user_id=str(sub),
        role=str(payload.get("role") or "teacher"),
        token=credentials.credentials,
    )


def require_teacher(principal: Principal = Depends(get_current_principal)) -> Principal:
    """
    Any authenticated caller owns carts under their own id.
    """
    return principal


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    """
    Enforce admin role.

    Raises:
        HTTPException(403): if role is not admin.
    """
    if principal.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return principal
