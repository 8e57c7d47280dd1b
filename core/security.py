"""Bearer-token authentication for the API.

Tokens are issued by the identity provider and signed with the shared
secret. The ``sub`` claim is the user id; the user row is created on the
first authenticated request.
"""
import hmac
import logging
from datetime import timedelta
from typing import Optional

import jwt
from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from core.config import settings
from core.database import get_db
from src.transit_bc.shared.domain.errors import Unauthorized
from src.transit_bc.shared.domain.time_utils import utcnow
from src.transit_bc.user.infrastructure.models import UserModel

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(user_id: str, expires_minutes: Optional[int] = None, **claims) -> str:
    """Sign a token for ``user_id`` (used by tests and local tooling)."""
    minutes = expires_minutes or settings.auth.ACCESS_TOKEN_EXPIRE_MINUTES
    payload = {"sub": user_id, "exp": utcnow() + timedelta(minutes=minutes), **claims}
    return jwt.encode(payload, settings.auth.SECRET_KEY, algorithm=settings.auth.ALGORITHM)


def decode_token(token: Optional[str]) -> dict:
    """Decode and verify a token; raises Unauthorized when it is not usable."""
    if not token:
        raise Unauthorized()
    try:
        payload = jwt.decode(token, settings.auth.SECRET_KEY, algorithms=[settings.auth.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token expired")
    except jwt.InvalidTokenError as e:
        logger.info(f"Rejected token: {e}")
        raise Unauthorized("Invalid token")
    if not payload.get("sub"):
        raise Unauthorized("Token has no subject")
    return payload


def get_or_create_user(db: Session, claims: dict) -> UserModel:
    user = db.get(UserModel, str(claims["sub"]))
    if user is None:
        user = UserModel(
            id=str(claims["sub"]),
            email=claims.get("email"),
            first_name=claims.get("first_name"),
            last_name=claims.get("last_name"),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"Registered user {user.id}")
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> UserModel:
    """FastAPI dependency returning the authenticated user."""
    token = credentials.credentials if credentials else None
    return get_or_create_user(db, decode_token(token))


def require_admin(x_admin_token: Optional[str] = Header(None, alias="X-Admin-Token")) -> None:
    """Checks the operator token with a constant-time comparison."""
    if not x_admin_token or not settings.ADMIN_TOKEN:
        raise Unauthorized("Missing admin token")
    if not hmac.compare_digest(settings.ADMIN_TOKEN, x_admin_token):
        raise Unauthorized("Invalid admin token")
