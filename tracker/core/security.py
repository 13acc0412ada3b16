# tracker/core/security.py
import logging
import time
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, Header, HTTPException, status
from passlib.context import CryptContext

from tracker.core.config import Settings, get_app_settings
from tracker.core.enums import AdminRole
from tracker.db.mongo import ADMINS, USERS
from tracker.db.session import get_db
from tracker.repositories.accounts import AdminRepository, UserRepository

logger = logging.getLogger(__name__)

pwd = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
)


def hash_password(password: str) -> str:
    # bcrypt hard limit: 72 BYTES
    return pwd.hash(password.encode("utf-8")[:72])


def verify_password(password: str, hashed: str) -> bool:
    return pwd.verify(password.encode("utf-8")[:72], hashed)


# -------------------------
# Tokens
# -------------------------
def create_access_token(
    claims: Dict[str, Any],
    settings: Settings,
    expires_in: Optional[int] = None,
) -> str:
    payload = dict(claims)
    payload.setdefault(
        "exp",
        int(time.time())
        + (expires_in if expires_in is not None else settings.access_token_expire_minutes * 60),
    )
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> Dict[str, Any]:
    """Verify signature and expiry; raises ``jwt.InvalidTokenError`` subclasses."""
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def _bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _claims_or_401(token: str, settings: Settings, prefix: str) -> Dict[str, Any]:
    try:
        return decode_access_token(token, settings)
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status.HTTP_401_UNAUTHORIZED,
            f"{prefix}: Session expired. Please log in again.",
        )
    except jwt.InvalidTokenError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, f"{prefix}: Invalid token.")


# -------------------------
# Dependencies
# -------------------------
async def get_current_user(
    authorization: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None, alias="X-User-ID"),
    db=Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    """Bearer token plus an explicit X-User-ID header, both required."""
    token = _bearer(authorization)
    if not token or not x_user_id:
        raise HTTPException(
            status.HTTP_401_UNAUTHORIZED,
            "Authentication failed: Token or User ID missing",
        )

    claims = _claims_or_401(token, settings, "Authentication failed")
    if claims.get("userId") != x_user_id:
        logger.warning("Token user %s does not match X-User-ID %s", claims.get("userId"), x_user_id)
        raise HTTPException(
            status.HTTP_401_UNAUTHORIZED,
            "Authentication failed: User ID mismatch",
        )

    user = await UserRepository(db[USERS]).get(x_user_id)
    if not user or not user.get("isApproved"):
        logger.warning("Rejected request for missing or unapproved user %s", x_user_id)
        raise HTTPException(
            status.HTTP_403_FORBIDDEN,
            "Authentication failed: User not found or not approved",
        )
    return user


async def get_current_moderator(
    authorization: Optional[str] = Header(None),
    db=Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    token = _bearer(authorization)
    if not token:
        raise HTTPException(
            status.HTTP_401_UNAUTHORIZED,
            "Admin authentication failed: Token missing",
        )

    claims = _claims_or_401(token, settings, "Admin authentication failed")
    admin = await AdminRepository(db[ADMINS]).get(claims.get("adminId"))
    allowed = {AdminRole.superadmin.value, AdminRole.moderator.value}
    if not admin or admin.get("role") not in allowed:
        logger.warning("Rejected admin token for %s", claims.get("adminId"))
        raise HTTPException(
            status.HTTP_403_FORBIDDEN,
            "Admin authentication failed: Insufficient privileges",
        )
    return admin
