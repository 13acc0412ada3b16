import logging
import time

from fastapi import APIRouter, Depends, HTTPException

from tracker.core.config import Settings, get_app_settings
from tracker.core.enums import AdminRole
from tracker.core.security import create_access_token, verify_password
from tracker.db.mongo import ADMINS, USERS
from tracker.db.session import get_db
from tracker.repositories.accounts import AdminRepository, UserRepository
from tracker.schemas.auth import LoginRequest, LoginResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _token_response(claims: dict, settings: Settings, **extra) -> dict:
    exp = int(time.time()) + settings.access_token_expire_minutes * 60
    token = create_access_token({**claims, "exp": exp}, settings)
    return {"success": True, "token": token, "tokenExp": exp * 1000, **extra}


# =========================
# User login (tracker form + dashboard)
# =========================
@router.post("/login", response_model=LoginResponse)
async def login_user(
    body: LoginRequest,
    db=Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    user = await UserRepository(db[USERS]).get_by_email(body.email)
    if not user or not user.get("passwordHash") or not verify_password(body.password, user["passwordHash"]):
        raise HTTPException(401, "Invalid credentials")
    if not user.get("isApproved"):
        raise HTTPException(403, "Account not approved yet")

    user_id = str(user["_id"])
    logger.info("User %s logged in", user_id)
    return _token_response({"userId": user_id}, settings, userID=user_id)


# =========================
# Moderator login (admin panel)
# =========================
@router.post("/admin/login", response_model=LoginResponse)
async def login_admin(
    body: LoginRequest,
    db=Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    admin = await AdminRepository(db[ADMINS]).get_by_email(body.email)
    if not admin or not admin.get("passwordHash") or not verify_password(body.password, admin["passwordHash"]):
        raise HTTPException(401, "Invalid credentials")
    if admin.get("role") not in {AdminRole.superadmin.value, AdminRole.moderator.value}:
        raise HTTPException(403, "Insufficient privileges")

    admin_id = str(admin["_id"])
    logger.info("Admin %s (%s) logged in", admin.get("email"), admin["role"])
    return _token_response(
        {"adminId": admin_id, "role": admin["role"]},
        settings,
        adminID=admin_id,
        role=admin["role"],
    )
