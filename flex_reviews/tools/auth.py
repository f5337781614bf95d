import logging

import bcrypt
from fastapi import APIRouter, Depends, HTTPException, Request

from flex_reviews.config import Settings, get_settings
from flex_reviews.dependencies.services import require_admin
from flex_reviews.schemas.auth import AdminIdentity, AuthStatus, LoginRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def _password_matches(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.error("Configured admin password hash is not a valid bcrypt hash")
        return False


@router.post("/login", response_model=AuthStatus)
async def login(
    req: LoginRequest,
    request: Request,
    settings: Settings = Depends(get_settings),
):
    # Same response for unknown user and wrong password.
    if req.username != settings.admin_user or not _password_matches(
        req.password, settings.admin_pass_hash
    ):
        logger.warning("Rejected admin login for %s", req.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    request.session.clear()
    request.session.update({"user": req.username, "role": "admin"})
    logger.info("Admin %s logged in", req.username)
    return AuthStatus()


@router.post("/logout", response_model=AuthStatus)
async def logout(request: Request):
    request.session.clear()
    return AuthStatus()


@router.get("/me", response_model=AdminIdentity)
async def me(user: str = Depends(require_admin)):
    return AdminIdentity(user=user)
