"""User API routes — accounts, sessions, profile, avatar.

Learn: Routes only translate HTTP to service calls. They never catch
service errors: AuthenticationError, ValidationError and
ResourceNotFoundError bubble up to the handlers in api/errors.py.

- POST   /users              → sign up, returns {user, token}
- POST   /users/login        → email/password, returns {user, token}
- POST   /users/logout       → revoke the token used for this request
- POST   /users/logout-all   → revoke every token of the user
- GET    /users/me           → own profile
- PATCH  /users/me           → update name/email/password/age
- DELETE /users/me           → delete account (sessions, tasks, avatar)
- POST   /users/me/avatar    → upload avatar (multipart, optional file)
- DELETE /users/me/avatar    → reset avatar
- GET    /users/{id}/avatar  → public avatar URLs
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from tasktrack.api.deps import public_user_service, user_service
from tasktrack.config import settings
from tasktrack.schemas.user import (
    AuthResult,
    AvatarEnvelope,
    LoginRequest,
    UserCreate,
    UserEnvelope,
    UserUpdate,
)
from tasktrack.services.user_service import UserService

router = APIRouter(prefix="/users")


# ─── Sign-up & sessions ──────────────────────────────────


@router.post("", response_model=AuthResult, status_code=201)
async def sign_up(body: UserCreate, svc: UserService = Depends(public_user_service)):
    """Create an account. The response carries the first session token."""
    return await svc.sign_up(body)


@router.post("/login", response_model=AuthResult)
async def login(body: LoginRequest, svc: UserService = Depends(public_user_service)):
    """Login with email and password → a new session token."""
    return await svc.login(body.email, body.password)


@router.post("/logout")
async def logout(svc: UserService = Depends(user_service)):
    """Log out this device only."""
    await svc.logout()
    return {}


@router.post("/logout-all")
async def logout_all(svc: UserService = Depends(user_service)):
    """Log out every device."""
    await svc.logout_all()
    return {}


# ─── Profile ─────────────────────────────────────────────


@router.get("/me", response_model=UserEnvelope)
async def get_me(svc: UserService = Depends(user_service)):
    return {"user": svc.get_profile()}


@router.patch("/me", response_model=UserEnvelope)
async def update_me(body: UserUpdate, svc: UserService = Depends(user_service)):
    return {"user": await svc.update_profile(body)}


@router.delete("/me")
async def delete_me(svc: UserService = Depends(user_service)):
    await svc.delete_account()
    return {}


# ─── Avatar ──────────────────────────────────────────────


@router.post("/me/avatar", response_model=UserEnvelope, status_code=201)
async def upload_avatar(
    file: Optional[UploadFile] = File(None),
    svc: UserService = Depends(user_service),
):
    """Upload an avatar image. Without a file the avatar is reset."""
    data = None
    if file is not None:
        data = await file.read(settings.avatar_max_bytes + 1)
        if len(data) > settings.avatar_max_bytes:
            raise HTTPException(status_code=413, detail="Avatar file is too large.")
    return {"user": await svc.upload_avatar(data)}


@router.delete("/me/avatar", response_model=UserEnvelope)
async def delete_avatar(svc: UserService = Depends(user_service)):
    return {"user": await svc.delete_avatar()}


@router.get("/{user_id}/avatar", response_model=AvatarEnvelope)
async def get_avatar(user_id: uuid.UUID, svc: UserService = Depends(public_user_service)):
    """Public: avatar URLs of any user."""
    return {"avatar": await svc.get_avatar_urls(user_id)}
