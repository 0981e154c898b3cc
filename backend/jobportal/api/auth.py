from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from jobportal.auth import create_access_token, get_current_user, hash_password, verify_password
from jobportal.database import get_db
from jobportal.deps import get_object_storage, get_upload_policy
from jobportal.errors import Conflict, Forbidden, Unauthorized, UpstreamUnavailable
from jobportal.models.user import User
from jobportal.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserOut
from jobportal.services.object_storage import ObjectStorage, StorageError
from jobportal.services.upload_validator import AVATAR_CATEGORY, UploadPolicy, validate_upload


router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> AuthResponse:
    email = payload.email.strip().lower()
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        raise Conflict("Email already registered")

    user = User(
        name=payload.name.strip(),
        email=email,
        password_hash=hash_password(payload.password),
        role=payload.role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("User registered: user_id=%s role=%s", user.id, user.role)
    return AuthResponse(access_token=create_access_token(user.id), user=UserOut.model_validate(user))


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> AuthResponse:
    email = payload.email.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(payload.password, user.password_hash):
        raise Unauthorized("Invalid email or password")
    if not user.is_active:
        raise Forbidden("Account disabled")

    return AuthResponse(access_token=create_access_token(user.id), user=UserOut.model_validate(user))


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)) -> User:
    return current_user


@router.put("/profile", response_model=UserOut)
def update_profile(
    name: str | None = Form(None, max_length=50),
    phone: str | None = Form(None, max_length=20),
    bio: str | None = Form(None, max_length=500),
    location: str | None = Form(None, max_length=100),
    avatar: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
    policy: UploadPolicy = Depends(get_upload_policy),
    current_user: User = Depends(get_current_user),
) -> User:
    replaced_avatar = None
    if avatar is not None and avatar.filename:
        raw = avatar.file.read()
        content_type = validate_upload(policy, AVATAR_CATEGORY, len(raw), avatar.content_type)
        try:
            stored = storage.put(
                raw,
                folder=f"avatars/user-{current_user.id}",
                filename=avatar.filename,
                content_type=content_type,
                private=False,
            )
        except StorageError as exc:
            logger.exception("Avatar upload failed: user_id=%s", current_user.id)
            raise UpstreamUnavailable("Could not store avatar") from exc

        replaced_avatar = current_user.avatar_storage_id
        current_user.avatar_url = stored.retrieval_url
        current_user.avatar_storage_id = stored.storage_id

    if name is not None:
        current_user.name = name.strip()
    if phone is not None:
        current_user.phone = phone
    if bio is not None:
        current_user.bio = bio
    if location is not None:
        current_user.location = location

    db.add(current_user)
    db.commit()
    db.refresh(current_user)

    if replaced_avatar:
        try:
            storage.delete(replaced_avatar)
        except StorageError:
            logger.warning("Old avatar not removed: storage_id=%s", replaced_avatar)
    return current_user
