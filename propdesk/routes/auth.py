"""
Authentication routes: password login issuing bearer JWTs, current user and
platform-admin user creation
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from ..auth import ALL_ROLES, PLATFORM_ADMIN_ROLES, get_current_user, require_roles
from ..config import ACCESS_TOKEN_EXPIRE_MINUTES
from ..database import get_db
from ..models import ExternalAgency, User
from ..rate_limiter import create_rate_limiter
from ..security_utils import create_access_token, hash_password, verify_password
from ..shared.validators import validate_choice, validate_email, validate_phone

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

login_limiter = create_rate_limiter(limit=10, window_seconds=300, key_prefix="login")


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class UserCreate(BaseModel):
    email: str
    password: str = Field(..., min_length=8)
    fullName: Optional[str] = None
    phone: Optional[str] = None
    role: str = "tenant"
    agencyId: Optional[int] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("role")
    @classmethod
    def check_role(cls, v):
        return validate_choice(v, ALL_ROLES, "role")

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class UserResponse(BaseModel):
    id: int
    email: str
    fullName: Optional[str] = None
    phone: Optional[str] = None
    role: str
    agencyId: Optional[int] = None
    agencyName: Optional[str] = None
    isActive: bool
    lastLoginAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None


def to_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        fullName=user.full_name,
        phone=user.phone,
        role=user.role,
        agencyId=user.external_agency_id,
        agencyName=user.agency.name if user.agency else None,
        isActive=user.is_active,
        lastLoginAt=user.last_login_at,
        createdAt=user.created_at,
    )


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, _: None = Depends(login_limiter), db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == data.email).first()
    if not user or not verify_password(data.password, user.hashed_password):
        logger.warning(f"⚠️ Failed login attempt for {data.email}")
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is disabled")

    user.last_login_at = datetime.utcnow()
    db.commit()

    token = create_access_token({"sub": str(user.id), "role": user.role})
    logger.info(f"✅ User logged in: {user.email} ({user.role})")
    return TokenResponse(access_token=token, expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return to_user_response(current_user)


@router.post("/users", response_model=UserResponse, status_code=201)
async def create_user(
    data: UserCreate,
    current_user: User = Depends(require_roles(*PLATFORM_ADMIN_ROLES)),
    db: Session = Depends(get_db),
):
    """Platform admins create accounts of any role"""
    if db.query(User.id).filter(User.email == data.email).first():
        raise HTTPException(status_code=409, detail="A user with this email already exists")

    if data.role.startswith("external_agency_") and data.agencyId is None:
        raise HTTPException(status_code=400, detail="Agency roles require agencyId")
    if data.agencyId is not None and not db.query(ExternalAgency.id).filter(ExternalAgency.id == data.agencyId).first():
        raise HTTPException(status_code=404, detail="Agency not found")

    user = User(
        email=data.email,
        hashed_password=hash_password(data.password),
        full_name=data.fullName,
        phone=data.phone,
        role=data.role,
        external_agency_id=data.agencyId,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"👤 User {user.email} ({user.role}) created by {current_user.email}")
    return to_user_response(user)
