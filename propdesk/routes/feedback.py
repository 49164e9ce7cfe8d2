"""Feedback routes: anyone can report a bug or suggestion, platform admins triage"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from ..auth import PLATFORM_ADMIN_ROLES, require_roles
from ..database import get_db
from ..models import User
from ..rate_limiter import create_rate_limiter
from ..security_utils import decode_access_token
from ..services.feedback_service import (
    FEEDBACK_STATUSES,
    FEEDBACK_TYPES,
    FEEDBACK_URGENCIES,
    FeedbackService,
)
from ..shared.validators import validate_choice, validate_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/feedback", tags=["Feedback"])

feedback_limiter = create_rate_limiter(limit=10, window_seconds=3600, key_prefix="feedback")
optional_bearer = HTTPBearer(auto_error=False)


class FeedbackCreate(BaseModel):
    type: str
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1, max_length=5000)
    urgency: str = "medium"
    pageUrl: Optional[str] = Field(None, max_length=1000)
    contactEmail: Optional[str] = None

    @field_validator("type")
    @classmethod
    def check_type(cls, v):
        return validate_choice(v, FEEDBACK_TYPES, "type")

    @field_validator("urgency")
    @classmethod
    def check_urgency(cls, v):
        return validate_choice(v, FEEDBACK_URGENCIES, "urgency")

    @field_validator("contactEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class FeedbackStatusUpdate(BaseModel):
    status: str
    adminNotes: Optional[str] = None
    resolution: Optional[str] = None

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        return validate_choice(v, FEEDBACK_STATUSES, "status")


class FeedbackResponse(BaseModel):
    id: int
    type: str
    title: str
    description: str
    urgency: str
    status: str
    userId: Optional[int] = None
    agencyId: Optional[int] = None
    pageUrl: Optional[str] = None
    contactEmail: Optional[str] = None
    adminNotes: Optional[str] = None
    handledById: Optional[int] = None
    resolution: Optional[str] = None
    resolvedAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None


class FeedbackListResponse(BaseModel):
    feedback: list[FeedbackResponse]
    total: int


class FeedbackStats(BaseModel):
    newCount: int
    highUrgencyCount: int


def to_response(report) -> FeedbackResponse:
    return FeedbackResponse(
        id=report.id,
        type=report.type,
        title=report.title,
        description=report.description,
        urgency=report.urgency,
        status=report.status,
        userId=report.user_id,
        agencyId=report.agency_id,
        pageUrl=report.page_url,
        contactEmail=report.contact_email,
        adminNotes=report.admin_notes,
        handledById=report.handled_by_id,
        resolution=report.resolution,
        resolvedAt=report.resolved_at,
        createdAt=report.created_at,
    )


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_bearer),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Attach the reporter when a valid token is present; anonymous otherwise"""
    if not credentials:
        return None
    payload = decode_access_token(credentials.credentials)
    if not payload:
        return None
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None
    return db.query(User).filter(User.id == user_id, User.is_active.is_(True)).first()


def get_feedback_service(db: Session = Depends(get_db)) -> FeedbackService:
    return FeedbackService(db)


@router.post("", response_model=FeedbackResponse, status_code=201)
async def submit_feedback(
    data: FeedbackCreate,
    _: None = Depends(feedback_limiter),
    user: Optional[User] = Depends(get_optional_user),
    service: FeedbackService = Depends(get_feedback_service),
):
    report = service.create(
        type=data.type,
        title=data.title,
        description=data.description,
        urgency=data.urgency,
        page_url=data.pageUrl,
        contact_email=data.contactEmail,
        user=user,
    )
    return to_response(report)


@router.get("", response_model=FeedbackListResponse)
async def list_feedback(
    status: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    urgency: Optional[str] = Query(None),
    agencyId: Optional[int] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(require_roles(*PLATFORM_ADMIN_ROLES)),
    service: FeedbackService = Depends(get_feedback_service),
):
    reports, total = service.list(
        status=status, type=type, urgency=urgency, agency_id=agencyId, limit=limit, offset=offset
    )
    return {"feedback": [to_response(r) for r in reports], "total": total}


@router.get("/stats", response_model=FeedbackStats)
async def get_feedback_stats(
    current_user: User = Depends(require_roles(*PLATFORM_ADMIN_ROLES)),
    service: FeedbackService = Depends(get_feedback_service),
):
    return service.stats()


@router.get("/{report_id}", response_model=FeedbackResponse)
async def get_feedback(
    report_id: int,
    current_user: User = Depends(require_roles(*PLATFORM_ADMIN_ROLES)),
    service: FeedbackService = Depends(get_feedback_service),
):
    return to_response(service.get(report_id))


@router.patch("/{report_id}/status", response_model=FeedbackResponse)
async def update_feedback_status(
    report_id: int,
    data: FeedbackStatusUpdate,
    current_user: User = Depends(require_roles(*PLATFORM_ADMIN_ROLES)),
    service: FeedbackService = Depends(get_feedback_service),
):
    report = service.update_status(
        report_id,
        data.status,
        handled_by=current_user,
        admin_notes=data.adminNotes,
        resolution=data.resolution,
    )
    return to_response(report)
