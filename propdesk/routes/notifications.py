"""In-app notification routes for the current user"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models import User
from ..models_notification import AppNotification, NotificationPreference
from ..schemas import CountResponse
from ..services import notification_service
from ..services.notification_service import DEFAULT_LIST_LIMIT, NOTIFICATION_CATEGORIES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


class NotificationResponse(BaseModel):
    id: int
    category: str
    type: str
    title: str
    body: Optional[str] = None
    payload: Optional[dict] = None
    triggeredByName: Optional[str] = None
    isRead: bool
    readAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    total: int


class RecentNotificationsResponse(BaseModel):
    notifications: list[NotificationResponse]
    unreadCount: int


class PreferencesResponse(BaseModel):
    leadNotifications: bool
    paymentNotifications: bool
    maintenanceNotifications: bool
    messageNotifications: bool
    appointmentNotifications: bool
    contractNotifications: bool
    systemNotifications: bool
    emailEnabled: bool


class PreferencesUpdate(BaseModel):
    leadNotifications: Optional[bool] = None
    paymentNotifications: Optional[bool] = None
    maintenanceNotifications: Optional[bool] = None
    messageNotifications: Optional[bool] = None
    appointmentNotifications: Optional[bool] = None
    contractNotifications: Optional[bool] = None
    systemNotifications: Optional[bool] = None
    emailEnabled: Optional[bool] = None


def to_response(notification: AppNotification) -> NotificationResponse:
    return NotificationResponse(
        id=notification.id,
        category=notification.category,
        type=notification.type,
        title=notification.title,
        body=notification.body,
        payload=notification.payload,
        triggeredByName=notification.triggered_by_name,
        isRead=notification.is_read,
        readAt=notification.read_at,
        createdAt=notification.created_at,
    )


def to_preferences(prefs: NotificationPreference) -> PreferencesResponse:
    return PreferencesResponse(
        leadNotifications=prefs.lead_notifications,
        paymentNotifications=prefs.payment_notifications,
        maintenanceNotifications=prefs.maintenance_notifications,
        messageNotifications=prefs.message_notifications,
        appointmentNotifications=prefs.appointment_notifications,
        contractNotifications=prefs.contract_notifications,
        systemNotifications=prefs.system_notifications,
        emailEnabled=prefs.email_enabled,
    )


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    category: Optional[str] = Query(None),
    isRead: Optional[bool] = Query(None),
    limit: int = Query(DEFAULT_LIST_LIMIT, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if category and category not in NOTIFICATION_CATEGORIES:
        raise HTTPException(status_code=400, detail=f"category must be one of: {', '.join(NOTIFICATION_CATEGORIES)}")
    notifications, total = notification_service.list_notifications(
        db, current_user.id, category=category, is_read=isRead, limit=limit, offset=offset
    )
    return NotificationListResponse(notifications=[to_response(n) for n in notifications], total=total)


@router.get("/recent", response_model=RecentNotificationsResponse)
async def get_recent_notifications(
    current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    recent = notification_service.get_recent(db, current_user.id)
    return RecentNotificationsResponse(
        notifications=[to_response(n) for n in recent["notifications"]],
        unreadCount=recent["unreadCount"],
    )


@router.get("/unread-count", response_model=CountResponse)
async def get_unread_count(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return CountResponse(count=notification_service.get_unread_count(db, current_user.id))


@router.patch("/mark-all-read", response_model=CountResponse)
async def mark_all_read(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    count = notification_service.mark_all_as_read(db, current_user.id)
    logger.info(f"📭 User {current_user.id} marked {count} notifications read")
    return CountResponse(count=count)


@router.get("/preferences", response_model=PreferencesResponse)
async def get_preferences(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return to_preferences(notification_service.get_or_create_preferences(db, current_user.id))


@router.patch("/preferences", response_model=PreferencesResponse)
async def update_preferences(
    data: PreferencesUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updates = {
        "lead_notifications": data.leadNotifications,
        "payment_notifications": data.paymentNotifications,
        "maintenance_notifications": data.maintenanceNotifications,
        "message_notifications": data.messageNotifications,
        "appointment_notifications": data.appointmentNotifications,
        "contract_notifications": data.contractNotifications,
        "system_notifications": data.systemNotifications,
        "email_enabled": data.emailEnabled,
    }
    return to_preferences(notification_service.update_preferences(db, current_user.id, updates))


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notification = notification_service.mark_as_read(db, notification_id, current_user.id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    return to_response(notification)
