"""
In-app notification service

Every notification is a row in app_notifications, written synchronously and
gated by the recipient's per-category preferences. When the recipient opted
into email the notification is mirrored through Resend on a best-effort basis:
delivery failures are logged and never surface to the caller.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from .. import email_service
from ..models import User
from ..models_notification import AppNotification, NotificationPreference

logger = logging.getLogger(__name__)

NOTIFICATION_CATEGORIES = ["lead", "payment", "maintenance", "message", "appointment", "contract", "system"]
DEFAULT_LIST_LIMIT = 50
RECENT_LIMIT = 10


def get_preferences(db: Session, user_id: int) -> Optional[NotificationPreference]:
    return db.query(NotificationPreference).filter(NotificationPreference.user_id == user_id).first()


def get_or_create_preferences(db: Session, user_id: int) -> NotificationPreference:
    """Preferences row for a user, created with everything enabled on first read"""
    prefs = get_preferences(db, user_id)
    if prefs:
        return prefs

    prefs = NotificationPreference(user_id=user_id)
    db.add(prefs)
    db.commit()
    db.refresh(prefs)
    logger.info(f"✅ Created default notification preferences for user {user_id}")
    return prefs


def update_preferences(db: Session, user_id: int, updates: dict) -> NotificationPreference:
    prefs = get_or_create_preferences(db, user_id)
    for key, value in updates.items():
        if value is not None and hasattr(prefs, key):
            setattr(prefs, key, value)
    db.commit()
    db.refresh(prefs)
    return prefs


def is_category_enabled(prefs: Optional[NotificationPreference], category: str) -> bool:
    if prefs is None:
        return True
    return bool(getattr(prefs, f"{category}_notifications", True))


async def create_notification(
    db: Session,
    recipient_user_id: int,
    category: str,
    type: str,
    title: str,
    body: Optional[str] = None,
    payload: Optional[dict] = None,
    agency_id: Optional[int] = None,
    triggered_by: Optional[User] = None,
    action_url: Optional[str] = None,
    commit: bool = True,
) -> Optional[AppNotification]:
    """
    Store a notification for one user.

    Returns:
        The stored notification, or None when the recipient disabled the category
    """
    if category not in NOTIFICATION_CATEGORIES:
        raise ValueError(f"Unknown notification category: {category}")

    recipient = db.query(User).filter(User.id == recipient_user_id).first()
    if not recipient:
        logger.warning(f"⚠️ Notification '{type}' skipped: user {recipient_user_id} not found")
        return None

    prefs = get_preferences(db, recipient_user_id)
    if not is_category_enabled(prefs, category):
        logger.debug(f"ℹ️ User {recipient_user_id} disabled {category} notifications, skipping '{type}'")
        return None

    notification = AppNotification(
        recipient_user_id=recipient_user_id,
        recipient_role=recipient.role,
        agency_id=agency_id if agency_id is not None else recipient.external_agency_id,
        category=category,
        type=type,
        title=title,
        body=body,
        payload={**(payload or {}), **({"actionUrl": action_url} if action_url else {})} or None,
        triggered_by_user_id=triggered_by.id if triggered_by else None,
        triggered_by_name=(triggered_by.full_name or triggered_by.email) if triggered_by else None,
    )
    db.add(notification)
    if commit:
        db.commit()
        db.refresh(notification)
    else:
        db.flush()

    if prefs and prefs.email_enabled and recipient.email:
        try:
            await email_service.send_notification_email(
                to=recipient.email, title=title, body=body or "", action_url=action_url
            )
        except Exception as e:
            logger.error(f"❌ Failed to email notification '{type}' to {recipient.email}: {e}")

    return notification


async def create_notifications(
    db: Session,
    recipient_user_ids: list[int],
    category: str,
    type: str,
    title: str,
    body: Optional[str] = None,
    payload: Optional[dict] = None,
    agency_id: Optional[int] = None,
    triggered_by: Optional[User] = None,
    action_url: Optional[str] = None,
) -> list[AppNotification]:
    """Fan one event out to several users in a single transaction; duplicates are ignored"""
    created = []
    for user_id in dict.fromkeys(recipient_user_ids):
        notification = await create_notification(
            db,
            recipient_user_id=user_id,
            category=category,
            type=type,
            title=title,
            body=body,
            payload=payload,
            agency_id=agency_id,
            triggered_by=triggered_by,
            action_url=action_url,
            commit=False,
        )
        if notification:
            created.append(notification)
    db.commit()
    logger.info(f"🔔 '{type}' notification sent to {len(created)}/{len(recipient_user_ids)} users")
    return created


def list_notifications(
    db: Session,
    user_id: int,
    category: Optional[str] = None,
    is_read: Optional[bool] = None,
    limit: int = DEFAULT_LIST_LIMIT,
    offset: int = 0,
) -> tuple[list[AppNotification], int]:
    """One page of the user's notifications, newest first, with the unpaged total"""
    query = db.query(AppNotification).filter(AppNotification.recipient_user_id == user_id)
    if category:
        query = query.filter(AppNotification.category == category)
    if is_read is not None:
        query = query.filter(AppNotification.is_read == is_read)
    total = query.count()
    notifications = (
        query.order_by(AppNotification.created_at.desc(), AppNotification.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return notifications, total


def get_unread_count(db: Session, user_id: int) -> int:
    return (
        db.query(AppNotification)
        .filter(AppNotification.recipient_user_id == user_id, AppNotification.is_read.is_(False))
        .count()
    )


def get_recent(db: Session, user_id: int) -> dict:
    """Bell dropdown: latest notifications plus the unread badge count"""
    notifications, _ = list_notifications(db, user_id, limit=RECENT_LIMIT)
    return {
        "notifications": notifications,
        "unreadCount": get_unread_count(db, user_id),
    }


def mark_as_read(db: Session, notification_id: int, user_id: int) -> Optional[AppNotification]:
    """Mark one of the user's notifications read; None if it isn't theirs"""
    notification = (
        db.query(AppNotification)
        .filter(AppNotification.id == notification_id, AppNotification.recipient_user_id == user_id)
        .first()
    )
    if not notification:
        return None
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.utcnow()
        db.commit()
        db.refresh(notification)
    return notification


def mark_all_as_read(db: Session, user_id: int) -> int:
    count = (
        db.query(AppNotification)
        .filter(AppNotification.recipient_user_id == user_id, AppNotification.is_read.is_(False))
        .update({"is_read": True, "read_at": datetime.utcnow()}, synchronize_session=False)
    )
    db.commit()
    return count


# ============================================
# Event helpers
# ============================================


async def notify_ticket_update(
    db: Session,
    recipient_user_ids: list[int],
    ticket,
    type: str,
    title: str,
    body: str,
    actor: Optional[User] = None,
) -> list[AppNotification]:
    """Maintenance-category notification about a ticket; the actor is never notified"""
    recipients = [uid for uid in recipient_user_ids if uid and (actor is None or uid != actor.id)]
    if not recipients:
        return []
    return await create_notifications(
        db,
        recipients,
        category="maintenance",
        type=type,
        title=title,
        body=body,
        payload={"ticketId": ticket.id, "status": ticket.status},
        agency_id=ticket.agency_id,
        triggered_by=actor,
        action_url=f"/tickets/{ticket.id}",
    )


async def notify_quotation_status(
    db: Session, recipient_user_id: int, quotation, actor: Optional[User] = None
) -> Optional[AppNotification]:
    return await create_notification(
        db,
        recipient_user_id=recipient_user_id,
        category="payment",
        type=f"quotation_{quotation.status}",
        title=f"Quotation {quotation.status.replace('_', ' ')}",
        body=f"'{quotation.title}' for {quotation.client_name or 'client'} is now {quotation.status.replace('_', ' ')}.",
        payload={"quotationId": quotation.id, "status": quotation.status, "total": quotation.total},
        agency_id=quotation.agency_id,
        triggered_by=actor,
        action_url=f"/quotations/{quotation.id}",
    )


async def notify_contract_status(
    db: Session, recipient_user_ids: list[int], contract, actor: Optional[User] = None
) -> list[AppNotification]:
    """Contract-category notification about a lease status change; the actor is never notified"""
    recipients = [uid for uid in recipient_user_ids if uid and (actor is None or uid != actor.id)]
    if not recipients:
        return []
    label = contract.status.replace("_", " ")
    return await create_notifications(
        db,
        recipients,
        category="contract",
        type=f"contract_{contract.status}",
        title=f"Lease #{contract.id} is now {label}",
        body=f"{contract.lease_months} months at ${contract.monthly_rent:,.2f} {contract.currency}",
        payload={
            "contractId": contract.id,
            "status": contract.status,
            "sellerCommission": contract.seller_commission_amount,
        },
        agency_id=contract.agency_id,
        triggered_by=actor,
        action_url=f"/rentals/{contract.id}",
    )


async def notify_payment_status(
    db: Session,
    recipient_user_id: int,
    status: str,
    amount: float,
    description: str,
    payload: Optional[dict] = None,
) -> Optional[AppNotification]:
    return await create_notification(
        db,
        recipient_user_id=recipient_user_id,
        category="payment",
        type=f"payment_{status}",
        title=f"Payment {status}",
        body=f"{description}: ${amount:,.2f}",
        payload={**(payload or {}), "amount": amount, "status": status},
    )


async def notify_system(
    db: Session, recipient_user_ids: list[int], title: str, body: str, type: str = "system_announcement"
) -> list[AppNotification]:
    return await create_notifications(db, recipient_user_ids, category="system", type=type, title=title, body=body)
