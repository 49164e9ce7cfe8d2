"""
In-app notifications, per-user notification preferences and feedback reports
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class AppNotification(Base):
    __tablename__ = "app_notifications"

    id = Column(Integer, primary_key=True, index=True)
    recipient_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    recipient_role = Column(String(50), nullable=True)
    agency_id = Column(Integer, ForeignKey("external_agencies.id"), nullable=True)
    # lead, payment, maintenance, message, appointment, contract, system
    category = Column(String(30), nullable=False, index=True)
    type = Column(String(100), nullable=False)
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=True)
    payload = Column(JSON, nullable=True)
    triggered_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    triggered_by_name = Column(String(255), nullable=True)
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), index=True)


class NotificationPreference(Base):
    """One row per user; a missing row means every category is enabled"""

    __tablename__ = "notification_preferences"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    lead_notifications = Column(Boolean, default=True, nullable=False)
    payment_notifications = Column(Boolean, default=True, nullable=False)
    maintenance_notifications = Column(Boolean, default=True, nullable=False)
    message_notifications = Column(Boolean, default=True, nullable=False)
    appointment_notifications = Column(Boolean, default=True, nullable=False)
    contract_notifications = Column(Boolean, default=True, nullable=False)
    system_notifications = Column(Boolean, default=True, nullable=False)
    email_enabled = Column(Boolean, default=False, nullable=False)  # Mirror notifications by email
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="notification_preferences")


class FeedbackReport(Base):
    __tablename__ = "feedback_reports"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)  # Anonymous allowed
    agency_id = Column(Integer, ForeignKey("external_agencies.id"), nullable=True)
    type = Column(String(20), nullable=False)  # bug, suggestion
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    urgency = Column(String(20), default="medium", nullable=False)  # low, medium, high
    # new → in_review → resolved / dismissed
    status = Column(String(20), default="new", nullable=False, index=True)
    page_url = Column(String(1000), nullable=True)
    contact_email = Column(String(255), nullable=True)
    admin_notes = Column(Text, nullable=True)
    handled_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    resolution = Column(Text, nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
