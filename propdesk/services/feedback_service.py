"""Feedback reports (bugs and suggestions) submitted from the app"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ..models import User
from ..models_notification import FeedbackReport
from ..utils.sanitization import sanitize_string

logger = logging.getLogger(__name__)

FEEDBACK_TYPES = ["bug", "suggestion"]
FEEDBACK_URGENCIES = ["low", "medium", "high"]
FEEDBACK_STATUSES = ["new", "in_review", "resolved", "dismissed"]
OPEN_STATUSES = ["new", "in_review"]


class FeedbackService:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        type: str,
        title: str,
        description: str,
        urgency: str = "medium",
        page_url: Optional[str] = None,
        contact_email: Optional[str] = None,
        user: Optional[User] = None,
    ) -> FeedbackReport:
        report = FeedbackReport(
            user_id=user.id if user else None,
            agency_id=user.external_agency_id if user else None,
            type=type,
            title=sanitize_string(title),
            description=sanitize_string(description),
            urgency=urgency,
            page_url=page_url,
            contact_email=contact_email or (user.email if user else None),
        )
        self.db.add(report)
        self.db.commit()
        self.db.refresh(report)
        logger.info(f"📝 Feedback #{report.id} ({type}, {urgency}) submitted by user {report.user_id or 'anonymous'}")
        return report

    def list(
        self,
        status: Optional[str] = None,
        type: Optional[str] = None,
        urgency: Optional[str] = None,
        agency_id: Optional[int] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[FeedbackReport], int]:
        """Filtered page of reports, newest first, plus the unpaged total"""
        query = self.db.query(FeedbackReport)
        if agency_id:
            query = query.filter(FeedbackReport.agency_id == agency_id)
        if status:
            query = query.filter(FeedbackReport.status == status)
        if type:
            query = query.filter(FeedbackReport.type == type)
        if urgency:
            query = query.filter(FeedbackReport.urgency == urgency)
        total = query.count()
        reports = (
            query.order_by(FeedbackReport.created_at.desc(), FeedbackReport.id.desc()).offset(offset).limit(limit).all()
        )
        return reports, total

    def get(self, report_id: int) -> FeedbackReport:
        report = self.db.query(FeedbackReport).filter(FeedbackReport.id == report_id).first()
        if not report:
            raise HTTPException(status_code=404, detail="Feedback report not found")
        return report

    def update_status(
        self,
        report_id: int,
        status: str,
        handled_by: User,
        admin_notes: Optional[str] = None,
        resolution: Optional[str] = None,
    ) -> FeedbackReport:
        """Move a report through review; resolving stamps resolved_at"""
        report = self.get(report_id)
        report.status = status
        report.handled_by_id = handled_by.id
        if admin_notes is not None:
            report.admin_notes = sanitize_string(admin_notes)
        if status == "resolved":
            report.resolved_at = datetime.utcnow()
            if resolution is not None:
                report.resolution = sanitize_string(resolution)
        else:
            # reopening or dismissing drops any earlier resolution
            report.resolved_at = None
            report.resolution = None
        self.db.commit()
        self.db.refresh(report)
        logger.info(f"✅ Feedback #{report.id} → {status} by {handled_by.email}")
        return report

    def stats(self) -> dict:
        new_count = self.db.query(FeedbackReport).filter(FeedbackReport.status == "new").count()
        high_urgency = (
            self.db.query(FeedbackReport)
            .filter(FeedbackReport.urgency == "high", FeedbackReport.status.in_(OPEN_STATUSES))
            .count()
        )
        return {"newCount": new_count, "highUrgencyCount": high_urgency}
