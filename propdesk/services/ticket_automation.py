"""
Automated status transitions for maintenance tickets
Handles resolved → closed once a ticket has sat resolved long enough
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ..config import TICKET_AUTO_CLOSE_DAYS
from ..models_ticket import MaintenanceTicket, TicketUpdate

logger = logging.getLogger(__name__)


def close_stale_resolved_tickets(
    db: Session, days: int = TICKET_AUTO_CLOSE_DAYS, now: Optional[datetime] = None
) -> dict:
    """
    Close tickets resolved more than `days` ago.
    Should be run as a scheduled job (daily cron)

    Returns:
        dict: Summary of status changes made
    """
    summary = {"resolved_to_closed": 0, "total_updated": 0}
    now = now or datetime.utcnow()
    cutoff = now - timedelta(days=days)

    try:
        tickets = (
            db.query(MaintenanceTicket)
            .filter(
                MaintenanceTicket.status == "resolved",
                MaintenanceTicket.resolved_at.isnot(None),
                MaintenanceTicket.resolved_at <= cutoff,
            )
            .all()
        )

        for ticket in tickets:
            ticket.status = "closed"
            ticket.closed_at = now
            db.add(
                TicketUpdate(
                    ticket_id=ticket.id,
                    author_id=None,
                    type="status_change",
                    old_status="resolved",
                    new_status="closed",
                    notes=f"Closed automatically after {days} days resolved",
                )
            )
            summary["resolved_to_closed"] += 1
            logger.info(f"✅ Ticket {ticket.id} transitioned: resolved → closed")

        summary["total_updated"] = summary["resolved_to_closed"]
        if summary["total_updated"]:
            db.commit()
            logger.info(f"🎯 Ticket automation complete: {summary}")
        else:
            logger.info("✨ No ticket status updates needed")

        return summary

    except Exception as e:
        logger.error(f"❌ Error in ticket status automation: {e}")
        db.rollback()
        raise
