"""
Automated status transitions for rental contracts
Completes active leases whose end date has passed and frees their units
"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..domain.rentals.repository import RentalRepository
from ..domain.rentals.service import release_unit

logger = logging.getLogger(__name__)


def complete_expired_leases(db: Session, today: Optional[date] = None) -> dict:
    """
    Mark active leases that ended before `today` as completed.
    Should be run as a scheduled job (daily cron)

    Returns:
        dict: Summary of status changes made
    """
    summary = {"active_to_completed": 0, "units_released": 0}
    today = today or date.today()

    try:
        for contract in RentalRepository.expired_active(db, today):
            contract.status = "completed"
            contract.completed_at = datetime.utcnow()
            release_unit(db, contract)
            summary["active_to_completed"] += 1
            summary["units_released"] += 1
            logger.info(f"✅ Rental contract {contract.id} transitioned: active → completed (ended {contract.lease_end_date})")

        if summary["active_to_completed"]:
            db.commit()
            logger.info(f"🎯 Lease automation complete: {summary}")
        else:
            logger.info("✨ No lease status updates needed")

        return summary

    except Exception as e:
        logger.error(f"❌ Error in lease status automation: {e}")
        db.rollback()
        raise
