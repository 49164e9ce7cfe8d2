from datetime import datetime, timedelta

from propdesk.models_ticket import MaintenanceTicket, TicketUpdate
from propdesk.services.ticket_automation import close_stale_resolved_tickets

NOW = datetime(2025, 3, 20, 0, 5)


def add_ticket(db, unit, status, resolved_days_ago=None):
    ticket = MaintenanceTicket(
        agency_id=unit.agency_id,
        unit_id=unit.id,
        title=f"{status} ticket",
        status=status,
        resolved_at=NOW - timedelta(days=resolved_days_ago) if resolved_days_ago is not None else None,
    )
    db.add(ticket)
    db.commit()
    return ticket


def test_closes_only_stale_resolved_tickets(db, unit):
    stale = add_ticket(db, unit, "resolved", resolved_days_ago=8)
    recent = add_ticket(db, unit, "resolved", resolved_days_ago=2)
    still_open = add_ticket(db, unit, "in_progress")

    summary = close_stale_resolved_tickets(db, days=7, now=NOW)

    assert summary == {"resolved_to_closed": 1, "total_updated": 1}
    db.refresh(stale)
    db.refresh(recent)
    db.refresh(still_open)
    assert stale.status == "closed"
    assert stale.closed_at == NOW
    assert recent.status == "resolved"
    assert still_open.status == "in_progress"


def test_records_system_timeline_entry(db, unit):
    ticket = add_ticket(db, unit, "resolved", resolved_days_ago=30)

    close_stale_resolved_tickets(db, days=7, now=NOW)

    entry = db.query(TicketUpdate).filter(TicketUpdate.ticket_id == ticket.id).one()
    assert entry.author_id is None
    assert entry.old_status == "resolved"
    assert entry.new_status == "closed"
    assert entry.notes == "Closed automatically after 7 days resolved"


def test_nothing_to_do(db, unit):
    add_ticket(db, unit, "open")
    assert close_stale_resolved_tickets(db, days=7, now=NOW) == {"resolved_to_closed": 0, "total_updated": 0}
