"""
Ticket status workflow and role gates.

Status vocabulary: open, in_progress, resolved, closed, on_hold.
closed is terminal; resolved may be reopened to in_progress.
"""

from fastapi import HTTPException

from ...auth import EXTERNAL_ADMIN_ROLES
from ...models import User
from ...models_ticket import MaintenanceTicket

TICKET_STATUSES = ["open", "in_progress", "resolved", "closed", "on_hold"]
TICKET_PRIORITIES = ["low", "medium", "high", "urgent"]
TICKET_CATEGORIES = ["maintenance", "cleaning", "plumbing", "electrical", "appliances", "pest_control", "other"]
PHOTO_PHASES = ["before", "during", "after"]
UPDATE_TYPES = ["created", "status_change", "assignment", "comment", "cost_update", "photo", "payment"]

OPEN_STATUSES = ["open", "in_progress", "on_hold"]
DONE_STATUSES = ["resolved", "closed"]

VALID_TRANSITIONS = {
    "open": ["in_progress", "on_hold", "closed"],
    "in_progress": ["resolved", "on_hold", "closed"],
    "on_hold": ["open", "in_progress", "closed"],
    "resolved": ["closed", "in_progress"],
    "closed": [],
}

MAINTENANCE_ROLE = "external_agency_maintenance"
SELLER_ROLE = "external_agency_seller"

# Fields assigned maintenance staff may edit on their own tickets
MAINTENANCE_EDITABLE_FIELDS = {"scheduled_date", "scheduled_time", "actual_cost"}


def validate_status_transition(current_status: str, new_status: str) -> tuple[bool, str]:
    """
    Validate if a status transition is allowed

    Returns:
        tuple: (is_valid, error_message)
    """
    if new_status not in TICKET_STATUSES:
        return False, f"Invalid status: {new_status}"
    if current_status == new_status:
        return True, ""
    if new_status not in VALID_TRANSITIONS.get(current_status, []):
        return False, f"Cannot transition from {current_status} to {new_status}"
    return True, ""


def is_admin(user: User) -> bool:
    return user.role in EXTERNAL_ADMIN_ROLES


def is_assignee(user: User, ticket: MaintenanceTicket) -> bool:
    return ticket.assigned_to_id is not None and ticket.assigned_to_id == user.id


def can_view(user: User, ticket: MaintenanceTicket) -> bool:
    if user.external_agency_id == ticket.agency_id:
        if is_admin(user) or user.role == SELLER_ROLE:
            return True
        if user.role == MAINTENANCE_ROLE:
            return is_assignee(user, ticket)
    if user.role == "tenant":
        return ticket.reported_by_id == user.id
    return False


def ensure_can_change_status(user: User, ticket: MaintenanceTicket, new_status: str) -> None:
    """Admins move any ticket; maintenance staff move only their own and never close"""
    if is_admin(user):
        return
    if user.role == MAINTENANCE_ROLE and is_assignee(user, ticket):
        if new_status == "closed":
            raise HTTPException(status_code=403, detail="Maintenance staff cannot close tickets")
        return
    raise HTTPException(status_code=403, detail="You cannot change the status of this ticket")


def ensure_can_comment(user: User, ticket: MaintenanceTicket) -> None:
    if is_admin(user) or user.role == SELLER_ROLE:
        return
    if user.role == MAINTENANCE_ROLE and is_assignee(user, ticket):
        return
    if user.role == "tenant" and ticket.reported_by_id == user.id:
        return
    raise HTTPException(status_code=403, detail="You cannot comment on this ticket")


def ensure_can_edit(user: User, ticket: MaintenanceTicket, fields: set[str]) -> None:
    if is_admin(user):
        return
    if user.role == MAINTENANCE_ROLE and is_assignee(user, ticket):
        blocked = fields - MAINTENANCE_EDITABLE_FIELDS
        if not blocked:
            return
        raise HTTPException(status_code=403, detail=f"Maintenance staff cannot edit: {', '.join(sorted(blocked))}")
    raise HTTPException(status_code=403, detail="You cannot edit this ticket")


def ensure_can_add_photo(user: User, ticket: MaintenanceTicket) -> None:
    if is_admin(user) or is_assignee(user, ticket) or ticket.reported_by_id == user.id:
        return
    raise HTTPException(status_code=403, detail="You cannot add photos to this ticket")


def ensure_admin(user: User) -> None:
    if not is_admin(user):
        raise HTTPException(status_code=403, detail="Only agency admins can perform this action")
