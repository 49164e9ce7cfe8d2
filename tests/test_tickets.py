from datetime import datetime

import pytest

from propdesk.models_notification import AppNotification
from propdesk.models_ticket import MaintenanceTicket, TicketUpdate
from tests.conftest import auth_headers


@pytest.fixture()
def ticket(client, seller, unit):
    response = client.post(
        "/tickets",
        json={"unitId": unit.id, "title": "Leaking sink", "category": "plumbing", "priority": "high"},
        headers=auth_headers(seller),
    )
    assert response.status_code == 201
    return response.json()


def assign(client, admin, ticket_id, user):
    return client.patch(
        f"/tickets/{ticket_id}/assign", json={"assignedToId": user.id}, headers=auth_headers(admin)
    )


def set_status(client, user, ticket_id, status, notes=None):
    return client.patch(
        f"/tickets/{ticket_id}/status", json={"status": status, "notes": notes}, headers=auth_headers(user)
    )


class TestCreateTicket:
    def test_seller_creates_ticket_with_commission_snapshot(self, client, ticket, unit):
        assert ticket["status"] == "open"
        assert ticket["unitId"] == unit.id
        assert ticket["condominiumName"] == "Aldea Zama Residences"
        assert ticket["commissionPercent"] == 15
        assert ticket["isPaid"] is False

    def test_snapshot_follows_agency_setting(self, client, db, agency, seller, unit):
        agency.maintenance_commission_percent = 10
        db.commit()

        response = client.post(
            "/tickets", json={"unitId": unit.id, "title": "Broken AC"}, headers=auth_headers(seller)
        )

        assert response.json()["commissionPercent"] == 10

    def test_creation_writes_timeline_entry(self, client, seller, ticket):
        response = client.get(f"/tickets/{ticket['id']}/updates", headers=auth_headers(seller))

        entries = response.json()
        assert [e["type"] for e in entries] == ["created"]
        assert entries[0]["newStatus"] == "open"

    def test_seller_requires_unit(self, client, seller):
        response = client.post("/tickets", json={"title": "No unit"}, headers=auth_headers(seller))
        assert response.status_code == 400

    def test_unit_of_other_agency_is_not_found(self, client, db, make_user, other_agency, unit):
        outsider = make_user("external_agency_seller", other_agency)
        response = client.post(
            "/tickets", json={"unitId": unit.id, "title": "Not mine"}, headers=auth_headers(outsider)
        )
        assert response.status_code == 404

    def test_tenant_reports_for_rented_unit(self, client, tenant, unit):
        response = client.post("/tickets", json={"title": "No hot water"}, headers=auth_headers(tenant))

        assert response.status_code == 201
        assert response.json()["unitId"] == unit.id
        assert response.json()["reportedById"] == tenant.id

    def test_tenant_cannot_report_for_other_unit(self, client, make_user, tenant, unit):
        stranger = make_user("tenant")
        response = client.post(
            "/tickets", json={"unitId": unit.id, "title": "Not my unit"}, headers=auth_headers(stranger)
        )
        assert response.status_code == 403

    def test_only_admins_assign_on_create(self, client, seller, maintenance, unit):
        response = client.post(
            "/tickets",
            json={"unitId": unit.id, "title": "Paint", "assignedToId": maintenance.id},
            headers=auth_headers(seller),
        )
        assert response.status_code == 403

    def test_admin_assigns_on_create_and_assignee_is_notified(self, client, db, admin, maintenance, unit):
        response = client.post(
            "/tickets",
            json={"unitId": unit.id, "title": "Paint", "assignedToId": maintenance.id},
            headers=auth_headers(admin),
        )

        assert response.status_code == 201
        assert response.json()["assignedToId"] == maintenance.id
        notifications = db.query(AppNotification).filter(AppNotification.recipient_user_id == maintenance.id).all()
        assert [n.type for n in notifications] == ["ticket_assigned"]
        assert notifications[0].category == "maintenance"

    def test_invalid_category_rejected(self, client, seller, unit):
        response = client.post(
            "/tickets", json={"unitId": unit.id, "title": "x", "category": "gardening"}, headers=auth_headers(seller)
        )
        assert response.status_code == 422


class TestStatusWorkflow:
    def test_admin_moves_ticket_through_lifecycle(self, client, admin, ticket):
        ticket_id = ticket["id"]

        assert set_status(client, admin, ticket_id, "in_progress").status_code == 200
        resolved = set_status(client, admin, ticket_id, "resolved")
        assert resolved.json()["resolvedAt"] is not None
        closed = set_status(client, admin, ticket_id, "closed")
        assert closed.status_code == 200
        assert closed.json()["closedAt"] is not None

    def test_invalid_transition_rejected(self, client, admin, ticket):
        response = set_status(client, admin, ticket["id"], "resolved")

        assert response.status_code == 400
        assert "Cannot transition from open to resolved" in response.json()["detail"]

    def test_closed_is_terminal(self, client, admin, ticket):
        set_status(client, admin, ticket["id"], "closed")
        response = set_status(client, admin, ticket["id"], "open")
        assert response.status_code == 400

    def test_same_status_is_a_noop(self, client, db, admin, ticket):
        response = set_status(client, admin, ticket["id"], "open")

        assert response.status_code == 200
        count = db.query(TicketUpdate).filter(TicketUpdate.type == "status_change").count()
        assert count == 0

    def test_reopening_clears_resolved_at(self, client, admin, ticket):
        set_status(client, admin, ticket["id"], "in_progress")
        set_status(client, admin, ticket["id"], "resolved")
        response = set_status(client, admin, ticket["id"], "in_progress")

        assert response.json()["resolvedAt"] is None

    def test_status_change_records_timeline(self, client, admin, ticket):
        set_status(client, admin, ticket["id"], "in_progress", notes="Plumber on site")

        entries = client.get(f"/tickets/{ticket['id']}/updates", headers=auth_headers(admin)).json()
        change = entries[-1]
        assert change["type"] == "status_change"
        assert change["oldStatus"] == "open"
        assert change["newStatus"] == "in_progress"
        assert change["notes"] == "Plumber on site"

    def test_seller_cannot_change_status(self, client, seller, ticket):
        assert set_status(client, seller, ticket["id"], "in_progress").status_code == 403

    def test_assigned_maintenance_works_ticket_but_cannot_close(self, client, admin, maintenance, ticket):
        assign(client, admin, ticket["id"], maintenance)

        assert set_status(client, maintenance, ticket["id"], "in_progress").status_code == 200
        assert set_status(client, maintenance, ticket["id"], "resolved").status_code == 200
        assert set_status(client, maintenance, ticket["id"], "closed").status_code == 403

    def test_status_change_notifies_reporter_and_assignee_but_not_actor(
        self, client, db, admin, seller, maintenance, ticket
    ):
        assign(client, admin, ticket["id"], maintenance)
        db.query(AppNotification).delete()
        db.commit()

        set_status(client, maintenance, ticket["id"], "in_progress")

        recipients = sorted(n.recipient_user_id for n in db.query(AppNotification).all())
        assert recipients == [seller.id]

    def test_status_change_emails_agency_inbox(self, client, db, agency, admin, ticket, sent_emails):
        set_status(client, admin, ticket["id"], "in_progress")
        assert sent_emails == []

        agency.notification_email = "ops@tulumrentals.mx"
        db.commit()
        set_status(client, admin, ticket["id"], "on_hold")

        assert [e["to"] for e in sent_emails] == ["ops@tulumrentals.mx"]
        assert sent_emails[0]["subject"] == f"Ticket #{ticket['id']}: on hold"


class TestVisibility:
    def test_unassigned_maintenance_cannot_see_ticket(self, client, maintenance, ticket):
        response = client.get(f"/tickets/{ticket['id']}", headers=auth_headers(maintenance))
        assert response.status_code == 404

    def test_maintenance_lists_only_assigned(self, client, admin, maintenance, seller, unit, ticket):
        client.post("/tickets", json={"unitId": unit.id, "title": "Second"}, headers=auth_headers(seller))
        assign(client, admin, ticket["id"], maintenance)

        result = client.get("/tickets", headers=auth_headers(maintenance)).json()

        assert result["total"] == 1
        assert result["data"][0]["id"] == ticket["id"]

    def test_other_agency_sees_not_found(self, client, make_user, other_agency, ticket):
        outsider = make_user("external_agency_admin", other_agency)
        response = client.get(f"/tickets/{ticket['id']}", headers=auth_headers(outsider))
        assert response.status_code == 404

    def test_tenant_sees_only_own_reports(self, client, tenant, ticket):
        client.post("/tickets", json={"title": "Door squeaks"}, headers=auth_headers(tenant))

        result = client.get("/tickets", headers=auth_headers(tenant)).json()

        assert result["total"] == 1
        assert result["data"][0]["title"] == "Door squeaks"
        assert client.get(f"/tickets/{ticket['id']}", headers=auth_headers(tenant)).status_code == 404

    def test_owner_role_cannot_list_tickets(self, client, owner):
        assert client.get("/tickets", headers=auth_headers(owner)).status_code == 403


class TestListing:
    def test_filters_and_priority_sort(self, client, admin, seller, unit):
        for title, priority in [("Low", "low"), ("Urgent", "urgent"), ("Medium", "medium")]:
            client.post(
                "/tickets", json={"unitId": unit.id, "title": title, "priority": priority}, headers=auth_headers(seller)
            )

        result = client.get(
            "/tickets", params={"sort": "priority", "direction": "desc"}, headers=auth_headers(admin)
        ).json()
        assert [t["title"] for t in result["data"]] == ["Urgent", "Medium", "Low"]

        filtered = client.get("/tickets", params={"priority": "low"}, headers=auth_headers(admin)).json()
        assert filtered["total"] == 1

    def test_comma_separated_status_filter(self, client, admin, seller, unit, ticket):
        set_status(client, admin, ticket["id"], "on_hold")
        client.post("/tickets", json={"unitId": unit.id, "title": "Open one"}, headers=auth_headers(seller))

        result = client.get("/tickets", params={"status": "open,on_hold"}, headers=auth_headers(admin)).json()
        assert result["total"] == 2
        only_hold = client.get("/tickets", params={"status": "on_hold"}, headers=auth_headers(admin)).json()
        assert only_hold["total"] == 1

    def test_pagination_envelope(self, client, admin, seller, unit):
        for i in range(3):
            client.post("/tickets", json={"unitId": unit.id, "title": f"T{i}"}, headers=auth_headers(seller))

        result = client.get("/tickets", params={"pageSize": 2, "page": 2}, headers=auth_headers(admin)).json()

        assert result["total"] == 3
        assert result["totalPages"] == 2
        assert len(result["data"]) == 1


class TestEditsAndTimeline:
    def test_cost_update_is_recorded(self, client, admin, ticket):
        response = client.patch(f"/tickets/{ticket['id']}", json={"actualCost": 1200}, headers=auth_headers(admin))

        assert response.status_code == 200
        body = response.json()
        assert body["actualCost"] == 1200
        assert body["commission"] == 180
        assert body["totalCharge"] == 1380
        entries = client.get(f"/tickets/{ticket['id']}/updates", headers=auth_headers(admin)).json()
        assert entries[-1]["type"] == "cost_update"

    def test_maintenance_edits_limited_fields(self, client, admin, maintenance, ticket):
        assign(client, admin, ticket["id"], maintenance)

        ok = client.patch(
            f"/tickets/{ticket['id']}", json={"actualCost": 500, "scheduledTime": "10:30"}, headers=auth_headers(maintenance)
        )
        blocked = client.patch(f"/tickets/{ticket['id']}", json={"title": "Renamed"}, headers=auth_headers(maintenance))

        assert ok.status_code == 200
        assert blocked.status_code == 403

    def test_closed_ticket_cannot_be_edited(self, client, admin, ticket):
        set_status(client, admin, ticket["id"], "closed")
        response = client.patch(f"/tickets/{ticket['id']}", json={"title": "Late edit"}, headers=auth_headers(admin))
        assert response.status_code == 400

    def test_comment_is_sanitized_and_notifies(self, client, db, seller, tenant, admin, unit):
        created = client.post("/tickets", json={"title": "Noise"}, headers=auth_headers(tenant)).json()

        response = client.post(
            f"/tickets/{created['id']}/comments", json={"notes": "<b>Any update?</b>"}, headers=auth_headers(admin)
        )

        assert response.status_code == 201
        assert response.json()["notes"] == "&lt;b&gt;Any update?&lt;/b&gt;"
        notified = [n.recipient_user_id for n in db.query(AppNotification).filter(AppNotification.type == "ticket_comment")]
        assert notified == [tenant.id]

    def test_photo_upload(self, client, seller, ticket):
        response = client.post(
            f"/tickets/{ticket['id']}/photos",
            json={"url": "https://cdn.example.com/sink.jpg", "phase": "before"},
            headers=auth_headers(seller),
        )

        assert response.status_code == 201
        photos = client.get(f"/tickets/{ticket['id']}/photos", headers=auth_headers(seller)).json()
        assert [p["url"] for p in photos] == ["https://cdn.example.com/sink.jpg"]

    def test_photo_url_must_be_http(self, client, seller, ticket):
        response = client.post(
            f"/tickets/{ticket['id']}/photos", json={"url": "javascript:alert(1)"}, headers=auth_headers(seller)
        )
        assert response.status_code == 422


class TestPaymentAndDeletion:
    def test_open_ticket_cannot_be_marked_paid(self, client, admin, ticket):
        response = client.patch(f"/tickets/{ticket['id']}/paid", json={"isPaid": True}, headers=auth_headers(admin))
        assert response.status_code == 400

    def test_resolved_ticket_marked_paid(self, client, admin, ticket):
        client.patch(f"/tickets/{ticket['id']}", json={"actualCost": 1000}, headers=auth_headers(admin))
        set_status(client, admin, ticket["id"], "in_progress")
        set_status(client, admin, ticket["id"], "resolved")

        response = client.patch(f"/tickets/{ticket['id']}/paid", json={"isPaid": True}, headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["isPaid"] is True
        assert response.json()["paidAt"] is not None
        entries = client.get(f"/tickets/{ticket['id']}/updates", headers=auth_headers(admin)).json()
        assert entries[-1]["type"] == "payment"
        assert entries[-1]["notes"] == "Marked as paid ($1,150.00)"

    def test_assignee_notified_of_payment(self, client, db, admin, maintenance, ticket):
        assign(client, admin, ticket["id"], maintenance)
        client.patch(f"/tickets/{ticket['id']}", json={"actualCost": 200}, headers=auth_headers(admin))
        set_status(client, admin, ticket["id"], "in_progress")
        set_status(client, admin, ticket["id"], "resolved")

        client.patch(f"/tickets/{ticket['id']}/paid", json={"isPaid": True}, headers=auth_headers(admin))

        payment = db.query(AppNotification).filter(AppNotification.category == "payment").one()
        assert payment.recipient_user_id == maintenance.id
        assert payment.type == "payment_paid"
        assert payment.payload["ticketId"] == ticket["id"]

    def test_only_admin_deletes(self, client, db, admin, seller, ticket):
        assert client.delete(f"/tickets/{ticket['id']}", headers=auth_headers(seller)).status_code == 403

        response = client.delete(f"/tickets/{ticket['id']}", headers=auth_headers(admin))

        assert response.status_code == 200
        assert db.query(MaintenanceTicket).count() == 0
        assert db.query(TicketUpdate).count() == 0


class TestBiweeklyStats:
    @pytest.fixture()
    def period_tickets(self, db, agency, unit):
        rows = [
            # (created_at, status, actual_cost, category, is_paid)
            (datetime(2025, 1, 5, 10), "in_progress", 1000, "maintenance", False),
            (datetime(2025, 1, 15, 23, 30), "resolved", 200, "cleaning", True),
            (datetime(2025, 1, 16, 0, 0), "open", 999, "maintenance", False),
            (datetime(2024, 12, 31, 12), "closed", 500, "maintenance", True),
        ]
        for created_at, status, cost, category, is_paid in rows:
            db.add(
                MaintenanceTicket(
                    agency_id=agency.id,
                    unit_id=unit.id,
                    title=f"{category} {status}",
                    category=category,
                    status=status,
                    actual_cost=cost,
                    commission_percent=15,
                    is_paid=is_paid,
                    created_at=created_at,
                )
            )
        db.commit()

    def test_first_half_totals(self, client, admin, period_tickets):
        response = client.get(
            "/tickets/stats/biweekly", params={"year": 2025, "month": 1, "period": 1}, headers=auth_headers(admin)
        )

        assert response.status_code == 200
        stats = response.json()
        assert stats["period"]["startDate"] == "2025-01-01"
        assert stats["period"]["endDate"] == "2025-01-15"
        assert stats["total"] == 2
        assert stats["open"] == 1
        assert stats["resolved"] == 1
        assert stats["actualCost"] == 1200
        assert stats["commission"] == 180
        assert stats["totalCharge"] == 1380
        assert stats["paidTotal"] == 230

    def test_category_filter(self, client, admin, period_tickets):
        stats = client.get(
            "/tickets/stats/biweekly",
            params={"year": 2025, "month": 1, "period": 1, "category": "cleaning"},
            headers=auth_headers(admin),
        ).json()

        assert stats["total"] == 1
        assert stats["category"] == "cleaning"

    def test_partial_period_params_rejected(self, client, admin):
        response = client.get("/tickets/stats/biweekly", params={"year": 2025}, headers=auth_headers(admin))
        assert response.status_code == 400

    def test_invalid_period_rejected(self, client, admin):
        response = client.get(
            "/tickets/stats/biweekly", params={"year": 2025, "month": 1, "period": 3}, headers=auth_headers(admin)
        )
        assert response.status_code == 400

    @pytest.mark.parametrize("role", ["tenant", "seller", "maintenance"])
    def test_only_admins_read_stats(self, client, request, role):
        user = request.getfixturevalue(role)
        assert client.get("/tickets/stats/biweekly", headers=auth_headers(user)).status_code == 403
