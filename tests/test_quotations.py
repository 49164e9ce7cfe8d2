import pytest

from propdesk.domain.quotations import service as quotation_service
from propdesk.models_notification import AppNotification
from propdesk.models_ticket import MaintenanceTicket, TicketUpdate
from tests.conftest import auth_headers

SERVICES = [
    {"name": "Deep cleaning", "description": "Two bedrooms", "quantity": 2, "unitPrice": 750},
    {"name": "Window wash", "quantity": 1, "unitPrice": 400},
]


@pytest.fixture()
def quotation(client, seller, unit):
    response = client.post(
        "/quotations",
        json={
            "title": "Move-out cleaning",
            "unitId": unit.id,
            "clientName": "Ana López",
            "clientEmail": "Ana@Example.com",
            "services": SERVICES,
        },
        headers=auth_headers(seller),
    )
    assert response.status_code == 201
    return response.json()


def send(client, user, quotation_id):
    return client.post(f"/quotations/{quotation_id}/send", headers=auth_headers(user))


class TestPricing:
    def test_totals_computed_server_side(self, quotation):
        assert [s["subtotal"] for s in quotation["services"]] == [1500, 400]
        assert quotation["subtotal"] == 1900
        assert quotation["adminFeePercentage"] == 15
        assert quotation["adminFee"] == 285
        assert quotation["total"] == 2185
        assert quotation["status"] == "draft"
        assert quotation["clientEmail"] == "ana@example.com"

    def test_agency_default_admin_fee(self, client, db, agency, seller):
        agency.default_admin_fee_percent = 10
        db.commit()

        response = client.post(
            "/quotations", json={"title": "Repairs", "services": SERVICES}, headers=auth_headers(seller)
        )

        assert response.json()["adminFee"] == 190
        assert response.json()["total"] == 2090

    def test_explicit_fee_overrides_default(self, client, seller):
        response = client.post(
            "/quotations",
            json={"title": "Repairs", "services": SERVICES, "adminFeePercentage": 0},
            headers=auth_headers(seller),
        )
        assert response.json()["total"] == 1900

    def test_service_lines_required(self, client, seller):
        response = client.post("/quotations", json={"title": "Empty", "services": []}, headers=auth_headers(seller))
        assert response.status_code == 422

    def test_update_reprices(self, client, seller, quotation):
        response = client.patch(
            f"/quotations/{quotation['id']}",
            json={"services": [{"name": "Pool cleaning", "quantity": 3, "unitPrice": 100}]},
            headers=auth_headers(seller),
        )

        body = response.json()
        assert body["subtotal"] == 300
        assert body["adminFee"] == 45
        assert body["total"] == 345

    def test_fee_only_update_keeps_lines(self, client, seller, quotation):
        response = client.patch(
            f"/quotations/{quotation['id']}", json={"adminFeePercentage": 20}, headers=auth_headers(seller)
        )

        body = response.json()
        assert body["subtotal"] == 1900
        assert body["adminFee"] == 380
        assert body["services"][0]["name"] == "Deep cleaning"


class TestLifecycle:
    def test_send_marks_sent_and_emails_client(self, client, seller, quotation, sent_emails):
        response = send(client, seller, quotation["id"])

        assert response.status_code == 200
        body = response.json()
        assert body["emailSent"] is True
        assert body["quotation"]["status"] == "sent"
        assert body["quotation"]["sentAt"] is not None
        assert [e["to"] for e in sent_emails] == ["ana@example.com"]

    def test_send_reports_email_failure(self, client, monkeypatch, seller, quotation):
        async def failing_send(**kwargs):
            raise RuntimeError("Resend is down")

        monkeypatch.setattr(quotation_service, "send_quotation_email", failing_send)

        body = send(client, seller, quotation["id"]).json()

        assert body["emailSent"] is False
        assert body["quotation"]["status"] == "sent"

    def test_send_requires_client_email(self, client, seller):
        created = client.post(
            "/quotations", json={"title": "No email", "services": SERVICES}, headers=auth_headers(seller)
        ).json()
        assert send(client, seller, created["id"]).status_code == 400

    def test_invalid_transition(self, client, seller, quotation):
        response = client.patch(
            f"/quotations/{quotation['id']}/status", json={"status": "draft"}, headers=auth_headers(seller)
        )
        assert response.status_code == 200

        client.patch(f"/quotations/{quotation['id']}/status", json={"status": "rejected"}, headers=auth_headers(seller))
        response = client.patch(
            f"/quotations/{quotation['id']}/status", json={"status": "approved"}, headers=auth_headers(seller)
        )
        assert response.status_code == 400

    def test_status_endpoint_cannot_convert(self, client, seller, quotation):
        response = client.patch(
            f"/quotations/{quotation['id']}/status",
            json={"status": "converted_to_ticket"},
            headers=auth_headers(seller),
        )
        assert response.status_code == 400

    def test_approved_quotation_is_not_editable(self, client, seller, quotation):
        client.patch(f"/quotations/{quotation['id']}/status", json={"status": "approved"}, headers=auth_headers(seller))

        response = client.patch(f"/quotations/{quotation['id']}", json={"title": "New"}, headers=auth_headers(seller))

        assert response.status_code == 400

    def test_only_drafts_are_deleted(self, client, seller, quotation):
        send(client, seller, quotation["id"])
        assert client.delete(f"/quotations/{quotation['id']}", headers=auth_headers(seller)).status_code == 400

        client.patch(f"/quotations/{quotation['id']}/status", json={"status": "draft"}, headers=auth_headers(seller))
        assert client.delete(f"/quotations/{quotation['id']}", headers=auth_headers(seller)).status_code == 200

    def test_other_agency_cannot_read(self, client, make_user, other_agency, quotation):
        outsider = make_user("external_agency_seller", other_agency)
        assert client.get(f"/quotations/{quotation['id']}", headers=auth_headers(outsider)).status_code == 404

    def test_maintenance_role_forbidden(self, client, maintenance):
        assert client.get("/quotations", headers=auth_headers(maintenance)).status_code == 403

    def test_list_filters_by_status(self, client, seller, quotation):
        client.post("/quotations", json={"title": "Second", "services": SERVICES}, headers=auth_headers(seller))
        send(client, seller, quotation["id"])

        result = client.get("/quotations", params={"status": "sent"}, headers=auth_headers(seller)).json()

        assert result["total"] == 1
        assert result["data"][0]["id"] == quotation["id"]


class TestPublicResponse:
    def test_draft_is_hidden_from_public(self, client, quotation):
        assert client.get(f"/quotations/public/{quotation['publicId']}").status_code == 404

    def test_client_views_sent_quotation(self, client, seller, quotation):
        send(client, seller, quotation["id"])

        response = client.get(f"/quotations/public/{quotation['publicId']}")

        assert response.status_code == 200
        assert response.json()["agencyName"] == "Tulum Rentals"
        assert response.json()["total"] == 2185
        assert "clientEmail" not in response.json()

    def test_client_approves_and_creator_is_notified(self, client, db, seller, quotation):
        send(client, seller, quotation["id"])

        response = client.post(f"/quotations/public/{quotation['publicId']}/approve", json={"notes": "Go ahead"})

        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        assert response.json()["respondedAt"] is not None
        notification = db.query(AppNotification).filter(AppNotification.recipient_user_id == seller.id).one()
        assert notification.type == "quotation_approved"
        assert notification.category == "payment"

    def test_client_rejects_without_body(self, client, seller, quotation):
        send(client, seller, quotation["id"])

        response = client.post(f"/quotations/public/{quotation['publicId']}/reject")

        assert response.status_code == 200
        assert response.json()["status"] == "rejected"

    def test_second_response_rejected(self, client, seller, quotation):
        send(client, seller, quotation["id"])
        client.post(f"/quotations/public/{quotation['publicId']}/approve")

        response = client.post(f"/quotations/public/{quotation['publicId']}/reject")

        assert response.status_code == 400

    def test_unknown_public_id(self, client):
        assert client.get("/quotations/public/does-not-exist").status_code == 404


class TestConvertToTicket:
    def test_convert_approved_quotation(self, client, db, admin, seller, quotation, unit):
        send(client, seller, quotation["id"])
        client.post(f"/quotations/public/{quotation['publicId']}/approve")

        response = client.post(
            f"/quotations/{quotation['id']}/convert", json={"category": "cleaning"}, headers=auth_headers(admin)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["quotation"]["status"] == "converted_to_ticket"
        assert body["quotation"]["ticketId"] == body["ticket"]["id"]
        assert body["ticket"]["estimatedCost"] == 2185
        assert body["ticket"]["category"] == "cleaning"
        assert body["ticket"]["unitId"] == unit.id
        ticket = db.query(MaintenanceTicket).one()
        entry = db.query(TicketUpdate).filter(TicketUpdate.ticket_id == ticket.id).one()
        assert entry.notes == f"Created from quotation #{quotation['id']}"

    def test_deleting_ticket_returns_quotation_to_approved(self, client, admin, seller, quotation):
        send(client, seller, quotation["id"])
        client.post(f"/quotations/public/{quotation['publicId']}/approve")
        converted = client.post(f"/quotations/{quotation['id']}/convert", headers=auth_headers(admin)).json()

        response = client.delete(f"/tickets/{converted['ticket']['id']}", headers=auth_headers(admin))

        assert response.status_code == 200
        body = client.get(f"/quotations/{quotation['id']}", headers=auth_headers(admin)).json()
        assert body["ticketId"] is None
        assert body["status"] == "approved"
        again = client.post(f"/quotations/{quotation['id']}/convert", headers=auth_headers(admin))
        assert again.status_code == 200

    def test_convert_requires_approval(self, client, admin, quotation):
        response = client.post(f"/quotations/{quotation['id']}/convert", headers=auth_headers(admin))
        assert response.status_code == 400

    def test_convert_requires_unit(self, client, admin, seller):
        created = client.post(
            "/quotations", json={"title": "No unit", "services": SERVICES}, headers=auth_headers(seller)
        ).json()
        client.patch(f"/quotations/{created['id']}/status", json={"status": "approved"}, headers=auth_headers(seller))

        response = client.post(f"/quotations/{created['id']}/convert", headers=auth_headers(admin))

        assert response.status_code == 400

    def test_seller_cannot_convert(self, client, seller, quotation):
        assert client.post(f"/quotations/{quotation['id']}/convert", headers=auth_headers(seller)).status_code == 403
