import asyncio

import pytest

from propdesk.models_notification import AppNotification, NotificationPreference
from propdesk.services import notification_service
from tests.conftest import auth_headers


def notify(db, user, category="system", **kwargs):
    return asyncio.run(
        notification_service.create_notification(
            db,
            recipient_user_id=user.id,
            category=category,
            type=kwargs.pop("type", "system_announcement"),
            title=kwargs.pop("title", "Scheduled maintenance"),
            **kwargs,
        )
    )


class TestCreateNotification:
    def test_stores_notification_with_recipient_context(self, db, seller, admin):
        notification = notify(db, seller, category="maintenance", triggered_by=admin, action_url="/tickets/7")

        assert notification.id is not None
        assert notification.recipient_role == "external_agency_seller"
        assert notification.agency_id == seller.external_agency_id
        assert notification.triggered_by_name == admin.full_name
        assert notification.payload == {"actionUrl": "/tickets/7"}
        assert notification.is_read is False

    def test_disabled_category_is_skipped(self, db, seller):
        db.add(NotificationPreference(user_id=seller.id, system_notifications=False))
        db.commit()

        assert notify(db, seller) is None
        assert db.query(AppNotification).count() == 0

    def test_unknown_category_raises(self, db, seller):
        with pytest.raises(ValueError):
            notify(db, seller, category="gossip")

    def test_missing_recipient_returns_none(self, db):
        result = asyncio.run(
            notification_service.create_notification(
                db, recipient_user_id=9999, category="system", type="system_announcement", title="Hello"
            )
        )
        assert result is None

    def test_email_only_when_opted_in(self, db, seller, sent_emails):
        notify(db, seller)
        assert sent_emails == []

        db.add(NotificationPreference(user_id=seller.id, email_enabled=True))
        db.commit()
        notify(db, seller, title="Pool closed")

        assert [e["to"] for e in sent_emails] == [seller.email]
        assert sent_emails[0]["subject"] == "Pool closed"

    def test_email_failure_does_not_break_notification(self, db, monkeypatch, seller):
        db.add(NotificationPreference(user_id=seller.id, email_enabled=True))
        db.commit()

        async def failing_email(**kwargs):
            raise RuntimeError("Resend is down")

        monkeypatch.setattr(notification_service.email_service, "send_notification_email", failing_email)

        assert notify(db, seller) is not None

    def test_fan_out_deduplicates_recipients(self, db, seller, admin):
        created = asyncio.run(
            notification_service.notify_system(db, [seller.id, admin.id, seller.id], "Heads up", "New feature")
        )

        assert len(created) == 2
        assert db.query(AppNotification).count() == 2


class TestNotificationRoutes:
    def test_list_recent_and_unread_count(self, client, db, seller, admin):
        notify(db, seller, title="First")
        notify(db, seller, category="payment", title="Second")
        notify(db, admin, title="Someone else")

        listed = client.get("/notifications", headers=auth_headers(seller)).json()
        assert [n["title"] for n in listed["notifications"]] == ["Second", "First"]
        assert listed["total"] == 2

        payments = client.get("/notifications", params={"category": "payment"}, headers=auth_headers(seller)).json()
        assert len(payments["notifications"]) == 1
        assert payments["total"] == 1

        recent = client.get("/notifications/recent", headers=auth_headers(seller)).json()
        assert recent["unreadCount"] == 2
        assert len(recent["notifications"]) == 2

    def test_list_pages_with_total(self, client, db, seller):
        for n in range(5):
            notify(db, seller, title=f"Notice {n}")

        page = client.get(
            "/notifications", params={"limit": 2, "offset": 2}, headers=auth_headers(seller)
        ).json()

        assert page["total"] == 5
        assert [n["title"] for n in page["notifications"]] == ["Notice 2", "Notice 1"]

    def test_invalid_category_filter(self, client, seller):
        response = client.get("/notifications", params={"category": "gossip"}, headers=auth_headers(seller))
        assert response.status_code == 400

    def test_mark_read(self, client, db, seller):
        notification = notify(db, seller)

        response = client.patch(f"/notifications/{notification.id}/read", headers=auth_headers(seller))

        assert response.status_code == 200
        assert response.json()["isRead"] is True
        assert response.json()["readAt"] is not None
        count = client.get("/notifications/unread-count", headers=auth_headers(seller)).json()
        assert count == {"count": 0}

    def test_cannot_mark_someone_elses_notification(self, client, db, seller, admin):
        notification = notify(db, admin)

        response = client.patch(f"/notifications/{notification.id}/read", headers=auth_headers(seller))

        assert response.status_code == 404

    def test_mark_all_read(self, client, db, seller, admin):
        notify(db, seller)
        notify(db, seller)
        notify(db, admin)

        response = client.patch("/notifications/mark-all-read", headers=auth_headers(seller))

        assert response.json() == {"count": 2}
        assert notification_service.get_unread_count(db, admin.id) == 1

    def test_preferences_default_and_update(self, client, seller):
        defaults = client.get("/notifications/preferences", headers=auth_headers(seller)).json()
        assert defaults["maintenanceNotifications"] is True
        assert defaults["emailEnabled"] is False

        updated = client.patch(
            "/notifications/preferences",
            json={"maintenanceNotifications": False, "emailEnabled": True},
            headers=auth_headers(seller),
        ).json()

        assert updated["maintenanceNotifications"] is False
        assert updated["emailEnabled"] is True
        assert updated["paymentNotifications"] is True

    def test_requires_authentication(self, client):
        assert client.get("/notifications").status_code in (401, 403)
