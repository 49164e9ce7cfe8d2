from propdesk.domain.agencies.service import slugify
from propdesk.models import ExternalAgency, User
from tests.conftest import auth_headers


def test_slugify():
    assert slugify("Tulum Rentals & Co.") == "tulum-rentals-co"
    assert slugify("!!!") == "agency"


class TestOwnAgency:
    def test_staff_reads_own_agency(self, client, seller, agency):
        response = client.get("/external/agency", headers=auth_headers(seller))

        assert response.status_code == 200
        assert response.json()["id"] == agency.id
        assert response.json()["slug"] == "tulum-rentals"

    def test_user_without_agency(self, client, make_user):
        orphan = make_user("external_agency_seller")

        response = client.get("/external/agency", headers=auth_headers(orphan))

        assert response.status_code == 404
        assert response.json()["detail"] == "No agency associated with this user"

    def test_admin_updates_profile(self, client, admin):
        response = client.patch(
            "/external/agency",
            json={"contactPhone": "984 123 4567", "operatingZones": ["Aldea Zama", "Centro"]},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["contactPhone"] == "+529841234567"
        assert response.json()["operatingZones"] == ["Aldea Zama", "Centro"]

    def test_agency_admin_cannot_change_active_flag(self, client, db, admin, agency):
        client.patch("/external/agency", json={"isActive": False}, headers=auth_headers(admin))
        db.refresh(agency)
        assert agency.is_active is True

    def test_seller_cannot_update_profile(self, client, seller):
        response = client.patch("/external/agency", json={"name": "Renamed"}, headers=auth_headers(seller))
        assert response.status_code == 403


class TestSettings:
    def test_defaults_are_filled_in(self, client, admin):
        settings = client.get("/external/agency/settings", headers=auth_headers(admin)).json()

        assert settings == {
            "maintenanceCommissionPercent": 15.0,
            "defaultAdminFeePercent": 15.0,
            "standardCommissionRate": 10.0,
            "notificationEmail": None,
        }

    def test_update_settings(self, client, admin):
        response = client.patch(
            "/external/agency/settings",
            json={"maintenanceCommissionPercent": 12.5, "notificationEmail": "Ops@Tulum.mx"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["maintenanceCommissionPercent"] == 12.5
        assert response.json()["notificationEmail"] == "ops@tulum.mx"
        assert response.json()["defaultAdminFeePercent"] == 15.0

    def test_percent_out_of_range(self, client, admin):
        response = client.patch(
            "/external/agency/settings", json={"defaultAdminFeePercent": 120}, headers=auth_headers(admin)
        )
        assert response.status_code == 422


class TestTeam:
    def test_add_member_sends_invite(self, client, db, admin, agency, sent_emails):
        response = client.post(
            "/external/agency/team",
            json={
                "email": "Luis@TulumRentals.mx",
                "fullName": "Luis Pérez",
                "password": "supersecret",
                "role": "external_agency_maintenance",
            },
            headers=auth_headers(admin),
        )

        assert response.status_code == 201
        assert response.json()["email"] == "luis@tulumrentals.mx"
        member = db.query(User).filter(User.email == "luis@tulumrentals.mx").one()
        assert member.external_agency_id == agency.id
        assert member.hashed_password != "supersecret"
        assert [e["to"] for e in sent_emails] == ["luis@tulumrentals.mx"]

    def test_duplicate_email(self, client, admin, seller):
        response = client.post(
            "/external/agency/team",
            json={"email": seller.email, "fullName": "Dup", "password": "supersecret"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 409

    def test_member_role_restricted(self, client, admin):
        response = client.post(
            "/external/agency/team",
            json={"email": "x@example.com", "fullName": "X", "password": "supersecret", "role": "master"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 422

    def test_list_team(self, client, admin, seller, maintenance, make_user, other_agency):
        make_user("external_agency_seller", other_agency)

        team = client.get("/external/agency/team", headers=auth_headers(admin)).json()

        assert {m["id"] for m in team} == {admin.id, seller.id, maintenance.id}


class TestPlatformAdmin:
    def test_create_agency_with_unique_slug(self, client, platform_admin, agency):
        response = client.post(
            "/admin/agencies", json={"name": "Tulum Rentals"}, headers=auth_headers(platform_admin)
        )

        assert response.status_code == 201
        assert response.json()["slug"] == "tulum-rentals-2"

    def test_list_and_filter(self, client, platform_admin, agency, other_agency):
        result = client.get("/admin/agencies", params={"search": "playa"}, headers=auth_headers(platform_admin)).json()

        assert result["total"] == 1
        assert result["data"][0]["name"] == "Playa Homes"

    def test_deactivate(self, client, db, platform_admin, agency):
        response = client.delete(f"/admin/agencies/{agency.id}", headers=auth_headers(platform_admin))

        assert response.status_code == 200
        db.refresh(agency)
        assert agency.is_active is False
        inactive = client.get("/admin/agencies", params={"active": False}, headers=auth_headers(platform_admin)).json()
        assert inactive["total"] == 1

    def test_activation_changes_refresh_public_condominiums(self, client, db, platform_admin, unit, redis_cache):
        unit.status = "available"
        unit.is_published = True
        db.commit()
        headers = auth_headers(platform_admin)

        before = client.get("/properties/public/condominiums").json()
        client.delete(f"/admin/agencies/{unit.agency_id}", headers=headers)
        after_deactivate = client.get("/properties/public/condominiums").json()
        client.patch(f"/admin/agencies/{unit.agency_id}", json={"isActive": True}, headers=headers)
        after_reactivate = client.get("/properties/public/condominiums").json()

        assert [c["name"] for c in before] == ["Aldea Zama Residences"]
        assert after_deactivate == []
        assert [c["name"] for c in after_reactivate] == ["Aldea Zama Residences"]

    def test_missing_agency(self, client, platform_admin):
        assert client.get("/admin/agencies/999", headers=auth_headers(platform_admin)).status_code == 404

    def test_agency_admin_is_not_platform_admin(self, client, admin):
        assert client.get("/admin/agencies", headers=auth_headers(admin)).status_code == 403

    def test_create_counts(self, client, db, platform_admin):
        client.post("/admin/agencies", json={"name": "Nueva"}, headers=auth_headers(platform_admin))
        assert db.query(ExternalAgency).filter(ExternalAgency.slug == "nueva").count() == 1
