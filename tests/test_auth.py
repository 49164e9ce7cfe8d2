from datetime import timedelta

from propdesk.security_utils import create_access_token, decode_access_token
from tests.conftest import TEST_PASSWORD, auth_headers


class TestLogin:
    def test_login_returns_bearer_token(self, client, db, seller):
        response = client.post("/auth/login", json={"email": seller.email.upper(), "password": TEST_PASSWORD})

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert decode_access_token(body["access_token"])["sub"] == str(seller.id)
        db.refresh(seller)
        assert seller.last_login_at is not None

    def test_wrong_password(self, client, seller):
        response = client.post("/auth/login", json={"email": seller.email, "password": "nope"})
        assert response.status_code == 401

    def test_unknown_email(self, client):
        response = client.post("/auth/login", json={"email": "ghost@example.com", "password": TEST_PASSWORD})
        assert response.status_code == 401

    def test_disabled_account(self, client, make_user):
        user = make_user("tenant", is_active=False)
        response = client.post("/auth/login", json={"email": user.email, "password": TEST_PASSWORD})
        assert response.status_code == 403

    def test_login_is_rate_limited(self, client, seller):
        for _ in range(10):
            client.post("/auth/login", json={"email": seller.email, "password": "nope"})

        response = client.post("/auth/login", json={"email": seller.email, "password": TEST_PASSWORD})

        assert response.status_code == 429


class TestCurrentUser:
    def test_me(self, client, seller, agency):
        body = client.get("/auth/me", headers=auth_headers(seller)).json()

        assert body["id"] == seller.id
        assert body["role"] == "external_agency_seller"
        assert body["agencyName"] == agency.name

    def test_missing_token(self, client):
        assert client.get("/auth/me").status_code in (401, 403)

    def test_malformed_token(self, client):
        response = client.get("/auth/me", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401

    def test_expired_token(self, client, seller):
        token = create_access_token({"sub": str(seller.id)}, expires_delta=timedelta(minutes=-5))

        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.headers.get("X-Token-Expired") == "true"

    def test_inactive_user_token_rejected(self, client, db, seller):
        headers = auth_headers(seller)
        seller.is_active = False
        db.commit()

        assert client.get("/auth/me", headers=headers).status_code == 401


class TestCreateUser:
    def test_platform_admin_creates_agency_user(self, client, platform_admin, agency):
        response = client.post(
            "/auth/users",
            json={
                "email": "Nuevo@Example.com",
                "password": "longenough",
                "role": "external_agency_admin",
                "agencyId": agency.id,
            },
            headers=auth_headers(platform_admin),
        )

        assert response.status_code == 201
        assert response.json()["email"] == "nuevo@example.com"
        assert response.json()["agencyId"] == agency.id

    def test_agency_role_requires_agency(self, client, platform_admin):
        response = client.post(
            "/auth/users",
            json={"email": "a@example.com", "password": "longenough", "role": "external_agency_seller"},
            headers=auth_headers(platform_admin),
        )
        assert response.status_code == 400

    def test_unknown_agency(self, client, platform_admin):
        response = client.post(
            "/auth/users",
            json={"email": "a@example.com", "password": "longenough", "role": "owner", "agencyId": 404},
            headers=auth_headers(platform_admin),
        )
        assert response.status_code == 404

    def test_duplicate_email(self, client, platform_admin, seller):
        response = client.post(
            "/auth/users",
            json={"email": seller.email, "password": "longenough"},
            headers=auth_headers(platform_admin),
        )
        assert response.status_code == 409

    def test_agency_admin_forbidden(self, client, admin):
        response = client.post(
            "/auth/users", json={"email": "a@example.com", "password": "longenough"}, headers=auth_headers(admin)
        )
        assert response.status_code == 403
