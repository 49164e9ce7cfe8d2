from tests.conftest import auth_headers

BUG = {"type": "bug", "title": "Calendar is blank", "description": "Nothing renders on Safari", "urgency": "high"}


class TestSubmitFeedback:
    def test_anonymous_submission(self, client):
        response = client.post("/feedback", json={**BUG, "contactEmail": "Visitor@Example.com"})

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "new"
        assert body["userId"] is None
        assert body["contactEmail"] == "visitor@example.com"

    def test_signed_in_user_is_attached(self, client, seller):
        body = client.post("/feedback", json=BUG, headers=auth_headers(seller)).json()

        assert body["userId"] == seller.id
        assert body["agencyId"] == seller.external_agency_id
        assert body["contactEmail"] == seller.email

    def test_invalid_token_is_treated_as_anonymous(self, client):
        body = client.post("/feedback", json=BUG, headers={"Authorization": "Bearer not.a.token"}).json()
        assert body["userId"] is None

    def test_text_is_escaped(self, client):
        body = client.post("/feedback", json={**BUG, "title": "<script>alert(1)</script>"}).json()
        assert body["title"] == "&lt;script&gt;alert(1)&lt;/script&gt;"

    def test_invalid_type(self, client):
        assert client.post("/feedback", json={**BUG, "type": "rant"}).status_code == 422

    def test_rate_limited_per_ip(self, client):
        for _ in range(10):
            assert client.post("/feedback", json=BUG).status_code == 201

        response = client.post("/feedback", json=BUG)

        assert response.status_code == 429
        assert "Retry-After" in response.headers


class TestTriage:
    def test_admin_lists_and_filters(self, client, platform_admin):
        client.post("/feedback", json=BUG)
        client.post("/feedback", json={**BUG, "type": "suggestion", "urgency": "low"})

        everything = client.get("/feedback", headers=auth_headers(platform_admin)).json()
        bugs = client.get("/feedback", params={"type": "bug"}, headers=auth_headers(platform_admin)).json()

        assert everything["total"] == 2
        assert len(everything["feedback"]) == 2
        assert [r["type"] for r in bugs["feedback"]] == ["bug"]
        assert bugs["total"] == 1

    def test_filter_by_agency_and_page(self, client, platform_admin, seller):
        client.post("/feedback", json=BUG, headers=auth_headers(seller))
        client.post("/feedback", json={**BUG, "title": "Second"}, headers=auth_headers(seller))
        client.post("/feedback", json=BUG)

        page = client.get(
            "/feedback",
            params={"agencyId": seller.external_agency_id, "limit": 1},
            headers=auth_headers(platform_admin),
        ).json()

        assert page["total"] == 2
        assert [r["title"] for r in page["feedback"]] == ["Second"]

    def test_resolve_stamps_resolution(self, client, platform_admin):
        report = client.post("/feedback", json=BUG).json()

        response = client.patch(
            f"/feedback/{report['id']}/status",
            json={"status": "resolved", "resolution": "Fixed in 2.3", "adminNotes": "Safari flexbox"},
            headers=auth_headers(platform_admin),
        )

        body = response.json()
        assert body["status"] == "resolved"
        assert body["resolvedAt"] is not None
        assert body["resolution"] == "Fixed in 2.3"
        assert body["handledById"] == platform_admin.id

    def test_reopening_clears_resolution(self, client, platform_admin):
        report = client.post("/feedback", json=BUG).json()
        headers = auth_headers(platform_admin)
        client.patch(
            f"/feedback/{report['id']}/status", json={"status": "resolved", "resolution": "Fixed"}, headers=headers
        )

        body = client.patch(f"/feedback/{report['id']}/status", json={"status": "in_review"}, headers=headers).json()

        assert body["status"] == "in_review"
        assert body["resolvedAt"] is None
        assert body["resolution"] is None

    def test_stats(self, client, platform_admin):
        first = client.post("/feedback", json=BUG).json()
        client.post("/feedback", json=BUG)
        client.post("/feedback", json={**BUG, "urgency": "low"})
        client.patch(f"/feedback/{first['id']}/status", json={"status": "dismissed"}, headers=auth_headers(platform_admin))

        stats = client.get("/feedback/stats", headers=auth_headers(platform_admin)).json()

        assert stats == {"newCount": 2, "highUrgencyCount": 1}

    def test_missing_report(self, client, platform_admin):
        assert client.get("/feedback/999", headers=auth_headers(platform_admin)).status_code == 404

    def test_agency_admin_cannot_triage(self, client, admin):
        assert client.get("/feedback", headers=auth_headers(admin)).status_code == 403
