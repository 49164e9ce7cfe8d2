from tests.conftest import auth_headers


class TestCalculators:
    def test_rental_split(self, client, seller):
        response = client.post(
            "/commissions/calculate",
            json={"monthlyRent": 20000, "leaseDurationMonths": 24, "hasReferral": True, "referralPercent": 10},
            headers=auth_headers(seller),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["totalCommissionAmount"] == 30000
        assert body["sellerCommissionPercent"] == 45
        assert body["referralCommissionAmount"] == 3000

    def test_rental_invalid_referral(self, client, seller):
        response = client.post(
            "/commissions/calculate",
            json={"monthlyRent": 20000, "leaseDurationMonths": 12, "hasReferral": True, "referralPercent": 150},
            headers=auth_headers(seller),
        )
        assert response.status_code == 400

    def test_maintenance_charge_uses_agency_percent(self, client, db, agency, seller):
        agency.maintenance_commission_percent = 20
        db.commit()

        body = client.post(
            "/commissions/maintenance-charge", json={"actualCost": 800}, headers=auth_headers(seller)
        ).json()

        assert body == {"actualCost": 800, "commissionPercent": 20, "commission": 160, "totalCharge": 960}

    def test_maintenance_charge_explicit_percent(self, client, seller):
        body = client.post(
            "/commissions/maintenance-charge",
            json={"actualCost": 1000, "commissionPercent": 5},
            headers=auth_headers(seller),
        ).json()
        assert body["totalCharge"] == 1050

    def test_tenant_cannot_use_calculator(self, client, tenant):
        response = client.post(
            "/commissions/calculate", json={"monthlyRent": 1, "leaseDurationMonths": 12}, headers=auth_headers(tenant)
        )
        assert response.status_code == 403


class TestRateResolution:
    def test_platform_default(self, client, seller):
        body = client.get("/commissions/rate", headers=auth_headers(seller)).json()
        assert body == {"commissionPercent": 10.0, "fixedFee": None, "source": "default", "configId": None}

    def test_agency_setting(self, client, db, agency, seller):
        agency.standard_commission_rate = 8
        db.commit()

        body = client.get("/commissions/rate", headers=auth_headers(seller)).json()

        assert body["source"] == "agency_setting"
        assert body["commissionPercent"] == 8

    def test_precedence(self, client, admin, seller, unit):
        headers = auth_headers(admin)
        agency_cfg = client.post("/commissions/configs", json={"commissionPercent": 9}, headers=headers).json()
        user_cfg = client.post(
            "/commissions/configs", json={"commissionPercent": 7, "userId": seller.id}, headers=headers
        ).json()
        unit_cfg = client.post(
            "/commissions/configs", json={"commissionPercent": 5, "unitId": unit.id, "fixedFee": 500}, headers=headers
        ).json()

        assert agency_cfg["scope"] == "agency"
        assert user_cfg["scope"] == "user"
        assert unit_cfg["scope"] == "unit"

        by_unit = client.get(
            "/commissions/rate", params={"unitId": unit.id, "userId": seller.id}, headers=headers
        ).json()
        by_user = client.get("/commissions/rate", params={"userId": seller.id}, headers=headers).json()
        by_agency = client.get("/commissions/rate", headers=headers).json()

        assert (by_unit["source"], by_unit["commissionPercent"], by_unit["fixedFee"]) == ("unit", 5, 500)
        assert (by_user["source"], by_user["commissionPercent"]) == ("user", 7)
        assert (by_agency["source"], by_agency["configId"]) == ("agency_config", agency_cfg["id"])


class TestConfigs:
    def test_duplicate_scope_conflict(self, client, admin):
        headers = auth_headers(admin)
        client.post("/commissions/configs", json={"commissionPercent": 9}, headers=headers)

        response = client.post("/commissions/configs", json={"commissionPercent": 11}, headers=headers)

        assert response.status_code == 409

    def test_user_from_other_agency_rejected(self, client, admin, make_user, other_agency):
        outsider = make_user("external_agency_seller", other_agency)
        response = client.post(
            "/commissions/configs", json={"commissionPercent": 9, "userId": outsider.id}, headers=auth_headers(admin)
        )
        assert response.status_code == 404

    def test_update_list_delete(self, client, admin, seller):
        headers = auth_headers(admin)
        created = client.post("/commissions/configs", json={"commissionPercent": 9}, headers=headers).json()

        updated = client.patch(
            f"/commissions/configs/{created['id']}", json={"commissionPercent": 12, "notes": "2025 terms"}, headers=headers
        ).json()
        assert updated["commissionPercent"] == 12
        assert updated["notes"] == "2025 terms"

        listed = client.get("/commissions/configs", headers=auth_headers(seller)).json()
        assert [c["id"] for c in listed] == [created["id"]]

        assert client.delete(f"/commissions/configs/{created['id']}", headers=headers).status_code == 200
        assert client.get("/commissions/configs", headers=headers).json() == []

    def test_seller_cannot_create(self, client, seller):
        response = client.post("/commissions/configs", json={"commissionPercent": 9}, headers=auth_headers(seller))
        assert response.status_code == 403

    def test_other_agency_config_not_found(self, client, admin, make_user, other_agency):
        created = client.post("/commissions/configs", json={"commissionPercent": 9}, headers=auth_headers(admin)).json()
        outsider = make_user("external_agency_admin", other_agency)

        response = client.patch(
            f"/commissions/configs/{created['id']}", json={"commissionPercent": 1}, headers=auth_headers(outsider)
        )

        assert response.status_code == 404
