"""
Authorization tests for Cashboard.

Verifies:
- Unauthenticated requests return 401
- Cashier role denied management operations (403)
- Store-scoped roles cannot reach another store (403)
- Only the director edits settings
- Denials are audited in security_events
"""

import pytest

from cashboard.models import SecurityEvent


DAY = "2024-06-01"


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("POST", "/api/auth/logout"),
            ("GET", "/api/users"),
            ("POST", "/api/users"),
            ("GET", "/api/users/roles"),
            ("GET", "/api/stores"),
            ("POST", "/api/stores"),
            ("GET", "/api/stores/registers/visible"),
            ("GET", "/api/operations/day"),
            ("POST", "/api/operations/incomes"),
            ("POST", "/api/operations/expenses"),
            ("GET", "/api/closures"),
            ("POST", "/api/closures"),
            ("POST", "/api/closures/preview"),
            ("GET", "/api/settings"),
            ("PUT", "/api/settings/general"),
            ("GET", "/api/reports/dashboard"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_invalid_token(self, client, db_session):
        resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401

    def test_health_is_public(self, client, db_session):
        resp = client.get("/api/system/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "healthy"


# =============================================================================
# CASHIER DENIED MANAGEMENT OPERATIONS (403)
# =============================================================================


class TestCashierDenied:
    """Cashier role cannot perform privileged operations."""

    def test_cannot_list_users(self, client, cashier_headers):
        resp = client.get("/api/users", headers=cashier_headers)
        assert resp.status_code == 403
        assert resp.get_json()["required_permission"] == "users:view"

    def test_cannot_create_user(self, client, cashier_headers):
        resp = client.post(
            "/api/users",
            json={"email": "x@x.com", "password": "P@ssw0rd123!", "full_name": "X", "role": "director"},
            headers=cashier_headers,
        )
        assert resp.status_code == 403

    def test_cannot_create_store(self, client, cashier_headers):
        resp = client.post("/api/stores", json={"name": "Evil", "location": "X"}, headers=cashier_headers)
        assert resp.status_code == 403

    def test_cannot_view_settings(self, client, cashier_headers):
        resp = client.get("/api/settings", headers=cashier_headers)
        assert resp.status_code == 403

    def test_cannot_close_day(self, client, cashier_headers, store_centro):
        resp = client.post(
            "/api/closures",
            json={"store_id": store_centro.id, "date": DAY, "bcv_rate": 36.5},
            headers=cashier_headers,
        )
        assert resp.status_code == 403

    def test_cannot_delete_income(self, client, cashier_headers, store_centro):
        created = client.post(
            "/api/operations/incomes",
            json={"store_id": store_centro.id, "date": DAY, "amount_usd": 5, "payment_method": "cash", "bcv_rate": 36.5},
            headers=cashier_headers,
        )
        assert created.status_code == 201

        resp = client.delete(f"/api/operations/incomes/{created.get_json()['id']}", headers=cashier_headers)
        assert resp.status_code == 403

    def test_denial_is_audited(self, client, db_session, cashier_headers, cajero_centro):
        client.get("/api/users", headers=cashier_headers)

        event = db_session.query(SecurityEvent).filter_by(event_type="PERMISSION_DENIED").first()
        assert event is not None
        assert event.user_id == cajero_centro.id
        assert event.action == "users:view"
        assert event.success is False


# =============================================================================
# STORE SCOPING
# =============================================================================


class TestStoreScoping:
    """Store managers and cashiers only reach their assigned store."""

    def test_manager_cannot_read_other_store_day(self, client, gerente_headers, store_norte):
        resp = client.get(f"/api/operations/day?store_id={store_norte.id}&date={DAY}", headers=gerente_headers)
        assert resp.status_code == 403

    def test_manager_reads_own_store_day(self, client, gerente_headers, store_centro):
        resp = client.get(f"/api/operations/day?store_id={store_centro.id}&date={DAY}", headers=gerente_headers)
        assert resp.status_code == 200

    def test_cashier_cannot_record_in_other_store(self, client, cashier_headers, store_norte):
        resp = client.post(
            "/api/operations/incomes",
            json={"store_id": store_norte.id, "date": DAY, "amount_usd": 5, "payment_method": "cash", "bcv_rate": 36.5},
            headers=cashier_headers,
        )
        assert resp.status_code == 403

    def test_manager_cannot_close_other_store(self, client, gerente_headers, store_norte):
        resp = client.post(
            "/api/closures",
            json={"store_id": store_norte.id, "date": DAY, "bcv_rate": 36.5},
            headers=gerente_headers,
        )
        assert resp.status_code == 403

    def test_manager_store_list_is_scoped(self, client, gerente_headers, store_centro, store_norte):
        resp = client.get("/api/stores", headers=gerente_headers)
        assert resp.status_code == 200
        assert [s["id"] for s in resp.get_json()] == [store_centro.id]

    def test_director_sees_all_stores(self, client, director_headers, store_centro, store_norte):
        resp = client.get("/api/stores", headers=director_headers)
        assert {s["id"] for s in resp.get_json()} == {store_centro.id, store_norte.id}

    def test_manager_dashboard_other_store(self, client, gerente_headers, store_norte):
        resp = client.get(f"/api/reports/dashboard?store_id={store_norte.id}", headers=gerente_headers)
        assert resp.status_code == 403

    def test_cross_store_denial_is_audited(self, client, db_session, gerente_headers, store_norte):
        client.get(f"/api/operations/day?store_id={store_norte.id}&date={DAY}", headers=gerente_headers)

        event = db_session.query(SecurityEvent).filter_by(event_type="STORE_ACCESS_DENIED").first()
        assert event is not None
        assert event.store_id == store_norte.id


# =============================================================================
# SETTINGS AND ASSISTANT
# =============================================================================


class TestSettingsEdit:
    def test_director_can_edit(self, client, director_headers):
        resp = client.put("/api/settings/financial", json={"decimal_places": 3}, headers=director_headers)
        assert resp.status_code == 200
        assert resp.get_json()["financial"]["decimal_places"] == 3

    def test_contable_can_view_not_edit(self, client, contable_headers):
        assert client.get("/api/settings", headers=contable_headers).status_code == 200
        resp = client.put("/api/settings/financial", json={"decimal_places": 3}, headers=contable_headers)
        assert resp.status_code == 403

    def test_invalid_value(self, client, director_headers):
        resp = client.put("/api/settings/security", json={"max_login_attempts": "many"}, headers=director_headers)
        assert resp.status_code == 400

    def test_unknown_section(self, client, director_headers):
        resp = client.put("/api/settings/theme", json={}, headers=director_headers)
        assert resp.status_code == 404

    def test_reset(self, client, director_headers):
        client.put("/api/settings/financial", json={"decimal_places": 3}, headers=director_headers)
        resp = client.delete("/api/settings/financial", headers=director_headers)
        assert resp.status_code == 200
        assert resp.get_json()["financial"]["decimal_places"] == 2


class TestAssistantReadOnly:
    def test_can_view_closures_all_stores(self, client, asistente_headers, store_norte):
        resp = client.get(f"/api/closures?store_id={store_norte.id}", headers=asistente_headers)
        assert resp.status_code == 200

    def test_cannot_record(self, client, asistente_headers, store_centro):
        resp = client.post(
            "/api/operations/incomes",
            json={"store_id": store_centro.id, "date": DAY, "amount_usd": 5, "payment_method": "cash", "bcv_rate": 36.5},
            headers=asistente_headers,
        )
        assert resp.status_code == 403


# =============================================================================
# EXTRA PERMISSIONS
# =============================================================================


class TestExtraPermissions:
    def test_grant_unlocks_endpoint(self, client, director_headers, cashier_headers, cajero_centro):
        assert client.get("/api/users", headers=cashier_headers).status_code == 403

        resp = client.post(
            f"/api/users/{cajero_centro.id}/permissions/users:view",
            json={"reason": "Cover for manager"},
            headers=director_headers,
        )
        assert resp.status_code == 200
        assert "users:view" in resp.get_json()["permissions"]

        assert client.get("/api/users", headers=cashier_headers).status_code == 200

    def test_protected_permission_refused(self, client, director_headers, cajero_centro):
        resp = client.post(f"/api/users/{cajero_centro.id}/permissions/settings:edit", headers=director_headers)
        assert resp.status_code == 400

    def test_unknown_user(self, client, director_headers):
        resp = client.post("/api/users/9999/permissions/users:view", headers=director_headers)
        assert resp.status_code == 404

    def test_revoke(self, client, director_headers, cashier_headers, cajero_centro):
        client.post(f"/api/users/{cajero_centro.id}/permissions/users:view", headers=director_headers)

        resp = client.delete(f"/api/users/{cajero_centro.id}/permissions/users:view", headers=director_headers)
        assert resp.status_code == 200
        assert client.get("/api/users", headers=cashier_headers).status_code == 403

        again = client.delete(f"/api/users/{cajero_centro.id}/permissions/users:view", headers=director_headers)
        assert again.status_code == 404
