"""
Tests - HTTP routes
"""
from datetime import date, datetime, timezone

import pytest

from callboard.models import CallLog, MetricsDaily, OrderLog

API = "/api/v1"


@pytest.fixture
def june_data(db, seed):
    db.add(CallLog(call_id="api-order", location_id=10, started_at_utc=datetime(2024, 6, 1, 23, 30, tzinfo=timezone.utc),
                   duration_seconds=75, corrected_duration_seconds=75, status="completed", from_number="2125550101"))
    db.flush()
    db.add(OrderLog(call_id="api-order", total=1500))
    db.add(MetricsDaily(location_id=10, date=date(2024, 6, 1), total_calls=1, orders_count=1,
                        total_revenue_orders=1500, total_revenue_combined=1500, minutes_saved=1.25,
                        avg_call_duration_seconds=75.0))
    db.commit()
    return seed


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
        assert response.headers["X-Frame-Options"] == "DENY"


class TestAuthRoutes:
    """Tests for login, refresh and the user check"""

    def test_login(self, client, seed):
        response = client.post(f"{API}/auth/login", json={"email": "Owner@pastaplace.com", "password": "password123"})

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["email"] == "owner@pastaplace.com"
        assert body["user"]["display_name"] == "Olivia Owner"

    def test_wrong_password(self, client, seed):
        response = client.post(f"{API}/auth/login", json={"email": "owner@pastaplace.com", "password": "not-the-password"})

        assert response.status_code == 401

    def test_refresh(self, client, seed):
        tokens = client.post(f"{API}/auth/login", json={"email": "owner@pastaplace.com", "password": "password123"}).json()

        refreshed = client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        rejected = client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["access_token"]})

        assert refreshed.status_code == 200
        assert refreshed.json()["access_token"]
        assert rejected.status_code == 401

    @pytest.mark.parametrize("email,expected", [
        ("manager@pastaplace.com", {"exists": True, "has_permissions": True}),
        ("orphan@pastaplace.com", {"exists": True, "has_permissions": False}),
        ("nobody@pastaplace.com", {"exists": False, "has_permissions": False}),
    ])
    def test_check_user(self, client, seed, email, expected):
        response = client.post(f"{API}/auth/check-user", json={"email": email})

        assert response.json() == expected

    def test_logout(self, client):
        assert client.post(f"{API}/auth/logout").status_code == 200


class TestAuthentication:
    """Tests for the bearer token dependency"""

    def test_missing_token(self, client, seed):
        assert client.get(f"{API}/locations").status_code == 401

    def test_garbage_token(self, client, seed):
        response = client.get(f"{API}/locations", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_inactive_user(self, client, db, seed, headers):
        seed.support.is_active = False
        db.commit()

        assert client.get(f"{API}/locations", headers=headers(seed.support)).status_code == 403


class TestLocationRoutes:

    def test_lists_granted_locations(self, client, seed, headers):
        response = client.get(f"{API}/locations", headers=headers(seed.owner))

        assert response.status_code == 200
        assert [loc["location_id"] for loc in response.json()] == [10, 11]
        assert response.json()[0]["time_zone"] == "America/New_York"


class TestAnalyticsRoutes:
    """Tests for analytics and export"""

    def test_single_day(self, client, june_data, headers):
        response = client.get(
            f"{API}/analytics",
            params={"location_id": 10, "start_date": "2024-06-01", "end_date": "2024-06-01"},
            headers=headers(june_data.manager),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["granularity"] == "hour"
        assert body["location"]["name"] == "Pasta Place NYC"
        evening = next(b for b in body["buckets"] if b["key"] == "19:00")
        assert evening["orders_count"] == 1
        assert evening["total_revenue_orders"] == 1500
        assert body["total_call_time_seconds"] == 75

    def test_defaults_to_first_location(self, client, june_data, headers):
        response = client.get(
            f"{API}/analytics",
            params={"start_date": "2024-06-01", "end_date": "2024-06-03"},
            headers=headers(june_data.owner),
        )

        assert response.status_code == 200
        assert response.json()["location"]["location_id"] == 10
        assert response.json()["totals"]["total_calls"] == 1

    def test_ungranted_location(self, client, june_data, headers):
        response = client.get(f"{API}/analytics", params={"location_id": 20}, headers=headers(june_data.owner))

        assert response.status_code == 404
        assert response.json()["detail"] == "Location not found"

    def test_user_without_locations(self, client, seed, headers):
        response = client.get(f"{API}/analytics", headers=headers(seed.orphan))

        assert response.status_code == 404
        assert "orphan@pastaplace.com" in response.json()["detail"]

    def test_incomplete_custom_range(self, client, seed, headers):
        response = client.get(f"{API}/analytics", params={"start_date": "2024-06-01"}, headers=headers(seed.owner))

        assert response.status_code == 400

    def test_unknown_range(self, client, seed, headers):
        response = client.get(f"{API}/analytics", params={"range": "decade"}, headers=headers(seed.owner))

        assert response.status_code == 422

    def test_export_csv(self, client, june_data, headers):
        response = client.get(
            f"{API}/analytics/export",
            params={"location_id": 10, "start_date": "2024-06-01", "end_date": "2024-06-07"},
            headers=headers(june_data.owner),
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "call-metrics-10-2024-06-01-to-2024-06-07.csv" in response.headers["content-disposition"]
        lines = response.text.strip().splitlines()
        assert lines[0].startswith("Date,Total Calls")
        assert lines[1].startswith("2024-06-01,1,0,1,15.00")


class TestCallLogRoutes:

    def test_list(self, client, june_data, headers):
        response = client.get(
            f"{API}/call-logs",
            params={"location_id": 10, "start_date": "2024-06-01", "end_date": "2024-06-01"},
            headers=headers(june_data.owner),
        )

        assert response.status_code == 200
        call = response.json()["calls"][0]
        assert call["id"] == "api-order"
        assert call["type"] == "order"
        assert call["from"] == "(212) 555-0101"
        assert call["duration"] == "1m 15s"

    def test_detail(self, client, june_data, headers):
        response = client.get(f"{API}/call-logs/api-order", params={"location_id": 10}, headers=headers(june_data.owner))

        assert response.status_code == 200
        assert response.json()["call_type"] == "Order"

    def test_detail_not_found(self, client, june_data, headers):
        response = client.get(f"{API}/call-logs/nope", headers=headers(june_data.owner))

        assert response.status_code == 404


class TestUserRoutes:
    """Tests for user management over HTTP"""

    def test_permissions(self, client, seed, headers):
        response = client.get(f"{API}/users/permissions", headers=headers(seed.admin))

        assert response.json() == {"can_create": False, "user_role_id": 4}

    def test_creatable_roles(self, client, seed, headers):
        response = client.get(f"{API}/users/creatable-roles", headers=headers(seed.manager))

        assert [r["role_permission_id"] for r in response.json()] == [1, 2]

    def test_assignable_locations(self, client, seed, headers):
        response = client.get(f"{API}/users/assignable-locations", headers=headers(seed.owner))

        assert [loc["location_id"] for loc in response.json()] == [10, 11]

    def test_create_then_login(self, client, seed, headers):
        response = client.post(f"{API}/users", headers=headers(seed.owner), json={
            "email": "host@pastaplace.com",
            "password": "welcome-123",
            "role_permission_id": 1,
            "location_id": 10,
            "full_name": "Hana Host",
        })

        assert response.status_code == 201
        assert response.json()["user_id"]
        login = client.post(f"{API}/auth/login", json={"email": "host@pastaplace.com", "password": "welcome-123"})
        assert login.status_code == 200

    def test_create_rejects_short_password(self, client, seed, headers):
        response = client.post(f"{API}/users", headers=headers(seed.owner), json={
            "email": "host@pastaplace.com",
            "password": "short",
            "role_permission_id": 1,
            "location_id": 10,
        })

        assert response.status_code == 422

    def test_list_users(self, client, seed, headers):
        response = client.get(f"{API}/users", headers=headers(seed.owner))

        assert len(response.json()) == 4

    def test_update_and_delete(self, client, seed, headers):
        support_id = str(seed.support.id)

        updated = client.patch(f"{API}/users/{support_id}", headers=headers(seed.owner), json={"full_name": "Sam"})
        deleted = client.delete(f"{API}/users/{support_id}", headers=headers(seed.owner))

        assert updated.json() == {"message": "User updated successfully"}
        assert deleted.json() == {"message": "User deleted successfully"}
        assert len(client.get(f"{API}/users", headers=headers(seed.owner)).json()) == 3

    def test_delete_self(self, client, seed, headers):
        response = client.delete(f"{API}/users/{seed.owner.id}", headers=headers(seed.owner))

        assert response.status_code == 403


class TestAccountRoutes:

    def test_get_and_update(self, client, seed, headers):
        assert client.get(f"{API}/account/settings", headers=headers(seed.owner)).json() == {
            "account_id": 1,
            "user_creation_permission_level": 5,
        }

        response = client.put(
            f"{API}/account/settings", headers=headers(seed.owner), json={"user_creation_permission_level": 2},
        )

        assert response.status_code == 200
        assert client.get(f"{API}/users/permissions", headers=headers(seed.manager)).json()["can_create"] is True

    def test_non_owner(self, client, seed, headers):
        response = client.put(
            f"{API}/account/settings", headers=headers(seed.admin), json={"user_creation_permission_level": 2},
        )

        assert response.status_code == 403
