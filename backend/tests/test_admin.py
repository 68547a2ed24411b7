"""
Tests for the Admin Console
"""

import pytest

from buzzarfeed.core.constants import AdminAction, EntityType, ErrorMessages, UserType
from conftest import post_review

API = "/api/v1/admin"


class TestDashboard:
    """Test suite for dashboard counters"""

    @pytest.mark.asyncio
    async def test_counts(self, client, stall, enthusiast_headers, other_headers, admin_headers,
                          application_payload):
        review = await post_review(client, enthusiast_headers, stall["id"], 4)
        await client.post("/api/v1/applications", json=application_payload, headers=enthusiast_headers)
        await client.post("/api/v1/closures", headers=other_headers)
        await client.post("/api/v1/reviews/report", json={"review_id": review["id"], "reason": "Spam"},
                          headers=other_headers)

        data = (await client.get(f"{API}/dashboard", headers=admin_headers)).json()["data"]

        assert data == {
            "totalUsers": 4,
            "totalStalls": 1,
            "totalReviews": 1,
            "pendingApplications": 1,
            "pendingAmendments": 0,
            "pendingClosures": 1,
            "pendingReports": 1,
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/dashboard", "/logs", "/reports", "/reports/stats"])
    async def test_admin_only(self, client, owner_headers, path):
        response = await client.get(f"{API}{path}", headers=owner_headers)

        assert response.status_code == 403
        assert response.json() == {"success": False, "message": ErrorMessages.ADMIN_REQUIRED, "errors": []}

    @pytest.mark.asyncio
    async def test_anonymous_is_unauthorized(self, client):
        response = await client.get(f"{API}/dashboard")

        assert response.status_code == 401


class TestAdminLogs:
    """Test suite for the audit trail"""

    @pytest.mark.asyncio
    async def test_logs_newest_first_and_filtered(self, client, stall, enthusiast, admin, admin_headers):
        await client.put(f"/api/v1/users/{enthusiast.id}", json={"is_active": False}, headers=admin_headers)
        await client.delete(f"/api/v1/stalls/{stall['id']}", headers=admin_headers)

        logs = (await client.get(f"{API}/logs", headers=admin_headers)).json()
        assert logs["pagination"]["perPage"] == 50
        assert [entry["entity_type"] for entry in logs["data"]] == [EntityType.STALL, EntityType.USER]
        assert logs["data"][0]["admin_name"] == admin.name

        users_only = (await client.get(f"{API}/logs", params={"entity_type": EntityType.USER},
                                       headers=admin_headers)).json()["data"]
        assert len(users_only) == 1
        assert users_only[0]["entity_id"] == enthusiast.id
        assert users_only[0]["action"] == AdminAction.UPDATE_USER


class TestConvertToAdmin:
    """Test suite for promoting accounts"""

    @pytest.mark.asyncio
    async def test_convert_enthusiast(self, client, enthusiast, enthusiast_headers, admin_headers):
        response = await client.post(f"{API}/convert-to-admin", json={"email": enthusiast.email},
                                     headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["user_type"] == UserType.ADMIN
        assert (await client.get(f"{API}/dashboard", headers=enthusiast_headers)).status_code == 200

    @pytest.mark.asyncio
    async def test_convert_owner_removes_stalls(self, client, stall, owner, admin_headers):
        response = await client.post(f"{API}/convert-to-admin", json={"email": owner.email},
                                     headers=admin_headers)

        assert response.status_code == 200
        assert (await client.get(f"/api/v1/stalls/{stall['id']}")).status_code == 404

        logs = (await client.get(f"{API}/logs", params={"entity_type": EntityType.USER},
                                 headers=admin_headers)).json()["data"]
        assert logs[0]["entity_id"] == owner.id

    @pytest.mark.asyncio
    async def test_already_admin(self, client, admin, admin_headers):
        response = await client.post(f"{API}/convert-to-admin", json={"email": admin.email},
                                     headers=admin_headers)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_email(self, client, admin_headers):
        response = await client.post(f"{API}/convert-to-admin", json={"email": "nobody@example.com"},
                                     headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["message"] == ErrorMessages.USER_NOT_FOUND
