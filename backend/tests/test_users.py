"""
Tests for User Endpoints

Profile management and account administration.
"""

import pytest

from buzzarfeed.core.constants import UserType
from conftest import DEFAULT_PASSWORD, headers_for, post_review

API = "/api/v1/users"


async def login(client, email: str, password: str):
    return await client.post("/api/v1/auth/login", json={"email": email, "password": password})


class TestProfile:
    """Test suite for the signed-in user's profile"""

    @pytest.mark.asyncio
    async def test_get_profile(self, client, enthusiast, enthusiast_headers):
        data = (await client.get(f"{API}/profile", headers=enthusiast_headers)).json()["data"]

        assert data["email"] == enthusiast.email
        assert data["user_type"] == UserType.FOOD_ENTHUSIAST
        assert "password_hash" not in data

    @pytest.mark.asyncio
    async def test_update_profile(self, client, enthusiast_headers):
        response = await client.put(f"{API}/profile", json={"name": "Fran the Foodie", "email": "NEW@Example.com"},
                                    headers=enthusiast_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Fran the Foodie"
        assert data["email"] == "new@example.com"

    @pytest.mark.asyncio
    async def test_email_must_be_unique(self, client, enthusiast_headers, other_enthusiast):
        response = await client.put(f"{API}/profile", json={"email": other_enthusiast.email},
                                    headers=enthusiast_headers)

        assert response.status_code == 400
        assert "email" in response.json()["errors"]

    @pytest.mark.asyncio
    async def test_name_must_be_unique(self, client, enthusiast_headers, other_enthusiast):
        response = await client.put(f"{API}/profile", json={"name": other_enthusiast.name},
                                    headers=enthusiast_headers)

        assert response.status_code == 400
        assert "name" in response.json()["errors"]

    @pytest.mark.asyncio
    async def test_keeping_own_email_is_allowed(self, client, enthusiast, enthusiast_headers):
        response = await client.put(f"{API}/profile", json={"email": enthusiast.email}, headers=enthusiast_headers)

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_change_password(self, client, enthusiast, enthusiast_headers):
        response = await client.put(
            f"{API}/password",
            json={"current_password": DEFAULT_PASSWORD, "new_password": "Fresher456"},
            headers=enthusiast_headers
        )

        assert response.status_code == 200
        assert (await login(client, enthusiast.email, DEFAULT_PASSWORD)).status_code == 401
        assert (await login(client, enthusiast.email, "Fresher456")).status_code == 200

    @pytest.mark.asyncio
    async def test_change_password_wrong_current(self, client, enthusiast_headers):
        response = await client.put(
            f"{API}/password",
            json={"current_password": "Wrong1234", "new_password": "Fresher456"},
            headers=enthusiast_headers
        )

        assert response.status_code == 400
        assert "current_password" in response.json()["errors"]

    @pytest.mark.asyncio
    async def test_change_password_weak(self, client, enthusiast_headers):
        response = await client.put(
            f"{API}/password",
            json={"current_password": DEFAULT_PASSWORD, "new_password": "short"},
            headers=enthusiast_headers
        )

        assert response.status_code == 400
        assert "password" in response.json()["errors"]


class TestUserAdministration:
    """Test suite for admin account management"""

    @pytest.mark.asyncio
    async def test_list_and_search(self, client, enthusiast, other_enthusiast, admin_headers):
        everyone = (await client.get(API, headers=admin_headers)).json()
        assert everyone["pagination"]["total"] == 3

        found = (await client.get(API, params={"search": "hungry"}, headers=admin_headers)).json()["data"]
        assert [u["id"] for u in found] == [other_enthusiast.id]

    @pytest.mark.asyncio
    async def test_requires_admin(self, client, enthusiast_headers):
        response = await client.get(API, headers=enthusiast_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_deactivate_user(self, client, enthusiast, enthusiast_headers, admin_headers):
        response = await client.put(f"{API}/{enthusiast.id}", json={"is_active": False}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["is_active"] is False
        assert (await client.get(f"{API}/profile", headers=enthusiast_headers)).status_code == 401

    @pytest.mark.asyncio
    async def test_change_user_type(self, client, enthusiast, admin_headers):
        response = await client.put(f"{API}/{enthusiast.id}", json={"user_type": UserType.FOOD_STALL_OWNER},
                                    headers=admin_headers)

        assert response.json()["data"]["user_type"] == UserType.FOOD_STALL_OWNER

    @pytest.mark.asyncio
    async def test_invalid_user_type(self, client, enthusiast, admin_headers):
        response = await client.put(f"{API}/{enthusiast.id}", json={"user_type": "superuser"}, headers=admin_headers)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_cannot_deactivate_self(self, client, admin, admin_headers):
        response = await client.put(f"{API}/{admin.id}", json={"is_active": False}, headers=admin_headers)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_user_cascades(self, client, stall, enthusiast, enthusiast_headers, other_headers,
                                        admin_headers):
        review = await post_review(client, enthusiast_headers, stall["id"], 2)
        await post_review(client, other_headers, stall["id"], 4)

        response = await client.delete(f"{API}/{enthusiast.id}", headers=admin_headers)

        assert response.status_code == 200
        assert (await client.get(f"{API}/{enthusiast.id}", headers=admin_headers)).status_code == 404
        assert (await client.get(f"/api/v1/reviews/{review['id']}")).status_code == 404
        stall_data = (await client.get(f"/api/v1/stalls/{stall['id']}")).json()["data"]
        assert (stall_data["rating"], stall_data["reviews"]) == (4.0, 1)

    @pytest.mark.asyncio
    async def test_delete_owner_removes_stalls(self, client, stall, owner, admin_headers):
        response = await client.delete(f"{API}/{owner.id}", headers=admin_headers)

        assert response.status_code == 200
        assert (await client.get(f"/api/v1/stalls/{stall['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_cannot_delete_self(self, client, admin, admin_headers):
        response = await client.delete(f"{API}/{admin.id}", headers=admin_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_cannot_delete_admin_with_history(self, client, enthusiast, admin, make_user):
        second_admin = await make_user("Admin Ben", user_type=UserType.ADMIN)
        await client.put(f"{API}/{enthusiast.id}", json={"is_active": False}, headers=headers_for(admin))

        response = await client.delete(f"{API}/{admin.id}", headers=headers_for(second_admin))

        assert response.status_code == 403


class TestCachedStallsFollowOwner:
    """Test suite for cached stall details after the owner's account changes"""

    @pytest.mark.asyncio
    async def test_profile_change_refreshes_stall(self, client, stall, owner_headers, live_cache):
        cached = (await client.get(f"/api/v1/stalls/{stall['id']}")).json()["data"]

        await client.put(f"{API}/profile", json={"name": "Kuya Ben", "email": "ben@isaw.ph"}, headers=owner_headers)
        fresh = (await client.get(f"/api/v1/stalls/{stall['id']}")).json()["data"]

        assert cached["owner_name"] != "Kuya Ben"
        assert fresh["owner_name"] == "Kuya Ben"
        assert fresh["owner_email"] == "ben@isaw.ph"

    @pytest.mark.asyncio
    async def test_admin_edit_refreshes_stall(self, client, stall, owner, admin_headers, live_cache):
        await client.get(f"/api/v1/stalls/{stall['id']}")

        response = await client.put(f"{API}/{owner.id}", json={"name": "Renamed Owner"}, headers=admin_headers)
        fresh = (await client.get(f"/api/v1/stalls/{stall['id']}")).json()["data"]

        assert response.status_code == 200
        assert fresh["owner_name"] == "Renamed Owner"
