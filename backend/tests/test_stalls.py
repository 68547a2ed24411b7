"""
Tests for Stall and Menu Endpoints

The public directory, stall management by owners/admins and menu items.
"""

import pytest

from buzzarfeed.core.constants import ErrorMessages, StallDefaults
from conftest import headers_for

API = "/api/v1/stalls"


class TestStallDirectory:
    """Test suite for public stall reads"""

    @pytest.mark.asyncio
    async def test_created_stall_is_formatted(self, stall, owner):
        assert stall["name"] == "Kuya's Isaw"
        assert stall["categories"] == ["street_food", "snacks"]
        assert stall["rating"] == 0.0
        assert stall["reviews"] == 0
        assert stall["address"] == "Block 3, Food Park"
        assert stall["owner_id"] == owner.id
        assert stall["owner_name"] == owner.name

    @pytest.mark.asyncio
    async def test_list_is_paginated(self, client, stall):
        response = await client.get(API)

        assert response.status_code == 200
        body = response.json()
        assert body["pagination"] == {"total": 1, "page": 1, "perPage": 12, "totalPages": 1}
        assert body["data"][0]["id"] == stall["id"]

    @pytest.mark.asyncio
    async def test_search_and_category_filters(self, client, stall, owner_headers):
        await client.post(API, json={
            "name": "Tea Corner",
            "description": "Milk tea and fruit shakes",
            "address": "Block 1",
            "categories": ["beverages"]
        }, headers=owner_headers)

        by_search = (await client.get(API, params={"search": "isaw"})).json()
        assert [s["name"] for s in by_search["data"]] == ["Kuya's Isaw"]

        by_category = (await client.get(API, params={"category": "Beverages"})).json()
        assert [s["name"] for s in by_category["data"]] == ["Tea Corner"]

    @pytest.mark.asyncio
    async def test_unknown_category_matches_nothing(self, client, stall):
        body = (await client.get(API, params={"category": "caviar"})).json()

        assert body["data"] == []
        assert body["pagination"]["total"] == 0

    @pytest.mark.asyncio
    async def test_categories_in_canonical_order(self, client, stall):
        response = await client.get(f"{API}/categories")

        assert response.json()["data"] == ["snacks", "street_food"]

    @pytest.mark.asyncio
    async def test_featured(self, client, stall):
        data = (await client.get(f"{API}/featured")).json()["data"]

        assert [s["id"] for s in data] == [stall["id"]]

    @pytest.mark.asyncio
    async def test_stall_detail_and_default_hours(self, client, owner_headers):
        created = (await client.post(API, json={
            "name": "No Hours",
            "description": "Opening times unknown",
            "address": "Somewhere"
        }, headers=owner_headers)).json()["data"]

        response = await client.get(f"{API}/{created['id']}")

        assert response.status_code == 200
        assert response.json()["data"]["hours"] == StallDefaults.HOURS_NOT_SPECIFIED

    @pytest.mark.asyncio
    async def test_missing_stall(self, client):
        response = await client.get(f"{API}/999")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "message": ErrorMessages.STALL_NOT_FOUND,
            "errors": []
        }

    @pytest.mark.asyncio
    async def test_inactive_stall_is_hidden(self, client, stall, admin_headers):
        await client.put(f"{API}/{stall['id']}", json={"is_active": False}, headers=admin_headers)

        assert (await client.get(f"{API}/{stall['id']}")).status_code == 404
        assert (await client.get(API)).json()["data"] == []
        assert (await client.get(f"{API}/{stall['id']}/menu")).status_code == 404


class TestStallManagement:
    """Test suite for stall writes"""

    @pytest.mark.asyncio
    async def test_enthusiast_cannot_create_stall(self, client, enthusiast_headers, stall_payload):
        response = await client.post(API, json=stall_payload, headers=enthusiast_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_anonymous_cannot_create_stall(self, client, stall_payload):
        response = await client.post(API, json=stall_payload)

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_short_description_rejected(self, client, owner_headers, stall_payload):
        response = await client.post(API, json={**stall_payload, "description": "abc"}, headers=owner_headers)

        assert response.status_code == 400
        assert "description" in response.json()["errors"]

    @pytest.mark.asyncio
    async def test_owner_updates_stall_and_location(self, client, stall, owner_headers):
        response = await client.put(f"{API}/{stall['id']}", json={
            "hours": "24/7",
            "address": "Block 9",
            "categories": "Rice Meals"
        }, headers=owner_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["hours"] == "24/7"
        assert data["address"] == "Block 9"
        assert data["categories"] == ["rice_meals"]

    @pytest.mark.asyncio
    async def test_other_user_cannot_update(self, client, stall, make_user):
        stranger = await make_user("Other Owner", user_type="food_stall_owner")

        response = await client.put(f"{API}/{stall['id']}", json={"hours": "never"}, headers=headers_for(stranger))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_owner_cannot_deactivate(self, client, stall, owner_headers):
        response = await client.put(f"{API}/{stall['id']}", json={"is_active": False}, headers=owner_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_my_stalls_include_inactive(self, client, stall, owner_headers, admin_headers):
        await client.put(f"{API}/{stall['id']}", json={"is_active": False}, headers=admin_headers)

        data = (await client.get(f"{API}/mine", headers=owner_headers)).json()["data"]

        assert [(s["id"], s["is_active"]) for s in data] == [(stall["id"], False)]

    @pytest.mark.asyncio
    async def test_admin_deletes_stall_and_logs(self, client, stall, admin_headers):
        response = await client.delete(f"{API}/{stall['id']}", headers=admin_headers)
        assert response.status_code == 200

        assert (await client.get(f"{API}/{stall['id']}")).status_code == 404
        logs = (await client.get("/api/v1/admin/logs", headers=admin_headers)).json()["data"]
        assert logs[0]["action"] == "delete_stall"
        assert logs[0]["entity_id"] == stall["id"]

    @pytest.mark.asyncio
    async def test_owner_cannot_delete_stall(self, client, stall, owner_headers):
        response = await client.delete(f"{API}/{stall['id']}", headers=owner_headers)

        assert response.status_code == 403
        assert response.json()["message"] == ErrorMessages.ADMIN_REQUIRED


class TestMenu:
    """Test suite for menu items"""

    @pytest.mark.asyncio
    async def test_menu_crud(self, client, stall, owner_headers):
        created = await client.post(f"{API}/{stall['id']}/menu", json={
            "name": "Pork Isaw",
            "price": "15.50"
        }, headers=owner_headers)
        assert created.status_code == 201
        item = created.json()["data"]
        assert item["price"] == 15.5
        assert item["is_available"] is True

        updated = await client.put(
            f"{API}/{stall['id']}/menu/{item['id']}",
            json={"price": "18.00"},
            headers=owner_headers
        )
        assert updated.json()["data"]["price"] == 18.0

        deleted = await client.delete(f"{API}/{stall['id']}/menu/{item['id']}", headers=owner_headers)
        assert deleted.status_code == 200
        assert (await client.get(f"{API}/{stall['id']}/menu")).json()["data"] == []

    @pytest.mark.asyncio
    async def test_unavailable_items_are_not_listed(self, client, stall, owner_headers):
        await client.post(f"{API}/{stall['id']}/menu", json={"name": "Chicken Isaw", "price": 12}, headers=owner_headers)
        await client.post(
            f"{API}/{stall['id']}/menu",
            json={"name": "Betamax", "price": 10, "is_available": False},
            headers=owner_headers
        )

        names = [item["name"] for item in (await client.get(f"{API}/{stall['id']}/menu")).json()["data"]]

        assert names == ["Chicken Isaw"]

    @pytest.mark.asyncio
    async def test_negative_price_rejected(self, client, stall, owner_headers):
        response = await client.post(f"{API}/{stall['id']}/menu", json={"name": "Free", "price": -1}, headers=owner_headers)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_only_owner_manages_menu(self, client, stall, enthusiast_headers):
        response = await client.post(
            f"{API}/{stall['id']}/menu",
            json={"name": "Pork Isaw", "price": 15},
            headers=enthusiast_headers
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_item(self, client, stall, owner_headers):
        response = await client.put(f"{API}/{stall['id']}/menu/999", json={"price": 1}, headers=owner_headers)

        assert response.status_code == 404
        assert response.json()["message"] == ErrorMessages.MENU_ITEM_NOT_FOUND
