"""
Integration tests for the HTTP API.
Drives the application in-process through httpx and checks status codes,
response bodies and the structured error envelope.
"""

import pytest
import uuid
from httpx import AsyncClient

from tests.conftest import PropertyFactory, register_user, auth_headers, assert_error_body


async def create_listing(client: AsyncClient, token: str, **overrides) -> dict:
    response = await client.post(
        "/api/properties",
        json=PropertyFactory.create_payload(**overrides),
        headers=auth_headers(token)
    )
    assert response.status_code == 201, response.text
    return response.json()["property"]


class TestAuthEndpoints:

    @pytest.mark.asyncio
    async def test_register(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/auth/register",
            json={"name": "Jane", "email": "Jane@Example.com", "password": "secret123", "phone": "555-0100"}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["token"]
        assert body["user"]["email"] == "jane@example.com"
        assert body["user"]["role"] == "buyer"
        assert "hashed_password" not in body["user"]

    @pytest.mark.asyncio
    async def test_register_duplicate(self, async_client: AsyncClient):
        await register_user(async_client, email="dup@example.com")

        response = await async_client.post(
            "/api/auth/register",
            json={"name": "Again", "email": "dup@example.com", "password": "secret123"}
        )

        assert_error_body(response, 400, "User already exists")

    @pytest.mark.asyncio
    async def test_register_invalid_body(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/auth/register",
            json={"name": "Jane", "email": "not-an-email", "password": "123"}
        )

        assert_error_body(response, 400)
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert {detail["field"] for detail in body["details"]} == {"body -> email", "body -> password"}

    @pytest.mark.asyncio
    async def test_login(self, async_client: AsyncClient):
        await register_user(async_client, email="login@example.com", password="secret123")

        response = await async_client.post(
            "/api/auth/login", json={"email": "login@example.com", "password": "secret123"}
        )

        assert response.status_code == 200
        assert response.json()["token"]

    @pytest.mark.asyncio
    async def test_login_failures_are_indistinguishable(self, async_client: AsyncClient):
        await register_user(async_client, email="login@example.com", password="secret123")

        wrong_password = await async_client.post(
            "/api/auth/login", json={"email": "login@example.com", "password": "wrong-pass"}
        )
        unknown_email = await async_client.post(
            "/api/auth/login", json={"email": "nobody@example.com", "password": "secret123"}
        )

        assert_error_body(wrong_password, 400, "Invalid credentials")
        assert_error_body(unknown_email, 400, "Invalid credentials")

    @pytest.mark.asyncio
    async def test_me_requires_token(self, async_client: AsyncClient):
        response = await async_client.get("/api/auth/me")

        assert_error_body(response, 401, "No token, authorization denied")

    @pytest.mark.asyncio
    async def test_me_rejects_bad_token(self, async_client: AsyncClient):
        response = await async_client.get("/api/auth/me", headers=auth_headers("garbage"))

        assert_error_body(response, 401, "Invalid token")

    @pytest.mark.asyncio
    async def test_me(self, async_client: AsyncClient, buyer_auth: dict):
        response = await async_client.get("/api/auth/me", headers=auth_headers(buyer_auth["token"]))

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == buyer_auth["user"]["id"]
        assert body["favorites"] == []
        assert "hashed_password" not in body

    @pytest.mark.asyncio
    async def test_update_profile(self, async_client: AsyncClient, buyer_auth: dict):
        response = await async_client.put(
            "/api/auth/profile",
            json={"name": "Renamed", "phone": "555-0123"},
            headers=auth_headers(buyer_auth["token"])
        )

        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Renamed"
        assert response.json()["user"]["phone"] == "555-0123"

    @pytest.mark.asyncio
    async def test_update_profile_rejects_email_change(self, async_client: AsyncClient, buyer_auth: dict):
        response = await async_client.put(
            "/api/auth/profile",
            json={"email": "other@example.com"},
            headers=auth_headers(buyer_auth["token"])
        )

        assert_error_body(response, 400)

    @pytest.mark.asyncio
    async def test_role_change_applies_without_new_token(self, async_client: AsyncClient, buyer_auth: dict):
        headers = auth_headers(buyer_auth["token"])

        forbidden = await async_client.post("/api/properties", json=PropertyFactory.create_payload(), headers=headers)
        assert forbidden.status_code == 403

        await async_client.put("/api/auth/profile", json={"role": "seller"}, headers=headers)
        allowed = await async_client.post("/api/properties", json=PropertyFactory.create_payload(), headers=headers)
        assert allowed.status_code == 201


class TestPropertyEndpoints:

    @pytest.mark.asyncio
    async def test_create_property(self, async_client: AsyncClient, seller_auth: dict):
        response = await async_client.post(
            "/api/properties",
            json=PropertyFactory.create_payload(title="Brick Bungalow", price=325000),
            headers=auth_headers(seller_auth["token"])
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Property created successfully"
        prop = body["property"]
        assert prop["title"] == "Brick Bungalow"
        assert prop["price"] == 325000
        assert prop["seller_id"] == seller_auth["user"]["id"]
        assert prop["location"] == {"type": "Point", "coordinates": [-89.65, 39.78]}
        assert prop["views"] == 0

    @pytest.mark.asyncio
    async def test_create_requires_seller(self, async_client: AsyncClient, buyer_auth: dict):
        response = await async_client.post(
            "/api/properties",
            json=PropertyFactory.create_payload(),
            headers=auth_headers(buyer_auth["token"])
        )

        assert_error_body(response, 403)

    @pytest.mark.asyncio
    async def test_create_requires_token(self, async_client: AsyncClient):
        response = await async_client.post("/api/properties", json=PropertyFactory.create_payload())

        assert_error_body(response, 401)

    @pytest.mark.asyncio
    async def test_create_rejects_invalid_listing(self, async_client: AsyncClient, seller_auth: dict):
        payload = PropertyFactory.create_payload(price=-5, longitude=200)

        response = await async_client.post(
            "/api/properties", json=payload, headers=auth_headers(seller_auth["token"])
        )

        assert_error_body(response, 400)
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_price_range_search(self, async_client: AsyncClient, seller_auth: dict):
        for price in (300000, 450000, 600000):
            await create_listing(async_client, seller_auth["token"], price=price)

        response = await async_client.get(
            "/api/properties", params={"min_price": 400000, "max_price": 500000}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert [prop["price"] for prop in body["properties"]] == [450000]

    @pytest.mark.asyncio
    async def test_min_price_includes_and_excludes(self, async_client: AsyncClient, seller_auth: dict):
        await create_listing(async_client, seller_auth["token"], price=450000)

        from_400k = await async_client.get("/api/properties", params={"min_price": 400000})
        from_500k = await async_client.get("/api/properties", params={"min_price": 500000})

        assert [prop["price"] for prop in from_400k.json()["properties"]] == [450000]
        assert from_500k.json()["total"] == 0
        assert from_500k.json()["properties"] == []

    @pytest.mark.asyncio
    async def test_paging_visits_every_listing_once(self, async_client: AsyncClient, seller_auth: dict):
        for index in range(4):
            await create_listing(async_client, seller_auth["token"], title=f"Listing {index}", price=100000)

        first = (await async_client.get("/api/properties", params={"limit": 1})).json()
        seen = []
        for page in range(1, first["total_pages"] + 1):
            body = (await async_client.get("/api/properties", params={"limit": 1, "page": page})).json()
            seen.extend(prop["id"] for prop in body["properties"])

        assert first["total_pages"] == first["total"] == 4
        assert len(seen) == first["total"]
        assert len(set(seen)) == first["total"]

    @pytest.mark.asyncio
    async def test_list_pagination_metadata(self, async_client: AsyncClient, seller_auth: dict):
        for index in range(3):
            await create_listing(async_client, seller_auth["token"], title=f"Listing {index}")

        response = await async_client.get("/api/properties", params={"limit": 2, "page": 1})

        body = response.json()
        assert len(body["properties"]) == 2
        assert body["total"] == 3
        assert body["page"] == 1
        assert body["page_size"] == 2
        assert body["total_pages"] == 2
        assert body["has_next"] is True
        assert body["has_previous"] is False
        # Newest first by default
        assert body["properties"][0]["title"] == "Listing 2"

    @pytest.mark.asyncio
    async def test_list_filters(self, async_client: AsyncClient, seller_auth: dict):
        token = seller_auth["token"]
        await create_listing(async_client, token, title="Lake cabin", property_type="house", city="Madison", bedrooms=2)
        await create_listing(async_client, token, title="City loft", property_type="apartment", city="Chicago", bedrooms=1)
        await create_listing(async_client, token, title="Rental", status="for-rent", city="Madison", bedrooms=3)

        by_type = await async_client.get("/api/properties", params={"property_type": "apartment"})
        by_status = await async_client.get("/api/properties", params={"status": "for-rent"})
        by_search = await async_client.get("/api/properties", params={"search": "cabin loft"})
        by_city = await async_client.get("/api/properties", params={"city": "madi", "bedrooms": 3})

        assert [prop["title"] for prop in by_type.json()["properties"]] == ["City loft"]
        assert [prop["title"] for prop in by_status.json()["properties"]] == ["Rental"]
        assert {prop["title"] for prop in by_search.json()["properties"]} == {"Lake cabin", "City loft"}
        assert [prop["title"] for prop in by_city.json()["properties"]] == ["Rental"]

    @pytest.mark.asyncio
    async def test_list_rejects_bad_parameters(self, async_client: AsyncClient):
        bad_sort = await async_client.get("/api/properties", params={"sort_by": "hashed_password"})
        too_many = await async_client.get("/api/properties", params={"limit": 101})
        bad_type = await async_client.get("/api/properties", params={"property_type": "castle"})

        assert_error_body(bad_sort, 400)
        assert_error_body(too_many, 400)
        assert_error_body(bad_type, 400)

    @pytest.mark.asyncio
    async def test_reads_count_views(self, async_client: AsyncClient, seller_auth: dict):
        prop = await create_listing(async_client, seller_auth["token"])

        first = await async_client.get(f"/api/properties/{prop['id']}")
        second = await async_client.get(f"/api/properties/{prop['id']}")

        assert first.json()["views"] == 1
        assert second.json()["views"] == 2
        assert second.json()["seller"]["name"] == "Api Seller"

    @pytest.mark.asyncio
    async def test_get_missing_property(self, async_client: AsyncClient):
        response = await async_client.get(f"/api/properties/{uuid.uuid4()}")

        assert_error_body(response, 404, "Property not found")

    @pytest.mark.asyncio
    async def test_get_malformed_id(self, async_client: AsyncClient):
        response = await async_client.get("/api/properties/not-a-uuid")

        assert_error_body(response, 400)

    @pytest.mark.asyncio
    async def test_update_by_owner(self, async_client: AsyncClient, seller_auth: dict):
        prop = await create_listing(async_client, seller_auth["token"])

        response = await async_client.put(
            f"/api/properties/{prop['id']}",
            json={"title": "Updated title", "bedrooms": 5, "address": {"city": "Shelbyville"}},
            headers=auth_headers(seller_auth["token"])
        )

        assert response.status_code == 200
        updated = response.json()["property"]
        assert updated["title"] == "Updated title"
        assert updated["bedrooms"] == 5
        assert updated["address"]["city"] == "Shelbyville"
        assert updated["address"]["street"] == "123 Main St"
        assert updated["seller_id"] == prop["seller_id"]

    @pytest.mark.asyncio
    async def test_update_by_other_seller(
        self,
        async_client: AsyncClient,
        seller_auth: dict,
        other_seller_auth: dict
    ):
        prop = await create_listing(async_client, seller_auth["token"])

        response = await async_client.put(
            f"/api/properties/{prop['id']}",
            json={"title": "Hijacked"},
            headers=auth_headers(other_seller_auth["token"])
        )

        assert_error_body(response, 403, "Not authorized")
        unchanged = await async_client.get(f"/api/properties/{prop['id']}")
        assert unchanged.json()["title"] == "Test Property"

    @pytest.mark.asyncio
    async def test_update_rejects_protected_fields(self, async_client: AsyncClient, seller_auth: dict):
        prop = await create_listing(async_client, seller_auth["token"])

        for body in ({"seller_id": str(uuid.uuid4())}, {"views": 1000}, {"title": None}):
            response = await async_client.put(
                f"/api/properties/{prop['id']}", json=body, headers=auth_headers(seller_auth["token"])
            )
            assert_error_body(response, 400)

    @pytest.mark.asyncio
    async def test_update_missing_property(self, async_client: AsyncClient, seller_auth: dict):
        response = await async_client.put(
            f"/api/properties/{uuid.uuid4()}",
            json={"title": "Ghost"},
            headers=auth_headers(seller_auth["token"])
        )

        assert_error_body(response, 404)

    @pytest.mark.asyncio
    async def test_rejected_update_keeps_images(self, async_client: AsyncClient, seller_auth: dict, storage):
        headers = auth_headers(seller_auth["token"])
        prop = await create_listing(
            async_client,
            seller_auth["token"],
            images=[{"url": "https://cdn/a.png", "key": "properties/1-a.png"}]
        )

        response = await async_client.put(
            f"/api/properties/{prop['id']}",
            json={"images": [], "address": {"city": None}},
            headers=headers
        )

        assert_error_body(response, 400)
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert storage.deleted == []

        fetched = await async_client.get(f"/api/properties/{prop['id']}")
        assert [image["key"] for image in fetched.json()["images"]] == ["properties/1-a.png"]

    @pytest.mark.asyncio
    async def test_delete_property(
        self,
        async_client: AsyncClient,
        seller_auth: dict,
        other_seller_auth: dict,
        storage
    ):
        prop = await create_listing(
            async_client,
            seller_auth["token"],
            images=[{"url": "https://cdn/a.png", "key": "properties/1-a.png"}]
        )

        forbidden = await async_client.delete(
            f"/api/properties/{prop['id']}", headers=auth_headers(other_seller_auth["token"])
        )
        assert_error_body(forbidden, 403)

        response = await async_client.delete(
            f"/api/properties/{prop['id']}", headers=auth_headers(seller_auth["token"])
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Property deleted successfully"
        assert storage.deleted == ["properties/1-a.png"]

        gone = await async_client.get(f"/api/properties/{prop['id']}")
        assert gone.status_code == 404

    @pytest.mark.asyncio
    async def test_add_and_remove_images(self, async_client: AsyncClient, seller_auth: dict, storage):
        headers = auth_headers(seller_auth["token"])
        prop = await create_listing(async_client, seller_auth["token"])

        added = await async_client.post(
            f"/api/properties/{prop['id']}/images",
            json={"images": [
                {"url": "https://cdn/a.png", "key": "properties/1-a.png", "is_primary": True},
                {"url": "https://cdn/b.png", "key": "properties/2-b.png"},
            ]},
            headers=headers
        )
        assert added.status_code == 200
        assert len(added.json()["property"]["images"]) == 2

        removed = await async_client.delete(
            f"/api/properties/{prop['id']}/images", params={"key": "properties/1-a.png"}, headers=headers
        )
        assert removed.status_code == 200
        assert [image["key"] for image in removed.json()["property"]["images"]] == ["properties/2-b.png"]
        assert storage.deleted == ["properties/1-a.png"]

        missing = await async_client.delete(
            f"/api/properties/{prop['id']}/images", params={"key": "properties/1-a.png"}, headers=headers
        )
        assert_error_body(missing, 404)

    @pytest.mark.asyncio
    async def test_add_images_requires_at_least_one(self, async_client: AsyncClient, seller_auth: dict):
        prop = await create_listing(async_client, seller_auth["token"])

        response = await async_client.post(
            f"/api/properties/{prop['id']}/images",
            json={"images": []},
            headers=auth_headers(seller_auth["token"])
        )

        assert_error_body(response, 400)

    @pytest.mark.asyncio
    async def test_my_properties_include_inactive(self, async_client: AsyncClient, seller_auth: dict):
        headers = auth_headers(seller_auth["token"])
        active = await create_listing(async_client, seller_auth["token"], title="Active")
        hidden = await create_listing(async_client, seller_auth["token"], title="Hidden")
        await async_client.put(f"/api/properties/{hidden['id']}", json={"is_active": False}, headers=headers)

        mine = await async_client.get("/api/properties/user/my-properties", headers=headers)
        public = await async_client.get("/api/properties")

        assert [prop["id"] for prop in mine.json()] == [hidden["id"], active["id"]]
        assert [prop["id"] for prop in public.json()["properties"]] == [active["id"]]

    @pytest.mark.asyncio
    async def test_nearby_search(self, async_client: AsyncClient, seller_auth: dict):
        token = seller_auth["token"]
        near = await create_listing(async_client, token, title="Near", longitude=-89.60, latitude=39.78)
        here = await create_listing(async_client, token, title="Here", longitude=-89.65, latitude=39.78)
        await create_listing(async_client, token, title="Far", longitude=-88.00, latitude=39.78)

        response = await async_client.get(
            "/api/properties/search/nearby",
            params={"longitude": -89.65, "latitude": 39.78, "max_distance": 10000}
        )

        assert response.status_code == 200
        results = response.json()
        assert [prop["id"] for prop in results] == [here["id"], near["id"]]
        assert results[0]["distance_m"] == 0
        assert results[1]["distance_m"] > results[0]["distance_m"]

    @pytest.mark.asyncio
    async def test_nearby_requires_coordinates(self, async_client: AsyncClient):
        response = await async_client.get("/api/properties/search/nearby", params={"longitude": -89.65})

        assert_error_body(response, 400, "Longitude and latitude are required")


class TestFavoriteEndpoints:

    @pytest.mark.asyncio
    async def test_favorite_lifecycle(self, async_client: AsyncClient, seller_auth: dict, buyer_auth: dict):
        prop = await create_listing(async_client, seller_auth["token"])
        headers = auth_headers(buyer_auth["token"])

        added = await async_client.post(f"/api/auth/favorites/{prop['id']}", headers=headers)
        again = await async_client.post(f"/api/auth/favorites/{prop['id']}", headers=headers)

        assert added.status_code == 200
        assert_error_body(again, 400, "Property already in favorites")

        favorites = await async_client.get("/api/auth/favorites", headers=headers)
        assert [fav["id"] for fav in favorites.json()] == [prop["id"]]

        me = await async_client.get("/api/auth/me", headers=headers)
        assert me.json()["favorites"] == [prop["id"]]

        removed = await async_client.delete(f"/api/auth/favorites/{prop['id']}", headers=headers)
        removed_again = await async_client.delete(f"/api/auth/favorites/{prop['id']}", headers=headers)
        assert removed.status_code == 200
        assert removed_again.status_code == 200

        favorites = await async_client.get("/api/auth/favorites", headers=headers)
        assert favorites.json() == []

    @pytest.mark.asyncio
    async def test_favorite_unknown_property(self, async_client: AsyncClient, buyer_auth: dict):
        response = await async_client.post(
            f"/api/auth/favorites/{uuid.uuid4()}", headers=auth_headers(buyer_auth["token"])
        )

        assert_error_body(response, 404)

    @pytest.mark.asyncio
    async def test_deleted_listing_leaves_favorites(
        self,
        async_client: AsyncClient,
        seller_auth: dict,
        buyer_auth: dict
    ):
        prop = await create_listing(async_client, seller_auth["token"])
        headers = auth_headers(buyer_auth["token"])
        await async_client.post(f"/api/auth/favorites/{prop['id']}", headers=headers)

        await async_client.delete(f"/api/properties/{prop['id']}", headers=auth_headers(seller_auth["token"]))

        me = await async_client.get("/api/auth/me", headers=headers)
        assert me.json()["favorites"] == []


class TestServiceEndpoints:

    @pytest.mark.asyncio
    async def test_root(self, async_client: AsyncClient):
        response = await async_client.get("/")

        assert response.status_code == 200
        assert response.json()["api_prefix"] == "/api"

    @pytest.mark.asyncio
    async def test_unknown_route_uses_error_envelope(self, async_client: AsyncClient):
        response = await async_client.get("/api/nowhere")

        assert_error_body(response, 404)
        assert response.json()["request_id"] == response.headers["X-Request-ID"]
