"""Tests for API endpoints and public resolution routes."""

import pytest
from httpx import ASGITransport, AsyncClient

from config import Config
from web_app import create_app

from tests.conftest import TEST_API_KEY


@pytest.mark.asyncio
class TestManagementAuth:
    """Test the management API credential check."""

    async def test_missing_key(self, anonymous_client):
        """Test requests without a key are rejected."""
        response = await anonymous_client.get("/api/qr")

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Unauthorized"}

    async def test_wrong_key(self, anonymous_client):
        """Test a wrong key is rejected."""
        response = await anonymous_client.post(
            "/api/qr",
            json={"type": "link", "data": {"url": "https://example.com"}},
            headers={"X-API-Key": "nope"},
        )

        assert response.status_code == 401

    async def test_rejected_mutation_writes_nothing(self, anonymous_client, store):
        """Test unauthenticated creates leave the store untouched."""
        await anonymous_client.post("/api/qr", json={"type": "link", "data": {"url": "https://example.com"}})

        assert await store.list_records() == []

    async def test_no_configured_key_fails_closed(self, service):
        """Test the API stays closed when no key is configured."""
        app = create_app(service_instance=service, config=Config(base_url="http://testserver"))

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
            response = await ac.get("/api/qr", headers={"X-API-Key": ""})

        assert response.status_code == 401

    async def test_allow_unauthenticated(self, service):
        """Test the deprecated demo mode opens the API."""
        config = Config(base_url="http://testserver", allow_unauthenticated=True)
        app = create_app(service_instance=service, config=config)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
            response = await ac.get("/api/qr")

        assert response.status_code == 200

    async def test_public_routes_need_no_key(self, client, anonymous_client):
        """Test scanning works without credentials."""
        created = await client.post("/api/qr", json={"type": "link", "data": {"url": "https://example.com"}})

        response = await anonymous_client.get(f"/q/{created.json()['shortId']}")

        assert response.status_code == 302


@pytest.mark.asyncio
class TestManagementAPI:
    """Test CRUD endpoints."""

    async def test_create_link(self, client):
        """Test POST /api/qr with a link."""
        response = await client.post(
            "/api/qr",
            json={"type": "link", "data": {"url": "https://example.com/menu"}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["type"] == "link"
        assert data["data"] == {"url": "https://example.com/menu"}
        assert len(data["shortId"]) == 8
        assert data["qrUrl"] == f"http://testserver/q/{data['shortId']}"
        assert data["qrImage"].startswith("data:image/png;base64,")
        assert "createdAt" in data
        assert "updatedAt" in data

    async def test_create_contact_card(self, client, sample_contact):
        """Test POST /api/qr with a contact card."""
        response = await client.post("/api/qr", json={"type": "vcard", "data": sample_contact})

        assert response.status_code == 200
        assert response.json()["data"] == sample_contact

    async def test_create_escapes_contact_fields(self, client):
        """Test sanitized values are what gets stored."""
        response = await client.post(
            "/api/qr",
            json={"type": "vcard", "data": {"firstName": "<b>Jane</b>", "lastName": "Doe", "extra": "x"}},
        )

        assert response.status_code == 200
        assert response.json()["data"] == {"firstName": "&lt;b&gt;Jane&lt;/b&gt;", "lastName": "Doe"}

    @pytest.mark.parametrize("body", [
        {"type": "link", "data": {"url": "javascript:alert(1)"}},
        {"type": "link", "data": {"url": "not-a-url"}},
        {"type": "vcard", "data": {"firstName": "Jane"}},
        {"type": "wifi", "data": {"ssid": "home"}},
        {"type": "link"},
        {"data": {"url": "https://example.com"}},
    ])
    async def test_create_invalid(self, client, store, body):
        """Test invalid input answers 400 and writes nothing."""
        response = await client.post("/api/qr", json=body)

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert await store.list_records() == []

    async def test_malformed_json(self, client):
        """Test a body that is not JSON."""
        response = await client.post(
            "/api/qr",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400

    async def test_list(self, client, sample_contact):
        """Test GET /api/qr."""
        await client.post("/api/qr", json={"type": "link", "data": {"url": "https://example.com"}})
        await client.post("/api/qr", json={"type": "vcard", "data": sample_contact})

        response = await client.get("/api/qr")

        assert response.status_code == 200
        data = response.json()
        assert [item["type"] for item in data] == ["link", "vcard"]
        assert all(item["qrImage"].startswith("data:image/png") for item in data)

    async def test_get(self, client):
        """Test GET /api/qr/{id}."""
        created = (await client.post("/api/qr", json={"type": "link", "data": {"url": "https://example.com"}})).json()

        response = await client.get(f"/api/qr/{created['id']}")

        assert response.status_code == 200
        assert response.json()["shortId"] == created["shortId"]

    async def test_get_missing(self, client):
        """Test GET of an unknown id."""
        response = await client.get("/api/qr/9999")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "QR code not found"}

    async def test_non_integer_id(self, client):
        """Test a malformed record id is invalid input."""
        response = await client.get("/api/qr/abc")

        assert response.status_code == 400

    @pytest.mark.parametrize("path", ["/api/qr/100000000000000000000", "/api/qr/0", "/api/qr/-5"])
    async def test_out_of_range_id(self, client, path):
        """Test ids beyond the 64-bit range are simply not found."""
        response = await client.get(path)

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "QR code not found"}

    async def test_update(self, client, sample_contact):
        """Test PUT /api/qr/{id} keeps the short id."""
        created = (await client.post("/api/qr", json={"type": "link", "data": {"url": "https://example.com"}})).json()

        response = await client.put(f"/api/qr/{created['id']}", json={"type": "vcard", "data": sample_contact})

        assert response.status_code == 200
        data = response.json()
        assert data["shortId"] == created["shortId"]
        assert data["qrUrl"] == created["qrUrl"]
        assert data["type"] == "vcard"
        assert data["data"] == sample_contact

    async def test_update_invalid(self, client):
        """Test an invalid update leaves the record as it was."""
        created = (await client.post("/api/qr", json={"type": "link", "data": {"url": "https://example.com"}})).json()

        response = await client.put(f"/api/qr/{created['id']}", json={"type": "link", "data": {"url": "file:///etc/passwd"}})

        assert response.status_code == 400
        current = (await client.get(f"/api/qr/{created['id']}")).json()
        assert current["data"] == {"url": "https://example.com"}

    async def test_update_missing(self, client):
        """Test PUT of an unknown id."""
        response = await client.put("/api/qr/9999", json={"type": "link", "data": {"url": "https://example.com"}})

        assert response.status_code == 404

    async def test_delete(self, client):
        """Test DELETE /api/qr/{id}."""
        created = (await client.post("/api/qr", json={"type": "link", "data": {"url": "https://example.com"}})).json()

        response = await client.delete(f"/api/qr/{created['id']}")

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert (await client.get(f"/api/qr/{created['id']}")).status_code == 404
        assert (await client.get(f"/q/{created['shortId']}")).status_code == 404

    async def test_delete_missing(self, client):
        """Test DELETE of an unknown id."""
        response = await client.delete("/api/qr/9999")

        assert response.status_code == 404

    async def test_clear_all(self, client):
        """Test DELETE /api/qr/clear-all."""
        for n in range(3):
            await client.post("/api/qr", json={"type": "link", "data": {"url": f"https://example.com/{n}"}})

        response = await client.delete("/api/qr/clear-all")

        assert response.status_code == 200
        assert response.json() == {"success": True, "deleted": 3}
        assert (await client.get("/api/qr")).json() == []

    async def test_image(self, client):
        """Test GET /api/qr/{id}/image."""
        created = (await client.post("/api/qr", json={"type": "link", "data": {"url": "https://example.com"}})).json()

        response = await client.get(f"/api/qr/{created['id']}/image")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.headers["content-disposition"] == f'attachment; filename="qr-{created["shortId"]}.png"'
        assert response.content.startswith(b"\x89PNG")

    async def test_image_missing(self, client):
        """Test the image of an unknown id."""
        response = await client.get("/api/qr/9999/image")

        assert response.status_code == 404

    async def test_forwarded_headers_shape_qr_url(self, service):
        """Test the public origin comes from proxy headers when BASE_URL is unset."""
        app = create_app(service_instance=service, config=Config(api_key=TEST_API_KEY))

        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://internal:8000",
            headers={"X-API-Key": TEST_API_KEY},
        ) as ac:
            response = await ac.post(
                "/api/qr",
                json={"type": "link", "data": {"url": "https://example.com"}},
                headers={"X-Forwarded-Proto": "https", "X-Forwarded-Host": "qr.example.com"},
            )

        data = response.json()
        assert data["qrUrl"] == f"https://qr.example.com/q/{data['shortId']}"


@pytest.mark.asyncio
class TestPublicResolution:
    """Test scanning QR codes."""

    async def test_link_redirect(self, client, anonymous_client):
        """Test a link answers 302 to the stored URL."""
        url = "https://example.com/menu?table=4&lang=en"
        created = (await client.post("/api/qr", json={"type": "link", "data": {"url": url}})).json()

        response = await anonymous_client.get(f"/q/{created['shortId']}")

        assert response.status_code == 302
        assert response.headers["location"] == url

    async def test_redirect_follows_update(self, client, anonymous_client):
        """Test the same printed code reaches the new destination."""
        created = (await client.post("/api/qr", json={"type": "link", "data": {"url": "https://example.com/a"}})).json()
        await client.put(f"/api/qr/{created['id']}", json={"type": "link", "data": {"url": "https://example.com/b"}})

        response = await anonymous_client.get(f"/q/{created['shortId']}")

        assert response.headers["location"] == "https://example.com/b"

    async def test_contact_card_attachment(self, client, anonymous_client, sample_contact):
        """Test a contact card downloads as a vCard."""
        created = (await client.post("/api/qr", json={"type": "vcard", "data": sample_contact})).json()

        response = await anonymous_client.get(f"/q/{created['shortId']}")

        assert response.status_code == 200
        assert response.headers["content-type"] == "text/vcard; charset=utf-8"
        assert response.headers["content-disposition"] == 'attachment; filename="Jane_Doe.vcf"'
        body = response.content.decode("utf-8")
        assert body.startswith("BEGIN:VCARD\r\nVERSION:3.0\r\n")
        assert "FN:Jane Doe" in body
        assert "EMAIL:jane@x.com" in body
        assert "TEL:" not in body

    @pytest.mark.parametrize("path", ["/q/zzzzzzzz", "/q/short", "/q/%3Cscript%3E", "/download/zzzzzzzz"])
    async def test_not_found_page(self, anonymous_client, path):
        """Test unknown or malformed ids answer the static 404 page."""
        response = await anonymous_client.get(path)

        assert response.status_code == 404
        assert response.headers["content-type"].startswith("text/html")
        assert "QR code not found" in response.text
        assert "script" not in response.text.lower()

    async def test_download_route(self, client, anonymous_client, sample_contact):
        """Test /download/{shortId} serves contact cards."""
        created = (await client.post("/api/qr", json={"type": "vcard", "data": sample_contact})).json()

        response = await anonymous_client.get(f"/download/{created['shortId']}")

        assert response.status_code == 200
        assert "FN:Jane Doe" in response.text

    async def test_download_route_rejects_links(self, client, anonymous_client):
        """Test /download/{shortId} has nothing for links."""
        created = (await client.post("/api/qr", json={"type": "link", "data": {"url": "https://example.com"}})).json()

        response = await anonymous_client.get(f"/download/{created['shortId']}")

        assert response.status_code == 404

    async def test_root_alias(self, client, anonymous_client):
        """Test /{shortId} resolves like /q/{shortId}."""
        created = (await client.post("/api/qr", json={"type": "link", "data": {"url": "https://example.com"}})).json()

        response = await anonymous_client.get(f"/{created['shortId']}")

        assert response.status_code == 302
        assert response.headers["location"] == "https://example.com"

    async def test_security_headers(self, client, anonymous_client):
        """Test responses carry the security headers."""
        created = (await client.post("/api/qr", json={"type": "link", "data": {"url": "https://example.com"}})).json()

        for response in (
            await anonymous_client.get(f"/q/{created['shortId']}"),
            await anonymous_client.get("/q/zzzzzzzz"),
            await client.get("/api/qr"),
        ):
            assert response.headers["x-content-type-options"] == "nosniff"
            assert response.headers["x-frame-options"] == "DENY"
            assert response.headers["referrer-policy"] == "no-referrer"

    async def test_security_headers_on_internal_error(self, service, config, monkeypatch):
        """Test unexpected failures answer 500 with the security headers."""
        async def broken(base_url):
            raise RuntimeError("boom")

        monkeypatch.setattr(service, "list_records", broken)
        app = create_app(service_instance=service, config=config)
        transport = ASGITransport(app=app, raise_app_exceptions=False)

        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            response = await ac.get("/api/qr", headers={"X-API-Key": TEST_API_KEY})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Internal server error"}
        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "DENY"
        assert response.headers["referrer-policy"] == "no-referrer"
