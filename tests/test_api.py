"""
API tests for QR generation, listing and analytics.

Requests go through the full ASGI app (middleware, exception handlers)
against a temporary SQLite database.
"""

import pytest
from sqlalchemy.exc import OperationalError

from qrlink.api import endpoints
from qrlink.services.qr_renderer import DATA_URL_PREFIX

from conftest import make_qr_code, make_scan


async def generate(client, **body):
    body.setdefault("target_url", "https://example.com")
    return await client.post("/api/qr/generate", json=body)


class TestHealth:
    @pytest.mark.asyncio
    async def test_root(self, client):
        response = await client.get("/")
        assert response.status_code == 200
        assert response.json()["message"] == "QR Link Service"

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestGenerate:
    """POST /api/qr/generate"""

    @pytest.mark.asyncio
    async def test_generate_with_defaults(self, client):
        response = await generate(client, author="John Doe")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True

        data = body["data"]
        assert data["fg_color"] == "#000000"
        assert data["bg_color"] == "#FFFFFF"
        assert data["author"] == "John Doe"
        assert data["target_url"] == "https://example.com"
        assert len(data["short_code"]) == 8
        assert data["short_url"] == f"http://qr.test/r/{data['short_code']}"
        assert data["analytics_url"] == f"http://qr.test/analytics/{data['qr_code_id']}"
        assert data["qr_code_data_url"].startswith(DATA_URL_PREFIX)

    @pytest.mark.asyncio
    async def test_custom_colors(self, client):
        response = await generate(client, fg_color="#112233", bg_color="#fafafa")

        data = response.json()["data"]
        assert data["fg_color"] == "#112233"
        assert data["bg_color"] == "#fafafa"

    @pytest.mark.asyncio
    async def test_single_label_host(self, client):
        response = await generate(client, target_url="http://intranet/wiki")

        assert response.status_code == 200
        assert response.json()["data"]["target_url"] == "http://intranet/wiki"

    @pytest.mark.asyncio
    async def test_url_without_scheme(self, client):
        response = await generate(client, target_url="example.com")

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Please enter a valid URL (e.g., https://example.com)",
        }

    @pytest.mark.asyncio
    async def test_missing_url(self, client):
        response = await client.post("/api/qr/generate", json={"author": "John Doe"})

        assert response.status_code == 400
        assert response.json()["error"] == "URL is required"

    @pytest.mark.asyncio
    async def test_invalid_json(self, client):
        response = await client.post(
            "/api/qr/generate",
            content="{not json",
            headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid JSON in request body"

    @pytest.mark.asyncio
    async def test_multiple_errors_are_joined(self, client):
        response = await generate(client, author="!", fg_color="black")

        assert response.status_code == 400
        assert response.json()["error"] == (
            "Author must be at least 2 characters, "
            "Foreground color must be a valid hex color (e.g., #000000)"
        )

    @pytest.mark.asyncio
    async def test_render_failure(self, client, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("renderer down")

        monkeypatch.setattr(endpoints, "render_qr_data_url", broken)
        response = await generate(client)

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Failed to generate QR code. Please try again.",
        }


class TestList:
    """GET /api/qr/list"""

    @pytest.mark.asyncio
    async def test_empty(self, client):
        response = await client.get("/api/qr/list")

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {"qr_codes": []}}

    @pytest.mark.asyncio
    async def test_lists_scan_counts(self, client, session):
        qr_code = await make_qr_code(session, short_code="listed01", author="Jane")
        await make_scan(session, qr_code.id)
        await make_scan(session, qr_code.id)

        response = await client.get("/api/qr/list")

        items = response.json()["data"]["qr_codes"]
        assert len(items) == 1
        assert items[0]["short_code"] == "listed01"
        assert items[0]["author"] == "Jane"
        assert items[0]["total_scans"] == 2

    @pytest.mark.asyncio
    async def test_database_error(self, client, monkeypatch):
        async def unreachable(self):
            raise OperationalError("SELECT 1", {}, Exception("could not connect to server"))

        monkeypatch.setattr(endpoints.QRCodeService, "list_with_scan_counts", unreachable)
        response = await client.get("/api/qr/list")

        assert response.status_code == 500
        assert response.json()["error"] == "Database connection error. Please try again later."

    @pytest.mark.asyncio
    async def test_other_error(self, client, monkeypatch):
        async def failing(self):
            raise RuntimeError("boom")

        monkeypatch.setattr(endpoints.QRCodeService, "list_with_scan_counts", failing)
        response = await client.get("/api/qr/list")

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to fetch QR codes. Please try again."


class TestAnalytics:
    """GET /api/analytics/{qr_code_id}"""

    @pytest.mark.asyncio
    async def test_analytics(self, client, session):
        qr_code = await make_qr_code(session)
        await make_scan(session, qr_code.id, device_type="mobile", browser="Mobile Safari", country="US", city="Austin")
        await make_scan(session, qr_code.id)

        response = await client.get(f"/api/analytics/{qr_code.id}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["qr_code"]["short_code"] == "abc12345"

        analytics = data["analytics"]
        assert analytics["total_scans"] == 2
        assert sum(item["count"] for item in analytics["scans_by_date"]) == 2
        assert {item["device_type"]: item["count"] for item in analytics["device_breakdown"]} == {
            "mobile": 1, "unknown": 1
        }
        assert {item["browser"] for item in analytics["browser_breakdown"]} == {"Mobile Safari", "unknown"}

    @pytest.mark.asyncio
    async def test_invalid_id(self, client):
        for qr_code_id in ["abc", "0", "-1", "1.5"]:
            response = await client.get(f"/api/analytics/{qr_code_id}")
            assert response.status_code == 400, qr_code_id
            assert response.json()["error"] == "Invalid QR code ID. Please provide a valid numeric ID."

    @pytest.mark.asyncio
    async def test_not_found(self, client):
        response = await client.get("/api/analytics/9999")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": "QR code not found. It may have been deleted or the ID is incorrect.",
        }

    @pytest.mark.asyncio
    async def test_id_beyond_integer_range(self, client):
        for qr_code_id in [str(2**31), "99999999999999999999999", "9" * 5000]:
            response = await client.get(f"/api/analytics/{qr_code_id}")
            assert response.status_code == 404
            assert response.json()["error"] == (
                "QR code not found. It may have been deleted or the ID is incorrect."
            )

    @pytest.mark.asyncio
    async def test_leading_zeros(self, client, session):
        qr_code = await make_qr_code(session)

        response = await client.get(f"/api/analytics/000{qr_code.id}")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_deleted_code_not_found(self, client, session):
        qr_code = await make_qr_code(session)
        await endpoints.QRCodeService(session).soft_delete(qr_code.short_code)

        response = await client.get(f"/api/analytics/{qr_code.id}")
        assert response.status_code == 404
