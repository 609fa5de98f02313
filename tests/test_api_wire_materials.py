"""
MMW — Wire Material API Tests
==============================
Validates listing parameters, 404 mapping of unknown batches and update
validation.  The service is an ``AsyncMock``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from mmw.core.exceptions import ResourceNotFoundError
from mmw.models.common import BaseResponse
from mmw.models.wire_material import WireMaterialPage, WireMaterialResponse


def _material(batch_number: str = "B-001") -> WireMaterialResponse:
    return WireMaterialResponse(
        batch_number=batch_number,
        device_id="D-1",
        diameter=Decimal("0.05"),
        manufacturer="Acme",
        event_time=datetime(2026, 1, 1, tzinfo=timezone.utc),
        final_evaluation_result="PASS",
    )


class TestList:
    async def test_query_parameters_parsed(self, client, wire_material_service):
        wire_material_service.list_wire_materials.return_value = BaseResponse.success(
            WireMaterialPage.build([_material()], page=0, size=5, total=1)
        )

        resp = await client.get(
            "/api/wire-materials",
            params={
                "page": 0,
                "size": 5,
                "manufacturer_keyword": "ac",
                "sort_by": "event_time",
                "sort_direction": "ASC",
            },
        )

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["total_elements"] == 1
        assert data["wire_materials"][0]["batch_number"] == "B-001"
        request = wire_material_service.list_wire_materials.await_args.args[0]
        assert request.size == 5
        assert request.manufacturer_keyword == "ac"
        assert request.sort_by == "event_time"
        assert not request.descending

    async def test_unknown_sort_field_is_400(self, client, wire_material_service):
        resp = await client.get("/api/wire-materials", params={"sort_by": "password"})

        assert resp.status_code == 400
        assert resp.json()["code"] == "error"
        wire_material_service.list_wire_materials.assert_not_awaited()

    async def test_size_out_of_range_is_400(self, client):
        resp = await client.get("/api/wire-materials", params={"size": 500})

        assert resp.status_code == 400


class TestDetail:
    async def test_found(self, client, wire_material_service):
        wire_material_service.get_wire_material.return_value = BaseResponse.success(
            _material()
        )

        resp = await client.get("/api/wire-materials/B-001")

        assert resp.status_code == 200
        assert resp.json()["data"]["manufacturer"] == "Acme"

    async def test_not_found_is_404(self, client, wire_material_service):
        wire_material_service.get_wire_material.side_effect = ResourceNotFoundError(
            "Wire material not found: missing", resource_id="missing"
        )

        resp = await client.get("/api/wire-materials/missing")

        assert resp.status_code == 404
        assert resp.json() == {
            "code": "error",
            "msg": "Wire material not found: missing",
            "data": {"error_code": "RESOURCE_NOT_FOUND"},
        }


class TestUpdate:
    async def test_update(self, client, wire_material_service):
        wire_material_service.update_wire_material.return_value = BaseResponse.success(
            _material()
        )

        resp = await client.put(
            "/api/wire-materials/B-001",
            json={"diameter": "0.07", "contact_email": "qa@example.com"},
        )

        assert resp.status_code == 200
        batch, body = wire_material_service.update_wire_material.await_args.args
        assert batch == "B-001"
        assert body.diameter == Decimal("0.07")

    async def test_invalid_email_is_400(self, client, wire_material_service):
        resp = await client.put(
            "/api/wire-materials/B-001", json={"contact_email": "nope"}
        )

        assert resp.status_code == 400
        wire_material_service.update_wire_material.assert_not_awaited()


class TestDelete:
    async def test_delete(self, client, wire_material_service):
        wire_material_service.delete_wire_material.return_value = BaseResponse.success(
            msg="Wire material deleted"
        )

        resp = await client.delete("/api/wire-materials/B-001")

        assert resp.status_code == 200
        assert resp.json()["msg"] == "Wire material deleted"
