"""Form options, QR payload helpers and health endpoints."""

import json

import pytest
from httpx import AsyncClient

from herbtrace.middleware.exceptions import validation_error_from_pydantic
from herbtrace.models.enums import PlantPart, options_table
from herbtrace.routers import health
from herbtrace.utils import qr


@pytest.mark.api
@pytest.mark.asyncio
class TestPublicEndpoints:

    async def test_options(self, client: AsyncClient):
        response = await client.get("/api/options")

        assert response.status_code == 200
        data = response.json()
        assert set(data) == {
            "roles", "farmingTypes", "plantParts", "processingTypes", "testTypes", "vedas",
        }
        assert {"value": "Wild", "label": "Wild-harvested"} in data["farmingTypes"]
        assert {"value": "manufacturer", "label": "Manufacturer"} in data["roles"]

    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    async def test_ready(self, client: AsyncClient, test_engine, monkeypatch):
        monkeypatch.setattr(health, "engine", test_engine)

        response = await client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["checks"] == {"recordStore": "ok", "revocationStore": "ok"}

    async def test_not_ready_without_revocation_store(
        self, client: AsyncClient, fake_redis, test_engine, monkeypatch
    ):
        monkeypatch.setattr(health, "engine", test_engine)

        async def refused():
            raise ConnectionError("Connection refused")

        fake_redis.ping = refused

        response = await client.get("/health/ready")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "not ready"
        assert data["checks"]["recordStore"] == "ok"
        assert data["checks"]["revocationStore"].startswith("error: Connection refused")


@pytest.mark.unit
class TestOptionsTable:

    def test_every_plant_part_listed(self):
        values = [o["value"] for o in options_table()["plantParts"]]

        assert values == [p.value for p in PlantPart]
        assert "Whole Plant" in values


@pytest.mark.unit
class TestQrPayloads:

    def test_collector_token_is_the_id(self):
        assert qr.collector_token("c-42") == "c-42"

    def test_lab_token_round_trip(self):
        token = qr.lab_test_token("lab-7")

        assert token == "LabTestID:lab-7"
        assert qr.strip_lab_token(token) == "lab-7"
        assert qr.strip_lab_token("lab-7") == "lab-7"

    def test_product_batch_payload(self):
        payload = json.loads(qr.product_batch_payload("pb-1", "m-1"))

        assert payload == {"productBatchId": "pb-1", "manufacturerId": "m-1"}

    def test_data_uri(self):
        assert qr.qr_data_uri("c-42").startswith("data:image/svg+xml")


@pytest.mark.unit
class TestValidationMessages:

    def test_missing_and_invalid_fields(self):
        error = validation_error_from_pydantic([
            {"type": "missing", "loc": ("body", "collectorId")},
            {"type": "greater_than", "loc": ("body", "quantityKg")},
            {"type": "float_parsing", "loc": ("body", "location", "lat")},
        ])

        assert error.status_code == 400
        assert error.fields == ["collectorId", "quantityKg", "location.lat"]
        assert error.message == (
            "Missing required field(s): collectorId; "
            "Invalid value for field(s): quantityKg, location.lat"
        )

    def test_malformed_json_names_the_body(self):
        error = validation_error_from_pydantic([
            {"type": "json_invalid", "loc": ("body", 1)},
        ])

        assert error.fields == ["body"]
        assert error.message == "Invalid value for field(s): body"
