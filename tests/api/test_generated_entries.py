"""Tests for generated entry endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_codegen.infrastructure.config import settings
from tests.conftest import ACTOR, ValveCatalog


class SerializationFailure(Exception):
    """Driver error carrying the PostgreSQL serialization failure SQLSTATE."""

    sqlstate = "40001"


async def create_entry(api_client: AsyncClient, body: dict) -> dict:
    """Create an entry and return the response body."""
    response = await api_client.post("/generated-entries", json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateGeneratedEntry:
    """Tests for POST /generated-entries."""

    @pytest.mark.asyncio
    async def test_create(self, api_client: AsyncClient, valves: ValveCatalog) -> None:
        """A code is generated and the hydrated entry returned."""
        data = await create_entry(
            api_client,
            {
                "product_id": valves.gate_valve_id,
                "variant1_id": valves.motorised_id,
                "variant2_id": valves.wafer_id,
                "values": {valves.colour_id: "bleu", valves.voltage_id: ["230v", "24V"]},
            },
        )

        assert data["generated_code"] == "FCVOME000001"
        assert data["product"]["code"] == "VO"
        assert data["product"]["family"]["name"] == "VANNE"
        assert data["product"]["product_type"]["code"] == "C"
        assert data["variant1"]["code"] == "M"
        assert data["variant1"]["variant_level"] == "FIRST"
        assert data["variant2"]["code"] == "E"
        assert data["created_by"] == ACTOR
        assert data["updated_by"] == ACTOR
        assert [(value["name"], value["value"]) for value in data["attribute_values"]] == [
            ("COULEUR", "BLEU"),
            ("TENSION MOTEUR", '["24V", "230V"]'),
        ]

    @pytest.mark.asyncio
    async def test_duplicate(self, api_client: AsyncClient, valves: ValveCatalog) -> None:
        """An equivalent request is rejected with the existing code."""
        body = {"product_id": valves.gate_valve_id, "variant1_id": valves.manual_id, "values": {valves.colour_id: "red"}}
        await create_entry(api_client, body)

        body["values"] = {valves.colour_id: "RED"}
        response = await api_client.post("/generated-entries", json=body)

        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "DUPLICATE_COMBINATION"
        assert data["details"]["generated_code"] == "FCVOH0000001"
        assert "FCVOH0000001" in data["message"]

    @pytest.mark.asyncio
    async def test_non_unique_value(self, api_client: AsyncClient, valves: ValveCatalog) -> None:
        """A unique value already in use is rejected."""
        await create_entry(
            api_client,
            {"product_id": valves.gate_valve_id, "variant1_id": valves.manual_id, "values": {valves.serial_number_id: "SN-1"}},
        )

        response = await api_client.post(
            "/generated-entries",
            json={
                "product_id": valves.butterfly_valve_id,
                "variant1_id": valves.manual_id,
                "values": {valves.serial_number_id: "sn-1"},
            },
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "NON_UNIQUE_VALUE"

    @pytest.mark.asyncio
    async def test_value_too_long(self, api_client: AsyncClient, valves: ValveCatalog) -> None:
        """Values above 30 characters are rejected."""
        response = await api_client.post(
            "/generated-entries",
            json={"product_id": valves.gate_valve_id, "variant1_id": valves.manual_id, "values": {valves.colour_id: "x" * 31}},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALUE_TOO_LONG"

    @pytest.mark.asyncio
    async def test_empty_json_selection(self, api_client: AsyncClient, valves: ValveCatalog) -> None:
        """An empty multi-select sent as JSON text is an explicit empty value."""
        response = await api_client.post(
            "/generated-entries",
            json={"product_id": valves.gate_valve_id, "variant1_id": valves.motorised_id, "values": {valves.voltage_id: "[]"}},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "EMPTY_REQUIRED_VALUE"
        assert data["details"]["characteristic_id"] == valves.voltage_id

    @pytest.mark.asyncio
    async def test_conflict_at_commit(
        self, api_client: AsyncClient, valves: ValveCatalog, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A request losing a serialization race at commit gets a 409 and no code."""

        async def fail_commit(self: AsyncSession) -> None:
            raise OperationalError("COMMIT", {}, SerializationFailure("could not serialize access"))

        monkeypatch.setattr(AsyncSession, "commit", fail_commit)
        response = await api_client.post("/generated-entries", json={"product_id": valves.gate_valve_id})

        assert response.status_code == 409
        data = response.json()
        assert data["error_code"] == "CODE_ALLOCATION_CONFLICT"
        assert data["details"]["generated_code"] == "FCVO00000001"

        monkeypatch.undo()
        assert (await api_client.get("/generated-entries")).json()["total"] == 0

    @pytest.mark.asyncio
    async def test_invalid_value(self, api_client: AsyncClient, valves: ValveCatalog) -> None:
        """Values must match their characteristic type."""
        response = await api_client.post(
            "/generated-entries",
            json={"product_id": valves.gate_valve_id, "values": {valves.nominal_diameter_id: "wide"}},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_VALUE"

    @pytest.mark.asyncio
    async def test_wrong_variant_level(self, api_client: AsyncClient, valves: ValveCatalog) -> None:
        """Variants must be used at their own level."""
        response = await api_client.post(
            "/generated-entries",
            json={"product_id": valves.gate_valve_id, "variant1_id": valves.wafer_id},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_COMBINATION"

    @pytest.mark.asyncio
    async def test_unknown_product(self, api_client: AsyncClient, valves: ValveCatalog) -> None:
        """Unknown products are reported as not found."""
        response = await api_client.post("/generated-entries", json={"product_id": "missing"})

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_missing_actor(self, api_client: AsyncClient, valves: ValveCatalog) -> None:
        """Writes need the actor header."""
        response = await api_client.post(
            "/generated-entries",
            json={"product_id": valves.gate_valve_id},
            headers={settings.actor_header: "  "},
        )

        assert response.status_code == 401
        data = response.json()
        assert data["error_code"] == "MISSING_ACTOR"
        assert data["details"]["header"] == settings.actor_header

    @pytest.mark.asyncio
    async def test_missing_product_id(self, api_client: AsyncClient) -> None:
        """The product is required."""
        response = await api_client.post("/generated-entries", json={"values": {}})

        assert response.status_code == 422


class TestReadGeneratedEntries:
    """Tests for GET /generated-entries."""

    @pytest.mark.asyncio
    async def test_get(self, api_client: AsyncClient, valves: ValveCatalog) -> None:
        """An entry can be fetched by ID."""
        created = await create_entry(api_client, {"product_id": valves.gate_valve_id})

        response = await api_client.get(f"/generated-entries/{created['id']}")

        assert response.status_code == 200
        data = response.json()
        assert data["generated_code"] == "FCVO00000001"
        assert data["variant1"] is None
        assert data["variant2"] is None

    @pytest.mark.asyncio
    async def test_get_unknown(self, api_client: AsyncClient) -> None:
        """Unknown entries are not found."""
        response = await api_client.get("/generated-entries/missing")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_list(self, api_client: AsyncClient, valves: ValveCatalog) -> None:
        """Entries can be listed and filtered by product."""
        await create_entry(api_client, {"product_id": valves.gate_valve_id, "variant1_id": valves.manual_id})
        await create_entry(api_client, {"product_id": valves.gate_valve_id, "variant1_id": valves.motorised_id})
        await create_entry(api_client, {"product_id": valves.butterfly_valve_id, "variant1_id": valves.manual_id})

        everything = (await api_client.get("/generated-entries")).json()
        butterfly = (
            await api_client.get("/generated-entries", params={"product_id": valves.butterfly_valve_id})
        ).json()

        assert everything["total"] == 3
        assert butterfly["total"] == 1
        assert butterfly["items"][0]["generated_code"] == "FCVPH0000001"

    @pytest.mark.asyncio
    async def test_list_search_and_paginate(self, api_client: AsyncClient, valves: ValveCatalog) -> None:
        """Entries are searched by code or product and paginated."""
        await create_entry(api_client, {"product_id": valves.gate_valve_id, "variant1_id": valves.manual_id})
        await create_entry(api_client, {"product_id": valves.gate_valve_id, "variant1_id": valves.motorised_id})
        await create_entry(api_client, {"product_id": valves.butterfly_valve_id, "variant1_id": valves.manual_id})

        by_code = (await api_client.get("/generated-entries", params={"search": "fcvom"})).json()
        by_product = (await api_client.get("/generated-entries", params={"search": "Opercule"})).json()
        first_page = (await api_client.get("/generated-entries", params={"limit": 2})).json()

        assert [item["generated_code"] for item in by_code["items"]] == ["FCVOM0000001"]
        assert by_product["total"] == 2
        assert len(first_page["items"]) == 2
        assert first_page["total"] == 3
        assert first_page["has_more"] is True


class TestUpdateGeneratedEntry:
    """Tests for PATCH /generated-entries/{id}."""

    @pytest.mark.asyncio
    async def test_update_values(self, api_client: AsyncClient, valves: ValveCatalog) -> None:
        """Values are replaced and the updater recorded."""
        created = await create_entry(
            api_client,
            {"product_id": valves.gate_valve_id, "variant1_id": valves.manual_id, "values": {valves.colour_id: "red"}},
        )

        response = await api_client.patch(
            f"/generated-entries/{created['id']}",
            json={"values": {valves.colour_id: "vert"}},
            headers={settings.actor_header: "john@example.com"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["generated_code"] == created["generated_code"]
        assert data["attribute_values"][0]["value"] == "VERT"
        assert data["created_by"] == ACTOR
        assert data["updated_by"] == "john@example.com"

    @pytest.mark.asyncio
    async def test_update_into_duplicate(self, api_client: AsyncClient, valves: ValveCatalog) -> None:
        """An update cannot duplicate another entry."""
        base = {"product_id": valves.gate_valve_id, "variant1_id": valves.manual_id}
        await create_entry(api_client, {**base, "values": {valves.colour_id: "red"}})
        second = await create_entry(api_client, {**base, "values": {valves.colour_id: "blue"}})

        response = await api_client.patch(
            f"/generated-entries/{second['id']}",
            json={"values": {valves.colour_id: "red"}},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "DUPLICATE_COMBINATION"

        unchanged = (await api_client.get(f"/generated-entries/{second['id']}")).json()
        assert unchanged["attribute_values"][0]["value"] == "BLUE"

    @pytest.mark.asyncio
    async def test_update_unknown(self, api_client: AsyncClient) -> None:
        """Unknown entries cannot be updated."""
        response = await api_client.patch("/generated-entries/missing", json={"values": {}})

        assert response.status_code == 404


class TestDeleteGeneratedEntry:
    """Tests for DELETE /generated-entries/{id}."""

    @pytest.mark.asyncio
    async def test_delete(self, api_client: AsyncClient, valves: ValveCatalog) -> None:
        """A deleted entry is gone."""
        created = await create_entry(api_client, {"product_id": valves.gate_valve_id})

        response = await api_client.delete(f"/generated-entries/{created['id']}")

        assert response.status_code == 204
        assert (await api_client.get(f"/generated-entries/{created['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_requires_actor(self, api_client: AsyncClient, valves: ValveCatalog) -> None:
        """Deletion needs the actor header."""
        created = await create_entry(api_client, {"product_id": valves.gate_valve_id})

        response = await api_client.delete(
            f"/generated-entries/{created['id']}",
            headers={settings.actor_header: ""},
        )

        assert response.status_code == 401
