"""
Tests d'intégration des endpoints de devis (personnel authentifié).
"""
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient
from fastapi import status

from src.config import settings

API_PREFIX = settings.API_V1_PREFIX

pytestmark = pytest.mark.asyncio

@pytest_asyncio.fixture
async def client_id(active_client) -> int:
    return active_client.id

async def create_quote(test_client: AsyncClient, headers: dict, client_id: int, item_payload: dict, **extra) -> dict:
    response = await test_client.post(
        f"{API_PREFIX}/quotes/",
        json={"client_id": client_id, "items": [item_payload], **extra},
        headers=headers,
    )
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()

# --- Création ---

async def test_create_quote_success(test_client, auth_headers_sales, client_id, item_payload):
    data = await create_quote(test_client, auth_headers_sales, client_id, item_payload, total="1")

    assert data["folio"] == "COT-1000"
    assert data["version"] == 1
    assert data["status"] == "Open"
    assert Decimal(data["subtotal"]) == Decimal("100")
    assert Decimal(data["tax"]) == Decimal("19")
    assert Decimal(data["total"]) == Decimal("119")
    assert data["created_by"] == "vendedor@comtec.cl"
    assert data["items"][0]["specs"]["sensor_type"] == "Temperatura"

async def test_create_quote_requires_authentication(test_client, client_id, item_payload):
    response = await test_client.post(f"{API_PREFIX}/quotes/", json={"client_id": client_id, "items": [item_payload]})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

async def test_create_quote_forbidden_for_technician(test_client, auth_headers_technician, client_id, item_payload):
    response = await test_client.post(
        f"{API_PREFIX}/quotes/",
        json={"client_id": client_id, "items": [item_payload]},
        headers=auth_headers_technician,
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN

@pytest.mark.parametrize("payload_update", [
    {"items": []},
    {"items": [{"part_number": "X", "name": "Cero", "quantity": 0, "unit_price": "10"}]},
    {"items": [{"part_number": "X", "name": "Negativo", "quantity": 1, "unit_price": "-5"}]},
    {"items": [{"part_number": "X", "name": "Fraccion", "quantity": 3, "unit_price": "0.333"}]},
    {"items": [{"part_number": "X", "name": "Desborde", "quantity": 1000000, "unit_price": "999999999999"}]},
    {"client_id": 999},
])
async def test_create_quote_validation_errors(test_client, auth_headers_sales, client_id, item_payload, payload_update):
    payload = {"client_id": client_id, "items": [item_payload], **payload_update}
    response = await test_client.post(f"{API_PREFIX}/quotes/", json=payload, headers=auth_headers_sales)
    assert response.status_code == status.HTTP_400_BAD_REQUEST

async def test_create_quote_rejects_unknown_category(test_client, auth_headers_sales, client_id, item_payload):
    item_payload["specs"] = {"category": "actuator", "torque": "5Nm"}
    response = await test_client.post(
        f"{API_PREFIX}/quotes/",
        json={"client_id": client_id, "items": [item_payload]},
        headers=auth_headers_sales,
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

# --- Lecture, révisions, lignée ---

async def test_revision_and_lineage(test_client, auth_headers_sales, auth_headers_technician, client_id, item_payload):
    v1 = await create_quote(test_client, auth_headers_sales, client_id, item_payload)

    response = await test_client.post(
        f"{API_PREFIX}/quotes/{v1['id']}/revisions",
        json={"notes": "Incluye instalación"},
        headers=auth_headers_sales,
    )
    assert response.status_code == status.HTTP_201_CREATED
    v2 = response.json()
    assert v2["folio"] == v1["folio"]
    assert v2["version"] == 2
    assert v2["parent_folio"] == v1["folio"]
    assert v2["notes"] == "Incluye instalación"

    # Révision depuis une version dépassée
    response = await test_client.post(f"{API_PREFIX}/quotes/{v1['id']}/revisions", headers=auth_headers_sales)
    assert response.status_code == status.HTTP_409_CONFLICT

    # Lecture autorisée pour tout le personnel
    response = await test_client.get(f"{API_PREFIX}/quotes/lineage/{v1['folio']}", headers=auth_headers_technician)
    assert response.status_code == status.HTTP_200_OK
    lineage = response.json()
    assert lineage["latest_version"] == 2
    assert [r["version"] for r in lineage["revisions"]] == [1, 2]

    response = await test_client.get(f"{API_PREFIX}/quotes/{v1['id']}", headers=auth_headers_technician)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["version"] == 1

async def test_revision_cannot_retarget_client(test_client, auth_headers_sales, client_id, item_payload):
    v1 = await create_quote(test_client, auth_headers_sales, client_id, item_payload)
    response = await test_client.post(
        f"{API_PREFIX}/quotes/{v1['id']}/revisions",
        json={"client_id": client_id + 1},
        headers=auth_headers_sales,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST

async def test_unknown_quote_and_folio(test_client, auth_headers_sales):
    response = await test_client.get(f"{API_PREFIX}/quotes/inexistant", headers=auth_headers_sales)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    response = await test_client.get(f"{API_PREFIX}/quotes/lineage/COT-9999", headers=auth_headers_sales)
    assert response.status_code == status.HTTP_404_NOT_FOUND

# --- Statuts ---

async def test_status_transitions(test_client, auth_headers_sales, client_id, item_payload):
    quote = await create_quote(test_client, auth_headers_sales, client_id, item_payload)
    url = f"{API_PREFIX}/quotes/{quote['id']}/status"

    response = await test_client.patch(url, json={"status": "Accepted"}, headers=auth_headers_sales)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "Accepted"

    response = await test_client.patch(url, json={"status": "Open"}, headers=auth_headers_sales)
    assert response.status_code == status.HTTP_409_CONFLICT

    response = await test_client.get(f"{API_PREFIX}/quotes/{quote['id']}", headers=auth_headers_sales)
    assert response.json()["status"] == "Accepted"

async def test_status_unknown_value(test_client, auth_headers_sales, client_id, item_payload):
    quote = await create_quote(test_client, auth_headers_sales, client_id, item_payload)
    response = await test_client.patch(
        f"{API_PREFIX}/quotes/{quote['id']}/status", json={"status": "Cancelled"}, headers=auth_headers_sales
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

# --- PDF ---

async def test_download_pdf(test_client, auth_headers_sales, client_id, item_payload):
    quote = await create_quote(test_client, auth_headers_sales, client_id, item_payload)
    response = await test_client.get(f"{API_PREFIX}/quotes/{quote['id']}/pdf", headers=auth_headers_sales)
    assert response.status_code == status.HTTP_200_OK
    assert response.headers["content-type"] == "application/pdf"
    assert "Cotizacion_COT-1000.pdf" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")
