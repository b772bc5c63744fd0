import pytest
from fastapi import status

from src.config import settings

API_PREFIX = settings.API_V1_PREFIX

pytestmark = pytest.mark.asyncio

async def test_login_and_me(test_client, sales_user):
    response = await test_client.post(
        f"{API_PREFIX}/auth/token",
        data={"username": "vendedor@comtec.cl", "password": "testpassword"},
    )
    assert response.status_code == status.HTTP_200_OK
    token = response.json()["access_token"]

    response = await test_client.get(f"{API_PREFIX}/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["email"] == "vendedor@comtec.cl"
    assert data["role"] == "vendedor"
    assert "password_hash" not in data

async def test_login_wrong_password(test_client, sales_user):
    response = await test_client.post(
        f"{API_PREFIX}/auth/token",
        data={"username": "vendedor@comtec.cl", "password": "mauvais"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

async def test_document_session_token_is_not_a_staff_token(test_client, sales_user):
    from src.auth.constants import TOKEN_TYPE_DOCUMENT_ACCESS
    from src.auth.security import create_access_token

    token = create_access_token(data={"sub": str(sales_user.id)}, token_type=TOKEN_TYPE_DOCUMENT_ACCESS)
    response = await test_client.get(f"{API_PREFIX}/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

async def test_health(test_client):
    response = await test_client.get("/health")
    assert response.json() == {"status": "ok"}
