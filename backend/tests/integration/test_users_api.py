"""
Integration Tests for registration, login and tokens
"""
import pytest
from httpx import AsyncClient
from faker import Faker

from netdesigner.core.security import create_password_reset_token, create_email_verification_token

fake = Faker()


@pytest.fixture
def register_data() -> dict:
    return {
        "name": fake.name(),
        "email": fake.unique.email(),
        "company": fake.company(),
        "password": "SecurePass123",
    }


@pytest.mark.asyncio
async def test_register_user(client: AsyncClient, register_data):
    """Registration answers with the user and a token pair"""
    response = await client.post("/api/v1/users/register", json=register_data)

    assert response.status_code == 201
    data = response.json()
    assert data["email"] == register_data["email"].lower()
    assert data["role"] == "user"
    assert data["access_token"]
    assert data["refresh_token"]


@pytest.mark.asyncio
async def test_register_starts_trial(client: AsyncClient, register_data):
    response = await client.post("/api/v1/users/register", json=register_data)
    headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

    profile = await client.get("/api/v1/users/current", headers=headers)

    assert profile.status_code == 200
    assert profile.json()["subscription"]["status"] == "trialing"
    assert profile.json()["trial"]["used"] is True
    assert profile.json()["trial"]["expires_at"] is not None


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, register_data):
    await client.post("/api/v1/users/register", json=register_data)

    response = await client.post("/api/v1/users/register", json=register_data)

    assert response.status_code == 400
    assert response.json()["detail"] == "User already exists"


@pytest.mark.asyncio
async def test_register_short_password(client: AsyncClient, register_data):
    register_data["password"] = "short"

    response = await client.post("/api/v1/users/register", json=register_data)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, register_data):
    await client.post("/api/v1/users/register", json=register_data)

    response = await client.post(
        "/api/v1/users/login",
        json={"email": register_data["email"], "password": register_data["password"]}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Login successful"
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == register_data["email"].lower()


@pytest.mark.asyncio
async def test_login_invalid_credentials(client: AsyncClient, test_user):
    response = await client.post(
        "/api/v1/users/login",
        json={"email": test_user.email, "password": "wrongpassword"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_requires_credentials(client: AsyncClient):
    response = await client.post("/api/v1/users/login", json={"email": "a@b.com"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_login_records_history(client: AsyncClient, test_user, auth_headers):
    await client.post(
        "/api/v1/users/login",
        json={"email": test_user.email, "password": "testpassword123"},
        headers={"User-Agent": "pytest-agent"}
    )

    response = await client.get(f"/api/v1/login-history/{test_user.id}", headers=auth_headers)

    assert response.status_code == 200
    history = response.json()
    assert len(history) == 1
    assert history[0]["user_agent"] == "pytest-agent"


@pytest.mark.asyncio
async def test_login_history_of_other_user_forbidden(client: AsyncClient, other_user, auth_headers):
    response = await client.get(f"/api/v1/login-history/{other_user.id}", headers=auth_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_unauthorized_access(client: AsyncClient):
    """Protected route without a bearer token"""
    response = await client.get("/api/v1/users/current")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_refresh_token_revoked_by_logout(client: AsyncClient, register_data):
    tokens = (await client.post("/api/v1/users/register", json=register_data)).json()
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}

    refreshed = await client.post("/api/v1/users/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200

    logout = await client.post("/api/v1/users/logout", headers=headers)
    assert logout.status_code == 200

    response = await client.post("/api/v1/users/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 401
    assert response.json()["detail"] == "Refresh token has been revoked"


@pytest.mark.asyncio
async def test_access_token_cannot_refresh(client: AsyncClient, register_data):
    tokens = (await client.post("/api/v1/users/register", json=register_data)).json()

    response = await client.post("/api/v1/users/refresh", json={"refresh_token": tokens["access_token"]})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_forgot_password_does_not_reveal_accounts(client: AsyncClient):
    response = await client.post("/api/v1/users/forgot-password", json={"email": "nobody@example.com"})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_reset_password(client: AsyncClient, test_user):
    token = create_password_reset_token(str(test_user.id), test_user.email)

    response = await client.post(
        "/api/v1/users/reset-password",
        json={"token": token, "new_password": "BrandNewPass1"}
    )
    assert response.status_code == 200

    old_login = await client.post(
        "/api/v1/users/login", json={"email": test_user.email, "password": "testpassword123"}
    )
    new_login = await client.post(
        "/api/v1/users/login", json={"email": test_user.email, "password": "BrandNewPass1"}
    )
    assert old_login.status_code == 401
    assert new_login.status_code == 200


@pytest.mark.asyncio
async def test_reset_password_rejects_other_token_types(client: AsyncClient, test_user):
    token = create_email_verification_token(str(test_user.id), test_user.email)

    response = await client.post(
        "/api/v1/users/reset-password",
        json={"token": token, "new_password": "BrandNewPass1"}
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_verify_email(client: AsyncClient, register_data):
    user = (await client.post("/api/v1/users/register", json=register_data)).json()
    token = create_email_verification_token(user["id"], user["email"])

    first = await client.post("/api/v1/users/verify-email", json={"token": token})
    second = await client.post("/api/v1/users/verify-email", json={"token": token})

    assert first.json()["message"] == "Email verified successfully"
    assert second.json()["message"] == "Email already verified"


@pytest.mark.asyncio
async def test_list_users_admin_only(client: AsyncClient, auth_headers, admin_auth_headers):
    forbidden = await client.get("/api/v1/users/all", headers=auth_headers)
    allowed = await client.get("/api/v1/users/all", headers=admin_auth_headers)

    assert forbidden.status_code == 403
    assert allowed.status_code == 200
    assert len(allowed.json()) == 2


@pytest.mark.asyncio
async def test_convert_trial(client: AsyncClient, auth_headers, pro_plan):
    response = await client.post(
        "/api/v1/users/convert-trial", json={"plan_id": pro_plan.id}, headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json()["subscription"]["status"] == "active"
    assert response.json()["subscription"]["plan_id"] == pro_plan.id


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
