"""
Self-service two-factor setup tests
"""
import pytest

from tests.conftest import FROZEN_NOW, wrong_code, bearer_headers
from app.services.auth_service import USER_SCOPE


@pytest.mark.auth
class TestTwoFactorSetup:

    @pytest.mark.asyncio
    async def test_status_defaults_to_disabled(self, client, auth_headers):
        response = await client.get("/api/v1/auth/2fa-status", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"enabled": False}

    @pytest.mark.asyncio
    async def test_setup_does_not_enable_until_verified(self, client, auth_headers, test_user, db_session):
        response = await client.post("/api/v1/auth/2fa/setup", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["secret"]
        assert data["otpauth_url"].startswith("otpauth://totp/")
        await db_session.refresh(test_user)
        assert test_user.two_factor_enabled is False
        assert test_user.two_factor_secret is None

    @pytest.mark.asyncio
    async def test_verify_setup_enables_two_factor(self, client, auth_headers, test_user, totp, db_session):
        secret = (await client.post("/api/v1/auth/2fa/setup", headers=auth_headers)).json()["secret"]

        response = await client.post(
            "/api/v1/auth/2fa/verify-setup",
            headers=auth_headers,
            json={"code": totp.code_at(secret, FROZEN_NOW), "secret": secret}
        )

        assert response.status_code == 200
        assert response.json() == {"enabled": True}
        await db_session.refresh(test_user)
        assert test_user.two_factor_secret == secret

    @pytest.mark.asyncio
    async def test_verify_setup_wrong_code(self, client, auth_headers, totp):
        secret = (await client.post("/api/v1/auth/2fa/setup", headers=auth_headers)).json()["secret"]

        response = await client.post(
            "/api/v1/auth/2fa/verify-setup",
            headers=auth_headers,
            json={"code": wrong_code(totp, secret), "secret": secret}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid verification code"

    @pytest.mark.asyncio
    async def test_disable_requires_current_code(self, client, two_factor_user, totp, db_session):
        headers = bearer_headers(two_factor_user.id, USER_SCOPE)
        secret = two_factor_user.two_factor_secret

        rejected = await client.post(
            "/api/v1/auth/2fa/disable", headers=headers, json={"code": wrong_code(totp, secret)}
        )
        assert rejected.status_code == 400

        response = await client.post(
            "/api/v1/auth/2fa/disable", headers=headers, json={"code": totp.code_at(secret, FROZEN_NOW)}
        )
        assert response.status_code == 200
        assert response.json() == {"enabled": False}
        await db_session.refresh(two_factor_user)
        assert two_factor_user.two_factor_secret is None
