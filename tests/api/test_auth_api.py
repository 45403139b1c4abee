"""
认证 API 集成测试

测试覆盖：
1. 登录返回 JWT 与用户；错误凭证 401，格式错误 400
2. 注册口令 403 / 表单 400 / 成功后通知
3. /me、修改资料、修改密码
4. 注册口令预检
"""
import pytest

pytestmark = pytest.mark.asyncio

REGISTRATION = {
    "email": "nova@fotbal-fm.cz",
    "password": "Silne1Heslo",
    "firstName": "Eva",
    "lastName": "Malá",
    "jobTitle": "Vedoucí mládeže",
}


class TestLogin:
    async def test_login_returns_bearer_session(self, api_client, fake_strapi):
        fake_strapi.add_user()

        response = await api_client.post(
            "/api/auth/login", json={"email": "trener@fotbal-fm.cz", "password": "Heslo123"}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["tokenType"] == "bearer"
        assert data["jwt"] in fake_strapi.tokens
        assert data["user"]["firstName"] == "Jan"
        assert data["user"]["jobTitle"] == "Trenér"

    async def test_bad_credentials(self, api_client, fake_strapi):
        fake_strapi.add_user()

        response = await api_client.post(
            "/api/auth/login", json={"email": "trener@fotbal-fm.cz", "password": "spatne"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Nesprávný email nebo heslo"

    async def test_malformed_email(self, api_client):
        response = await api_client.post("/api/auth/login", json={"email": "x", "password": "y"})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_FAILED"

    async def test_body_must_be_json_object(self, api_client):
        response = await api_client.post("/api/auth/login", content=b"nejde", headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert response.json()["success"] is False


class TestRegister:
    async def test_register(self, api_client, container, fake_strapi):
        response = await api_client.post("/api/auth/register", json={**REGISTRATION, "secret": "klub-2026"})
        await container.notifications.drain()

        assert response.status_code == 200
        assert response.json()["data"]["user"]["lastName"] == "Malá"
        assert container.email_sender.subjects == ["Nový uživatel: Eva Malá"]

    async def test_wrong_secret(self, api_client, fake_strapi):
        response = await api_client.post("/api/auth/register", json={**REGISTRATION, "secret": "spatne"})

        assert response.status_code == 403
        assert response.json()["error"] == "Neplatný registrační kód"
        assert fake_strapi.requests == []

    async def test_email_taken(self, api_client, fake_strapi):
        fake_strapi.add_user(email="nova@fotbal-fm.cz")

        response = await api_client.post(
            "/api/auth/register", json={**REGISTRATION, "registrationSecret": "klub-2026"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Tento email je již zaregistrován"

    async def test_validate_secret(self, api_client):
        valid = await api_client.post("/api/auth/validate-secret", json={"secret": "klub-2026"})
        invalid = await api_client.post("/api/auth/validate-secret", json={"secret": "x"})

        assert valid.json()["data"] == {"valid": True}
        assert invalid.json()["data"] == {"valid": False}


class TestProfile:
    async def test_me(self, api_client, auth_headers):
        response = await api_client.get("/api/auth/me", headers=auth_headers)

        assert response.json()["data"]["user"]["email"] == "trener@fotbal-fm.cz"

    @pytest.mark.parametrize("method", ["POST", "PUT"])
    async def test_update_profile(self, api_client, auth_headers, method):
        response = await api_client.request(
            method,
            "/api/auth/update-profile",
            json={"firstName": "Josef", "lastName": "Dvořák", "jobTitle": "Předseda"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["user"]["lastName"] == "Dvořák"

    async def test_update_profile_requires_fields(self, api_client, auth_headers):
        response = await api_client.post(
            "/api/auth/update-profile", json={"firstName": "Josef"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Příjmení je povinné"

    async def test_change_password(self, api_client, auth_headers, fake_strapi, user_and_token):
        user, _ = user_and_token

        response = await api_client.post(
            "/api/auth/change-password",
            json={"currentPassword": "Heslo123", "newPassword": "NoveHeslo1", "confirmPassword": "NoveHeslo1"},
            headers=auth_headers,
        )

        assert response.json() == {"success": True, "data": None}
        assert fake_strapi.users[user.id].password == "NoveHeslo1"

    async def test_change_password_wrong_current(self, api_client, auth_headers):
        response = await api_client.post(
            "/api/auth/change-password",
            json={"currentPassword": "spatne", "newPassword": "NoveHeslo1", "confirmPassword": "NoveHeslo1"},
            headers=auth_headers,
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Nesprávné současné heslo"
