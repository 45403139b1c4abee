"""
HttpClient 单元测试

测试覆盖：
1. 非 2xx 响应映射为 AppError（上游消息优先）
2. 网络错误 / 超时映射
3. 只读请求重试，写请求不重试
"""
import httpx
import pytest

from src.core.errors import AppError, ErrorCode, NetworkError, RequestTimeoutError
from src.infra.strapi.http_client import HttpClient
from src.services.config import app_constants

pytestmark = pytest.mark.asyncio


def client_with(handler) -> HttpClient:
    return HttpClient("http://strapi.test/", transport=httpx.MockTransport(handler))


class TestErrorMapping:
    @pytest.mark.parametrize(
        "status, code",
        [
            (400, ErrorCode.VALIDATION_FAILED),
            (401, ErrorCode.UNAUTHORIZED),
            (403, ErrorCode.FORBIDDEN),
            (404, ErrorCode.NOT_FOUND),
            (502, ErrorCode.STRAPI_ERROR),
        ],
    )
    async def test_status_codes(self, status, code):
        client = client_with(lambda request: httpx.Response(status, json={}))

        with pytest.raises(AppError) as exc_info:
            await client.post("/api/things", {"a": 1})

        assert exc_info.value.code == code
        assert exc_info.value.status_code == status
        await client.aclose()

    async def test_upstream_message_wins(self):
        body = {"data": None, "error": {"status": 400, "message": "homeTeam must be defined"}}
        client = client_with(lambda request: httpx.Response(400, json=body))

        with pytest.raises(AppError) as exc_info:
            await client.post("/api/match-results", {})

        assert exc_info.value.message == "homeTeam must be defined"
        assert exc_info.value.details == body
        await client.aclose()

    async def test_invalid_json_body(self):
        client = client_with(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(AppError) as exc_info:
            await client.put("/api/things/1", {})

        assert exc_info.value.code == ErrorCode.STRAPI_ERROR
        await client.aclose()

    async def test_empty_body_is_none(self):
        client = client_with(lambda request: httpx.Response(204))

        assert await client.delete("/api/things/1") is None
        await client.aclose()

    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        client = client_with(handler)
        with pytest.raises(RequestTimeoutError):
            await client.post("/api/things", {})
        await client.aclose()


class TestRetries:
    async def test_get_retries_network_errors(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < app_constants.READ_RETRY_ATTEMPTS:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json={"data": []})

        client = client_with(handler)
        assert await client.get("/api/things") == {"data": []}
        assert len(calls) == app_constants.READ_RETRY_ATTEMPTS
        await client.aclose()

    async def test_get_gives_up_after_attempts(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("refused", request=request)

        client = client_with(handler)
        with pytest.raises(NetworkError):
            await client.get("/api/things")
        assert len(calls) == app_constants.READ_RETRY_ATTEMPTS
        await client.aclose()

    async def test_http_errors_are_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404, json={})

        client = client_with(handler)
        with pytest.raises(AppError):
            await client.get("/api/things/x")
        assert len(calls) == 1
        await client.aclose()

    async def test_post_is_never_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("refused", request=request)

        client = client_with(handler)
        with pytest.raises(NetworkError):
            await client.post("/api/things", {"name": "x"})
        assert len(calls) == 1
        await client.aclose()


class TestHeaders:
    async def test_with_headers_derives_new_client(self):
        seen = []

        def handler(request):
            seen.append(request.headers.get("Authorization"))
            return httpx.Response(200, json={})

        base = HttpClient(
            "http://strapi.test",
            default_headers={"Authorization": "Bearer service"},
            transport=httpx.MockTransport(handler),
        )
        derived = base.with_headers({"Authorization": "Bearer user-jwt"})

        await base.get("/api/a")
        await derived.get("/api/a")

        assert seen == ["Bearer service", "Bearer user-jwt"]
        await base.aclose()
        await derived.aclose()
