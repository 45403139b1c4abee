"""
Pytest 配置文件

提供测试固件和通用配置：
1. 测试配置（不读取环境中的真实令牌）
2. 内存中的 Strapi（httpx.MockTransport）与客户端
3. 记录邮件的发送器与通知服务
4. 服务容器与 API 测试客户端
"""
import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# 设置测试环境
os.environ.setdefault("CLUB_ENVIRONMENT", "test")

from src.infra.strapi.client import StrapiClient  # noqa: E402
from src.services.container import ServiceContainer  # noqa: E402
from src.services.notification_service import NotificationService  # noqa: E402
from src.shared.config import Settings, StrapiConfig, UploadsConfig  # noqa: E402
from tests.fakes import FakeStrapi, RecordingEmailSender  # noqa: E402

STRAPI_URL = "http://strapi.test"
UPLOADS_URL = "https://media.fotbal-fm.cz"
REGISTRATION_SECRET = "klub-2026"


# ============ 配置 ============

@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        app_name="Club Content Test",
        app_version="0.0.1-test",
        environment="test",
        strapi=StrapiConfig(url=STRAPI_URL, api_token="service-token", timeout_seconds=5),
        uploads=UploadsConfig(public_url=UPLOADS_URL),
        registration_secret=REGISTRATION_SECRET,
    )


# ============ 内容仓库 ============

@pytest.fixture
def fake_strapi() -> FakeStrapi:
    return FakeStrapi()


@pytest_asyncio.fixture
async def strapi_client(fake_strapi: FakeStrapi) -> AsyncGenerator[StrapiClient, None]:
    """服务令牌客户端，请求落到内存中的 Strapi"""
    client = StrapiClient(STRAPI_URL, "service-token", 5, transport=fake_strapi.transport())
    yield client
    await client.aclose()


@pytest.fixture
def user_and_token(fake_strapi: FakeStrapi):
    """预置一个已登录用户：(FakeUser, jwt)"""
    return fake_strapi.add_user()


# ============ 通知 ============

@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest_asyncio.fixture
async def notifications(email_sender: RecordingEmailSender) -> AsyncGenerator[NotificationService, None]:
    """测试结束时等待未完成的通知任务"""
    service = NotificationService(email_sender)
    yield service
    await service.drain()


# ============ 服务容器 / API ============

@pytest_asyncio.fixture
async def container(
    test_settings: Settings,
    fake_strapi: FakeStrapi,
    email_sender: RecordingEmailSender,
) -> AsyncGenerator[ServiceContainer, None]:
    container = ServiceContainer(
        settings=test_settings,
        email_sender=email_sender,
        transport=fake_strapi.transport(),
    )
    yield container
    await container.aclose()


@pytest_asyncio.fixture
async def api_client(container: ServiceContainer) -> AsyncGenerator[AsyncClient, None]:
    """
    FastAPI 测试客户端

    ASGITransport 不触发 lifespan，容器由固件直接注入并负责关闭。
    """
    from src.services.api.main import create_app

    app = create_app(container=container)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def auth_headers(user_and_token):
    _, token = user_and_token
    return {"Authorization": f"Bearer {token}"}
