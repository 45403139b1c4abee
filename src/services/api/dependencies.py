"""FastAPI 依赖注入：服务容器、当前用户与请求作用域的用户服务。"""
from __future__ import annotations

from dataclasses import dataclass
from typing import AsyncIterator, Optional

from fastapi import Depends, Header, Request

from src.core.errors import AuthError
from src.domain.models import User
from src.services.container import ServiceContainer, UserServices
from src.shared.config import Settings


# 1. 获取服务容器（应用启动时构造，保存在 app.state）
def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_app_settings(container: ServiceContainer = Depends(get_container)) -> Settings:
    return container.settings


# 2. 从 Authorization 头取出 Bearer 令牌
def get_bearer_token(authorization: Optional[str] = Header(default=None)) -> str:
    if not authorization:
        raise AuthError()
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError()
    return token.strip()


@dataclass(frozen=True)
class CurrentUser:
    user: User
    jwt: str

    @property
    def id(self) -> int:
        return self.user.id


# 3. 解析当前用户（令牌无效或过期时返回 401 信封）
async def get_current_user(
    token: str = Depends(get_bearer_token),
    container: ServiceContainer = Depends(get_container),
) -> CurrentUser:
    result = await container.auth.get_current_user(token)
    if not result.success:
        raise result.error
    return CurrentUser(user=result.data, jwt=token)


# 4. 绑定当前用户令牌的服务，请求结束时关闭客户端
async def get_user_services(
    current: CurrentUser = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> AsyncIterator[UserServices]:
    services = container.for_user(current.jwt)
    try:
        yield services
    finally:
        await services.aclose()
