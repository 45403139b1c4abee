"""
用户仓库：登录、注册、当前用户、资料与密码

注册分两步：先以 email 作为 username 注册，再用新令牌写入自定义资料字段。
第二步失败只记录日志，账号已经创建。
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from src.core.errors import AppError
from src.domain.models import User
from src.infra.strapi.client import StrapiClient
from src.infra.strapi.mappers import map_user

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    user: User
    jwt: str


class UserRepository:
    def __init__(self, client: StrapiClient):
        self.client = client

    async def login(self, email: str, password: str) -> LoginResult:
        result = await self.client.login(email, password)
        return LoginResult(user=map_user(result.get("user")), jwt=result.get("jwt", ""))

    async def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        job_title: str,
    ) -> LoginResult:
        registered = await self.client.register(email, email, password)
        jwt = registered.get("jwt", "")
        raw_user = registered.get("user") or {}

        user_client = self.client.with_user_auth(jwt)
        try:
            try:
                await user_client.update_user(
                    raw_user.get("id"),
                    {"firstname": first_name, "lastname": last_name, "jobTitle": job_title},
                )
            except AppError as e:
                logger.warning(f"Profile update after registration failed for {email}: {e.message}")

            try:
                raw_user = await user_client.get_me()
            except AppError as e:
                logger.warning(f"Fetching registered user {email} failed: {e.message}")
        finally:
            await user_client.aclose()

        return LoginResult(user=map_user(raw_user), jwt=jwt)

    async def get_me(self) -> User:
        return map_user(await self.client.get_me())

    async def update_profile(
        self,
        user_id: int,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        job_title: Optional[str] = None,
    ) -> User:
        data: Dict[str, Any] = {}
        if first_name is not None:
            data["firstname"] = first_name
        if last_name is not None:
            data["lastname"] = last_name
        if job_title is not None:
            data["jobTitle"] = job_title
        return map_user(await self.client.update_user(user_id, data))

    async def change_password(self, current_password: str, new_password: str) -> None:
        await self.client.change_password(current_password, new_password)
