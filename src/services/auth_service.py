"""
认证服务

职责：
1. 登录 / 注册（注册需要注册口令）/ 当前用户 / 修改资料 / 修改密码
2. 把内容仓库认证接口的英文错误映射为面向用户的捷克语消息
3. 注册成功后异步通知管理员

需要用户身份的操作按调用派生绑定该 JWT 的客户端，用完即关闭。
"""
import hmac
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Union

from src.core.errors import AppError, AuthError, ErrorCode, ForbiddenError, ValidationError
from src.core.result import Result, err, ok
from src.domain.models import User
from src.domain.requests import LoginData, PasswordChange, ProfileUpdate, RegistrationData
from src.infra.strapi.client import StrapiClient
from src.repositories.user import LoginResult, UserRepository
from src.services.base import coerce_request, guard
from src.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

MSG_BAD_CREDENTIALS = "Nesprávný email nebo heslo"
MSG_EMAIL_TAKEN = "Tento email je již zaregistrován"
MSG_BLOCKED = "Váš účet byl zablokován"
MSG_SESSION_EXPIRED = "Vaše přihlášení vypršelo"
MSG_WRONG_CURRENT_PASSWORD = "Nesprávné současné heslo"
MSG_PROFILE_FORBIDDEN = "Nemáte oprávnění upravovat tento profil"
MSG_REGISTRATION_DISABLED = "Registrace je momentálně nedostupná"
MSG_INVALID_SECRET = "Neplatný registrační kód"

# 来自上游 HTTP 响应的错误码；网络错误与超时原样透传
_UPSTREAM_CODES = {
    ErrorCode.VALIDATION_FAILED,
    ErrorCode.UNAUTHORIZED,
    ErrorCode.FORBIDDEN,
    ErrorCode.NOT_FOUND,
}


def map_auth_error(error: AppError) -> AppError:
    """内容仓库认证错误 -> 用户可读错误"""
    if error.code not in _UPSTREAM_CODES:
        return error

    message = error.message or ""
    if "Invalid identifier or password" in message:
        return AuthError(MSG_BAD_CREDENTIALS)
    if "already taken" in message or "already registered" in message:
        return ValidationError(MSG_EMAIL_TAKEN)
    if "blocked" in message:
        return AuthError(MSG_BLOCKED)

    if error.status_code == 400:
        return ValidationError(message or "Neplatné údaje", error.details)
    if error.status_code == 401:
        return AuthError("Nesprávné přihlašovací údaje")
    if error.status_code == 403:
        return ForbiddenError("Přístup zamítnut")
    return error


class AuthService:
    name = "AuthService"

    def __init__(
        self,
        client: StrapiClient,
        notifications: Optional[NotificationService] = None,
        registration_secret: Optional[str] = None,
    ):
        self.client = client
        self.notifications = notifications
        self.registration_secret = registration_secret

    @asynccontextmanager
    async def _user_repository(self, jwt: str) -> AsyncIterator[UserRepository]:
        client = self.client.with_user_auth(jwt)
        try:
            yield UserRepository(client)
        finally:
            await client.aclose()

    # ==================== 注册口令 ====================

    def validate_secret(self, secret: Optional[str]) -> bool:
        if not self.registration_secret or not secret:
            return False
        return hmac.compare_digest(secret.encode(), self.registration_secret.encode())

    def check_registration_secret(self, secret: Optional[str]) -> None:
        if not self.registration_secret:
            logger.error("Registration attempted but no registration secret is configured")
            raise AppError(MSG_REGISTRATION_DISABLED, ErrorCode.INTERNAL_ERROR, 500)
        if not self.validate_secret(secret):
            raise ForbiddenError(MSG_INVALID_SECRET)

    # ==================== 登录 / 注册 ====================

    async def login(self, data: Union[LoginData, Dict[str, Any]]) -> Result[LoginResult, AppError]:
        async def action():
            request = coerce_request(LoginData, data)
            logger.info(f"Login attempt: {request.email}")
            try:
                result = await UserRepository(self.client).login(request.email, request.password)
            except AppError as e:
                raise map_auth_error(e) from e
            logger.info(f"Login successful: user {result.user.id}")
            return ok(result)

        return await guard(action, "Chyba při přihlašování", f"{self.name}.login")

    async def register(
        self,
        data: Union[RegistrationData, Dict[str, Any]],
        secret: Optional[str] = None,
    ) -> Result[LoginResult, AppError]:
        """
        注册新用户

        口令优先取参数 secret，其次取载荷中的 registrationSecret。
        先校验口令，再校验表单。
        """

        async def action():
            provided = secret
            if provided is None:
                provided = (
                    data.registration_secret
                    if isinstance(data, RegistrationData)
                    else (data or {}).get("registrationSecret") or (data or {}).get("secret")
                )
            self.check_registration_secret(provided)

            request = coerce_request(RegistrationData, data)
            logger.info(f"Registration attempt: {request.email}")
            try:
                result = await UserRepository(self.client).register(
                    request.email,
                    request.password,
                    request.first_name,
                    request.last_name,
                    request.job_title,
                )
            except AppError as e:
                raise map_auth_error(e) from e

            if self.notifications is not None:
                try:
                    self.notifications.notify_user_registered(result.user)
                except Exception as e:
                    logger.error(f"Scheduling registration notification failed: {e}", exc_info=True)

            logger.info(f"Registration successful: user {result.user.id}")
            return ok(result)

        return await guard(action, "Chyba při registraci", f"{self.name}.register")

    # ==================== 当前用户 ====================

    async def get_current_user(self, jwt: str) -> Result[User, AppError]:
        async def action():
            if not jwt:
                return err(AuthError())
            async with self._user_repository(jwt) as users:
                try:
                    return ok(await users.get_me())
                except AppError as e:
                    if e.status_code == 401:
                        raise AuthError(MSG_SESSION_EXPIRED) from e
                    raise map_auth_error(e) from e

        return await guard(action, "Chyba při načítání uživatelských dat", f"{self.name}.get_current_user")

    async def update_profile(
        self,
        jwt: str,
        user_id: int,
        data: Union[ProfileUpdate, Dict[str, Any]],
    ) -> Result[User, AppError]:
        async def action():
            request = coerce_request(ProfileUpdate, data)
            async with self._user_repository(jwt) as users:
                try:
                    user = await users.update_profile(
                        user_id, request.first_name, request.last_name, request.job_title
                    )
                except AppError as e:
                    if e.status_code == 401:
                        raise AuthError(MSG_SESSION_EXPIRED) from e
                    if e.status_code == 403:
                        raise ForbiddenError(MSG_PROFILE_FORBIDDEN) from e
                    raise map_auth_error(e) from e
            logger.info(f"Profile updated: user {user_id}")
            return ok(user)

        return await guard(action, "Chyba při aktualizaci profilu", f"{self.name}.update_profile")

    async def change_password(
        self,
        jwt: str,
        data: Union[PasswordChange, Dict[str, Any]],
    ) -> Result[None, AppError]:
        async def action():
            request = coerce_request(PasswordChange, data)
            async with self._user_repository(jwt) as users:
                try:
                    await users.change_password(request.current_password, request.new_password)
                except AppError as e:
                    if "password is invalid" in e.message or "Wrong password" in e.message:
                        raise AuthError(MSG_WRONG_CURRENT_PASSWORD) from e
                    raise map_auth_error(e) from e
            logger.info("Password changed")
            return ok(None)

        return await guard(action, "Chyba při změně hesla", f"{self.name}.change_password")
