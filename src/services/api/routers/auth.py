"""
认证 API 路由

无 Cookie 会话：登录 / 注册成功后返回 JWT，之后的请求通过
Authorization: Bearer <jwt> 携带。
"""
import logging

from fastapi import APIRouter, Body, Depends

from src.core.errors import AppError, ErrorCode
from src.services.api.dependencies import CurrentUser, get_container, get_current_user
from src.services.api.responses import ApiErrors, api_error_from_app_error, api_success
from src.services.api.schemas.auth import (
    SecretValidationRequest,
    SecretValidationResponse,
    SessionPayload,
)
from src.services.container import ServiceContainer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def session_response(login_result):
    session = SessionPayload(jwt=login_result.jwt)
    return api_success({"user": login_result.user, **session.model_dump()})


def is_validation_error(error: AppError) -> bool:
    return error.code == ErrorCode.VALIDATION_FAILED


@router.post("/login")
async def login(
    payload: dict = Body(...),
    container: ServiceContainer = Depends(get_container),
):
    logger.info(f"Login attempt: {payload.get('email')}")
    result = await container.auth.login(payload)
    if not result.success:
        if is_validation_error(result.error):
            return ApiErrors.validation_failed(result.error.message)
        return ApiErrors.unauthorized(result.error.message)
    return session_response(result.data)


@router.post("/register")
async def register(
    payload: dict = Body(...),
    container: ServiceContainer = Depends(get_container),
):
    logger.info(f"Registration attempt: {payload.get('email')}")
    secret = payload.get("secret") or payload.get("registrationSecret")
    result = await container.auth.register(payload, secret=secret)
    if not result.success:
        error = result.error
        # 口令错误 / 注册关闭 / 表单校验失败保留原状态码，其余一律 400
        if error.code in (ErrorCode.FORBIDDEN, ErrorCode.INTERNAL_ERROR, ErrorCode.VALIDATION_FAILED):
            return api_error_from_app_error(error)
        return ApiErrors.bad_request(error.message)
    return session_response(result.data)


@router.get("/me")
async def me(current: CurrentUser = Depends(get_current_user)):
    return api_success({"user": current.user})


@router.api_route("/update-profile", methods=["POST", "PUT"])
async def update_profile(
    payload: dict = Body(...),
    current: CurrentUser = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    result = await container.auth.update_profile(current.jwt, current.id, payload)
    if not result.success:
        error = result.error
        if error.status_code in (400, 401, 403):
            return api_error_from_app_error(error)
        return ApiErrors.server_error(error.message)
    return api_success({"user": result.data})


@router.post("/change-password")
async def change_password(
    payload: dict = Body(...),
    current: CurrentUser = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    result = await container.auth.change_password(current.jwt, payload)
    if not result.success:
        if result.error.status_code == 401:
            return ApiErrors.unauthorized(result.error.message)
        return ApiErrors.bad_request(result.error.message)
    return api_success(None)


@router.post("/validate-secret")
async def validate_secret(
    body: SecretValidationRequest,
    container: ServiceContainer = Depends(get_container),
):
    valid = container.auth.validate_secret(body.secret)
    return api_success(SecretValidationResponse(valid=valid).model_dump())
