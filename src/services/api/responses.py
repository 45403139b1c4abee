"""
API 响应信封

成功：{"success": true, "data": ..., "warnings"?: [...]}
失败：{"success": false, "error": "...", "code"?: "...", "details"?: ...}

领域对象（dataclass）序列化后键名统一转为 camelCase。
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic.alias_generators import to_camel

from src.core.errors import AppError, ErrorCode, get_error_message
from src.core.result import Result

logger = logging.getLogger(__name__)


def camelize(value: Any) -> Any:
    """递归地把字典键转为 camelCase"""
    if isinstance(value, dict):
        return {
            (to_camel(k) if isinstance(k, str) else k): camelize(v) for k, v in value.items()
        }
    if isinstance(value, list):
        return [camelize(item) for item in value]
    return value


def serialize(data: Any) -> Any:
    return camelize(jsonable_encoder(data))


# ==================== 信封 ====================

def api_success(
    data: Any = None,
    warnings: Optional[List[str]] = None,
    status: int = 200,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    body: Dict[str, Any] = {"success": True, "data": serialize(data)}
    if warnings:
        body["warnings"] = list(warnings)
    return JSONResponse(body, status_code=status, headers=headers)


def api_error(
    message: str,
    status: int = 500,
    code: Optional[ErrorCode] = None,
    details: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    body: Dict[str, Any] = {"success": False, "error": message}
    if code is not None:
        body["code"] = code.value if isinstance(code, ErrorCode) else str(code)
    if details:
        body["details"] = jsonable_encoder(details)
    return JSONResponse(body, status_code=status, headers=headers)


def api_error_from_app_error(error: AppError, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return api_error(error.message, error.status_code, error.code, error.details, headers)


def handle_api_error(error: Any, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    """任意异常 -> 失败信封"""
    if isinstance(error, AppError):
        return api_error_from_app_error(error, headers)
    logger.error(f"Unhandled API error: {error!r}")
    return api_error(get_error_message(error), 500, ErrorCode.UNKNOWN_ERROR, headers=headers)


def result_response(result: Result, key: Optional[str] = None, status: int = 200) -> JSONResponse:
    """Result -> 信封；key 给定时把数据包装为 {key: data}"""
    if not result.success:
        return api_error_from_app_error(result.error)
    data = {key: result.data} if key else result.data
    return api_success(data, getattr(result, "warnings", None), status)


class ApiErrors:
    @staticmethod
    def unauthorized(message: str = "Nejste přihlášeni") -> JSONResponse:
        return api_error(message, 401, ErrorCode.UNAUTHORIZED)

    @staticmethod
    def forbidden(message: str = "Nemáte oprávnění k této akci") -> JSONResponse:
        return api_error(message, 403, ErrorCode.FORBIDDEN)

    @staticmethod
    def not_found(message: str = "Záznam nebyl nalezen") -> JSONResponse:
        return api_error(message, 404, ErrorCode.NOT_FOUND)

    @staticmethod
    def bad_request(message: str, details: Any = None) -> JSONResponse:
        return api_error(message, 400, ErrorCode.VALIDATION_FAILED, details)

    @staticmethod
    def server_error(message: str = "Nastala neočekávaná chyba") -> JSONResponse:
        return api_error(message, 500, ErrorCode.INTERNAL_ERROR)

    @staticmethod
    def validation_failed(message: str, details: Any = None) -> JSONResponse:
        return api_error(message, 400, ErrorCode.VALIDATION_FAILED, details)


def write_response(result: Result, key: str, status: int = 200) -> JSONResponse:
    """带附件写操作的响应：{key: 实体, uploadResults: {...}} + 警告"""
    if not result.success:
        return api_error_from_app_error(result.error)
    saved = result.data
    return api_success(
        {key: saved.entity, "upload_results": saved.upload_results},
        getattr(result, "warnings", None),
        status,
    )
