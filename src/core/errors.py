"""
统一错误体系

职责：
1. 定义封闭的错误码枚举（ErrorCode）
2. AppError 及其具体子类，携带面向用户的捷克语消息、HTTP 状态码和结构化细节
3. 辅助函数：判断、提取消息、把任意异常归一化为 AppError

设计原则：
- 预期内的失败（校验、未找到、认证、上游 5xx）都以 AppError 表达
- message 面向最终用户，code 仅供程序分支使用
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


DEFAULT_ERROR_MESSAGE = "Nastala neočekávaná chyba"


class ErrorCode(str, Enum):
    """错误码（封闭集合）"""

    # 校验
    VALIDATION_FAILED = "VALIDATION_FAILED"
    INVALID_INPUT = "INVALID_INPUT"

    # 认证 / 授权
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    SESSION_EXPIRED = "SESSION_EXPIRED"

    # 资源
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"

    # 网络 / 上游
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    STRAPI_ERROR = "STRAPI_ERROR"

    # 文件
    UPLOAD_FAILED = "UPLOAD_FAILED"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"

    # 通用
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class AppError(Exception):
    """应用错误基类"""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        status_code: int = 500,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": type(self).__name__,
            "message": self.message,
            "code": self.code.value,
            "statusCode": self.status_code,
            "details": self.details,
            "timestamp": self.timestamp,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, code={self.code.value}, status={self.status_code})"


class ValidationError(AppError):
    """输入或外部数据结构校验失败 (400)"""

    def __init__(self, message: str, details: Any = None):
        super().__init__(message, ErrorCode.VALIDATION_FAILED, 400, details)


class AuthError(AppError):
    """未认证 (401)"""

    def __init__(self, message: str = "Nejste přihlášeni", details: Any = None):
        super().__init__(message, ErrorCode.UNAUTHORIZED, 401, details)


class ForbiddenError(AppError):
    """无权限 (403)"""

    def __init__(self, message: str = "Nemáte oprávnění k této akci", details: Any = None):
        super().__init__(message, ErrorCode.FORBIDDEN, 403, details)


class NotFoundError(AppError):
    """记录不存在 (404)"""

    def __init__(self, message: str = "Záznam nebyl nalezen", details: Any = None):
        super().__init__(message, ErrorCode.NOT_FOUND, 404, details)


class NetworkError(AppError):
    """无法连接上游 (503)"""

    def __init__(self, message: str = "Chyba připojení k serveru", details: Any = None):
        super().__init__(message, ErrorCode.NETWORK_ERROR, 503, details)


class RequestTimeoutError(AppError):
    """请求超时 (504)；不与内建 TimeoutError 同名"""

    def __init__(self, message: str = "Požadavek vypršel, zkuste to znovu", details: Any = None):
        super().__init__(message, ErrorCode.TIMEOUT, 504, details)


class StrapiError(AppError):
    """上游内容仓库错误，状态码透传"""

    def __init__(self, message: str, status_code: int = 500, details: Any = None):
        super().__init__(message, ErrorCode.STRAPI_ERROR, status_code, details)


class UploadError(AppError):
    """文件上传失败 (500)"""

    def __init__(self, message: str = "Nahrávání souborů selhalo", details: Any = None):
        super().__init__(message, ErrorCode.UPLOAD_FAILED, 500, details)


# ==================== 辅助函数 ====================

def is_app_error(error: Any) -> bool:
    return isinstance(error, AppError)


def get_error_message(error: Any) -> str:
    """提取面向用户的错误消息"""
    if isinstance(error, AppError):
        return error.message
    if isinstance(error, Exception) and str(error):
        return str(error)
    if isinstance(error, str) and error:
        return error
    return DEFAULT_ERROR_MESSAGE


def to_app_error(error: Any) -> AppError:
    """把任意异常归一化为 AppError，原始异常保存在 details 中"""
    if isinstance(error, AppError):
        return error
    return AppError(
        get_error_message(error),
        ErrorCode.UNKNOWN_ERROR,
        500,
        {"original_error": repr(error)},
    )
