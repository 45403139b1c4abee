"""认证相关的 API Schema。"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class SecretValidationRequest(BaseModel):
    secret: Optional[str] = None


class SecretValidationResponse(BaseModel):
    valid: bool


class SessionPayload(BaseModel):
    """登录 / 注册成功后返回的令牌（无 Cookie 会话，客户端自行保存）"""

    jwt: str
    token_type: str = "bearer"
