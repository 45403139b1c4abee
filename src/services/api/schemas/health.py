"""健康检查的 API Schema。"""
from __future__ import annotations

from typing import Dict, Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    version: str
    service: str


class ReadyResponse(BaseModel):
    status: Literal["ready", "degraded"]
    version: str
    checks: Dict[str, str] = Field(default_factory=dict)
