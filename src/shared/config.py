"""全局配置加载与强类型定义。
该模块负责读取 config/service.yaml，并映射为 Pydantic 模型；
环境变量（前缀 CLUB_，嵌套分隔符 __）优先于 YAML。
"""
from __future__ import annotations

import functools
import pathlib
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# 定位到项目根目录
BASE_DIR = pathlib.Path(__file__).resolve().parents[2]
CONFIG_DIR = BASE_DIR / "config"


def _load_yaml(filename: str) -> Dict[str, Any]:
    """辅助函数：安全加载 YAML 文件"""
    path = CONFIG_DIR / filename
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _section(name: str) -> Dict[str, Any]:
    return _load_yaml("service.yaml").get(name) or {}


# --- 1. Strapi 内容仓库 ---
class StrapiConfig(BaseModel):
    url: str = "http://localhost:1337"
    api_token: str = ""
    timeout_seconds: float = 30.0

    @field_validator("url")
    @classmethod
    def strip_slash(cls, value: str) -> str:
        return value.rstrip("/")


# --- 2. 媒体访问 ---
class UploadsConfig(BaseModel):
    public_url: str = "http://localhost:8080"

    @field_validator("public_url")
    @classmethod
    def strip_slash(cls, value: str) -> str:
        return value.rstrip("/")


# --- 3. 邮件通知 ---
class EmailConfig(BaseModel):
    smtp_host: str = "localhost"
    smtp_port: int = 1025
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_secure: bool = False
    email_from: str = "noreply@fotbal-fm.cz"
    email_to: str = "info@fotbal-fm.cz"
    enabled: bool = True


# --- 4. HTTP API ---
class ApiConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"
    enable_docs: bool = True
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


# --- 全局 Settings 聚合 ---
class Settings(BaseSettings):
    app_name: str = "Club Content Pipeline"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "test"] = "development"

    strapi: StrapiConfig = Field(default_factory=lambda: StrapiConfig(**_section("strapi")))
    uploads: UploadsConfig = Field(default_factory=lambda: UploadsConfig(**_section("uploads")))
    email: EmailConfig = Field(default_factory=lambda: EmailConfig(**_section("email")))
    api: ApiConfig = Field(default_factory=lambda: ApiConfig(**_section("api")))

    # 注册口令，未配置时注册接口关闭
    registration_secret: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="CLUB_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """获取全局单例配置。"""
    return Settings()
