"""
服务层配置

统一管理所有服务层的常量参数，避免硬编码
"""
from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class AppConstants:
    """通用常量"""

    # 超时（秒）
    API_TIMEOUT: float = 10.0
    STRAPI_TIMEOUT: float = 30.0
    MUTATION_TIMEOUT: float = 60.0  # 表单可能带文件上传

    # 文件上传限制
    MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10MB
    ALLOWED_IMAGE_TYPES: Tuple[str, ...] = ("image/jpeg", "image/png", "image/webp")

    # 分页
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100
    FIND_ALL_LIMIT: int = 100  # "全部" 查询的上限

    # 只读请求重试
    READ_RETRY_ATTEMPTS: int = 3


@dataclass(frozen=True)
class ContentType:
    """单个内容类型在 Strapi 中的命名"""

    collection: str
    upload_ref: str = ""
    upload_fields: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ContentTypes:
    """各实体族的集合名与上传引用"""

    MATCH_RESULT: ContentType = ContentType(
        "match-results", "api::match-result.match-result", ("images", "files")
    )
    EVENT: ContentType = ContentType("events", "api::event.event", ("photos", "files"))
    TOURNAMENT: ContentType = ContentType(
        "tournaments", "api::tournament.tournament", ("photos",)
    )
    TOURNAMENT_MATCH: ContentType = ContentType("tournament-matches")
    COMMENT: ContentType = ContentType("comments")
    CATEGORY: ContentType = ContentType("categories")


# 全局配置实例
app_constants = AppConstants()
content_types = ContentTypes()
