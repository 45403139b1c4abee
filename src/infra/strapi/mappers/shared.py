"""
映射层公共工具

职责：
1. 媒体 URL 改写（/uploads/... 前缀为调用方传入的公开访问地址）与尺寸变体转换
2. 关系字段的扁平 / 嵌套两种形态统一为可选扁平值
3. map_with_schema / safe_map_many：校验失败转为 ValidationError，集合映射跳过坏记录
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from src.core.errors import ValidationError
from src.domain.models import (
    DEFAULT_CATEGORY,
    Category,
    FileAsset,
    ImageAsset,
    MediaFormat,
    UserInfo,
)
from src.infra.strapi.schemas import (
    NestedEntityRef,
    NestedUserInfo,
    RawCategory,
    RawEntityRef,
    RawMedia,
    RawMediaFormats,
    RawUserInfo,
)

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=BaseModel)
T = TypeVar("T")

FORMAT_NAMES = ("thumbnail", "small", "medium", "large")


# ==================== 校验 ====================

def map_with_schema(schema: Type[S], raw: Any, message: str) -> S:
    """按结构校验原始记录；失败时抛出带诊断信息和原始数据的 ValidationError"""
    try:
        return schema.model_validate(raw)
    except PydanticValidationError as e:
        issues = e.errors(include_url=False, include_context=False)
        logger.error(f"{schema.__name__} validation failed: {issues}")
        raise ValidationError(message, {"errors": issues, "raw": raw}) from e


def safe_map(mapper: Callable[[Any], T], raw: Any) -> Optional[T]:
    """映射单条记录；失败返回 None（只记录日志）"""
    try:
        return mapper(raw)
    except ValidationError as e:
        # partial 包装的映射函数取其原函数名
        name = getattr(getattr(mapper, "func", mapper), "__name__", "mapper")
        logger.warning(f"{name} skipped record: {e.message}")
        return None


def safe_map_many(mapper: Callable[[Any], T], raws: Optional[Iterable[Any]]) -> List[T]:
    """映射集合，过滤掉无法映射的记录"""
    mapped = (safe_map(mapper, raw) for raw in (raws or []))
    return [item for item in mapped if item is not None]


# ==================== 空值归一化 ====================

def empty_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    return value


# ==================== 媒体 ====================

def transform_image_url(url: str, uploads_url: str = "") -> str:
    """仓库返回的相对上传路径改写为公开访问地址；未给出地址时保持相对路径"""
    if uploads_url and url.startswith("/uploads/"):
        return f"{uploads_url.rstrip('/')}{url}"
    return url


def transform_image_formats(formats: Optional[RawMediaFormats], uploads_url: str = "") -> dict:
    if formats is None:
        return {}
    transformed = {}
    for name in FORMAT_NAMES:
        variant = getattr(formats, name)
        if variant is not None:
            transformed[name] = MediaFormat(
                url=transform_image_url(variant.url, uploads_url),
                width=variant.width,
                height=variant.height,
            )
    return transformed


def map_media_to_image(media: RawMedia, uploads_url: str = "") -> ImageAsset:
    return ImageAsset(
        id=media.id,
        name=media.name,
        url=transform_image_url(media.url, uploads_url),
        size=media.size,
        ext=media.ext,
        mime=media.mime,
        provider=media.provider,
        alternative_text=media.alternative_text,
        caption=media.caption,
        preview_url=media.preview_url,
        created_at=media.created_at,
        updated_at=media.updated_at,
        width=media.width or 0,
        height=media.height or 0,
        formats=transform_image_formats(media.formats, uploads_url),
    )


def map_media_to_file(media: RawMedia, uploads_url: str = "") -> FileAsset:
    return FileAsset(
        id=media.id,
        name=media.name,
        url=transform_image_url(media.url, uploads_url),
        size=media.size,
        ext=media.ext,
        mime=media.mime,
        provider=media.provider,
        alternative_text=media.alternative_text,
        caption=media.caption,
        preview_url=media.preview_url,
        created_at=media.created_at,
        updated_at=media.updated_at,
    )


def map_media_to_images(media: Optional[List[RawMedia]], uploads_url: str = "") -> List[ImageAsset]:
    return [map_media_to_image(m, uploads_url) for m in media or []]


def map_media_to_files(media: Optional[List[RawMedia]], uploads_url: str = "") -> List[FileAsset]:
    return [map_media_to_file(m, uploads_url) for m in media or []]


# ==================== 关系 ====================

def _unwrap(ref: Any) -> Any:
    """嵌套形态 {data: X} 取出 X；扁平形态原样返回"""
    if isinstance(ref, (NestedUserInfo, NestedEntityRef)):
        return ref.data
    return ref


def map_user_info(ref: Any) -> Optional[UserInfo]:
    user = _unwrap(ref)
    if not isinstance(user, RawUserInfo) or not user.id:
        return None
    return UserInfo(
        id=user.id,
        first_name=user.firstname or "",
        last_name=user.lastname or "",
        email=user.email,
    )


def extract_user_id(ref: Any) -> Optional[int]:
    user = _unwrap(ref)
    if isinstance(user, RawUserInfo):
        return user.id
    return None


def extract_relation_id(ref: Any) -> Optional[int]:
    """关系的数字行 id"""
    entity = _unwrap(ref)
    if isinstance(entity, RawEntityRef):
        return entity.id
    return None


def extract_relation_document_id(ref: Any) -> Optional[str]:
    entity = _unwrap(ref)
    if isinstance(entity, RawEntityRef):
        return entity.document_id
    return None


# ==================== 分类 ====================

def map_category(raw: RawCategory) -> Category:
    return Category(
        id=raw.document_id,
        name=raw.name,
        slug=raw.slug,
        sort_order=raw.sort_order,
    )


def map_categories(categories: Optional[List[RawCategory]]) -> List[Category]:
    """旧记录的分类为 null 时回退为默认分类；空列表保持为空"""
    if categories is None:
        return [DEFAULT_CATEGORY]
    return [map_category(c) for c in categories]
