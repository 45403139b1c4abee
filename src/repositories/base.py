"""
仓库层基类

职责：
1. 统一的 CRUD 约定：find_by_id / find_all / find_paginated / create / update / delete
2. FindOptions -> StrapiQuery 的转换（默认排序、分页、按作者过滤）
3. 带附件的实体族：upload_files 逐字段独立上传并记录结果，
   create_with_files / update_with_files 组合 "写实体 -> 上传 -> 回读"

设计原则：
- find_by_id 的 "不存在" 是正常结果（None），不是错误
- 上传失败记录在 UploadResults 中，从不抛出；只有解析数字 id 时实体不存在才抛 NotFoundError
- 多对多分类关系：创建发送 connect，更新发送 set（整体替换）
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import (
    Any,
    ClassVar,
    Dict,
    Generic,
    List,
    Mapping,
    Optional,
    Sequence,
    TypeVar,
)

from src.core.errors import AppError, ErrorCode, NotFoundError
from src.domain.models import FileUpload, PaginatedResult, Pagination
from src.infra.strapi.client import StrapiClient
from src.infra.strapi.mappers.shared import safe_map_many
from src.infra.strapi.query import Populate, Sort, StrapiQuery
from src.services.config import ContentType, app_constants

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ==================== 查询选项 ====================

@dataclass
class FindOptions:
    page: Optional[int] = None
    page_size: Optional[int] = None
    sort: Optional[Sort] = None
    filters: Dict[str, Any] = field(default_factory=dict)
    populate: Optional[Populate] = None
    # 按作者过滤（"我的记录"）
    user_id: Optional[int] = None


def build_query_options(
    options: Optional[FindOptions],
    populate: Optional[Populate],
    default_sort: Sort = "createdAt:desc",
) -> StrapiQuery:
    """FindOptions -> StrapiQuery；分页只在显式给出 page / page_size 时发送"""
    options = options or FindOptions()
    query = StrapiQuery(
        populate=options.populate if options.populate is not None else populate,
        sort=options.sort or default_sort,
    )

    if options.page or options.page_size:
        query.pagination = {"page": options.page, "pageSize": options.page_size}

    filters: Dict[str, Any] = {}
    if options.user_id:
        filters["author"] = {"id": {"$eq": options.user_id}}
    filters.update(options.filters)
    query.filters = filters

    return query


# ==================== 上传结果 ====================

@dataclass(frozen=True)
class UploadStatus:
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": self.success}
        if self.error:
            body["error"] = self.error
        return body


# 字段名 -> 上传状态
UploadResults = Dict[str, UploadStatus]

# 字段名 -> 待上传文件
FilesByField = Mapping[str, Sequence[FileUpload]]


@dataclass(frozen=True)
class SavedWithUploads(Generic[T]):
    """组合写操作的返回：回读后的实体 + 各字段上传结果"""
    entity: T
    upload_results: UploadResults = field(default_factory=dict)


# ==================== 基类 ====================

class BaseRepository(Generic[T]):
    """单个实体族的 CRUD"""

    content_type: ClassVar[ContentType]
    default_populate: ClassVar[Optional[Populate]] = "*"
    default_sort: ClassVar[Sort] = "createdAt:desc"
    # 是否存在多对多分类关系
    has_categories: ClassVar[bool] = False

    def __init__(self, client: StrapiClient):
        self.client = client

    # ---- 映射（子类提供） ----

    def map_record(self, raw: Any) -> T:
        raise NotImplementedError

    def map_records(self, raws: Optional[List[Any]]) -> List[T]:
        return safe_map_many(self.map_record, raws)

    @property
    def collection(self) -> str:
        return self.content_type.collection

    def build_query(self, options: Optional[FindOptions] = None) -> StrapiQuery:
        return build_query_options(options, self.default_populate, self.default_sort)

    # ---- 读取 ----

    async def find_by_id(
        self,
        document_id: str,
        options: Optional[FindOptions] = None,
    ) -> Optional[T]:
        populate = options.populate if options and options.populate is not None else self.default_populate
        try:
            raw = await self.client.find_one(
                self.collection, document_id, StrapiQuery(populate=populate)
            )
        except AppError as e:
            if e.status_code == 404 or e.code == ErrorCode.NOT_FOUND:
                return None
            raise
        if not raw:
            return None
        return self.map_record(raw)

    async def find_all(self, options: Optional[FindOptions] = None) -> List[T]:
        query = self.build_query(options)
        # "全部" 用固定上限，避免无界响应
        query.pagination = {"limit": app_constants.FIND_ALL_LIMIT}
        page = await self.client.find_many(self.collection, query)
        return self.map_records(page.data)

    async def find_paginated(self, options: Optional[FindOptions] = None) -> PaginatedResult:
        page = await self.client.find_many(self.collection, self.build_query(options))
        data = self.map_records(page.data)
        pagination = page.pagination or Pagination(
            page=1,
            page_size=len(page.data),
            page_count=1,
            total=len(page.data),
        )
        return PaginatedResult(data=data, pagination=pagination)

    async def find_by_user(self, user_id: int, options: Optional[FindOptions] = None) -> List[T]:
        return await self.find_all(replace(options or FindOptions(), user_id=user_id))

    # ---- 写入 ----

    def prepare_create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = dict(data)
        if self.has_categories:
            categories = payload.pop("categories", None)
            if categories:
                payload["categories"] = {"connect": list(categories)}
        return payload

    def prepare_update(self, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = dict(data)
        if self.has_categories and "categories" in payload:
            payload["categories"] = {"set": list(payload["categories"] or [])}
        return payload

    async def create(self, data: Dict[str, Any]) -> T:
        raw = await self.client.create(self.collection, self.prepare_create(data))
        return self.map_record(raw)

    async def update(self, document_id: str, data: Dict[str, Any]) -> T:
        raw = await self.client.update(self.collection, document_id, self.prepare_update(data))
        return self.map_record(raw)

    async def delete(self, document_id: str) -> None:
        await self.client.delete(self.collection, document_id)


class UploadingRepository(BaseRepository[T]):
    """
    带附件的实体族

    子类的 content_type 声明上传引用（如 api::match-result.match-result）
    和按固定顺序上传的字段。
    """

    # 实体不存在时的消息模板，{id} 为 documentId
    not_found_message: ClassVar[str] = "Záznam s ID {id} nebyl nalezen"

    def _files_to_upload(self, files: Optional[FilesByField]) -> Dict[str, Sequence[FileUpload]]:
        """按声明顺序挑出非空字段"""
        files = files or {}
        unknown = set(files) - set(self.content_type.upload_fields)
        if unknown:
            logger.warning(f"{self.collection}: ignoring unknown upload fields {sorted(unknown)}")
        return {
            name: files[name]
            for name in self.content_type.upload_fields
            if files.get(name)
        }

    async def _resolve_row_id(self, document_id: str) -> int:
        """上传接口需要数字行 id"""
        try:
            raw = await self.client.find_one(self.collection, document_id)
        except AppError as e:
            if e.status_code != 404:
                raise
            raw = None
        if not raw or raw.get("id") is None:
            raise NotFoundError(self.not_found_message.format(id=document_id))
        return int(raw["id"])

    async def upload_files(self, document_id: str, files: FilesByField) -> UploadResults:
        """逐字段上传；单个字段失败不影响后续字段"""
        to_upload = self._files_to_upload(files)
        results: UploadResults = {}
        if not to_upload:
            return results

        row_id = await self._resolve_row_id(document_id)

        for field_name, field_files in to_upload.items():
            outcome = await self.client.upload_to_entity(
                field_files,
                self.content_type.upload_ref,
                row_id,
                field_name,
            )
            results[field_name] = UploadStatus(success=outcome.success, error=outcome.error)
            if not outcome.success:
                logger.warning(
                    f"{self.collection}/{document_id}: upload of '{field_name}' failed: {outcome.error}"
                )

        return results

    async def _attach_and_refetch(
        self,
        entity: T,
        document_id: str,
        files: Optional[FilesByField],
    ) -> SavedWithUploads[T]:
        to_upload = self._files_to_upload(files)
        results: UploadResults = {}

        if to_upload:
            try:
                results = await self.upload_files(document_id, to_upload)
            except AppError as e:
                # 实体已保存；上传整体无法进行时降级为每个字段失败
                logger.warning(f"{self.collection}/{document_id}: uploads skipped: {e.message}")
                results = {name: UploadStatus(False, e.message) for name in to_upload}

        try:
            refreshed = await self.find_by_id(document_id)
        except AppError as e:
            logger.warning(f"{self.collection}/{document_id}: refetch failed: {e.message}")
            refreshed = None

        return SavedWithUploads(entity=refreshed or entity, upload_results=results)

    async def create_with_files(
        self,
        data: Dict[str, Any],
        files: Optional[FilesByField] = None,
    ) -> SavedWithUploads[T]:
        """先创建实体，再按其数字 id 上传附件，最后回读"""
        entity = await self.create(data)
        return await self._attach_and_refetch(entity, getattr(entity, "id"), files)

    async def update_with_files(
        self,
        document_id: str,
        data: Dict[str, Any],
        files: Optional[FilesByField] = None,
    ) -> SavedWithUploads[T]:
        entity = await self.update(document_id, data)
        return await self._attach_and_refetch(entity, document_id, files)
