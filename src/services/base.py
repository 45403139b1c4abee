"""
服务层基类

职责：
1. 服务方法的异常边界：AppError 原样变为 Err，其余异常记录日志后
   包装为 AppError(<业务消息>, STRAPI_ERROR)
2. 字典输入统一经过请求模型校验，校验失败同样返回 Err
3. 带附件实体族（比赛结果 / 活动 / 赛事）的通用读写流程
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import (
    Any,
    Awaitable,
    Callable,
    ClassVar,
    Dict,
    Generic,
    List,
    Optional,
    Sequence,
    Type,
    TypeVar,
    Union,
)

from src.core.errors import AppError, ErrorCode, NotFoundError, ValidationError
from src.core.result import OkWithWarnings, Result, err, ok, ok_with_warnings
from src.domain.models import PaginatedResult
from src.domain.requests import MSG_DATE_RANGE, RequestModel, parse_request
from src.repositories.base import (
    FilesByField,
    FindOptions,
    SavedWithUploads,
    UploadingRepository,
)
from src.services.notification_service import NotificationService
from src.services.uploads import EntityWithUploads, build_upload_warnings

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=RequestModel)


# ==================== 异常边界 ====================

async def guard(
    action: Callable[[], Awaitable[Result]],
    fallback_message: str,
    operation: str,
) -> Result:
    """执行服务操作；预期内的失败以 Err 返回，不向调用方抛出"""
    try:
        return await action()
    except AppError as e:
        logger.warning(f"{operation} failed: {e!r}")
        return err(e)
    except Exception as e:
        logger.error(f"{operation} failed unexpectedly: {e}", exc_info=True)
        return err(
            AppError(fallback_message, ErrorCode.STRAPI_ERROR, 500, {"original_error": repr(e)})
        )


def coerce_request(model_cls: Type[M], data: Union[M, Dict[str, Any]]) -> M:
    """已是模型实例则直接使用，否则校验字典（失败抛出 ValidationError）"""
    if isinstance(data, model_cls):
        return data
    return parse_request(model_cls, data)


async def check_stored_date_range(
    repository: UploadingRepository[Any],
    document_id: str,
    request: RequestModel,
) -> None:
    """部分更新只改了一端日期时，与已保存的另一端比较"""
    sent = request.model_fields_set & {"date_from", "date_to"}
    if len(sent) != 1:
        # 两端都在载荷中时由请求模型自身校验
        return
    current = await repository.find_by_id(document_id)
    if current is None:
        return
    date_from = request.date_from if "date_from" in sent else current.date_from
    date_to = request.date_to if "date_to" in sent else current.date_to
    if date_from and date_to and date_to[:10] < date_from[:10]:
        raise ValidationError(MSG_DATE_RANGE)


# ==================== 带附件的实体族 ====================

@dataclass(frozen=True)
class ServiceMessages:
    """各操作失败时的兜底消息（捷克语）"""
    get_one: str
    get_many: str
    create: str
    update: str
    delete: str
    not_found: str  # 含 {id}


class ContentService(Generic[T]):
    """比赛结果 / 活动 / 赛事共用的服务实现"""

    name: ClassVar[str] = "ContentService"
    messages: ClassVar[ServiceMessages]
    create_model: ClassVar[Type[RequestModel]]
    update_model: ClassVar[Type[RequestModel]]

    def __init__(
        self,
        repository: UploadingRepository[T],
        notifications: Optional[NotificationService] = None,
    ):
        self.repository = repository
        self.notifications = notifications

    # ---- 通知钩子（子类覆盖） ----

    def notify_created(self, entity: T) -> None:
        pass

    def notify_updated(self, entity: T) -> None:
        pass

    def dispatch_notification(self, hook: Callable[[T], Any], entity: T) -> None:
        """通知只是附带效果，调度失败不影响已保存的实体"""
        if self.notifications is None:
            return
        try:
            hook(entity)
        except Exception as e:
            logger.error(f"{self.name}: scheduling notification failed: {e}", exc_info=True)

    # ---- 读取 ----

    async def get_by_id(self, document_id: str) -> Result[T, AppError]:
        async def action():
            entity = await self.repository.find_by_id(document_id)
            if entity is None:
                return err(NotFoundError(self.messages.not_found.format(id=document_id)))
            return ok(entity)

        return await guard(action, self.messages.get_one, f"{self.name}.get_by_id({document_id})")

    async def get_by_user(self, user_id: int) -> Result[List[T], AppError]:
        async def action():
            return ok(await self.repository.find_by_user(user_id))

        return await guard(action, self.messages.get_many, f"{self.name}.get_by_user({user_id})")

    async def get_all(self, user_id: Optional[int] = None) -> Result[List[T], AppError]:
        async def action():
            return ok(await self.repository.find_all(FindOptions(user_id=user_id)))

        return await guard(action, self.messages.get_many, f"{self.name}.get_all")

    async def get_paginated(
        self, options: Optional[FindOptions] = None
    ) -> Result[PaginatedResult, AppError]:
        async def action():
            return ok(await self.repository.find_paginated(options))

        return await guard(action, self.messages.get_many, f"{self.name}.get_paginated")

    # ---- 写入 ----

    def build_create_payload(self, request: RequestModel, author_id: Optional[int]) -> Dict[str, Any]:
        payload = request.to_payload()
        if author_id is not None:
            payload["author"] = author_id
        return payload

    def build_update_payload(self, request: RequestModel) -> Dict[str, Any]:
        return request.to_payload(partial=True)

    async def check_update(self, document_id: str, request: RequestModel) -> None:
        """写入前需要已保存数据的校验（子类覆盖）"""

    def finish_write(
        self,
        saved: SavedWithUploads[T],
        hook: Callable[[T], Any],
        extra_warnings: Sequence[str] = (),
    ) -> OkWithWarnings[EntityWithUploads[T]]:
        """上传结果转为警告，调度通知，组装成功结果"""
        upload_warnings = build_upload_warnings(saved.upload_results)
        warnings = [*upload_warnings, *extra_warnings]
        if warnings:
            logger.warning(f"{self.name}: saved {saved.entity.id} with warnings {warnings}")
        self.dispatch_notification(hook, saved.entity)
        return ok_with_warnings(
            EntityWithUploads(saved.entity, upload_warnings, saved.upload_results), warnings
        )

    async def create(
        self,
        data: Union[RequestModel, Dict[str, Any]],
        files: Optional[FilesByField] = None,
        author_id: Optional[int] = None,
    ) -> Result[EntityWithUploads[T], AppError]:
        """创建实体并上传附件；附件失败只产生警告，成功后异步发送通知"""

        async def action():
            request = coerce_request(self.create_model, data)
            saved = await self.repository.create_with_files(
                self.build_create_payload(request, author_id), files
            )
            return self.finish_write(saved, self.notify_created)

        return await guard(action, self.messages.create, f"{self.name}.create")

    async def update(
        self,
        document_id: str,
        data: Union[RequestModel, Dict[str, Any]],
        files: Optional[FilesByField] = None,
    ) -> Result[EntityWithUploads[T], AppError]:
        async def action():
            request = coerce_request(self.update_model, data)
            await self.check_update(document_id, request)
            saved = await self.repository.update_with_files(
                document_id, self.build_update_payload(request), files
            )
            return self.finish_write(saved, self.notify_updated)

        return await guard(action, self.messages.update, f"{self.name}.update({document_id})")

    async def delete(self, document_id: str) -> Result[None, AppError]:
        async def action():
            await self.repository.delete(document_id)
            return ok(None)

        return await guard(action, self.messages.delete, f"{self.name}.delete({document_id})")
