"""
评论服务

评论必须且只能属于一个实体（比赛结果 / 赛事 / 活动），可选地回复另一条评论。
创建成功后在后台任务中解析实体名称与实体作者邮箱并发送通知；
实体作者本人发表的评论不再单独通知作者。
"""
import logging
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from src.core.errors import AppError, ErrorCode, ValidationError
from src.core.result import Result, err, ok
from src.domain.models import Comment, MatchResult, User, UserInfo
from src.domain.requests import CommentCreate
from src.repositories.comment import COMMENTABLE_ENTITIES, CommentRepository
from src.services.base import ContentService, coerce_request, guard
from src.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

MSG_EXACTLY_ONE_ENTITY = "Komentář musí patřit právě k jedné entitě"
MSG_INVALID_ENTITY_TYPE = "Neplatný typ entity"


def entity_display_name(entity_type: str, entity: Any) -> str:
    if entity_type == "matchResult" and isinstance(entity, MatchResult):
        return (
            f"{entity.home_team} vs {entity.away_team} "
            f"({entity.home_score}:{entity.away_score})"
        )
    return getattr(entity, "name", "") or ""


class CommentService:
    name = "CommentService"

    def __init__(
        self,
        repository: CommentRepository,
        notifications: Optional[NotificationService] = None,
        entity_services: Optional[Mapping[str, ContentService]] = None,
    ):
        self.repository = repository
        self.notifications = notifications
        # 实体类型 -> 用于解析通知信息的服务
        self.entity_services = dict(entity_services or {})

    # ==================== 读取 ====================

    async def get_by_id(self, document_id: str) -> Result[Comment, AppError]:
        async def action():
            comment = await self.repository.find_by_id(document_id)
            if comment is None:
                return err(AppError("Komentář nenalezen", ErrorCode.NOT_FOUND, 404))
            return ok(comment)

        return await guard(action, "Chyba při načítání komentáře", f"{self.name}.get_by_id")

    async def get_by_entity(self, entity_type: str, entity_id: str) -> Result[List[Comment], AppError]:
        """实体下的顶层评论（含一层回复），最新在前"""
        if entity_type not in COMMENTABLE_ENTITIES:
            return err(ValidationError(MSG_INVALID_ENTITY_TYPE, {"entityType": entity_type}))
        if not entity_id:
            return err(ValidationError("ID entity je povinné"))

        async def action():
            return ok(await self.repository.find_by_entity(entity_type, entity_id))

        return await guard(action, "Chyba při načítání komentářů", f"{self.name}.get_by_entity")

    # ==================== 写入 ====================

    async def create(
        self,
        data: Union[CommentCreate, Dict[str, Any]],
        author: User,
    ) -> Result[Comment, AppError]:
        async def action():
            request = coerce_request(CommentCreate, data)
            refs = request.parent_refs()
            if len(refs) != 1:
                raise ValidationError(MSG_EXACTLY_ONE_ENTITY, {"entities": sorted(refs)})
            ((entity_type, entity_id),) = refs.items()

            payload: Dict[str, Any] = {
                "content": request.content,
                "author": author.id,
                entity_type: entity_id,
            }
            if request.parent_comment:
                payload["parentComment"] = request.parent_comment

            comment = await self.repository.create(payload)
            if comment.author.id != author.id:
                comment = replace(
                    comment,
                    author=UserInfo(
                        id=author.id,
                        first_name=author.first_name,
                        last_name=author.last_name,
                        email=author.email,
                    ),
                )
            self._schedule_notification(comment, entity_type, entity_id, author)
            return ok(comment)

        return await guard(action, "Chyba při vytváření komentáře", f"{self.name}.create")

    async def delete(self, document_id: str) -> Result[None, AppError]:
        async def action():
            await self.repository.delete(document_id)
            return ok(None)

        return await guard(action, "Chyba při mazání komentáře", f"{self.name}.delete")

    # ==================== 通知 ====================

    def _schedule_notification(
        self, comment: Comment, entity_type: str, entity_id: str, author: User
    ) -> None:
        if self.notifications is None:
            return
        try:
            self.notifications.schedule(
                "comment_added",
                self._notify(comment, entity_type, entity_id, author),
            )
        except Exception as e:
            logger.error(f"{self.name}: scheduling notification failed: {e}", exc_info=True)

    async def _resolve_entity(self, entity_type: str, entity_id: str) -> Tuple[str, Optional[UserInfo]]:
        """返回 (实体展示名, 实体作者)；无法解析时名称回退为 ID"""
        service = self.entity_services.get(entity_type)
        name, entity_author = "", None
        if service is not None:
            result = await service.get_by_id(entity_id)
            if result.success:
                name = entity_display_name(entity_type, result.data)
                entity_author = result.data.author
            else:
                logger.info(f"{self.name}: cannot resolve {entity_type} {entity_id}: {result.error.message}")
        return name or f"ID: {entity_id}", entity_author

    async def _notify(self, comment: Comment, entity_type: str, entity_id: str, author: User) -> None:
        entity_name, entity_author = await self._resolve_entity(entity_type, entity_id)

        entity_author_email = None
        if entity_author is not None and entity_author.email and entity_author.id != author.id:
            entity_author_email = entity_author.email

        await self.notifications.build_comment_added(
            comment, entity_type, entity_name, entity_author_email
        )
