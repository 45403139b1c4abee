"""
评论映射

回复通过递归调用同一映射函数得到；递归深度等于查询层 populate 的层数（目前两层：
顶层评论 + 直接回复），映射函数本身不限制深度。
"""
from typing import Any, List, Optional, Union

from src.domain.models import Comment, UserInfo
from src.infra.strapi.mappers.shared import (
    extract_relation_document_id,
    map_user_info,
    map_with_schema,
    safe_map,
    safe_map_many,
)
from src.infra.strapi.schemas import NestedReplies, RawComment

ERROR_MESSAGE = "Neplatná data komentáře ze Strapi"

UNKNOWN_AUTHOR = UserInfo(id=0, first_name="", last_name="")


def _extract_replies(replies: Union[List[RawComment], NestedReplies, None]) -> List[RawComment]:
    if replies is None:
        return []
    if isinstance(replies, NestedReplies):
        return replies.data or []
    return replies


def _to_comment(data: RawComment) -> Comment:
    return Comment(
        id=data.document_id,
        row_id=data.id,
        content=data.content,
        author=map_user_info(data.author) or UNKNOWN_AUTHOR,
        created_at=data.created_at,
        updated_at=data.updated_at,
        parent_comment_id=extract_relation_document_id(data.parent_comment),
        replies=[_to_comment(reply) for reply in _extract_replies(data.replies)],
    )


def map_comment(raw: Any) -> Comment:
    return _to_comment(map_with_schema(RawComment, raw, ERROR_MESSAGE))


def safe_map_comment(raw: Any) -> Optional[Comment]:
    return safe_map(map_comment, raw)


def safe_map_comments(raws: Optional[List[Any]]) -> List[Comment]:
    return safe_map_many(map_comment, raws)
