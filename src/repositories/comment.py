"""
评论仓库

find_by_entity 只取顶层评论（parentComment 为空），回复通过 populate 带出一层。
"""
from typing import Any, List, Optional

from src.domain.models import Comment
from src.infra.strapi.mappers import map_comment
from src.infra.strapi.query import StrapiQuery
from src.repositories.base import BaseRepository, FindOptions
from src.services.config import app_constants, content_types

# 可评论的实体类型（同时是评论上的关系字段名）
COMMENTABLE_ENTITIES = ("matchResult", "tournament", "event")

AUTHOR_FIELDS = {"fields": ["id", "documentId", "firstname", "lastname"]}

DEFAULT_POPULATE = {
    "author": AUTHOR_FIELDS,
    "replies": {"populate": {"author": AUTHOR_FIELDS}},
}


class CommentRepository(BaseRepository[Comment]):
    content_type = content_types.COMMENT
    default_populate = DEFAULT_POPULATE

    def map_record(self, raw: Any) -> Comment:
        return map_comment(raw)

    async def find_by_entity(
        self,
        entity_type: str,
        entity_id: str,
        options: Optional[FindOptions] = None,
    ) -> List[Comment]:
        options = options or FindOptions()
        filters = {
            entity_type: {"documentId": {"$eq": entity_id}},
            "parentComment": {"id": {"$null": True}},
            **options.filters,
        }
        query = StrapiQuery(
            populate=DEFAULT_POPULATE,
            filters=filters,
            sort=options.sort or "createdAt:desc",
            pagination={"limit": app_constants.FIND_ALL_LIMIT},
        )
        page = await self.client.find_many(self.collection, query)
        return self.map_records(page.data)
