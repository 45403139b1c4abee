"""分类仓库（只读）"""
from typing import List, Optional

from src.core.errors import AppError
from src.domain.models import Category
from src.infra.strapi.client import StrapiClient
from src.infra.strapi.mappers import map_category_record, safe_map_categories
from src.infra.strapi.query import StrapiQuery
from src.services.config import app_constants, content_types


class CategoryRepository:
    def __init__(self, client: StrapiClient):
        self.client = client

    async def find_all(self) -> List[Category]:
        query = StrapiQuery(
            sort=["sortOrder:asc"],
            pagination={"limit": app_constants.FIND_ALL_LIMIT},
        )
        page = await self.client.find_many(content_types.CATEGORY.collection, query)
        return safe_map_categories(page.data)

    async def find_by_id(self, document_id: str) -> Optional[Category]:
        try:
            raw = await self.client.find_one(content_types.CATEGORY.collection, document_id)
        except AppError as e:
            if e.status_code == 404:
                return None
            raise
        return map_category_record(raw) if raw else None
