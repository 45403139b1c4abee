"""分类服务（只读）"""
from typing import List

from src.core.errors import AppError
from src.core.result import Result, ok
from src.domain.models import Category
from src.repositories.category import CategoryRepository
from src.services.base import guard


class CategoryService:
    def __init__(self, repository: CategoryRepository):
        self.repository = repository

    async def get_all(self) -> Result[List[Category], AppError]:
        async def action():
            return ok(await self.repository.find_all())

        return await guard(action, "Chyba při načítání kategorií", "CategoryService.get_all")
