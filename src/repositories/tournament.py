"""赛事仓库"""
from typing import Any, List

from src.domain.models import Tournament
from src.infra.strapi.mappers import map_tournament
from src.infra.strapi.query import StrapiQuery
from src.repositories.base import UploadingRepository
from src.services.config import app_constants, content_types


class TournamentRepository(UploadingRepository[Tournament]):
    content_type = content_types.TOURNAMENT
    default_populate = "*"
    has_categories = True
    not_found_message = "Turnaj s ID {id} nebyl nalezen"

    def map_record(self, raw: Any) -> Tournament:
        return map_tournament(raw, self.client.uploads_url)

    async def find_all_for_dropdown(self) -> List[Tournament]:
        """下拉选择用：按开始日期倒序"""
        query = StrapiQuery(
            populate=self.default_populate,
            sort="dateFrom:desc",
            pagination={"limit": app_constants.FIND_ALL_LIMIT},
        )
        page = await self.client.find_many(self.collection, query)
        return self.map_records(page.data)
