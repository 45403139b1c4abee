"""赛事内比赛仓库"""
from dataclasses import replace
from typing import Any, List, Optional, Union

from src.domain.models import TournamentMatch
from src.infra.strapi.mappers import map_tournament_match
from src.repositories.base import BaseRepository, FindOptions
from src.services.config import content_types


def tournament_filter(tournament_id: Union[int, str]) -> dict:
    """数字 id 按 id 过滤，字符串按 documentId 过滤"""
    if isinstance(tournament_id, int) or str(tournament_id).isdigit():
        return {"tournament": {"id": {"$eq": int(tournament_id)}}}
    return {"tournament": {"documentId": {"$eq": tournament_id}}}


class TournamentMatchRepository(BaseRepository[TournamentMatch]):
    content_type = content_types.TOURNAMENT_MATCH
    default_populate = "*"
    # 赛事内比赛按录入顺序展示
    default_sort = "createdAt:asc"

    def map_record(self, raw: Any) -> TournamentMatch:
        return map_tournament_match(raw)

    async def find_by_tournament(
        self,
        tournament_id: Union[int, str],
        options: Optional[FindOptions] = None,
    ) -> List[TournamentMatch]:
        options = options or FindOptions()
        filters = {**tournament_filter(tournament_id), **options.filters}
        return await self.find_all(replace(options, filters=filters))
