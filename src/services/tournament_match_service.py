"""
赛事内比赛服务

create_many 逐条顺序创建：前一条完成后才发送下一条。中途失败时停止，
错误细节中给出已创建的前缀（数量与 id），便于调用方检查或补录。
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from src.core.errors import AppError, NotFoundError
from src.core.result import Result, err, ok
from src.domain.models import TournamentMatch
from src.domain.requests import TournamentMatchCreate, TournamentMatchUpdate
from src.repositories.base import FindOptions
from src.repositories.tournament_match import TournamentMatchRepository, tournament_filter
from src.services.base import coerce_request, guard

logger = logging.getLogger(__name__)

MatchInput = Union[TournamentMatchCreate, Dict[str, Any]]


class TournamentMatchService:
    name = "TournamentMatchService"

    def __init__(self, repository: TournamentMatchRepository):
        self.repository = repository

    # ==================== 读取 ====================

    async def get_by_id(self, document_id: str) -> Result[TournamentMatch, AppError]:
        async def action():
            match = await self.repository.find_by_id(document_id)
            if match is None:
                return err(NotFoundError(f"Zápas turnaje s ID {document_id} nebyl nalezen"))
            return ok(match)

        return await guard(action, "Chyba při načítání zápasu turnaje", f"{self.name}.get_by_id")

    async def get_by_tournament(
        self, tournament_id: Union[int, str]
    ) -> Result[List[TournamentMatch], AppError]:
        async def action():
            return ok(await self.repository.find_by_tournament(tournament_id))

        return await guard(action, "Chyba při načítání zápasů turnaje", f"{self.name}.get_by_tournament")

    async def get_all(
        self, tournament_id: Optional[Union[int, str]] = None
    ) -> Result[List[TournamentMatch], AppError]:
        async def action():
            filters = tournament_filter(tournament_id) if tournament_id is not None else {}
            return ok(await self.repository.find_all(FindOptions(filters=filters)))

        return await guard(action, "Chyba při načítání zápasů turnaje", f"{self.name}.get_all")

    # ==================== 写入 ====================

    @staticmethod
    def _payload(request: TournamentMatchCreate, author_id: Optional[int]) -> Dict[str, Any]:
        payload = request.to_payload()
        if author_id is not None:
            payload["author"] = author_id
        return payload

    async def create(
        self, data: MatchInput, author_id: Optional[int] = None
    ) -> Result[TournamentMatch, AppError]:
        async def action():
            request = coerce_request(TournamentMatchCreate, data)
            return ok(await self.repository.create(self._payload(request, author_id)))

        return await guard(action, "Chyba při vytváření zápasu turnaje", f"{self.name}.create")

    async def create_many(
        self, matches: Sequence[MatchInput], author_id: Optional[int] = None
    ) -> Result[List[TournamentMatch], AppError]:
        """顺序创建多条比赛；所有输入先整体校验，任何一条无效则不发送请求"""

        async def action():
            requests = [coerce_request(TournamentMatchCreate, item) for item in matches]
            created: List[TournamentMatch] = []
            for index, request in enumerate(requests):
                try:
                    created.append(await self.repository.create(self._payload(request, author_id)))
                except AppError as e:
                    logger.warning(
                        f"{self.name}.create_many stopped at {index + 1}/{len(requests)}: {e.message}"
                    )
                    raise AppError(
                        e.message,
                        e.code,
                        e.status_code,
                        {
                            "createdCount": len(created),
                            "createdIds": [m.id for m in created],
                            "failedIndex": index,
                            "cause": e.details,
                        },
                    ) from e
            return ok(created)

        return await guard(action, "Chyba při vytváření zápasů turnaje", f"{self.name}.create_many")

    async def update(
        self,
        document_id: str,
        data: Union[TournamentMatchUpdate, Dict[str, Any]],
    ) -> Result[TournamentMatch, AppError]:
        async def action():
            request = coerce_request(TournamentMatchUpdate, data)
            return ok(await self.repository.update(document_id, request.to_payload(partial=True)))

        return await guard(action, "Chyba při aktualizaci zápasu turnaje", f"{self.name}.update")

    async def delete(self, document_id: str) -> Result[None, AppError]:
        async def action():
            await self.repository.delete(document_id)
            return ok(None)

        return await guard(action, "Chyba při mazání zápasu turnaje", f"{self.name}.delete")

    async def delete_by_tournament(self, tournament_id: Union[int, str]) -> Result[int, AppError]:
        """删除赛事下的全部比赛，返回删除条数"""

        async def action():
            matches = await self.repository.find_by_tournament(tournament_id)
            for match in matches:
                await self.repository.delete(match.id)
            return ok(len(matches))

        return await guard(action, "Chyba při mazání zápasů turnaje", f"{self.name}.delete_by_tournament")
