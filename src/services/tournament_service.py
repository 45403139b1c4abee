"""
赛事服务

赛事可以随表单一起提交比赛列表：比赛在赛事保存之后逐条顺序创建，
比赛失败不会回滚赛事，只记录日志并以警告返回。
"""
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from src.core.errors import AppError, ValidationError
from src.core.result import Result, ok
from src.domain.models import Tournament
from src.domain.requests import (
    InlineTournamentMatch,
    RequestModel,
    TournamentCreate,
    TournamentUpdate,
    parse_request,
)
from src.repositories.base import FilesByField, SavedWithUploads
from src.repositories.tournament import TournamentRepository
from src.services.base import (
    ContentService,
    ServiceMessages,
    check_stored_date_range,
    coerce_request,
    guard,
)
from src.services.notification_service import NotificationService
from src.services.tournament_match_service import TournamentMatchService
from src.services.uploads import EntityWithUploads

logger = logging.getLogger(__name__)

MatchesInput = Optional[Sequence[Union[InlineTournamentMatch, Dict[str, Any]]]]


def parse_inline_matches(matches: MatchesInput) -> List[InlineTournamentMatch]:
    """校验随赛事提交的比赛；第一条无效输入的消息加上前缀"""
    parsed: List[InlineTournamentMatch] = []
    for item in matches or []:
        if isinstance(item, InlineTournamentMatch):
            parsed.append(item)
            continue
        try:
            parsed.append(parse_request(InlineTournamentMatch, item))
        except ValidationError as e:
            raise ValidationError(f"Chyba v zápasu: {e.message}", e.details) from e
    return parsed


class TournamentService(ContentService[Tournament]):
    name = "TournamentService"
    create_model = TournamentCreate
    update_model = TournamentUpdate
    messages = ServiceMessages(
        get_one="Chyba při načítání turnaje",
        get_many="Chyba při načítání turnajů",
        create="Chyba při vytváření turnaje",
        update="Chyba při aktualizaci turnaje",
        delete="Chyba při mazání turnaje",
        not_found="Turnaj s ID {id} nebyl nalezen",
    )

    def __init__(
        self,
        repository: TournamentRepository,
        match_service: TournamentMatchService,
        notifications: Optional[NotificationService] = None,
    ):
        super().__init__(repository, notifications)
        self.match_service = match_service

    async def check_update(self, document_id: str, request: RequestModel) -> None:
        await check_stored_date_range(self.repository, document_id, request)

    async def get_all_for_dropdown(self) -> Result[List[Tournament], AppError]:
        async def action():
            return ok(await self.repository.find_all_for_dropdown())

        return await guard(action, self.messages.get_many, f"{self.name}.get_all_for_dropdown")

    # ==================== 随赛事提交的比赛 ====================

    async def _create_matches(
        self,
        saved: SavedWithUploads[Tournament],
        matches: List[InlineTournamentMatch],
        author_id: Optional[int],
    ) -> Tuple[SavedWithUploads[Tournament], List[str]]:
        """顺序创建比赛并回读赛事；返回 (最新快照, 警告)"""
        if not matches:
            return saved, []

        tournament = saved.entity
        payloads = [
            {**m.to_payload(), "tournament": tournament.id}
            for m in matches
        ]
        result = await self.match_service.create_many(payloads, author_id)

        warnings: List[str] = []
        if not result.success:
            logger.error(
                f"{self.name}: creating matches for tournament {tournament.id} failed: "
                f"{result.error.message} details={result.error.details}"
            )
            warnings.append(f"Nepodařilo se uložit zápasy turnaje: {result.error.message}")

        try:
            refreshed = await self.repository.find_by_id(tournament.id)
        except AppError as e:
            logger.warning(f"{self.name}: refetch after matches failed: {e.message}")
            refreshed = None

        if refreshed is not None:
            saved = replace(saved, entity=refreshed)
        return saved, warnings

    # ==================== 写入 ====================

    async def create(
        self,
        data: Union[RequestModel, Dict[str, Any]],
        files: Optional[FilesByField] = None,
        author_id: Optional[int] = None,
        matches: MatchesInput = None,
    ) -> Result[EntityWithUploads[Tournament], AppError]:
        async def action():
            request = coerce_request(self.create_model, data)
            inline_matches = parse_inline_matches(matches)
            saved = await self.repository.create_with_files(
                self.build_create_payload(request, author_id), files
            )
            saved, warnings = await self._create_matches(saved, inline_matches, author_id)
            match_count = len(saved.entity.matches)
            return self.finish_write(
                saved,
                lambda t: self.notifications.notify_tournament_created(t, match_count),
                warnings,
            )

        return await guard(action, self.messages.create, f"{self.name}.create")

    async def update(
        self,
        document_id: str,
        data: Union[RequestModel, Dict[str, Any]],
        files: Optional[FilesByField] = None,
        author_id: Optional[int] = None,
        matches: MatchesInput = None,
    ) -> Result[EntityWithUploads[Tournament], AppError]:
        """更新赛事；matches 中的比赛作为新比赛追加"""

        async def action():
            request = coerce_request(self.update_model, data)
            inline_matches = parse_inline_matches(matches)
            await self.check_update(document_id, request)
            saved = await self.repository.update_with_files(
                document_id, self.build_update_payload(request), files
            )
            saved, warnings = await self._create_matches(saved, inline_matches, author_id)
            match_count = len(saved.entity.matches)
            return self.finish_write(
                saved,
                lambda t: self.notifications.notify_tournament_updated(t, match_count),
                warnings,
            )

        return await guard(action, self.messages.update, f"{self.name}.update({document_id})")
