"""
赛事 API 路由

表单除普通字段外还可以带两个 JSON 字段：
- matches：随赛事一起创建的比赛列表
- players：个人奖项（title + playerName）
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request
from starlette.datastructures import FormData

from src.core.errors import ValidationError
from src.domain.requests import TournamentPlayerInput, parse_request
from src.services.api.dependencies import CurrentUser, get_current_user, get_user_services
from src.services.api.form_data import get_files_by_field, get_json_list_field, get_string_field
from src.services.api.ownership import MSG_DELETE_FORBIDDEN, load_owned
from src.services.api.responses import result_response, write_response
from src.services.config import content_types
from src.services.container import UserServices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tournaments", tags=["Tournaments"])

TEXT_FIELDS = ("name", "description", "location", "dateFrom", "dateTo", "imagesUrl")


def read_players(form: FormData) -> Optional[List[TournamentPlayerInput]]:
    raw = get_json_list_field(form, "players", "Neplatný formát hráčů")
    if raw is None:
        return None
    players = []
    for item in raw:
        try:
            players.append(parse_request(TournamentPlayerInput, item))
        except ValidationError as e:
            raise ValidationError(f"Chyba v hráči: {e.message}", e.details) from e
    return players


def read_tournament_form(form: FormData, partial: bool = False) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        name: get_string_field(form, name)
        for name in TEXT_FIELDS
        if not partial or name in form
    }
    categories = get_json_list_field(form, "categoryIds", "Neplatný formát kategorií")
    if categories is not None:
        data["categories"] = categories
    players = read_players(form)
    if players is not None:
        data["players"] = players
    return data


@router.post("/create")
async def create_tournament(
    request: Request,
    current: CurrentUser = Depends(get_current_user),
    services: UserServices = Depends(get_user_services),
):
    form = await request.form()
    data = read_tournament_form(form)
    matches = get_json_list_field(form, "matches", "Neplatný formát zápasů")
    files = await get_files_by_field(form, content_types.TOURNAMENT.upload_fields)
    logger.info(f"Creating tournament for user {current.id} with {len(matches or [])} matches")

    result = await services.tournaments.create(
        data, files, author_id=current.id, matches=matches
    )
    return write_response(result, "tournament", status=201)


@router.get("/list")
async def list_tournaments(
    only_mine: bool = Query(False, alias="onlyMine"),
    current: CurrentUser = Depends(get_current_user),
    services: UserServices = Depends(get_user_services),
):
    result = await services.tournaments.get_all(current.id if only_mine else None)
    return result_response(result, "tournaments")


@router.get("/dropdown")
async def tournaments_for_dropdown(services: UserServices = Depends(get_user_services)):
    return result_response(await services.tournaments.get_all_for_dropdown(), "tournaments")


@router.get("/my-tournaments")
async def my_tournaments(
    current: CurrentUser = Depends(get_current_user),
    services: UserServices = Depends(get_user_services),
):
    return result_response(await services.tournaments.get_by_user(current.id), "tournaments")


@router.get("/{document_id}")
async def get_tournament(document_id: str, services: UserServices = Depends(get_user_services)):
    return result_response(await services.tournaments.get_by_id(document_id), "tournament")


@router.put("/{document_id}")
async def update_tournament(
    document_id: str,
    request: Request,
    current: CurrentUser = Depends(get_current_user),
    services: UserServices = Depends(get_user_services),
):
    await load_owned(services.tournaments, document_id, current.id)

    form = await request.form()
    data = read_tournament_form(form, partial=True)
    matches = get_json_list_field(form, "matches", "Neplatný formát zápasů")
    files = await get_files_by_field(form, content_types.TOURNAMENT.upload_fields)

    result = await services.tournaments.update(
        document_id, data, files, author_id=current.id, matches=matches
    )
    return write_response(result, "tournament")


@router.delete("/{document_id}")
async def delete_tournament(
    document_id: str,
    current: CurrentUser = Depends(get_current_user),
    services: UserServices = Depends(get_user_services),
):
    tournament = await load_owned(services.tournaments, document_id, current.id, MSG_DELETE_FORBIDDEN)
    # 先删除赛事下的比赛
    removed = await services.tournament_matches.delete_by_tournament(tournament.id)
    if not removed.success:
        return result_response(removed)
    return result_response(await services.tournaments.delete(document_id))


@router.get("/{document_id}/matches")
async def tournament_matches(document_id: str, services: UserServices = Depends(get_user_services)):
    result = await services.tournament_matches.get_by_tournament(document_id)
    return result_response(result, "tournament_matches")


@router.get("/{document_id}/comments")
async def tournament_comments(document_id: str, services: UserServices = Depends(get_user_services)):
    result = await services.comments.get_by_entity("tournament", document_id)
    return result_response(result, "comments")
