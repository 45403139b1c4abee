"""赛事内比赛 API 路由（JSON 请求体）"""
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from src.services.api.dependencies import CurrentUser, get_current_user, get_user_services
from src.services.api.ownership import MSG_DELETE_FORBIDDEN, load_owned
from src.services.api.responses import result_response
from src.services.container import UserServices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tournament-matches", tags=["Tournament Matches"])


@router.post("/create")
async def create_tournament_match(
    payload: dict = Body(...),
    current: CurrentUser = Depends(get_current_user),
    services: UserServices = Depends(get_user_services),
):
    result = await services.tournament_matches.create(payload, author_id=current.id)
    return result_response(result, "tournament_match", status=201)


@router.get("/list")
async def list_tournament_matches(
    tournament: Optional[str] = Query(None),
    services: UserServices = Depends(get_user_services),
):
    tournament_id = int(tournament) if tournament and tournament.isdigit() else tournament
    result = await services.tournament_matches.get_all(tournament_id)
    return result_response(result, "tournament_matches")


@router.get("/{document_id}")
async def get_tournament_match(document_id: str, services: UserServices = Depends(get_user_services)):
    return result_response(
        await services.tournament_matches.get_by_id(document_id), "tournament_match"
    )


@router.put("/{document_id}")
async def update_tournament_match(
    document_id: str,
    payload: dict = Body(...),
    current: CurrentUser = Depends(get_current_user),
    services: UserServices = Depends(get_user_services),
):
    await load_owned(services.tournament_matches, document_id, current.id)
    result = await services.tournament_matches.update(document_id, payload)
    return result_response(result, "tournament_match")


@router.delete("/{document_id}")
async def delete_tournament_match(
    document_id: str,
    current: CurrentUser = Depends(get_current_user),
    services: UserServices = Depends(get_user_services),
):
    await load_owned(services.tournament_matches, document_id, current.id, MSG_DELETE_FORBIDDEN)
    return result_response(await services.tournament_matches.delete(document_id))
