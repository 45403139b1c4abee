"""比赛结果 API 的路由定义。"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request
from starlette.datastructures import FormData

from src.repositories.base import FindOptions
from src.services.api.dependencies import CurrentUser, get_current_user, get_user_services
from src.services.api.form_data import get_files_by_field, get_json_list_field, get_string_field
from src.services.api.ownership import MSG_DELETE_FORBIDDEN, load_owned
from src.services.api.responses import result_response, write_response
from src.services.config import content_types
from src.services.container import UserServices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/match-results", tags=["Match Results"])

FORM_FIELDS = (
    "homeTeam",
    "awayTeam",
    "homeScore",
    "awayScore",
    "homeGoalscorers",
    "awayGoalscorers",
    "matchReport",
    "matchDate",
    "imagesUrl",
)


def read_match_form(form: FormData, partial: bool = False) -> Dict[str, Any]:
    """表单 -> 请求数据；partial=True 时只包含表单中出现的字段"""
    data = {
        name: get_string_field(form, name)
        for name in FORM_FIELDS
        if not partial or name in form
    }
    categories = get_json_list_field(form, "categoryIds", "Neplatný formát kategorií")
    if categories is not None:
        data["categories"] = categories
    return data


@router.post("/create")
async def create_match_result(
    request: Request,
    current: CurrentUser = Depends(get_current_user),
    services: UserServices = Depends(get_user_services),
):
    """创建比赛结果（multipart：字段 + images / files）"""
    form = await request.form()
    data = read_match_form(form)
    files = await get_files_by_field(form, content_types.MATCH_RESULT.upload_fields)
    logger.info(f"Creating match result for user {current.id}")

    result = await services.match_results.create(data, files, author_id=current.id)
    return write_response(result, "match_result", status=201)


@router.get("/list")
async def list_match_results(
    only_mine: bool = Query(False, alias="onlyMine"),
    page: Optional[int] = Query(None, ge=1),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1, le=100),
    current: CurrentUser = Depends(get_current_user),
    services: UserServices = Depends(get_user_services),
):
    user_id = current.id if only_mine else None
    if page or page_size:
        result = await services.match_results.get_paginated(
            FindOptions(page=page, page_size=page_size, user_id=user_id)
        )
        return result_response(result)
    return result_response(await services.match_results.get_all(user_id), "match_results")


@router.get("/my-results")
async def my_match_results(
    current: CurrentUser = Depends(get_current_user),
    services: UserServices = Depends(get_user_services),
):
    return result_response(await services.match_results.get_by_user(current.id), "match_results")


@router.get("/{document_id}")
async def get_match_result(
    document_id: str,
    services: UserServices = Depends(get_user_services),
):
    return result_response(await services.match_results.get_by_id(document_id), "match_result")


@router.put("/{document_id}")
async def update_match_result(
    document_id: str,
    request: Request,
    current: CurrentUser = Depends(get_current_user),
    services: UserServices = Depends(get_user_services),
):
    await load_owned(services.match_results, document_id, current.id)

    form = await request.form()
    data = read_match_form(form, partial=True)
    files = await get_files_by_field(form, content_types.MATCH_RESULT.upload_fields)

    result = await services.match_results.update(document_id, data, files)
    return write_response(result, "match_result")


@router.delete("/{document_id}")
async def delete_match_result(
    document_id: str,
    current: CurrentUser = Depends(get_current_user),
    services: UserServices = Depends(get_user_services),
):
    await load_owned(services.match_results, document_id, current.id, MSG_DELETE_FORBIDDEN)
    return result_response(await services.match_results.delete(document_id))


@router.get("/{document_id}/comments")
async def match_result_comments(
    document_id: str,
    services: UserServices = Depends(get_user_services),
):
    result = await services.comments.get_by_entity("matchResult", document_id)
    return result_response(result, "comments")
