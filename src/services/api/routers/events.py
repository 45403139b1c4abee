"""活动（Event）API 路由"""
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, Request
from starlette.datastructures import FormData

from src.services.api.dependencies import CurrentUser, get_current_user, get_user_services
from src.services.api.form_data import (
    get_boolean_field,
    get_files_by_field,
    get_json_list_field,
    get_string_field,
)
from src.services.api.ownership import MSG_DELETE_FORBIDDEN, load_owned
from src.services.api.responses import result_response, write_response
from src.services.config import content_types
from src.services.container import UserServices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/events", tags=["Events"])

TEXT_FIELDS = (
    "name",
    "eventType",
    "dateFrom",
    "dateTo",
    "publishDate",
    "eventTime",
    "eventTimeTo",
    "description",
)


def read_event_form(form: FormData, partial: bool = False) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        name: get_string_field(form, name)
        for name in TEXT_FIELDS
        if not partial or name in form
    }
    # 未填写的活动类型使用默认值
    if data.get("eventType") is None:
        data.pop("eventType", None)
    if not partial or "requiresPhotographer" in form:
        data["requiresPhotographer"] = get_boolean_field(form, "requiresPhotographer")
    categories = get_json_list_field(form, "categoryIds", "Neplatný formát kategorií")
    if categories is not None:
        data["categories"] = categories
    return data


@router.post("/create")
async def create_event(
    request: Request,
    current: CurrentUser = Depends(get_current_user),
    services: UserServices = Depends(get_user_services),
):
    form = await request.form()
    data = read_event_form(form)
    files = await get_files_by_field(form, content_types.EVENT.upload_fields)
    logger.info(f"Creating event for user {current.id}")

    result = await services.events.create(data, files, author_id=current.id)
    return write_response(result, "event", status=201)


@router.get("/list")
async def list_events(
    only_mine: bool = Query(False, alias="onlyMine"),
    current: CurrentUser = Depends(get_current_user),
    services: UserServices = Depends(get_user_services),
):
    result = await services.events.get_all(current.id if only_mine else None)
    return result_response(result, "events")


@router.get("/my-events")
async def my_events(
    current: CurrentUser = Depends(get_current_user),
    services: UserServices = Depends(get_user_services),
):
    return result_response(await services.events.get_by_user(current.id), "events")


@router.get("/{document_id}")
async def get_event(document_id: str, services: UserServices = Depends(get_user_services)):
    return result_response(await services.events.get_by_id(document_id), "event")


@router.put("/{document_id}")
async def update_event(
    document_id: str,
    request: Request,
    current: CurrentUser = Depends(get_current_user),
    services: UserServices = Depends(get_user_services),
):
    await load_owned(services.events, document_id, current.id)

    form = await request.form()
    data = read_event_form(form, partial=True)
    files = await get_files_by_field(form, content_types.EVENT.upload_fields)

    result = await services.events.update(document_id, data, files)
    return write_response(result, "event")


@router.delete("/{document_id}")
async def delete_event(
    document_id: str,
    current: CurrentUser = Depends(get_current_user),
    services: UserServices = Depends(get_user_services),
):
    await load_owned(services.events, document_id, current.id, MSG_DELETE_FORBIDDEN)
    return result_response(await services.events.delete(document_id))


@router.get("/{document_id}/comments")
async def event_comments(document_id: str, services: UserServices = Depends(get_user_services)):
    return result_response(await services.comments.get_by_entity("event", document_id), "comments")
