"""评论 API 路由"""
import logging

from fastapi import APIRouter, Body, Depends, Query

from src.services.api.dependencies import CurrentUser, get_current_user, get_user_services
from src.services.api.ownership import MSG_DELETE_FORBIDDEN, load_owned
from src.services.api.responses import ApiErrors, result_response
from src.services.container import UserServices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/comments", tags=["Comments"])


@router.get("")
async def list_comments(
    entity_type: str = Query("", alias="entityType"),
    entity_id: str = Query("", alias="entityId"),
    services: UserServices = Depends(get_user_services),
):
    result = await services.comments.get_by_entity(entity_type, entity_id)
    return result_response(result, "comments")


@router.post("")
async def create_comment(
    payload: dict = Body(...),
    current: CurrentUser = Depends(get_current_user),
    services: UserServices = Depends(get_user_services),
):
    logger.info(f"Creating comment for user {current.id}")
    result = await services.comments.create(payload, current.user)
    if not result.success:
        if result.error.status_code == 400:
            return ApiErrors.bad_request(result.error.message, result.error.details)
        return ApiErrors.server_error(result.error.message)
    return result_response(result, "comment")


@router.delete("/{document_id}")
async def delete_comment(
    document_id: str,
    current: CurrentUser = Depends(get_current_user),
    services: UserServices = Depends(get_user_services),
):
    await load_owned(services.comments, document_id, current.id, MSG_DELETE_FORBIDDEN)
    return result_response(await services.comments.delete(document_id))
