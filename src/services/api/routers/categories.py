"""分类 API 路由（公开，无需登录）"""
import logging

from fastapi import APIRouter, Depends

from src.services.api.dependencies import get_container
from src.services.api.responses import ApiErrors, api_success
from src.services.container import ServiceContainer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/categories", tags=["Categories"])


@router.get("")
async def list_categories(container: ServiceContainer = Depends(get_container)):
    result = await container.categories.get_all()
    if not result.success:
        logger.error(f"Fetching categories failed: {result.error.message}")
        return ApiErrors.server_error("Nepodařilo se načíst kategorie")
    return api_success({"categories": result.data})
