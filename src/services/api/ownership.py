"""记录归属检查：只有作者本人可以修改或删除自己的记录。"""
from typing import Any

from src.core.errors import ForbiddenError

MSG_EDIT_FORBIDDEN = "Nemáte oprávnění upravit tento záznam"
MSG_DELETE_FORBIDDEN = "Nemáte oprávnění smazat tento záznam"


async def load_owned(service: Any, document_id: str, user_id: int, message: str = MSG_EDIT_FORBIDDEN) -> Any:
    """读取记录并确认归属；不存在或无权限时抛出对应的 AppError"""
    result = await service.get_by_id(document_id)
    if not result.success:
        raise result.error
    if result.data.author_id != user_id:
        raise ForbiddenError(message)
    return result.data
