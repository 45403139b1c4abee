"""用户映射"""
from typing import Any, Optional

from src.domain.models import User
from src.infra.strapi.mappers.shared import map_with_schema, safe_map
from src.infra.strapi.schemas import RawUser

ERROR_MESSAGE = "Neplatná data uživatele ze Strapi"


def map_user(raw: Any) -> User:
    data = map_with_schema(RawUser, raw, ERROR_MESSAGE)

    return User(
        id=data.id,
        email=data.email,
        username=data.username,
        first_name=data.firstname or "",
        last_name=data.lastname or "",
        job_title=data.job_title or "",
        confirmed=True if data.confirmed is None else data.confirmed,
        blocked=bool(data.blocked),
        created_at=data.created_at or "",
        updated_at=data.updated_at or "",
    )


def safe_map_user(raw: Any) -> Optional[User]:
    return safe_map(map_user, raw)
