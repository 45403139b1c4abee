"""活动映射"""
from functools import partial
from typing import Any, List, Optional

from src.domain.models import Event
from src.infra.strapi.mappers.shared import (
    extract_user_id,
    map_categories,
    map_media_to_files,
    map_media_to_images,
    map_user_info,
    map_with_schema,
    safe_map,
    safe_map_many,
)
from src.infra.strapi.schemas import RawEvent

ERROR_MESSAGE = "Neplatná data události ze Strapi"


def map_event(raw: Any, uploads_url: str = "") -> Event:
    data = map_with_schema(RawEvent, raw, ERROR_MESSAGE)

    return Event(
        id=data.document_id,
        name=data.name,
        event_type=data.event_type,
        date_from=data.date_from,
        created_at=data.created_at,
        updated_at=data.updated_at,
        date_to=data.date_to,
        publish_date=data.publish_date,
        event_time=data.event_time,
        event_time_to=data.event_time_to,
        description=data.description,
        requires_photographer=bool(data.requires_photographer),
        categories=map_categories(data.categories),
        photos=map_media_to_images(data.photos, uploads_url),
        files=map_media_to_files(data.files, uploads_url),
        author_id=extract_user_id(data.author) or 0,
        author=map_user_info(data.author),
        modified_by=map_user_info(data.modified_by),
    )


def safe_map_event(raw: Any, uploads_url: str = "") -> Optional[Event]:
    return safe_map(partial(map_event, uploads_url=uploads_url), raw)


def safe_map_events(raws: Optional[List[Any]], uploads_url: str = "") -> List[Event]:
    return safe_map_many(partial(map_event, uploads_url=uploads_url), raws)
