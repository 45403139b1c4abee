"""活动仓库"""
from typing import Any

from src.domain.models import Event
from src.infra.strapi.mappers import map_event
from src.repositories.base import UploadingRepository
from src.services.config import content_types


class EventRepository(UploadingRepository[Event]):
    content_type = content_types.EVENT
    default_populate = "*"
    has_categories = True
    not_found_message = "Událost s ID {id} nebyla nalezena"

    def map_record(self, raw: Any) -> Event:
        return map_event(raw, self.client.uploads_url)
