"""比赛结果仓库"""
from typing import Any

from src.domain.models import MatchResult
from src.infra.strapi.mappers import map_match_result
from src.repositories.base import UploadingRepository
from src.services.config import content_types

# 作者包含 email，供评论通知使用
DEFAULT_POPULATE = {
    "categories": True,
    "images": True,
    "files": True,
    "author": {"fields": ["id", "documentId", "firstname", "lastname", "email"]},
    "lastModifiedBy": {"fields": ["id", "documentId", "firstname", "lastname"]},
}


class MatchResultRepository(UploadingRepository[MatchResult]):
    content_type = content_types.MATCH_RESULT
    default_populate = DEFAULT_POPULATE
    has_categories = True
    not_found_message = "Výsledek zápasu s ID {id} nebyl nalezen"

    def map_record(self, raw: Any) -> MatchResult:
        return map_match_result(raw, self.client.uploads_url)
