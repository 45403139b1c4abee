"""
比赛结果映射

旧记录兼容：match_date 为 null 时取 createdAt 的日期部分；分类为 null 时使用默认分类；
可选文本字段的空字符串视为未填写。
"""
from functools import partial
from typing import Any, List, Optional

from src.domain.models import MatchResult
from src.infra.strapi.mappers.shared import (
    empty_to_none,
    extract_user_id,
    map_categories,
    map_media_to_files,
    map_media_to_images,
    map_user_info,
    map_with_schema,
    safe_map,
    safe_map_many,
)
from src.infra.strapi.schemas import RawMatchResult

ERROR_MESSAGE = "Neplatná data výsledku zápasu ze Strapi"


def map_match_result(raw: Any, uploads_url: str = "") -> MatchResult:
    data = map_with_schema(RawMatchResult, raw, ERROR_MESSAGE)

    return MatchResult(
        id=data.document_id,
        home_team=data.home_team,
        away_team=data.away_team,
        home_score=data.home_score,
        away_score=data.away_score,
        match_date=data.match_date or data.created_at.split("T")[0],
        created_at=data.created_at,
        updated_at=data.updated_at,
        categories=map_categories(data.categories),
        home_goalscorers=empty_to_none(data.home_goalscorers),
        away_goalscorers=empty_to_none(data.away_goalscorers),
        match_report=empty_to_none(data.match_report),
        images_url=empty_to_none(data.images_url),
        images=map_media_to_images(data.images, uploads_url),
        files=map_media_to_files(data.files, uploads_url),
        author_id=extract_user_id(data.author) or 0,
        author=map_user_info(data.author),
        modified_by=map_user_info(data.last_modified_by),
    )


def safe_map_match_result(raw: Any, uploads_url: str = "") -> Optional[MatchResult]:
    return safe_map(partial(map_match_result, uploads_url=uploads_url), raw)


def safe_map_match_results(raws: Optional[List[Any]], uploads_url: str = "") -> List[MatchResult]:
    return safe_map_many(partial(map_match_result, uploads_url=uploads_url), raws)
