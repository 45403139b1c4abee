"""
赛事映射

嵌入的比赛可能出现在 tournamentMatches 或 tournament_matches 字段下，
逐条 safe_map，单条损坏的比赛被跳过而不是让整个赛事映射失败。
"""
from functools import partial
from typing import Any, List, Optional

from src.core.errors import ValidationError
from src.domain.models import Tournament, TournamentPlayer
from src.infra.strapi.mappers.shared import (
    extract_user_id,
    map_categories,
    map_media_to_images,
    map_user_info,
    map_with_schema,
    safe_map,
    safe_map_many,
)
from src.infra.strapi.mappers.tournament_match import safe_map_tournament_matches
from src.infra.strapi.schemas import RawTournament, RawTournamentPlayer

ERROR_MESSAGE = "Neplatná data turnaje ze Strapi"
EMPTY_MESSAGE = "Neplatná data turnaje: prázdná data"


def _map_players(players: Optional[List[RawTournamentPlayer]]) -> List[TournamentPlayer]:
    return [
        TournamentPlayer(title=p.title, player_name=p.player_name, id=p.id)
        for p in players or []
    ]


def map_tournament(raw: Any, uploads_url: str = "") -> Tournament:
    if not raw:
        raise ValidationError(EMPTY_MESSAGE, {"raw": raw})

    data = map_with_schema(RawTournament, raw, ERROR_MESSAGE)

    return Tournament(
        id=data.document_id,
        name=data.name,
        date_from=data.date_from,
        created_at=data.created_at,
        updated_at=data.updated_at,
        description=data.description,
        location=data.location,
        date_to=data.date_to,
        categories=map_categories(data.categories),
        photos=map_media_to_images(data.photos, uploads_url),
        images_url=data.images_url,
        players=_map_players(data.players),
        matches=safe_map_tournament_matches(data.tournament_matches),
        author_id=extract_user_id(data.author) or 0,
        author=map_user_info(data.author),
        modified_by=map_user_info(data.modified_by),
    )


def safe_map_tournament(raw: Any, uploads_url: str = "") -> Optional[Tournament]:
    return safe_map(partial(map_tournament, uploads_url=uploads_url), raw)


def safe_map_tournaments(raws: Optional[List[Any]], uploads_url: str = "") -> List[Tournament]:
    return safe_map_many(partial(map_tournament, uploads_url=uploads_url), raws)
