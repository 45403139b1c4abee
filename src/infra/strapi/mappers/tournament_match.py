"""赛事内比赛映射"""
from typing import Any, List, Optional

from src.domain.models import TournamentMatch
from src.infra.strapi.mappers.shared import (
    extract_relation_id,
    extract_user_id,
    map_user_info,
    map_with_schema,
    safe_map,
    safe_map_many,
)
from src.infra.strapi.schemas import RawTournamentMatch

ERROR_MESSAGE = "Neplatná data turnajového zápasu ze Strapi"


def map_tournament_match(raw: Any) -> TournamentMatch:
    data = map_with_schema(RawTournamentMatch, raw, ERROR_MESSAGE)

    return TournamentMatch(
        id=data.document_id,
        home_team=data.home_team,
        away_team=data.away_team,
        home_score=data.home_score,
        away_score=data.away_score,
        created_at=data.created_at,
        updated_at=data.updated_at,
        tournament_id=extract_relation_id(data.tournament) or 0,
        home_goalscorers=data.home_goalscorers,
        away_goalscorers=data.away_goalscorers,
        author_id=extract_user_id(data.author) or 0,
        author=map_user_info(data.author),
        modified_by=map_user_info(data.modified_by),
    )


def safe_map_tournament_match(raw: Any) -> Optional[TournamentMatch]:
    return safe_map(map_tournament_match, raw)


def safe_map_tournament_matches(raws: Optional[List[Any]]) -> List[TournamentMatch]:
    return safe_map_many(map_tournament_match, raws)
