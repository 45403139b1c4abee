"""
Strapi 记录 -> 领域实体映射

每个实体族提供：
- map_x(raw): 结构不符时抛出 ValidationError（携带诊断信息与原始数据）
- safe_map_x(raw): 失败时记录日志并返回 None
- safe_map_xs(raws): 集合映射，过滤掉无法映射的记录
"""
from .category import map_category_record, safe_map_categories, safe_map_category
from .comment import map_comment, safe_map_comment, safe_map_comments
from .event import map_event, safe_map_event, safe_map_events
from .match_result import map_match_result, safe_map_match_result, safe_map_match_results
from .shared import (
    empty_to_none,
    extract_relation_id,
    extract_user_id,
    map_user_info,
    transform_image_url,
)
from .tournament import map_tournament, safe_map_tournament, safe_map_tournaments
from .tournament_match import (
    map_tournament_match,
    safe_map_tournament_match,
    safe_map_tournament_matches,
)
from .user import map_user, safe_map_user

__all__ = [
    "map_category_record",
    "safe_map_category",
    "safe_map_categories",
    "map_comment",
    "safe_map_comment",
    "safe_map_comments",
    "map_event",
    "safe_map_event",
    "safe_map_events",
    "map_match_result",
    "safe_map_match_result",
    "safe_map_match_results",
    "map_tournament",
    "safe_map_tournament",
    "safe_map_tournaments",
    "map_tournament_match",
    "safe_map_tournament_match",
    "safe_map_tournament_matches",
    "map_user",
    "safe_map_user",
    "map_user_info",
    "extract_user_id",
    "extract_relation_id",
    "empty_to_none",
    "transform_image_url",
]
