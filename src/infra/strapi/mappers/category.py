"""分类映射"""
from typing import Any, List, Optional

from src.domain.models import Category
from src.infra.strapi.mappers.shared import map_category, map_with_schema, safe_map, safe_map_many
from src.infra.strapi.schemas import RawCategory


def map_category_record(raw: Any) -> Category:
    data = map_with_schema(RawCategory, raw, "Neplatná data kategorie ze Strapi")
    return map_category(data)


def safe_map_category(raw: Any) -> Optional[Category]:
    return safe_map(map_category_record, raw)


def safe_map_categories(raws: Optional[List[Any]]) -> List[Category]:
    return safe_map_many(map_category_record, raws)
