"""Strapi 查询参数构造（方括号语法）。"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

Populate = Union[str, List[str], Dict[str, Any]]
Sort = Union[str, List[str]]


@dataclass
class StrapiQuery:
    """一次查询的 populate / filters / sort / pagination / fields"""
    populate: Optional[Populate] = None
    filters: Dict[str, Any] = field(default_factory=dict)
    sort: Optional[Sort] = None
    # page / pageSize / limit
    pagination: Dict[str, int] = field(default_factory=dict)
    fields: List[str] = field(default_factory=list)


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _flatten(prefix: str, value: Any, params: List[Tuple[str, str]], index_lists: bool) -> None:
    if isinstance(value, dict):
        for key, item in value.items():
            _flatten(f"{prefix}[{key}]", item, params, index_lists)
    elif isinstance(value, (list, tuple)) and index_lists:
        for i, item in enumerate(value):
            params.append((f"{prefix}[{i}]", _scalar(item)))
    else:
        params.append((prefix, _scalar(value)))


def build_query_params(query: Optional[StrapiQuery]) -> List[Tuple[str, str]]:
    """
    把 StrapiQuery 展开为有序的查询参数列表

    例: populate={"author": {"fields": ["id", "email"]}}
        -> populate[author][fields][0]=id, populate[author][fields][1]=email
    """
    params: List[Tuple[str, str]] = []
    if query is None:
        return params

    if query.populate:
        if isinstance(query.populate, str):
            params.append(("populate", query.populate))
        elif isinstance(query.populate, list):
            for i, item in enumerate(query.populate):
                params.append((f"populate[{i}]", item))
        else:
            _flatten("populate", query.populate, params, index_lists=True)

    if query.filters:
        # 过滤器中的列表（如 $in）按索引展开
        _flatten("filters", query.filters, params, index_lists=True)

    if query.sort:
        if isinstance(query.sort, str):
            params.append(("sort", query.sort))
        else:
            for i, item in enumerate(query.sort):
                params.append((f"sort[{i}]", item))

    for key in ("page", "pageSize", "limit"):
        if query.pagination.get(key) is not None:
            params.append((f"pagination[{key}]", str(query.pagination[key])))

    for i, name in enumerate(query.fields):
        params.append((f"fields[{i}]", name))

    return params
