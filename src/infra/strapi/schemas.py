"""
Strapi 原始记录的结构定义（Pydantic v2）

职责：
1. 在映射边界校验外部记录的结构，缺少必填字段即失败
2. 关系字段同时接受扁平 {id, ...} 与嵌套 {data: {...} | null} 两种形态，
   通过 "是否存在 data 键" 的判别函数选择分支
3. 允许未知字段（extra="allow"），内容仓库新增字段不会导致映射失败
"""
from __future__ import annotations

from typing import Annotated, Any, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Discriminator, Field, Tag
from pydantic.alias_generators import to_camel


def _ref_shape(value: Any) -> str:
    """关系字段判别：含 data 键为嵌套形态，否则为扁平形态"""
    if isinstance(value, dict):
        return "nested" if "data" in value else "flat"
    return "nested" if hasattr(value, "data") else "flat"


class RawModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, extra="allow")


# ==================== 媒体 ====================

class RawMediaFormat(RawModel):
    url: str
    width: int
    height: int


class RawMediaFormats(RawModel):
    thumbnail: Optional[RawMediaFormat] = None
    small: Optional[RawMediaFormat] = None
    medium: Optional[RawMediaFormat] = None
    large: Optional[RawMediaFormat] = None


class RawMedia(RawModel):
    id: int
    document_id: Optional[str] = None
    name: str
    alternative_text: Optional[str] = None
    caption: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    formats: Optional[RawMediaFormats] = None
    ext: str
    mime: str
    size: float
    url: str
    preview_url: Optional[str] = None
    provider: str
    created_at: str
    updated_at: str


# ==================== 用户关系 ====================

class RawUserInfo(RawModel):
    id: int
    document_id: Optional[str] = None
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    email: Optional[str] = None


class NestedUserInfo(RawModel):
    data: Optional[RawUserInfo] = None


UserRef = Annotated[
    Union[
        Annotated[RawUserInfo, Tag("flat")],
        Annotated[NestedUserInfo, Tag("nested")],
    ],
    Discriminator(_ref_shape),
]


# ==================== 通用关系引用 ====================

class RawEntityRef(RawModel):
    id: Optional[int] = None
    document_id: Optional[str] = None


class NestedEntityRef(RawModel):
    data: Optional[RawEntityRef] = None


EntityRef = Annotated[
    Union[
        Annotated[RawEntityRef, Tag("flat")],
        Annotated[NestedEntityRef, Tag("nested")],
    ],
    Discriminator(_ref_shape),
]


# ==================== 分类 ====================

class RawCategory(RawModel):
    id: int
    document_id: str
    name: str
    slug: str
    sort_order: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# ==================== 内容实体 ====================

class RawMatchResult(RawModel):
    id: int
    document_id: str
    home_team: str
    away_team: str
    home_score: int
    away_score: int
    home_goalscorers: Optional[str] = None
    away_goalscorers: Optional[str] = None
    match_report: Optional[str] = None
    categories: Optional[List[RawCategory]] = None
    match_date: Optional[str] = None
    images_url: Optional[str] = None
    images: Optional[List[RawMedia]] = None
    files: Optional[List[RawMedia]] = None
    author: Optional[UserRef] = None
    last_modified_by: Optional[UserRef] = None
    created_at: str
    updated_at: str


class RawEvent(RawModel):
    id: int
    document_id: str
    name: str
    event_type: str
    date_from: str
    date_to: Optional[str] = None
    publish_date: Optional[str] = None
    event_time: Optional[str] = None
    event_time_to: Optional[str] = None
    description: Optional[str] = None
    requires_photographer: Optional[bool] = None
    categories: Optional[List[RawCategory]] = None
    photos: Optional[List[RawMedia]] = None
    files: Optional[List[RawMedia]] = None
    author: Optional[UserRef] = None
    modified_by: Optional[UserRef] = None
    created_at: str
    updated_at: str


class RawTournamentPlayer(RawModel):
    id: Optional[int] = None
    title: str
    player_name: str


class RawTournamentMatch(RawModel):
    id: int
    document_id: str
    home_team: str
    away_team: str
    home_score: int
    away_score: int
    home_goalscorers: Optional[str] = None
    away_goalscorers: Optional[str] = None
    tournament: Optional[EntityRef] = None
    author: Optional[UserRef] = None
    modified_by: Optional[UserRef] = None
    created_at: str
    updated_at: str


class RawTournament(RawModel):
    id: int
    document_id: str
    name: str
    description: Optional[str] = None
    location: Optional[str] = None
    date_from: str
    date_to: Optional[str] = None
    categories: Optional[List[RawCategory]] = None
    images_url: Optional[str] = None
    photos: Optional[List[RawMedia]] = None
    players: Optional[List[RawTournamentPlayer]] = None
    # 嵌入的比赛逐条 safe_map，单条损坏不影响赛事本身
    tournament_matches: Optional[List[Any]] = Field(
        default=None,
        validation_alias=AliasChoices("tournamentMatches", "tournament_matches"),
    )
    author: Optional[UserRef] = None
    modified_by: Optional[UserRef] = None
    created_at: str
    updated_at: str


# ==================== 评论 ====================

class NestedReplies(RawModel):
    data: Optional[List["RawComment"]] = None


class RawComment(RawModel):
    id: int
    document_id: str
    content: str
    author: Optional[UserRef] = None
    parent_comment: Optional[EntityRef] = None
    replies: Optional[Union[List["RawComment"], NestedReplies]] = None
    created_at: str
    updated_at: str


NestedReplies.model_rebuild()
RawComment.model_rebuild()


# ==================== 用户 ====================

class RawUser(RawModel):
    id: int
    document_id: Optional[str] = None
    username: str
    email: str
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    job_title: Optional[str] = None
    confirmed: Optional[bool] = None
    blocked: Optional[bool] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
