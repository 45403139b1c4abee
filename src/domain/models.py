"""
领域实体快照

所有实体均为不可变的值快照（frozen dataclass），每次变更都需要重新从内容仓库读取。
实体的 id 一律是仓库的 documentId（字符串）；数字行 id 仅在上传接口需要时使用。
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# ==================== 媒体 ====================

@dataclass(frozen=True)
class MediaFormat:
    """响应式图片的某个尺寸变体"""
    url: str
    width: int
    height: int


@dataclass(frozen=True)
class FileAsset:
    id: int
    name: str
    url: str
    size: float
    ext: str
    mime: str
    provider: str = "local"
    alternative_text: Optional[str] = None
    caption: Optional[str] = None
    preview_url: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ImageAsset(FileAsset):
    width: int = 0
    height: int = 0
    # thumbnail / small / medium / large
    formats: Dict[str, MediaFormat] = field(default_factory=dict)


# ==================== 用户与分类 ====================

@dataclass(frozen=True)
class UserInfo:
    """关联关系中的作者 / 修改人摘要"""
    id: int
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    slug: str
    sort_order: int = 0


# 旧记录在引入分类前创建，分类为 null 时使用该默认值
DEFAULT_CATEGORY = Category(id="", name="Nezařazeno", slug="nezarazeno", sort_order=0)


@dataclass(frozen=True)
class User:
    id: int
    email: str
    username: str
    first_name: str = ""
    last_name: str = ""
    job_title: str = ""
    confirmed: bool = True
    blocked: bool = False
    created_at: str = ""
    updated_at: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.email

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ==================== 内容实体 ====================

@dataclass(frozen=True)
class MatchResult:
    id: str
    home_team: str
    away_team: str
    home_score: int
    away_score: int
    match_date: str
    created_at: str
    updated_at: str
    categories: List[Category] = field(default_factory=list)
    home_goalscorers: Optional[str] = None
    away_goalscorers: Optional[str] = None
    match_report: Optional[str] = None
    images_url: Optional[str] = None
    images: List[ImageAsset] = field(default_factory=list)
    files: List[FileAsset] = field(default_factory=list)
    author_id: int = 0
    author: Optional[UserInfo] = None
    modified_by: Optional[UserInfo] = None

    @property
    def category(self) -> str:
        """主分类名称，用于通知等单值展示"""
        return ", ".join(c.name for c in self.categories) or DEFAULT_CATEGORY.name

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class EventType(str, Enum):
    UPCOMING = "nadcházející"
    PAST = "proběhlá"


@dataclass(frozen=True)
class Event:
    id: str
    name: str
    event_type: str
    date_from: str
    created_at: str
    updated_at: str
    date_to: Optional[str] = None
    publish_date: Optional[str] = None
    event_time: Optional[str] = None
    event_time_to: Optional[str] = None
    description: Optional[str] = None
    requires_photographer: bool = False
    categories: List[Category] = field(default_factory=list)
    photos: List[ImageAsset] = field(default_factory=list)
    files: List[FileAsset] = field(default_factory=list)
    author_id: int = 0
    author: Optional[UserInfo] = None
    modified_by: Optional[UserInfo] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TournamentPlayer:
    """赛事奖项：称号 + 球员（无序列表）"""
    title: str
    player_name: str
    id: Optional[int] = None


@dataclass(frozen=True)
class TournamentMatch:
    id: str
    home_team: str
    away_team: str
    home_score: int
    away_score: int
    created_at: str
    updated_at: str
    # 外键归属，不是包含关系
    tournament_id: int = 0
    home_goalscorers: Optional[str] = None
    away_goalscorers: Optional[str] = None
    author_id: int = 0
    author: Optional[UserInfo] = None
    modified_by: Optional[UserInfo] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Tournament:
    id: str
    name: str
    date_from: str
    created_at: str
    updated_at: str
    description: Optional[str] = None
    location: Optional[str] = None
    date_to: Optional[str] = None
    categories: List[Category] = field(default_factory=list)
    photos: List[ImageAsset] = field(default_factory=list)
    images_url: Optional[str] = None
    players: List[TournamentPlayer] = field(default_factory=list)
    matches: List[TournamentMatch] = field(default_factory=list)
    author_id: int = 0
    author: Optional[UserInfo] = None
    modified_by: Optional[UserInfo] = None

    @property
    def category(self) -> str:
        return ", ".join(c.name for c in self.categories) or DEFAULT_CATEGORY.name

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Comment:
    """评论树节点；拉取的集合最多两层（顶层评论 + 直接回复）"""
    id: str
    row_id: int
    content: str
    author: UserInfo
    created_at: str
    updated_at: str
    parent_comment_id: Optional[str] = None
    replies: List["Comment"] = field(default_factory=list)

    @property
    def author_id(self) -> int:
        return self.author.id

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ==================== 分页 ====================

@dataclass(frozen=True)
class Pagination:
    page: int
    page_size: int
    page_count: int
    total: int


@dataclass(frozen=True)
class PaginatedResult:
    data: List[Any]
    pagination: Pagination

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": [item.to_dict() if hasattr(item, "to_dict") else item for item in self.data],
            "pagination": asdict(self.pagination),
        }


# ==================== 待上传文件 ====================

@dataclass(frozen=True)
class FileUpload:
    """待上传的文件（已读入内存）"""
    filename: str
    content: bytes = field(repr=False)
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)
