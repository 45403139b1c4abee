"""
写操作载荷（Pydantic 模型）

职责：
1. 校验来自表单 / JSON 的输入，错误消息为面向用户的捷克语
2. 通过 camelCase 别名直接生成内容仓库所需的字段名（model_dump(by_alias=True)）
3. parse_request() 把 Pydantic 校验异常转换为领域 ValidationError（取第一条消息）
"""
from __future__ import annotations

import math
import re
from datetime import date, time
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidatorFunctionWrapHandler,
    field_validator,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from src.core.errors import ValidationError
from src.domain.models import EventType

M = TypeVar("M", bound=BaseModel)

# ==================== 校验消息 ====================

MSG_HOME_TEAM = "Domácí tým je povinný"
MSG_AWAY_TEAM = "Hostující tým je povinný"
MSG_SCORE_INT = "Skóre musí být celé číslo"
MSG_SCORE_NEGATIVE = "Skóre nemůže být záporné"
MSG_INVALID_DATE = "Neplatné datum"
MSG_INVALID_TIME = "Neplatný čas"
MSG_EVENT_NAME = "Název je povinný"
MSG_EVENT_TYPE = "Neplatný typ události"
MSG_DATE_FROM = "Datum od je povinné"
MSG_DATE_RANGE = "Datum do musí být stejné nebo pozdější než datum od"
MSG_TOURNAMENT_NAME = "Název turnaje je povinný"
MSG_TOURNAMENT_REF = "Turnaj je povinný"
MSG_PLAYER_TITLE = "Název ocenění je povinný"
MSG_PLAYER_NAME = "Jméno hráče je povinné"
MSG_COMMENT_CONTENT = "Komentář nesmí být prázdný"
MSG_EMAIL = "Neplatný formát emailu"
MSG_PASSWORD_REQUIRED = "Heslo je povinné"
MSG_FIRST_NAME = "Jméno je povinné"
MSG_LAST_NAME = "Příjmení je povinné"
MSG_JOB_TITLE = "Funkce je povinná"
MSG_CURRENT_PASSWORD = "Současné heslo je povinné"
MSG_CONFIRM_PASSWORD = "Potvrzení hesla je povinné"
MSG_PASSWORD_MISMATCH = "Hesla se neshodují"


# ==================== 校验工具 ====================

def _required_text(value: Any, message: str) -> str:
    if value is None:
        raise ValueError(message)
    text = str(value).strip()
    if not text:
        raise ValueError(message)
    return text


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _score(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        raise ValueError(MSG_SCORE_INT)
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise ValueError(MSG_SCORE_INT) from None
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        raise ValueError(MSG_SCORE_INT)
    if not math.isfinite(number) or number != int(number):
        raise ValueError(MSG_SCORE_INT)
    if number < 0:
        raise ValueError(MSG_SCORE_NEGATIVE)
    return int(number)


def _iso_date(value: Any, required_message: Optional[str] = None) -> Optional[str]:
    text = _optional_text(value)
    if text is None:
        if required_message:
            raise ValueError(required_message)
        return None
    try:
        date.fromisoformat(text[:10])
    except ValueError:
        raise ValueError(MSG_INVALID_DATE) from None
    return text


def _iso_time(value: Any) -> Optional[str]:
    text = _optional_text(value)
    if text is None:
        return None
    try:
        time.fromisoformat(text)
    except ValueError:
        raise ValueError(MSG_INVALID_TIME) from None
    return text


def _password_rules(value: Any, prefix: str = "Heslo") -> str:
    text = "" if value is None else str(value)
    if len(text) < 8:
        raise ValueError(f"{prefix} musí mít alespoň 8 znaků")
    if not re.search(r"[A-Z]", text):
        raise ValueError(f"{prefix} musí obsahovat alespoň jedno velké písmeno")
    if not re.search(r"[a-z]", text):
        raise ValueError(f"{prefix} musí obsahovat alespoň jedno malé písmeno")
    if not re.search(r"[0-9]", text):
        raise ValueError(f"{prefix} musí obsahovat alespoň jednu číslici")
    return text


def first_error_message(exc: PydanticValidationError) -> str:
    """取第一条校验错误的用户消息（ValueError 原文优先）"""
    errors = exc.errors()
    if not errors:
        return "Neplatné údaje"
    first = errors[0]
    ctx_error = (first.get("ctx") or {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    return first.get("msg", "Neplatné údaje")


def parse_request(model_cls: Type[M], data: Any) -> M:
    """校验输入；失败时抛出领域 ValidationError"""
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            first_error_message(e),
            {"errors": e.errors(include_url=False, include_context=False)},
        ) from e


# ==================== 基类 ====================

class RequestModel(BaseModel):
    """写载荷基类：camelCase 别名，忽略未知字段"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_payload(self, partial: bool = False) -> Dict[str, Any]:
        """生成仓库载荷；partial=True 时只包含显式设置的字段"""
        if partial:
            return self.model_dump(by_alias=True, exclude_unset=True, mode="json")
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ==================== 比赛结果 ====================

class _MatchFields(RequestModel):
    @field_validator("home_team", mode="before", check_fields=False)
    @classmethod
    def check_home_team(cls, v: Any) -> str:
        return _required_text(v, MSG_HOME_TEAM)

    @field_validator("away_team", mode="before", check_fields=False)
    @classmethod
    def check_away_team(cls, v: Any) -> str:
        return _required_text(v, MSG_AWAY_TEAM)

    @field_validator("home_score", "away_score", mode="before", check_fields=False)
    @classmethod
    def check_scores(cls, v: Any) -> int:
        return _score(v)

    @field_validator(
        "home_goalscorers", "away_goalscorers", "match_report", "images_url",
        mode="before", check_fields=False,
    )
    @classmethod
    def check_optional(cls, v: Any) -> Optional[str]:
        return _optional_text(v)

    @field_validator("match_date", mode="before", check_fields=False)
    @classmethod
    def check_match_date(cls, v: Any) -> Optional[str]:
        return _iso_date(v)


class MatchResultCreate(_MatchFields):
    home_team: str = Field(default=None, validate_default=True)
    away_team: str = Field(default=None, validate_default=True)
    home_score: int = Field(default=None, validate_default=True)
    away_score: int = Field(default=None, validate_default=True)
    home_goalscorers: Optional[str] = None
    away_goalscorers: Optional[str] = None
    match_report: Optional[str] = None
    match_date: Optional[str] = None
    images_url: Optional[str] = None
    categories: Optional[List[str]] = None
    author: Optional[int] = None


class MatchResultUpdate(_MatchFields):
    home_team: Optional[str] = None
    away_team: Optional[str] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    home_goalscorers: Optional[str] = None
    away_goalscorers: Optional[str] = None
    match_report: Optional[str] = None
    match_date: Optional[str] = None
    images_url: Optional[str] = None
    categories: Optional[List[str]] = None


# ==================== 活动 ====================

class _EventFields(RequestModel):
    @field_validator("name", mode="before", check_fields=False)
    @classmethod
    def check_name(cls, v: Any) -> str:
        return _required_text(v, MSG_EVENT_NAME)

    @field_validator("event_type", mode="before", check_fields=False)
    @classmethod
    def check_event_type(cls, v: Any) -> str:
        try:
            return EventType(v).value
        except ValueError:
            raise ValueError(MSG_EVENT_TYPE) from None

    @field_validator("date_to", "publish_date", mode="before", check_fields=False)
    @classmethod
    def check_dates(cls, v: Any) -> Optional[str]:
        return _iso_date(v)

    @field_validator("event_time", "event_time_to", mode="before", check_fields=False)
    @classmethod
    def check_times(cls, v: Any) -> Optional[str]:
        return _iso_time(v)

    @field_validator("description", mode="before", check_fields=False)
    @classmethod
    def check_description(cls, v: Any) -> Optional[str]:
        return _optional_text(v)

    @model_validator(mode="after")
    def check_date_range(self):
        date_from = getattr(self, "date_from", None)
        date_to = getattr(self, "date_to", None)
        if date_from and date_to and date_to[:10] < date_from[:10]:
            raise ValueError(MSG_DATE_RANGE)
        return self


class EventCreate(_EventFields):
    name: str = Field(default=None, validate_default=True)
    event_type: str = Field(default=EventType.UPCOMING.value, validate_default=True)
    date_from: str = Field(default=None, validate_default=True)
    date_to: Optional[str] = None
    publish_date: Optional[str] = None
    event_time: Optional[str] = None
    event_time_to: Optional[str] = None
    description: Optional[str] = None
    requires_photographer: bool = False
    categories: Optional[List[str]] = None
    author: Optional[int] = None

    @field_validator("date_from", mode="before")
    @classmethod
    def check_date_from(cls, v: Any) -> str:
        return _iso_date(v, MSG_DATE_FROM)


class EventUpdate(_EventFields):
    name: Optional[str] = None
    event_type: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    publish_date: Optional[str] = None
    event_time: Optional[str] = None
    event_time_to: Optional[str] = None
    description: Optional[str] = None
    requires_photographer: Optional[bool] = None
    categories: Optional[List[str]] = None

    @field_validator("date_from", mode="before")
    @classmethod
    def check_date_from(cls, v: Any) -> Optional[str]:
        return _iso_date(v, MSG_DATE_FROM)


# ==================== 赛事 ====================

class TournamentPlayerInput(RequestModel):
    title: str = Field(default=None, validate_default=True)
    player_name: str = Field(default=None, validate_default=True)

    @field_validator("title", mode="before")
    @classmethod
    def check_title(cls, v: Any) -> str:
        return _required_text(v, MSG_PLAYER_TITLE)

    @field_validator("player_name", mode="before")
    @classmethod
    def check_player_name(cls, v: Any) -> str:
        return _required_text(v, MSG_PLAYER_NAME)


class _TournamentFields(RequestModel):
    @field_validator("name", mode="before", check_fields=False)
    @classmethod
    def check_name(cls, v: Any) -> str:
        return _required_text(v, MSG_TOURNAMENT_NAME)

    @field_validator("description", "location", "images_url", mode="before", check_fields=False)
    @classmethod
    def check_optional(cls, v: Any) -> Optional[str]:
        return _optional_text(v)

    @field_validator("date_to", mode="before", check_fields=False)
    @classmethod
    def check_date_to(cls, v: Any) -> Optional[str]:
        return _iso_date(v)

    @model_validator(mode="after")
    def check_date_range(self):
        date_from = getattr(self, "date_from", None)
        date_to = getattr(self, "date_to", None)
        if date_from and date_to and date_to[:10] < date_from[:10]:
            raise ValueError(MSG_DATE_RANGE)
        return self


class TournamentCreate(_TournamentFields):
    name: str = Field(default=None, validate_default=True)
    description: Optional[str] = None
    location: Optional[str] = None
    date_from: str = Field(default=None, validate_default=True)
    date_to: Optional[str] = None
    images_url: Optional[str] = None
    categories: Optional[List[str]] = None
    players: Optional[List[TournamentPlayerInput]] = None
    author: Optional[int] = None

    @field_validator("date_from", mode="before")
    @classmethod
    def check_date_from(cls, v: Any) -> str:
        return _iso_date(v, MSG_DATE_FROM)


class TournamentUpdate(_TournamentFields):
    name: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    images_url: Optional[str] = None
    categories: Optional[List[str]] = None
    players: Optional[List[TournamentPlayerInput]] = None

    @field_validator("date_from", mode="before")
    @classmethod
    def check_date_from(cls, v: Any) -> Optional[str]:
        return _iso_date(v, MSG_DATE_FROM)


# ==================== 赛事内比赛 ====================

class InlineTournamentMatch(_MatchFields):
    """随赛事一起提交的比赛（尚无赛事 id）"""
    home_team: str = Field(default=None, validate_default=True)
    away_team: str = Field(default=None, validate_default=True)
    home_score: int = Field(default=None, validate_default=True)
    away_score: int = Field(default=None, validate_default=True)
    home_goalscorers: Optional[str] = None
    away_goalscorers: Optional[str] = None


class TournamentMatchCreate(InlineTournamentMatch):
    tournament: Union[int, str] = Field(default=None, validate_default=True)
    author: Optional[int] = None

    @field_validator("tournament", mode="before")
    @classmethod
    def check_tournament(cls, v: Any) -> Union[int, str]:
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError(MSG_TOURNAMENT_REF)
        return v


class TournamentMatchUpdate(_MatchFields):
    home_team: Optional[str] = None
    away_team: Optional[str] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    home_goalscorers: Optional[str] = None
    away_goalscorers: Optional[str] = None


# ==================== 评论 ====================

class CommentCreate(RequestModel):
    content: str = Field(default=None, validate_default=True)
    match_result: Optional[str] = None
    tournament: Optional[str] = None
    event: Optional[str] = None
    parent_comment: Optional[str] = None

    @field_validator("content", mode="before")
    @classmethod
    def check_content(cls, v: Any) -> str:
        return _required_text(v, MSG_COMMENT_CONTENT)

    @field_validator("match_result", "tournament", "event", "parent_comment", mode="before")
    @classmethod
    def check_refs(cls, v: Any) -> Optional[str]:
        return _optional_text(v)

    def parent_refs(self) -> Dict[str, str]:
        """已设置的父实体引用 {实体类型: documentId}"""
        refs = {
            "matchResult": self.match_result,
            "tournament": self.tournament,
            "event": self.event,
        }
        return {k: v for k, v in refs.items() if v}


# ==================== 认证 ====================

def _email(v: Any, handler: ValidatorFunctionWrapHandler) -> str:
    """交给 EmailStr 校验，失败时统一为捷克语消息"""
    try:
        return handler(_optional_text(v) or "")
    except PydanticValidationError:
        raise ValueError(MSG_EMAIL) from None


class LoginData(RequestModel):
    email: EmailStr = Field(default=None, validate_default=True)
    password: str = Field(default=None, validate_default=True)

    @field_validator("email", mode="wrap")
    @classmethod
    def check_email(cls, v: Any, handler: ValidatorFunctionWrapHandler) -> str:
        return _email(v, handler)

    @field_validator("password", mode="before")
    @classmethod
    def check_password(cls, v: Any) -> str:
        if not v:
            raise ValueError(MSG_PASSWORD_REQUIRED)
        return str(v)


class ProfileUpdate(RequestModel):
    first_name: str = Field(default=None, validate_default=True)
    last_name: str = Field(default=None, validate_default=True)
    job_title: str = Field(default=None, validate_default=True)

    @field_validator("first_name", mode="before")
    @classmethod
    def check_first_name(cls, v: Any) -> str:
        return _required_text(v, MSG_FIRST_NAME)

    @field_validator("last_name", mode="before")
    @classmethod
    def check_last_name(cls, v: Any) -> str:
        return _required_text(v, MSG_LAST_NAME)

    @field_validator("job_title", mode="before")
    @classmethod
    def check_job_title(cls, v: Any) -> str:
        return _required_text(v, MSG_JOB_TITLE)


class RegistrationData(ProfileUpdate):
    email: EmailStr = Field(default=None, validate_default=True)
    password: str = Field(default=None, validate_default=True)
    registration_secret: Optional[str] = None

    @field_validator("email", mode="wrap")
    @classmethod
    def check_email(cls, v: Any, handler: ValidatorFunctionWrapHandler) -> str:
        return _email(v, handler)

    @field_validator("password", mode="before")
    @classmethod
    def check_password(cls, v: Any) -> str:
        return _password_rules(v)


class PasswordChange(RequestModel):
    current_password: str = Field(default=None, validate_default=True)
    new_password: str = Field(default=None, validate_default=True)
    confirm_password: str = Field(default=None, validate_default=True)

    @field_validator("current_password", mode="before")
    @classmethod
    def check_current(cls, v: Any) -> str:
        if not v:
            raise ValueError(MSG_CURRENT_PASSWORD)
        return str(v)

    @field_validator("new_password", mode="before")
    @classmethod
    def check_new(cls, v: Any) -> str:
        return _password_rules(v, "Nové heslo")

    @field_validator("confirm_password", mode="before")
    @classmethod
    def check_confirm(cls, v: Any) -> str:
        if not v:
            raise ValueError(MSG_CONFIRM_PASSWORD)
        return str(v)

    @model_validator(mode="after")
    def check_matches(self):
        if self.new_password != self.confirm_password:
            raise ValueError(MSG_PASSWORD_MISMATCH)
        return self
