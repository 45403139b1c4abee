"""
Result 类型：显式的成功 / 失败容器

用于仓库层之上所有可失败操作的返回值，取代以异常作为预期失败的控制流。
- Ok(data) / Err(error) 以 success 字段区分
- OkWithWarnings 表示 "成功但有附带问题"（例如实体已保存、附件上传失败）
- 组合子：map_result / map_err / and_then / all_results
- 边界适配：from_try（同步）、from_awaitable（异步）
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    Iterable,
    List,
    Optional,
    TypeVar,
    Union,
)

from src.core.errors import AppError, to_app_error

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")
F = TypeVar("F")


@dataclass(frozen=True)
class Ok(Generic[T]):
    data: T
    success: bool = field(default=True, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": True, "data": self.data}


@dataclass(frozen=True)
class OkWithWarnings(Ok[T]):
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.warnings:
            body["warnings"] = list(self.warnings)
        return body


@dataclass(frozen=True)
class Err(Generic[E]):
    error: E
    success: bool = field(default=False, init=False)

    def to_dict(self) -> Dict[str, Any]:
        message = self.error.message if isinstance(self.error, AppError) else str(self.error)
        return {"success": False, "error": message}


Result = Union[Ok[T], Err[E]]


# ==================== 构造 ====================

def ok(data: T = None) -> Ok[T]:
    return Ok(data)


def err(error: E) -> Err[E]:
    return Err(error)


def ok_with_warnings(data: T, warnings: Optional[Iterable[str]] = None) -> OkWithWarnings[T]:
    return OkWithWarnings(data, warnings=list(warnings or []))


# ==================== 判断与取值 ====================

def is_ok(result: Result) -> bool:
    return result.success


def is_err(result: Result) -> bool:
    return not result.success


def unwrap(result: Result[T, E]) -> T:
    """取出成功值；失败时抛出其中的错误"""
    if result.success:
        return result.data
    if isinstance(result.error, BaseException):
        raise result.error
    raise ValueError(f"unwrap called on Err: {result.error!r}")


def unwrap_or(result: Result[T, E], default: T) -> T:
    return result.data if result.success else default


# ==================== 组合子 ====================

def map_result(result: Result[T, E], fn: Callable[[T], U]) -> Result[U, E]:
    if result.success:
        if isinstance(result, OkWithWarnings):
            return OkWithWarnings(fn(result.data), warnings=result.warnings)
        return Ok(fn(result.data))
    return result


def map_err(result: Result[T, E], fn: Callable[[E], F]) -> Result[T, F]:
    if result.success:
        return result
    return Err(fn(result.error))


def and_then(result: Result[T, E], fn: Callable[[T], Result[U, E]]) -> Result[U, E]:
    if result.success:
        return fn(result.data)
    return result


def all_results(results: Iterable[Result[T, E]]) -> Result[List[T], E]:
    """合并一组 Result；遇到第一个失败立即返回"""
    values: List[T] = []
    for result in results:
        if not result.success:
            return result
        values.append(result.data)
    return Ok(values)


# ==================== 边界适配 ====================

def from_try(fn: Callable[[], T]) -> Result[T, AppError]:
    try:
        return Ok(fn())
    except Exception as e:
        return Err(to_app_error(e))


async def from_awaitable(awaitable: Awaitable[T]) -> Result[T, AppError]:
    try:
        return Ok(await awaitable)
    except Exception as e:
        return Err(to_app_error(e))
