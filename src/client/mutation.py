"""
写操作控制器（客户端）

封装单个写接口的请求生命周期：
1. 同一实例上一次调用未结束时直接拒绝（防重复提交），不排队
2. 可选地把调用参数转换为请求体（multipart / 原始 JSON 字符串 / 字典）
3. 带超时发送请求，超时即取消请求并返回超时消息
4. 解析响应信封 {success, data, warnings?} | {success: false, error, code?}；
   无法解析或非成功信封一律视为失败
5. 结束时（无论成败）释放占用标记并调用 on_success / on_error；
   on_success 抛出的异常转为失败结果，on_error 抛出的异常只记录日志
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

import httpx

from src.core.errors import DEFAULT_ERROR_MESSAGE, ErrorCode
from src.domain.models import FileUpload
from src.services.config import app_constants

logger = logging.getLogger(__name__)

MSG_IN_PROGRESS = "Operace již probíhá"
MSG_TIMEOUT = "Požadavek vypršel, zkuste to znovu"
MSG_INVALID_RESPONSE = "Neplatná odpověď serveru"
MSG_NETWORK = "Chyba připojení k serveru"


@dataclass
class MultipartBody:
    """multipart 请求体：普通字段 + (字段名, 文件) 列表"""
    fields: Dict[str, str] = field(default_factory=dict)
    files: List[Tuple[str, FileUpload]] = field(default_factory=list)

    def httpx_files(self) -> List[Tuple[str, Tuple[str, bytes, str]]]:
        return [(name, (f.filename, f.content, f.content_type)) for name, f in self.files]


@dataclass
class MutationState:
    is_loading: bool = False
    error: Optional[str] = None
    warnings: Optional[List[str]] = None
    data: Any = None


@dataclass(frozen=True)
class MutationResult:
    success: bool
    data: Any = None
    error: Optional[str] = None
    warnings: Optional[List[str]] = None
    code: Optional[str] = None


RequestBody = Union[MultipartBody, str, Mapping[str, Any]]


class MutationController:
    def __init__(
        self,
        endpoint: str,
        method: str = "POST",
        transform_variables: Optional[Callable[[Any], RequestBody]] = None,
        on_success: Optional[Callable[[Any, Optional[List[str]]], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
        timeout: float = app_constants.MUTATION_TIMEOUT,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.endpoint = endpoint
        self.method = method.upper()
        self.transform_variables = transform_variables
        self.on_success = on_success
        self.on_error = on_error
        self.timeout = timeout
        self.headers = dict(headers or {})
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None
        self._in_flight = False
        self.state = MutationState()

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def reset(self) -> None:
        self.state = MutationState()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ==================== 请求 ====================

    def _build_request_kwargs(self, body: RequestBody) -> Dict[str, Any]:
        headers = dict(self.headers)
        if isinstance(body, MultipartBody):
            # Content-Type（含 boundary）由 httpx 生成
            return {"data": body.fields, "files": body.httpx_files(), "headers": headers}
        headers["Content-Type"] = "application/json"
        if isinstance(body, str):
            return {"content": body.encode("utf-8"), "headers": headers}
        return {"json": dict(body), "headers": headers}

    @staticmethod
    def _parse_envelope(response: httpx.Response) -> Dict[str, Any]:
        try:
            envelope = response.json()
        except ValueError:
            raise ValueError(MSG_INVALID_RESPONSE) from None
        if not isinstance(envelope, dict) or "success" not in envelope:
            raise ValueError(MSG_INVALID_RESPONSE)
        return envelope

    def _fail(self, error: str, code: Optional[str] = None) -> MutationResult:
        self.state = MutationState(is_loading=False, error=error)
        if self.on_error:
            try:
                self.on_error(error)
            except Exception as e:
                logger.error(f"{self.method} {self.endpoint}: on_error hook failed: {e}", exc_info=True)
        return MutationResult(success=False, error=error, code=code)

    async def mutate(self, variables: Any = None) -> MutationResult:
        if self._in_flight:
            logger.info(f"{self.method} {self.endpoint}: rejected, previous call still in flight")
            return MutationResult(success=False, error=MSG_IN_PROGRESS)

        self._in_flight = True
        self.state = MutationState(is_loading=True, data=self.state.data)
        try:
            try:
                body = self.transform_variables(variables) if self.transform_variables else variables
                kwargs = self._build_request_kwargs(body if body is not None else {})
            except (TypeError, ValueError) as e:
                return self._fail(str(e) or DEFAULT_ERROR_MESSAGE, ErrorCode.INVALID_INPUT.value)

            try:
                response = await asyncio.wait_for(
                    self._client.request(self.method, self.endpoint, **kwargs),
                    timeout=self.timeout,
                )
            except (asyncio.TimeoutError, httpx.TimeoutException):
                logger.warning(f"{self.method} {self.endpoint}: timed out after {self.timeout}s")
                return self._fail(MSG_TIMEOUT, ErrorCode.TIMEOUT.value)
            except httpx.HTTPError as e:
                logger.warning(f"{self.method} {self.endpoint}: transport error {e}")
                return self._fail(MSG_NETWORK, ErrorCode.NETWORK_ERROR.value)

            try:
                envelope = self._parse_envelope(response)
            except ValueError as e:
                return self._fail(str(e), ErrorCode.STRAPI_ERROR.value)

            if not envelope.get("success"):
                return self._fail(envelope.get("error") or DEFAULT_ERROR_MESSAGE, envelope.get("code"))

            data = envelope.get("data")
            warnings = envelope.get("warnings") or None
            self.state = MutationState(is_loading=False, warnings=warnings, data=data)
            if self.on_success:
                try:
                    self.on_success(data, warnings)
                except Exception as e:
                    # 回调失败按失败处理，走 on_error
                    logger.error(f"{self.method} {self.endpoint}: on_success hook failed: {e}", exc_info=True)
                    return self._fail(str(e) or DEFAULT_ERROR_MESSAGE)
            return MutationResult(success=True, data=data, warnings=warnings)
        finally:
            self._in_flight = False
