"""
HTTP 客户端（httpx.AsyncClient 封装）

功能：
1. 统一的超时、默认请求头、JSON 请求体
2. 把传输层异常与非 2xx 响应映射为 AppError 子类
3. 只读请求（GET）在网络错误 / 超时时用 tenacity 做有限次指数退避重试；
   写请求从不重试（创建由仓库分配 id，盲目重试会重复创建）
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.core.errors import (
    AppError,
    ErrorCode,
    NetworkError,
    RequestTimeoutError,
)
from src.services.config import app_constants

logger = logging.getLogger(__name__)

# 上传文件三元组：(文件名, 内容, MIME)
UploadFile = Tuple[str, bytes, str]


class HttpClient:
    """
    带超时与错误映射的异步 HTTP 客户端

    transport 参数允许注入 httpx.MockTransport（测试）。
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        default_headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.default_headers = dict(default_headers or {})
        self._transport = transport
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers=self.default_headers,
            transport=transport,
        )

    def with_headers(self, headers: Dict[str, str]) -> "HttpClient":
        """派生一个附加请求头的新客户端（共享 transport，不共享连接池）"""
        merged = {**self.default_headers, **headers}
        return HttpClient(self.base_url, self.timeout, merged, self._transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    # ==================== 请求方法 ====================

    @retry(
        stop=stop_after_attempt(app_constants.READ_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type((NetworkError, RequestTimeoutError)),
        reraise=True,
    )
    async def get(self, endpoint: str, params: Optional[Sequence[Tuple[str, str]]] = None) -> Any:
        return await self.request("GET", endpoint, params=params)

    async def post(self, endpoint: str, body: Any = None) -> Any:
        return await self.request("POST", endpoint, body=body)

    async def put(self, endpoint: str, body: Any = None) -> Any:
        return await self.request("PUT", endpoint, body=body)

    async def patch(self, endpoint: str, body: Any = None) -> Any:
        return await self.request("PATCH", endpoint, body=body)

    async def delete(self, endpoint: str) -> Any:
        return await self.request("DELETE", endpoint)

    async def request(
        self,
        method: str,
        endpoint: str,
        body: Any = None,
        params: Optional[Sequence[Tuple[str, str]]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """发送 JSON 请求并返回解析后的响应体"""
        path = self._build_path(endpoint)
        logger.debug(f"{method} {path}")

        try:
            response = await self._client.request(
                method,
                path,
                json=body,
                params=list(params) if params else None,
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(details={"url": path}) from e
        except httpx.ConnectError as e:
            raise NetworkError(
                "Nepodařilo se připojit k serveru",
                {"originalError": str(e)},
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(
                "Chyba při komunikaci se serverem",
                {"originalError": str(e)},
            ) from e

        data = self._parse_response(response)
        if response.is_error:
            raise self._error_from_response(response.status_code, data)
        return data

    async def upload(
        self,
        endpoint: str,
        files: Sequence[Tuple[str, UploadFile]],
        data: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """multipart 上传；Content-Type（含 boundary）由 httpx 生成"""
        path = self._build_path(endpoint)
        logger.debug(f"UPLOAD {path} fields={list((data or {}).keys())} files={len(files)}")

        try:
            response = await self._client.post(
                path,
                files=list(files),
                data=data or {},
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutError("Nahrávání souborů vypršelo") from e
        except httpx.HTTPError as e:
            raise NetworkError(
                "Chyba při nahrávání souborů",
                {"originalError": str(e)},
            ) from e

        parsed = self._parse_response(response)
        if response.is_error:
            raise self._error_from_response(response.status_code, parsed)
        return parsed

    # ==================== 内部工具 ====================

    @staticmethod
    def _build_path(endpoint: str) -> str:
        return endpoint if endpoint.startswith("/") else f"/{endpoint}"

    @staticmethod
    def _parse_response(response: httpx.Response) -> Any:
        text = response.text
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError:
            raise AppError(
                "Neplatná odpověď serveru",
                ErrorCode.STRAPI_ERROR,
                response.status_code,
                {"responseText": text[:500]},
            ) from None

    @classmethod
    def _error_from_response(cls, status: int, data: Any) -> AppError:
        """按状态码构造错误；上游自带的消息优先"""
        message = cls._extract_error_message(data)

        if status == 401:
            return AppError(message or "Nejste přihlášeni", ErrorCode.UNAUTHORIZED, 401, data)
        if status == 403:
            return AppError(message or "Nemáte oprávnění k této akci", ErrorCode.FORBIDDEN, 403, data)
        if status == 404:
            return AppError(message or "Záznam nebyl nalezen", ErrorCode.NOT_FOUND, 404, data)
        if 400 <= status < 500:
            return AppError(message or "Neplatný požadavek", ErrorCode.VALIDATION_FAILED, status, data)
        if status >= 500:
            return AppError(
                message or "Chyba serveru, zkuste to prosím později",
                ErrorCode.STRAPI_ERROR,
                status,
                data,
            )
        return AppError(message or "Neznámá chyba", ErrorCode.UNKNOWN_ERROR, status, data)

    @staticmethod
    def _extract_error_message(data: Any) -> Optional[str]:
        if not isinstance(data, dict):
            return None

        # Strapi: {"error": {"message": "..."}}
        error = data.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]

        if isinstance(data.get("message"), str):
            return data["message"]

        errors: List[Any] = data.get("errors") or []
        if isinstance(errors, list) and errors:
            first = errors[0]
            if isinstance(first, dict) and "message" in first:
                return str(first["message"])

        return None
