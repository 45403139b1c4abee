"""
Strapi API 客户端

职责：
1. 内容类型的 CRUD（find_one / find_many / create / update / delete）
2. 文件上传并关联到已有记录（upload / upload_to_entity），失败只返回状态、不抛出
3. 用户认证相关接口（login / register / get_me / update_user / change_password）
4. with_user_auth(jwt) 派生绑定单个用户令牌的客户端，令牌作用域为单次请求
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

import httpx

from src.core.errors import AppError, StrapiError
from src.domain.models import FileUpload, Pagination
from src.infra.strapi.http_client import HttpClient
from src.infra.strapi.query import StrapiQuery, build_query_params

logger = logging.getLogger(__name__)


@dataclass
class StrapiPage:
    """find_many 的返回：原始记录 + 可选分页信息"""
    data: List[Any]
    pagination: Optional[Pagination] = None


@dataclass
class UploadResult:
    success: bool
    uploaded_files: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None


class StrapiClient:
    """Strapi 5 REST 客户端"""

    def __init__(
        self,
        base_url: str,
        api_token: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        http: Optional[HttpClient] = None,
        uploads_url: str = "",
    ):
        self.base_url = base_url.rstrip("/")
        # 媒体相对路径的公开访问前缀，映射记录时使用
        self.uploads_url = uploads_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        headers = {"Authorization": f"Bearer {api_token}"} if api_token else {}
        self._http = http or HttpClient(self.base_url, timeout, headers, transport)

    def with_user_auth(self, jwt: str) -> "StrapiClient":
        """派生以用户 JWT 认证的客户端（替换服务令牌）"""
        http = HttpClient(
            self.base_url,
            self.timeout,
            {"Authorization": f"Bearer {jwt}"},
            self._transport,
        )
        return StrapiClient(
            self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            http=http,
            uploads_url=self.uploads_url,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    # ==================== 内容 CRUD ====================

    async def find_one(
        self,
        content_type: str,
        document_id: Union[str, int],
        query: Optional[StrapiQuery] = None,
    ) -> Optional[Dict[str, Any]]:
        endpoint = f"/api/{content_type}/{document_id}"
        try:
            response = await self._http.get(endpoint, build_query_params(query))
        except Exception as e:
            self._handle_error(e, f"find_one {content_type}/{document_id}")
        return (response or {}).get("data")

    async def find_many(
        self,
        content_type: str,
        query: Optional[StrapiQuery] = None,
    ) -> StrapiPage:
        endpoint = f"/api/{content_type}"
        try:
            response = await self._http.get(endpoint, build_query_params(query))
        except Exception as e:
            self._handle_error(e, f"find_many {content_type}")

        response = response or {}
        raw_pagination = ((response.get("meta") or {}).get("pagination")) or None
        pagination = None
        if raw_pagination:
            pagination = Pagination(
                page=int(raw_pagination.get("page", 1)),
                page_size=int(raw_pagination.get("pageSize", 0)),
                page_count=int(raw_pagination.get("pageCount", 1)),
                total=int(raw_pagination.get("total", 0)),
            )
        return StrapiPage(data=list(response.get("data") or []), pagination=pagination)

    async def create(self, content_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
        endpoint = f"/api/{content_type}"
        try:
            response = await self._http.post(endpoint, {"data": data})
            if not (response or {}).get("data"):
                raise StrapiError(f"Failed to create {content_type}: no data returned", 500)
        except Exception as e:
            self._handle_error(e, f"create {content_type}")
        return response["data"]

    async def update(
        self,
        content_type: str,
        document_id: Union[str, int],
        data: Dict[str, Any],
    ) -> Dict[str, Any]:
        endpoint = f"/api/{content_type}/{document_id}"
        try:
            response = await self._http.put(endpoint, {"data": data})
            if not (response or {}).get("data"):
                raise StrapiError(
                    f"Failed to update {content_type}/{document_id}: no data returned", 500
                )
        except Exception as e:
            self._handle_error(e, f"update {content_type}/{document_id}")
        return response["data"]

    async def delete(self, content_type: str, document_id: Union[str, int]) -> None:
        endpoint = f"/api/{content_type}/{document_id}"
        try:
            await self._http.delete(endpoint)
        except Exception as e:
            self._handle_error(e, f"delete {content_type}/{document_id}")

    # ==================== 文件上传 ====================

    async def upload(
        self,
        files: Sequence[FileUpload],
        ref: Optional[str] = None,
        ref_id: Optional[Union[int, str]] = None,
        field_name: Optional[str] = None,
    ) -> UploadResult:
        """
        上传文件，可选关联到已有记录

        失败时不抛出，返回 success=False 与错误消息，由调用方决定如何降级。
        """
        if not files:
            return UploadResult(success=True)

        form: Dict[str, str] = {}
        if ref:
            form["ref"] = ref
        if ref_id is not None:
            form["refId"] = str(ref_id)
        if field_name:
            form["field"] = field_name

        multipart = [("files", (f.filename, f.content, f.content_type)) for f in files]

        try:
            uploaded = await self._http.upload("/api/upload", multipart, form)
        except Exception as e:
            logger.warning(
                f"Upload failed: ref={ref} field={field_name} files={len(files)} error={e}"
            )
            message = e.message if isinstance(e, AppError) else str(e) or "Unknown upload error"
            return UploadResult(success=False, error=message)

        return UploadResult(success=True, uploaded_files=list(uploaded or []))

    async def upload_to_entity(
        self,
        files: Sequence[FileUpload],
        ref: str,
        ref_id: Union[int, str],
        field_name: str,
    ) -> UploadResult:
        return await self.upload(files, ref=ref, ref_id=ref_id, field_name=field_name)

    # ==================== 认证 ====================

    async def login(self, identifier: str, password: str) -> Dict[str, Any]:
        try:
            return await self._http.post(
                "/api/auth/local", {"identifier": identifier, "password": password}
            )
        except Exception as e:
            self._handle_error(e, "login")

    async def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        try:
            return await self._http.post(
                "/api/auth/local/register",
                {"username": username, "email": email, "password": password},
            )
        except Exception as e:
            self._handle_error(e, "register")

    async def get_me(self) -> Dict[str, Any]:
        try:
            return await self._http.get("/api/users/me")
        except Exception as e:
            self._handle_error(e, "get_me")

    async def update_user(self, user_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return await self._http.put(f"/api/users/{user_id}", data)
        except Exception as e:
            self._handle_error(e, f"update_user {user_id}")

    async def change_password(self, current_password: str, new_password: str) -> None:
        try:
            await self._http.post(
                "/api/auth/change-password",
                {
                    "currentPassword": current_password,
                    "password": new_password,
                    "passwordConfirmation": new_password,
                },
            )
        except Exception as e:
            self._handle_error(e, "change_password")

    # ==================== 错误处理 ====================

    def _handle_error(self, error: Exception, operation: str):
        """AppError 原样抛出；其他异常包装为 StrapiError"""
        if isinstance(error, AppError):
            logger.debug(f"Strapi {operation} failed: {error!r}")
            raise error
        logger.error(f"Strapi {operation} failed unexpectedly: {error}", exc_info=True)
        raise StrapiError(
            str(error) or "Chyba při komunikaci se Strapi",
            500,
            {"operation": operation, "baseUrl": self.base_url},
        ) from error
