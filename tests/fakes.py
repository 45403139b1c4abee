"""
测试替身

1. FakeStrapi：内存中的 Strapi 5 REST 实现，通过 httpx.MockTransport 接入
   - 创建时分配行 id 与 documentId
   - /api/upload 按 ref / refId / field 把文件挂到记录上
   - 可以按字段让上传失败、让第 N 次创建失败、让前 N 次读取断网
2. RecordingEmailSender：记录发送的邮件，不连接 SMTP
"""
from __future__ import annotations

import itertools
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple
from urllib.parse import parse_qsl

import httpx

# 上传引用 -> 集合名
REF_COLLECTIONS = {
    "api::match-result.match-result": "match-results",
    "api::event.event": "events",
    "api::tournament.tournament": "tournaments",
}

# 评论上的实体关系 -> 集合名
COMMENT_RELATIONS = {
    "matchResult": "match-results",
    "tournament": "tournaments",
    "event": "events",
}

# 带多对多分类关系的集合
CATEGORY_COLLECTIONS = ("match-results", "events", "tournaments")

_FORM_FIELD_RE = re.compile(rb'name="(ref|refId|field)"\r\n\r\n([^\r]*)\r\n')
_FILENAME_RE = re.compile(rb'filename="([^"]*)"\r\nContent-Type: ([^\r]*)\r\n')
_FILTER_RE = re.compile(r"^filters((?:\[[^\]]+\])+)$")


def strapi_error(status: int, message: str) -> httpx.Response:
    return httpx.Response(
        status,
        json={"data": None, "error": {"status": status, "name": "Error", "message": message}},
    )


@dataclass
class FakeUser:
    id: int
    email: str
    password: str
    firstname: str = ""
    lastname: str = ""
    job_title: str = ""
    blocked: bool = False

    def raw(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "documentId": f"user-{self.id}",
            "username": self.email,
            "email": self.email,
            "firstname": self.firstname,
            "lastname": self.lastname,
            "jobTitle": self.job_title,
            "confirmed": True,
            "blocked": self.blocked,
            "createdAt": "2026-01-01T00:00:00.000Z",
            "updatedAt": "2026-01-01T00:00:00.000Z",
        }


@dataclass
class FakeStrapi:
    # 集合名 -> documentId -> 存储的字段
    collections: Dict[str, Dict[str, Dict[str, Any]]] = field(default_factory=dict)
    users: Dict[int, FakeUser] = field(default_factory=dict)
    tokens: Dict[str, int] = field(default_factory=dict)
    # 上传失败的字段名
    fail_upload_fields: Set[str] = field(default_factory=set)
    # 集合名 -> 第几次创建失败（从 1 开始计数）
    fail_create_at: Dict[str, int] = field(default_factory=dict)
    # 前 N 次 GET 请求抛出连接错误
    fail_reads: int = 0
    requests: List[Tuple[str, str]] = field(default_factory=list)
    uploads: List[Dict[str, Any]] = field(default_factory=list)

    def __post_init__(self):
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)
        self._create_attempts: Dict[str, int] = {}
        self.api_token = "service-token"

    # ==================== 测试辅助 ====================

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def add_user(
        self,
        email: str = "trener@fotbal-fm.cz",
        password: str = "Heslo123",
        firstname: str = "Jan",
        lastname: str = "Novák",
        job_title: str = "Trenér",
    ) -> Tuple[FakeUser, str]:
        """新建用户并返回 (用户, jwt)"""
        user = FakeUser(next(self._ids), email, password, firstname, lastname, job_title)
        self.users[user.id] = user
        return user, self.issue_token(user)

    def issue_token(self, user: FakeUser) -> str:
        token = f"jwt-{user.id}-{len(self.tokens) + 1}"
        self.tokens[token] = user.id
        return token

    def add_category(self, name: str, slug: str, sort_order: int = 0) -> Dict[str, Any]:
        return self.insert("categories", {"name": name, "slug": slug, "sortOrder": sort_order})

    def insert(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """直接写入一条记录（绕过 HTTP），返回存储的记录"""
        row_id = next(self._ids)
        stamp = self._timestamp()
        record = {
            "id": row_id,
            "documentId": f"{collection}-{row_id}",
            "createdAt": stamp,
            "updatedAt": stamp,
            "_media": {},
        }
        record.update(self._normalize(collection, data, creating=True))
        self.collections.setdefault(collection, {})[record["documentId"]] = record
        return record

    def records(self, collection: str) -> List[Dict[str, Any]]:
        return list(self.collections.get(collection, {}).values())

    def count(self, method: str, prefix: str) -> int:
        return sum(1 for m, p in self.requests if m == method and p.startswith(prefix))

    # ==================== 路由 ====================

    async def handle(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.path
        self.requests.append((method, path))

        if method == "GET" and self.fail_reads > 0:
            self.fail_reads -= 1
            raise httpx.ConnectError("connection refused", request=request)

        body = await request.aread()
        parts = [p for p in path.split("/") if p]
        if not parts or parts[0] != "api":
            return strapi_error(404, "Not Found")
        parts = parts[1:]

        if parts[:2] == ["auth", "local"]:
            payload = json.loads(body or b"{}")
            if len(parts) == 3 and parts[2] == "register":
                return self._register(payload)
            return self._login(payload)
        if parts == ["auth", "change-password"]:
            return self._change_password(request, json.loads(body or b"{}"))
        if parts[0] == "users":
            return self._users(request, parts[1:], body)
        if parts == ["upload"]:
            return self._upload(body)

        collection = parts[0]
        document_id = parts[1] if len(parts) > 1 else None

        if method == "GET" and document_id is None:
            return self._find_many(collection, parse_qsl(request.url.query.decode()))
        if method == "GET":
            record = self.collections.get(collection, {}).get(document_id)
            if record is None:
                return strapi_error(404, "Not Found")
            return httpx.Response(200, json={"data": self._hydrate(collection, record), "meta": {}})
        if method == "POST" and document_id is None:
            return self._create(collection, json.loads(body or b"{}").get("data") or {})
        if method == "PUT" and document_id is not None:
            return self._update(collection, document_id, json.loads(body or b"{}").get("data") or {})
        if method == "DELETE" and document_id is not None:
            if self.collections.get(collection, {}).pop(document_id, None) is None:
                return strapi_error(404, "Not Found")
            return httpx.Response(204)
        return strapi_error(405, "Method Not Allowed")

    # ==================== 内容 ====================

    def _timestamp(self) -> str:
        tick = next(self._clock)
        return f"2026-03-01T{tick // 3600:02d}:{tick // 60 % 60:02d}:{tick % 60:02d}.000Z"

    def _row_id(self, collection: str, ref: Any) -> Optional[int]:
        """关系值可以是行 id 或 documentId"""
        if ref is None:
            return None
        if isinstance(ref, int) or str(ref).isdigit():
            return int(ref)
        record = self.collections.get(collection, {}).get(str(ref))
        return record["id"] if record else None

    def _normalize(self, collection: str, data: Dict[str, Any], creating: bool) -> Dict[str, Any]:
        stored = dict(data)
        if collection in CATEGORY_COLLECTIONS:
            categories = stored.pop("categories", None)
            if isinstance(categories, dict):
                stored["categories"] = list(categories.get("connect") or categories.get("set") or [])
            elif categories is not None or creating:
                stored["categories"] = list(categories or [])
        if collection == "tournament-matches" and "tournament" in stored:
            stored["tournament"] = self._row_id("tournaments", stored["tournament"])
        if collection == "comments":
            for relation, target in COMMENT_RELATIONS.items():
                if relation in stored:
                    stored[relation] = self._row_id(target, stored[relation])
            if "parentComment" in stored:
                stored["parentComment"] = self._row_id("comments", stored["parentComment"])
        return stored

    def _create(self, collection: str, data: Dict[str, Any]) -> httpx.Response:
        attempt = self._create_attempts.get(collection, 0) + 1
        self._create_attempts[collection] = attempt
        if self.fail_create_at.get(collection) == attempt:
            return strapi_error(500, f"Cannot create {collection}")
        record = self.insert(collection, data)
        return httpx.Response(201, json={"data": self._hydrate(collection, record), "meta": {}})

    def _update(self, collection: str, document_id: str, data: Dict[str, Any]) -> httpx.Response:
        record = self.collections.get(collection, {}).get(document_id)
        if record is None:
            return strapi_error(404, "Not Found")
        record.update(self._normalize(collection, data, creating=False))
        record["updatedAt"] = self._timestamp()
        return httpx.Response(200, json={"data": self._hydrate(collection, record), "meta": {}})

    def _find_many(self, collection: str, params: Sequence[Tuple[str, str]]) -> httpx.Response:
        items = [self._hydrate(collection, r) for r in self.records(collection)]

        sort = next((v for k, v in params if k in ("sort", "sort[0]")), "createdAt:desc")
        sort_field, _, direction = sort.partition(":")
        key = "id" if sort_field == "createdAt" else sort_field
        items.sort(key=lambda r: (r.get(key) is None, r.get(key)), reverse=direction == "desc")

        for name, value in params:
            match = _FILTER_RE.match(name)
            if match:
                path = re.findall(r"\[([^\]]+)\]", match.group(1))
                items = [r for r in items if self._matches(r, path, value)]

        options = dict(params)
        total = len(items)
        if "pagination[limit]" in options:
            items = items[: int(options["pagination[limit]"])]
            page, page_size = 1, len(items)
        else:
            page = int(options.get("pagination[page]", 1))
            page_size = int(options.get("pagination[pageSize]", 25))
            items = items[(page - 1) * page_size: page * page_size]
        page_count = max(1, -(-total // page_size)) if page_size else 1
        return httpx.Response(
            200,
            json={
                "data": items,
                "meta": {
                    "pagination": {
                        "page": page,
                        "pageSize": page_size,
                        "pageCount": page_count,
                        "total": total,
                    }
                },
            },
        )

    @staticmethod
    def _matches(record: Dict[str, Any], path: List[str], value: str) -> bool:
        *fields, op = path
        current: Any = record
        for name in fields:
            current = current.get(name) if isinstance(current, dict) else None
        if op == "$null":
            return (current is None) == (value == "true")
        if op == "$eq":
            return current is not None and str(current) == value
        return True

    # ==================== 组装返回 ====================

    def _media(self, record: Dict[str, Any], field_name: str) -> List[Dict[str, Any]]:
        return list(record["_media"].get(field_name, []))

    def _user_ref(self, user_id: Optional[int]) -> Optional[Dict[str, Any]]:
        user = self.users.get(user_id) if user_id else None
        if user is None:
            return None
        return {
            "id": user.id,
            "documentId": f"user-{user.id}",
            "firstname": user.firstname,
            "lastname": user.lastname,
            "email": user.email,
        }

    def _entity_ref(self, collection: str, row_id: Optional[int]) -> Optional[Dict[str, Any]]:
        if row_id is None:
            return None
        for record in self.records(collection):
            if record["id"] == row_id:
                return {"id": record["id"], "documentId": record["documentId"]}
        return None

    def _plain(self, record: Dict[str, Any]) -> Dict[str, Any]:
        return {k: v for k, v in record.items() if not k.startswith("_")}

    def _hydrate(self, collection: str, record: Dict[str, Any], depth: int = 0) -> Dict[str, Any]:
        raw = self._plain(record)
        raw["author"] = self._user_ref(record.get("author"))

        if "categories" in record:
            categories = self.collections.get("categories", {})
            raw["categories"] = [
                self._plain(categories[doc_id]) for doc_id in record["categories"] or [] if doc_id in categories
            ]
            if record["categories"] is None:
                raw["categories"] = None

        if collection == "match-results":
            raw["images"] = self._media(record, "images")
            raw["files"] = self._media(record, "files")
        elif collection == "events":
            raw["photos"] = self._media(record, "photos")
            raw["files"] = self._media(record, "files")
        elif collection == "tournaments":
            raw["photos"] = self._media(record, "photos")
            raw["tournamentMatches"] = [
                self._hydrate("tournament-matches", m)
                for m in sorted(self.records("tournament-matches"), key=lambda m: m["id"])
                if m.get("tournament") == record["id"]
            ]
        elif collection == "tournament-matches":
            raw["tournament"] = self._entity_ref("tournaments", record.get("tournament"))
        elif collection == "comments":
            for relation, target in COMMENT_RELATIONS.items():
                raw[relation] = self._entity_ref(target, record.get(relation))
            raw["parentComment"] = self._entity_ref("comments", record.get("parentComment"))
            if depth == 0:
                raw["replies"] = [
                    self._hydrate("comments", c, depth + 1)
                    for c in self.records("comments")
                    if c.get("parentComment") == record["id"]
                ]
        return raw

    # ==================== 上传 ====================

    def _upload(self, body: bytes) -> httpx.Response:
        form = {k.decode(): v.decode() for k, v in _FORM_FIELD_RE.findall(body)}
        files = [(name.decode(), mime.decode()) for name, mime in _FILENAME_RE.findall(body)]
        field_name = form.get("field", "")

        if field_name in self.fail_upload_fields:
            return strapi_error(500, f"Upload of {field_name} failed")

        collection = REF_COLLECTIONS.get(form.get("ref", ""))
        target = None
        if collection:
            row_id = int(form.get("refId", "0"))
            target = next((r for r in self.records(collection) if r["id"] == row_id), None)
            if target is None:
                return strapi_error(404, "Related entity not found")

        uploaded = []
        for filename, mime in files:
            media_id = next(self._ids)
            stamp = self._timestamp()
            media = {
                "id": media_id,
                "documentId": f"file-{media_id}",
                "name": filename,
                "ext": "." + filename.rsplit(".", 1)[-1] if "." in filename else "",
                "mime": mime,
                "size": 1.5,
                "url": f"/uploads/{filename}",
                "provider": "local",
                "width": 800 if mime.startswith("image/") else None,
                "height": 600 if mime.startswith("image/") else None,
                "formats": None,
                "createdAt": stamp,
                "updatedAt": stamp,
            }
            uploaded.append(media)
            if target is not None:
                target["_media"].setdefault(field_name, []).append(media)
        self.uploads.append({**form, "files": [f for f, _ in files]})
        return httpx.Response(201, json=uploaded)

    # ==================== 用户 ====================

    def _bearer_user(self, request: httpx.Request) -> Optional[FakeUser]:
        token = request.headers.get("Authorization", "").removeprefix("Bearer ").strip()
        user_id = self.tokens.get(token)
        return self.users.get(user_id) if user_id else None

    def _login(self, payload: Dict[str, Any]) -> httpx.Response:
        user = next((u for u in self.users.values() if u.email == payload.get("identifier")), None)
        if user is None or user.password != payload.get("password"):
            return strapi_error(400, "Invalid identifier or password")
        if user.blocked:
            return strapi_error(400, "Your account has been blocked by an administrator")
        return httpx.Response(200, json={"jwt": self.issue_token(user), "user": user.raw()})

    def _register(self, payload: Dict[str, Any]) -> httpx.Response:
        email = payload.get("email")
        if any(u.email == email for u in self.users.values()):
            return strapi_error(400, "Email or Username are already taken")
        user, token = self.add_user(email, payload.get("password", ""), "", "", "")
        return httpx.Response(200, json={"jwt": token, "user": user.raw()})

    def _users(self, request: httpx.Request, parts: List[str], body: bytes) -> httpx.Response:
        user = self._bearer_user(request)
        if user is None:
            return strapi_error(401, "Missing or invalid credentials")
        if parts == ["me"]:
            return httpx.Response(200, json=user.raw())
        if request.method == "PUT" and parts:
            if int(parts[0]) != user.id:
                return strapi_error(403, "Forbidden")
            data = json.loads(body or b"{}")
            user.firstname = data.get("firstname", user.firstname)
            user.lastname = data.get("lastname", user.lastname)
            user.job_title = data.get("jobTitle", user.job_title)
            return httpx.Response(200, json=user.raw())
        return strapi_error(405, "Method Not Allowed")

    def _change_password(self, request: httpx.Request, payload: Dict[str, Any]) -> httpx.Response:
        user = self._bearer_user(request)
        if user is None:
            return strapi_error(401, "Missing or invalid credentials")
        if payload.get("currentPassword") != user.password:
            return strapi_error(400, "The provided current password is invalid")
        user.password = payload.get("password", user.password)
        return httpx.Response(200, json={"jwt": self.issue_token(user), "user": user.raw()})


class RecordingEmailSender:
    """记录邮件而不发送；failing=True 时每次发送抛出异常"""

    def __init__(self, failing: bool = False):
        self.failing = failing
        self.sent: List[Dict[str, Any]] = []

    async def send(self, subject: str, html: str, extra_recipients: Optional[Sequence[str]] = None) -> bool:
        if self.failing:
            raise ConnectionError("SMTP server unavailable")
        self.sent.append(
            {"subject": subject, "html": html, "extra_recipients": list(extra_recipients or [])}
        )
        return True

    @property
    def subjects(self) -> List[str]:
        return [m["subject"] for m in self.sent]
