"""
表单字段解析（multipart / urlencoded）

空字符串一律视为未提供；必填字段缺失时抛出带字段标签的 ValidationError。
文件字段读入内存并检查大小与图片类型。
"""
from __future__ import annotations

import json
import re
from typing import Any, List, Optional, Sequence

from starlette.datastructures import FormData, UploadFile

from src.core.errors import AppError, ErrorCode, ValidationError
from src.domain.models import FileUpload
from src.services.config import app_constants

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^\d{2}:\d{2}(:\d{2})?$")

# 只接受图片的上传字段
IMAGE_FIELDS = ("images", "photos")


def get_string_field(form: FormData, name: str) -> Optional[str]:
    value = form.get(name)
    if value is None or not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def get_required_string_field(form: FormData, name: str, label: Optional[str] = None) -> str:
    value = get_string_field(form, name)
    if not value:
        raise ValidationError(f'Pole "{label or name}" je povinné')
    return value


def get_number_field(form: FormData, name: str) -> Optional[float]:
    value = get_string_field(form, name)
    if value is None:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return int(number) if number.is_integer() else number


def get_required_number_field(form: FormData, name: str, label: Optional[str] = None) -> float:
    value = get_number_field(form, name)
    if value is None:
        raise ValidationError(f'Pole "{label or name}" musí být vyplněno a obsahovat platné číslo')
    return value


def get_boolean_field(form: FormData, name: str) -> bool:
    value = form.get(name)
    if not isinstance(value, str):
        return False
    return value.strip().lower() in ("true", "1", "on")


def get_date_field(form: FormData, name: str) -> Optional[str]:
    value = get_string_field(form, name)
    if not value or not _DATE_RE.match(value):
        return None
    return value


def get_required_date_field(form: FormData, name: str, label: Optional[str] = None) -> str:
    value = get_date_field(form, name)
    if not value:
        raise ValidationError(f'Pole "{label or name}" musí obsahovat platné datum')
    return value


def get_time_field(form: FormData, name: str) -> Optional[str]:
    value = get_string_field(form, name)
    if not value or not _TIME_RE.match(value):
        return None
    return value


def get_json_field(form: FormData, name: str, error_message: str) -> Any:
    """JSON 字段；缺失返回 None，格式错误抛出 ValidationError(error_message)"""
    raw = get_string_field(form, name)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        raise ValidationError(error_message, {"field": name}) from None


def get_json_list_field(form: FormData, name: str, error_message: str) -> Optional[List[Any]]:
    value = get_json_field(form, name, error_message)
    if value is not None and not isinstance(value, list):
        raise ValidationError(error_message, {"field": name})
    return value


# ==================== 文件 ====================

def check_upload(upload: FileUpload, images_only: bool = False) -> None:
    if upload.size > app_constants.MAX_FILE_SIZE:
        raise AppError(
            f"Soubor {upload.filename} je příliš velký",
            ErrorCode.FILE_TOO_LARGE,
            400,
            {"size": upload.size, "maxSize": app_constants.MAX_FILE_SIZE},
        )
    if images_only and upload.content_type not in app_constants.ALLOWED_IMAGE_TYPES:
        raise AppError(
            f"Nepodporovaný typ souboru {upload.filename}",
            ErrorCode.INVALID_FILE_TYPE,
            400,
            {"contentType": upload.content_type},
        )


async def get_files(form: FormData, name: str) -> List[FileUpload]:
    """读取字段下的全部非空文件"""
    uploads: List[FileUpload] = []
    for entry in form.getlist(name):
        if not isinstance(entry, UploadFile):
            continue
        content = await entry.read()
        if not content:
            continue
        upload = FileUpload(
            filename=entry.filename or name,
            content=content,
            content_type=entry.content_type or "application/octet-stream",
        )
        check_upload(upload, images_only=name in IMAGE_FIELDS)
        uploads.append(upload)
    return uploads


async def get_files_by_field(form: FormData, names: Sequence[str]) -> dict:
    return {name: await get_files(form, name) for name in names}
