"""
上传结果 -> 用户可读的警告

附件上传失败不会让写操作失败，只会以警告的形式附在成功结果上。
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Mapping, Optional, TypeVar

from src.repositories.base import UploadResults

T = TypeVar("T")

# 各上传字段的默认失败提示
DEFAULT_UPLOAD_MESSAGES: Dict[str, str] = {
    "images": "Nepodařilo se nahrát obrázky",
    "photos": "Nepodařilo se nahrát fotografie",
    "files": "Nepodařilo se nahrát přílohy",
}

GENERIC_UPLOAD_MESSAGE = "Nepodařilo se nahrát soubory"


def build_upload_warnings(
    results: Optional[UploadResults],
    default_messages: Optional[Mapping[str, str]] = None,
) -> List[str]:
    """
    把各字段的上传结果转换为警告列表（纯函数）

    顺序与 results 的字段顺序一致；上传自带的错误文本优先于默认提示。
    """
    messages = default_messages if default_messages is not None else DEFAULT_UPLOAD_MESSAGES
    warnings: List[str] = []
    for field_name, status in (results or {}).items():
        if status.success:
            continue
        warnings.append(status.error or messages.get(field_name, GENERIC_UPLOAD_MESSAGE))
    return warnings


def failed_fields(results: Optional[UploadResults]) -> List[str]:
    return [name for name, status in (results or {}).items() if not status.success]


@dataclass(frozen=True)
class EntityWithUploads(Generic[T]):
    """写操作的成功值：实体 + 上传警告 + 机器可读的各字段上传状态"""

    entity: T
    upload_warnings: List[str] = field(default_factory=list)
    upload_results: UploadResults = field(default_factory=dict)

    @property
    def failed_uploads(self) -> List[str]:
        return failed_fields(self.upload_results)

    def to_dict(self) -> Dict[str, Any]:
        entity = self.entity.to_dict() if hasattr(self.entity, "to_dict") else self.entity
        return {
            "entity": entity,
            "uploadWarnings": list(self.upload_warnings),
            "uploadResults": {name: s.to_dict() for name, s in self.upload_results.items()},
        }
