# services/files.py — File attachments on tasks, projects and comments
"""
Uploads store metadata only; the bytes live wherever FileUrlBuilder points.
Each upload of an existing file name (in the same task/project) becomes a new
version and the previous latest version is unflagged.
"""
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from filters import equals, order
from schemas import FILE_ATTACHMENT
from services.base import RecordService

activity_logger = logging.getLogger("business-manager.activity")

PREVIEWABLE_TYPES = frozenset({
    "image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp",
    "application/pdf", "text/plain", "text/html", "text/markdown",
})

SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def _positive_int(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"Valid {what} is required")
    return value


def can_preview(file_type: Optional[str]) -> bool:
    return file_type in PREVIEWABLE_TYPES


def get_file_icon(file_type: Optional[str]) -> str:
    """Icon name for a MIME type"""
    file_type = file_type or ""
    if file_type.startswith("image/"):
        return "Image"
    if file_type == "application/pdf":
        return "FileText"
    if "document" in file_type or "word" in file_type:
        return "FileText"
    if "spreadsheet" in file_type or "excel" in file_type:
        return "FileSpreadsheet"
    if "presentation" in file_type or "powerpoint" in file_type:
        return "Presentation"
    if any(k in file_type for k in ("zip", "rar", "archive")):
        return "Archive"
    if "video" in file_type:
        return "Video"
    if "audio" in file_type:
        return "Music"
    return "File"


def format_file_size(size: int) -> str:
    """Human-readable size: 0 → "0 Bytes", 1536 → "1.5 KB" """
    if not size or size <= 0:
        return "0 Bytes"
    index = 0
    while index < len(SIZE_UNITS) - 1 and size >= 1024 ** (index + 1):
        index += 1
    value = round(size / (1024 ** index), 2)
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[index]}"


class FileUrlBuilder:
    """Builds storage and preview URLs for an uploaded file version"""

    def __init__(self, upload_prefix: str = "/uploads", preview_prefix: str = "/previews"):
        self.upload_prefix = upload_prefix.rstrip("/")
        self.preview_prefix = preview_prefix.rstrip("/")

    @staticmethod
    def _split(file_name: str):
        base, ext = os.path.splitext(file_name)
        return base, ext.lstrip(".").lower()

    def file_url(self, file_name: str, version: int) -> str:
        base, ext = self._split(file_name)
        suffix = f".{ext}" if ext else ""
        return f"{self.upload_prefix}/{base}-v{version}{suffix}"

    def preview_url(self, file_name: str, version: int, file_type: Optional[str]) -> str:
        if not can_preview(file_type):
            return ""
        base, _ = self._split(file_name)
        return f"{self.preview_prefix}/{base}-v{version}.jpg"


@dataclass
class UploadRequest:
    file_name: str
    uploaded_by: int
    file_size: int = 0
    file_type: Optional[str] = None
    task_id: Optional[int] = None
    project_id: Optional[int] = None
    comment_id: Optional[int] = None

    def validate(self) -> None:
        if not isinstance(self.uploaded_by, int) or isinstance(self.uploaded_by, bool) or self.uploaded_by <= 0:
            raise ValueError("Uploader ID is required")
        if not self.file_name or not self.file_name.strip():
            raise ValueError("File name is required")
        if not self.task_id and not self.project_id:
            raise ValueError("Either task ID or project ID is required")


class FileService(RecordService):
    schema = FILE_ATTACHMENT
    plural = "files"

    def __init__(self, store, notifier, url_builder: Optional[FileUrlBuilder] = None):
        super().__init__(store, notifier)
        self.url_builder = url_builder or FileUrlBuilder()

    async def get_by_task_id(self, task_id: int) -> List[Dict[str, Any]]:
        return await self.find(where=[equals("task_id_c", _positive_int(task_id, "task ID"))])

    async def get_by_project_id(self, project_id: int) -> List[Dict[str, Any]]:
        return await self.find(where=[equals("project_id_c", _positive_int(project_id, "project ID"))])

    async def get_by_comment_id(self, comment_id: int) -> List[Dict[str, Any]]:
        return await self.find(where=[equals("comment_id_c", _positive_int(comment_id, "comment ID"))])

    async def get_versions(
        self,
        file_name: str,
        task_id: Optional[int] = None,
        project_id: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Every stored version of ``file_name``, newest version first"""
        if not file_name or not isinstance(file_name, str):
            raise ValueError("Valid file name is required")
        where = [equals("file_name_c", file_name)]
        if task_id:
            where.append(equals("task_id_c", task_id))
        if project_id:
            where.append(equals("project_id_c", project_id))
        return await self.find(where=where, order_by=[order("version_c", descending=True)])

    async def upload(self, request: UploadRequest) -> Optional[Dict[str, Any]]:
        request.validate()
        previous = await self.get_versions(request.file_name, request.task_id, request.project_id)
        version = max((v.get("version_c") or 0 for v in previous), default=0) + 1
        file_type = request.file_type or "application/octet-stream"

        created = await self.create({
            "Name": request.file_name,
            "Tags": "",
            "file_name_c": request.file_name,
            "file_size_c": request.file_size or 0,
            "file_type_c": file_type,
            "uploaded_by_c": request.uploaded_by,
            "version_c": version,
            "is_latest_c": True,
            "url_c": self.url_builder.file_url(request.file_name, version),
            "preview_url_c": self.url_builder.preview_url(request.file_name, version, file_type),
            "task_id_c": request.task_id,
            "project_id_c": request.project_id,
            "comment_id_c": request.comment_id,
        })
        if created is None:
            return None

        stale = [{"Id": v["Id"], "is_latest_c": False} for v in previous if v.get("is_latest_c")]
        if stale:
            await self.update_many(stale)
        self._log_activity("uploaded", created, "to")
        return created

    async def delete(self, record_id: Any) -> bool:
        existing = await self.try_get_by_id(record_id)
        deleted = await super().delete(record_id)
        if deleted and existing:
            self._log_activity("deleted", existing, "from")
        return deleted

    def _log_activity(self, verb: str, record: Dict[str, Any], preposition: str) -> None:
        where = ""
        if record.get("task_id_c"):
            where += f" {preposition} a task"
        if record.get("project_id_c"):
            where += " in project"
        activity_logger.info(
            f"User {record.get('uploaded_by_c')} {verb} file \"{record.get('file_name_c')}\"{where} "
            f"(file_id={record.get('Id')})"
        )

    can_preview = staticmethod(can_preview)
    get_file_icon = staticmethod(get_file_icon)
    format_file_size = staticmethod(format_file_size)
