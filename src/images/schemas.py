from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_serializer, field_validator

from src.common.schemas import CamelModel


class ImageRecord(CamelModel):
    """Метаданные изображения в ответах API."""

    id: str
    object_key: str
    original_filename: str
    content_type: str
    file_size: int
    uploaded_at: datetime
    file_extension: str | None = None
    public_url: str

    @field_serializer('uploaded_at')
    def serialize_uploaded_at(self, value: datetime) -> str:
        """ISO-8601 в UTC; наивное время считается UTC."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()


class Pagination(CamelModel):
    """Параметры страницы в ответе списка."""

    total: int
    page: int
    page_size: int
    has_next: bool
    has_prev: bool


class ImageStats(CamelModel):
    """Агрегаты по всем записям, подходящим под фильтр."""

    total_count: int
    total_bytes: int
    latest_uploaded_at: datetime | None = None

    @field_serializer('latest_uploaded_at')
    def serialize_latest(self, value: datetime | None) -> str | None:
        """ISO-8601 в UTC или null."""
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()


class ImageListResponse(CamelModel):
    """Ответ GET /images."""

    ok: bool = True
    items: list[ImageRecord]
    pagination: Pagination
    stats: ImageStats


class ListQuery(BaseModel):
    """Нормализованные параметры списка."""

    search: str = ''
    sort: str = 'uploadedAt'
    order: str = 'desc'
    page: int = 1
    page_size: int = 20

    @property
    def offset(self) -> int:
        """Смещение первой строки страницы."""
        return (self.page - 1) * self.page_size


class UploadResult(CamelModel):
    """Результат загрузки одного файла."""

    success: bool
    filename: str
    record: ImageRecord | None = None
    error: str | None = None


class UploadResponse(CamelModel):
    """Ответ POST /images."""

    ok: bool
    results: list[UploadResult]


class ImageIdsRequest(BaseModel):
    """Тело запросов удаления и архивации: {ids: [...]}.

    ID приводятся к строке, обрезаются по краям, пустые отбрасываются,
    дубликаты удаляются с сохранением порядка.
    """

    ids: list[Any] = Field(default_factory=list)

    @field_validator('ids', mode='before')
    @classmethod
    def normalize_ids(cls, value: Any) -> list[str]:
        """Приводит список ID к нормальному виду."""
        if not isinstance(value, list):
            return []
        cleaned = (str(item).strip() for item in value if item is not None)
        return list(dict.fromkeys(item for item in cleaned if item))


class DeleteFailure(BaseModel):
    """Неудачное удаление одной записи."""

    id: str
    reason: str


class DeleteResponse(BaseModel):
    """Ответ DELETE /images."""

    ok: bool
    deleted: list[str]
    failures: list[DeleteFailure]
    error: str | None = None
