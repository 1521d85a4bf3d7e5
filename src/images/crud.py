from datetime import datetime
from typing import Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement, UnaryExpression

from src.images.models import Image


SORT_COLUMNS = {
    'uploadedAt': Image.uploaded_at,
    'originalFilename': Image.original_filename,
    'fileSize': Image.file_size,
}


def build_filters(search: str) -> list[ColumnElement[bool]]:
    """Строит условия фильтрации списка.

    Поиск - регистронезависимая подстрока в original_filename,
    символы % и _ в строке поиска экранируются.
    """
    conditions: list[ColumnElement[bool]] = []
    if search:
        conditions.append(
            Image.original_filename.icontains(search, autoescape=True),
        )
    return conditions


def resolve_sort(sort: str, order: str) -> list[UnaryExpression]:
    """Возвращает ORDER BY для ключа сортировки и направления.

    id добавляется вторым ключом, чтобы порядок был полным и страницы
    не теряли и не дублировали строки с одинаковым значением.
    """
    column = SORT_COLUMNS.get(sort, Image.uploaded_at)
    if order == 'asc':
        return [column.asc(), Image.id.asc()]
    return [column.desc(), Image.id.desc()]


class ImageCRUD:
    """Слой доступа к данным для метаданных изображений."""

    def __init__(self, db: AsyncSession) -> None:
        """Инициализация CRUD с асинхронной сессией."""
        self.db = db

    async def get_page(
        self,
        *,
        search: str,
        sort: str,
        order: str,
        limit: int,
        offset: int,
    ) -> Sequence[Image]:
        """Страница записей по фильтру и сортировке."""
        stmt = (
            select(Image)
            .where(*build_filters(search))
            .order_by(*resolve_sort(sort, order))
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_stats(
        self,
        *,
        search: str,
    ) -> tuple[int, int, datetime | None]:
        """Количество, суммарный размер и дата последней загрузки."""
        stmt = select(
            func.count(Image.id),
            func.coalesce(func.sum(Image.file_size), 0),
            func.max(Image.uploaded_at),
        ).where(*build_filters(search))
        result = await self.db.execute(stmt)
        total_count, total_bytes, latest = result.one()
        return int(total_count or 0), int(total_bytes or 0), latest

    async def get_by_ids(self, ids: list[str]) -> Sequence[Image]:
        """Записи с указанными ID; отсутствующие ID просто не попадают."""
        if not ids:
            return []
        result = await self.db.execute(
            select(Image).where(Image.id.in_(ids)),
        )
        return result.scalars().all()

    async def create(
        self,
        *,
        id: str,
        object_key: str,
        original_filename: str,
        content_type: str,
        file_size: int,
        file_extension: str | None,
        public_url: str,
    ) -> Image:
        """Создаёт запись изображения в БД и фиксирует транзакцию."""
        image = Image(
            id=id,
            object_key=object_key,
            original_filename=original_filename,
            content_type=content_type,
            file_size=file_size,
            file_extension=file_extension,
            public_url=public_url,
        )
        self.db.add(image)
        await self.db.commit()
        await self.db.refresh(image)
        return image

    async def delete_by_id(self, image_id: str) -> None:
        """Удаляет строку в рамках текущей транзакции, без commit."""
        await self.db.execute(delete(Image).where(Image.id == image_id))
