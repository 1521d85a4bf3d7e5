"""Сервисный слой изображений.

Согласованность двух хранилищ держится только на порядке операций
внутри запроса: объект пишется до строки и удаляется до строки.
Распределённых транзакций нет, частичные отказы отдаются поэлементно.
"""

from datetime import datetime, timezone
from http import HTTPStatus
import io
import logging
from typing import Sequence
import uuid
import zipfile

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from src.common.exceptions import InternalErrorException, NotFoundException
from src.common.logging import log_action
from src.config import (
    ARCHIVE_NAME_PREFIX,
    DEFAULT_FILENAME,
    OBJECT_KEY_PREFIX,
)
from src.images.crud import ImageCRUD
from src.images.models import Image
from src.images.schemas import (
    DeleteFailure,
    DeleteResponse,
    ImageListResponse,
    ImageRecord,
    ImageStats,
    ListQuery,
    Pagination,
    UploadResult,
)
from src.images.validators import (
    ImageValidationError,
    derive_extension,
    sanitize_archive_name,
    validate_image_upload,
)
from src.storage import ObjectStore, ObjectStoreError


logger = logging.getLogger('app')

STORE_WRITE_FAILED = 'Не удалось сохранить файл в хранилище.'
DB_WRITE_FAILED = 'Не удалось сохранить метаданные изображения.'
STORE_DELETE_FAILED = 'Не удалось удалить файл из хранилища.'
DB_DELETE_FAILED = 'Не удалось удалить запись из базы данных.'
NOTHING_DELETED = 'Не удалось удалить ни одного изображения.'
NOT_FOUND = 'Изображения с указанными ID не найдены.'


def build_object_key(
    image_id: str,
    extension: str | None,
    now: datetime,
) -> str:
    """Ключ объекта: images/<год>/<месяц>/<uuid>.<расширение>."""
    name = uuid.UUID(image_id).hex
    if extension:
        name = f'{name}.{extension}'
    return f'{OBJECT_KEY_PREFIX}/{now:%Y}/{now:%m}/{name}'


def resolve_upload_status(
    results: list[UploadResult],
    storage_failed: bool,
) -> HTTPStatus:
    """HTTP-статус пакетной загрузки.

    200 - всё загружено, 207 - частично, 500 - ничего не загружено и
    был отказ хранилища, 400 - ничего не загружено из-за валидации.
    """
    succeeded = sum(1 for result in results if result.success)
    if succeeded == len(results):
        return HTTPStatus.OK
    if succeeded:
        return HTTPStatus.MULTI_STATUS
    if storage_failed:
        return HTTPStatus.INTERNAL_SERVER_ERROR
    return HTTPStatus.BAD_REQUEST


async def _store_file(
    crud: ImageCRUD,
    store: ObjectStore,
    file: UploadFile,
    filename: str,
) -> Image:
    """Валидация, запись объекта и создание записи в БД.

    Объект пишется первым: при сбое вставки остаётся осиротевший объект,
    но никогда не строка без объекта.
    """
    content = await validate_image_upload(file)
    content_type = file.content_type or ''
    extension = derive_extension(filename, content_type)
    image_id = str(uuid.uuid4())
    object_key = build_object_key(
        image_id,
        extension,
        datetime.now(timezone.utc),
    )

    await store.put(object_key, content, content_type)

    try:
        return await crud.create(
            id=image_id,
            object_key=object_key,
            original_filename=filename,
            content_type=content_type,
            file_size=len(content),
            file_extension=extension,
            public_url=store.public_url(object_key),
        )
    except SQLAlchemyError:
        await crud.db.rollback()
        logger.error(
            'Запись метаданных не создана, объект остался без строки',
            extra={'upload_name': filename, 'object_key': object_key},
            exc_info=True,
        )
        raise


@log_action('Загрузка изображений')
async def upload_images(
    *,
    session: AsyncSession,
    store: ObjectStore,
    files: Sequence[UploadFile],
) -> tuple[list[UploadResult], HTTPStatus]:
    """Загружает файлы по одному; отказ одного не прерывает остальные.

    Returns:
        Результаты по каждому файлу и итоговый HTTP-статус.

    """
    crud = ImageCRUD(session)
    results: list[UploadResult] = []
    storage_failed = False

    for file in files:
        filename = file.filename or DEFAULT_FILENAME
        try:
            image = await _store_file(crud, store, file, filename)
        except ImageValidationError as e:
            logger.info(
                'Файл отклонён: %s',
                e,
                extra={'upload_name': filename},
            )
            results.append(
                UploadResult(success=False, filename=filename, error=str(e)),
            )
            continue
        except ObjectStoreError:
            logger.error(
                'Не удалось записать объект',
                extra={'upload_name': filename},
                exc_info=True,
            )
            storage_failed = True
            results.append(
                UploadResult(
                    success=False,
                    filename=filename,
                    error=STORE_WRITE_FAILED,
                ),
            )
            continue
        except SQLAlchemyError:
            storage_failed = True
            results.append(
                UploadResult(
                    success=False,
                    filename=filename,
                    error=DB_WRITE_FAILED,
                ),
            )
            continue

        logger.info(
            'Изображение %s загружено',
            image.id,
            extra={'upload_name': filename, 'object_key': image.object_key},
        )
        results.append(
            UploadResult(
                success=True,
                filename=filename,
                record=ImageRecord.model_validate(image),
            ),
        )

    logger.debug(
        'Итог загрузки: запрошено %d, успешно %d, с ошибкой %d',
        len(files),
        sum(1 for r in results if r.success),
        sum(1 for r in results if not r.success),
    )
    return results, resolve_upload_status(results, storage_failed)


@log_action('Получение списка изображений', only_errors=True)
async def list_images(
    *,
    session: AsyncSession,
    query: ListQuery,
) -> ImageListResponse:
    """Страница изображений и агрегаты по тому же фильтру."""
    crud = ImageCRUD(session)
    try:
        images = await crud.get_page(
            search=query.search,
            sort=query.sort,
            order=query.order,
            limit=query.page_size,
            offset=query.offset,
        )
        total, total_bytes, latest = await crud.get_stats(
            search=query.search,
        )
    except SQLAlchemyError as e:
        logger.error(
            'Ошибка запроса списка изображений: %s',
            query.model_dump(),
            exc_info=True,
        )
        raise InternalErrorException(
            'Не удалось получить список изображений.',
        ) from e

    return ImageListResponse(
        items=[ImageRecord.model_validate(image) for image in images],
        pagination=Pagination(
            total=total,
            page=query.page,
            page_size=query.page_size,
            has_next=query.offset + len(images) < total,
            has_prev=query.page > 1,
        ),
        stats=ImageStats(
            total_count=total,
            total_bytes=total_bytes,
            latest_uploaded_at=latest,
        ),
    )


async def _find_images(crud: ImageCRUD, ids: list[str]) -> list[Image]:
    """Записи по ID в порядке запроса; 404, если не нашлось ни одной."""
    try:
        rows = await crud.get_by_ids(ids)
    except SQLAlchemyError as e:
        logger.error(
            'Ошибка поиска изображений по ID',
            extra={'ids': ids},
            exc_info=True,
        )
        raise InternalErrorException(
            'Не удалось получить изображения.',
        ) from e

    if not rows:
        logger.info('Изображения не найдены', extra={'ids': ids})
        raise NotFoundException(NOT_FOUND)

    position = {image_id: index for index, image_id in enumerate(ids)}
    return sorted(rows, key=lambda row: position[row.id])


@log_action('Удаление изображений')
async def delete_images(
    *,
    session: AsyncSession,
    store: ObjectStore,
    ids: list[str],
) -> tuple[DeleteResponse, HTTPStatus]:
    """Удаляет объекты и строки; для каждой записи сначала объект.

    Строки удаляются внутри одной транзакции, каждая в своей точке
    сохранения. Если не прошёл сам commit, объекты уже удалены, а строки
    остаются: такое расхождение логируется и отдаётся как 500.
    """
    crud = ImageCRUD(session)
    rows = await _find_images(crud, ids)

    deleted: list[str] = []
    failures: list[DeleteFailure] = []

    for row in rows:
        try:
            await store.delete(row.object_key)
        except ObjectStoreError:
            logger.error(
                'Не удалось удалить объект',
                extra={'image_id': row.id, 'object_key': row.object_key},
                exc_info=True,
            )
            failures.append(
                DeleteFailure(id=row.id, reason=STORE_DELETE_FAILED),
            )
            continue

        try:
            async with session.begin_nested():
                await crud.delete_by_id(row.id)
        except SQLAlchemyError:
            logger.error(
                'Объект удалён, но строка осталась',
                extra={'image_id': row.id, 'object_key': row.object_key},
                exc_info=True,
            )
            failures.append(DeleteFailure(id=row.id, reason=DB_DELETE_FAILED))
            continue

        deleted.append(row.id)

    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.critical(
            'Commit удаления не прошёл: объекты удалены, строки остались',
            extra={'ids': deleted},
            exc_info=True,
        )
        raise InternalErrorException(
            'Ошибка транзакции при удалении изображений.',
        ) from e

    if deleted:
        logger.info(
            'Удалено изображений: %d, ошибок: %d',
            len(deleted),
            len(failures),
        )
        return (
            DeleteResponse(ok=True, deleted=deleted, failures=failures),
            HTTPStatus.OK,
        )

    return (
        DeleteResponse(
            ok=False,
            deleted=deleted,
            failures=failures,
            error=NOTHING_DELETED,
        ),
        HTTPStatus.INTERNAL_SERVER_ERROR,
    )


def unique_entry_name(name: str, used: set[str]) -> str:
    """Имя записи ZIP без коллизий: photo.png, photo-2.png, photo-3.png."""
    if name not in used:
        return name
    stem, dot, suffix = name.rpartition('.')
    if not dot or not stem:
        stem, suffix = name, ''
    counter = 2
    while True:
        candidate = f'{stem}-{counter}'
        if suffix:
            candidate = f'{candidate}.{suffix}'
        if candidate not in used:
            return candidate
        counter += 1


def archive_filename(now: datetime) -> str:
    """Имя файла архива с отметкой времени UTC."""
    timestamp = now.astimezone(timezone.utc).strftime('%Y-%m-%dT%H-%M-%S')
    return f'{ARCHIVE_NAME_PREFIX}-{timestamp}.zip'


@log_action('Сборка ZIP-архива')
async def build_archive(
    *,
    session: AsyncSession,
    store: ObjectStore,
    ids: list[str],
) -> io.BytesIO:
    """Собирает ZIP (без сжатия) из доступных объектов.

    Недоступные объекты пропускаются. Если не удалось добавить ни одного
    файла, вместо пустого архива поднимается 404.
    """
    crud = ImageCRUD(session)
    rows = await _find_images(crud, ids)

    buffer = io.BytesIO()
    used_names: set[str] = set()

    try:
        with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_STORED) as archive:
            for row in rows:
                if not row.object_key:
                    logger.debug(
                        'Пропуск записи без ключа объекта',
                        extra={'image_id': row.id},
                    )
                    continue

                try:
                    stream = await store.get(row.object_key)
                except ObjectStoreError:
                    logger.error(
                        'Не удалось прочитать объект для архива',
                        extra={
                            'image_id': row.id,
                            'object_key': row.object_key,
                        },
                        exc_info=True,
                    )
                    continue

                if stream is None:
                    logger.error(
                        'Объект для архива отсутствует в хранилище',
                        extra={
                            'image_id': row.id,
                            'object_key': row.object_key,
                        },
                    )
                    continue

                name = unique_entry_name(
                    sanitize_archive_name(
                        row.original_filename or row.id,
                        row.file_extension,
                    ),
                    used_names,
                )
                used_names.add(name)
                archive.writestr(name, stream.read())
    except (OSError, zipfile.LargeZipFile) as e:
        logger.error(
            'Ошибка при создании ZIP-архива',
            extra={'ids': ids},
            exc_info=True,
        )
        raise InternalErrorException(
            'Ошибка при создании ZIP-архива.',
        ) from e

    if not used_names:
        logger.error(
            'Не удалось получить ни одного файла для архива',
            extra={'ids': ids},
        )
        raise NotFoundException(
            'Не удалось получить данные запрошенных изображений.',
        )

    buffer.seek(0)
    logger.info('Собран архив из %d файлов', len(used_names))
    return buffer
