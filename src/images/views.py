from datetime import datetime, timezone
import io
from typing import Iterator

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.exceptions import BadRequestException
from src.config import ARCHIVE_CHUNK_SIZE
from src.database.sessions import get_async_session
from src.images.responses import (
    ARCHIVE_RESPONSES,
    DELETE_RESPONSES,
    LIST_RESPONSES,
    UPLOAD_RESPONSES,
)
from src.images.schemas import (
    DeleteResponse,
    ImageIdsRequest,
    ImageListResponse,
    UploadResponse,
)
from src.images.services import (
    archive_filename,
    build_archive,
    delete_images,
    list_images,
    upload_images,
)
from src.images.validators import (
    parse_list_query,
    validate_archive_ids,
    validate_ids,
)
from src.storage import ObjectStore, get_object_store


router = APIRouter()


@router.get(
    '',
    response_model=ImageListResponse,
    summary='Список изображений',
    description='Поиск по имени файла, сортировка и постраничный вывод '
    'вместе со статистикой по найденным записям.',
    responses=LIST_RESPONSES,
)
async def get_images(
    search: str | None = Query(None, description='Подстрока имени файла'),
    sort: str | None = Query(
        None,
        description='uploadedAt, originalFilename или fileSize',
    ),
    order: str | None = Query(None, description='asc или desc'),
    page: str | None = Query(None, description='Номер страницы, от 1'),
    page_size: str | None = Query(
        None,
        alias='pageSize',
        description='Размер страницы, от 1 до 100',
    ),
    session: AsyncSession = Depends(get_async_session),
) -> ImageListResponse:
    """Обработчик GET /images."""
    query = parse_list_query(search, sort, order, page, page_size)
    return await list_images(session=session, query=query)


@router.post(
    '',
    response_model=UploadResponse,
    summary='Загрузить изображения',
    description='Каждый файл обрабатывается отдельно: 200 - загружены все, '
    '207 - часть, 400 - ни одного.',
    responses=UPLOAD_RESPONSES,
)
async def post_images(
    files: list[UploadFile] | None = File(
        None,
        description='Файлы изображений (JPEG, PNG, WebP, GIF, SVG)',
    ),
    session: AsyncSession = Depends(get_async_session),
    store: ObjectStore = Depends(get_object_store),
) -> JSONResponse:
    """Обработчик POST /images."""
    if not files:
        raise BadRequestException('Не прикреплено ни одного файла.')

    results, status_code = await upload_images(
        session=session,
        store=store,
        files=files,
    )
    body = UploadResponse(
        ok=any(result.success for result in results),
        results=results,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(
            mode='json',
            by_alias=True,
            exclude_none=True,
        ),
    )


@router.delete(
    '',
    response_model=DeleteResponse,
    summary='Удалить изображения',
    description='Удаляет объекты из хранилища и записи из базы. '
    'Неизвестные ID пропускаются.',
    responses=DELETE_RESPONSES,
)
async def remove_images(
    payload: ImageIdsRequest,
    session: AsyncSession = Depends(get_async_session),
    store: ObjectStore = Depends(get_object_store),
) -> JSONResponse:
    """Обработчик DELETE /images."""
    ids = validate_ids(payload.ids)
    result, status_code = await delete_images(
        session=session,
        store=store,
        ids=ids,
    )
    return JSONResponse(
        status_code=status_code,
        content=result.model_dump(mode='json', exclude_none=True),
    )


def _iter_chunks(buffer: io.BytesIO) -> Iterator[bytes]:
    """Отдаёт содержимое буфера кусками."""
    yield from iter(lambda: buffer.read(ARCHIVE_CHUNK_SIZE), b'')


@router.post(
    '/archive',
    status_code=status.HTTP_200_OK,
    summary='Скачать изображения одним ZIP',
    description='Не более 50 ID за запрос. Недоступные файлы пропускаются.',
    response_class=StreamingResponse,
    responses=ARCHIVE_RESPONSES,
)
async def archive_images(
    payload: ImageIdsRequest,
    session: AsyncSession = Depends(get_async_session),
    store: ObjectStore = Depends(get_object_store),
) -> StreamingResponse:
    """Обработчик POST /images/archive."""
    ids = validate_archive_ids(payload.ids)
    buffer = await build_archive(session=session, store=store, ids=ids)
    filename = archive_filename(datetime.now(timezone.utc))
    return StreamingResponse(
        _iter_chunks(buffer),
        media_type='application/zip',
        headers={
            'content-disposition': f'attachment; filename="{filename}"',
            'cache-control': 'no-store',
        },
    )
