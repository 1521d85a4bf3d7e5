import os
import re

from starlette.datastructures import UploadFile

from src.common.exceptions import BadRequestException
from src.config import (
    ALLOWED_IMAGE_MIME_TYPES,
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    MAX_ARCHIVE_ITEMS,
    MAX_EXTENSION_LENGTH,
    MAX_FILE_SIZE,
    MAX_FILE_SIZE_MB,
    MAX_PAGE_SIZE,
)
from src.images.schemas import ListQuery


SORT_KEYS = ('uploadedAt', 'originalFilename', 'fileSize')
UNSAFE_NAME_CHARS = re.compile(r'[^\w.\-]', re.ASCII)
EXTENSION_PATTERN = re.compile(
    rf'^[a-z0-9]{{1,{MAX_EXTENSION_LENGTH}}}$',
    re.ASCII,
)
INT_PREFIX_PATTERN = re.compile(r'^\s*([+-]?\d+)', re.ASCII)


class ImageValidationError(ValueError):
    """Файл не прошёл проверку; сообщение показывается пользователю."""


async def validate_image_upload(file: UploadFile) -> bytes:
    """Валидация загружаемого изображения.

    Returns:
        Содержимое файла.

    Raises:
        ImageValidationError: Пустой файл, неподдерживаемый тип
            или превышение размера.

    """
    if file.content_type not in ALLOWED_IMAGE_MIME_TYPES:
        raise ImageValidationError(
            'Неподдерживаемый тип файла. '
            'Доступны JPEG, PNG, WebP, GIF и SVG.',
        )

    content = await file.read()
    size = len(content)

    if size == 0:
        raise ImageValidationError('Файл пуст.')

    if size > MAX_FILE_SIZE:
        raise ImageValidationError(
            f'Файл слишком большой. Максимум {MAX_FILE_SIZE_MB} МБ.',
        )
    return content


def derive_extension(filename: str, content_type: str) -> str | None:
    """Расширение файла без точки в нижнем регистре.

    Берётся из имени файла, а если его там нет - из MIME-типа.
    """
    suffix = os.path.splitext(filename)[1].lstrip('.').lower()
    if EXTENSION_PATTERN.match(suffix):
        return suffix
    return ALLOWED_IMAGE_MIME_TYPES.get(content_type)


def _parse_int(raw: str | None, fallback: int, low: int, high: int) -> int:
    """Целое из начала строки с ограничением диапазона.

    '3.7' даёт 3, '12abc' даёт 12; строка без ведущих цифр даёт fallback.
    """
    match = INT_PREFIX_PATTERN.match(raw or '')
    if match is None:
        return fallback
    return max(low, min(high, int(match.group(1))))


def parse_list_query(
    search: str | None,
    sort: str | None,
    order: str | None,
    page: str | None,
    page_size: str | None,
) -> ListQuery:
    """Нормализует параметры GET /images.

    Неизвестная сортировка - uploadedAt, порядок по умолчанию - desc,
    page >= 1, pageSize в [1, 100]; нечисловые значения заменяются
    значениями по умолчанию.
    """
    return ListQuery(
        search=(search or '').strip(),
        sort=sort if sort in SORT_KEYS else 'uploadedAt',
        order='asc' if (order or '').strip().lower() == 'asc' else 'desc',
        page=_parse_int(page, DEFAULT_PAGE, 1, 2**31 - 1),
        page_size=_parse_int(
            page_size,
            DEFAULT_PAGE_SIZE,
            1,
            MAX_PAGE_SIZE,
        ),
    )


def validate_ids(ids: list[str]) -> list[str]:
    """Проверяет, что после нормализации остался хотя бы один ID."""
    if not ids:
        raise BadRequestException('Не передано ни одного ID изображения.')
    return ids


def validate_archive_ids(ids: list[str]) -> list[str]:
    """Проверка пакета на архивацию: непустой и не больше лимита."""
    validate_ids(ids)
    if len(ids) > MAX_ARCHIVE_ITEMS:
        raise BadRequestException(
            f'За один раз можно скачать не более {MAX_ARCHIVE_ITEMS} '
            'изображений.',
        )
    return ids


def sanitize_filename(filename: str) -> str:
    """Заменяет символы вне [A-Za-z0-9_.-] на дефис."""
    return UNSAFE_NAME_CHARS.sub('-', filename)


def sanitize_archive_name(original: str, extension: str | None) -> str:
    """Имя записи в ZIP: безопасное имя плюс расширение, если его нет."""
    base = sanitize_filename(original)
    if extension:
        if base.lower().endswith(f'.{extension.lower()}'):
            return base
        return f'{base}.{extension}'
    return base
