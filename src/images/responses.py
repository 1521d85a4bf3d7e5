from http import HTTPStatus
from typing import Any, Dict

from src.common.responses import (
    ERROR_400_RESPONSE,
    ERROR_401_RESPONSE,
    ERROR_404_RESPONSE,
    ERROR_500_RESPONSE,
)
from src.images.schemas import DeleteResponse, UploadResponse


LIST_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    **ERROR_401_RESPONSE,
    **ERROR_500_RESPONSE,
}

UPLOAD_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    HTTPStatus.MULTI_STATUS.value: {
        'description': 'Часть файлов не загружена',
        'model': UploadResponse,
    },
    **ERROR_400_RESPONSE,
    **ERROR_401_RESPONSE,
    **ERROR_500_RESPONSE,
}

DELETE_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    **ERROR_400_RESPONSE,
    **ERROR_401_RESPONSE,
    **ERROR_404_RESPONSE,
    HTTPStatus.INTERNAL_SERVER_ERROR.value: {
        'description': 'Ни одно изображение не удалено',
        'model': DeleteResponse,
    },
}

ARCHIVE_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    HTTPStatus.OK.value: {
        'description': 'ZIP-архив',
        'content': {'application/zip': {}},
    },
    **ERROR_400_RESPONSE,
    **ERROR_401_RESPONSE,
    **ERROR_404_RESPONSE,
    **ERROR_500_RESPONSE,
}
