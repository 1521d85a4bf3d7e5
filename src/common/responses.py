"""Стандартные ответы API.

Содержит предопределенные ответы для различных HTTP статус кодов,
используемые в эндпоинтах API для документации OpenAPI.
"""

from http import HTTPStatus
from typing import Any, Dict

from src.common.schemas import ErrorResponse


def create_error_response(
    status_code: HTTPStatus,
    description: str,
) -> Dict[int | str, Dict[str, Any]]:
    """Создает шаблон ответа об ошибке с заданным статусом и описанием."""
    return {
        status_code.value: {
            'description': description,
            'model': ErrorResponse,
        },
    }


ERROR_400_RESPONSE = create_error_response(
    HTTPStatus.BAD_REQUEST,
    'Ошибка в параметрах запроса',
)

ERROR_401_RESPONSE = create_error_response(
    HTTPStatus.UNAUTHORIZED,
    'Требуется авторизация',
)

ERROR_404_RESPONSE = create_error_response(
    HTTPStatus.NOT_FOUND,
    'Данные не найдены',
)

ERROR_500_RESPONSE = create_error_response(
    HTTPStatus.INTERNAL_SERVER_ERROR,
    'Ошибка хранилища',
)
