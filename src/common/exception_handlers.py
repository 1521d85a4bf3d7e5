# src/common/exception_handlers.py
"""Обработчики исключений для FastAPI приложения.

Любая ошибка превращается в конверт {ok: false, error}, без трассировок
и внутренних идентификаторов.
"""
from http import HTTPStatus
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.common.exceptions import AppException
from src.common.schemas import ErrorResponse


logger = logging.getLogger('app')

INTERNAL_ERROR_MESSAGE = 'Внутренняя ошибка сервера'


def error_json(
    status_code: int,
    message: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Собирает JSON-ответ об ошибке в едином конверте."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
        headers=headers,
    )


def add_exception_handlers(app: FastAPI) -> None:
    """Добавляет обработчики исключений в наше приложение."""
    @app.exception_handler(AppException)
    async def app_exception_handler(
        request: Request,
        exc: AppException,
    ) -> JSONResponse:
        headers = None
        # Для 401 нужен заголовок, чтобы браузер запросил Basic-учётку
        if exc.status_code == HTTPStatus.UNAUTHORIZED:
            headers = {
                'WWW-Authenticate': 'Basic realm="imgdose", charset="UTF-8"',
            }
        return error_json(exc.status_code, exc.message, headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        # 404 неизвестного маршрута, 405 и т.п.
        message = exc.detail if isinstance(exc.detail, str) else (
            HTTPStatus(exc.status_code).phrase
        )
        return error_json(exc.status_code, message, exc.headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = exc.errors()
        is_json_decode_error = any(
            err.get('type') in ('json_invalid', 'value_error.jsondecode')
            for err in errors
        )
        if is_json_decode_error:
            message = 'Не удалось разобрать тело запроса, проверьте JSON'
        else:
            message = 'Ошибка в параметрах запроса'
        logger.info(
            'Запрос %s %s отклонён валидацией: %s',
            request.method,
            request.url.path,
            errors,
        )
        return error_json(HTTPStatus.BAD_REQUEST, message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        logger.error(
            'Необработанная ошибка при %s %s',
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return error_json(
            HTTPStatus.INTERNAL_SERVER_ERROR,
            INTERNAL_ERROR_MESSAGE,
        )
