"""CORS-заголовки и ответ на pre-flight запросы."""

from http import HTTPStatus
import logging

from starlette.middleware.base import (
    BaseHTTPMiddleware,
    RequestResponseEndpoint,
)
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from src.common.exception_handlers import INTERNAL_ERROR_MESSAGE, error_json
from src.config import CORS_ALLOW_METHODS, CORS_MAX_AGE, CorsSettings


logger = logging.getLogger('app')


def resolve_cors_origin(
    allowed_origins: list[str] | None,
    request_origin: str | None,
) -> str | None:
    """Определяет значение Access-Control-Allow-Origin.

    Args:
        allowed_origins: Список разрешённых origin, None - любой.
        request_origin: Заголовок Origin запроса.

    Returns:
        '*', origin запроса из списка или None, если origin не разрешён.

    """
    if allowed_origins is None:
        return '*'
    if not request_origin:
        return None
    return request_origin if request_origin in allowed_origins else None


def build_cors_headers(
    allowed_origins: list[str] | None,
    request_origin: str | None,
    request_headers: str | None,
) -> dict[str, str]:
    """Собирает CORS-заголовки для конкретного запроса."""
    headers = {
        'vary': 'origin',
        'access-control-allow-methods': CORS_ALLOW_METHODS,
        'access-control-allow-headers': request_headers or '*',
    }
    allow_origin = resolve_cors_origin(allowed_origins, request_origin)
    if allow_origin:
        headers['access-control-allow-origin'] = allow_origin
        if allow_origin != '*':
            headers['access-control-allow-credentials'] = 'true'
    return headers


class CorsMiddleware(BaseHTTPMiddleware):
    """Добавляет CORS-заголовки к каждому ответу.

    OPTIONS-запросы на любой путь обрабатываются здесь же: 204 без тела
    и кэш pre-flight на сутки. До роутинга и проверки учётки они не доходят.
    Необработанная ошибка приложения отдаётся здесь же как 500
    с CORS-заголовками.
    """

    def __init__(self, app: ASGIApp, cors_settings: CorsSettings) -> None:
        """Запоминает список разрешённых origin."""
        super().__init__(app)
        self.allowed_origins = cors_settings.allowed_origins

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Отвечает на pre-flight или дополняет ответ заголовками."""
        cors_headers = build_cors_headers(
            self.allowed_origins,
            request.headers.get('origin'),
            request.headers.get('access-control-request-headers'),
        )

        if request.method == 'OPTIONS':
            cors_headers['access-control-max-age'] = str(CORS_MAX_AGE)
            return Response(status_code=204, headers=cors_headers)

        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                'Необработанная ошибка при %s %s',
                request.method,
                request.url.path,
                exc_info=True,
            )
            response = error_json(
                HTTPStatus.INTERNAL_SERVER_ERROR,
                INTERNAL_ERROR_MESSAGE,
            )
        response.headers.update(cors_headers)
        content_type = response.headers.get('content-type', '')
        if content_type.startswith('application/json'):
            response.headers.setdefault('cache-control', 'no-store')
        return response
