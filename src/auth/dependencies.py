import logging
import secrets

from fastapi import Depends, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from src.common.exceptions import NotAuthorizedException
from src.config import AuthSettings, Settings


security = HTTPBasic(auto_error=False)

logger = logging.getLogger('app')


def get_settings(request: Request) -> Settings:
    """Настройки, с которыми было собрано приложение."""
    return request.app.state.settings


def credentials_match(
    auth_settings: AuthSettings,
    credentials: HTTPBasicCredentials,
) -> bool:
    """Сравнение логина и пароля за постоянное время."""
    username_ok = secrets.compare_digest(
        credentials.username.encode('utf-8'),
        (auth_settings.USERNAME or '').encode('utf-8'),
    )
    password_ok = secrets.compare_digest(
        credentials.password.encode('utf-8'),
        (auth_settings.PASSWORD or '').encode('utf-8'),
    )
    return username_ok and password_ok


async def require_credentials(
    request: Request,
    settings: Settings = Depends(get_settings),
    credentials: HTTPBasicCredentials | None = Depends(security),
) -> None:
    """Проверяет общую учётную запись, если она настроена.

    Без AUTH_USERNAME и AUTH_PASSWORD доступ открыт.
    """
    if not settings.auth.enabled:
        return

    if credentials is None or not credentials_match(
        settings.auth,
        credentials,
    ):
        logger.warning(
            'Отказ в доступе: %s %s',
            request.method,
            request.url.path,
        )
        raise NotAuthorizedException()
