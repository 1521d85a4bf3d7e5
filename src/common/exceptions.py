# src/common/exceptions.py
"""Кастомные исключения для проекта."""
from dataclasses import dataclass
from http import HTTPStatus


@dataclass
class AppException(Exception):
    """Базовое исключение приложения."""

    status_code: int
    message: str


class BadRequestException(AppException):
    """Ошибка в параметрах запроса."""

    def __init__(self, message: str = 'Ошибка в параметрах запроса') -> None:
        """Инициализирует ошибку запроса (HTTP 400)."""
        super().__init__(
            status_code=HTTPStatus.BAD_REQUEST,
            message=message,
        )


class NotAuthorizedException(AppException):
    """Ошибка неавторизированного пользователя."""

    def __init__(
            self,
            message: str = 'Требуется авторизация',
    ) -> None:
        """Инициализирует ошибку неавторизированного пользователя."""
        super().__init__(
            status_code=HTTPStatus.UNAUTHORIZED,
            message=message)


class NotFoundException(AppException):
    """Ошибка данных не найдены."""

    def __init__(self, message: str = 'Данные не найдены') -> None:
        """Инициализирует ошибку данных не найдены."""
        super().__init__(
            status_code=HTTPStatus.NOT_FOUND,
            message=message)


class InternalErrorException(AppException):
    """Ошибка хранилища или иная внутренняя ошибка."""

    def __init__(self, message: str = 'Внутренняя ошибка сервера') -> None:
        """Инициализирует внутреннюю ошибку (HTTP 500)."""
        super().__init__(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            message=message)
