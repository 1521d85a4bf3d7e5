import functools
import inspect
from typing import Any, Callable

from src.common.logging.config import logger


EXCLUDE_KEYS = frozenset({'session', 'store', 'files', 'request'})
MAX_LOGGED_ITEMS = 10


def _extract_params(kwargs: dict[str, Any]) -> dict[str, Any]:
    """Обрабатывает параметры, исключая служебные и тяжёлые ключи.

    Длинные списки (например, ID) обрезаются, чтобы не раздувать лог.

    Args:
        kwargs: Аргументы функции

    Returns:
        Отфильтрованные параметры

    """
    params = {}

    for k, v in kwargs.items():
        if k in EXCLUDE_KEYS:
            continue

        if hasattr(v, 'model_dump'):
            params[k] = v.model_dump(exclude_none=True)
        elif isinstance(v, (list, tuple)) and len(v) > MAX_LOGGED_ITEMS:
            rest = len(v) - MAX_LOGGED_ITEMS
            params[k] = [*v[:MAX_LOGGED_ITEMS], f'... +{rest}']
        else:
            params[k] = v

    return params


def _log_start(action: str, params: dict[str, Any]) -> None:
    """Логирует запуск процесса."""
    msg = f'Запуск 🚀 {action}' + (f' | параметры: {params}' if params else '')
    logger.debug(msg)


def _log_success(action: str) -> None:
    """Логирует успешное завершение процесса."""
    logger.debug(f'Успешно ✅ {action}')


def _log_error(action: str, error: Exception) -> None:
    """Логирует неуспешное завершение процесса.

    Args:
        action: Название действия
        error: Исключение

    """
    logger.error(f'Неудача ❌ {action} | {error!s}')


def log_action(
    action: str,
    skip_logging: bool = False,
    only_errors: bool = False,
) -> Callable:
    """Декоратор для логирования процессов.

    Используется для логирования операций в service layer. Старт и успех
    пишутся на уровне DEBUG, ошибки - на уровне ERROR.

    Args:
        action: Описание действия для лога
        skip_logging: Пропустить логирование старта и успеха
        only_errors: Логировать только ошибки

    Returns:
        Декоратор функции

    Example:
        @log_action('Удаление изображений')
        async def delete_images(
            *,
            session: AsyncSession,
            store: ObjectStore,
            ids: list[str],
        ) -> DeleteResult:
            ...

    """

    def wrapper(func: Callable) -> Callable:
        """Возвращает асинхронную или синхронную обертку."""
        is_async = inspect.iscoroutinefunction(func)

        @functools.wraps(func)
        async def async_inner(*args: Any, **kwargs: Any) -> Any:
            """Обертка для асинхронной функции."""
            params = _extract_params(kwargs)

            if not skip_logging and not only_errors:
                _log_start(action, params)

            try:
                result = await func(*args, **kwargs)
                if not skip_logging and not only_errors:
                    _log_success(action)
                return result
            except Exception as e:
                _log_error(action, e)
                raise

        @functools.wraps(func)
        def sync_inner(*args: Any, **kwargs: Any) -> Any:
            """Обертка для синхронной функции."""
            params = _extract_params(kwargs)

            if not skip_logging and not only_errors:
                _log_start(action, params)

            try:
                result = func(*args, **kwargs)
                if not skip_logging and not only_errors:
                    _log_success(action)
                return result
            except Exception as e:
                _log_error(action, e)
                raise

        return async_inner if is_async else sync_inner

    return wrapper
