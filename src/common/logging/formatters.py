import logging
from typing import Any

from colorama import Fore, Style


class ColoredFormatter(logging.Formatter):
    """Форматтер с цветами ANSI для консольного вывода.

    Добавляет цвета к уровням логирования для улучшения читаемости.
    Запись не изменяется, поэтому файловый хендлер получает чистый текст.
    """

    LEVEL_COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.MAGENTA,
    }

    def format(self, record: Any) -> str:
        """Форматирует запись лога с цветами.

        Args:
            record: Запись лога

        Returns:
            Отформатированная строка лога

        """
        level_color = self.LEVEL_COLORS.get(record.levelno, Fore.WHITE)
        original_levelname = record.levelname
        record.levelname = f'{level_color}{record.levelname}{Style.RESET_ALL}'
        try:
            return super().format(record)
        finally:
            record.levelname = original_levelname


class ContextFilter(logging.Filter):
    """Добавляет в запись строку контекста из полей extra.

    Контекст (ID изображений, имена файлов, ключи объектов) пишется
    только в лог и никогда не уходит клиенту.
    """

    CONTEXT_FIELDS = ('ids', 'image_id', 'upload_name', 'object_key')

    def filter(self, record: Any) -> bool:
        """Заполняет record.context; фильтр всегда пропускает запись."""
        parts = [
            f'{field}={getattr(record, field)}'
            for field in self.CONTEXT_FIELDS
            if getattr(record, field, None) is not None
        ]
        record.context = f' | {" ".join(parts)}' if parts else ''
        return True
