import logging
from logging.handlers import RotatingFileHandler
import os
import sys

from colorama import init

from src.common.logging.formatters import ColoredFormatter, ContextFilter
from src.config import COUNT_FILES, MAX_BYTES


LOGGER_NAME = 'app'
LOG_FORMAT = '%(asctime)s | %(levelname)s | %(message)s%(context)s'
DATE_FORMAT = '%d-%m-%Y %H:%M:%S'

VERBOSITY_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
}

init(strip=False, autoreset=True)

logger = logging.getLogger(LOGGER_NAME)


def configure_logging(verbosity: str, logs_dir: str | None = None) -> None:
    """Настраивает логгер приложения.

    Повторный вызов заменяет хендлеры, а не добавляет новые.

    Args:
        verbosity: Уровень: debug, info или silent.
        logs_dir: Каталог для файла working.log с ротацией. Если не задан,
            логи пишутся только в консоль.

    """
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for log_filter in list(logger.filters):
        logger.removeFilter(log_filter)

    logger.propagate = False

    if verbosity == 'silent':
        logger.disabled = True
        return

    logger.disabled = False
    logger.setLevel(VERBOSITY_LEVELS.get(verbosity, logging.INFO))
    logger.addFilter(ContextFilter())

    if logs_dir:
        os.makedirs(logs_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(logs_dir, 'working.log'),
            maxBytes=MAX_BYTES,
            backupCount=COUNT_FILES,
            encoding='utf-8',
        )
        file_handler.setFormatter(
            logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT),
        )
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        ColoredFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT),
    )
    logger.addHandler(console_handler)
