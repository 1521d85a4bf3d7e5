from src.common.logging.config import configure_logging, logger
from src.common.logging.decorators import log_action


__all__ = [
    'logger',
    'log_action',
    'configure_logging',
]
