from src.database.base import Base
from src.database.engine import create_db_engine
from src.database.sessions import create_session_factory, get_async_session

__all__ = [
    'create_db_engine',
    'create_session_factory',
    'get_async_session',
    'Base',
]
