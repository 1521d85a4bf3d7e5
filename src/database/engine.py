from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from src.config import DatabaseSettings


def create_db_engine(db_settings: DatabaseSettings) -> AsyncEngine:
    """Создаёт асинхронный движок SQLAlchemy по настройкам базы."""
    return create_async_engine(
        db_settings.URL,
        pool_timeout=db_settings.POOL_TIMEOUT,
        pool_recycle=db_settings.POOL_RECYCLE,
        pool_size=db_settings.POOL_SIZE,
        max_overflow=db_settings.MAX_OVERFLOW,
        pool_pre_ping=db_settings.POOL_PING,
        echo=db_settings.ECHO_SQL,
    )
