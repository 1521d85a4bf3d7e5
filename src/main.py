from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import FastAPI

from src.api import main_router
from src.common.cors import CorsMiddleware
from src.common.exception_handlers import add_exception_handlers
from src.common.logging import configure_logging
from src.config import Settings, settings as default_settings
from src.database import Base, create_db_engine, create_session_factory
from src.storage import ObjectStore, S3ObjectStore


logger = logging.getLogger('app')


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Управляет жизненным циклом FastAPI-приложения."""
    if app.state.settings.database.CREATE_TABLES:
        async with app.state.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    logger.info('Сервис запущен')
    yield
    await app.state.engine.dispose()
    logger.info('Сервис остановлен')


def create_app(
    settings: Settings = default_settings,
    object_store: ObjectStore | None = None,
) -> FastAPI:
    """Собирает приложение с явно переданными настройками.

    Args:
        settings: Неизменяемые настройки процесса.
        object_store: Объектное хранилище; по умолчанию S3 по настройкам.

    Returns:
        Готовое FastAPI-приложение.

    """
    configure_logging(settings.logging.verbosity, settings.logging.DIR)

    app = FastAPI(title='imgdose API', lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = create_db_engine(settings.database)
    app.state.session_factory = create_session_factory(app.state.engine)
    app.state.object_store = object_store or S3ObjectStore(settings.storage)

    app.add_middleware(CorsMiddleware, cors_settings=settings.cors)
    add_exception_handlers(app)
    app.include_router(main_router)
    return app


app = create_app()
