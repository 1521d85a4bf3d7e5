from datetime import datetime, timedelta, timezone
import io
from typing import AsyncGenerator, BinaryIO, Callable

import httpx
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from src.config import (
    AuthSettings,
    CorsSettings,
    DatabaseSettings,
    LoggingSettings,
    Settings,
)
from src.database import Base, get_async_session
from src.images.models import Image
from src.main import create_app
from src.storage import ObjectStoreError


TEST_DATABASE_URL = 'sqlite+aiosqlite:///:memory:'
PUBLIC_BASE_URL = 'https://cdn.example.test'
BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class InMemoryObjectStore:
    """Объектное хранилище в памяти с управляемыми отказами."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.reads: list[str] = []
        self.fail_put_when: Callable[[str, bytes], bool] | None = None
        self.fail_get_keys: set[str] = set()
        self.fail_delete_keys: set[str] = set()

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        if self.fail_put_when and self.fail_put_when(key, data):
            raise ObjectStoreError('put', key, 'bucket unavailable')
        self.objects[key] = data
        self.content_types[key] = content_type

    async def get(self, key: str) -> BinaryIO | None:
        self.reads.append(key)
        if key in self.fail_get_keys:
            raise ObjectStoreError('get', key, 'read timeout')
        if key not in self.objects:
            return None
        return io.BytesIO(self.objects[key])

    async def delete(self, key: str) -> None:
        if key in self.fail_delete_keys:
            raise ObjectStoreError('delete', key, 'access denied')
        self.objects.pop(key, None)

    def public_url(self, key: str) -> str:
        return f'{PUBLIC_BASE_URL}/{key}'


def make_settings(**overrides) -> Settings:
    """Настройки для тестов: без создания таблиц и без логов."""
    values = {
        'database': DatabaseSettings(CREATE_TABLES=False),
        'logging': LoggingSettings(LEVEL='silent'),
        'cors': CorsSettings(ORIGINS=''),
        'auth': AuthSettings(USERNAME=None, PASSWORD=None),
    }
    values.update(overrides)
    return Settings(**values)


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={'check_same_thread': False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest_asyncio.fixture
async def make_client(session_factory, store):
    """Фабрика HTTP-клиентов к приложению с заданными настройками."""
    clients: list[httpx.AsyncClient] = []

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    def factory(
        *,
        raise_app_exceptions: bool = True,
        **overrides,
    ) -> httpx.AsyncClient:
        app = create_app(make_settings(**overrides), object_store=store)
        app.dependency_overrides[get_async_session] = override_session
        client = httpx.AsyncClient(
            transport=httpx.ASGITransport(
                app=app,
                raise_app_exceptions=raise_app_exceptions,
            ),
            base_url='http://test',
        )
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.aclose()


@pytest_asyncio.fixture
async def client(make_client) -> httpx.AsyncClient:
    return make_client()


@pytest_asyncio.fixture
async def add_image(session_factory, store):
    """Создаёт запись и объект напрямую, минуя HTTP."""
    counter = {'value': 0}

    async def factory(
        filename: str,
        *,
        size: int = 100,
        content: bytes | None = None,
        extension: str | None = 'png',
        uploaded_at: datetime | None = None,
        with_object: bool = True,
    ) -> Image:
        counter['value'] += 1
        number = counter['value']
        data = content if content is not None else bytes([number % 256]) * size
        key = f'images/2024/05/{number:032x}.{extension or "bin"}'
        if with_object:
            store.objects[key] = data
        image = Image(
            object_key=key,
            original_filename=filename,
            content_type='image/png',
            file_size=len(data),
            uploaded_at=uploaded_at or BASE_TIME + timedelta(minutes=number),
            file_extension=extension,
            public_url=store.public_url(key),
        )
        async with session_factory() as session:
            session.add(image)
            await session.commit()
        return image

    return factory
