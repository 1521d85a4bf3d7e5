"""Контракт объектного хранилища.

Обработчики зависят от этого интерфейса, а не от реализации:
S3, Cloudflare R2, MinIO или фейк в тестах.
"""

from typing import BinaryIO, Protocol


class ObjectStoreError(Exception):
    """Ошибка при обращении к объектному хранилищу."""

    def __init__(self, operation: str, key: str, reason: str) -> None:
        """Инициализирует ошибку с операцией и ключом объекта."""
        self.operation = operation
        self.key = key
        self.reason = reason
        super().__init__(f'{operation} {key!r}: {reason}')


class ObjectStore(Protocol):
    """Хранилище бинарных объектов с адресацией по ключу."""

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """Записывает объект под ключом key.

        Raises:
            ObjectStoreError: Если запись не удалась.

        """
        ...

    async def get(self, key: str) -> BinaryIO | None:
        """Возвращает поток байтов объекта или None, если объекта нет.

        Raises:
            ObjectStoreError: Если чтение не удалось.

        """
        ...

    async def delete(self, key: str) -> None:
        """Удаляет объект. Отсутствующий объект ошибкой не считается.

        Raises:
            ObjectStoreError: Если удаление не удалось.

        """
        ...

    def public_url(self, key: str) -> str:
        """Внешний адрес объекта."""
        ...
