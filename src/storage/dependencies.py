from fastapi import Request

from src.storage.base import ObjectStore


def get_object_store(request: Request) -> ObjectStore:
    """Возвращает объектное хранилище, созданное при сборке приложения."""
    return request.app.state.object_store
