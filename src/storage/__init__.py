from src.storage.base import ObjectStore, ObjectStoreError
from src.storage.dependencies import get_object_store
from src.storage.s3 import S3ObjectStore


__all__ = [
    'ObjectStore',
    'ObjectStoreError',
    'S3ObjectStore',
    'get_object_store',
]
