import io
import logging
from typing import Any, BinaryIO

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from src.config import StorageSettings
from src.storage.base import ObjectStoreError


logger = logging.getLogger('app')

MISSING_OBJECT_CODES = frozenset({'NoSuchKey', '404', 'NotFound'})


class S3ObjectStore:
    """Объектное хранилище поверх S3-совместимого API (S3, R2, MinIO).

    Клиент boto3 синхронный, поэтому каждый вызов уходит в threadpool
    Starlette. Повторных попыток нет: ошибка сразу поднимается наверх.
    """

    def __init__(self, storage_settings: StorageSettings) -> None:
        """Создаёт клиент S3 по настройкам хранилища."""
        self.bucket = storage_settings.BUCKET
        self.endpoint_url = storage_settings.ENDPOINT_URL
        self.public_base_url = storage_settings.PUBLIC_BASE_URL

        kwargs: dict[str, Any] = {'region_name': storage_settings.REGION}
        if storage_settings.ENDPOINT_URL:
            kwargs['endpoint_url'] = storage_settings.ENDPOINT_URL
        if storage_settings.ACCESS_KEY_ID:
            kwargs['aws_access_key_id'] = storage_settings.ACCESS_KEY_ID
            kwargs['aws_secret_access_key'] = (
                storage_settings.SECRET_ACCESS_KEY
            )
        self.client = boto3.client('s3', **kwargs)

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """Загружает объект в бакет."""
        try:
            await run_in_threadpool(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            raise ObjectStoreError('put', key, str(e)) from e
        logger.debug('Объект %s записан (%d байт)', key, len(data))

    async def get(self, key: str) -> BinaryIO | None:
        """Читает объект целиком и возвращает его как поток байтов."""
        try:
            response = await run_in_threadpool(
                self.client.get_object,
                Bucket=self.bucket,
                Key=key,
            )
            body = await run_in_threadpool(response['Body'].read)
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code', '')
            if code in MISSING_OBJECT_CODES:
                return None
            raise ObjectStoreError('get', key, str(e)) from e
        except BotoCoreError as e:
            raise ObjectStoreError('get', key, str(e)) from e
        return io.BytesIO(body)

    async def delete(self, key: str) -> None:
        """Удаляет объект из бакета."""
        try:
            await run_in_threadpool(
                self.client.delete_object,
                Bucket=self.bucket,
                Key=key,
            )
        except (BotoCoreError, ClientError) as e:
            raise ObjectStoreError('delete', key, str(e)) from e
        logger.debug('Объект %s удалён', key)

    def public_url(self, key: str) -> str:
        """Строит публичный адрес объекта."""
        if self.public_base_url:
            return f'{self.public_base_url.rstrip("/")}/{key}'
        if self.endpoint_url:
            return f'{self.endpoint_url.rstrip("/")}/{self.bucket}/{key}'
        return f'https://{self.bucket}.s3.amazonaws.com/{key}'
