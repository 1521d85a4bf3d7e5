import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from src.config import MAX_FILE_SIZE
from src.images.crud import ImageCRUD
from src.images.models import Image
from src.images.services import DB_WRITE_FAILED


PNG_BYTES = b'\x89PNG\r\n\x1a\n' + b'\x00' * 1016


async def count_images(session_factory) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count(Image.id)))).scalar()


@pytest.mark.asyncio
async def test_upload_single_file(client, store, session_factory):
    response = await client.post(
        '/images',
        files=[('files', ('a.png', PNG_BYTES, 'image/png'))],
    )

    assert response.status_code == 200
    body = response.json()
    assert body['ok'] is True
    [result] = body['results']
    assert result['success'] is True
    assert result['filename'] == 'a.png'
    assert 'error' not in result

    record = result['record']
    assert record['originalFilename'] == 'a.png'
    assert record['contentType'] == 'image/png'
    assert record['fileSize'] == len(PNG_BYTES)
    assert record['fileExtension'] == 'png'
    assert record['objectKey'].startswith('images/')
    assert record['objectKey'].endswith('.png')
    assert record['publicUrl'].endswith(record['objectKey'])
    assert record['uploadedAt'].endswith('+00:00')

    assert store.objects[record['objectKey']] == PNG_BYTES
    assert store.content_types[record['objectKey']] == 'image/png'
    assert await count_images(session_factory) == 1


@pytest.mark.asyncio
async def test_upload_partial_success(client, store, session_factory):
    response = await client.post(
        '/images',
        files=[
            ('files', ('good.gif', b'GIF89a', 'image/gif')),
            ('files', ('notes.txt', b'hello', 'text/plain')),
        ],
    )

    assert response.status_code == 207
    body = response.json()
    assert body['ok'] is True
    good, bad = body['results']
    assert good['success'] is True
    assert bad['success'] is False
    assert bad['filename'] == 'notes.txt'
    assert bad['error']
    assert 'record' not in bad
    assert len(store.objects) == 1
    assert await count_images(session_factory) == 1


@pytest.mark.asyncio
async def test_upload_all_invalid(client, store, session_factory):
    response = await client.post(
        '/images',
        files=[
            ('files', ('empty.png', b'', 'image/png')),
            ('files', ('big.jpg', b'x' * (MAX_FILE_SIZE + 1), 'image/jpeg')),
        ],
    )

    assert response.status_code == 400
    body = response.json()
    assert body['ok'] is False
    assert [r['success'] for r in body['results']] == [False, False]
    assert store.objects == {}
    assert await count_images(session_factory) == 0


@pytest.mark.asyncio
async def test_upload_storage_failure(client, store, session_factory):
    store.fail_put_when = lambda key, data: True

    response = await client.post(
        '/images',
        files=[('files', ('a.png', PNG_BYTES, 'image/png'))],
    )

    assert response.status_code == 500
    [result] = response.json()['results']
    assert result['success'] is False
    assert result['error']
    assert await count_images(session_factory) == 0


@pytest.mark.asyncio
async def test_upload_storage_failure_for_one_file(client, store):
    store.fail_put_when = lambda key, data: data == b'broken'

    response = await client.post(
        '/images',
        files=[
            ('files', ('ok.png', PNG_BYTES, 'image/png')),
            ('files', ('broken.png', b'broken', 'image/png')),
        ],
    )

    assert response.status_code == 207
    flags = [r['success'] for r in response.json()['results']]
    assert flags == [True, False]


@pytest.mark.asyncio
async def test_upload_without_files(client):
    response = await client.post('/images', data={'other': 'value'})

    assert response.status_code == 400
    assert response.json()['ok'] is False
    assert response.json()['error']


@pytest.mark.asyncio
async def test_upload_extension_from_mime(client, store):
    response = await client.post(
        '/images',
        files=[('files', ('clipboard', b'<svg/>', 'image/svg+xml'))],
    )

    assert response.status_code == 200
    record = response.json()['results'][0]['record']
    assert record['fileExtension'] == 'svg'
    assert record['objectKey'].endswith('.svg')


@pytest.mark.asyncio
async def test_upload_row_insert_failure(
    client, store, session_factory, monkeypatch,
):
    original_create = ImageCRUD.create
    calls = []

    async def flaky_create(self, **kwargs):
        calls.append(kwargs['original_filename'])
        if len(calls) == 1:
            raise OperationalError('INSERT', {}, Exception('disk full'))
        return await original_create(self, **kwargs)

    monkeypatch.setattr(ImageCRUD, 'create', flaky_create)

    response = await client.post(
        '/images',
        files=[
            ('files', ('a.png', PNG_BYTES, 'image/png')),
            ('files', ('b.png', PNG_BYTES, 'image/png')),
        ],
    )

    assert response.status_code == 207
    failed, stored = response.json()['results']
    assert failed['success'] is False
    assert failed['filename'] == 'a.png'
    assert failed['error'] == DB_WRITE_FAILED
    assert stored['success'] is True
    assert len(store.objects) == 2
    async with session_factory() as session:
        names = (
            await session.execute(select(Image.original_filename))
        ).scalars().all()
    assert names == ['b.png']
