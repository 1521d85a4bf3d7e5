from datetime import datetime, timedelta, timezone

import pytest

from src.images.crud import ImageCRUD


BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_search_is_case_insensitive(db_session, add_image):
    await add_image('Sunset.PNG')
    await add_image('sunrise.png')
    await add_image('cat.png')

    crud = ImageCRUD(db_session)
    rows = await crud.get_page(
        search='SUN', sort='originalFilename', order='asc',
        limit=10, offset=0,
    )
    assert [row.original_filename for row in rows] == [
        'Sunset.PNG',
        'sunrise.png',
    ]


@pytest.mark.asyncio
async def test_search_escapes_wildcards(db_session, add_image):
    await add_image('100%_done.png')
    await add_image('100 done.png')

    crud = ImageCRUD(db_session)
    rows = await crud.get_page(
        search='%_', sort='uploadedAt', order='desc', limit=10, offset=0,
    )
    assert [row.original_filename for row in rows] == ['100%_done.png']


@pytest.mark.asyncio
async def test_sort_by_size_and_reverse(db_session, add_image):
    await add_image('b.png', size=30)
    await add_image('a.png', size=10)
    await add_image('c.png', size=20)

    crud = ImageCRUD(db_session)
    asc = await crud.get_page(
        search='', sort='fileSize', order='asc', limit=10, offset=0,
    )
    desc = await crud.get_page(
        search='', sort='fileSize', order='desc', limit=10, offset=0,
    )
    assert [row.file_size for row in asc] == [10, 20, 30]
    assert [row.id for row in desc] == [row.id for row in reversed(asc)]


@pytest.mark.asyncio
async def test_pages_do_not_overlap_on_ties(db_session, add_image):
    for index in range(7):
        await add_image(f'same-{index}.png', uploaded_at=BASE_TIME)

    crud = ImageCRUD(db_session)
    seen = []
    for offset in range(0, 7, 3):
        rows = await crud.get_page(
            search='', sort='uploadedAt', order='desc',
            limit=3, offset=offset,
        )
        seen.extend(row.id for row in rows)

    assert len(seen) == 7
    assert len(set(seen)) == 7


@pytest.mark.asyncio
async def test_stats_follow_filter(db_session, add_image):
    await add_image('dog.png', size=10, uploaded_at=BASE_TIME)
    await add_image(
        'dog-2.png', size=15, uploaded_at=BASE_TIME + timedelta(days=1),
    )
    await add_image(
        'cat.png', size=99, uploaded_at=BASE_TIME + timedelta(days=2),
    )

    crud = ImageCRUD(db_session)
    count, total_bytes, latest = await crud.get_stats(search='dog')
    assert count == 2
    assert total_bytes == 25
    assert latest.replace(tzinfo=None) == (
        BASE_TIME + timedelta(days=1)
    ).replace(tzinfo=None)


@pytest.mark.asyncio
async def test_stats_empty(db_session):
    crud = ImageCRUD(db_session)
    assert await crud.get_stats(search='') == (0, 0, None)


@pytest.mark.asyncio
async def test_get_by_ids_skips_unknown(db_session, add_image):
    image = await add_image('a.png')

    crud = ImageCRUD(db_session)
    rows = await crud.get_by_ids([image.id, 'not-a-uuid', ''])
    assert [row.id for row in rows] == [image.id]
    assert await crud.get_by_ids([]) == []
