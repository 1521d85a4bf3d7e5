from datetime import timezone

import pytest
from sqlalchemy import select, text

from src.images.models import Image


@pytest.mark.asyncio
async def test_db_session(db_session):  # noqa
    result = await db_session.execute(text('SELECT 1'))
    assert result.scalar() == 1


@pytest.mark.asyncio
async def test_image_defaults(db_session):
    image = Image(
        object_key='images/2024/05/abc.png',
        original_filename='a.png',
        content_type='image/png',
        file_size=3,
        file_extension='png',
        public_url='https://cdn.example.test/images/2024/05/abc.png',
    )
    db_session.add(image)
    await db_session.commit()

    stored = (await db_session.execute(select(Image))).scalar_one()
    assert len(stored.id) == 36
    assert stored.uploaded_at is not None
    assert stored.uploaded_at.replace(tzinfo=timezone.utc).year >= 2024
