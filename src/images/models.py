from datetime import datetime

from sqlalchemy import BigInteger, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import Base, now_utc


class Image(Base):
    """Метаданные изображения, байты которого лежат в объектном хранилище.

    Запись не изменяется после создания. object_key - единственная связь
    с объектом в хранилище.
    """

    object_key: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        unique=True,
    )
    original_filename: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    content_type: Mapped[str] = mapped_column(String(64), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=now_utc,
        nullable=False,
        index=True,
    )
    file_extension: Mapped[str | None] = mapped_column(
        String(16),
        nullable=True,
    )
    public_url: Mapped[str] = mapped_column(String(1024), nullable=False)

    def __repr__(self) -> str:
        return f'<Image(id={self.id}, object_key={self.object_key})>'
