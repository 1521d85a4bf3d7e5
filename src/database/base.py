"""Модуль базовой конфигурации SQLAlchemy ORM.

Содержит базовый класс для всех моделей с общими полями и методами.
Предоставляет автоматическую генерацию имен таблиц, строковый UUID
в качестве первичного ключа и временные метки UTC.
"""

from datetime import datetime, timezone
import re
import uuid

from sqlalchemy import String
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    declared_attr,
    mapped_column,
)


UUID_LENGTH: int = 36


def now_utc() -> datetime:
    """Возвращает текущую дату и время в UTC.

    Returns:
        datetime: Текущая дата и время с часовым поясом UTC.

    """
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Генерирует новый идентификатор записи (uuid4 в виде строки)."""
    return str(uuid.uuid4())


def resolve_table_name(class_name: str) -> str:
    """Генерирует имя таблицы из имени класса в стиле snake_case.

    Args:
        class_name: Имя класса в CamelCase.

    Returns:
        str: Имя таблицы в snake_case.

    """
    name = re.split('(?=[A-Z])', class_name)
    return '_'.join([x.lower() for x in name if x])


class Base(DeclarativeBase):
    """Базовый класс для всех SQLAlchemy моделей.

    Идентификатор хранится строкой: клиенты присылают произвольные
    значения, и несуществующий или некорректный ID должен просто
    не находиться, а не ломать запрос на этапе приведения типов.

    Attributes:
        id (Mapped[str]): Уникальный идентификатор записи.

    """

    id: Mapped[str] = mapped_column(
        String(UUID_LENGTH),
        primary_key=True,
        default=new_id,
        doc='Уникальный идентификатор записи в формате UUID',
    )

    @declared_attr.directive
    def __tablename__(cls) -> str:  # noqa: N805
        """Автоматически генерирует имя таблицы из имени класса.

        Returns:
            str: Имя таблицы в snake_case.

        """
        return resolve_table_name(cls.__name__)
