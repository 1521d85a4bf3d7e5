from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Базовая схема ответа API с ключами в camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class OkResponse(BaseModel):
    """Минимальный успешный ответ."""

    ok: bool = True


class ErrorResponse(BaseModel):
    """Схема ответа об ошибке."""

    ok: bool = False
    error: str
