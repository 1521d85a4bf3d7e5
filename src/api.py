from fastapi import APIRouter, Depends

from src.auth import require_credentials
from src.common.schemas import OkResponse
from src.images import images_router


main_router = APIRouter()


@main_router.get('/healthz', response_model=OkResponse, tags=['Служебное'])
async def healthz() -> OkResponse:
    """Проверка живости сервиса."""
    return OkResponse()


main_router.include_router(
    images_router,
    prefix='/images',
    tags=['Изображения'],
    dependencies=[Depends(require_credentials)],
)
