from src.images.models import Image as Image
from src.images.views import router as images_router


__all__ = ['Image', 'images_router']
