"""
FastAPI dependencies shared by routes and pages.
"""
from fastapi import Request

from catalog.config import settings
from catalog.gallery.orientation import HttpImageLoader, ImageLoader
from catalog.gallery.sessions import GallerySessionRegistry


def get_image_loader() -> ImageLoader:
    return HttpImageLoader(timeout=settings.IMAGE_PROBE_TIMEOUT)


def get_gallery_registry(request: Request) -> GallerySessionRegistry:
    return request.app.state.gallery_sessions


def gallery_options() -> dict:
    """Gallery tunables from settings, as GallerySession keyword arguments."""
    return {
        "fade_delay": settings.GALLERY_FADE_DELAY_MS / 1000,
        "settle_delay": settings.GALLERY_SETTLE_DELAY_MS / 1000,
        "min_swipe_distance": settings.GALLERY_MIN_SWIPE_DISTANCE,
        "thumbnail_width": settings.GALLERY_THUMBNAIL_WIDTH,
    }
