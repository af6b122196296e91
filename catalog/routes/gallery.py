"""
Gallery modal routes.
Open a gallery for a published item and drive it with navigation, swipe and
thumbnail input. Transitions run in the background; responses describe the
state right after the input was applied.
"""
from fastapi import APIRouter, Depends, HTTPException, status
import logging

from catalog.dependencies import gallery_options, get_gallery_registry, get_image_loader
from catalog.errors import ItemNotFoundError
from catalog.gallery.orientation import ImageLoader
from catalog.gallery.sessions import GallerySession, GallerySessionRegistry
from catalog.schemas import (
    GalleryGoTo,
    GalleryImageFailure,
    GallerySessionCreate,
    GallerySwipe,
    GalleryView,
)
from catalog.services.gateway import CatalogGateway, get_gateway
from catalog.services.storefront import load_storefront

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/gallery", tags=["gallery"])


def _session_or_404(registry: GallerySessionRegistry, session_id: str) -> GallerySession:
    try:
        return registry.get(session_id)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Gallery not found", "detail": f"Gallery session {session_id} is not open"}
        )


@router.post("/sessions", response_model=GalleryView, status_code=status.HTTP_201_CREATED)
async def open_gallery(
    request: GallerySessionCreate,
    gateway: CatalogGateway = Depends(get_gateway),
    registry: GallerySessionRegistry = Depends(get_gallery_registry),
    loader: ImageLoader = Depends(get_image_loader),
):
    """
    Open the gallery modal of a published item.

    Raises:
        ItemNotFoundError: 404 if the item is not published or does not exist
    """
    storefront = await load_storefront(gateway)
    item = next((it for it in storefront.items if it.id == request.item_id), None)
    if item is None:
        raise ItemNotFoundError(request.item_id)

    session = registry.open(item, loader, container_width=request.container_width, **gallery_options())
    logger.info(f"Opened gallery {session.session_id} for item {item.id} ({len(item.image_urls)} images)")
    return session.view()


@router.get("/sessions/{session_id}", response_model=GalleryView)
async def get_gallery(
    session_id: str,
    registry: GallerySessionRegistry = Depends(get_gallery_registry),
):
    return _session_or_404(registry, session_id).view()


@router.post("/sessions/{session_id}/next", response_model=GalleryView)
async def next_image(
    session_id: str,
    registry: GallerySessionRegistry = Depends(get_gallery_registry),
):
    session = _session_or_404(registry, session_id)
    if session.machine is not None:
        session.machine.next()
    return session.view()


@router.post("/sessions/{session_id}/prev", response_model=GalleryView)
async def prev_image(
    session_id: str,
    registry: GallerySessionRegistry = Depends(get_gallery_registry),
):
    session = _session_or_404(registry, session_id)
    if session.machine is not None:
        session.machine.prev()
    return session.view()


@router.post("/sessions/{session_id}/goto", response_model=GalleryView)
async def go_to_image(
    session_id: str,
    request: GalleryGoTo,
    registry: GallerySessionRegistry = Depends(get_gallery_registry),
):
    """
    Jump to a thumbnail.

    Raises:
        HTTPException: 400 if the index is outside the image list
    """
    session = _session_or_404(registry, session_id)
    if session.machine is not None:
        try:
            session.machine.go_to(request.index)
        except ValueError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"error": "Invalid image index", "detail": str(e)}
            )
    return session.view()


@router.post("/sessions/{session_id}/swipe", response_model=GalleryView)
async def swipe(
    session_id: str,
    request: GallerySwipe,
    registry: GallerySessionRegistry = Depends(get_gallery_registry),
):
    session = _session_or_404(registry, session_id)
    if session.machine is not None:
        session.machine.on_swipe_end(request.delta_x)
    return session.view()


@router.post("/sessions/{session_id}/image-errors", response_model=GalleryView)
async def report_image_error(
    session_id: str,
    request: GalleryImageFailure,
    registry: GallerySessionRegistry = Depends(get_gallery_registry),
):
    """
    Record that an image failed to load; it shows the placeholder from now on.
    """
    session = _session_or_404(registry, session_id)
    if session.machine is not None:
        session.machine.mark_failed(request.index)
    return session.view()


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_gallery(
    session_id: str,
    registry: GallerySessionRegistry = Depends(get_gallery_registry),
):
    _session_or_404(registry, session_id)
    registry.close(session_id)
    logger.info(f"Closed gallery {session_id}")
