"""
Server-rendered pages: the public carousel, an item's gallery modal and the
admin dashboard.
"""
from pathlib import Path
import logging

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from catalog.config import settings
from catalog.dependencies import get_image_loader
from catalog.gallery.orientation import ImageLoader
from catalog.gallery.sessions import static_view
from catalog.routes.cms import reload_catalog, verify_cms_password
from catalog.services.gateway import CatalogGateway, get_gateway
from catalog.services.storefront import build_cards, load_storefront
from catalog.utils.formatters import format_brl

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATE_DIR))
templates.env.filters["brl"] = format_brl

router = APIRouter(tags=["pages"])


@router.get("/", response_class=HTMLResponse)
async def carousel_page(
    request: Request,
    gateway: CatalogGateway = Depends(get_gateway),
    loader: ImageLoader = Depends(get_image_loader),
):
    """Public listing of published items, or an empty state."""
    storefront = await load_storefront(gateway, settings.WHATSAPP_DEFAULT_MESSAGE)
    cards = await build_cards(
        storefront.items,
        loader if settings.PROBE_CARD_ORIENTATION else None,
    )
    return templates.TemplateResponse(
        request,
        "carousel.html",
        {"cards": cards, "settings": storefront.settings},
    )


@router.get("/items/{item_id}", response_class=HTMLResponse)
async def item_page(
    request: Request,
    item_id: str,
    image: int = Query(0, description="Index of the image to show"),
    gateway: CatalogGateway = Depends(get_gateway),
):
    """Gallery modal of a published item at a given image."""
    storefront = await load_storefront(gateway, settings.WHATSAPP_DEFAULT_MESSAGE)
    item = next((it for it in storefront.items if it.id == item_id), None)
    if item is None:
        return templates.TemplateResponse(
            request,
            "not_found.html",
            {"item_id": item_id},
            status_code=status.HTTP_404_NOT_FOUND,
        )

    view = static_view(item, image, thumbnail_width=settings.GALLERY_THUMBNAIL_WIDTH)
    count = view.image_count
    return templates.TemplateResponse(
        request,
        "item.html",
        {
            "item": item,
            "view": view,
            "prev_index": (view.active_index - 1) % count if count else 0,
            "next_index": (view.active_index + 1) % count if count else 0,
        },
    )


@router.get("/admin", response_class=HTMLResponse)
async def admin_page(request: Request):
    """
    Admin dashboard shell. It holds no catalog data; admin.js asks for the
    password and loads the panel with the X-CMS-Password header.
    """
    return templates.TemplateResponse(request, "admin.html", {})


@router.get("/admin/panel", response_class=HTMLResponse)
async def admin_panel(
    request: Request,
    gateway: CatalogGateway = Depends(get_gateway),
    authenticated: bool = Depends(verify_cms_password),
):
    """Settings form and every item, drafts included, as an HTML fragment."""
    snapshot = await reload_catalog(gateway)
    cards = await build_cards(snapshot.items)
    return templates.TemplateResponse(
        request,
        "_admin_panel.html",
        {
            "cards": cards,
            "settings": snapshot.settings,
            "max_images": settings.MAX_IMAGES_PER_ITEM,
        },
    )
