"""
Public storefront data.

Reads published items and settings through the gateway. Read failures are
logged and degrade to an empty catalog; the public side never fails a request
because the backend is down.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from catalog.errors import GatewayReadError
from catalog.gallery.orientation import ImageLoader, Orientation, card_aspect_class, classify
from catalog.schemas import ResolvedItem, SettingsRecord
from catalog.services.gateway import CatalogGateway
from catalog.utils.formatters import format_brl
from catalog.utils.whatsapp import DEFAULT_MESSAGE, build_item_contact_link, build_whatsapp_link

logger = logging.getLogger(__name__)


@dataclass
class Storefront:
    items: list[ResolvedItem] = field(default_factory=list)
    settings: Optional[SettingsRecord] = None


@dataclass
class ItemCard:
    """Everything the listing page needs to draw one product card."""
    item: ResolvedItem
    price: str
    aspect_class: str
    whatsapp_link: str
    orientation: Optional[Orientation] = None

    @property
    def image_count(self) -> int:
        return len(self.item.image_urls)


async def load_storefront(gateway: CatalogGateway, default_message: str = DEFAULT_MESSAGE) -> Storefront:
    """
    Published items with resolved URLs, each carrying a listing link built
    from the site-wide message and the item title.
    """
    try:
        site_settings = await gateway.get_settings_singleton()
    except GatewayReadError as e:
        logger.error(f"Settings error: {str(e)}")
        site_settings = None

    try:
        items = await gateway.list_published_items(site_settings)
    except GatewayReadError as e:
        logger.error(f"Items error: {str(e)}")
        return Storefront(items=[], settings=site_settings)

    link_for = build_whatsapp_link(
        site_settings.whatsapp_number if site_settings else "",
        site_settings.whatsapp_message if site_settings else "",
        default_message,
    )
    for item in items:
        item.whatsapp_link = link_for(item.title)

    logger.info(f"Loaded {len(items)} published items")
    return Storefront(items=items, settings=site_settings)


async def build_cards(items: list[ResolvedItem], loader: Optional[ImageLoader] = None) -> list[ItemCard]:
    """
    Card view models. When a loader is given, each card's first image is
    probed concurrently to choose its aspect ratio.
    """
    if loader is not None:
        orientations = await asyncio.gather(*(classify(item.image_url, loader) for item in items))
    else:
        orientations = [None] * len(items)

    return [
        ItemCard(
            item=item,
            price=format_brl(item.price_cents),
            aspect_class=card_aspect_class(orientation),
            whatsapp_link=build_item_contact_link(item.whatsapp_number, item.whatsapp_message),
            orientation=orientation,
        )
        for item, orientation in zip(items, orientations)
    ]
