"""
Public catalog routes.
Provides published items and contact settings for the storefront.
"""
from fastapi import APIRouter, Depends
from typing import List, Optional
import logging

from catalog.config import settings
from catalog.errors import GatewayReadError
from catalog.schemas import ResolvedItem, SettingsRecord
from catalog.services.gateway import CatalogGateway, get_gateway
from catalog.services.storefront import load_storefront

logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()


@router.get("/items", response_model=List[ResolvedItem])
async def get_published_items(gateway: CatalogGateway = Depends(get_gateway)):
    """
    Get all published items.

    Returns items ordered by position (ascending) with public image URLs and a
    WhatsApp link built from the site-wide message and the item title.
    This is a public endpoint accessible without authentication.

    Args:
        gateway: Catalog gateway (injected by FastAPI dependency)

    Returns:
        List[ResolvedItem]: Published items; empty when the backend is unavailable
    """
    storefront = await load_storefront(gateway, settings.WHATSAPP_DEFAULT_MESSAGE)
    return storefront.items


@router.get("/settings", response_model=Optional[SettingsRecord])
async def get_public_settings(gateway: CatalogGateway = Depends(get_gateway)):
    """
    Get the WhatsApp contact settings, or null when they cannot be read.
    """
    try:
        return await gateway.get_settings_singleton()
    except GatewayReadError as e:
        logger.error(f"Failed to retrieve settings: {str(e)}")
        return None
