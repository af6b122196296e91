"""
Pydantic schemas for request and response data validation.
Defines data structures for API endpoints with automatic validation and serialization.
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional

MAX_IMAGES_PER_ITEM = 10


class ItemRecord(BaseModel):
    """
    A catalog item as stored by the gateway.
    """
    id: str
    title: str
    description: str = ""
    price_cents: int = 0
    image_path: str = ""
    image_paths: list[str] = Field(default_factory=list)
    whatsapp_message: Optional[str] = None
    published: bool = True
    position: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ItemPayload(BaseModel):
    """
    Full item record written on insert and update.
    image_path mirrors image_paths[0] for older readers.
    """
    title: str
    description: str
    price_cents: int
    image_path: str = ""
    image_paths: list[str] = Field(default_factory=list, max_length=MAX_IMAGES_PER_ITEM)
    whatsapp_message: Optional[str] = None
    published: bool = True
    position: int = 0


class SettingsRecord(BaseModel):
    """
    Site-wide WhatsApp settings.
    """
    id: str
    whatsapp_number: str = ""
    whatsapp_message: str = ""
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SettingsUpdate(BaseModel):
    """
    Request schema for PUT /api/cms/settings.
    """
    whatsapp_number: str
    whatsapp_message: Optional[str] = None


class ResolvedItem(ItemRecord):
    """
    Item with public image URLs and the contact settings merged in.
    Derived on every fetch, never stored.
    """
    image_url: str = ""
    image_urls: list[str] = Field(default_factory=list)
    whatsapp_number: str = ""
    whatsapp_message: str = ""
    whatsapp_link: Optional[str] = None


class CatalogSnapshot(BaseModel):
    """
    Full catalog state re-fetched after every admin mutation.
    """
    items: list[ResolvedItem]
    settings: Optional[SettingsRecord] = None


class GallerySessionCreate(BaseModel):
    item_id: str
    container_width: float = Field(default=320.0, ge=0)


class GalleryGoTo(BaseModel):
    index: int = Field(ge=0)


class GallerySwipe(BaseModel):
    """
    Finger displacement in pixels (end_x - start_x). Negative is a leftward swipe.
    """
    delta_x: float


class GalleryImageFailure(BaseModel):
    index: int = Field(ge=0)


class GalleryThumbnail(BaseModel):
    index: int
    url: str
    active: bool
    failed: bool


class GalleryView(BaseModel):
    """
    Render state of a gallery modal.
    active_url is None when the placeholder must be shown.
    """
    session_id: Optional[str] = None
    item_id: str
    title: str
    image_count: int
    active_index: int
    transitioning: bool
    from_index: Optional[int] = None
    to_index: Optional[int] = None
    active_url: Optional[str] = None
    counter: Optional[str] = None
    thumbnails: list[GalleryThumbnail] = Field(default_factory=list)
    thumbnail_scroll_left: float = 0.0
    orientation: Optional[str] = None
    height_class: str
    whatsapp_link: str
