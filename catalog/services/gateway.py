"""
Catalog Data Gateway.

The only door to the hosted database and image storage. A gateway is built per
request by the get_gateway dependency and passed to routes, pages and the admin
form, so tests can substitute a fake.
"""
import logging
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog.config import settings
from catalog.database import get_session_factory
from catalog.errors import (
    GatewayReadError,
    GatewayWriteError,
    ItemNotFoundError,
)
from catalog.models import Item, SiteSettings
from catalog.schemas import (
    CatalogSnapshot,
    ItemPayload,
    ItemRecord,
    ResolvedItem,
    SettingsRecord,
)
from catalog.services.cloudinary_service import CloudinaryStorage

logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    async def upload(self, bucket: str, key: str, content: bytes) -> str: ...

    def public_url(self, bucket: str, key: str) -> str: ...


def effective_image_paths(item: ItemRecord) -> list[str]:
    """Image keys of an item, falling back to the legacy single image_path."""
    if item.image_paths:
        return list(item.image_paths)
    if item.image_path:
        return [item.image_path]
    return []


class CatalogGateway:
    """
    Reads and writes catalog records and image files.

    Every method opens its own session so one failed call never poisons the
    next. Read failures raise GatewayReadError, write failures GatewayWriteError.
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]],
        storage: StorageBackend,
        bucket: str = "items",
    ):
        self._session_factory = session_factory
        self.storage = storage
        self.bucket = bucket

    def _session(self, error_cls) -> AsyncSession:
        if self._session_factory is None:
            raise error_cls("Database is not configured")
        return self._session_factory()

    # Reads

    async def list_items(self, published_only: bool = False) -> list[ItemRecord]:
        """Items ordered by position ascending."""
        query = select(Item).order_by(Item.position.asc())
        if published_only:
            query = query.where(Item.published.is_(True))
        try:
            async with self._session(GatewayReadError) as session:
                result = await session.execute(query)
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to list items: {str(e)}", exc_info=True)
            raise GatewayReadError(f"Failed to list items: {str(e)}") from e

        return [ItemRecord.model_validate(row) for row in rows]

    async def get_item(self, item_id: str) -> ItemRecord:
        try:
            async with self._session(GatewayReadError) as session:
                row = await session.get(Item, item_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to read item {item_id}: {str(e)}", exc_info=True)
            raise GatewayReadError(f"Failed to read item {item_id}: {str(e)}") from e

        if row is None:
            raise ItemNotFoundError(item_id)
        return ItemRecord.model_validate(row)

    async def get_settings_singleton(self) -> SettingsRecord:
        try:
            async with self._session(GatewayReadError) as session:
                result = await session.execute(select(SiteSettings).limit(1))
                row = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Failed to read settings: {str(e)}", exc_info=True)
            raise GatewayReadError(f"Failed to read settings: {str(e)}") from e

        if row is None:
            raise GatewayReadError("Settings row is missing")
        return SettingsRecord.model_validate(row)

    # Writes

    async def insert_item(self, payload: ItemPayload) -> ItemRecord:
        try:
            async with self._session(GatewayWriteError) as session:
                row = Item(**payload.model_dump())
                session.add(row)
                await session.commit()
                await session.refresh(row)
        except SQLAlchemyError as e:
            logger.error(f"Failed to insert item: {str(e)}", exc_info=True)
            raise GatewayWriteError(f"Failed to insert item: {str(e)}") from e

        logger.info(f"Inserted item {row.id}")
        return ItemRecord.model_validate(row)

    async def update_item(self, item_id: str, payload: ItemPayload) -> ItemRecord:
        try:
            async with self._session(GatewayWriteError) as session:
                row = await session.get(Item, item_id)
                if row is None:
                    raise ItemNotFoundError(item_id)
                for field, value in payload.model_dump().items():
                    setattr(row, field, value)
                await session.commit()
                await session.refresh(row)
        except SQLAlchemyError as e:
            logger.error(f"Failed to update item {item_id}: {str(e)}", exc_info=True)
            raise GatewayWriteError(f"Failed to update item {item_id}: {str(e)}") from e

        logger.info(f"Updated item {item_id}")
        return ItemRecord.model_validate(row)

    async def delete_item(self, item_id: str) -> None:
        """Delete the record only; stored images are left in place."""
        try:
            async with self._session(GatewayWriteError) as session:
                row = await session.get(Item, item_id)
                if row is None:
                    raise ItemNotFoundError(item_id)
                await session.delete(row)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete item {item_id}: {str(e)}", exc_info=True)
            raise GatewayWriteError(f"Failed to delete item {item_id}: {str(e)}") from e

        logger.info(f"Deleted item {item_id}")

    async def toggle_published(self, item_id: str) -> ItemRecord:
        try:
            async with self._session(GatewayWriteError) as session:
                row = await session.get(Item, item_id)
                if row is None:
                    raise ItemNotFoundError(item_id)
                row.published = not row.published
                await session.commit()
                await session.refresh(row)
        except SQLAlchemyError as e:
            logger.error(f"Failed to toggle item {item_id}: {str(e)}", exc_info=True)
            raise GatewayWriteError(f"Failed to toggle item {item_id}: {str(e)}") from e

        logger.info(f"Item {item_id} {'published' if row.published else 'unpublished'}")
        return ItemRecord.model_validate(row)

    async def update_settings(self, whatsapp_number: str, whatsapp_message: Optional[str] = None) -> SettingsRecord:
        """Update the singleton row; the message is left as is when None."""
        try:
            async with self._session(GatewayWriteError) as session:
                result = await session.execute(select(SiteSettings).limit(1))
                row = result.scalar_one_or_none()
                if row is None:
                    row = SiteSettings()
                    session.add(row)
                row.whatsapp_number = whatsapp_number
                if whatsapp_message is not None:
                    row.whatsapp_message = whatsapp_message
                await session.commit()
                await session.refresh(row)
        except SQLAlchemyError as e:
            logger.error(f"Failed to save settings: {str(e)}", exc_info=True)
            raise GatewayWriteError(f"Failed to save settings: {str(e)}") from e

        logger.info("Settings saved")
        return SettingsRecord.model_validate(row)

    # Storage

    async def upload_file(self, bucket: str, key: str, content: bytes) -> str:
        return await self.storage.upload(bucket, key, content)

    def get_public_url(self, bucket: str, key: str) -> str:
        return self.storage.public_url(bucket, key)

    # Resolution

    def resolve_item(self, item: ItemRecord, site_settings: Optional[SettingsRecord] = None) -> ResolvedItem:
        """Attach public image URLs and the contact settings to an item."""
        image_urls = [self.get_public_url(self.bucket, path) for path in effective_image_paths(item)]
        data = item.model_dump()
        data["whatsapp_message"] = item.whatsapp_message or ""
        return ResolvedItem(
            **data,
            image_url=image_urls[0] if image_urls else "",
            image_urls=image_urls,
            whatsapp_number=site_settings.whatsapp_number if site_settings else "",
        )

    async def list_published_items(self, site_settings: Optional[SettingsRecord] = None) -> list[ResolvedItem]:
        items = await self.list_items(published_only=True)
        return [self.resolve_item(item, site_settings) for item in items]

    async def snapshot(self) -> CatalogSnapshot:
        """Re-fetch everything the admin page shows."""
        items = await self.list_items()
        try:
            site_settings = await self.get_settings_singleton()
        except GatewayReadError:
            logger.warning("Settings unavailable while building catalog snapshot")
            site_settings = None
        return CatalogSnapshot(
            items=[self.resolve_item(item, site_settings) for item in items],
            settings=site_settings,
        )


def get_storage() -> StorageBackend:
    return CloudinaryStorage()


def get_gateway() -> CatalogGateway:
    """
    FastAPI dependency building the gateway for one request.
    """
    return CatalogGateway(get_session_factory(), get_storage(), bucket=settings.STORAGE_BUCKET)
