"""
Admin item form.

Holds the editable fields of one item plus the image files staged for upload,
validates them before any network call and saves through the gateway.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Iterable, Optional

from catalog.config import settings
from catalog.errors import FormValidationError
from catalog.schemas import ItemPayload, ItemRecord
from catalog.services.gateway import CatalogGateway, effective_image_paths

logger = logging.getLogger(__name__)

MAX_IMAGES_MESSAGE = "Máximo de {limit} imagens por item"
REQUIRED_FIELDS_MESSAGE = "Preencha todos os campos obrigatórios"


@dataclass
class StagedFile:
    """An image chosen in the admin form but not uploaded yet."""
    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def is_image(self) -> bool:
        return bool(self.content_type) and self.content_type.startswith("image/")


@dataclass
class ItemForm:
    title: str = ""
    description: str = ""
    price_cents: str = ""
    whatsapp_message: str = ""
    position: int = 0
    published: bool = True
    item_id: Optional[str] = None
    existing_paths: list[str] = field(default_factory=list)
    files: list[StagedFile] = field(default_factory=list)
    max_images: int = settings.MAX_IMAGES_PER_ITEM
    max_file_size: int = settings.MAX_UPLOAD_SIZE_BYTES
    bucket: str = settings.STORAGE_BUCKET

    @classmethod
    def from_item(cls, item: ItemRecord, **kwargs) -> "ItemForm":
        """Edit form for a stored item; staged files start empty."""
        return cls(
            title=item.title,
            description=item.description,
            price_cents=str(item.price_cents),
            whatsapp_message=item.whatsapp_message or "",
            position=item.position,
            published=item.published,
            item_id=item.id,
            existing_paths=effective_image_paths(item),
            **kwargs,
        )

    @property
    def is_edit(self) -> bool:
        return self.item_id is not None

    @property
    def image_count(self) -> int:
        return len(self.existing_paths) + len(self.files)

    def stage_files(self, new_files: Iterable[StagedFile]) -> None:
        """
        Add files to the staged list.

        The whole batch is rejected when any file is not an image or when it
        would push the staged count past the limit; staged files are untouched
        in that case. The size limit is advisory only.
        """
        new_files = list(new_files)
        for staged in new_files:
            if not staged.is_image:
                raise FormValidationError(f"O arquivo '{staged.filename}' não é uma imagem válida")

        if len(self.files) + len(new_files) > self.max_images:
            raise FormValidationError(MAX_IMAGES_MESSAGE.format(limit=self.max_images))

        for staged in new_files:
            if staged.size > self.max_file_size:
                logger.warning(
                    f"Staged file {staged.filename} is {staged.size:,} bytes, "
                    f"above the advised {self.max_file_size:,}"
                )
        self.files.extend(new_files)

    def unstage(self, index: int) -> StagedFile:
        return self.files.pop(index)

    def parsed_price(self) -> int:
        try:
            return int(str(self.price_cents).strip(), 10)
        except ValueError:
            raise FormValidationError("Preço deve ser um número inteiro de centavos")

    def validate(self) -> None:
        if not self.title or not self.description or not str(self.price_cents).strip():
            raise FormValidationError(REQUIRED_FIELDS_MESSAGE)
        self.parsed_price()
        if self.image_count > self.max_images:
            raise FormValidationError(MAX_IMAGES_MESSAGE.format(limit=self.max_images))

    def build_payload(self, image_paths: list[str]) -> ItemPayload:
        return ItemPayload(
            title=self.title,
            description=self.description,
            price_cents=self.parsed_price(),
            image_path=image_paths[0] if image_paths else "",
            image_paths=image_paths,
            whatsapp_message=self.whatsapp_message or None,
            published=self.published,
            position=self.position,
        )

    def _storage_key(self, staged: StagedFile) -> str:
        return f"items/{uuid.uuid4()}-{staged.filename}"

    async def upload_staged(self, gateway: CatalogGateway) -> list[str]:
        """
        Upload every staged file concurrently.

        Fails on the first error; files that already reached storage stay
        there and are not referenced by any item.
        """
        uploads = [
            gateway.upload_file(self.bucket, self._storage_key(staged), staged.content)
            for staged in self.files
        ]
        return list(await asyncio.gather(*uploads))

    async def submit(self, gateway: CatalogGateway) -> ItemRecord:
        """
        Validate, upload staged images and write the full item.

        Raises:
            FormValidationError: Before any network call
            UploadError: If any upload fails; nothing is written
            GatewayWriteError: If the insert or update fails
        """
        self.validate()

        new_paths = await self.upload_staged(gateway) if self.files else []
        image_paths = [*self.existing_paths, *new_paths]
        payload = self.build_payload(image_paths)

        if self.is_edit:
            record = await gateway.update_item(self.item_id, payload)
        else:
            record = await gateway.insert_item(payload)

        logger.info(f"Saved item {record.id} with {len(image_paths)} image(s)")
        self.existing_paths = image_paths
        self.files = []
        return record
