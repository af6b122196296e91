"""
CMS API routes with password authentication.
All endpoints require password authentication via header.
Every mutation answers with a fresh CatalogSnapshot so the admin page reloads
everything instead of patching its local state.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Header, Request
from starlette.datastructures import FormData, UploadFile
from typing import Optional
import logging

from catalog.errors import FormValidationError, GatewayReadError
from catalog.schemas import CatalogSnapshot, SettingsUpdate
from catalog.services.gateway import CatalogGateway, get_gateway
from catalog.services.item_form import ItemForm, StagedFile
from catalog.utils.auth import verify_admin_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cms", tags=["CMS"])

_TRUE_VALUES = {"true", "1", "on", "yes"}


def verify_cms_password(
    x_cms_password: Optional[str] = Header(None, alias="X-CMS-Password", description="CMS admin password")
) -> bool:
    """
    FastAPI dependency for CMS password authentication.

    Args:
        x_cms_password: Password provided in request header (X-CMS-Password)

    Returns:
        True if authenticated

    Raises:
        HTTPException: 401 if password is invalid or missing
    """
    if not x_cms_password:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Missing password", "message": "CMS access requires password authentication"}
        )

    try:
        if not verify_admin_password(x_cms_password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"error": "Invalid password", "message": "CMS access denied"}
            )
    except ValueError as e:
        # ADMIN_PASSWORD_HASH not configured
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Authentication not configured", "message": str(e)}
        )

    return True


async def reload_catalog(gateway: CatalogGateway) -> CatalogSnapshot:
    """
    Re-fetch the whole catalog. A failed read degrades to an empty snapshot.
    """
    try:
        return await gateway.snapshot()
    except GatewayReadError as e:
        logger.error(f"Failed to reload catalog: {str(e)}")
        return CatalogSnapshot(items=[], settings=None)


async def read_staged_files(form: FormData) -> list[StagedFile]:
    """
    Read every uploaded part of the "files" field.
    Empty parts (a file input left blank) are skipped.
    """
    staged = []
    for i, upload in enumerate(form.getlist("files")):
        if not isinstance(upload, UploadFile):
            continue
        content = await upload.read()
        filename = upload.filename or f"file_{i}"
        if not upload.filename and not content:
            continue
        staged.append(StagedFile(filename=filename, content_type=upload.content_type or "", content=content))
    return staged


def _parse_int(value, field: str, default: int = 0) -> int:
    if value is None or str(value).strip() == "":
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        raise FormValidationError(f"Campo '{field}' deve ser um número inteiro")


def apply_form_fields(item_form: ItemForm, form: FormData) -> None:
    """
    Copy submitted text fields onto the form; missing fields keep their value.

    The admin forms send a hidden published=false ahead of the checkbox, so
    the last "published" value wins.
    """
    for field in ("title", "description", "price_cents", "whatsapp_message"):
        value = form.get(field)
        if value is not None:
            setattr(item_form, field, str(value).strip())
    if form.get("position") is not None:
        item_form.position = _parse_int(form.get("position"), "position", item_form.position)
    published = form.getlist("published")
    if published:
        item_form.published = str(published[-1]).strip().lower() in _TRUE_VALUES


@router.get("/items", response_model=CatalogSnapshot)
async def get_cms_catalog(
    gateway: CatalogGateway = Depends(get_gateway),
    authenticated: bool = Depends(verify_cms_password)
):
    """
    Get every item (published or not) and the settings for the CMS dashboard.
    Requires password authentication.

    Raises:
        GatewayReadError: 502 if the items cannot be read
    """
    snapshot = await gateway.snapshot()
    logger.info(f"Retrieved {len(snapshot.items)} items for CMS")
    return snapshot


@router.post("/items", response_model=CatalogSnapshot, status_code=status.HTTP_201_CREATED)
async def create_cms_item(
    request: Request,
    gateway: CatalogGateway = Depends(get_gateway),
    authenticated: bool = Depends(verify_cms_password)
):
    """
    Create an item from multipart form data (text fields plus up to 10 "files").
    The item is a draft unless "published" is sent as true.
    Requires password authentication.

    Raises:
        FormValidationError: 400 if required fields are missing or there are too many images
        UploadError: 502 if any image upload fails; nothing is saved
        GatewayWriteError: 502 if the insert fails
    """
    form = await request.form()

    # browsers omit an unchecked box, so a create without "published" is a draft
    item_form = ItemForm(published=False)
    apply_form_fields(item_form, form)
    item_form.stage_files(await read_staged_files(form))

    record = await item_form.submit(gateway)
    logger.info(f"Created item {record.id}")

    return await reload_catalog(gateway)


@router.put("/items/{item_id}", response_model=CatalogSnapshot)
async def update_cms_item(
    item_id: str,
    request: Request,
    gateway: CatalogGateway = Depends(get_gateway),
    authenticated: bool = Depends(verify_cms_password)
):
    """
    Edit an item. New files are appended after the stored images.
    Requires password authentication.

    Raises:
        ItemNotFoundError: 404 if the item does not exist
        FormValidationError: 400 if validation fails
        UploadError: 502 if any image upload fails; the stored item is unchanged
    """
    form = await request.form()

    existing = await gateway.get_item(item_id)
    item_form = ItemForm.from_item(existing)
    apply_form_fields(item_form, form)
    item_form.stage_files(await read_staged_files(form))

    await item_form.submit(gateway)
    logger.info(f"Updated item {item_id}")

    return await reload_catalog(gateway)


@router.patch("/items/{item_id}/published", response_model=CatalogSnapshot)
async def toggle_cms_item_published(
    item_id: str,
    gateway: CatalogGateway = Depends(get_gateway),
    authenticated: bool = Depends(verify_cms_password)
):
    """
    Flip the published flag of an item.
    Requires password authentication.
    """
    record = await gateway.toggle_published(item_id)
    logger.info(f"Item {item_id} is now {'published' if record.published else 'a draft'}")
    return await reload_catalog(gateway)


@router.delete("/items/{item_id}", response_model=CatalogSnapshot)
async def delete_cms_item(
    item_id: str,
    gateway: CatalogGateway = Depends(get_gateway),
    authenticated: bool = Depends(verify_cms_password)
):
    """
    Delete an item record. Its stored images are left in storage.
    Requires password authentication.
    """
    await gateway.delete_item(item_id)
    return await reload_catalog(gateway)


@router.put("/settings", response_model=CatalogSnapshot)
async def update_cms_settings(
    settings_update: SettingsUpdate,
    gateway: CatalogGateway = Depends(get_gateway),
    authenticated: bool = Depends(verify_cms_password)
):
    """
    Save the WhatsApp number and, when given, the default message.
    Requires password authentication.
    """
    await gateway.update_settings(
        settings_update.whatsapp_number.strip(),
        settings_update.whatsapp_message,
    )
    return await reload_catalog(gateway)
