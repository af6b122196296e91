"""
Catalog domain errors.
Every failure the application knows how to degrade from derives from CatalogError.
"""


class CatalogError(Exception):
    """Base exception for all catalog failures."""


class GatewayError(CatalogError):
    """Raised when the hosted database or storage backend fails."""


class GatewayReadError(GatewayError):
    """Raised when reading items or settings fails."""


class GatewayWriteError(GatewayError):
    """Raised when inserting, updating or deleting a record fails."""


class UploadError(GatewayError):
    """Raised when an image upload to storage fails."""


class ItemNotFoundError(CatalogError):
    """Raised when an item id does not exist."""

    def __init__(self, item_id: str):
        super().__init__(f"Item {item_id} does not exist")
        self.item_id = item_id


class FormValidationError(CatalogError):
    """Raised when a form is rejected before any network call."""
