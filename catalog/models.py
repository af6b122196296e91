"""
SQLAlchemy models for the application.
All database models inherit from Base (declarative base).
"""
import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from catalog.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Item(Base):
    """
    Catalog item model.
    Stores product details and the ordered storage keys of its images.
    """
    __tablename__ = "items"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    price_cents = Column(Integer, nullable=False, default=0)
    # Legacy primary image key, kept in sync with image_paths[0]
    image_path = Column(String, nullable=False, default="")
    image_paths = Column(JSON, nullable=False, default=list)
    whatsapp_message = Column(String, nullable=True)
    published = Column(Boolean, nullable=False, default=True, index=True)
    position = Column(Integer, nullable=False, default=0, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class SiteSettings(Base):
    """
    Site-wide settings model.
    Exactly one row exists; it is created by the database initialization.
    """
    __tablename__ = "settings"

    id = Column(String(36), primary_key=True, default=_new_id)
    whatsapp_number = Column(String, nullable=False, default="")
    whatsapp_message = Column(String, nullable=False, default="")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
