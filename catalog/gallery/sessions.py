"""
Open gallery modals.

A GallerySession ties one item's images to a state machine, an orientation
probe for the active image and the thumbnail strip scroll. Sessions live in a
bounded in-process registry; the oldest one is closed when it fills up.
"""
from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from typing import Optional

from catalog.gallery.orientation import ImageLoader, OrientationProbe, modal_height_class
from catalog.gallery.state import GalleryStateMachine, Transitioning, thumbnail_scroll_left
from catalog.schemas import GalleryThumbnail, GalleryView, ResolvedItem
from catalog.utils.whatsapp import build_item_contact_link

logger = logging.getLogger(__name__)

DEFAULT_CONTAINER_WIDTH = 320.0


def gallery_images(item: ResolvedItem) -> list[str]:
    if item.image_urls:
        return list(item.image_urls)
    return [item.image_url] if item.image_url else []


def _thumbnails(images: list[str], active_index: int, failed: frozenset[int]) -> list[GalleryThumbnail]:
    if len(images) <= 1:
        return []
    return [
        GalleryThumbnail(index=i, url=url, active=i == active_index, failed=i in failed)
        for i, url in enumerate(images)
        if url
    ]


def placeholder_view(item: ResolvedItem, session_id: Optional[str] = None) -> GalleryView:
    """View for an item without images; no state machine is involved."""
    return GalleryView(
        session_id=session_id,
        item_id=item.id,
        title=item.title,
        image_count=0,
        active_index=0,
        transitioning=False,
        height_class=modal_height_class(None),
        whatsapp_link=build_item_contact_link(item.whatsapp_number, item.whatsapp_message),
    )


def static_view(
    item: ResolvedItem,
    index: int = 0,
    thumbnail_width: float = 80,
    container_width: float = DEFAULT_CONTAINER_WIDTH,
) -> GalleryView:
    """
    Settled view of an item at a given image, for server-rendered pages.
    Out-of-range indexes wrap around.
    """
    images = gallery_images(item)
    if not images:
        return placeholder_view(item)
    active = index % len(images)
    return GalleryView(
        item_id=item.id,
        title=item.title,
        image_count=len(images),
        active_index=active,
        transitioning=False,
        active_url=images[active] or None,
        counter=f"{active + 1} / {len(images)}" if len(images) > 1 else None,
        thumbnails=_thumbnails(images, active, frozenset()),
        thumbnail_scroll_left=thumbnail_scroll_left(active, container_width, thumbnail_width),
        height_class=modal_height_class(None),
        whatsapp_link=build_item_contact_link(item.whatsapp_number, item.whatsapp_message),
    )


class GallerySession:
    """
    One open gallery modal.
    Must be created inside a running event loop.
    """

    def __init__(
        self,
        session_id: str,
        item: ResolvedItem,
        loader: ImageLoader,
        container_width: float = DEFAULT_CONTAINER_WIDTH,
        fade_delay: float = 0.15,
        settle_delay: float = 0.15,
        min_swipe_distance: float = 50,
        thumbnail_width: float = 80,
    ):
        self.session_id = session_id
        self.item = item
        self.container_width = container_width
        self.whatsapp_link = build_item_contact_link(item.whatsapp_number, item.whatsapp_message)
        self.probe = OrientationProbe(loader)
        self.scroll_left = 0.0

        images = gallery_images(item)
        self.machine: Optional[GalleryStateMachine] = None
        if images:
            self.machine = GalleryStateMachine(
                images,
                fade_delay=fade_delay,
                settle_delay=settle_delay,
                min_swipe_distance=min_swipe_distance,
                thumbnail_width=thumbnail_width,
            )
            self.machine.add_index_listener(self._on_index_change)
            self._on_index_change(0)

    def _on_index_change(self, index: int) -> None:
        self.probe.request(self.machine.images[index])
        if self.machine.length > 1:
            self.scroll_left = self.machine.thumbnail_scroll(self.container_width)

    def view(self) -> GalleryView:
        if self.machine is None:
            return placeholder_view(self.item, self.session_id)

        machine = self.machine
        phase = machine.phase
        transitioning = isinstance(phase, Transitioning)
        return GalleryView(
            session_id=self.session_id,
            item_id=self.item.id,
            title=self.item.title,
            image_count=machine.length,
            active_index=machine.active_index,
            transitioning=transitioning,
            from_index=phase.from_index if transitioning else None,
            to_index=phase.to_index if transitioning else None,
            active_url=machine.displayed_url,
            counter=f"{machine.active_index + 1} / {machine.length}" if machine.length > 1 else None,
            thumbnails=_thumbnails(machine.images, machine.active_index, machine.failed_indexes),
            thumbnail_scroll_left=self.scroll_left,
            orientation=self.probe.orientation.value if self.probe.orientation else None,
            height_class=modal_height_class(self.probe.orientation),
            whatsapp_link=self.whatsapp_link,
        )

    def close(self) -> None:
        if self.machine is not None:
            self.machine.close()
        self.probe.cancel()


class GallerySessionRegistry:
    """Bounded map of session id to open GallerySession."""

    def __init__(self, max_sessions: int = 256):
        self.max_sessions = max_sessions
        self._sessions: OrderedDict[str, GallerySession] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def open(self, item: ResolvedItem, loader: ImageLoader, **options) -> GallerySession:
        session = GallerySession(uuid.uuid4().hex, item, loader, **options)
        self._sessions[session.session_id] = session
        while len(self._sessions) > self.max_sessions:
            _sid, evicted = self._sessions.popitem(last=False)
            evicted.close()
            logger.info(f"Evicted gallery session {evicted.session_id}")
        return session

    def get(self, session_id: str) -> GallerySession:
        """
        Raises:
            KeyError: If the session does not exist or was evicted
        """
        session = self._sessions[session_id]
        self._sessions.move_to_end(session_id)
        return session

    def close(self, session_id: str) -> None:
        session = self._sessions.pop(session_id)
        session.close()

    def close_all(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()
