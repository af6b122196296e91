"""
Gallery modal state machine.

Tracks which image of an item is shown and drives forward, backward and jump
transitions with a two-step fade: the outgoing image fades for fade_delay, the
index is committed, and the machine settles back to Idle after settle_delay.
Input arriving while a transition runs is dropped.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Union

logger = logging.getLogger(__name__)

MIN_SWIPE_DISTANCE = 50
THUMBNAIL_WIDTH = 80


@dataclass(frozen=True)
class Idle:
    index: int


@dataclass(frozen=True)
class Transitioning:
    from_index: int
    to_index: int


GalleryPhase = Union[Idle, Transitioning]
IndexListener = Callable[[int], None]


def thumbnail_scroll_left(index: int, container_width: float, thumbnail_width: float = THUMBNAIL_WIDTH) -> float:
    """Horizontal scroll that centers thumbnail ``index`` in its strip, never negative."""
    position = index * thumbnail_width - container_width / 2 + thumbnail_width / 2
    return max(0.0, position)


class GalleryStateMachine:
    """
    State of one open gallery.

    Transitions run as tasks on the current event loop, so next/prev/go_to
    must be called from within a running loop.
    """

    def __init__(
        self,
        images: Sequence[str],
        fade_delay: float = 0.15,
        settle_delay: float = 0.15,
        min_swipe_distance: float = MIN_SWIPE_DISTANCE,
        thumbnail_width: float = THUMBNAIL_WIDTH,
    ):
        if not images:
            raise ValueError("A gallery needs at least one image")
        self.images = list(images)
        self.fade_delay = fade_delay
        self.settle_delay = settle_delay
        self.min_swipe_distance = min_swipe_distance
        self.thumbnail_width = thumbnail_width

        self._phase: GalleryPhase = Idle(0)
        self._active_index = 0
        self._failed: set[int] = set()
        self._listeners: list[IndexListener] = []
        self._task: Optional[asyncio.Task] = None

    @property
    def phase(self) -> GalleryPhase:
        return self._phase

    @property
    def active_index(self) -> int:
        return self._active_index

    @property
    def transitioning(self) -> bool:
        return isinstance(self._phase, Transitioning)

    @property
    def length(self) -> int:
        return len(self.images)

    @property
    def active_url(self) -> str:
        return self.images[self._active_index]

    @property
    def displayed_url(self) -> Optional[str]:
        """URL to render, or None when the placeholder must be shown."""
        if self._active_index in self._failed or not self.active_url:
            return None
        return self.active_url

    # Image failures

    def mark_failed(self, index: int) -> None:
        """Remember a broken image; it renders the placeholder from now on."""
        if 0 <= index < self.length:
            self._failed.add(index)

    def is_failed(self, index: int) -> bool:
        return index in self._failed

    @property
    def failed_indexes(self) -> frozenset[int]:
        return frozenset(self._failed)

    # Listeners

    def add_index_listener(self, listener: IndexListener) -> None:
        """Call ``listener(index)`` whenever a new index is committed."""
        self._listeners.append(listener)

    # Transitions

    def next(self) -> bool:
        return self._begin((self._active_index + 1) % self.length)

    def prev(self) -> bool:
        return self._begin((self._active_index - 1) % self.length)

    def go_to(self, target_index: int) -> bool:
        if not 0 <= target_index < self.length:
            raise ValueError(f"Image index {target_index} out of range 0..{self.length - 1}")
        if target_index == self._active_index:
            return False
        return self._begin(target_index)

    def on_swipe_end(self, delta_x: float) -> bool:
        """
        Handle the end of a horizontal swipe.

        delta_x is end_x - start_x: a leftward swipe (negative) shows the next
        image, a rightward one the previous image.
        """
        if self.length <= 1 or abs(delta_x) < self.min_swipe_distance:
            return False
        return self.next() if delta_x < 0 else self.prev()

    def _begin(self, to_index: int) -> bool:
        if self.transitioning:
            logger.debug(f"Gallery busy, dropping transition to {to_index}")
            return False
        self._phase = Transitioning(self._active_index, to_index)
        self._task = asyncio.get_running_loop().create_task(self._run(to_index))
        return True

    async def _run(self, to_index: int) -> None:
        await asyncio.sleep(self.fade_delay)
        self._commit(to_index)
        await asyncio.sleep(self.settle_delay)
        self._phase = Idle(self._active_index)

    def _commit(self, index: int) -> None:
        self._active_index = index
        for listener in self._listeners:
            try:
                listener(index)
            except Exception:
                logger.exception(f"Gallery index listener failed for index {index}")

    async def wait_idle(self) -> None:
        """Wait for the running transition, if any, to settle."""
        if self._task is not None and not self._task.done():
            await self._task

    def thumbnail_scroll(self, container_width: float) -> float:
        return thumbnail_scroll_left(self._active_index, container_width, self.thumbnail_width)

    def close(self) -> None:
        """Cancel a running transition; the machine is left as it was."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        if isinstance(self._phase, Transitioning):
            self._phase = Idle(self._active_index)
