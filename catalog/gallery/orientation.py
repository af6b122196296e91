"""
Image orientation classification.

Probes an image's natural pixel size and classifies it as landscape, portrait
or square. Card and modal layouts map the result to a size class, with a
default for images that are still loading or failed to load.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from io import BytesIO
from typing import Awaitable, Callable, Optional

import httpx
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

LANDSCAPE_RATIO = 1.1
PORTRAIT_RATIO = 0.9


class Orientation(str, Enum):
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    SQUARE = "square"


@dataclass(frozen=True)
class ImageDimensions:
    width: int
    height: int
    aspect_ratio: float
    orientation: Orientation


class ImageProbeError(Exception):
    """Raised when an image cannot be fetched or decoded."""


ImageLoader = Callable[[str], Awaitable[tuple[int, int]]]


def classify_dimensions(width: int, height: int) -> Optional[Orientation]:
    """
    Classify natural pixel dimensions. Ratios of exactly 1.1 and 0.9 are square.
    """
    if width <= 0 or height <= 0:
        return None
    ratio = width / height
    if ratio > LANDSCAPE_RATIO:
        return Orientation.LANDSCAPE
    if ratio < PORTRAIT_RATIO:
        return Orientation.PORTRAIT
    return Orientation.SQUARE


def measure(width: int, height: int) -> Optional[ImageDimensions]:
    orientation = classify_dimensions(width, height)
    if orientation is None:
        return None
    return ImageDimensions(width, height, width / height, orientation)


# Layout buckets

CARD_ASPECT_CLASSES = {
    Orientation.PORTRAIT: "aspect-[3/4]",
    Orientation.LANDSCAPE: "aspect-[4/3]",
    Orientation.SQUARE: "aspect-square",
}
DEFAULT_CARD_ASPECT_CLASS = "aspect-[4/3]"

MODAL_HEIGHT_CLASSES = {
    Orientation.PORTRAIT: "h-64 sm:h-80 md:h-96 lg:h-[28rem]",
    Orientation.LANDSCAPE: "h-48 sm:h-56 md:h-64 lg:h-72",
    Orientation.SQUARE: "h-56 sm:h-64 md:h-72 lg:h-80",
}
DEFAULT_MODAL_HEIGHT_CLASS = "h-48 sm:h-64 md:h-80 lg:h-96"


def card_aspect_class(orientation: Optional[Orientation]) -> str:
    return CARD_ASPECT_CLASSES.get(orientation, DEFAULT_CARD_ASPECT_CLASS)


def modal_height_class(orientation: Optional[Orientation]) -> str:
    return MODAL_HEIGHT_CLASSES.get(orientation, DEFAULT_MODAL_HEIGHT_CLASS)


# Loading

class HttpImageLoader:
    """
    Fetches an image over HTTP and reads its natural size with Pillow.
    """

    def __init__(self, timeout: float = 5.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    async def __call__(self, url: str) -> tuple[int, int]:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, follow_redirects=True, transport=self.transport
            ) as client:
                resp = await client.get(url)
                resp.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ImageProbeError(f"Could not fetch {url}: {e}") from e

        try:
            with Image.open(BytesIO(resp.content)) as img:
                return img.size
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            raise ImageProbeError(f"Could not decode {url}: {e}") from e


async def classify(url: str, loader: ImageLoader) -> Optional[Orientation]:
    """Probe one image. Failures yield None; callers fall back to a default."""
    if not url:
        return None
    try:
        width, height = await loader(url)
    except ImageProbeError as e:
        logger.info(f"Orientation probe failed: {e}")
        return None
    except Exception as e:
        logger.error(f"Unexpected error probing {url}: {str(e)}", exc_info=True)
        return None
    return classify_dimensions(width, height)


class OrientationProbe:
    """
    Re-runnable probe for an image whose URL changes over time.

    Each request is keyed by its URL. A new request cancels the previous one,
    and a completion whose URL is no longer the latest requested one is
    dropped, so a slow old probe never overwrites a fast new one.
    """

    def __init__(self, loader: ImageLoader):
        self._loader = loader
        self._url: Optional[str] = None
        self._dimensions: Optional[ImageDimensions] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def url(self) -> Optional[str]:
        return self._url

    @property
    def dimensions(self) -> Optional[ImageDimensions]:
        return self._dimensions

    @property
    def orientation(self) -> Optional[Orientation]:
        return self._dimensions.orientation if self._dimensions else None

    def request(self, url: str) -> None:
        if url == self._url and (self._dimensions is not None or self.pending):
            return
        self.cancel()
        self._url = url
        self._dimensions = None
        if not url:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(url))

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self, url: str) -> None:
        try:
            width, height = await self._loader(url)
        except ImageProbeError as e:
            logger.info(f"Orientation probe failed: {e}")
            return
        except Exception as e:
            logger.error(f"Unexpected error probing {url}: {str(e)}", exc_info=True)
            return
        if url != self._url:
            logger.debug(f"Discarding stale orientation probe for {url}")
            return
        self._dimensions = measure(width, height)

    async def wait(self) -> None:
        if self._task is not None:
            await asyncio.wait({self._task})

    def cancel(self) -> None:
        if self.pending:
            self._task.cancel()
        self._task = None
