import asyncio
from io import BytesIO

import httpx
import pytest
from PIL import Image

from catalog.gallery.orientation import (
    DEFAULT_CARD_ASPECT_CLASS,
    DEFAULT_MODAL_HEIGHT_CLASS,
    HttpImageLoader,
    ImageProbeError,
    Orientation,
    OrientationProbe,
    card_aspect_class,
    classify,
    classify_dimensions,
    measure,
    modal_height_class,
)
from fakes import FakeImageLoader


@pytest.mark.parametrize(
    "width, height, expected",
    [
        (1600, 900, Orientation.LANDSCAPE),
        (1000, 900, Orientation.LANDSCAPE),
        (1100, 1000, Orientation.SQUARE),
        (1000, 1000, Orientation.SQUARE),
        (1000, 950, Orientation.SQUARE),
        (900, 1000, Orientation.SQUARE),
        (899, 1000, Orientation.PORTRAIT),
        (600, 900, Orientation.PORTRAIT),
    ],
)
def test_classify_dimensions(width, height, expected):
    assert classify_dimensions(width, height) == expected


@pytest.mark.parametrize("width, height", [(0, 100), (100, 0), (-5, 10)])
def test_unusable_dimensions(width, height):
    assert classify_dimensions(width, height) is None
    assert measure(width, height) is None


def test_measure_keeps_ratio():
    dims = measure(1200, 800)
    assert dims.aspect_ratio == 1.5
    assert dims.orientation is Orientation.LANDSCAPE


def test_layout_classes_fall_back_to_defaults():
    assert card_aspect_class(Orientation.PORTRAIT) == "aspect-[3/4]"
    assert card_aspect_class(Orientation.SQUARE) == "aspect-square"
    assert card_aspect_class(None) == DEFAULT_CARD_ASPECT_CLASS
    assert modal_height_class(Orientation.LANDSCAPE) == "h-48 sm:h-56 md:h-64 lg:h-72"
    assert modal_height_class(None) == DEFAULT_MODAL_HEIGHT_CLASS


async def test_classify_swallows_load_failures():
    loader = FakeImageLoader({"https://img/ok.jpg": (600, 900)})
    assert await classify("https://img/ok.jpg", loader) is Orientation.PORTRAIT
    assert await classify("https://img/missing.jpg", loader) is None
    assert await classify("", loader) is None
    assert loader.requested == ["https://img/ok.jpg", "https://img/missing.jpg"]


class GatedLoader:
    """Loader whose responses are released by hand, to order completions."""

    def __init__(self, sizes):
        self.sizes = sizes
        self.gates = {url: asyncio.Event() for url in sizes}

    async def __call__(self, url):
        await self.gates[url].wait()
        return self.sizes[url]


async def test_orientation_reports_latest_url():
    loader = FakeImageLoader({"a": (1000, 500), "b": (500, 1000)})
    probe = OrientationProbe(loader)

    probe.request("a")
    await probe.wait()
    assert probe.orientation is Orientation.LANDSCAPE

    probe.request("b")
    assert probe.orientation is None
    await probe.wait()
    assert probe.orientation is Orientation.PORTRAIT
    assert probe.url == "b"


async def test_orientation_discards_stale_result():
    loader = GatedLoader({"slow": (1000, 500), "fast": (500, 1000)})
    probe = OrientationProbe(loader)

    probe.request("slow")
    await asyncio.sleep(0)
    probe.request("fast")
    loader.gates["fast"].set()
    await probe.wait()
    loader.gates["slow"].set()
    await asyncio.sleep(0)

    assert probe.url == "fast"
    assert probe.orientation is Orientation.PORTRAIT


async def test_stale_run_is_dropped_even_if_it_completes():
    loader = FakeImageLoader({"old": (1000, 500)})
    probe = OrientationProbe(loader)
    probe._url = "new"
    await probe._run("old")
    assert probe.dimensions is None


async def test_repeated_request_does_not_reload():
    loader = FakeImageLoader({"a": (1000, 1000)})
    probe = OrientationProbe(loader)
    probe.request("a")
    await probe.wait()
    probe.request("a")
    await probe.wait()
    assert loader.requested == ["a"]
    assert probe.orientation is Orientation.SQUARE


async def test_failed_load_leaves_orientation_unknown():
    probe = OrientationProbe(FakeImageLoader())
    probe.request("broken")
    await probe.wait()
    assert probe.orientation is None
    assert not probe.pending


def _png(width, height):
    buffer = BytesIO()
    Image.new("RGB", (width, height), "white").save(buffer, format="PNG")
    return buffer.getvalue()


def _transport():
    def handler(request):
        if request.url.path == "/wide.png":
            return httpx.Response(200, content=_png(40, 20))
        if request.url.path == "/garbage.png":
            return httpx.Response(200, content=b"not an image")
        return httpx.Response(404)

    return httpx.MockTransport(handler)


async def test_http_loader_reads_natural_size():
    loader = HttpImageLoader(transport=_transport())
    assert await loader("https://cdn.test/wide.png") == (40, 20)


@pytest.mark.parametrize("path", ["/missing.png", "/garbage.png"])
async def test_http_loader_failures(path):
    loader = HttpImageLoader(transport=_transport())
    with pytest.raises(ImageProbeError):
        await loader(f"https://cdn.test{path}")


async def test_http_loader_rejects_decompression_bomb(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
    loader = HttpImageLoader(transport=_transport())
    with pytest.raises(ImageProbeError):
        await loader("https://cdn.test/wide.png")


async def test_http_loader_rejects_invalid_url():
    loader = HttpImageLoader(transport=_transport())
    with pytest.raises(ImageProbeError):
        await loader("https://cdn.test:notaport/wide.png")


async def _exploding_loader(url):
    raise RuntimeError("loader bug")


async def test_unexpected_loader_error_falls_back_to_default():
    assert await classify("https://img/any.jpg", _exploding_loader) is None

    probe = OrientationProbe(_exploding_loader)
    probe.request("https://img/any.jpg")
    await probe.wait()
    assert probe.orientation is None
    assert not probe.pending
