"""Tests for :class:`ImageKitDiscovery` with a stubbed HTTP transport."""

from __future__ import annotations

import io
import re
from typing import Any, Callable

import httpx
import pytest
from PIL import Image

from galleryflow.config import ImageKitConfig
from galleryflow.discovery.base import DiscoveryService
from galleryflow.discovery.imagekit import ImageKitDiscovery
from galleryflow.domain.models import ImageRange, ImageRatio
from galleryflow.exceptions import DiscoveryError, RangeDetectionError

pytestmark = pytest.mark.unit

ENDPOINT = "https://ik.imagekit.io/demo"
API = "https://api.imagekit.io/v1/files"
_NUMBER = re.compile(r"/AP/(\d+)\.jpg")


def _image_bytes(width: int, height: int) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(120, 80, 40)).save(buffer, format="JPEG")
    return buffer.getvalue()


WIDE_JPEG = _image_bytes(30, 10)
TALL_JPEG = _image_bytes(10, 15)


class DummyHTTPResponse:
    def __init__(
        self,
        status_code: int,
        content: bytes = b"",
        json_data: Any = None,
    ) -> None:
        self.status_code = status_code
        self.content = content
        self._json_data = json_data

    def json(self) -> Any:
        if self._json_data is None:
            raise ValueError("No JSON data")
        return self._json_data


Handler = Callable[[str, dict[str, str] | None], DummyHTTPResponse]


class DummyAsyncClient:
    def __init__(self, handler: Handler, calls: list[dict[str, Any]]) -> None:
        self._handler = handler
        self._calls = calls

    async def __aenter__(self) -> "DummyAsyncClient":  # pragma: no cover - helper
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:  # pragma: no cover - helper
        return None

    async def get(
        self,
        url: str,
        params: dict[str, str] | None = None,
        auth: tuple[str, str] | None = None,
    ) -> DummyHTTPResponse:
        self._calls.append({"url": url, "params": params, "auth": auth})
        return self._handler(url, params)


def population(size: int, content: bytes = TALL_JPEG) -> Handler:
    def handler(url: str, params: dict[str, str] | None) -> DummyHTTPResponse:
        match = _NUMBER.search(url)
        if match and 1 <= int(match.group(1)) <= size:
            return DummyHTTPResponse(200, content)
        return DummyHTTPResponse(404)

    return handler


@pytest.fixture
def transport(monkeypatch):
    calls: list[dict[str, Any]] = []
    state: dict[str, Handler] = {"handler": population(0)}

    def install(handler: Handler) -> list[dict[str, Any]]:
        state["handler"] = handler
        return calls

    monkeypatch.setattr(
        httpx,
        "AsyncClient",
        lambda *args, **kwargs: DummyAsyncClient(
            lambda url, params: state["handler"](url, params), calls
        ),
    )
    return install


def _make_discovery(**overrides) -> ImageKitDiscovery:
    values = {"url_endpoint": ENDPOINT, "path_prefix": "/AP/", "private_key": ""}
    values.update(overrides)
    return ImageKitDiscovery(ImageKitConfig(**values))


def _probed_numbers(calls: list[dict[str, Any]]) -> list[int]:
    return [int(_NUMBER.search(call["url"]).group(1)) for call in calls if _NUMBER.search(call["url"])]


def test_discovery_satisfies_protocol() -> None:
    assert isinstance(_make_discovery(), DiscoveryService)


def test_path_for_builds_population_address() -> None:
    discovery = _make_discovery()

    assert discovery.population_path(7) == "/AP/7.jpg"
    assert discovery.path_for(7) == "https://ik.imagekit.io/demo/AP/7.jpg"


@pytest.mark.asyncio
async def test_probe_exists_requests_tiny_rendition(transport) -> None:
    calls = transport(population(3))
    discovery = _make_discovery()

    assert await discovery.probe_exists(3, 500) is True
    assert await discovery.probe_exists(4, 500) is False
    assert calls[0]["url"] == f"{ENDPOINT}/AP/3.jpg?tr=q-20,f-webp,w-10"


@pytest.mark.asyncio
async def test_probe_transport_errors_mean_missing(transport) -> None:
    def refuse(url: str, params: dict[str, str] | None) -> DummyHTTPResponse:
        raise httpx.ConnectError("refused")

    transport(refuse)

    assert await _make_discovery().probe_exists(1, 500) is False


@pytest.mark.asyncio
@pytest.mark.parametrize("size", [1, 120, 999, 1_000, 1_234, 7_777])
async def test_detect_range_finds_exact_maximum(transport, size: int) -> None:
    transport(population(size))

    assert await _make_discovery().detect_range() == ImageRange(max=size)


@pytest.mark.asyncio
async def test_detect_range_is_capped_by_max_range(transport) -> None:
    transport(population(20_000))

    assert await _make_discovery(max_range=10_000).detect_range() == ImageRange(max=10_000)


@pytest.mark.asyncio
async def test_detect_range_without_population_raises(transport) -> None:
    transport(population(0))

    with pytest.raises(RangeDetectionError):
        await _make_discovery().detect_range()


@pytest.mark.asyncio
async def test_estimate_count_samples_until_gaps(transport) -> None:
    calls = transport(population(120))

    assert await _make_discovery().estimate_count() == 200
    assert _probed_numbers(calls) == [50, 100, 150, 200, 250]


@pytest.mark.asyncio
async def test_discover_numbered_stops_after_consecutive_misses(transport) -> None:
    calls = transport(population(3, WIDE_JPEG))
    discovery = _make_discovery(max_consecutive_failures=2)

    images = await discovery.discover_numbered(10)

    assert [image.id for image in images] == ["1", "2", "3"]
    assert images[0].src == f"{ENDPOINT}/AP/1.jpg"
    assert images[0].file_path == "/AP/1.jpg"
    assert images[0].ratio is ImageRatio.LANDSCAPE
    assert _probed_numbers(calls) == [1, 2, 3, 4, 5]


@pytest.mark.asyncio
async def test_list_up_to_without_key_uses_numeric_discovery(transport) -> None:
    transport(population(8))

    images = await _make_discovery().list_up_to(5)

    assert [image.id for image in images] == ["1", "2", "3", "4", "5"]
    assert all(image.ratio is ImageRatio.PORTRAIT for image in images)


@pytest.mark.asyncio
async def test_list_all_requires_private_key(transport) -> None:
    transport(population(8))

    with pytest.raises(DiscoveryError):
        await _make_discovery().list_all()


def _listing(files: list[dict[str, Any]], page_size: int) -> Handler:
    def handler(url: str, params: dict[str, str] | None) -> DummyHTTPResponse:
        assert url == API
        skip = int(params["skip"])
        return DummyHTTPResponse(200, json_data=files[skip : skip + page_size])

    return handler


FILES = [
    {"type": "file", "name": "a.jpg", "url": f"{ENDPOINT}/AP/a.jpg", "fileId": "f-a", "width": 1920, "height": 1080},
    {"type": "file", "name": "b.png", "url": f"{ENDPOINT}/AP/b.png", "fileId": "f-b", "width": 800, "height": 1200},
    {"type": "folder", "name": "nested", "url": f"{ENDPOINT}/AP/nested"},
    {"type": "file", "name": "notes.txt", "url": f"{ENDPOINT}/AP/notes.txt", "fileId": "f-t"},
    {"type": "file", "name": "c.webp", "url": f"{ENDPOINT}/AP/c.webp", "fileId": "f-c", "filePath": "/AP/c.webp"},
]


@pytest.mark.asyncio
async def test_list_all_paginates_and_keeps_images_only(transport) -> None:
    calls = transport(_listing(FILES, page_size=2))
    discovery = _make_discovery(private_key="private_key_test", list_page_size=2)

    images = await discovery.list_all()

    assert [image.file_name for image in images] == ["a.jpg", "b.png", "c.webp"]
    assert [image.id for image in images] == ["f-a", "f-b", "f-c"]
    assert images[0].ratio is ImageRatio.LANDSCAPE
    assert images[1].ratio is ImageRatio.PORTRAIT
    assert images[0].title == "a"
    assert images[2].file_path == "/AP/c.webp"
    assert [call["params"]["skip"] for call in calls] == ["0", "2", "4"]
    assert calls[0]["auth"] == ("private_key_test", "")
    assert calls[0]["params"]["sort"] == "ASC_NAME"


@pytest.mark.asyncio
async def test_list_up_to_truncates_api_listing(transport) -> None:
    calls = transport(_listing(FILES, page_size=2))
    discovery = _make_discovery(private_key="private_key_test", list_page_size=2)

    images = await discovery.list_up_to(1)

    assert [image.file_name for image in images] == ["a.jpg"]
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_list_up_to_falls_back_when_api_fails(transport) -> None:
    numbered = population(4)

    def handler(url: str, params: dict[str, str] | None) -> DummyHTTPResponse:
        if url == API:
            return DummyHTTPResponse(500)
        return numbered(url, params)

    transport(handler)
    discovery = _make_discovery(private_key="private_key_test")

    images = await discovery.list_up_to(3)

    assert [image.id for image in images] == ["1", "2", "3"]


@pytest.mark.asyncio
async def test_list_all_rejects_invalid_json(transport) -> None:
    transport(lambda url, params: DummyHTTPResponse(200))

    with pytest.raises(DiscoveryError):
        await _make_discovery(private_key="private_key_test").list_all()


@pytest.mark.asyncio
async def test_list_all_via_range_detection_probes_detected_range(transport) -> None:
    transport(population(8))
    discovery = _make_discovery(range_batch_size=3)

    images = await discovery.list_all_via_range_detection()

    assert [image.id for image in images] == [str(n) for n in range(1, 9)]


@pytest.mark.asyncio
async def test_image_metadata_decodes_placeholder(transport) -> None:
    calls = transport(population(2, WIDE_JPEG))
    discovery = _make_discovery()

    metadata = await discovery.image_metadata(discovery.path_for(2))
    missing = await discovery.image_metadata(discovery.path_for(9))

    assert metadata.ratio is ImageRatio.LANDSCAPE
    assert metadata.file_name == "2.jpg"
    assert metadata.title == "2"
    assert metadata.file_type == "jpg"
    assert missing is None
    assert "tr=q-20,f-webp,w-30,bl-10" in calls[0]["url"]
