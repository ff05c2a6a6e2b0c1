import base64
import io
import os
import tempfile

os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "prominent_colors_test_logs"))

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from main import create_app
from prominent_colors.core.config import Settings
from prominent_colors.core.exceptions import ProminentColorsError
from prominent_colors.schemas.prominent_colors import ErrorType
from prominent_colors.utils.result_cache import ResultCache

PALETTE = ["#ff0000", "#00ff00", "#0000ff", "#ffffff", "#000000", "#123456", "#abcdef"]


def png_bytes(color=(255, 0, 0), size=(10, 10)) -> bytes:
    img = Image.new("RGB", size, color)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def png_b64(color=(255, 0, 0), size=(10, 10)) -> str:
    return base64.b64encode(png_bytes(color, size)).decode("utf-8")


class CountingExtractor:
    """Deterministic extractor that records how often it was called."""

    def __init__(self, colors=PALETTE):
        self.colors = list(colors)
        self.calls = 0
        self.requested = []

    def extract(self, image_data, n):
        self.calls += 1
        self.requested.append(n)
        return self.colors[:n]


class FakeFetcher:
    """URL fetcher serving canned bodies from memory."""

    def __init__(self):
        self.bodies = {}
        self.calls = []

    def add(self, url, body):
        self.bodies[url] = body

    def open(self, url):
        self.calls.append(url)
        if url not in self.bodies:
            raise ProminentColorsError(f"Get {url}: no such host", ErrorType.OTHER)
        return io.BytesIO(self.bodies[url])


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        MAX_REQUEST_BODY_SIZE_MB=1,
        MAX_PROMINENT_COLORS=5,
        DISK_CACHE_DIR=str(tmp_path / "cache"),
        LOG_DIR=str(tmp_path / "logs"),
    )


@pytest.fixture
def extractor():
    return CountingExtractor()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def result_cache():
    return ResultCache()


@pytest.fixture
def client(test_settings, extractor, fetcher, result_cache):
    app = create_app(test_settings, extractor=extractor, fetcher=fetcher, cache=result_cache)
    return TestClient(app)
