import io
import logging

import pytest
from PIL import Image

from qrstudio.gallery import Gallery, MemoryStore
from qrstudio.logging import ROOT_LOGGER
from qrstudio.matrix import encode_matrix
from qrstudio.style import DEFAULT_CONFIG

LOGO_COLOR = (220, 20, 60, 255)


def make_logo_png(size: int = 64, color=LOGO_COLOR) -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", (size, size), color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def config():
    return DEFAULT_CONFIG


@pytest.fixture
def matrix():
    return encode_matrix(DEFAULT_CONFIG.url, DEFAULT_CONFIG.error_correction)


@pytest.fixture
def logo_png() -> bytes:
    return make_logo_png()


@pytest.fixture
def gallery() -> Gallery:
    return Gallery(MemoryStore())


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    # cli.main() attaches handlers bound to the captured streams of one test
    root = logging.getLogger(ROOT_LOGGER)
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
