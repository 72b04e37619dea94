import base64
import io
import itertools
import os

# Settings are read on import of drawshare.main, pin them first.
os.environ["DROPBOX_ACCESS_TOKEN"] = "access-0"
os.environ["DROPBOX_REFRESH_TOKEN"] = "refresh-token"
os.environ["DROPBOX_APP_KEY"] = "app-key"
os.environ["DROPBOX_APP_SECRET"] = "app-secret"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ.pop("ENV", None)

import pytest
from PIL import Image

from drawshare.credential import Credential
from drawshare.links import LinkResolver
from drawshare.publisher import Publisher
from drawshare.service import ImageSharer
from drawshare.session import SessionGuard
from tests.fakes import FakeDropbox


@pytest.fixture
def backend() -> FakeDropbox:
    return FakeDropbox()


@pytest.fixture
def credential() -> Credential:
    return Credential(access_token="access-0", refresh_token="refresh-token")


@pytest.fixture
def clock():
    return itertools.count(1700000000000).__next__


@pytest.fixture
def sharer(backend, credential, clock) -> ImageSharer:
    return ImageSharer(
        publisher=Publisher(backend, clock=clock),
        resolver=LinkResolver(backend),
        guard=SessionGuard(credential, backend.exchange_refresh_token),
    )


def _image_bytes(fmt: str) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=(200, 30, 30)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return _image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return _image_bytes("JPEG")


@pytest.fixture
def png_data_uri(png_bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode()
