import io

import pytest
import requests
from PIL import Image


class FakeResponse:
    def __init__(self, status_code=200, content=b"", headers=None):
        self.status_code = status_code
        self.content = content
        self.headers = headers or {}
        self.closed = False

    def close(self):
        self.closed = True


class FakeSession:
    """Stands in for requests.Session, serving canned responses by URL."""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.calls = []

    def get(self, url, headers=None, allow_redirects=True):
        self.calls.append({"url": url, "headers": headers, "allow_redirects": allow_redirects})
        route = self.routes.get(url)
        if route is None:
            raise requests.ConnectionError(f"no route to {url}")
        return route


def make_image_bytes(width=64, height=64, fmt="PNG", color=(255, 0, 0, 255)):
    mode = "RGB" if fmt == "JPEG" else "RGBA"
    image = Image.new(mode, (width, height), color[:3] if mode == "RGB" else color)
    buffer = io.BytesIO()
    image.save(buffer, fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    return make_image_bytes()


@pytest.fixture
def fake_session():
    return FakeSession()
