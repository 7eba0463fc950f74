import threading
from datetime import datetime
from io import BytesIO
from typing import Callable, Optional

import httpx
import pytest
from PIL import ExifTags, Image

from domains.camera_import.exif import ExifDecoder
from olyshare.models.schemas import ImportJob

CAMERA_URL = "http://camera.test"
LISTING_PATH = "/get_imglist.cgi?DIR=/DCIM/100OLYMP"
DIRPATH = "/DCIM/100OLYMP"


def make_jpeg(taken: Optional[datetime]) -> bytes:
    """Tiny JPEG carrying ``taken`` as its EXIF DateTime."""
    img = Image.new("RGB", (4, 4), "white")
    buf = BytesIO()
    if taken is None:
        img.save(buf, format="JPEG")
    else:
        exif = Image.Exif()
        exif[ExifTags.Base.DateTime] = taken.strftime("%Y:%m:%d %H:%M:%S")
        img.save(buf, format="JPEG", exif=exif.tobytes())
    return buf.getvalue()


class FakeCamera:
    """In-process stand-in for the camera's HTTP interface."""

    def __init__(self):
        self.files: dict[str, tuple[str, bytes]] = {}
        self.order: list[str] = []
        self.requests: list[tuple[str, str]] = []
        self.on_get: dict[str, Callable[[], None]] = {}
        self.listing_status = 200
        self.extra_listing_lines: list[str] = []
        self._lock = threading.Lock()

    def add(self, filename: str, body: bytes, content_type: str = "image/jpeg") -> str:
        """Add a file; files are listed oldest first in the order added."""
        item_id = f"{DIRPATH}/{filename}"
        self.files[item_id] = (content_type, body)
        self.order.append(filename)
        return item_id

    def listing(self) -> str:
        lines = ["VER_100"]
        for filename in self.order:
            _, body = self.files[f"{DIRPATH}/{filename}"]
            lines.append(f"{DIRPATH},{filename},{len(body)},0,19582,35122")
        lines.extend(self.extra_listing_lines)
        return "\r\n".join(lines) + "\r\n"

    def calls(self, method: str) -> list[str]:
        with self._lock:
            return [path for m, path in self.requests if m == method]

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        with self._lock:
            self.requests.append((request.method, path))

        if path == "/get_imglist.cgi":
            return httpx.Response(self.listing_status, text=self.listing())

        if path not in self.files:
            return httpx.Response(404)

        content_type, body = self.files[path]
        if request.method == "HEAD":
            return httpx.Response(200, headers={"Content-Type": content_type})

        hook = self.on_get.get(path)
        if hook is not None:
            hook()
        return httpx.Response(200, headers={"Content-Type": content_type}, content=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def camera() -> FakeCamera:
    return FakeCamera()


@pytest.fixture
def client(camera):
    with httpx.Client(transport=camera.transport) as c:
        yield c


@pytest.fixture(scope="session")
def decoder() -> ExifDecoder:
    return ExifDecoder()


@pytest.fixture
def now() -> datetime:
    return datetime.now().astimezone().replace(microsecond=0)


@pytest.fixture
def make_job(tmp_path) -> Callable[..., ImportJob]:
    def _make(**overrides) -> ImportJob:
        values = dict(
            camera_url=CAMERA_URL,
            listing_path=LISTING_PATH,
            out_dir=tmp_path,
            copy_days=1,
            workers=1,
        )
        values.update(overrides)
        return ImportJob(**values)

    return _make


@pytest.fixture
def jpeg() -> Callable[[Optional[datetime]], bytes]:
    return make_jpeg
