"""
Capture timestamp decoding using Pillow's EXIF support.

``ExifDecoder`` registers Pillow's format plugins once when constructed;
build one instance per process and pass it to the importer.
"""

from datetime import datetime
from io import BytesIO

from loguru import logger
from PIL import ExifTags, Image, UnidentifiedImageError

from olyshare.utils.errors import DecodeError

EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"


def parse_exif_datetime(value: str, offset: str | None = None) -> datetime:
    """
    Parse an EXIF ``YYYY:MM:DD HH:MM:SS`` string.

    Args:
        value: EXIF date/time value
        offset: Optional EXIF offset such as ``+09:00``

    Returns:
        Timezone-aware datetime; without an offset the camera's clock is
        taken to be in local time

    Raises:
        ValueError: if the value is not a valid EXIF timestamp
    """
    taken = datetime.strptime(value.strip("\x00 "), EXIF_DATETIME_FORMAT)
    if offset and offset.strip("\x00 "):
        offset_time = datetime.strptime(offset.strip("\x00 "), "%z")
        return taken.replace(tzinfo=offset_time.tzinfo)
    return taken.astimezone()


class ExifDecoder:
    """Extracts the capture time embedded in image bytes."""

    def __init__(self):
        Image.init()
        self.formats = sorted(Image.OPEN)
        logger.debug(f"Pillow image plugins registered: {', '.join(self.formats)}")

    def decode(self, data: bytes) -> datetime:
        """
        Decode the capture time of an image.

        DateTimeOriginal is preferred, DateTime is the fallback.

        Raises:
            DecodeError: if the bytes are not a readable image or carry no
                usable timestamp
        """
        try:
            with Image.open(BytesIO(data)) as img:
                exif = img.getexif()
                exif_ifd = exif.get_ifd(ExifTags.IFD.Exif)
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise DecodeError(f"failed to read exif data, failed with {e}") from e

        value = exif_ifd.get(ExifTags.Base.DateTimeOriginal) or exif.get(ExifTags.Base.DateTime)
        if not value:
            raise DecodeError("no capture time in exif data")

        offset = exif_ifd.get(ExifTags.Base.OffsetTimeOriginal)
        try:
            return parse_exif_datetime(str(value), str(offset) if offset else None)
        except ValueError as e:
            raise DecodeError(f"invalid exif capture time {value!r}: {e}") from e
