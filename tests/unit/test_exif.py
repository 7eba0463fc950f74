from datetime import datetime, timedelta, timezone

import pytest

from domains.camera_import.exif import parse_exif_datetime
from olyshare.utils.errors import DecodeError


def test_decode_reads_capture_time(decoder, jpeg, now):
    taken = now - timedelta(hours=3)

    assert decoder.decode(jpeg(taken)) == taken


def test_decode_without_exif_fails(decoder, jpeg):
    with pytest.raises(DecodeError, match="no capture time"):
        decoder.decode(jpeg(None))


def test_decode_non_image_fails(decoder):
    with pytest.raises(DecodeError):
        decoder.decode(b"\x00\x00\x00\x14ftypqt  not a jpeg")


def test_decoder_registers_jpeg_plugin(decoder):
    assert "JPEG" in decoder.formats


def test_parse_exif_datetime_naive_is_local():
    parsed = parse_exif_datetime("2024:05:01 10:00:00")

    assert parsed.tzinfo is not None
    assert parsed.replace(tzinfo=None) == datetime(2024, 5, 1, 10, 0, 0)


def test_parse_exif_datetime_with_offset():
    parsed = parse_exif_datetime("2024:05:01 10:00:00\x00", "+09:00")

    assert parsed == datetime(2024, 5, 1, 1, 0, 0, tzinfo=timezone.utc)


def test_parse_exif_datetime_rejects_garbage():
    with pytest.raises(ValueError):
        parse_exif_datetime("0000:00:00 00:00:00")
