from pathlib import Path

import pytest

from olyshare.models.schemas import DEFAULT_WORKERS, ImportJob
from olyshare.utils.config import Settings


def test_settings_defaults():
    settings = Settings(_env_file=None)

    assert ImportJob.from_settings(settings).listing_url == "http://192.168.0.10/get_imglist.cgi?DIR=/DCIM/100OLYMP"
    assert settings.copy_days == 1
    assert settings.get_skip_content_types() == set()


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("CAMERA_URL", "http://10.0.0.5/")
    monkeypatch.setenv("SKIP_MOVIE", "true")
    monkeypatch.setenv("SKIP_RAW", "1")
    monkeypatch.setenv("COPY_DAYS", "7")

    settings = Settings(_env_file=None)

    assert ImportJob.from_settings(settings).listing_url == "http://10.0.0.5/get_imglist.cgi?DIR=/DCIM/100OLYMP"
    assert settings.copy_days == 7
    assert settings.get_skip_content_types() == {
        "video/quicktime",
        "video/x-msvideo",
        "image/x-olympus-orf",
    }


def test_job_from_settings(tmp_path):
    settings = Settings(_env_file=None, out_dir=tmp_path, skip_raw=True, import_workers=3)

    job = ImportJob.from_settings(settings)

    assert job.out_dir == tmp_path
    assert job.workers == 3
    assert job.skip_content_types == frozenset({"image/x-olympus-orf"})
    assert job.item_url("/DCIM/100OLYMP/P1.JPG") == "http://192.168.0.10/DCIM/100OLYMP/P1.JPG"
    assert job.destination("/DCIM/100OLYMP/P1.JPG") == tmp_path / "P1.JPG"


@pytest.mark.parametrize("workers, expected", [(1, 1), (4, 4), (0, DEFAULT_WORKERS), (5, DEFAULT_WORKERS), (-1, DEFAULT_WORKERS)])
def test_job_bounds_worker_count(workers, expected):
    job = ImportJob(camera_url="http://c", listing_path="/l", out_dir=Path("."), workers=workers)

    assert job.workers == expected


def test_job_is_immutable():
    job = ImportJob(camera_url="http://c", listing_path="/l", out_dir=Path("."))

    with pytest.raises(Exception):
        job.copy_days = 5
