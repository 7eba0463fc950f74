import io
import signal
from datetime import timedelta

import httpx
import pytest

from olyshare.utils.config import Settings
from olyshare.utils.helpers import link_filename
from scripts import gget, olyshare_import


@pytest.fixture
def no_signals(monkeypatch):
    monkeypatch.setattr(signal, "signal", lambda *args: None)


@pytest.fixture
def fake_client(monkeypatch, camera):
    def _build(settings, transport=None, cache=True):
        return httpx.Client(transport=camera.transport)

    monkeypatch.setattr(olyshare_import, "build_http_client", _build)
    monkeypatch.setattr(gget, "build_http_client", _build)


def test_resolve_settings_only_overrides_given_flags(tmp_path):
    base = Settings(_env_file=None, skip_movie=True, copy_days=3)
    args = olyshare_import.parse_args(["--out-dir", str(tmp_path), "--import-routines", "4"])

    settings = olyshare_import.resolve_settings(args, base)

    assert settings.out_dir == tmp_path
    assert settings.import_workers == 4
    assert settings.skip_movie is True
    assert settings.copy_days == 3


def test_missing_output_dir_fails_before_contacting_camera(tmp_path, camera, fake_client):
    code = olyshare_import.main(["--cache-dir", str(tmp_path), "--out-dir", str(tmp_path / "nope")])

    assert code == 1
    assert camera.requests == []


def test_import_command(tmp_path, camera, fake_client, no_signals, jpeg, now):
    camera.add("P1.JPG", jpeg(now - timedelta(hours=1)))
    camera.add("P2.MOV", b"moov", "video/quicktime")
    out_dir = tmp_path / "out"
    out_dir.mkdir()

    code = olyshare_import.main([
        "--cam-ip", "http://camera.test",
        "--cache-dir", str(tmp_path),
        "--out-dir", str(out_dir),
        "--skip-movie",
        "--copy-days", "2",
    ])

    assert code == 0
    assert [p.name for p in out_dir.iterdir()] == ["P1.JPG"]


def test_import_command_reports_failure(tmp_path, camera, fake_client, no_signals):
    camera.listing_status = 500

    code = olyshare_import.main(["--cam-ip", "http://camera.test", "--cache-dir", str(tmp_path), "--out-dir", str(tmp_path)])

    assert code == 1


def test_gget_command(tmp_path, camera, fake_client, no_signals, jpeg):
    item_id = camera.add("P1.JPG", jpeg(None))
    link = "http://camera.test" + item_id

    code = gget.main(["--outdir", str(tmp_path), "--routines", "2"], stdin=io.StringIO(link + "\n"))

    assert code == 0
    assert (tmp_path / link_filename(link)).read_bytes() == camera.files[item_id][1]


def test_gget_rejects_zero_routines(tmp_path, no_signals):
    assert gget.main(["--outdir", str(tmp_path), "--routines", "0"], stdin=io.StringIO("")) == 1
