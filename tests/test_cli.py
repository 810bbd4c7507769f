import io
import time

import pytest

from thermo433 import cli
from thermo433.core.sensor.mock import MockSensor
from thermo433.settings import Settings


def write_capture(path, *sensors):
    lines = []
    for s in sensors:
        lines.extend(s.lines())
    path.write_text("\n".join(lines) + "\n")
    return path


def test_cli_decodes_file_and_stores(tmp_path, capsys):
    capture = write_capture(
        tmp_path / "capture.txt",
        MockSensor(channel=1, temperature_tenths_c=215),
        MockSensor(channel=2, temperature_tenths_c=-30, start_s=int(time.time())),
    )
    data_dir = tmp_path / "store"

    rc = cli.main(["-i", str(capture), "-c", "2", "--data-dir", str(data_dir)])
    assert rc == 0

    out = capsys.readouterr().out.splitlines()
    assert len(out) == 1
    assert " channel 2 temp -3.0 hex " in out[0]
    assert len(list((data_dir / "records").glob("*.json"))) == 1


def test_cli_reads_stdin(tmp_path, monkeypatch, capsys):
    lines = "\n".join(MockSensor(channel=1, temperature_tenths_c=5).lines()) + "\n"
    monkeypatch.setattr("sys.stdin", io.StringIO(lines))

    assert cli.main(["--no-store"]) == 0
    assert "channel 1 temp 0.5" in capsys.readouterr().out


def test_cli_quiet_no_store(tmp_path, capsys):
    capture = write_capture(tmp_path / "capture.txt", MockSensor(channel=1))
    assert cli.main(["-i", str(capture), "--quiet", "--no-store"]) == 0
    assert capsys.readouterr().out == ""


def test_cli_rejects_bad_channel(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["-c", "7"])
    assert exc.value.code == 2


def test_settings_channel_set():
    assert Settings(CHANNELS="1, 3").channel_set() == {1, 3}
    assert Settings(CHANNELS="").channel_set() == set()
    with pytest.raises(ValueError):
        Settings(CHANNELS="1,9").channel_set()


def test_cli_old_capture_decodes_but_writes_no_buckets(tmp_path, capsys):
    # default start time is 2023-11, long past the record TTL
    capture = write_capture(tmp_path / "capture.txt", MockSensor(channel=1, temperature_tenths_c=215))
    data_dir = tmp_path / "store"

    assert cli.main(["-i", str(capture), "--data-dir", str(data_dir)]) == 0
    assert "channel 1 temp 21.5" in capsys.readouterr().out
    assert list((data_dir / "records").iterdir()) == []
    assert list((data_dir / "hourly").iterdir()) == []
