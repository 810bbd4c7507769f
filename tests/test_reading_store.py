import json
import threading
from datetime import datetime, timezone

import pytest

from thermo433.core.bus.models import Reading
from thermo433.core.store.reading_store import ReadingStore, day_end, month_end

# 2024-03-10 12:00:00 UTC
T0 = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc).timestamp()


def make_reading(started_at, channel=1, tenths=215, ts=None):
    return Reading(
        timestamp=ts if ts is not None else int(started_at),
        channel=channel,
        temperature_tenths_c=tenths,
        checksum_hex="0011f46c0",
        started_at=started_at,
    )


@pytest.fixture
def store(tmp_path):
    return ReadingStore(tmp_path, record_ttl_days=7, aggregate_ttl_days=365,
                        dedup_delta_s=2.0, clock=lambda: T0)


def test_bucket_keys():
    assert day_end("20240310") == datetime(2024, 3, 11, tzinfo=timezone.utc).timestamp()
    assert month_end("20240228"[:6]) == datetime(2024, 3, 1, tzinfo=timezone.utc).timestamp()


def test_add_reading_writes_both_granularities(store, tmp_path):
    assert store.add_reading(make_reading(T0, tenths=200))
    assert store.add_reading(make_reading(T0 + 60, tenths=250))

    rows = store.records("20240310")
    assert [r["temperature_tenths_c"] for r in rows] == [200, 250]
    assert (tmp_path / "records" / "20240310.json").exists()

    hours = store.hourly("202403")
    assert hours["2024031012"]["1"] == {"count": 2, "min": 200, "max": 250, "sum": 450}


def test_repeats_within_delta_are_suppressed(store):
    assert store(make_reading(T0))
    assert not store(make_reading(T0 + 0.5))
    assert not store(make_reading(T0 + 1.9))
    assert store(make_reading(T0 + 30))
    assert store.suppressed == 2
    assert len(store.records("20240310")) == 2


def test_dedup_is_per_channel(store):
    assert store(make_reading(T0, channel=1))
    assert store(make_reading(T0 + 0.1, channel=2))


def test_dedup_survives_restart(tmp_path):
    first = ReadingStore(tmp_path, clock=lambda: T0)
    assert first(make_reading(T0))
    second = ReadingStore(tmp_path, clock=lambda: T0)
    assert not second(make_reading(T0 + 1))


def test_latest(store):
    assert store.latest() is None
    store(make_reading(T0, channel=1, tenths=100))
    store(make_reading(T0 + 10, channel=2, tenths=300))
    store(make_reading(T0 + 86400, channel=1, tenths=110))

    assert store.latest()["temperature_tenths_c"] == 110
    assert store.latest(2)["temperature_tenths_c"] == 300
    assert store.latest(3) is None


def test_bad_bucket_keys(store):
    with pytest.raises(ValueError):
        store.records("2024-03-10")
    with pytest.raises(ValueError):
        store.hourly("24-03")


def test_expire_uses_independent_ttls(store, tmp_path):
    store(make_reading(T0))

    # 10 days later: fine-grained day bucket gone, monthly aggregate kept
    removed = store.expire(now=T0 + 10 * 86400)
    assert removed == ["records/20240310.json"]
    assert store.records("20240310") == []
    assert "2024031012" in store.hourly("202403")

    removed = store.expire(now=T0 + 400 * 86400)
    assert removed == ["hourly/202403.json"]


def test_new_bucket_triggers_expiry(tmp_path):
    now = [T0]
    store = ReadingStore(tmp_path, record_ttl_days=1, clock=lambda: now[0])
    store(make_reading(T0))

    now[0] = T0 + 5 * 86400
    store(make_reading(T0 + 5 * 86400))
    assert not (tmp_path / "records" / "20240310.json").exists()
    assert (tmp_path / "records" / "20240315.json").exists()


def test_corrupt_bucket_starts_fresh(store, tmp_path):
    (tmp_path / "records" / "20240310.json").write_text("{not json")
    assert store(make_reading(T0))
    rows = json.loads((tmp_path / "records" / "20240310.json").read_text())
    assert len(rows) == 1


def test_already_expired_reading_is_not_written(store, tmp_path):
    old = T0 - 30 * 86400
    assert not store(make_reading(old))
    assert store.expired_on_arrival == 1
    assert list((tmp_path / "records").iterdir()) == []
    assert list((tmp_path / "hourly").iterdir()) == []

    # an expired reading does not shadow later ones through dedup
    assert store(make_reading(T0))
    assert store.latest()["started_at"] == T0


def test_epoch_reading_is_rejected(store, tmp_path):
    assert not store(make_reading(0.0))
    assert store(make_reading(T0 + 1))
    assert len(store.records("20240310")) == 1


def test_concurrent_writers_keep_every_reading(tmp_path):
    store = ReadingStore(tmp_path, dedup_delta_s=0, clock=lambda: T0)
    errors = []

    def writer(channel):
        try:
            for i in range(50):
                store(make_reading(T0 + i, channel=channel, tenths=i))
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=writer, args=(ch,)) for ch in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(store.records("20240310")) == 200
    hour = store.hourly("202403")["2024031012"]
    assert [hour[str(ch)]["count"] for ch in range(4)] == [50, 50, 50, 50]
    assert list(tmp_path.rglob("*.tmp")) == []
