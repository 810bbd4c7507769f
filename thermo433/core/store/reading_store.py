# thermo433/core/store/reading_store.py
"""
Time-bucketed reading storage (JSON files).

Two granularities, each with its own expiry:
  records/YYYYMMDD.json   every stored reading of one UTC day
  hourly/YYYYMM.json      per-hour, per-channel min/max/sum/count

A new bucket file triggers an expiry sweep of old ones. Readings whose
day bucket is already past its TTL are not written.

Thread-safe: the API serves sync handlers from a threadpool.
"""

from __future__ import annotations
import calendar
import json
import logging
import re
import threading
import time
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from thermo433.core.bus.models import Reading

_DAY_RE = re.compile(r"^\d{8}$")
_MONTH_RE = re.compile(r"^\d{6}$")


def _utc(ts: float) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def day_key(ts: float) -> str:
    return _utc(ts).strftime("%Y%m%d")


def month_key(ts: float) -> str:
    return _utc(ts).strftime("%Y%m")


def hour_key(ts: float) -> str:
    return _utc(ts).strftime("%Y%m%d%H")


def day_end(key: str) -> float:
    start = datetime.strptime(key, "%Y%m%d").replace(tzinfo=timezone.utc)
    return (start + timedelta(days=1)).timestamp()


def month_end(key: str) -> float:
    start = datetime.strptime(key, "%Y%m").replace(tzinfo=timezone.utc)
    days = calendar.monthrange(start.year, start.month)[1]
    return (start + timedelta(days=days)).timestamp()


class ReadingStore:
    def __init__(
        self,
        root: str | Path,
        record_ttl_days: int = 7,
        aggregate_ttl_days: int = 365,
        dedup_delta_s: float = 2.0,
        clock: Callable[[], float] = time.time,
        logger: Optional[logging.Logger] = None,
    ):
        self.root = Path(root)
        self.records_dir = self.root / "records"
        self.hourly_dir = self.root / "hourly"
        self.records_dir.mkdir(parents=True, exist_ok=True)
        self.hourly_dir.mkdir(parents=True, exist_ok=True)

        self.record_ttl_s = record_ttl_days * 86400
        self.aggregate_ttl_s = aggregate_ttl_days * 86400
        self.dedup_delta_s = float(dedup_delta_s)
        self.clock = clock
        self.log = logger or logging.getLogger(__name__)

        # channel -> last stored reading
        self._last: Dict[int, Reading] = {}
        self.suppressed = 0
        self.expired_on_arrival = 0

        self._lock = threading.RLock()

    # --------------------------------------------------
    # Sink interface
    # --------------------------------------------------

    def __call__(self, reading: Reading) -> bool:
        return self.add_reading(reading)

    def add_reading(self, reading: Reading) -> bool:
        """
        Store a reading. Returns False if it was suppressed as a repeat
        or its day bucket has already expired.
        """
        with self._lock:
            day = day_key(reading.started_at)
            if day_end(day) + self.record_ttl_s < self.clock():
                self.expired_on_arrival += 1
                self.log.debug("[STORE] Dropping ts=%d: bucket records/%s.json already expired",
                               reading.timestamp, day)
                return False

            prev = self._last.get(reading.channel)
            if prev is None:
                prev = self._latest_on_disk(reading.channel)
                if prev is not None:
                    self._last[reading.channel] = prev
            if prev is not None and abs(reading.started_at - prev.started_at) < self.dedup_delta_s:
                self.suppressed += 1
                self.log.debug("[STORE] Suppressing repeat on ch=%d (%.3fs after previous)",
                               reading.channel, reading.started_at - prev.started_at)
                return False

            created = self._append_record(reading)
            created = self._update_hourly(reading) or created
            self._last[reading.channel] = reading

            if created:
                self.expire()
            return True

    # --------------------------------------------------
    # Queries
    # --------------------------------------------------

    def records(self, day: str) -> List[Dict[str, Any]]:
        if not _DAY_RE.match(day):
            raise ValueError(f"bad day key: {day}")
        return self._load(self.records_dir / f"{day}.json", [])

    def hourly(self, month: str) -> Dict[str, Any]:
        if not _MONTH_RE.match(month):
            raise ValueError(f"bad month key: {month}")
        return self._load(self.hourly_dir / f"{month}.json", {})

    def latest(self, channel: Optional[int] = None) -> Optional[Dict[str, Any]]:
        for path in sorted(self.records_dir.glob("*.json"), reverse=True):
            for rec in reversed(self._load(path, [])):
                if channel is None or rec.get("channel") == channel:
                    return rec
        return None

    # --------------------------------------------------
    # Lifecycle
    # --------------------------------------------------

    def expire(self, now: Optional[float] = None) -> List[str]:
        """
        Delete bucket files past their TTL. Returns removed file names.
        """
        now = self.clock() if now is None else now
        removed = []

        with self._lock:
            for path in self.records_dir.glob("*.json"):
                if _DAY_RE.match(path.stem) and day_end(path.stem) + self.record_ttl_s < now:
                    path.unlink()
                    removed.append(f"records/{path.name}")

            for path in self.hourly_dir.glob("*.json"):
                if _MONTH_RE.match(path.stem) and month_end(path.stem) + self.aggregate_ttl_s < now:
                    path.unlink()
                    removed.append(f"hourly/{path.name}")

        for name in removed:
            self.log.info("[STORE] Expired %s", name)
        return removed

    # --------------------------------------------------
    # Internal helpers
    # --------------------------------------------------

    def _append_record(self, reading: Reading) -> bool:
        path = self.records_dir / f"{day_key(reading.started_at)}.json"
        created = not path.exists()
        rows = self._load(path, [])
        rows.append(reading.as_dict())
        self._save(path, rows)
        if created:
            self.log.info("[STORE] Created bucket records/%s", path.name)
        return created

    def _update_hourly(self, reading: Reading) -> bool:
        path = self.hourly_dir / f"{month_key(reading.started_at)}.json"
        created = not path.exists()
        data = self._load(path, {})

        hour = data.setdefault(hour_key(reading.started_at), {})
        agg = hour.get(str(reading.channel))
        t = reading.temperature_tenths_c
        if agg is None:
            hour[str(reading.channel)] = {"count": 1, "min": t, "max": t, "sum": t}
        else:
            agg["count"] += 1
            agg["min"] = min(agg["min"], t)
            agg["max"] = max(agg["max"], t)
            agg["sum"] += t

        self._save(path, data)
        if created:
            self.log.info("[STORE] Created bucket hourly/%s", path.name)
        return created

    def _latest_on_disk(self, channel: int) -> Optional[Reading]:
        rec = self.latest(channel)
        return Reading.from_dict(rec) if rec else None

    def _load(self, path: Path, default):
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text())
        except json.JSONDecodeError:
            self.log.warning("[STORE] Corrupt bucket %s, starting fresh", path)
            return default

    def _save(self, path: Path, data) -> None:
        tmp = path.with_name(f"{path.stem}.{uuid.uuid4().hex}.tmp")
        tmp.write_text(json.dumps(data, indent=2))
        tmp.replace(path)
