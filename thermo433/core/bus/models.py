# thermo433/core/bus/models.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class Message:
    timestamp: int              # sequence column of the calibrating edge
    bits: Tuple[int, ...]       # decoded payload, 0/1 values
    started_at: float = 0.0     # seconds.nanoseconds of the calibrating edge

    def bit_string(self) -> str:
        return "".join(str(b) for b in self.bits)


@dataclass(frozen=True)
class Reading:
    timestamp: int
    channel: int                # 0..3
    temperature_tenths_c: int   # may be negative
    checksum_hex: str           # 9 lowercase hex chars, whole 36-bit frame
    started_at: float = 0.0

    @property
    def temperature_c(self) -> float:
        return self.temperature_tenths_c / 10

    def as_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "channel": self.channel,
            "temperature_tenths_c": self.temperature_tenths_c,
            "temperature_c": self.temperature_c,
            "checksum_hex": self.checksum_hex,
            "started_at": self.started_at,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Reading":
        return cls(
            timestamp=int(d["timestamp"]),
            channel=int(d["channel"]),
            temperature_tenths_c=int(d["temperature_tenths_c"]),
            checksum_hex=str(d["checksum_hex"]),
            started_at=float(d.get("started_at", 0.0)),
        )
