from pydantic import BaseModel
from typing import Set
import os

class Settings(BaseModel):
    APP_NAME: str = "thermo433"
    HOST: str = os.getenv("THERMO_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("THERMO_PORT", "8433"))

    # Channels forwarded to sinks (sensor switch position 1-3, 0 is unused by most units)
    CHANNELS: str = os.getenv("THERMO_CHANNELS", "1")

    # Storage
    DATA_DIR: str = os.getenv("THERMO_DATA_DIR", "data/readings")
    RECORD_TTL_DAYS: int = int(os.getenv("THERMO_RECORD_TTL_DAYS", "7"))
    AGGREGATE_TTL_DAYS: int = int(os.getenv("THERMO_AGGREGATE_TTL_DAYS", "365"))
    # Sensors repeat each frame several times per transmission
    DEDUP_DELTA_S: float = float(os.getenv("THERMO_DEDUP_DELTA_S", "2.0"))

    # Upload (empty = disabled)
    UPLOAD_URL: str = os.getenv("THERMO_UPLOAD_URL", "")
    UPLOAD_TIMEOUT_S: float = float(os.getenv("THERMO_UPLOAD_TIMEOUT_S", "2.0"))

    # Edge timing
    MARGIN: float = float(os.getenv("THERMO_MARGIN", "0.20"))
    MIN_WIDTH_NS: int = int(os.getenv("THERMO_MIN_WIDTH_NS", "200"))
    MAX_BITS: int = int(os.getenv("THERMO_MAX_BITS", "8192"))

    LOG_LEVEL: str = os.getenv("THERMO_LOG_LEVEL", "WARNING").upper()

    def channel_set(self) -> Set[int]:
        out = set()
        for part in self.CHANNELS.split(","):
            part = part.strip()
            if not part:
                continue
            ch = int(part)
            if ch not in (0, 1, 2, 3):
                raise ValueError(f"Available channels are 0-3, got {ch}")
            out.add(ch)
        return out

settings = Settings()
