from __future__ import annotations

import httpx
import logging
from typing import Optional

from thermo433.core.bus.models import Reading


class HttpUploader:
    """
    Forwards readings to a collector's POST /api/readings (best effort).
    A failed upload is logged and counted, never raised into the decoder.
    """

    def __init__(self, base_url: str, timeout_s: float = 2.0,
                 client: Optional[httpx.Client] = None,
                 logger: Optional[logging.Logger] = None):
        self.url = base_url.rstrip("/") + "/api/readings"
        self.client = client or httpx.Client(timeout=timeout_s)
        self.log = logger or logging.getLogger(__name__)
        self.sent = 0
        self.failures = 0

    def __call__(self, reading: Reading) -> bool:
        return self.upload(reading)

    def upload(self, reading: Reading) -> bool:
        try:
            resp = self.client.post(self.url, json=reading.as_dict())
            resp.raise_for_status()
        except httpx.HTTPError as e:
            self.failures += 1
            self.log.warning("[UPLOAD] Failed to upload reading ts=%d: %s", reading.timestamp, e)
            return False

        self.sent += 1
        self.log.debug("[UPLOAD] Uploaded ts=%d -> %s", reading.timestamp, resp.status_code)
        return True

    def close(self) -> None:
        self.client.close()
