from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from typing import Optional
import logging

from thermo433.core.bus.models import Reading

log = logging.getLogger(__name__)


class ReadingIn(BaseModel):
    timestamp: int
    channel: int = Field(ge=0, le=3)
    temperature_tenths_c: int
    checksum_hex: str = Field(pattern=r"^[0-9a-f]{9}$")
    # receive time on the server clock when omitted
    started_at: Optional[float] = None


def bind(store):
    router = APIRouter(prefix="/api/readings", tags=["readings"])

    @router.post("")
    def ingest_reading(req: ReadingIn):
        reading = Reading(
            timestamp=req.timestamp,
            channel=req.channel,
            temperature_tenths_c=req.temperature_tenths_c,
            checksum_hex=req.checksum_hex,
            started_at=store.clock() if req.started_at is None else req.started_at,
        )
        stored = store.add_reading(reading)
        log.info("[API] Reading ts=%d ch=%d stored=%s", reading.timestamp, reading.channel, stored)
        return {"stored": stored}

    @router.get("/latest")
    def latest(channel: Optional[int] = None):
        rec = store.latest(channel)
        if rec is None:
            raise HTTPException(status_code=404, detail="no readings")
        return rec

    @router.get("/day/{day}")
    def day_records(day: str):
        try:
            return {"day": day, "readings": store.records(day)}
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @router.get("/hourly/{month}")
    def hourly(month: str):
        try:
            return {"month": month, "hours": store.hourly(month)}
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    return router
