#!/usr/bin/env python3
"""
Decode 433 MHz thermometer frames from GPIO edge captures.

Reads one edge per line (file or stdin), prints decoded readings for the
selected channels and stores / uploads them.

Usage:
    gpio-edges | thermo433 -c 1 -c 2
    thermo433 -i capture.txt --no-store
    thermo433 -i capture.txt --upload-url http://hub:8433
"""

import argparse
import logging
import sys

from thermo433.settings import settings
from thermo433.core.pipeline import ConsoleSink, DecodePipeline
from thermo433.core.signal.analyzer import SignalAnalyzer
from thermo433.core.store.reading_store import ReadingStore
from thermo433.core.integrate.uploader import HttpUploader

log = logging.getLogger("thermo433")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="thermo433", description=__doc__.split("\n\n")[0])
    p.add_argument("-i", "--input-file", help="Input file (default: stdin)")
    p.add_argument("-c", "--channel", type=int, action="append", choices=[1, 2, 3],
                   help="Channel 1, 2 or 3 (repeatable, default from THERMO_CHANNELS)")
    p.add_argument("--data-dir", default=settings.DATA_DIR, help="Reading store directory")
    p.add_argument("--no-store", action="store_true", help="Do not persist readings")
    p.add_argument("--upload-url", default=settings.UPLOAD_URL,
                   help="Collector base URL (POST /api/readings)")
    p.add_argument("--quiet", action="store_true", help="Do not print readings")
    p.add_argument("--log-level", default=settings.LOG_LEVEL,
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format='%(levelname)s: %(message)s'
    )

    channels = set(args.channel) if args.channel else settings.channel_set()

    sinks = []
    if not args.quiet:
        sinks.append(ConsoleSink())
    if not args.no_store:
        sinks.append(ReadingStore(
            args.data_dir,
            record_ttl_days=settings.RECORD_TTL_DAYS,
            aggregate_ttl_days=settings.AGGREGATE_TTL_DAYS,
            dedup_delta_s=settings.DEDUP_DELTA_S,
        ))
    uploader = None
    if args.upload_url:
        uploader = HttpUploader(args.upload_url, timeout_s=settings.UPLOAD_TIMEOUT_S)
        sinks.append(uploader)

    analyzer = SignalAnalyzer(
        margin=settings.MARGIN,
        min_width_ns=settings.MIN_WIDTH_NS,
        max_bits=settings.MAX_BITS,
    )
    pipeline = DecodePipeline(channels=channels, sinks=sinks, analyzer=analyzer)

    try:
        if args.input_file:
            with open(args.input_file, "r", encoding="utf-8", errors="replace") as f:
                stats = pipeline.run(f)
        else:
            stats = pipeline.run(sys.stdin)
    except KeyboardInterrupt:
        stats = pipeline.stats
    finally:
        if uploader is not None:
            uploader.close()

    log.info("[PIPELINE] Done: %s", ", ".join(f"{k}={v}" for k, v in stats.items()))
    return 0


if __name__ == "__main__":
    sys.exit(main())
