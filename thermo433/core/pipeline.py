# thermo433/core/pipeline.py
"""
Line-at-a-time decode pipeline:

    raw line -> parse_line -> SignalAnalyzer -> FrameDecoder -> channel filter -> sinks

Single-threaded. Each line is processed to completion before the next.
"""

from __future__ import annotations
import logging
import sys
from typing import Callable, Dict, Iterable, List, Optional, Set, TextIO

from thermo433.core.bus.models import Reading
from thermo433.core.errors import ChecksumMismatch, LengthMismatch, MalformedLine
from thermo433.core.frame.decoder import FrameDecoder
from thermo433.core.signal.analyzer import SignalAnalyzer
from thermo433.core.signal.edges import TransitionEvent, parse_line

Sink = Callable[[Reading], object]


class ConsoleSink:
    """
    Prints one line per reading.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout

    def __call__(self, reading: Reading) -> None:
        self.stream.write(
            f"timestamp {reading.timestamp} channel {reading.channel} "
            f"temp {reading.temperature_c:.1f} hex {reading.checksum_hex}\n"
        )
        self.stream.flush()


class DecodePipeline:
    def __init__(
        self,
        channels: Iterable[int] = (1,),
        sinks: Optional[List[Sink]] = None,
        analyzer: Optional[SignalAnalyzer] = None,
        decoder: Optional[FrameDecoder] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.log = logger or logging.getLogger(__name__)
        self.channels: Set[int] = set(channels)
        self.sinks: List[Sink] = list(sinks or [])
        self.analyzer = analyzer or SignalAnalyzer(logger=self.log)
        self.decoder = decoder or FrameDecoder(logger=self.log)

        self._stats: Dict[str, int] = {
            "lines": 0,
            "events": 0,
            "gaps": 0,
            "malformed": 0,
            "messages": 0,
            "readings": 0,
            "length_mismatch": 0,
            "checksum_mismatch": 0,
            "filtered": 0,
            "sink_errors": 0,
        }

    # --------------------------------------------------
    # Public API
    # --------------------------------------------------

    @property
    def stats(self) -> Dict[str, int]:
        out = dict(self._stats)
        out["overflows"] = self.analyzer.overflows
        return out

    def feed_line(self, line: str) -> Optional[Reading]:
        """
        Process one raw input line. Returns the forwarded reading, if any.
        """
        self._stats["lines"] += 1
        try:
            event = parse_line(line)
        except MalformedLine as e:
            self._stats["malformed"] += 1
            self.log.warning("[EDGE] Invalid input line: %r", e.line)
            return None

        if event is None:
            self._stats["gaps"] += 1
        else:
            self._stats["events"] += 1

        return self._ingest(event)

    def feed_lines(self, lines: Iterable[str]) -> List[Reading]:
        out = []
        for line in lines:
            reading = self.feed_line(line)
            if reading is not None:
                out.append(reading)
        return out

    def finish(self) -> Optional[Reading]:
        """
        End of input: flush a frame still being captured.
        """
        return self._ingest(None)

    def run(self, lines: Iterable[str]) -> Dict[str, int]:
        for line in lines:
            self.feed_line(line.rstrip("\r\n"))
        self.finish()
        return self.stats

    # --------------------------------------------------
    # Internal helpers
    # --------------------------------------------------

    def _ingest(self, event: Optional[TransitionEvent]) -> Optional[Reading]:
        message = self.analyzer.ingest(event)
        if message is None:
            return None
        self._stats["messages"] += 1

        try:
            reading = self.decoder.decode(message)
        except LengthMismatch as e:
            self._stats["length_mismatch"] += 1
            self.log.warning("[FRAME] Ignoring message because length %d != %d: ts=%d bits=%s",
                             e.length, e.expected, message.timestamp, message.bit_string())
            return None
        except ChecksumMismatch as e:
            self._stats["checksum_mismatch"] += 1
            self.log.warning("[FRAME] Ignoring message, %s: ts=%d bits=%s",
                             e, message.timestamp, message.bit_string())
            return None

        if reading.channel not in self.channels:
            self._stats["filtered"] += 1
            self.log.debug("[PIPELINE] Channel %d not selected, dropping", reading.channel)
            return None

        self._stats["readings"] += 1
        self.log.info("[PIPELINE] Reading ch=%d temp=%.1fC hex=%s",
                      reading.channel, reading.temperature_c, reading.checksum_hex)
        self._dispatch(reading)
        return reading

    # --------------------------------------------------

    def _dispatch(self, reading: Reading) -> None:
        for sink in self.sinks:
            try:
                sink(reading)
            except Exception:
                self._stats["sink_errors"] += 1
                self.log.exception("[PIPELINE] Sink %r failed", sink)
