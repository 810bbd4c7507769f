# thermo433/core/signal/analyzer.py
"""
Edge-timing state machine.

Turns a stream of GPIO transitions into raw bit messages:

  Idle       no previous edge yet (or right after a gap)
  Searching  collecting the 8-edge alternating preamble; its average
             half-period width becomes the bit clock
  Capturing  one bit per rising edge, from the high/low split of the
             preceding cycle

Any gap, an off-clock cycle or an overfull buffer drops back to
Searching. A message is emitted when capture ends on a gap or on an
off-clock cycle.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from thermo433.core.bus.models import Message
from thermo433.core.signal.edges import TransitionEvent, time_diff

PREAMBLE_EDGES = 8
MAX_BITS = 8192
MIN_WIDTH_NS = 200
MARGIN = 0.20


class Phase(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    CAPTURING = "capturing"


@dataclass
class AnalyzerState:
    phase: Phase = Phase.IDLE
    preamble_count: int = 0
    preamble_width_acc: int = 0
    last_event: Optional[TransitionEvent] = None
    last_width: Optional[int] = None
    bit_width: Optional[float] = None
    message_start: Optional[TransitionEvent] = None
    bits: List[int] = field(default_factory=list)


def within_margin(x: Optional[float], y: Optional[float],
                  margin: float = MARGIN, min_width_ns: int = MIN_WIDTH_NS) -> bool:
    """
    True if y is within `margin` of x (relative to x).
    Anything shorter than min_width_ns is too short to measure and never matches.
    """
    if x is None or y is None:
        return False
    if x < min_width_ns or y < min_width_ns:
        return False
    return abs(x - y) / x < margin


class SignalAnalyzer:
    """
    Stateful single-pass decoder. One instance per input stream.
    """

    def __init__(
        self,
        on_message: Optional[Callable[[Message], None]] = None,
        margin: float = MARGIN,
        min_width_ns: int = MIN_WIDTH_NS,
        max_bits: int = MAX_BITS,
        preamble_edges: int = PREAMBLE_EDGES,
        logger: Optional[logging.Logger] = None,
    ):
        self.on_message = on_message
        self.margin = float(margin)
        self.min_width_ns = int(min_width_ns)
        self.max_bits = int(max_bits)
        self.preamble_edges = int(preamble_edges)
        self.log = logger or logging.getLogger(__name__)

        self._capturing = False
        self._preamble_count = 0
        self._preamble_width_acc = 0
        self._last_event: Optional[TransitionEvent] = None
        self._last_width: Optional[int] = None
        self._bit_width: Optional[float] = None
        self._message_start: Optional[TransitionEvent] = None
        self._bits: List[int] = []

        # Counters
        self.messages = 0
        self.overflows = 0

    # --------------------------------------------------
    # Public API
    # --------------------------------------------------

    @property
    def state(self) -> AnalyzerState:
        """
        Snapshot of the internal state (copy, safe to inspect).
        """
        if self._capturing:
            phase = Phase.CAPTURING
        elif self._last_event is None:
            phase = Phase.IDLE
        else:
            phase = Phase.SEARCHING

        return AnalyzerState(
            phase=phase,
            preamble_count=self._preamble_count,
            preamble_width_acc=self._preamble_width_acc,
            last_event=self._last_event,
            last_width=self._last_width,
            bit_width=self._bit_width,
            message_start=self._message_start,
            bits=list(self._bits),
        )

    def ingest(self, event: Optional[TransitionEvent]) -> Optional[Message]:
        """
        Feed one transition (None = gap).
        Returns the completed message, if this event finished one.
        """
        msg = None

        if self._last_event is not None:
            width = time_diff(event, self._last_event)

            if not self._capturing:
                self._search(event, width)
            elif width is None or event.level == 1:
                # lastWidth is the high level, width the low level
                msg = self._decide_bit(width)

            self._last_width = width

        self._last_event = event

        if msg is not None:
            self.messages += 1
            if self.on_message is not None:
                self.on_message(msg)
        return msg

    def within_margin(self, x: Optional[float], y: Optional[float]) -> bool:
        return within_margin(x, y, self.margin, self.min_width_ns)

    def reset(self) -> None:
        self._capturing = False
        self._preamble_count = 0
        self._preamble_width_acc = 0
        self._last_event = None
        self._last_width = None
        self._bit_width = None
        self._message_start = None
        self._bits.clear()

    # --------------------------------------------------
    # Internal helpers
    # --------------------------------------------------

    def _search(self, event: Optional[TransitionEvent], width: Optional[int]) -> None:
        if width is None:
            self.reset()
            return

        # Preamble alternates 0,1,0,1... starting on a falling edge.
        # A non-matching edge is skipped without losing progress.
        if event.level != self._preamble_count % 2:
            return
        if self._preamble_count > 0 and not self.within_margin(width, self._last_width):
            return

        self._preamble_count += 1
        self._preamble_width_acc += width

        if self._preamble_count == self.preamble_edges:
            self._bit_width = self._preamble_width_acc / self.preamble_edges
            self._capturing = True
            self._message_start = event
            self._bits.clear()
            self.log.debug("[ANALYZER] Calibrated bit width %.1f ns at seq %d",
                           self._bit_width, event.sequence)

    def _decide_bit(self, width: Optional[int]) -> Optional[Message]:
        if (
            width is not None
            and self._last_width is not None
            and self.within_margin(self._bit_width, self._last_width + width)
        ):
            if len(self._bits) >= self.max_bits:
                self.overflows += 1
                self.log.warning("[ANALYZER] Bit buffer exceeded %d bits, resynchronizing",
                                 self.max_bits)
                self.reset()
                return None
            self._bits.append(1 if self._last_width > width else 0)
            return None

        # Gap or off-clock cycle: end of message
        start = self._message_start
        msg = Message(
            timestamp=start.sequence,
            bits=tuple(self._bits),
            started_at=start.time_s,
        )
        self.log.debug("[ANALYZER] Message complete: %d bits", len(msg.bits))
        self.reset()
        return msg
