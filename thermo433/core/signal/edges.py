# thermo433/core/signal/edges.py
"""
Edge event parsing.

One input line is one GPIO transition:

    <sequence> <seconds>.<nanoseconds> <level>

A blank line is an explicit gap and parses to None.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Optional

from thermo433.core.errors import MalformedLine

NS_PER_SECOND = 1_000_000_000

_LINE_RE = re.compile(
    r"^(?P<sequence>\d{10,19})\s+(?P<seconds>\d{1,19})\.(?P<nanoseconds>\d{9})\s+(?P<level>[01])$",
    re.ASCII,
)


@dataclass(frozen=True)
class TransitionEvent:
    sequence: int
    seconds: int
    nanoseconds: int   # 0..999_999_999
    level: int         # level after the transition, 0 or 1

    @property
    def time_s(self) -> float:
        return self.seconds + self.nanoseconds / NS_PER_SECOND

    def to_line(self) -> str:
        return f"{self.sequence} {self.seconds}.{self.nanoseconds:09d} {self.level}"


def parse_line(line: str) -> Optional[TransitionEvent]:
    """
    Parse one input line.
    Returns None for an empty (gap) line, raises MalformedLine for anything
    else that is not an edge, including whitespace-only lines.
    """
    text = line.rstrip("\r\n")
    if text == "":
        return None

    m = _LINE_RE.match(text)
    if not m:
        raise MalformedLine(line)

    return TransitionEvent(
        sequence=int(m.group("sequence")),
        seconds=int(m.group("seconds")),
        nanoseconds=int(m.group("nanoseconds")),
        level=int(m.group("level")),
    )


def time_diff(a: Optional[TransitionEvent], b: Optional[TransitionEvent]) -> Optional[int]:
    """
    Absolute nanosecond distance between two events.
    None if either is missing or they are a second or more apart.
    """
    if a is None or b is None:
        return None

    sec_diff = a.seconds - b.seconds
    if abs(sec_diff) > 1:
        return None

    total = abs(sec_diff * NS_PER_SECOND + (a.nanoseconds - b.nanoseconds))
    if total >= NS_PER_SECOND:
        return None
    return total
