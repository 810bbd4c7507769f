# thermo433/core/errors.py
"""
Decoder error taxonomy.

None of these are fatal: the pipeline catches them, counts them and
keeps decoding the stream.
"""

from __future__ import annotations
from typing import Any


class DecodeError(Exception):
    pass


class MalformedLine(DecodeError):
    """
    Input line is neither an edge event nor blank.
    """

    def __init__(self, line: str):
        super().__init__(f"malformed input line: {line!r}")
        self.line = line


class FrameRejected(DecodeError):
    """
    Completed message failed validation and was discarded.
    """

    def __init__(self, reason: str, message: Any):
        super().__init__(reason)
        self.message = message


class LengthMismatch(FrameRejected):
    def __init__(self, message: Any, length: int, expected: int):
        super().__init__(f"message has {length} bits, expected {expected}", message)
        self.length = length
        self.expected = expected


class ChecksumMismatch(FrameRejected):
    def __init__(self, message: Any, expected: int, actual: int):
        super().__init__(
            f"checksum mismatch: computed 0x{expected:02x}, received 0x{actual:02x}",
            message,
        )
        self.expected = expected
        self.actual = actual
