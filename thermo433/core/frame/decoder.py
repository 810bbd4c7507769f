# thermo433/core/frame/decoder.py
"""
36-bit temperature frame.

  bits  0-9   device id
  bits 10-11  channel
  bits 12-23  temperature, tenths of a degree C, offset by +500
  bits 24-31  checksum
  bits 32-35  trailer (not validated)

Each byte is sent low nibble first. The checksum is
(0x66 + byte0 + byte1 + byte2) mod 256 == byte3.
"""

from __future__ import annotations
import logging
from typing import Optional, Sequence, Tuple

from thermo433.core.bus.models import Message, Reading
from thermo433.core.errors import ChecksumMismatch, LengthMismatch

FRAME_BITS = 36
CHECKSUM_SEED = 0x66
TEMPERATURE_OFFSET = 500


def bits_to_int(bits: Sequence[int]) -> int:
    value = 0
    for b in bits:
        value = (value << 1) | (1 if b else 0)
    return value


def int_to_bits(value: int, width: int) -> Tuple[int, ...]:
    return tuple((value >> (width - 1 - i)) & 1 for i in range(width))


def frame_bytes(bits: Sequence[int]) -> Tuple[int, int, int, int]:
    """
    First 32 bits as four nibble-swapped bytes.
    """
    out = []
    for i in range(0, 32, 8):
        low = bits_to_int(bits[i:i + 4])
        high = bits_to_int(bits[i + 4:i + 8])
        out.append(high * 16 + low)
    return tuple(out)


def checksum(byte0: int, byte1: int, byte2: int) -> int:
    return (CHECKSUM_SEED + byte0 + byte1 + byte2) % 256


def encode_payload(channel: int, temperature_tenths_c: int,
                   device_id: int = 0, trailer: int = 0) -> Tuple[int, ...]:
    """
    Build a valid 36-bit frame. Inverse of FrameDecoder.decode.
    """
    raw_temp = temperature_tenths_c + TEMPERATURE_OFFSET
    if not 0 <= channel <= 3:
        raise ValueError(f"channel out of range: {channel}")
    if not 0 <= raw_temp < 1 << 12:
        raise ValueError(f"temperature out of range: {temperature_tenths_c}")
    if not 0 <= device_id < 1 << 10:
        raise ValueError(f"device_id out of range: {device_id}")
    if not 0 <= trailer < 1 << 4:
        raise ValueError(f"trailer out of range: {trailer}")

    head = int_to_bits(device_id, 10) + int_to_bits(channel, 2) + int_to_bits(raw_temp, 12)
    b0, b1, b2, _ = frame_bytes(head + (0,) * 8)
    crc = checksum(b0, b1, b2)
    crc_bits = int_to_bits(crc & 0x0F, 4) + int_to_bits(crc >> 4, 4)
    return head + crc_bits + int_to_bits(trailer, 4)


class FrameDecoder:
    """
    Stateless Message -> Reading conversion.
    Raises LengthMismatch / ChecksumMismatch; never returns partial results.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.log = logger or logging.getLogger(__name__)

    def decode(self, message: Message) -> Reading:
        bits = message.bits
        if len(bits) != FRAME_BITS:
            raise LengthMismatch(message, len(bits), FRAME_BITS)

        b0, b1, b2, b3 = frame_bytes(bits)
        expected = checksum(b0, b1, b2)
        if expected != b3:
            raise ChecksumMismatch(message, expected, b3)

        reading = Reading(
            timestamp=message.timestamp,
            channel=bits_to_int(bits[10:12]),
            temperature_tenths_c=bits_to_int(bits[12:24]) - TEMPERATURE_OFFSET,
            checksum_hex=f"{bits_to_int(bits):09x}",
            started_at=message.started_at,
        )
        self.log.debug("[FRAME] Decoded %s", reading)
        return reading
