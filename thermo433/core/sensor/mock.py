import numpy as np
from typing import Iterator, List, Optional, Sequence

from thermo433.core.frame.decoder import encode_payload
from thermo433.core.signal.edges import NS_PER_SECOND, TransitionEvent


class MockSensor:
    """
    Synthetic 433 MHz thermometer (no hardware).
    Produces edge lines in the same format the GPIO capture tool writes.
    """

    def __init__(
        self,
        channel: int = 1,
        temperature_tenths_c: int = 215,
        device_id: int = 0x2A,
        bit_width_ns: int = 1000,
        jitter: float = 0.0,
        seed: Optional[int] = None,
        start_s: int = 1_700_000_000,
        sequence_start: int = 1_000_000_000,
    ):
        self.channel = int(channel)
        self.temperature_tenths_c = int(temperature_tenths_c)
        self.device_id = int(device_id)
        self.bit_width_ns = int(bit_width_ns)
        self.jitter = float(jitter)
        self.rng = np.random.default_rng(seed)

        self._t_ns = int(start_s) * NS_PER_SECOND
        self._seq = int(sequence_start)

    def payload(self):
        return encode_payload(self.channel, self.temperature_tenths_c, self.device_id)

    def events_for_bits(self, bits: Sequence[int]) -> List[TransitionEvent]:
        """
        One transmission: lead-in edge, 8-edge preamble, one high/low
        cycle per bit (long high = 1), then a trailing falling edge.
        """
        bw = self.bit_width_ns
        events = [self._edge(0, 1)]

        for i in range(8):
            events.append(self._edge(bw, i % 2))

        for b in bits:
            high, low = (0.7 * bw, 0.3 * bw) if b else (0.3 * bw, 0.7 * bw)
            events.append(self._edge(high, 0))
            events.append(self._edge(low, 1))

        events.append(self._edge(0.5 * bw, 0))
        return events

    def lines(self, repeats: int = 1, bits: Optional[Sequence[int]] = None) -> Iterator[str]:
        """
        Text lines for `repeats` transmissions, each closed by a blank line.
        """
        frame = self.payload() if bits is None else tuple(bits)
        for _ in range(repeats):
            for ev in self.events_for_bits(frame):
                yield ev.to_line()
            yield ""
            self._t_ns += 10_000_000  # inter-frame pause

    # --------------------------------------------------

    def _edge(self, width_ns: float, level: int) -> TransitionEvent:
        if self.jitter and width_ns:
            width_ns *= 1.0 + self.jitter * float(self.rng.standard_normal())
        self._t_ns += max(int(round(width_ns)), 0)
        self._seq += 1
        return TransitionEvent(
            sequence=self._seq,
            seconds=self._t_ns // NS_PER_SECOND,
            nanoseconds=self._t_ns % NS_PER_SECOND,
            level=level,
        )
