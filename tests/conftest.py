import os
import tempfile

# Keep the module-level app / settings away from the working tree
os.environ.setdefault("THERMO_DATA_DIR", tempfile.mkdtemp(prefix="thermo433-test-"))

import pytest

from thermo433.core.signal.edges import NS_PER_SECOND, TransitionEvent


class EdgeClock:
    """
    Builds consecutive TransitionEvents from relative widths.
    """

    def __init__(self, start_s=1_700_000_000, seq=1_000_000_000):
        self.t_ns = start_s * NS_PER_SECOND
        self.seq = seq

    def edge(self, width_ns, level):
        self.t_ns += int(round(width_ns))
        self.seq += 1
        return TransitionEvent(self.seq, self.t_ns // NS_PER_SECOND,
                               self.t_ns % NS_PER_SECOND, level)

    def preamble(self, width_ns=500):
        # lead-in edge, then 8 alternating edges starting on a falling edge
        events = [self.edge(0, 1)]
        for i in range(8):
            events.append(self.edge(width_ns, i % 2))
        return events

    def bits(self, bits, bit_width_ns=500):
        events = []
        for b in bits:
            high, low = (0.7, 0.3) if b else (0.3, 0.7)
            events.append(self.edge(high * bit_width_ns, 0))
            events.append(self.edge(low * bit_width_ns, 1))
        return events


@pytest.fixture
def clock():
    return EdgeClock()
