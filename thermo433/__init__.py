# thermo433/__init__.py
from .core.bus.models import Message, Reading
from .core.signal.edges import TransitionEvent, parse_line
from .core.signal.analyzer import SignalAnalyzer
from .core.frame.decoder import FrameDecoder, encode_payload
from .core.pipeline import DecodePipeline

__version__ = "1.0.0"

__all__ = [
    "Message",
    "Reading",
    "TransitionEvent",
    "parse_line",
    "SignalAnalyzer",
    "FrameDecoder",
    "encode_payload",
    "DecodePipeline",
]
