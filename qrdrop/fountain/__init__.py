"""
Fountain Code Module
Exports LTEncoder, LTDecoder, the packet model and helper functions
"""

from .decoder import DecoderState, DecodingStats, LTDecoder
from .degree import RobustSolitonDegreeStrategy, SmallBlockDegreeStrategy, make_degree_sampler
from .encoder import LTEncoder
from .errors import (
    DecoderIncompleteError,
    DescriptorMismatch,
    EncoderPreconditionError,
    FountainError,
    IntegrityError,
    PacketFormatError,
    SourceRangeError,
)
from .packet import DataPacket, PacketEncoding, PacketHeader
from .sim import burst_eraser, gilbert_elliott_eraser, reorder

__all__ = [
    "LTEncoder",
    "LTDecoder",
    "DecoderState",
    "DecodingStats",
    "DataPacket",
    "PacketHeader",
    "PacketEncoding",
    "RobustSolitonDegreeStrategy",
    "SmallBlockDegreeStrategy",
    "make_degree_sampler",
    "FountainError",
    "PacketFormatError",
    "IntegrityError",
    "SourceRangeError",
    "DescriptorMismatch",
    "EncoderPreconditionError",
    "DecoderIncompleteError",
    "burst_eraser",
    "gilbert_elliott_eraser",
    "reorder",
]
