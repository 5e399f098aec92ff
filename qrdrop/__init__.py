"""
qrdrop: one-way file transfer over a stream of QR codes using LT fountain codes.
"""

from .config import CodecConfig
from .fountain import DataPacket, LTDecoder, LTEncoder

__version__ = "0.1.0"

__all__ = ["CodecConfig", "DataPacket", "LTDecoder", "LTEncoder", "__version__"]
