"""
Exception taxonomy for the fountain codec.

Per-packet errors (format, integrity, range) are raised by validation helpers
and recovered by the decoder, which drops the packet. Encoder preconditions
and incomplete-result requests surface to the caller.
"""

from __future__ import annotations

from typing import Optional


class FountainError(Exception):
    """Base class for every codec error.

    ``reason`` is the short label used when counting dropped packets.
    """

    reason = "error"

    def __init__(self, *args, reason: Optional[str] = None):
        super().__init__(*args)
        if reason is not None:
            self.reason = reason


class PacketFormatError(FountainError):
    """A wire record is missing a field or a field has the wrong shape."""

    reason = "format"

    def __init__(self, field: str, message: str, *, reason: Optional[str] = None):
        super().__init__(f"{field}: {message}", reason=reason)
        self.field = field


class IntegrityError(FountainError):
    """Checksum or magic tag too far from the expected value."""

    reason = "integrity"


class SourceRangeError(FountainError):
    """None of a packet's source block indices fall inside the transfer."""

    reason = "range"


class DescriptorMismatch(FountainError):
    """Transfer descriptor (name, size, block count) is unusable or drifted."""

    reason = "descriptor"


class EncoderPreconditionError(FountainError):
    """The encoder cannot produce a well-formed packet."""

    reason = "encoder"


class DecoderIncompleteError(FountainError):
    """Decoded bytes were requested before every block was solved."""

    reason = "incomplete"


__all__ = [
    "FountainError",
    "PacketFormatError",
    "IntegrityError",
    "SourceRangeError",
    "DescriptorMismatch",
    "EncoderPreconditionError",
    "DecoderIncompleteError",
]
