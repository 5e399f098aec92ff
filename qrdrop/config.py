"""
Codec parameters shared by the encoder, the decoder and the session layer.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass

MAGIC = "FLQR"
DEFAULT_BLOCK_SIZE = 512

# Robust soliton parameters
DEFAULT_SOLITON_C = 0.03
DEFAULT_SOLITON_DELTA = 0.5
DEFAULT_SMALL_K_THRESHOLD = 10

DEFAULT_CHECKSUM_TOLERANCE = 1_000_000
DEFAULT_MAGIC_SIMILARITY = 0.5

# Longest record a single QR frame is expected to carry comfortably
MAX_RECORD_LENGTH = 2000


@dataclass(frozen=True)
class CodecConfig:
    """Tunable parameters; both ends of a transfer must agree on block_size."""

    block_size: int = DEFAULT_BLOCK_SIZE
    magic: str = MAGIC
    soliton_c: float = DEFAULT_SOLITON_C
    soliton_delta: float = DEFAULT_SOLITON_DELTA
    small_k_threshold: int = DEFAULT_SMALL_K_THRESHOLD
    checksum_tolerance: int = DEFAULT_CHECKSUM_TOLERANCE
    magic_similarity: float = DEFAULT_MAGIC_SIMILARITY
    max_record_length: int = MAX_RECORD_LENGTH

    def __post_init__(self) -> None:
        if self.block_size <= 0:
            raise ValueError(f"block_size must be positive, got {self.block_size}")
        if len(self.magic) != 4:
            raise ValueError(f"magic must be 4 characters, got {self.magic!r}")
        if not 0.0 < self.soliton_c < 1.0:
            raise ValueError(f"soliton_c must be in (0, 1), got {self.soliton_c}")
        if not 0.0 < self.soliton_delta < 1.0:
            raise ValueError(
                f"soliton_delta must be in (0, 1), got {self.soliton_delta}"
            )
        if self.small_k_threshold < 2:
            raise ValueError("small_k_threshold must be at least 2")
        if self.checksum_tolerance < 0:
            raise ValueError("checksum_tolerance cannot be negative")
        if not 0.0 <= self.magic_similarity <= 1.0:
            raise ValueError("magic_similarity must be in [0, 1]")
        if self.max_record_length <= 0:
            raise ValueError("max_record_length must be positive")

    def replace(self, **overrides) -> "CodecConfig":
        """Return a copy with ``overrides`` applied (and validated)."""
        return dataclasses.replace(self, **overrides)


__all__ = [
    "CodecConfig",
    "MAGIC",
    "DEFAULT_BLOCK_SIZE",
    "DEFAULT_SOLITON_C",
    "DEFAULT_SOLITON_DELTA",
    "DEFAULT_SMALL_K_THRESHOLD",
    "DEFAULT_CHECKSUM_TOLERANCE",
    "DEFAULT_MAGIC_SIMILARITY",
    "MAX_RECORD_LENGTH",
]
