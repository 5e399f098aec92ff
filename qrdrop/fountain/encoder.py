"""
LT-style fountain encoder producing an unbounded stream of framed packets.
"""

from __future__ import annotations

import logging
import os
import random
import threading
import time
from typing import Iterator, List, Optional

from ..config import CodecConfig
from ..shared.metrics import FountainMetrics
from ..shared.utils import checksum32, split_blocks, xor_into
from .degree import DegreeSampler, make_degree_sampler
from .errors import EncoderPreconditionError
from .packet import DataPacket, PacketEncoding, PacketHeader, encode_payload

logger = logging.getLogger(__name__)


def header_checksum(
    file_name: str, file_size: int, block_index: int, total_blocks: int
) -> int:
    """Checksum binding the header fields of one packet together."""
    text = f"{file_name}{file_size}{block_index}{total_blocks}"
    return checksum32(text.encode("utf-8"))


class LTEncoder:
    def __init__(
        self,
        data: bytes,
        file_name: str,
        config: Optional[CodecConfig] = None,
        *,
        seed: Optional[int] = None,
        sampler: Optional[DegreeSampler] = None,
        metrics: Optional[FountainMetrics] = None,
    ):
        self.config = config or CodecConfig()
        self.block_size = self.config.block_size
        self.file_name = file_name
        self.orig_len = len(data)
        self.blocks = split_blocks(data, self.block_size)
        self.k = len(self.blocks)
        if self.k == 0:
            raise EncoderPreconditionError("cannot encode an empty file")
        self.sampler = sampler or make_degree_sampler(self.k, self.config)
        self.metrics = metrics

        # Instance-owned counters; never shared between encoders
        self._lock = threading.Lock()
        self._next_seed = seed if seed is not None else time.time_ns() // 1_000_000
        self._next_block_index = 0

        logger.info(
            "Encoder ready: file=%s size=%d block_size=%d source_blocks=%d",
            file_name,
            self.orig_len,
            self.block_size,
            self.k,
        )

    @classmethod
    def from_file(cls, path: str | os.PathLike, config: Optional[CodecConfig] = None, **kwargs) -> "LTEncoder":
        """Load ``path`` and build an encoder named after its basename."""
        with open(path, "rb") as f:
            data = f.read()
        return cls(data, os.path.basename(os.fspath(path)), config, **kwargs)

    @property
    def packets_generated(self) -> int:
        return self._next_block_index

    def _claim_counters(self) -> tuple[int, int]:
        with self._lock:
            seed = self._next_seed
            block_index = self._next_block_index
            self._next_seed += 1
            self._next_block_index += 1
        return seed, block_index

    def choose_source_blocks(self, rng: random.Random) -> tuple[int, List[int]]:
        """Draw a degree and the sorted source indices it combines."""
        degree = self.sampler.sample(rng)
        indices = list(range(self.k))
        rng.shuffle(indices)
        chosen = sorted(indices[: min(degree, self.k)])
        return degree, chosen

    def combine(self, source_blocks: List[int]) -> bytes:
        """XOR the selected source blocks into one block-sized payload."""
        if not source_blocks:
            raise EncoderPreconditionError("source block list cannot be empty")
        payload = bytearray(self.block_size)
        for idx in source_blocks:
            xor_into(payload, self.blocks[idx])
        return bytes(payload)

    def generate_packet(self) -> DataPacket:
        """Build the next packet of the stream."""
        seed, block_index = self._claim_counters()
        rng = random.Random(seed)
        degree, source_blocks = self.choose_source_blocks(rng)
        if degree <= 0 or not source_blocks:
            raise EncoderPreconditionError(
                f"degree sampler returned {degree} for k={self.k}"
            )
        payload = self.combine(source_blocks)

        header = PacketHeader(
            magic=self.config.magic,
            fileSize=self.orig_len,
            fileName=self.file_name,
            totalBlocks=self.k,
            blockIndex=block_index,
            checksum=header_checksum(self.file_name, self.orig_len, block_index, self.k),
        )
        encoding = PacketEncoding(
            seed=seed,
            degree=degree,
            sourceBlocks=source_blocks,
            checksum=checksum32(payload),
        )
        if self.metrics:
            self.metrics.record_degree(len(source_blocks))
        logger.debug(
            "Generated packet #%d seed=%d degree=%d blocks=%s",
            block_index,
            seed,
            degree,
            source_blocks,
        )
        return DataPacket(header, encoding, encode_payload(payload))

    def packets(self, count: Optional[int] = None) -> Iterator[DataPacket]:
        """Lazily yield packets; ``count=None`` never stops on its own."""
        produced = 0
        while count is None or produced < count:
            yield self.generate_packet()
            produced += 1

    def encode(self, n: int) -> list[DataPacket]:
        return list(self.packets(n))


__all__ = ["LTEncoder", "header_checksum"]
