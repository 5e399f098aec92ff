"""
Incremental LT fountain decoder.

Packets are absorbed one at a time, in any order. Each accepted packet is an
equation "XOR of these source blocks = payload". Equations with a single
unknown are solved immediately; the rest are kept as rows and reduced by
peeling (belief propagation) plus substitution of rows whose index set is a
strict subset of another row's set.

Rows are indexed by the blocks they reference, so a newly solved block only
touches the rows that contain it, and only rows inserted or shrunk since the
last pass are checked for subset relations.
"""

from __future__ import annotations

import enum
import itertools
import logging
import threading
from dataclasses import dataclass, field
from time import perf_counter
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from ..config import CodecConfig
from ..shared.metrics import FountainMetrics
from ..shared.utils import block_count, checksum32, string_similarity, xor_into
from .encoder import header_checksum
from .errors import (
    DecoderIncompleteError,
    DescriptorMismatch,
    FountainError,
    IntegrityError,
    PacketFormatError,
    SourceRangeError,
)
from .packet import DataPacket, PacketHeader

logger = logging.getLogger(__name__)


class DecoderState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    RECEIVING = "receiving"
    COMPLETE = "complete"


@dataclass(eq=False)
class DecodingRow:
    """A pending equation; both fields are rewritten as blocks get solved."""

    data: bytearray
    indices: Set[int] = field(default_factory=set)

    def same_as(self, other: "DecodingRow") -> bool:
        return self.indices == other.indices and self.data == other.data


@dataclass(frozen=True)
class DecodingStats:
    received_packets: int
    solved_blocks: int
    total_blocks: int
    progress: float
    file_name: str
    file_size: int
    is_complete: bool
    pending_rows: int


Descriptor = Tuple[str, int, int]


class LTDecoder:
    """Recover a file from fountain packets received in any order."""

    def __init__(
        self,
        config: Optional[CodecConfig] = None,
        *,
        metrics: Optional[FountainMetrics] = None,
    ):
        """
        Parameters
        ----------
        config:
            Codec parameters; ``block_size`` must match the sender's.
        metrics:
            Optional FountainMetrics collector for instrumentation.
        """
        self.config = config or CodecConfig()
        self.block_size = self.config.block_size
        self.metrics = metrics
        self._lock = threading.Lock()
        self.state = DecoderState.UNINITIALIZED
        self._reset("", 0, 0)

    # ------------------------------------------------------------------
    # lifecycle

    def _reset(self, file_name: str, file_size: int, total_blocks: int) -> None:
        self.file_name = file_name
        self.file_size = file_size
        self.total_blocks = total_blocks
        self.received_count = 0
        self._buffer = bytearray(file_size)
        self._solved: Set[int] = set()
        self._rows: Dict[int, DecodingRow] = {}
        self._rows_by_block: Dict[int, Set[int]] = {}
        self._rows_by_indices: Dict[FrozenSet[int], int] = {}
        self._row_ids = itertools.count()
        self._newly_solved: List[int] = []
        self._dirty: Set[int] = set()
        self._started = perf_counter()

    def _check_descriptor(self, file_name: str, file_size: int, total_blocks: int) -> None:
        if file_size <= 0 or total_blocks <= 0:
            raise DescriptorMismatch(
                f"unusable descriptor: size={file_size} blocks={total_blocks}"
            )
        expected = block_count(file_size, self.block_size)
        if expected != total_blocks:
            raise DescriptorMismatch(
                f"{total_blocks} blocks cannot hold {file_size} bytes at "
                f"block_size={self.block_size} (expected {expected})"
            )

    def initialize(self, file_name: str, file_size: int, total_blocks: int) -> None:
        """Start a fresh session for the given transfer descriptor."""
        with self._lock:
            self._check_descriptor(file_name, file_size, total_blocks)
            self._reset(file_name, file_size, total_blocks)
            self.state = DecoderState.RECEIVING
        logger.info(
            "Decoder initialised: file=%s size=%d source_blocks=%d",
            file_name,
            file_size,
            total_blocks,
        )

    @property
    def is_complete(self) -> bool:
        return self.state is DecoderState.COMPLETE

    @property
    def solved(self) -> FrozenSet[int]:
        return frozenset(self._solved)

    @property
    def pending_rows(self) -> int:
        return len(self._rows)

    def stats(self) -> DecodingStats:
        total = self.total_blocks
        return DecodingStats(
            received_packets=self.received_count,
            solved_blocks=len(self._solved),
            total_blocks=total,
            progress=len(self._solved) / total if total else 0.0,
            file_name=self.file_name,
            file_size=self.file_size,
            is_complete=self.is_complete,
            pending_rows=len(self._rows),
        )

    def decoded_bytes(self) -> bytes:
        """Return the reconstructed file; only valid once complete."""
        if not self.is_complete:
            raise DecoderIncompleteError(
                f"{len(self._solved)}/{self.total_blocks} blocks solved"
            )
        return bytes(self._buffer)

    # ------------------------------------------------------------------
    # packet intake

    def process_text(self, text: str | bytes) -> bool:
        """Parse one wire record and feed it; malformed records are dropped."""
        try:
            packet = DataPacket.from_json(text)
        except PacketFormatError as exc:
            logger.debug("Dropped unparsable record: %s", exc)
            if self.metrics:
                self.metrics.record_symbol_rejected(exc.reason)
            return not self.is_complete
        return self.process_packet(packet)

    def process_packet(self, packet: DataPacket) -> bool:
        """Absorb one packet. Returns True while more packets are needed."""
        with self._lock:
            if self.state is DecoderState.COMPLETE:
                logger.debug(
                    "Ignoring packet #%d, decoding already complete",
                    packet.header.blockIndex,
                )
                return False
            try:
                descriptor, adopt, payload, indices = self._validate(packet)
            except FountainError as exc:
                logger.info("Dropped packet #%d: %s", packet.header.blockIndex, exc)
                if self.metrics:
                    self.metrics.record_symbol_rejected(exc.reason)
                return True

            if adopt:
                self._reset(*descriptor)
                self.state = DecoderState.RECEIVING
                logger.info(
                    "Adopted descriptor from first packet: file=%s size=%d source_blocks=%d",
                    *descriptor,
                )

            self.received_count += 1
            if self.metrics:
                self.metrics.record_accepted()
            logger.debug(
                "Packet #%d accepted (%d so far), degree=%d blocks=%s",
                packet.header.blockIndex,
                self.received_count,
                packet.encoding.degree,
                indices,
            )
            self._absorb(payload, indices)
            self._check_complete()
            return not self.is_complete

    def _validate(
        self, packet: DataPacket
    ) -> Tuple[Descriptor, bool, bytes, List[int]]:
        """Run every per-packet check without touching decoder state."""
        header = packet.header
        self._check_magic(header.magic)
        descriptor, adopt = self._resolve_descriptor(header)
        _, _, total_blocks = descriptor

        payload = packet.payload_bytes()
        if len(payload) != self.block_size:
            raise PacketFormatError(
                "payload",
                f"decoded to {len(payload)} bytes, expected {self.block_size}",
            )
        self._check_payload_checksum(payload, packet.encoding.checksum)
        self._check_header_checksum(header)
        indices = self._filter_indices(packet.encoding.sourceBlocks, total_blocks)
        return descriptor, adopt, payload, indices

    def _check_magic(self, magic: str) -> None:
        expected = self.config.magic
        if magic == expected:
            return
        similarity = string_similarity(magic, expected)
        if similarity > self.config.magic_similarity:
            logger.warning(
                "Magic %r differs from %r (similarity %.2f), accepting",
                magic,
                expected,
                similarity,
            )
            return
        raise IntegrityError(
            f"magic {magic!r} does not match {expected!r} (similarity {similarity:.2f})",
            reason="magic_mismatch",
        )

    def _resolve_descriptor(self, header: PacketHeader) -> Tuple[Descriptor, bool]:
        incoming = (header.fileName, header.fileSize, header.totalBlocks)
        current = (self.file_name, self.file_size, self.total_blocks)
        if incoming == current and self.state is not DecoderState.UNINITIALIZED:
            return current, False
        if self.received_count == 0:
            self._check_descriptor(*incoming)
            return incoming, True
        logger.warning(
            "Descriptor drift: packet says file=%s size=%d blocks=%d, "
            "session has file=%s size=%d blocks=%d",
            *incoming,
            *current,
        )
        return current, False

    def _check_payload_checksum(self, payload: bytes, declared: int) -> None:
        actual = checksum32(payload)
        if actual == declared:
            return
        difference = abs(actual - declared)
        if difference > self.config.checksum_tolerance:
            raise IntegrityError(
                f"payload checksum {actual} differs from declared {declared}",
                reason="checksum_mismatch",
            )
        logger.warning(
            "Payload checksum off by %d (tolerance %d), accepting",
            difference,
            self.config.checksum_tolerance,
        )

    def _check_header_checksum(self, header: PacketHeader) -> None:
        expected = header_checksum(
            header.fileName, header.fileSize, header.blockIndex, header.totalBlocks
        )
        if expected != header.checksum:
            logger.warning(
                "Header checksum mismatch on packet #%d", header.blockIndex
            )

    def _filter_indices(self, source_blocks: Sequence[int], total_blocks: int) -> List[int]:
        valid = sorted({i for i in source_blocks if 0 <= i < total_blocks})
        if not valid:
            raise SourceRangeError(
                f"no source index of {list(source_blocks)} is below {total_blocks}",
                reason="range",
            )
        if len(valid) != len(source_blocks):
            logger.warning(
                "Ignoring out-of-range or repeated indices in %s", list(source_blocks)
            )
        return valid

    # ------------------------------------------------------------------
    # solving

    def _block(self, index: int) -> bytes:
        offset = index * self.block_size
        return self._buffer[offset : offset + self.block_size]

    def _substitute(self, row: DecodingRow) -> None:
        """XOR every solved block out of ``row``."""
        for index in [i for i in row.indices if i in self._solved]:
            xor_into(row.data, self._block(index))
            row.indices.discard(index)

    def _solve(self, row: DecodingRow, path: str) -> None:
        (index,) = row.indices
        offset = index * self.block_size
        length = min(self.block_size, self.file_size - offset)
        self._buffer[offset : offset + length] = row.data[:length]
        self._solved.add(index)
        self._newly_solved.append(index)
        if self.metrics:
            self.metrics.record_solved(path)
        logger.debug(
            "Solved block %d via %s (%d/%d)",
            index,
            path,
            len(self._solved),
            self.total_blocks,
        )

    def _insert(self, row: DecodingRow) -> None:
        row_id = next(self._row_ids)
        self._rows[row_id] = row
        self._rows_by_indices[frozenset(row.indices)] = row_id
        for index in row.indices:
            self._rows_by_block.setdefault(index, set()).add(row_id)
        self._dirty.add(row_id)

    def _remove(self, row_id: int) -> DecodingRow:
        row = self._rows.pop(row_id)
        del self._rows_by_indices[frozenset(row.indices)]
        for index in row.indices:
            members = self._rows_by_block.get(index)
            if members is not None:
                members.discard(row_id)
        self._dirty.discard(row_id)
        return row

    def _settle(self, row: DecodingRow, path: str = "reduction") -> bool:
        """Place a row that is not in the tables: solve it, drop it or insert it.

        Returns False when the row carried nothing new.
        """
        self._substitute(row)
        if not row.indices:
            if any(row.data):
                logger.warning("Dropping inconsistent row (nonzero residue)")
            return False
        if len(row.indices) == 1:
            self._solve(row, path)
            return True
        existing = self._rows_by_indices.get(frozenset(row.indices))
        if existing is not None:
            if not row.same_as(self._rows[existing]):
                logger.warning(
                    "Dropping row for blocks %s that contradicts a pending row",
                    sorted(row.indices),
                )
            return False
        self._insert(row)
        return True

    def _absorb(self, payload: bytes, indices: List[int]) -> None:
        row = DecodingRow(bytearray(payload), set(indices))
        if not self._settle(row, path="fast_path"):
            logger.debug("Packet adds nothing new for blocks %s, dropping", indices)
            if self.metrics:
                self.metrics.record_redundant()
            return

        solved_before = len(self._solved)
        started = perf_counter()
        self._reduce()
        newly_solved = len(self._solved) - solved_before
        if newly_solved:
            logger.debug(
                "Reduction solved %d more blocks in %.2f ms, %d rows pending",
                newly_solved,
                (perf_counter() - started) * 1000.0,
                len(self._rows),
            )

    def _reduce(self) -> None:
        """Propagate solved blocks and eliminate changed rows until nothing moves.

        Only rows that reference a newly solved block are substituted, and
        only rows inserted or shrunk since the last pass are compared against
        their subsets and supersets.
        """
        while self._newly_solved or self._dirty:
            while self._newly_solved:
                index = self._newly_solved.pop()
                for row_id in self._rows_by_block.pop(index, ()):
                    if row_id in self._rows:
                        self._settle(self._remove(row_id))
            if self._dirty:
                self._eliminate(self._dirty.pop())

    def _candidates(self, indices: Set[int]) -> Set[int]:
        """Ids of rows sharing at least one block with ``indices``."""
        found: Set[int] = set()
        for index in indices:
            found.update(self._rows_by_block.get(index, ()))
        return found

    def _supersets(self, indices: Set[int]) -> Set[int]:
        """Ids of rows whose index set contains every block in ``indices``."""
        groups = sorted(
            (self._rows_by_block.get(index, set()) for index in indices), key=len
        )
        found = set(groups[0])
        for group in groups[1:]:
            found &= group
            if not found:
                break
        return found

    def _eliminate(self, row_id: int) -> None:
        """Subtract ``row_id`` from its strict supersets, or a strict subset from it."""
        row = self._rows.get(row_id)
        if row is None:
            return
        for other_id in self._candidates(row.indices):
            if other_id != row_id and self._rows[other_id].indices < row.indices:
                subset = self._rows[other_id]
                self._remove(row_id)
                xor_into(row.data, subset.data)
                row.indices -= subset.indices
                self._settle(row)
                return
        for other_id in self._supersets(row.indices) - {row_id}:
            superset = self._rows.get(other_id)
            if superset is None or not row.indices < superset.indices:
                continue
            self._remove(other_id)
            xor_into(superset.data, row.data)
            superset.indices -= row.indices
            self._settle(superset)

    def _check_complete(self) -> None:
        if len(self._solved) != self.total_blocks:
            logger.debug(
                "Progress %d/%d, %d rows pending",
                len(self._solved),
                self.total_blocks,
                len(self._rows),
            )
            return
        self.state = DecoderState.COMPLETE
        self._rows.clear()
        self._rows_by_block.clear()
        self._rows_by_indices.clear()
        self._dirty.clear()
        duration = perf_counter() - self._started
        if self.metrics:
            self.metrics.record_decode(duration, True, self.received_count)
        logger.info(
            "Decoding complete: file=%s blocks=%d packets=%d efficiency=%.0f%%",
            self.file_name,
            self.total_blocks,
            self.received_count,
            100.0 * self.total_blocks / self.received_count,
        )


__all__ = ["LTDecoder", "DecoderState", "DecodingRow", "DecodingStats"]
