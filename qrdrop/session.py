"""
Sender and receiver sessions: the layer between the codec and whatever
renders or captures frames.

The sender turns the encoder's packet stream into wire records at whatever
cadence the caller pulls them. The receiver suppresses immediately repeated
payloads (a camera sees the same code many frames in a row) and forwards
novel ones to the decoder.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, Optional

from .config import CodecConfig
from .fountain.decoder import DecoderState, LTDecoder
from .fountain.encoder import LTEncoder
from .shared.metrics import FountainMetrics

logger = logging.getLogger(__name__)


class SenderSession:
    """Pull wire records from an encoder and keep transmit statistics."""

    def __init__(self, encoder: LTEncoder):
        self.encoder = encoder
        self.max_record_length = encoder.config.max_record_length
        self.sent = 0
        self.oversize = 0
        self._started: Optional[float] = None
        self._last_length = 0

    def next_record(self) -> str:
        if self._started is None:
            self._started = time.monotonic()
        packet = self.encoder.generate_packet()
        record = packet.to_json()
        self.sent += 1
        if len(record) > self.max_record_length:
            self.oversize += 1
            logger.warning(
                "Record #%d is %d characters, above the %d a frame carries comfortably",
                packet.header.blockIndex,
                len(record),
                self.max_record_length,
            )
        if self.sent % 10 == 0 or len(record) != self._last_length:
            logger.debug(
                "Record #%d, %d characters", packet.header.blockIndex, len(record)
            )
            self._last_length = len(record)
        return record

    def records(self, count: Optional[int] = None) -> Iterator[str]:
        produced = 0
        while count is None or produced < count:
            yield self.next_record()
            produced += 1

    def stats(self) -> Dict[str, float]:
        elapsed = time.monotonic() - self._started if self._started else 0.0
        return {
            "sent_packets": self.sent,
            "oversize_records": self.oversize,
            "elapsed_seconds": elapsed,
            "packets_per_second": self.sent / elapsed if elapsed > 0 else 0.0,
        }


@dataclass
class PayloadDeduplicator:
    """Drop a payload when it equals the one forwarded just before it."""

    last: Optional[str] = None
    suppressed: int = 0

    def is_novel(self, payload: str) -> bool:
        if payload == self.last:
            self.suppressed += 1
            return False
        self.last = payload
        return True


@dataclass
class ReceiverSession:
    config: CodecConfig = field(default_factory=CodecConfig)
    metrics: FountainMetrics = field(default_factory=FountainMetrics)
    decoder: LTDecoder = field(init=False)
    dedup: PayloadDeduplicator = field(default_factory=PayloadDeduplicator)
    frames_seen: int = 0
    _started: Optional[float] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.decoder = LTDecoder(self.config, metrics=self.metrics)

    def feed(self, payload: str) -> bool:
        """Forward one captured payload; returns True while more are needed."""
        self.frames_seen += 1
        if not self.dedup.is_novel(payload):
            return not self.decoder.is_complete
        if self._started is None:
            self._started = time.monotonic()
        return self.decoder.process_text(payload)

    def feed_all(self, payloads: Iterable[str]) -> bool:
        """Feed payloads until the decoder completes; True if it did."""
        for payload in payloads:
            if not self.feed(payload):
                break
        return self.decoder.is_complete

    @property
    def state(self) -> str:
        if self.decoder.state is DecoderState.UNINITIALIZED:
            return "idle"
        if self.decoder.state is DecoderState.COMPLETE:
            return "completed"
        return "receiving"

    def status(self) -> Dict[str, object]:
        stats = self.decoder.stats()
        elapsed = time.monotonic() - self._started if self._started else 0.0
        rate = stats.received_packets / elapsed if elapsed > 0 else 0.0
        return {
            "state": self.state,
            "file_name": stats.file_name,
            "file_size": stats.file_size,
            "received_packets": stats.received_packets,
            "solved_blocks": stats.solved_blocks,
            "total_blocks": stats.total_blocks,
            "progress": stats.progress,
            "pending_rows": stats.pending_rows,
            "frames_seen": self.frames_seen,
            "duplicates_suppressed": self.dedup.suppressed,
            "elapsed_seconds": elapsed,
            "packets_per_second": rate,
            "metrics": self.metrics.summary(),
        }


__all__ = ["SenderSession", "ReceiverSession", "PayloadDeduplicator"]
