"""
Deterministic payload generators shared across tests, the benchmark and the
``simulate`` command.
"""

from __future__ import annotations

import random
from typing import Iterable, Mapping, Optional


def random_payload(nbytes: int, seed: Optional[int] = None) -> bytes:
    """Incompressible bytes, reproducible for a given seed."""
    rnd = random.Random(seed)
    return bytes(rnd.getrandbits(8) for _ in range(nbytes))


def _format_log_entry(entry: Mapping[str, object]) -> str:
    """Render a single log entry as pipe-delimited key=value pairs."""
    return "|".join(f"{key}={value}" for key, value in entry.items())


def transfer_log(
    entries: int = 40,
    seed: int = 0,
    additional_entries: Iterable[Mapping[str, object]] | None = None,
) -> bytes:
    """Return a synthetic sender-side transfer log as UTF-8 text."""
    rnd = random.Random(seed)
    events = ("frame_rendered", "frame_skipped", "record_oversize", "cadence_tick")
    lines = [
        _format_log_entry(
            {"log_format": "kv_lines", "source": "qrdrop_sender", "entries": entries}
        )
    ]
    for i in range(entries):
        lines.append(
            _format_log_entry(
                {
                    "seq": i,
                    "event": rnd.choice(events),
                    "degree": rnd.randint(1, 12),
                    "record_chars": rnd.randint(700, 1900),
                    "latency_ms": rnd.randint(20, 80),
                }
            )
        )
    if additional_entries:
        lines.extend(_format_log_entry(entry) for entry in additional_entries)
    return "\n".join(lines).encode("utf-8")


__all__ = ["random_payload", "transfer_log"]
