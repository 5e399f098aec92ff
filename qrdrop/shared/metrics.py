"""
Metrics collection helpers for fountain encoder/decoder instrumentation.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from statistics import fmean
from typing import Dict, List


@dataclass
class FountainMetrics:
    """Track statistics for fountain encoding/decoding runs."""

    degree_hist: Counter[int] = field(default_factory=Counter)
    packets_accepted: int = 0
    packets_redundant: int = 0
    rejected_symbols: Counter[str] = field(default_factory=Counter)
    solved_by: Counter[str] = field(default_factory=Counter)
    decode_durations: List[float] = field(default_factory=list)
    decode_attempts: int = 0
    decode_successes: int = 0
    decode_failures: int = 0
    symbols_used: List[int] = field(default_factory=list)

    def record_degree(self, degree: int) -> None:
        """Record the degree of an emitted packet."""
        if degree <= 0:
            return
        self.degree_hist[degree] += 1

    def record_accepted(self) -> None:
        self.packets_accepted += 1

    def record_redundant(self) -> None:
        """Record a packet that carried nothing new."""
        self.packets_redundant += 1

    def record_symbol_rejected(self, reason: str) -> None:
        """Record a packet that was dropped (e.g., checksum mismatch)."""
        self.rejected_symbols[reason] += 1

    def record_solved(self, path: str, count: int = 1) -> None:
        """Record blocks solved through ``path`` ("fast_path" or "reduction")."""
        if count > 0:
            self.solved_by[path] += count

    def record_decode(self, duration: float, success: bool, symbols_used: int) -> None:
        """Record a finished decoding session with its duration and outcome."""
        self.decode_attempts += 1
        self.decode_durations.append(duration)
        self.symbols_used.append(symbols_used)
        if success:
            self.decode_successes += 1
        else:
            self.decode_failures += 1

    def merge(self, other: "FountainMetrics") -> None:
        """Merge another metrics object into this one."""
        self.degree_hist.update(other.degree_hist)
        self.packets_accepted += other.packets_accepted
        self.packets_redundant += other.packets_redundant
        self.rejected_symbols.update(other.rejected_symbols)
        self.solved_by.update(other.solved_by)
        self.decode_durations.extend(other.decode_durations)
        self.decode_attempts += other.decode_attempts
        self.decode_successes += other.decode_successes
        self.decode_failures += other.decode_failures
        self.symbols_used.extend(other.symbols_used)

    def summary(self) -> Dict[str, object]:
        """Return aggregated metrics suitable for logging."""
        total_symbols = sum(self.degree_hist.values())
        avg_degree = (
            sum(degree * count for degree, count in self.degree_hist.items())
            / total_symbols
            if total_symbols
            else 0.0
        )
        avg_duration = fmean(self.decode_durations) if self.decode_durations else 0.0
        success_rate = (
            self.decode_successes / self.decode_attempts
            if self.decode_attempts
            else 0.0
        )
        avg_symbols_used = fmean(self.symbols_used) if self.symbols_used else 0.0

        return {
            "total_symbols": total_symbols,
            "degree_hist": dict(self.degree_hist),
            "average_degree": avg_degree,
            "packets_accepted": self.packets_accepted,
            "packets_redundant": self.packets_redundant,
            "rejected_symbols": dict(self.rejected_symbols),
            "solved_by": dict(self.solved_by),
            "decode_attempts": self.decode_attempts,
            "decode_success_rate": success_rate,
            "average_decode_duration": avg_duration,
            "average_symbols_used": avg_symbols_used,
        }


__all__ = ["FountainMetrics"]
