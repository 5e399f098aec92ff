"""
Utility functions for splitting data into blocks and combining them back.
"""

from __future__ import annotations

import hashlib

import Levenshtein


def split_blocks(data: bytes, block_size: int) -> list[bytes]:
    """Split data into fixed-size blocks, padding the last block with zeros.

    An empty buffer yields no blocks at all.
    """
    if block_size <= 0:
        raise ValueError(f"block_size must be positive, got {block_size}")
    blocks = [data[i : i + block_size] for i in range(0, len(data), block_size)]
    if blocks and len(blocks[-1]) < block_size:
        blocks[-1] = blocks[-1] + b"\x00" * (block_size - len(blocks[-1]))
    return blocks


def combine_blocks(blocks: list[bytes], orig_len: int) -> bytes:
    """Combine blocks and truncate to original length."""
    data = b"".join(blocks)
    return data[:orig_len]


def block_count(length: int, block_size: int) -> int:
    """Number of blocks needed to hold ``length`` bytes."""
    return (length + block_size - 1) // block_size


def xor_into(target: bytearray, source: bytes) -> None:
    """XOR ``source`` into ``target`` in place.

    Only the overlapping range is touched; bytes past the end of ``source``
    behave as zeros.
    """
    n = min(len(target), len(source))
    if n == 0:
        return
    mixed = int.from_bytes(target[:n], "big") ^ int.from_bytes(source[:n], "big")
    target[:n] = mixed.to_bytes(n, "big")


def checksum32(data: bytes) -> int:
    """First four bytes of the MD5 digest as a signed big-endian int32."""
    digest = hashlib.md5(data).digest()
    return int.from_bytes(digest[:4], "big", signed=True)


def levenshtein(s1: str, s2: str) -> int:
    """Edit distance between two strings."""
    return Levenshtein.distance(s1, s2)


def string_similarity(s1: str, s2: str) -> float:
    """Similarity in ``[0, 1]`` derived from the Levenshtein distance."""
    longest = max(len(s1), len(s2))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein(s1, s2) / longest
