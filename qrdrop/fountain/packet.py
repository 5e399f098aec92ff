"""
Wire format for fountain packets.

A packet travels as one compact JSON record with three top-level fields::

    {"header": {...}, "encoding": {...}, "payload": "<base64>"}

This module only (de)serialises and checks structure. Every missing or
malformed field raises :class:`PacketFormatError` naming that field.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from .errors import PacketFormatError

HEADER_FIELDS = ("magic", "fileSize", "fileName", "totalBlocks", "blockIndex", "checksum")
ENCODING_FIELDS = ("seed", "degree", "sourceBlocks", "checksum")


def _require(obj: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in obj:
        raise PacketFormatError(f"{where}.{key}", "missing required field")
    return obj[key]


def _as_int(value: Any, name: str, *, minimum: int | None = None) -> int:
    # bool is an int subclass; a JSON true/false is never a valid number here
    if isinstance(value, bool) or not isinstance(value, int):
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        else:
            raise PacketFormatError(name, f"expected integer, got {value!r}")
    if minimum is not None and value < minimum:
        raise PacketFormatError(name, f"must be >= {minimum}, got {value}")
    return value


def _as_str(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise PacketFormatError(name, f"expected string, got {type(value).__name__}")
    return value


def _as_mapping(value: Any, name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise PacketFormatError(name, "expected an object")
    return value


@dataclass(frozen=True)
class PacketHeader:
    magic: str
    fileSize: int
    fileName: str
    totalBlocks: int
    blockIndex: int
    checksum: int
    reserved: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "magic": self.magic,
            "fileSize": self.fileSize,
            "fileName": self.fileName,
            "totalBlocks": self.totalBlocks,
            "blockIndex": self.blockIndex,
            "checksum": self.checksum,
            "reserved": self.reserved,
        }

    @classmethod
    def from_dict(cls, obj: Any) -> "PacketHeader":
        obj = _as_mapping(obj, "header")
        for key in HEADER_FIELDS:
            _require(obj, key, "header")
        reserved = obj.get("reserved", 0)
        return cls(
            magic=_as_str(obj["magic"], "header.magic"),
            fileSize=_as_int(obj["fileSize"], "header.fileSize", minimum=0),
            fileName=_as_str(obj["fileName"], "header.fileName"),
            totalBlocks=_as_int(obj["totalBlocks"], "header.totalBlocks", minimum=0),
            blockIndex=_as_int(obj["blockIndex"], "header.blockIndex", minimum=0),
            checksum=_as_int(obj["checksum"], "header.checksum"),
            reserved=_as_int(reserved, "header.reserved"),
        )


@dataclass(frozen=True)
class PacketEncoding:
    seed: int
    degree: int
    sourceBlocks: List[int] = field(default_factory=list)
    checksum: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seed": self.seed,
            "degree": self.degree,
            "sourceBlocks": list(self.sourceBlocks),
            "checksum": self.checksum,
        }

    @classmethod
    def from_dict(cls, obj: Any) -> "PacketEncoding":
        obj = _as_mapping(obj, "encoding")
        for key in ENCODING_FIELDS:
            _require(obj, key, "encoding")
        raw_blocks = obj["sourceBlocks"]
        if not isinstance(raw_blocks, list):
            raise PacketFormatError("encoding.sourceBlocks", "expected an array")
        source_blocks = [
            _as_int(value, f"encoding.sourceBlocks[{i}]", minimum=0)
            for i, value in enumerate(raw_blocks)
        ]
        return cls(
            seed=_as_int(obj["seed"], "encoding.seed"),
            degree=_as_int(obj["degree"], "encoding.degree", minimum=0),
            sourceBlocks=source_blocks,
            checksum=_as_int(obj["checksum"], "encoding.checksum"),
        )


@dataclass(frozen=True)
class DataPacket:
    header: PacketHeader
    encoding: PacketEncoding
    payload: str

    def payload_bytes(self) -> bytes:
        """Strict Base64 decode of the payload."""
        try:
            return base64.b64decode(self.payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise PacketFormatError("payload", f"invalid base64: {exc}") from exc

    def to_dict(self) -> Dict[str, Any]:
        return {
            "header": self.header.to_dict(),
            "encoding": self.encoding.to_dict(),
            "payload": self.payload,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    def __str__(self) -> str:
        return self.to_json()

    @classmethod
    def from_dict(cls, obj: Any) -> "DataPacket":
        obj = _as_mapping(obj, "packet")
        header = PacketHeader.from_dict(_require(obj, "header", "packet"))
        encoding = PacketEncoding.from_dict(_require(obj, "encoding", "packet"))
        payload = _as_str(_require(obj, "payload", "packet"), "packet.payload")
        if not payload:
            raise PacketFormatError("packet.payload", "empty payload")
        return cls(header=header, encoding=encoding, payload=payload)

    @classmethod
    def from_json(cls, text: str | bytes) -> "DataPacket":
        try:
            obj = json.loads(text)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise PacketFormatError("packet", f"not valid JSON: {exc}") from exc
        except RecursionError as exc:
            raise PacketFormatError("packet", "nested too deeply") from exc
        except TypeError as exc:
            raise PacketFormatError("packet", f"unreadable record: {exc}") from exc
        return cls.from_dict(obj)


def encode_payload(data: bytes) -> str:
    """Standard Base64 without line wraps."""
    return base64.b64encode(data).decode("ascii")


__all__ = [
    "PacketHeader",
    "PacketEncoding",
    "DataPacket",
    "encode_payload",
    "HEADER_FIELDS",
    "ENCODING_FIELDS",
]
