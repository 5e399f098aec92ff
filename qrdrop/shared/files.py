"""
File-system helpers around the codec: loading a source file, saving the
reconstructed one, and human-readable sizes.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Tuple

from ..fountain.decoder import LTDecoder
from ..fountain.errors import EncoderPreconditionError

logger = logging.getLogger(__name__)

_UNITS = ("B", "KB", "MB", "GB", "TB")


def read_source_file(path: str | os.PathLike) -> Tuple[str, bytes]:
    """Return ``(basename, contents)``; empty files cannot be transferred."""
    path = Path(path)
    with path.open("rb") as f:
        data = f.read()
    if not data:
        raise EncoderPreconditionError(f"{path} is empty, nothing to transfer")
    logger.info("Loaded %s (%s)", path, format_file_size(len(data)))
    return path.name, data


def write_decoded_file(decoder: LTDecoder, output_dir: str | os.PathLike) -> Path:
    """Write the decoder's result into ``output_dir`` under the sender's file name.

    Only the basename of the received name is used.
    """
    data = decoder.decoded_bytes()
    name = Path(decoder.file_name).name
    if name in ("", ".", ".."):
        name = "received.bin"
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / name
    with target.open("wb") as f:
        f.write(data)
    logger.info("Saved %s (%s)", target, format_file_size(len(data)))
    return target


def format_file_size(size: int) -> str:
    """Format a byte count, e.g. ``1536 -> "1.5 KB"``."""
    if size <= 0:
        return "0 B"
    group = 0
    value = float(size)
    while value >= 1024 and group < len(_UNITS) - 1:
        value /= 1024
        group += 1
    text = f"{value:,.2f}".rstrip("0").rstrip(".")
    return f"{text} {_UNITS[group]}"


__all__ = ["read_source_file", "write_decoded_file", "format_file_size"]
