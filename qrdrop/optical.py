"""
Optical channel: wire records as QR frames and back.

Rendering uses ``qrcode`` and Pillow, animations are written with
``imageio``, and capture goes through OpenCV's ``QRCodeDetector``.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable, Iterator, List, Optional, Sequence

import cv2
import imageio.v3 as iio
import numpy as np
import qrcode
from PIL import Image, ImageDraw, ImageFont

logger = logging.getLogger(__name__)

CAPTION_HEIGHT = 30
DEFAULT_FRAME_MS = 250


def render_frame(
    record: str,
    caption: Optional[str] = None,
    box_size: int = 4,
    border: int = 4,
) -> Image.Image:
    """Render one wire record as an RGB QR image, with an optional caption strip."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=box_size,
        border=border,
    )
    qr.add_data(record)
    qr.make(fit=True)

    qr_img = qr.make_image(fill_color="black", back_color="white")
    if not isinstance(qr_img, Image.Image):
        qr_img = qr_img.get_image()
    if qr_img.mode != "RGB":
        qr_img = qr_img.convert("RGB")
    if not caption:
        return qr_img

    canvas = Image.new("RGB", (qr_img.width, qr_img.height + CAPTION_HEIGHT), "white")
    canvas.paste(qr_img, (0, 0))
    draw = ImageDraw.Draw(canvas)
    draw.text((10, qr_img.height + 8), caption, fill="black", font=ImageFont.load_default())
    return canvas


def render_frames(records: Iterable[str], box_size: int = 4) -> List[Image.Image]:
    """Render records into equally sized frames, captioned with their position."""
    records = list(records)
    frames = [
        render_frame(rec, caption=f"frame {i + 1}/{len(records)}", box_size=box_size)
        for i, rec in enumerate(records)
    ]
    if not frames:
        return frames
    # QR versions vary with record length; an animation needs one frame size
    width = max(f.width for f in frames)
    height = max(f.height for f in frames)
    padded = []
    for frame in frames:
        if frame.size == (width, height):
            padded.append(frame)
            continue
        canvas = Image.new("RGB", (width, height), "white")
        canvas.paste(frame, ((width - frame.width) // 2, (height - frame.height) // 2))
        padded.append(canvas)
    return padded


def write_animation(
    frames: Sequence[Image.Image],
    output_path: str | os.PathLike,
    frame_ms: int = DEFAULT_FRAME_MS,
) -> str:
    """Write frames to a looping GIF and return the path."""
    if not frames:
        raise ValueError("no frames to write")
    frame_arrays = [np.array(frame) for frame in frames]
    iio.imwrite(output_path, frame_arrays, duration=frame_ms, loop=0)
    logger.info("Wrote %d frames to %s", len(frame_arrays), output_path)
    return str(output_path)


def write_frame_images(
    frames: Sequence[Image.Image], output_dir: str | os.PathLike, prefix: str = "frame"
) -> List[str]:
    """Save frames as numbered PNG files."""
    os.makedirs(output_dir, exist_ok=True)
    paths = []
    for i, frame in enumerate(frames):
        path = os.path.join(output_dir, f"{prefix}_{i:05d}.png")
        frame.save(path)
        paths.append(path)
    return paths


class FrameScanner:
    """Pull QR payload text out of image arrays."""

    def __init__(self):
        self.detector = cv2.QRCodeDetector()
        self.frames_scanned = 0
        self.frames_decoded = 0

    def scan(self, frame: np.ndarray) -> Optional[str]:
        self.frames_scanned += 1
        if frame.ndim == 3 and frame.shape[2] == 4:
            frame = frame[:, :, :3]
        data, _, _ = self.detector.detectAndDecode(np.ascontiguousarray(frame))
        if not data:
            return None
        self.frames_decoded += 1
        return data


def decode_frame(frame: np.ndarray | Image.Image) -> Optional[str]:
    """Decode a single image; returns None when no readable code is found."""
    if isinstance(frame, Image.Image):
        frame = np.array(frame.convert("RGB"))
    return FrameScanner().scan(frame)


def iter_image_payloads(frames: Iterable[np.ndarray]) -> Iterator[str]:
    scanner = FrameScanner()
    for frame in frames:
        data = scanner.scan(frame)
        if data:
            yield data
    logger.info(
        "Scanned %d frames, %d carried a readable code",
        scanner.frames_scanned,
        scanner.frames_decoded,
    )


def iter_gif_payloads(path: str | os.PathLike) -> Iterator[str]:
    """Yield the payload of every readable frame in an animation file."""
    return iter_image_payloads(iio.imiter(path))


def open_camera(device: Optional[int] = None, candidates: Sequence[int] = (0, 1, 2)):
    """Open the given camera index, or probe the candidates for one that reads."""
    indices = [device] if device is not None else list(candidates)
    for idx in indices:
        cap = cv2.VideoCapture(idx)
        if cap.isOpened():
            ok, _ = cap.read()
            if ok:
                logger.info("Using camera %d", idx)
                return cap
        cap.release()
    raise OSError(f"could not open a camera (tried {indices})")


def iter_camera_payloads(
    device: Optional[int] = None, max_frames: Optional[int] = None
) -> Iterator[str]:
    """Yield decoded payloads from live camera frames until the caller stops."""
    cap = open_camera(device)
    scanner = FrameScanner()
    try:
        while max_frames is None or scanner.frames_scanned < max_frames:
            ok, frame = cap.read()
            if not ok:
                logger.warning("Camera stopped delivering frames")
                break
            data = scanner.scan(frame)
            if data:
                yield data
    finally:
        cap.release()


__all__ = [
    "render_frame",
    "render_frames",
    "write_animation",
    "write_frame_images",
    "FrameScanner",
    "decode_frame",
    "iter_gif_payloads",
    "iter_image_payloads",
    "open_camera",
    "iter_camera_payloads",
]
