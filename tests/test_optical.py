import pytest

pytest.importorskip("cv2")
pytest.importorskip("qrcode")
pytest.importorskip("imageio")

from qrdrop import optical
from qrdrop.config import CodecConfig
from qrdrop.fountain.encoder import LTEncoder
from qrdrop.session import ReceiverSession

CONFIG = CodecConfig(block_size=32)


def records(data, count):
    encoder = LTEncoder(data, "optical.bin", CONFIG, seed=8)
    return [p.to_json() for p in encoder.packets(count)]


def test_rendered_frame_decodes_back():
    record = records(b"optical channel test", 1)[0]
    frame = optical.render_frame(record, box_size=6)
    assert frame.mode == "RGB"
    assert optical.decode_frame(frame) == record


def test_caption_adds_strip():
    record = records(b"caption", 1)[0]
    plain = optical.render_frame(record)
    captioned = optical.render_frame(record, caption="frame 1/1")
    assert captioned.height == plain.height + optical.CAPTION_HEIGHT


def test_frames_share_one_size():
    frames = optical.render_frames(["short", "a much longer record " * 20])
    assert len({f.size for f in frames}) == 1


def test_blank_image_has_no_payload():
    from PIL import Image

    assert optical.decode_frame(Image.new("RGB", (200, 200), "white")) is None


def test_gif_round_trip(tmp_path):
    data = b"frames through an animated gif" * 3
    sent = records(data, 40)
    frames = optical.render_frames(sent, box_size=6)
    path = optical.write_animation(frames, tmp_path / "transfer.gif", frame_ms=100)

    session = ReceiverSession(CONFIG)
    assert session.feed_all(optical.iter_gif_payloads(path))
    assert session.decoder.decoded_bytes() == data


def test_write_frame_images(tmp_path):
    frames = optical.render_frames(records(b"png frames", 2))
    paths = optical.write_frame_images(frames, tmp_path / "frames")
    assert len(paths) == 2
    assert paths[0].endswith("frame_00000.png")


def test_empty_animation_is_refused(tmp_path):
    with pytest.raises(ValueError):
        optical.write_animation([], tmp_path / "none.gif")
