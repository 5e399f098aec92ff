import pytest

from qrdrop.config import CodecConfig
from qrdrop.fountain.decoder import LTDecoder
from qrdrop.fountain.encoder import LTEncoder
from qrdrop.fountain.errors import DecoderIncompleteError, EncoderPreconditionError
from qrdrop.shared.files import format_file_size, read_source_file, write_decoded_file
from qrdrop.shared.samples import random_payload, transfer_log


def decode_all(data, name, config):
    encoder = LTEncoder(data, name, config, seed=3)
    decoder = LTDecoder(config)
    for packet in encoder.packets(encoder.k * 40):
        if not decoder.process_packet(packet):
            break
    return decoder


def test_round_trip_through_disk(tmp_path):
    src = tmp_path / "transfer.log"
    src.write_bytes(transfer_log(entries=30))
    name, data = read_source_file(src)
    assert name == "transfer.log"

    decoder = decode_all(data, name, CodecConfig(block_size=128))
    target = write_decoded_file(decoder, tmp_path / "out")

    assert target == tmp_path / "out" / "transfer.log"
    assert target.read_bytes() == src.read_bytes()


def test_received_name_cannot_escape_output_dir(tmp_path):
    decoder = decode_all(b"secret", "../../etc/passwd", CodecConfig(block_size=4))
    target = write_decoded_file(decoder, tmp_path)
    assert target == tmp_path / "passwd"


def test_write_requires_complete_decoder(tmp_path):
    with pytest.raises(DecoderIncompleteError):
        write_decoded_file(LTDecoder(), tmp_path)


def test_empty_source_file_is_refused(tmp_path):
    src = tmp_path / "empty"
    src.write_bytes(b"")
    with pytest.raises(EncoderPreconditionError):
        read_source_file(src)


@pytest.mark.parametrize(
    "size, text",
    [(0, "0 B"), (512, "512 B"), (1024, "1 KB"), (1536, "1.5 KB"), (5 * 1024**3, "5 GB")],
)
def test_format_file_size(size, text):
    assert format_file_size(size) == text


def test_samples_are_deterministic():
    assert random_payload(64, seed=1) == random_payload(64, seed=1)
    assert len(random_payload(64)) == 64
    log = transfer_log(entries=5, additional_entries=[{"event": "done"}])
    lines = log.decode("utf-8").splitlines()
    assert len(lines) == 7
    assert lines[-1] == "event=done"


@pytest.mark.parametrize("received_name", ["..", ".", "", "dir/.."])
def test_unusable_received_name_falls_back(tmp_path, received_name):
    decoder = decode_all(b"fallback", received_name, CodecConfig(block_size=4))
    target = write_decoded_file(decoder, tmp_path / "out")
    assert target == tmp_path / "out" / "received.bin"
    assert target.read_bytes() == b"fallback"
