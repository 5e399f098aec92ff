import logging

from qrdrop.config import CodecConfig
from qrdrop.fountain.encoder import LTEncoder
from qrdrop.session import PayloadDeduplicator, ReceiverSession, SenderSession

CONFIG = CodecConfig(block_size=16)


def test_deduplicator_only_drops_back_to_back_repeats():
    dedup = PayloadDeduplicator()
    assert dedup.is_novel("a")
    assert not dedup.is_novel("a")
    assert dedup.is_novel("b")
    assert dedup.is_novel("a")
    assert dedup.suppressed == 1


def test_sender_counts_records():
    sender = SenderSession(LTEncoder(b"x" * 100, "s.bin", CONFIG, seed=0))
    records = list(sender.records(5))
    assert len(records) == 5
    stats = sender.stats()
    assert stats["sent_packets"] == 5
    assert stats["oversize_records"] == 0


def test_sender_warns_on_oversize_records(caplog):
    config = CONFIG.replace(max_record_length=50)
    sender = SenderSession(LTEncoder(b"x" * 100, "s.bin", config, seed=0))
    with caplog.at_level(logging.WARNING, logger="qrdrop.session"):
        sender.next_record()
    assert sender.oversize == 1
    assert "characters" in caplog.text


def test_receiver_states_and_status():
    data = bytes(range(256))
    encoder = LTEncoder(data, "status.bin", CONFIG, seed=4)
    session = ReceiverSession(CONFIG)
    assert session.state == "idle"

    records = [p.to_json() for p in encoder.packets(encoder.k * 30)]
    session.feed(records[0])
    session.feed(records[0])
    assert session.state == "receiving"

    assert session.feed_all(records[1:])
    status = session.status()
    assert status["state"] == "completed"
    assert status["file_name"] == "status.bin"
    assert status["solved_blocks"] == status["total_blocks"] == 16
    assert status["progress"] == 1.0
    assert status["duplicates_suppressed"] == 1
    assert status["metrics"]["decode_attempts"] == 1
    assert session.decoder.decoded_bytes() == data


def test_receiver_survives_garbage_frames():
    session = ReceiverSession(CONFIG)
    assert session.feed("https://example.com")
    assert session.feed("{}")
    assert session.state == "idle"
    assert session.status()["metrics"]["rejected_symbols"] == {"format": 2}


def test_receiver_drops_deeply_nested_frame():
    session = ReceiverSession(CONFIG)
    assert session.feed("[" * 1800)
    assert session.state == "idle"
    assert session.status()["metrics"]["rejected_symbols"] == {"format": 1}
