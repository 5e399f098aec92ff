from qrdrop.config import CodecConfig
from qrdrop.fountain.decoder import LTDecoder
from qrdrop.fountain.encoder import LTEncoder
from qrdrop.shared.metrics import FountainMetrics


def test_metrics_summary_tracks_degrees_and_decode_success():
    data = b"metrics-matter" * 8
    config = CodecConfig(block_size=4)
    metrics = FountainMetrics()

    encoder = LTEncoder(data, "metrics.bin", config, seed=21, metrics=metrics)
    decoder = LTDecoder(config, metrics=metrics)

    sent = 0
    for packet in encoder.packets(encoder.k * 30):
        sent += 1
        if not decoder.process_packet(packet):
            break

    assert decoder.decoded_bytes() == data
    assert metrics.decode_attempts == 1
    assert metrics.decode_successes == 1
    assert metrics.symbols_used == [sent]

    summary = metrics.summary()
    assert summary["total_symbols"] == sent
    assert summary["packets_accepted"] == sent
    assert summary["decode_success_rate"] == 1.0
    assert summary["average_degree"] >= 1.0
    assert sum(summary["solved_by"].values()) == encoder.k


def test_merge_combines_counters():
    a = FountainMetrics()
    a.record_degree(2)
    a.record_symbol_rejected("range")
    a.record_decode(0.5, True, 10)

    b = FountainMetrics()
    b.record_degree(2)
    b.record_degree(0)
    b.record_symbol_rejected("range")
    b.record_solved("reduction", 3)
    b.record_decode(1.5, False, 20)

    a.merge(b)
    summary = a.summary()
    assert summary["degree_hist"] == {2: 2}
    assert summary["rejected_symbols"] == {"range": 2}
    assert summary["solved_by"] == {"reduction": 3}
    assert summary["decode_attempts"] == 2
    assert summary["decode_success_rate"] == 0.5
    assert summary["average_decode_duration"] == 1.0
    assert summary["average_symbols_used"] == 15.0


def test_empty_summary():
    summary = FountainMetrics().summary()
    assert summary["total_symbols"] == 0
    assert summary["average_degree"] == 0.0
    assert summary["decode_success_rate"] == 0.0
