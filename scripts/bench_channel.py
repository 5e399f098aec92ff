#!/usr/bin/env python3
"""
Channel benchmark for the qrdrop encoder/decoder.

Runs Monte Carlo trials across a parameter grid and prints success rate,
average packets used, and decode latency. Packets travel as wire records so
parsing and validation are part of the measurement.
"""

from __future__ import annotations

import argparse
import random
import sys
from pathlib import Path

# Ensure project root import
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from qrdrop.config import CodecConfig
from qrdrop.fountain.decoder import LTDecoder
from qrdrop.fountain.encoder import LTEncoder
from qrdrop.fountain.sim import burst_eraser, gilbert_elliott_eraser
from qrdrop.shared.metrics import FountainMetrics
from qrdrop.shared.samples import random_payload


def run_trial(
    payload_len: int,
    config: CodecConfig,
    overhead: float,
    channel: str,
    channel_kwargs: dict,
) -> tuple[bool, FountainMetrics]:
    payload = random_payload(payload_len, seed=random.randrange(1 << 30))
    metrics = FountainMetrics()

    enc = LTEncoder(
        payload,
        "bench.bin",
        config,
        seed=random.randrange(1 << 30),
        metrics=metrics,
    )
    sent = enc.k + max(0, int(overhead * enc.k))
    records = [p.to_json() for p in enc.packets(sent)]

    if channel == "burst":
        received = burst_eraser(records, **channel_kwargs)
    elif channel == "ge":
        received = gilbert_elliott_eraser(records, **channel_kwargs)
    else:
        raise ValueError(f"Unknown channel: {channel}")

    dec = LTDecoder(config, metrics=metrics)
    for record in received:
        if not dec.process_text(record):
            break

    if not dec.is_complete:
        metrics.record_decode(0.0, False, dec.received_count)
        return False, metrics
    return dec.decoded_bytes() == payload, metrics


def main() -> int:
    ap = argparse.ArgumentParser(description="Fountain channel benchmark")
    ap.add_argument("--payload", type=int, default=16_384, help="payload bytes")
    ap.add_argument("--block", type=int, default=256, help="block size bytes")
    ap.add_argument(
        "--overheads", type=str, default="0.0,0.25,0.5,1.0", help="comma list"
    )
    ap.add_argument("--trials", type=int, default=50, help="trials per config")
    ap.add_argument("--channel", choices=["burst", "ge"], default="ge")
    ap.add_argument("--ge", type=str, default="p=0.05,r=0.25,good=0.02,bad=0.8")
    ap.add_argument(
        "--burst", type=str, default="loss=0.2,burst=3", help="loss and burst len"
    )
    args = ap.parse_args()

    overheads = [float(x) for x in args.overheads.split(",")]
    config = CodecConfig(block_size=args.block)

    if args.channel == "ge":
        kv = dict(x.split("=") for x in args.ge.split(","))
        channel_kwargs = dict(
            p=float(kv.get("p", 0.05)),
            r=float(kv.get("r", 0.25)),
            good_loss=float(kv.get("good", 0.02)),
            bad_loss=float(kv.get("bad", 0.8)),
        )
    else:
        kv = dict(x.split("=") for x in args.burst.split(","))
        channel_kwargs = dict(
            loss_rate=float(kv.get("loss", 0.2)),
            burst_len=int(kv.get("burst", 3)),
        )

    print(
        f"Payload={args.payload}B block={args.block} channel={args.channel} params={channel_kwargs} trials={args.trials}"
    )
    for oh in overheads:
        successes = 0
        merged = FountainMetrics()
        for _ in range(args.trials):
            ok, m = run_trial(
                payload_len=args.payload,
                config=config,
                overhead=oh,
                channel=args.channel,
                channel_kwargs=channel_kwargs,
            )
            successes += 1 if ok else 0
            merged.merge(m)

        summary = merged.summary()
        rate = successes / args.trials
        avg_used = summary.get("average_symbols_used", 0.0)
        avg_latency_ms = summary.get("average_decode_duration", 0.0) * 1000.0
        print(
            f"overhead={oh:.2f} -> success={rate * 100:5.1f}% used≈{avg_used:.1f} lat≈{avg_latency_ms:.2f}ms avg_degree={summary['average_degree']:.2f}"
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
