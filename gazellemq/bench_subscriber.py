"""Benchmark command that counts the messages it receives from the hub."""

from __future__ import annotations

import argparse
import threading
import time
from typing import Optional, Sequence

from .bench_publisher import MESSAGE_TYPE, NB_MESSAGES
from .client import Client


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {text}")
    return value


def _non_negative_float(text: str) -> float:
    value = float(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {text}")
    return value


class _Tally:
    """Counts received messages and reports each time ``target`` is reached."""

    def __init__(self, target: int) -> None:
        self._target = target
        self._count = 0
        self._lock = threading.Lock()

    def __call__(self, message: str) -> None:
        with self._lock:
            self._count += 1
            if self._count != self._target:
                return
            self._count = 0
        print(f"Received all {self._target} messages: time={_now_ms()}", flush=True)


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="gazellemq-bench-subscriber",
        description="Count received messages and print when each batch is complete.",
    )
    parser.add_argument("--host", default="localhost")
    parser.add_argument("--sub-port", type=int, default=5875)
    parser.add_argument("--pub-port", type=int, default=5876)
    parser.add_argument("--comm-port", type=int, default=5877)
    parser.add_argument("--count", type=_positive_int, default=NB_MESSAGES)
    parser.add_argument("--type", default=MESSAGE_TYPE, help="message type to subscribe to")
    parser.add_argument(
        "--duration",
        type=_non_negative_float,
        default=None,
        help="seconds to keep running (default: forever)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Subscribe to ``--type`` and report every time ``--count`` messages arrived."""
    args = _parse_args(argv)
    client = Client()
    # Registered first so that no message can arrive before its handler.
    client.subscribe(args.type, _Tally(args.count))
    try:
        client.connect_to_hub(args.host, args.sub_port, args.pub_port, args.comm_port)
        if args.duration is None:
            threading.Event().wait()
        else:
            time.sleep(args.duration)
    except KeyboardInterrupt:
        print("^C pressed. Shutting down", flush=True)
    finally:
        client.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())