"""Benchmark command that publishes a burst of messages to the hub."""

from __future__ import annotations

import argparse
import sys
import threading
import time
from typing import Optional, Sequence

from .client import Client

NB_MESSAGES = 2
MESSAGE_TYPE = "clientId:Mu2rXoG0I6AUwGBL"
MESSAGE_CONTENT = '{"type":"test_type", "value": "test_value"}'


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


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="gazellemq-bench-publisher",
        description="Publish a burst of messages and print when publishing started.",
    )
    parser.add_argument("--host", default="localhost")
    parser.add_argument("--sub-port", type=int, default=5875)
    parser.add_argument("--pub-port", type=int, default=5876)
    parser.add_argument("--comm-port", type=int, default=5877)
    parser.add_argument("--count", type=_positive_int, default=NB_MESSAGES)
    parser.add_argument("--type", default=MESSAGE_TYPE, help="message type to publish")
    parser.add_argument("--content", default=MESSAGE_CONTENT)
    parser.add_argument(
        "--ready-timeout",
        type=_non_negative_float,
        default=None,
        help="seconds to wait for the hub (default: wait forever)",
    )
    parser.add_argument(
        "--duration",
        type=_non_negative_float,
        default=None,
        help="seconds to keep running after publishing (default: forever)",
    )
    return parser.parse_args(argv)


def _hold(duration: Optional[float]) -> None:
    if duration is None:
        threading.Event().wait()
    else:
        time.sleep(duration)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Connect, publish ``--count`` messages once the hub is ready, then keep running."""
    args = _parse_args(argv)
    client = Client()
    ready = threading.Event()

    def on_ready() -> None:
        print(f"Publishing {args.count} messages: time={_now_ms()}", flush=True)
        ready.set()

    client.set_on_ready(on_ready)
    try:
        client.connect_to_hub(args.host, args.sub_port, args.pub_port, args.comm_port)
        if not ready.wait(args.ready_timeout):
            print(
                f"Could not connect to hub at {args.host} within {args.ready_timeout}s",
                file=sys.stderr,
            )
            return 1
        for _ in range(args.count):
            client.publish(args.type, args.content)
        _hold(args.duration)
    except KeyboardInterrupt:
        print("^C pressed. Shutting down", flush=True)
    finally:
        client.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())