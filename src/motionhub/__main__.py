"""Command line entry point.

``motionhub serve`` runs the listener and query endpoint until Ctrl+C.
``motionhub send`` validates a payload locally and fires it at a listener,
which is handy for exercising a running service without a vehicle.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import socket
import sys
from pathlib import Path

from motionhub.config import MotionHubConfig
from motionhub.exceptions import DecodeError, MotionHubError
from motionhub.ingestion.decoder import decode_datagram_strict
from motionhub.service import MotionHub

_LOG = logging.getLogger("motionhub")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="motionhub",
        description="Vehicle motion telemetry ingestion service.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    commands = parser.add_subparsers(dest="command")

    serve = commands.add_parser("serve", help="Run the datagram listener and query endpoint.")
    serve.add_argument("--udp-host", help="Interface for the datagram socket.")
    serve.add_argument("--udp-port", type=int, help="Datagram port.")
    serve.add_argument("--http-host", help="Interface for the query endpoint.")
    serve.add_argument("--http-port", type=int, help="Query endpoint port.")
    serve.add_argument("--no-http", action="store_true", help="Run the datagram listener only.")
    serve.add_argument("--data-file", type=Path, help="Persisted snapshot location.")
    serve.add_argument("--memory-only", action="store_true", help="Do not persist the snapshot.")
    serve.add_argument(
        "--strict-push",
        action="store_true",
        help="Reject pushed patches containing keys other than the raw sensor fields.",
    )

    send = commands.add_parser("send", help="Send one telemetry datagram.")
    send.add_argument("payload", help='Payload, e.g. "rotation,1.0,2.0,3.0".')
    send.add_argument("--host", default="127.0.0.1", help="Listener host.")
    send.add_argument("--port", type=int, default=None, help="Listener port.")
    send.add_argument(
        "--no-validate",
        action="store_true",
        help="Send the payload even if it would be rejected.",
    )

    args = parser.parse_args(argv)
    if args.command is None:
        raw = sys.argv[1:] if argv is None else argv
        args = parser.parse_args([*raw, "serve"])
    return args


def _config_from_args(args: argparse.Namespace) -> MotionHubConfig:
    overrides: dict[str, object] = {}
    for name in ("udp_host", "udp_port", "http_host", "http_port", "data_file"):
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value
    if args.no_http:
        overrides["http_enabled"] = False
    if args.memory_only:
        overrides["data_file"] = None
    if args.strict_push:
        overrides["strict_push"] = True
    return MotionHubConfig.from_env(**overrides)


async def _serve(config: MotionHubConfig, stop_requested: asyncio.Event | None = None) -> None:
    stop_requested = stop_requested or asyncio.Event()
    async with MotionHub(config) as hub:
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(signum, stop_requested.set)
        try:
            await stop_requested.wait()
        finally:
            for signum in (signal.SIGINT, signal.SIGTERM):
                with contextlib.suppress(NotImplementedError):
                    loop.remove_signal_handler(signum)

    stats = hub.listener.statistics
    _LOG.info(
        "Stopped. received=%s accepted=%s rejected=%s merge_failures=%s",
        stats.received,
        stats.accepted,
        sum(stats.rejected.values()),
        stats.merge_failures,
    )


def _send(args: argparse.Namespace) -> int:
    if not args.no_validate:
        try:
            update = decode_datagram_strict(args.payload)
        except DecodeError as exc:
            print(f"[send] payload would be rejected: {exc}", file=sys.stderr)
            return 2
        _LOG.debug("Payload decodes to %s update %s", update.kind.value, update.fields)

    port = args.port if args.port is not None else MotionHubConfig.from_env().udp_port
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.sendto(args.payload.encode("utf-8"), (args.host, port))
    print(f"[send] {len(args.payload)} bytes -> {args.host}:{port}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "send":
            return _send(args)
        asyncio.run(_serve(_config_from_args(args)))
    except MotionHubError as exc:
        print(f"[motionhub] {exc}", file=sys.stderr)
        return 2
    except OSError as exc:  # pragma: no cover - socket/system interaction
        print(f"[motionhub] {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
