"""Command line entry point for recording, streaming and browsing the library."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import structlog
from uvicorn import Config, Server

from src.livecast.api.responses import wire_list
from src.livecast.config import load_config
from src.livecast.dependencies import Services, build_services
from src.livecast.logging import configure_logging
from src.livecast.main import create_app

log = structlog.get_logger("livecast.cli")


async def _upload_and_wait(services: Services, payload: Any, *, name: str | None) -> str:
    outcome = await services.upload_service.record_and_upload(
        payload,
        name=name,
        on_progress=lambda percent: log.info("cli.upload.progress", percent=percent),
    )
    print(f"uploaded uid={outcome.uid}", file=sys.stdout)
    if outcome.poller is not None:
        state = await outcome.poller.wait()
        print(f"readiness uid={outcome.uid} state={state}", file=sys.stdout)
    return outcome.uid


async def upload_file(services: Services, path: Path, *, name: str | None) -> str:
    payload = path.read_bytes()
    return await _upload_and_wait(services, payload, name=name or path.stem)


async def record_clip(services: Services, *, seconds: float, name: str | None) -> str:
    recorder = services.buffered_recorder()
    await recorder.start()
    try:
        await asyncio.sleep(seconds)
    finally:
        buffer = await recorder.stop()
    log.info("cli.record.captured", size_bytes=buffer.size, chunks=buffer.chunk_count)
    return await _upload_and_wait(services, buffer, name=name)


async def stream_live(services: Services, *, name: str, seconds: float | None) -> str | None:
    transport = services.live_transport(
        on_state_change=lambda state: log.info("cli.stream.state", state=str(state)),
        on_error=lambda exc: log.warning("cli.stream.error", error=exc.message),
    )
    live_input = await transport.start(name)
    print(f"streaming live_input={live_input.uid}", file=sys.stdout)
    try:
        if seconds is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(seconds)
    finally:
        await transport.stop()
    return live_input.uid


async def print_library(services: Services) -> None:
    items = await services.library.list_library()
    print(json.dumps(wire_list(items), indent=2), file=sys.stdout)


async def serve_api(services: Services, *, host: str, port: int) -> None:
    server = Server(Config(app=create_app(services.config), host=host, port=port))
    log.info("cli.serve.start", host=host, port=port)
    await server.serve()


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Record, stream and list videos.")
    commands = parser.add_subparsers(dest="command", required=True)

    upload = commands.add_parser("upload", help="Upload an existing recording.")
    upload.add_argument("path", type=Path)
    upload.add_argument("--name", default=None)

    record = commands.add_parser("record", help="Record from the capture device, then upload.")
    record.add_argument("--seconds", type=float, required=True)
    record.add_argument("--name", default=None)

    stream = commands.add_parser("stream", help="Stream the capture device live.")
    stream.add_argument("--name", required=True)
    stream.add_argument("--seconds", type=float, default=None)

    commands.add_parser("library", help="Print uploads and live recordings as JSON.")

    serve = commands.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser.parse_args(argv)


async def run(args: argparse.Namespace, services: Services) -> None:
    try:
        if args.command == "upload":
            await upload_file(services, args.path, name=args.name)
        elif args.command == "record":
            await record_clip(services, seconds=args.seconds, name=args.name)
        elif args.command == "stream":
            await stream_live(services, name=args.name, seconds=args.seconds)
        elif args.command == "library":
            await print_library(services)
        elif args.command == "serve":
            await serve_api(services, host=args.host, port=args.port)
    finally:
        await services.pollers.shutdown()


def main(argv: list[str] | None = None, *, services: Services | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    configure_logging()
    try:
        asyncio.run(run(args, services or build_services(load_config())))
    except KeyboardInterrupt:
        return 130
    except Exception as exc:
        message = getattr(exc, "message", None) or str(exc)
        print(f"{args.command} failed: {message}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
