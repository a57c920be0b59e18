#
# Copyright (c) 2026, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#

"""Command-line entry point: wire the components and start a transport."""

import argparse
import asyncio
import os
import sys
from dataclasses import dataclass, replace
from typing import Optional

from aiohttp import web
from dotenv import load_dotenv
from loguru import logger

from native_speech_server.capabilities import CapabilityRegistry
from native_speech_server.capture import AudioCaptureManager
from native_speech_server.config import VALID_ENGINES, VALID_TRANSPORTS, ServerConfig
from native_speech_server.dispatcher import Dispatcher
from native_speech_server.domain.errors import NoAvailablePort
from native_speech_server.http_app import create_app
from native_speech_server.infrastructure.chat_client import ChatCompletionClient
from native_speech_server.infrastructure.engine_factory import create_speech_engine
from native_speech_server.infrastructure.engine_invoker import EngineInvoker
from native_speech_server.infrastructure.port_allocator import allocate_port
from native_speech_server.server import run_stdio


@dataclass
class Application:
    """The wired component graph for one process."""

    config: ServerConfig
    dispatcher: Dispatcher
    engine_name: str


def build_application(config: ServerConfig) -> Application:
    """Construct every component from ``config``."""
    invoker = EngineInvoker()
    engine = create_speech_engine(config, invoker)
    captures = AudioCaptureManager(
        engine,
        directory=config.capture_dir,
        capture_grace=config.capture_grace,
        serialize=config.serialize_captures,
    )
    registry = CapabilityRegistry(engine, config.default_voice or engine.default_voice)
    generator = ChatCompletionClient.from_config(config) if config.chat_enabled else None
    if generator is None:
        logger.info("CHAT_API_KEY not set, /chat is disabled")
    dispatcher = Dispatcher(engine, captures, registry, generator)
    return Application(config=config, dispatcher=dispatcher, engine_name=engine.name)


def configure_logging(level: str) -> None:
    """Send all logs to stderr (stdout carries the MCP protocol in stdio mode)."""
    logger.remove()
    logger.add(sys.stderr, level=level)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="native-speech-server",
        description="Expose the host speech engine over HTTP or MCP stdio.",
    )
    parser.add_argument("--transport", choices=VALID_TRANSPORTS, help="front-end to run")
    parser.add_argument("--engine", choices=VALID_ENGINES, help="speech engine adapter")
    parser.add_argument("--host", help="HTTP bind host")
    parser.add_argument("--port", type=int, help="preferred HTTP port")
    return parser.parse_args(argv)


def resolve_config(args: argparse.Namespace, env) -> ServerConfig:
    """Environment first, then command-line overrides."""
    config = ServerConfig.from_env(env)
    overrides = {
        key: value
        for key, value in (
            ("transport", args.transport),
            ("engine", args.engine),
            ("host", args.host),
            ("port", args.port),
        )
        if value is not None
    }
    return replace(config, **overrides)


def run_http(app: Application) -> None:
    config = app.config
    port = allocate_port(config.port, config.port_attempts, host=config.host)
    web_app = create_app(app.dispatcher, app.engine_name, config.static_dir)
    logger.info(f"Native speech server ({app.engine_name}) running at http://localhost:{port}")
    web.run_app(web_app, host=config.host, port=port, print=None)


def main(argv: Optional[list[str]] = None) -> None:
    """Start the native speech server.

    Runs the HTTP front-end by default, or MCP over stdio with
    ``--transport stdio``.
    """
    load_dotenv()
    args = parse_args(argv)
    try:
        config = resolve_config(args, os.environ)
    except ValueError as e:
        configure_logging("INFO")
        logger.error(f"Invalid configuration: {e}")
        sys.exit(2)

    configure_logging(config.log_level)
    app = build_application(config)

    try:
        if config.transport == "stdio":
            asyncio.run(run_stdio(app.dispatcher))
        else:
            run_http(app)
    except NoAvailablePort as e:
        logger.error(f"Failed to start server: {e.message}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Ctrl-C detected, exiting!")


if __name__ == "__main__":
    main()
