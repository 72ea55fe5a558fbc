"""
mpdeck CLI - entry point.

Loads configuration, connects to MPD, starts the producer threads and runs
the event loop on the main thread.
"""

import argparse
import queue
import sys
from pathlib import Path
from typing import Optional

from blessed import Terminal
from loguru import logger

from mpdeck.app import EventLoop
from mpdeck.context import AppContext
from mpdeck.core.config import Config, ConfigError, load_config
from mpdeck.core.output import attach_event_bus, detach_event_bus, setup_loguru
from mpdeck.events import EventBus
from mpdeck.mpd import Client, MpdError
from mpdeck.ui import Ui
from mpdeck.ui.terminal import TerminalSession
from mpdeck.workers import (
    ChangeListener,
    ClientWorker,
    InputListener,
    UpdateScheduler,
    WorkPool,
)

LOG_LEVELS = ["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mpdeck",
        description="mpdeck - terminal client for MPD",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--address",
        help="MPD address: host, host:port or a Unix socket path (overrides MPD_HOST)",
    )
    parser.add_argument(
        "--password",
        help="MPD password (overrides MPD_PASSWORD)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config.toml (default: ~/.config/mpdeck/config.toml)",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        type=str.upper,
        help="Minimum log level written to the log file and the logs view",
    )
    return parser


def apply_cli_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Command line options win over the config file and the environment."""
    if args.address:
        config.mpd.address = args.address
    if args.password:
        config.mpd.password = args.password
    if args.log_level:
        config.logging.level = args.log_level
    return config


def fail(message: str) -> int:
    print(f"mpdeck: {message}", file=sys.stderr)
    return 1


def run_event_loop(event_loop: EventLoop, session: TerminalSession) -> int:
    """Run until the user quits. Returns 1 when a worker thread crashed."""
    try:
        event_loop.run()
    except KeyboardInterrupt:
        if session.faulted:
            logger.error("Stopped after an unhandled exception in a worker thread")
            return 1
        logger.info("Interrupted")
    return 0


def run(args: argparse.Namespace) -> int:
    try:
        config = apply_cli_overrides(load_config(args.config), args)
    except ConfigError as e:
        return fail(str(e))

    log_file = Path(config.logging.log_file) if config.logging.log_file else None
    setup_loguru(log_file, config.logging.level)

    def connect(name: str) -> Client:
        return Client.connect(
            config.mpd.address,
            config.mpd.password,
            name=name,
            timeout=config.mpd.connect_timeout,
        )

    bus = EventBus()
    client_requests: queue.Queue = queue.Queue()
    work_requests: queue.Queue = queue.Queue()
    ctx = AppContext(config, client_requests, work_requests)

    term = Terminal()
    if not term.is_a_tty:
        return fail("stdout is not a terminal")

    ui = Ui(term)
    scheduler = UpdateScheduler(bus, config.status_update_interval)
    event_loop = EventLoop(ctx, ui, bus, scheduler)

    try:
        client = connect("command")
        idle_client = connect("idle")
        event_loop.bootstrap(client)
    except MpdError as e:
        logger.error(f"Startup failed: {e}")
        return fail(str(e))

    session = TerminalSession(term, enable_mouse=config.ui.enable_mouse)
    session.install_fault_hooks()

    ClientWorker(client, bus, reconnect=lambda: connect("command"), requests=client_requests).start()
    ChangeListener(bus, lambda: connect("idle"), client=idle_client).start()
    WorkPool(bus, config, requests=work_requests).start()
    attach_event_bus(bus, config.logging.level)

    try:
        session.enter()
    except Exception as e:
        detach_event_bus()
        logger.exception("Terminal setup failed")
        return fail(f"Failed to set up the terminal: {e}")

    input_listener = InputListener(term, bus)
    input_listener.start()
    try:
        return run_event_loop(event_loop, session)
    finally:
        input_listener.stop()
        detach_event_bus()
        session.restore()


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the mpdeck command."""
    args = build_parser().parse_args(argv)
    sys.exit(run(args))


if __name__ == "__main__":
    main()
