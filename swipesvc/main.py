"""Service entry point: wires storage, messaging and the HTTP server together."""

from __future__ import annotations

import argparse
import logging
import os
import signal
import socket
import threading
from typing import Any, Optional, Sequence

from werkzeug.serving import BaseWSGIServer, make_server

from swipesvc.logger import init_logger
from swipesvc.rabbit import PublisherError, SwipePublisher
from swipesvc.repository import RepositoryError, connect_repository
from swipesvc.server import create_app
from swipesvc.usecases import MatchesUseCase, SwipesUseCase

GRACEFUL_TIMEOUT = 30.0

_KNOWN_SERVICES = {"http": 80, "https": 443}


def parse_listen_addr(addr: str) -> tuple[str, int]:
    """Split a ``host:port`` listen address; an empty one means all interfaces on http."""
    if not addr:
        addr = ":http"
    host, sep, port = addr.rpartition(":")
    if not sep:
        raise ValueError(f"address {addr}: missing port in address")
    if host.startswith("["):
        if not host.endswith("]"):
            raise ValueError(f"address {addr}: missing ']' in address")
        host = host[1:-1]
    elif ":" in host:
        raise ValueError(f"address {addr}: too many colons in address")
    if not port:
        return host, 0
    if port.isascii() and port.isdigit():
        number = int(port)
        if number > 65535:
            raise ValueError(f"address {addr}: invalid port")
        return host, number
    try:
        return host, socket.getservbyname(port, "tcp")
    except OSError:
        if port in _KNOWN_SERVICES:
            return host, _KNOWN_SERVICES[port]
        raise ValueError(f"address {addr}: unknown port") from None


def _argument_parser() -> argparse.ArgumentParser:
    return argparse.ArgumentParser(
        prog="swipesvc",
        description=(
            "Swipe and match HTTP service. Configured through the environment: "
            "LOG_LEVEL, LOG_FORMAT, DB_URL, RABBIT_URL, SWIPE_QUEUE, LISTEN_ADDR."
        ),
    )


def _serve(server: BaseWSGIServer, log: logging.Logger, stop: threading.Event) -> None:
    try:
        server.serve_forever()
    except Exception as exc:
        log.error("Server crashed", extra={"fields": {"error": exc}})
        stop.set()


def _shutdown(server: BaseWSGIServer, log: logging.Logger) -> None:
    log.info("Shutting down...")
    closer = threading.Thread(target=server.shutdown, daemon=True)
    closer.start()
    closer.join(GRACEFUL_TIMEOUT)
    if closer.is_alive():
        log.error(
            "Graceful shutdown failed",
            extra={"fields": {"error": "timed out waiting for requests to finish"}},
        )
        log.info("Shutting down forcefully...")
    try:
        server.server_close()
    except OSError as exc:
        log.error("Forceful shutdown failed", extra={"fields": {"error": exc}})


def _install_signal_handlers(stop: threading.Event) -> dict[int, Any]:
    if threading.current_thread() is not threading.main_thread():
        return {}

    def on_signal(signum: int, frame: Any) -> None:
        stop.set()

    return {sig: signal.signal(sig, on_signal) for sig in (signal.SIGINT, signal.SIGTERM)}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the service until interrupted; returns the exit status."""
    _argument_parser().parse_args(argv)

    log = init_logger(os.environ.get("LOG_FORMAT", ""), os.environ.get("LOG_LEVEL", ""))

    try:
        repo = connect_repository(os.environ.get("DB_URL", ""), log)
    except RepositoryError as exc:
        log.error("failed to create postgres_repo", extra={"fields": {"error": exc}})
        return 1

    try:
        publisher = SwipePublisher.connect(
            os.environ.get("RABBIT_URL", ""), os.environ.get("SWIPE_QUEUE", "")
        )
    except PublisherError as exc:
        log.error("failed to create rabbit_repo", extra={"fields": {"error": exc}})
        repo.close()
        return 1

    swipes_uc = SwipesUseCase(repo, publisher, log)
    matches_uc = MatchesUseCase(repo, log)

    listen_addr = os.environ.get("LISTEN_ADDR", "")
    app = create_app(matches_uc, swipes_uc)

    try:
        host, port = parse_listen_addr(listen_addr)
        server = make_server(host or "0.0.0.0", port, app, threaded=True)
    except (ValueError, OSError) as exc:
        log.error("Server crashed", extra={"fields": {"error": exc}})
        publisher.close()
        repo.close()
        return 1

    stop = threading.Event()
    previous = _install_signal_handlers(stop)
    try:
        log.info("Start server", extra={"fields": {"addr": listen_addr}})
        threading.Thread(target=_serve, args=(server, log, stop), daemon=True).start()
        while not stop.wait(0.5):
            pass
        _shutdown(server, log)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        try:
            publisher.close()
        except PublisherError as exc:
            log.error("failed to close rabbit_repo", extra={"fields": {"error": exc}})
        repo.close()

    log.info("Server stopped")
    return 0