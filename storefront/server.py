"""
Storefront API: Server Entry Point
====================================

What:  Owns the listening socket and runs the application under uvicorn.
How:   Binds the socket itself before building anything that serves, then
       hands the bound socket to uvicorn.Server.
Who:   `python -m storefront` and the `storefront` console script.

Startup sequence:
    1. Load and validate settings
    2. Configure logging
    3. Bind host:port                  (fatal on failure)
    4. Build provider + app            (fatal on failure)
    5. Serve until SIGINT / SIGTERM

Any StartupError is logged and main() returns 1; no connection is ever
accepted in that case.
"""

import logging
import socket

import uvicorn
from pydantic import ValidationError

from storefront.config import Settings, get_settings
from storefront.exceptions import StartupError
from storefront.main import create_app, setup_logging

logger = logging.getLogger(__name__)


def load_settings() -> Settings:
    """Read settings, turning validation failures into StartupError."""
    try:
        return get_settings()
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise StartupError(
            message="Invalid configuration",
            context={"fields": fields},
        ) from e


def bind_socket(host: str, port: int) -> socket.socket:
    """
    Create a TCP socket bound to host:port.

    The socket is not yet listening; uvicorn starts listening on it.

    Raises:
        StartupError: the address does not resolve or cannot be bound
                      (in use, not local, permission denied).
    """
    try:
        infos = socket.getaddrinfo(
            host, port, type=socket.SOCK_STREAM, flags=socket.AI_PASSIVE
        )
    except (OSError, UnicodeError) as e:
        raise StartupError(
            message=f"Cannot resolve bind address {host}:{port}",
            context={"host": host, "port": port, "error": str(e)},
        ) from e

    family, socktype, proto, _, sockaddr = infos[0]
    sock = socket.socket(family, socktype, proto)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(sockaddr)
    except OSError as e:
        sock.close()
        raise StartupError(
            message=f"Cannot bind to {host}:{port}",
            context={"host": host, "port": port, "error": str(e)},
        ) from e

    sock.set_inheritable(True)
    return sock


def serve(app, sock: socket.socket, settings: Settings) -> int:
    """
    Run uvicorn on an already-bound socket until shutdown.

    Returns the process exit status: 0 after a clean shutdown, 1 if the
    application failed during startup (e.g. lifespan error).
    """
    config = uvicorn.Config(
        app,
        log_config=None,
        log_level=settings.log_level.lower(),
        lifespan="on",
    )
    server = uvicorn.Server(config)
    try:
        server.run(sockets=[sock])
    finally:
        sock.close()

    if not server.started:
        logger.critical("Server exited before it started serving")
        return 1
    return 0


def main() -> int:
    """Start the service. Returns the process exit status."""
    setup_logging()
    sock = None
    try:
        settings = load_settings()
        setup_logging(settings.log_level)
        sock = bind_socket(settings.backend_host, settings.backend_port)
        app = create_app(settings)
    except StartupError as e:
        logger.critical("Startup failed: %s | Context: %s", e.message, e.context)
        if sock is not None:
            sock.close()
        return 1

    return serve(app, sock, settings)
