"""Startup port selection for the HTTP transport."""

import socket

from loguru import logger

from native_speech_server.domain.errors import NoAvailablePort


def _is_port_available(host: str, port: int) -> bool:
    """Try to bind a throwaway listener to ``port`` and release it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
            sock.listen(1)
        except OSError:
            return False
    return True


def allocate_port(preferred_port: int, max_attempts: int = 100, host: str = "0.0.0.0") -> int:
    """Return the first bindable port in ``[preferred_port, preferred_port + max_attempts)``.

    The probe socket is closed before returning, so the port is free for the
    real listener (another process could still grab it in between).

    Raises:
        NoAvailablePort: If every port in the window is occupied.

    """
    for port in range(preferred_port, preferred_port + max_attempts):
        if port > 65535:
            break
        if _is_port_available(host, port):
            if port != preferred_port:
                logger.info(f"Port {preferred_port} is in use, using {port} instead")
            return port
        logger.debug(f"Port {port} is in use")
    raise NoAvailablePort(
        f"No available port in range {preferred_port}-{preferred_port + max_attempts - 1}"
    )
