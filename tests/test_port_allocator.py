"""Tests for infrastructure.port_allocator."""

import socket
from unittest.mock import patch

import pytest

from native_speech_server.domain.errors import NoAvailablePort
from native_speech_server.infrastructure.port_allocator import allocate_port

HOST = "127.0.0.1"


def _occupied_port():
    """Return a listening socket holding an OS-assigned port."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind((HOST, 0))
    sock.listen(1)
    return sock


def _assert_bindable(port: int) -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((HOST, port))


class TestAllocatePort:
    """allocate_port() returns the first bindable port at or above the preferred one."""

    def test_returns_preferred_port_when_free(self):
        holder = _occupied_port()
        port = holder.getsockname()[1]
        holder.close()

        result = allocate_port(port, 10, host=HOST)

        assert result == port
        _assert_bindable(result)

    def test_skips_occupied_port(self):
        holder = _occupied_port()
        try:
            port = holder.getsockname()[1]
            result = allocate_port(port, 50, host=HOST)
            assert result > port
            _assert_bindable(result)
        finally:
            holder.close()

    def test_single_occupied_port_window_exhausted(self):
        holder = _occupied_port()
        try:
            port = holder.getsockname()[1]
            with pytest.raises(NoAvailablePort):
                allocate_port(port, 1, host=HOST)
        finally:
            holder.close()

    def test_whole_window_occupied(self):
        """Every probe failing should raise NoAvailablePort after exactly max_attempts probes."""
        with patch(
            "native_speech_server.infrastructure.port_allocator._is_port_available",
            return_value=False,
        ) as mock_probe:
            with pytest.raises(NoAvailablePort, match="3000-3004"):
                allocate_port(3000, 5)

        assert [c.args[1] for c in mock_probe.call_args_list] == [3000, 3001, 3002, 3003, 3004]

    def test_first_free_port_in_window(self):
        with patch(
            "native_speech_server.infrastructure.port_allocator._is_port_available",
            side_effect=[False, False, True],
        ):
            assert allocate_port(3000, 100) == 3002

    def test_window_stops_at_highest_port(self):
        with patch(
            "native_speech_server.infrastructure.port_allocator._is_port_available",
            return_value=False,
        ) as mock_probe:
            with pytest.raises(NoAvailablePort):
                allocate_port(65534, 100)

        assert mock_probe.call_count == 2
