"""
Unit tests for the accept loop, driven by a stand-in listening socket.
"""

import errno
import logging
import socket

from fileserver.config import ServerConfig
from fileserver.core.socket_server import SocketServer


class FlakyListener:
    """
    Fails the first accept(), hands out one client on the second, then asks
    the server to stop.
    """

    def __init__(self, server, client_socket):
        self.server = server
        self.client_socket = client_socket
        self.calls = 0

    def accept(self):
        self.calls += 1
        if self.calls == 1:
            raise OSError(errno.EMFILE, "Too many open files")
        if self.calls == 2:
            return self.client_socket, ("127.0.0.1", 40000)
        self.server.shutdown()
        raise socket.timeout()

    def fileno(self):
        return 99


class TestAcceptLoop:

    def test_accept_error_is_logged_and_loop_continues(self, caplog):
        caplog.set_level(logging.ERROR, logger="fileserver.core.socket_server")
        server = SocketServer(ServerConfig())
        server_side, client_side = socket.socketpair()
        server._socket = FlakyListener(server, server_side)
        server._running = True
        handled = []

        try:
            server._accept_loop(handled.append)
        finally:
            server_side.close()
            client_side.close()

        assert "Accept error" in caplog.text
        assert len(handled) == 1
        assert handled[0].client_ip == "127.0.0.1"

    def test_address_before_start(self):
        server = SocketServer(ServerConfig(host="127.0.0.1", port=9999))
        assert server.address == ("127.0.0.1", 9999)

    def test_shutdown_before_start_is_harmless(self):
        server = SocketServer(ServerConfig())
        server.shutdown()
        assert not server.wait_until_ready(timeout=0.01)
