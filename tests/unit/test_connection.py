"""
Unit tests for Connection, using a local socket pair.
"""

import socket

import pytest

from fileserver.core.connection import Connection, ConnectionState


@pytest.fixture
def pair():
    server_side, client_side = socket.socketpair()
    yield server_side, client_side
    server_side.close()
    client_side.close()


def make_connection(sock, **kwargs) -> Connection:
    return Connection(socket=sock, address=("127.0.0.1", 40000), **kwargs)


def test_reads_headers_and_body(pair):
    server_side, client_side = pair
    raw = b"POST /data HTTP/1.1\r\nContent-Length: 5\r\n\r\nhello"
    client_side.sendall(raw)

    conn = make_connection(server_side, buffer_size=4)

    assert conn.read_request() == raw
    assert conn.state == ConnectionState.READING


def test_returns_none_when_client_closes_early(pair):
    server_side, client_side = pair
    client_side.sendall(b"GET /data HTTP/1.1\r\n")
    client_side.shutdown(socket.SHUT_WR)

    assert make_connection(server_side).read_request() is None


def test_closed_mid_body_raises(pair):
    server_side, client_side = pair
    client_side.sendall(b"POST /d HTTP/1.1\r\nContent-Length: 10\r\n\r\nabc")
    client_side.shutdown(socket.SHUT_WR)

    with pytest.raises(ValueError):
        make_connection(server_side).read_request()


def test_too_large_raises(pair):
    server_side, client_side = pair
    client_side.sendall(b"GET /" + b"a" * 200 + b" HTTP/1.1\r\n\r\n")

    with pytest.raises(ValueError):
        make_connection(server_side, max_request_size=64, buffer_size=1024).read_request()


def test_timeout_raises(pair):
    server_side, client_side = pair
    client_side.sendall(b"GET /data HTTP/1.1\r\n")

    with pytest.raises(TimeoutError):
        make_connection(server_side, timeout=0.1).read_request()


def test_send_and_close(pair):
    server_side, client_side = pair
    conn = make_connection(server_side)

    with conn:
        assert conn.send_response(b"HTTP/1.1 202 Accepted\r\n\r\n") is True

    assert conn.state == ConnectionState.CLOSED
    assert client_side.recv(1024) == b"HTTP/1.1 202 Accepted\r\n\r\n"
    assert client_side.recv(1024) == b""
