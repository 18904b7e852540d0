import socket

import pytest

from sensornet.network import format_client_reply
from sensornet.server import SensorServer, main


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def server():
    srv = SensorServer("127.0.0.1", _free_port(), 0)
    yield srv
    srv.close()


def _connect(srv: SensorServer) -> socket.socket:
    client = socket.create_connection(("127.0.0.1", srv.client_address[1]), timeout=5)
    return client


def test_listens_for_peer_when_none_available():
    port = _free_port()
    with SensorServer("127.0.0.1", port, 0) as srv:
        assert srv.p2p is None
        assert srv.p2p_listener is not None
        assert srv.p2p_listener.getsockname()[1] == port


def test_invalid_peer_ip_leaves_no_link():
    with SensorServer("not-an-ip", _free_port(), 0) as srv:
        assert srv.p2p is None
        assert srv.p2p_listener is None


def test_new_client_is_accepted(server):
    with _connect(server):
        assert server.serve_once(2) == 1
        assert len(server.clients) == 1


def test_client_message_gets_reply(server):
    with _connect(server) as client:
        server.serve_once(2)
        conn = next(iter(server.clients))
        client.sendall(b"hello")
        server.serve_once(2)
        reply = client.recv(2048).decode("utf-8")
        assert reply == format_client_reply(conn.fileno(), "hello")
        assert reply.startswith("Servidor: Msg recebida do cliente")
        assert reply.endswith("'hello'")


def test_handle_client_communication_returns_reply(server):
    with _connect(server) as client:
        server.serve_once(2)
        conn = next(iter(server.clients))
        client.sendall(b"abc")
        sent = server.handle_client_communication(conn)
        assert sent == client.recv(2048).decode("utf-8")


def test_client_disconnect_is_forgotten(server):
    client = _connect(server)
    server.serve_once(2)
    assert len(server.clients) == 1
    client.close()
    server.serve_once(2)
    assert server.clients == set()


def test_serve_once_times_out_without_activity(server):
    assert server.serve_once(0.05) == 0


def test_peer_link_between_two_servers():
    port = _free_port()
    with SensorServer("127.0.0.1", port, 0) as first:
        assert first.p2p_listener is not None
        with SensorServer("127.0.0.1", port, 0) as second:
            assert second.p2p is not None
            assert second.p2p_listener is None

            first.serve_once(2)
            assert first.p2p is not None
            assert first.p2p_listener is None

            second.p2p.sendall(b"ping")
            assert first.handle_p2p_communication() == "ping"

        assert first.handle_p2p_communication() is None
        assert first.p2p is None

        first.serve_once(0.05)
        assert first.p2p_listener is not None
        assert first.p2p_listener.getsockname()[1] == port


def test_close_releases_sockets():
    srv = SensorServer("127.0.0.1", _free_port(), 0)
    listener = srv.listener
    p2p_listener = srv.p2p_listener
    srv.close()
    assert listener.fileno() == -1
    assert p2p_listener.fileno() == -1
    assert srv.p2p_listener is None


def test_main_requires_three_arguments(capsys):
    assert main(["127.0.0.1", "5000"]) == 1
    assert "Uso:" in capsys.readouterr().err


def test_main_fails_when_client_port_taken():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as busy:
        busy.bind(("", 0))
        busy.listen(1)
        port = busy.getsockname()[1]
        assert main(["127.0.0.1", str(_free_port()), str(port)]) == 1