"""Socket helpers shared by the server: listening sockets, peer links and replies."""

from __future__ import annotations

import ipaddress
import socket

from .protocol import MAX_MSG_SIZE

REPLY_LIMIT = MAX_MSG_SIZE + 59
"""Largest reply, in bytes, that the server sends back to a client."""


def _check_port(port: int) -> None:
    if not 0 <= port <= 0xFFFF:
        raise ValueError(f"porta fora do intervalo: {port}")


def create_listening_socket(port: int, backlog: int, host: str = "") -> socket.socket:
    """Return a TCP socket bound to ``host``:``port`` and listening.

    The socket has SO_REUSEADDR set so a restarted server can bind again at
    once. An empty ``host`` accepts connections on every interface. Any
    failure closes the socket and raises ``OSError``.
    """
    _check_port(port)
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(backlog)
    except BaseException:
        sock.close()
        raise
    print(
        f"Socket de escuta configurado e operando na porta {port} "
        f"(fd: {sock.fileno()})."
    )
    return sock


def connect_peer(ip: str, port: int) -> socket.socket:
    """Open an active TCP connection to the peer server at ``ip``:``port``.

    Raises ``ValueError`` when ``ip`` is not a dotted IPv4 address and
    ``OSError`` when the peer cannot be reached.
    """
    try:
        ipaddress.IPv4Address(ip)
    except ValueError as exc:
        raise ValueError(f"Erro ao converter endereço IP do peer para P2P: {ip!r}") from exc
    _check_port(port)

    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.connect((ip, port))
    except BaseException:
        sock.close()
        raise
    return sock


def format_client_reply(client_id: int, text: str) -> str:
    """Build the acknowledgement the server sends for a client's message.

    The encoded reply never exceeds ``REPLY_LIMIT`` bytes; longer replies
    are cut at that limit.
    """
    reply = f"Servidor: Msg recebida do cliente {client_id}: '{text}'"
    encoded = reply.encode("utf-8")
    if len(encoded) <= REPLY_LIMIT:
        return reply
    return encoded[:REPLY_LIMIT].decode("utf-8", errors="ignore")