"""Sensor client: connects to a server, sends one message and prints the reply."""

from __future__ import annotations

import ipaddress
import re
import socket
import sys

from .protocol import MAX_MSG_SIZE

DEFAULT_MESSAGE = "Ola Servidor, aqui eh o Sensor!"


class SensorError(Exception):
    """Raised when the sensor cannot reach or talk to its server."""


def _atoi(text: str) -> int:
    """Read a leading integer the lenient way a command line port is read."""
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def _decode(data: bytes) -> str:
    return data.split(b"\x00", 1)[0].decode("utf-8", errors="replace")


def exchange(host: str, port: int, message: str = DEFAULT_MESSAGE) -> str | None:
    """Send ``message`` to the server at ``host``:``port`` and return its reply.

    Returns None when the server closes the connection without answering.
    At most ``MAX_MSG_SIZE - 1`` bytes of the reply are read.
    """
    try:
        ipaddress.IPv4Address(host)
    except ValueError as exc:
        raise SensorError(f"Erro ao converter endereço IP do servidor: {host!r}") from exc
    if not 0 <= port <= 0xFFFF:
        raise SensorError(f"Erro ao converter porta do servidor: {port}")

    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    except OSError as exc:
        raise SensorError(f"Erro ao criar socket do cliente: {exc}") from exc

    with sock:
        try:
            sock.connect((host, port))
        except OSError as exc:
            raise SensorError(f"Erro ao conectar ao servidor: {exc}") from exc
        try:
            sock.sendall(message.encode("utf-8"))
        except OSError as exc:
            raise SensorError(f"Erro ao enviar mensagem para o servidor: {exc}") from exc
        try:
            data = sock.recv(MAX_MSG_SIZE - 1)
        except OSError as exc:
            raise SensorError(f"Erro ao receber dados do servidor: {exc}") from exc

    if not data:
        return None
    return _decode(data)


def main(argv: list[str] | None = None) -> int:
    """Run the sensor client from the command line; return the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) < 2:
        print(
            "Uso: sensor <server_ipv4> <server_client_listen_port>",
            file=sys.stderr,
        )
        return 1

    server_ip = args[0]
    server_port = _atoi(args[1])

    print("Cliente (sensor) iniciando...")
    print(f"Tentando conectar ao servidor {server_ip} na porta {server_port}")
    print(f"Enviando mensagem para o servidor: '{DEFAULT_MESSAGE}'")
    print("Aguardando resposta do servidor...")

    try:
        reply = exchange(server_ip, server_port, DEFAULT_MESSAGE)
    except SensorError as exc:
        print(exc, file=sys.stderr)
        return 1

    if reply is None:
        print("Servidor desconectou (recv retornou 0).")
    else:
        size = len(reply.encode("utf-8"))
        print(f"Mensagem recebida do servidor: '{reply}' ({size} bytes)")

    print("Cliente (sensor) encerrado.")
    return 0