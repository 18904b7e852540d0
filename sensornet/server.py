"""Sensor server: accepts sensor clients and keeps a single link to a peer server."""

from __future__ import annotations

import re
import select
import socket
import sys

from .network import connect_peer, create_listening_socket, format_client_reply
from .protocol import MAX_MSG_SIZE

CLIENT_BACKLOG = 10
P2P_BACKLOG = 1


def _atoi(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def _decode(data: bytes) -> str:
    return data.split(b"\x00", 1)[0].decode("utf-8", errors="replace")


class SensorServer:
    """A server that multiplexes sensor clients and one peer connection.

    The peer link is either an established connection (``p2p``) or a
    listening socket waiting for the peer (``p2p_listener``); when neither
    exists the next call to :meth:`serve_once` tries to set it up again.
    """

    def __init__(self, peer_ip: str, p2p_port: int, client_port: int) -> None:
        self.peer_ip = peer_ip
        self.p2p_port = p2p_port
        self.p2p: socket.socket | None = None
        self.p2p_listener: socket.socket | None = None
        self.clients: set[socket.socket] = set()

        print("Servidor iniciando...")
        print(f"Configurando socket de escuta para clientes na porta {client_port}...")
        self.listener = create_listening_socket(client_port, CLIENT_BACKLOG)
        try:
            self.initialize_p2p_link()
        except BaseException:
            self.close()
            raise

    def __enter__(self) -> SensorServer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def client_address(self) -> tuple[str, int]:
        """Address the client listening socket is bound to."""
        return self.listener.getsockname()

    def initialize_p2p_link(self) -> None:
        """Drop any peer link, then connect to the peer or else listen for it."""
        print("\n--- Configurando/Reiniciando Conexão P2P ---")
        print(f"Tentando conectar ao peer {self.peer_ip} na porta {self.p2p_port}...")

        if self.p2p is not None:
            print(f"Limpando p2p_fd existente: {self.p2p.fileno()}")
            self.p2p.close()
            self.p2p = None
        if self.p2p_listener is not None:
            print(f"Limpando p2p_listen_fd existente: {self.p2p_listener.fileno()}")
            self.p2p_listener.close()
            self.p2p_listener = None

        try:
            self.p2p = connect_peer(self.peer_ip, self.p2p_port)
        except ValueError as exc:
            print(exc, file=sys.stderr)
            return
        except OSError as exc:
            print(
                f"Falha ao conectar ativamente ao peer (ou peer não disponível): {exc}",
                file=sys.stderr,
            )
        else:
            print(f"Conectado com sucesso ao servidor peer (fd: {self.p2p.fileno()}).")
            return

        print(f"Iniciando escuta P2P passiva na porta {self.p2p_port}...")
        try:
            self.p2p_listener = create_listening_socket(self.p2p_port, P2P_BACKLOG)
        except (OSError, ValueError) as exc:
            print(
                "Falha crítica ao tentar configurar escuta P2P passiva. "
                f"P2P não estará disponível. ({exc})",
                file=sys.stderr,
            )

    def handle_new_client(self) -> socket.socket | None:
        """Accept a pending client and return its socket, or None on failure."""
        try:
            conn, (ip, port) = self.listener.accept()
        except OSError as exc:
            print(f"Erro ao aceitar nova conexão de cliente: {exc}", file=sys.stderr)
            return None
        self.clients.add(conn)
        print(f"Novo cliente conectado: {ip}:{port} (fd: {conn.fileno()})")
        return conn

    def handle_incoming_p2p(self) -> socket.socket | None:
        """Accept a peer on the P2P listener; return the new link, if kept."""
        listener = self.p2p_listener
        if listener is None:
            return None
        print(f"Detectada tentativa de conexão no socket de escuta P2P (fd: {listener.fileno()}).")
        try:
            conn, (ip, port) = listener.accept()
        except OSError as exc:
            print(f"Erro ao aceitar conexão P2P entrante: {exc}", file=sys.stderr)
            return None
        print(f"Conexão P2P aceita de {ip}:{port} no socket {conn.fileno()}")

        if self.p2p is not None:
            print(
                f"AVISO: Conexão P2P principal já existente (fd: {self.p2p.fileno()}). "
                f"Fechando nova tentativa de conexão P2P (fd: {conn.fileno()})."
            )
            conn.close()
            return None

        self.p2p = conn
        print(f"Socket de comunicação P2P estabelecido através de escuta (fd: {conn.fileno()}).")
        print(
            f"Fechando socket de escuta P2P (original fd: {listener.fileno()}) "
            "e removendo do master_set."
        )
        listener.close()
        self.p2p_listener = None
        return conn

    def handle_p2p_communication(self) -> str | None:
        """Read from the peer link; return the text, or None if the link ended."""
        conn = self.p2p
        if conn is None:
            return None
        fd = conn.fileno()
        try:
            data = conn.recv(MAX_MSG_SIZE - 1)
        except OSError as exc:
            print(f"Erro no recv() do P2P: {exc}", file=sys.stderr)
            data = b""
        else:
            if not data:
                print(f"Socket P2P (fd {fd}) desconectou (conexão fechada pelo peer).")

        if not data:
            conn.close()
            self.p2p = None
            print(
                f"Conexão P2P (original fd: {fd}) terminada. "
                "Tentativa de restabelecimento ocorrerá no próximo ciclo."
            )
            return None

        text = _decode(data)
        print(f"Recebido do peer (fd {fd}): '{text}'")
        return text

    def _drop_client(self, conn: socket.socket) -> None:
        conn.close()
        self.clients.discard(conn)

    def handle_client_communication(self, conn: socket.socket) -> str | None:
        """Read a client's message and answer it; return the reply sent.

        Returns None when the client disconnected or the reply could not be
        sent; the client is then closed and forgotten.
        """
        fd = conn.fileno()
        try:
            data = conn.recv(MAX_MSG_SIZE - 1)
        except OSError as exc:
            print(f"Erro no recv() do cliente: {exc}", file=sys.stderr)
            self._drop_client(conn)
            return None
        if not data:
            print(f"Socket {fd} (cliente) desconectou.")
            self._drop_client(conn)
            return None

        text = _decode(data)
        print(f"Recebido do cliente (fd {fd}): {text}")
        reply = format_client_reply(fd, text)
        try:
            conn.sendall(reply.encode("utf-8"))
        except OSError as exc:
            print(f"Erro ao enviar resposta ao cliente: {exc}", file=sys.stderr)
            self._drop_client(conn)
            return None
        print(f"Resposta enviada ao cliente (fd {fd}): '{reply}'")
        return reply

    def _readers(self) -> list[socket.socket]:
        readers = [self.listener, *self.clients]
        if self.p2p_listener is not None:
            readers.append(self.p2p_listener)
        if self.p2p is not None:
            readers.append(self.p2p)
        return sorted(readers, key=lambda s: s.fileno())

    def serve_once(self, timeout: float | None = None) -> int:
        """Wait up to ``timeout`` seconds for activity and handle it.

        Returns the number of sockets that were ready. Raises ``OSError``
        if waiting on the sockets fails.
        """
        if self.p2p is None and self.p2p_listener is None:
            print("Sem link P2P ativo ou escutando. Tentando restabelecer P2P...")
            self.initialize_p2p_link()

        print("\nAguardando atividade nos sockets...")
        ready, _, _ = select.select(self._readers(), [], [], timeout)
        if not ready:
            return 0
        print("Atividade detectada!")

        for sock in sorted(ready, key=lambda s: s.fileno()):
            if sock.fileno() == -1:
                continue
            if sock is self.listener:
                self.handle_new_client()
            elif sock is self.p2p_listener:
                self.handle_incoming_p2p()
            elif sock is self.p2p:
                self.handle_p2p_communication()
            elif sock in self.clients:
                self.handle_client_communication(sock)
        return len(ready)

    def serve_forever(self) -> None:
        """Handle activity until an error or interruption stops the server."""
        while True:
            self.serve_once(None)

    def close(self) -> None:
        """Close every socket the server holds."""
        for conn in list(self.clients):
            conn.close()
        self.clients.clear()
        if self.p2p is not None:
            self.p2p.close()
            self.p2p = None
        if self.p2p_listener is not None:
            self.p2p_listener.close()
            self.p2p_listener = None
        listener = getattr(self, "listener", None)
        if listener is not None:
            listener.close()


def main(argv: list[str] | None = None) -> int:
    """Run the server from the command line; return the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) < 3:
        print("Uso: server <peer_ipv4> <p2p_port> <client_listen_port>", file=sys.stderr)
        return 1

    peer_ip = args[0]
    p2p_port = _atoi(args[1])
    client_port = _atoi(args[2])

    try:
        server = SensorServer(peer_ip, p2p_port, client_port)
    except (OSError, ValueError) as exc:
        print(
            f"Falha crítica ao configurar socket de escuta para clientes: {exc}",
            file=sys.stderr,
        )
        return 1

    with server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            return 0
        except OSError as exc:
            print(f"Erro crítico no select: {exc}", file=sys.stderr)
            return 1
    return 0