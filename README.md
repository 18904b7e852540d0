# sensornet

sensornet is a small TCP sensor network. Sensor clients connect to a server.
Each server keeps at most one peer-to-peer link to another server.
The package uses only the standard library. Log output is in Portuguese.

## Server

```
sensornet-server <peer_ipv4> <p2p_port> <client_listen_port>
```

On start, the server listens for sensor clients on `client_listen_port` on every
interface. It then tries to connect to the peer at `peer_ipv4:p2p_port`. If the peer
cannot be reached, the server listens on `p2p_port` itself and waits for the peer to
connect. Once a peer connects, the server closes that listening socket.

A server holds at most one peer link:

- When a peer connects while a link already exists, the server closes the new connection.
- When the link drops, or there is neither a link nor a listener, the server tries to set
  it up again at the start of the next loop.

Data that arrives from the peer is logged and nothing more.

Each message from a client is logged. The server then replies to that client with:

```
Servidor: Msg recebida do cliente <n>: '<message>'
```

Here `<n>` is the client socket's file descriptor. The reply is cut off at
`sensornet.network.REPLY_LIMIT` (559) bytes. A client that disconnects, or whose reply
cannot be sent, is closed and forgotten.

The command exits with status 1 in three cases: too few arguments, the client port cannot
be bound, or waiting on the sockets fails. Ctrl-C stops it with status 0.

To run a server from Python:

```python
from sensornet.server import SensorServer

with SensorServer("127.0.0.1", 64000, 50000) as server:
    server.serve_forever()
```

Other parts of `SensorServer`:

- `serve_once(timeout)` runs a single round of the select loop. It returns the number of
  sockets that were ready, or 0 if the timeout passed. Use it to drive the server from
  your own code or from tests.
- `client_address` gives the address of the client listening socket.
- `clients`, `p2p` and `p2p_listener` hold the open sockets.
- `close()` closes all of them.

## Sensor

```
sensornet-sensor <server_ipv4> <server_client_listen_port>
```

The sensor connects to the server and sends the greeting
`Ola Servidor, aqui eh o Sensor!`. It prints the reply and exits. On failure it exits with
status 1.

To do the same from Python:

```python
from sensornet.sensor import exchange

reply = exchange("127.0.0.1", 50000, "hello")
```

`exchange` reads at most 499 bytes of the reply and returns it as text. It returns `None`
if the server closed the connection without answering. It raises `SensorError` in these
cases:

- the address is not a dotted IPv4 address;
- the port is out of range;
- connecting, sending or receiving fails.

## Socket helpers

`sensornet.network` provides the following:

- `create_listening_socket(port, backlog, host="")` returns a listening TCP socket with
  `SO_REUSEADDR` set.
- `connect_peer(ip, port)` opens an active connection to a peer.
- `format_client_reply(client_id, text)` builds the reply shown above.

## Protocol constants

`sensornet.protocol` defines these limits:

- `MAX_MSG_SIZE` (500 bytes)
- `MAX_PEERS` (1)
- `MAX_CLIENTS` (15)

It also defines the message codes as integer enums: `MessageCode`, `ErrorCode` and
`OkCode`. `str()` of an `ErrorCode` or `OkCode` gives its two-digit form, such as `"09"`.

## What it does not do

The server and sensor exchange plain text only. The message codes in
`sensornet.protocol` are defined, but nothing parses them or acts on them:

- sensors are not registered;
- no alerts, locations or status requests are handled;
- the `MAX_CLIENTS` limit is not enforced;
- peer messages are only logged.