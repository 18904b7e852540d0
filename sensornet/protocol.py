"""Message codes, error codes and limits shared by the sensor network."""

from enum import IntEnum

MAX_MSG_SIZE = 500
"""Largest message, in bytes, exchanged on any socket."""

MAX_PEERS = 1
"""Each server keeps at most one peer connection."""

MAX_CLIENTS = 15
"""Each server handles up to this many clients."""


class MessageCode(IntEnum):
    """Codes that open every protocol message.

    Status and location-list requests share a code, as do their responses;
    the kind of server receiving the message tells them apart.
    """

    OK = 0

    REQ_CONNPEER = 20
    RES_CONNPEER = 21
    REQ_DISCPEER = 22
    REQ_CONNSEN = 23
    RES_CONNSEN = 24
    REQ_DISCSEN = 25

    REQ_CHECKALERT = 36
    RES_CHECKALERT = 37
    REQ_SENSLOC = 38
    RES_SENSLOC = 39
    REQ_SENSSTATUS = 40
    REQ_LOCLIST = 40
    RES_SENSSTATUS = 41
    RES_LOCLIST = 41

    ERROR = 255


class ErrorCode(IntEnum):
    """Payload codes carried by an ERROR message."""

    PEER_LIMIT_EXCEEDED = 1
    PEER_NOT_FOUND = 2
    SENSOR_LIMIT_EXCEEDED = 9
    SENSOR_NOT_FOUND = 10

    def __str__(self) -> str:
        return f"{self.value:02d}"


class OkCode(IntEnum):
    """Payload codes carried by an OK message."""

    SUCCESSFUL_DISCONNECT = 1
    SUCCESSFUL_CREATE = 2
    SUCCESSFUL_UPDATE = 3

    def __str__(self) -> str:
        return f"{self.value:02d}"