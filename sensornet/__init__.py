"""TCP sensor network: a select-based server with one peer link, a sensor client,
socket helpers and protocol constants."""

__version__ = "0.1.0"
__all__ = ["protocol", "network", "sensor", "server"]