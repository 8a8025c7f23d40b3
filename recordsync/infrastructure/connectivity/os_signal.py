"""OS-reported online flag."""

import socket

# Only the route lookup matters: a UDP connect sends no packets.
_ROUTE_CHECK_ADDRESS = ("192.0.2.1", 53)


def default_route_available() -> bool:
    """True when the OS has a route to the public internet.

    This is the passive signal: it says an interface is up, not that a
    remote host answers.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.connect(_ROUTE_CHECK_ADDRESS)
        return True
    except OSError:
        return False
    finally:
        sock.close()
