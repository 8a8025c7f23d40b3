"""Domain entity for network reachability."""

from enum import Enum


class ConnectivityState(str, Enum):
    """The single authoritative reachability state of the process."""

    ONLINE = "online"
    OFFLINE = "offline"
    RECONNECTING = "reconnecting"
