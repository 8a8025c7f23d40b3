from .record_gateway import RecordGateway
from .session_provider import SessionProvider, SessionListener
from .reachability_probe import ReachabilityProbe

__all__ = [
    "RecordGateway",
    "SessionProvider",
    "SessionListener",
    "ReachabilityProbe",
]
