"""Connectivity infrastructure package."""

from .http_probe import HttpReachabilityProbe
from .os_signal import default_route_available

__all__ = ["HttpReachabilityProbe", "default_route_available"]
