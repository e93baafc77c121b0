from .base import JoinRequest, PlatformPort
from .parsers import JOIN_REQUEST_PARSERS, parse_join_request

__all__ = [
    "JoinRequest",
    "PlatformPort",
    "JOIN_REQUEST_PARSERS",
    "parse_join_request",
]
