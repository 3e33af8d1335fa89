from .transport import HttpxTransport, PoliteTransport, require_ok
from .user_agent import DEFAULT_UA_LIST_URL, UserAgentRotator

__all__ = [
    "DEFAULT_UA_LIST_URL",
    "HttpxTransport",
    "PoliteTransport",
    "UserAgentRotator",
    "require_ok",
]
