"""Chat gateway and vendor adapters"""

from .base import ChatResult, HTTPRequest, Message, Provider, RequestOptions, StreamEvent
from .gateway import Gateway
from .transport import Transport

__all__ = [
    "ChatResult",
    "Gateway",
    "HTTPRequest",
    "Message",
    "Provider",
    "RequestOptions",
    "StreamEvent",
    "Transport",
]
