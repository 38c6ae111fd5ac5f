from .correlation import CorrelationIDMiddleware, get_correlation_id
from .logging import LoggingMiddleware, get_client_ip, get_peer_ip, is_visitor_path

__all__ = [
    "CorrelationIDMiddleware",
    "LoggingMiddleware",
    "get_client_ip",
    "get_peer_ip",
    "is_visitor_path",
    "get_correlation_id",
]
