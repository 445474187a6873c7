from .time_windows import TimeWindowHandler
from .request_limit import RequestLimit, MemoryRequestLimit
from .rate_limit_dependency import client_key_for, rate_limit_dependency


__all__ = [
    'TimeWindowHandler',
    'RequestLimit',
    'MemoryRequestLimit',
    'client_key_for',
    'rate_limit_dependency',
]
