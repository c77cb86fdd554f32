from .client import build_http_client, request_with_retry
from .errors import StakehouseHTTPError, StakehouseHTTPNetworkError, StakehouseHTTPStatusError

__all__ = [
    "build_http_client",
    "request_with_retry",
    "StakehouseHTTPError",
    "StakehouseHTTPNetworkError",
    "StakehouseHTTPStatusError",
]
