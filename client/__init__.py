from client.api_client import PlotTwistClient
from client.exceptions import ApiError, ApiNotFound, ApiUnauthorized, ApiUnavailable
from client.session import RefreshResult, UserSession

__all__ = [
    "ApiError",
    "ApiNotFound",
    "ApiUnauthorized",
    "ApiUnavailable",
    "PlotTwistClient",
    "RefreshResult",
    "UserSession",
]
