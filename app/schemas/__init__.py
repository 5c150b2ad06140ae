from .auth import AuthUser, Credentials, SessionResponse, SignUpResponse
from .common import ErrorResponse, OkResponse
from .points import NearbyPointItem, NearbyPointsResponse, SearchOrigin
from .waste_type import WasteTypeIdResponse, WasteTypeItem, WasteTypeListResponse

__all__ = [
    "AuthUser",
    "Credentials",
    "ErrorResponse",
    "NearbyPointItem",
    "NearbyPointsResponse",
    "OkResponse",
    "SearchOrigin",
    "SessionResponse",
    "SignUpResponse",
    "WasteTypeIdResponse",
    "WasteTypeItem",
    "WasteTypeListResponse",
]
