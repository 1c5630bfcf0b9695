"""Pydantic Schemas"""
from .user import (
    UserCreate, UserAdminUpdate, UserUpdate, PasswordChange, UserResponse,
    LoginRequest, LoginResponse, SessionResponse,
)
from .link import (
    LinkCreate, LinkUpdate, LinkResponse, SuggestRequest, SuggestResponse,
    UnlockRequest, DestinationResponse,
)
from .bio import (
    BioProfileUpdate, BioProfileResponse, BioLinkCreate, BioLinkUpdate,
    BioLinkOrder, BioLinkMove, BioLinkResponse, PublicBioLink, PublicBioResponse,
)
from .dashboard import DashboardStats

__all__ = [
    "UserCreate", "UserAdminUpdate", "UserUpdate", "PasswordChange", "UserResponse",
    "LoginRequest", "LoginResponse", "SessionResponse",
    "LinkCreate", "LinkUpdate", "LinkResponse", "SuggestRequest", "SuggestResponse",
    "UnlockRequest", "DestinationResponse",
    "BioProfileUpdate", "BioProfileResponse", "BioLinkCreate", "BioLinkUpdate",
    "BioLinkOrder", "BioLinkMove", "BioLinkResponse", "PublicBioLink", "PublicBioResponse",
    "DashboardStats",
]
