"""Pydantic schemas."""
from modio_sync.schemas.filters import FieldFilter, FilterMethod, RequestFilter
from modio_sync.schemas.local_user import AuthenticationState, LocalUser, StoredUserData
from modio_sync.schemas.mod import LogoImageLocator, ModProfile, RequestPage, UserProfile

__all__ = [
    "AuthenticationState",
    "FieldFilter",
    "FilterMethod",
    "LocalUser",
    "LogoImageLocator",
    "ModProfile",
    "RequestFilter",
    "RequestPage",
    "StoredUserData",
    "UserProfile",
]
