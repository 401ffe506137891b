"""Pydantic schemas for mod.io profiles and paginated responses."""
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class LogoImageLocator(BaseModel):
    """Locations of a mod's logo at the sizes the server generates."""

    model_config = ConfigDict(extra="ignore")

    filename: str | None = None
    original: str | None = None
    thumb_320x180: str | None = None


class ModProfile(BaseModel):
    """Schema for a mod as returned by the mod.io API (only the fields the client uses)."""

    model_config = ConfigDict(extra="ignore")

    id: int
    game_id: int | None = None
    name: str = ""
    name_id: str | None = None
    summary: str | None = None
    profile_url: str | None = None
    date_updated: int | None = None  # Unix timestamp
    logo: LogoImageLocator | None = None


class UserProfile(BaseModel):
    """Schema for a mod.io user."""

    model_config = ConfigDict(extra="ignore")

    id: int
    username: str
    name_id: str | None = None
    profile_url: str | None = None


class RequestPage(BaseModel, Generic[T]):
    """
    One page of a paginated query.

    result_total is reported by the server and is the same for every page of
    the same query. items[i] is the result at logical index offset + i.
    """

    offset: int = 0
    size: int = 0  # Requested page size
    result_total: int = 0
    items: list[T] = []

    @property
    def end_index(self) -> int:
        """Exclusive logical index one past the last item of this page."""
        return self.offset + len(self.items)
