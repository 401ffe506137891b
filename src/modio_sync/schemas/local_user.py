"""Persisted state of the local user."""
from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator

from modio_sync.schemas.mod import UserProfile


class AuthenticationState(Enum):
    """Whether the local user can make authenticated requests."""

    NO_TOKEN = "no_token"
    REJECTED_TOKEN = "rejected_token"
    VALID_TOKEN = "valid_token"


def _dedupe(ids: list[int]) -> list[int]:
    """Drop repeated ids, keeping the first occurrence."""
    return list(dict.fromkeys(ids))


class LocalUser(BaseModel):
    """
    Local user record: credentials, enabled mods and subscription state.

    The id collections behave as sets but are stored as lists so the persisted
    file keeps a stable order.

    Invariants:
    - a mod id is never in both queued_subscribes and queued_unsubscribes
    - after a completed pull, no id in queued_unsubscribes is in subscribed_mod_ids
    """

    model_config = ConfigDict(validate_assignment=True)

    oauth_token: str | None = None
    was_token_rejected: bool = False
    profile: UserProfile | None = None
    enabled_mod_ids: list[int] = []
    subscribed_mod_ids: list[int] = []
    queued_subscribes: list[int] = []
    queued_unsubscribes: list[int] = []

    @field_validator(
        "enabled_mod_ids",
        "subscribed_mod_ids",
        "queued_subscribes",
        "queued_unsubscribes",
    )
    @classmethod
    def unique_ids(cls, v: list[int]) -> list[int]:
        """Keep id collections duplicate free."""
        return _dedupe(v)

    @property
    def authentication_state(self) -> AuthenticationState:
        """Derive the authentication state from the stored token."""
        if not self.oauth_token:
            return AuthenticationState.NO_TOKEN
        if self.was_token_rejected:
            return AuthenticationState.REJECTED_TOKEN
        return AuthenticationState.VALID_TOKEN

    @property
    def is_authenticated(self) -> bool:
        """True when requests can be made on the user's behalf."""
        return self.authentication_state == AuthenticationState.VALID_TOKEN


class StoredUserData(BaseModel):
    """
    Layout of the user data file.

    Several local users can be recorded; active_user_index points at the one in
    use and is -1 until a user has been written.
    """

    active_user_index: int = -1
    users: list[LocalUser] = []

    @property
    def active_user(self) -> LocalUser | None:
        """The active user, or None when no user has been stored."""
        if 0 <= self.active_user_index < len(self.users):
            return self.users[self.active_user_index]
        return None
