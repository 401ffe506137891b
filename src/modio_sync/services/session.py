"""The local user's state shared by the account and subscription services."""
from modio_sync.clients.base import ModioApi
from modio_sync.schemas.local_user import LocalUser
from modio_sync.storage.user_data import LocalUserStore


class UserSession:
    """
    Owns the active LocalUser and its persistence.

    Replaces process-wide user state: every service working on the user receives
    the same session, and tests build their own.
    """

    def __init__(self, store: LocalUserStore, api: ModioApi) -> None:
        self.store = store
        self.api = api
        self.user = LocalUser()

    def load(self) -> LocalUser:
        """Load the user from storage and hand its token to the API client."""
        self.user = self.store.load()
        self.api.set_oauth_token(self.user.oauth_token)
        return self.user

    def persist(self) -> bool:
        """Write the whole user record to storage."""
        return self.store.save(self.user)

    def mark_token_rejected(self) -> None:
        """Record that the server refused the user's token, and persist."""
        self.user.was_token_rejected = True
        self.persist()
