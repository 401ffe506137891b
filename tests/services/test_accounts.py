"""Tests for user account operations and the user session."""
import pytest
from fakes import FakeModioApi

from modio_sync.core.config import Settings
from modio_sync.core.errors import NetworkError
from modio_sync.schemas.filters import RequestFilter
from modio_sync.schemas.local_user import AuthenticationState
from modio_sync.services.accounts import UserAccountManager
from modio_sync.services.mod_profiles import ModProfileRequestManager
from modio_sync.services.session import UserSession
from modio_sync.storage.user_data import LocalUserStore


@pytest.fixture
def accounts(session: UserSession) -> UserAccountManager:
    return UserAccountManager(session)


class TestAuthentication:
    """Tests for the email security code flow."""

    async def test__request_security_code__sends_email(
        self, accounts: UserAccountManager, api: FakeModioApi,
    ) -> None:
        """The email address is passed to the server."""
        await accounts.request_security_code("player@example.com")

        assert api.calls == [("send_security_code", "player@example.com")]

    async def test__authenticate__stores_token_and_profile(
        self,
        accounts: UserAccountManager,
        session: UserSession,
        api: FakeModioApi,
        settings: Settings,
    ) -> None:
        """A valid code yields a token, the user's profile, and a persisted record."""
        session.user.oauth_token = None

        profile = await accounts.authenticate_with_security_code("12345")

        assert profile.username == "player-one"
        assert session.user.oauth_token == "token-abc"
        assert session.user.profile == profile
        assert api.oauth_token == "token-abc"
        reloaded = LocalUserStore(settings.user_data_path).load()
        assert reloaded.oauth_token == "token-abc"
        assert reloaded.profile.id == 42

    async def test__authenticate__clears_token_rejection(
        self, accounts: UserAccountManager, session: UserSession,
    ) -> None:
        """Signing in again recovers from a rejected token."""
        session.user.was_token_rejected = True

        await accounts.authenticate_with_security_code("12345")

        assert session.user.authentication_state == AuthenticationState.VALID_TOKEN

    async def test__authenticate__bad_code__raises(
        self, accounts: UserAccountManager, session: UserSession,
    ) -> None:
        """An invalid code raises and leaves the user untouched."""
        session.user.oauth_token = None

        with pytest.raises(NetworkError):
            await accounts.authenticate_with_security_code("00000")

        assert session.user.oauth_token is None

    def test__mark_auth_token_rejected__updates_state(
        self, accounts: UserAccountManager, session: UserSession,
    ) -> None:
        """A rejected token no longer counts as authenticated."""
        accounts.mark_auth_token_rejected()

        assert session.user.authentication_state == AuthenticationState.REJECTED_TOKEN


class TestEnabledMods:
    """Tests for enabled mod ids."""

    def test__set_enabled_mod_ids__persists(
        self, accounts: UserAccountManager, settings: Settings,
    ) -> None:
        """Enabled mods are saved to disk."""
        accounts.set_enabled_mod_ids([3, 1, 3])

        assert accounts.get_enabled_mod_ids() == [3, 1]
        assert LocalUserStore(settings.user_data_path).load().enabled_mod_ids == [3, 1]

    def test__set_enabled_mod_ids__none_clears(self, accounts: UserAccountManager) -> None:
        """None is treated as an empty list."""
        accounts.set_enabled_mod_ids([1])
        accounts.set_enabled_mod_ids(None)

        assert accounts.get_enabled_mod_ids() == []

    def test__get_enabled_mod_ids__returns_copy(self, accounts: UserAccountManager) -> None:
        """Mutating the returned list does not change the user."""
        accounts.set_enabled_mod_ids([1])

        accounts.get_enabled_mod_ids().append(2)

        assert accounts.get_enabled_mod_ids() == [1]


class TestLogout:
    """Tests for logout()."""

    async def test__logout__resets_user_keeping_enabled_mods(
        self,
        accounts: UserAccountManager,
        session: UserSession,
        api: FakeModioApi,
    ) -> None:
        """Credentials and subscriptions are dropped, enabled mods are kept."""
        session.user.subscribed_mod_ids = [1, 2]
        session.user.queued_subscribes = [2]
        accounts.set_enabled_mod_ids([1])
        api.set_oauth_token("token-abc")

        accounts.logout()

        assert session.user.oauth_token is None
        assert session.user.subscribed_mod_ids == []
        assert session.user.queued_subscribes == []
        assert session.user.enabled_mod_ids == [1]
        assert api.oauth_token is None

    async def test__logout__clears_registered_caches(
        self, accounts: UserAccountManager, api: FakeModioApi,
    ) -> None:
        """Registered caches are emptied so the next user starts fresh."""
        profiles = ModProfileRequestManager(api)
        accounts.register_cache(profiles)
        await profiles.fetch_mod_profile_page(RequestFilter(), 0, 3)

        accounts.logout()

        assert profiles.request_cache.get_window(RequestFilter()) is None
        assert len(profiles.profile_cache) == 0


class TestUserSession:
    """Tests for loading and persisting the session user."""

    def test__load__restores_user_and_token(
        self, session: UserSession, user_store: LocalUserStore, api: FakeModioApi,
    ) -> None:
        """Loading reads the stored user and hands its token to the client."""
        session.user.subscribed_mod_ids = [9]
        session.persist()

        fresh = UserSession(user_store, api)
        user = fresh.load()

        assert user.subscribed_mod_ids == [9]
        assert api.oauth_token == "token-abc"

    def test__mark_token_rejected__persists(
        self, session: UserSession, settings: Settings,
    ) -> None:
        """The rejection is written to disk."""
        session.mark_token_rejected()

        assert LocalUserStore(settings.user_data_path).load().was_token_rejected is True
