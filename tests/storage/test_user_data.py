"""Tests for the local user data file."""
import json
import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from modio_sync.schemas.local_user import LocalUser, StoredUserData
from modio_sync.storage.user_data import LocalUserStore


class TestLoad:
    """Tests for LocalUserStore.load()."""

    def test__load__missing_file__default_user(self, tmp_path: Path) -> None:
        """A first run starts with an empty user."""
        store = LocalUserStore(tmp_path / "user.data")

        user = store.load()

        assert user == LocalUser()

    def test__load__empty_file__default_user(self, tmp_path: Path) -> None:
        """An empty file is treated as no data."""
        path = tmp_path / "user.data"
        path.write_text("   ")

        assert LocalUserStore(path).load() == LocalUser()

    def test__load__corrupt_file__default_user(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Unparseable data does not raise and is logged with the file path."""
        path = tmp_path / "user.data"
        path.write_text("{not json")

        with caplog.at_level(logging.WARNING):
            assert LocalUserStore(path).load() == LocalUser()

        record = next(r for r in caplog.records if r.message == "user_data_parse_failed")
        assert record.path == str(path)

    def test__load__returns_active_user(self, tmp_path: Path) -> None:
        """The user at active_user_index is loaded."""
        path = tmp_path / "user.data"
        stored = StoredUserData(
            active_user_index=1,
            users=[LocalUser(oauth_token="first"), LocalUser(oauth_token="second")],
        )
        path.write_text(stored.model_dump_json())

        assert LocalUserStore(path).load().oauth_token == "second"

    def test__load__returns_copy(self, tmp_path: Path) -> None:
        """Mutating the loaded user does not change the store's record until saved."""
        path = tmp_path / "user.data"
        store = LocalUserStore(path)
        store.save(LocalUser(subscribed_mod_ids=[1]))

        user = store.load()
        user.subscribed_mod_ids = [1, 2]

        assert store.load().subscribed_mod_ids == [1]


class TestSave:
    """Tests for LocalUserStore.save()."""

    def test__save__creates_directory_and_file(self, tmp_path: Path) -> None:
        """Saving creates missing parent directories."""
        path = tmp_path / "game-1" / "user.data"
        store = LocalUserStore(path)

        assert store.save(LocalUser(oauth_token="token")) is True

        data = json.loads(path.read_text())
        assert data["active_user_index"] == 0
        assert data["users"][0]["oauth_token"] == "token"

    def test__save__round_trips_every_field(self, tmp_path: Path) -> None:
        """Everything written is read back."""
        path = tmp_path / "user.data"
        user = LocalUser(
            oauth_token="token",
            was_token_rejected=True,
            enabled_mod_ids=[1],
            subscribed_mod_ids=[1, 2],
            queued_subscribes=[2],
            queued_unsubscribes=[3],
        )

        LocalUserStore(path).save(user)

        assert LocalUserStore(path).load() == user

    def test__save__replaces_active_user_only(self, tmp_path: Path) -> None:
        """Other recorded users are preserved when the active one is saved."""
        path = tmp_path / "user.data"
        stored = StoredUserData(
            active_user_index=0,
            users=[LocalUser(oauth_token="active"), LocalUser(oauth_token="other")],
        )
        path.write_text(stored.model_dump_json())
        store = LocalUserStore(path)
        store.load()

        store.save(LocalUser(oauth_token="updated"))

        reloaded = StoredUserData.model_validate_json(path.read_text())
        assert [u.oauth_token for u in reloaded.users] == ["updated", "other"]

    def test__save__leaves_no_temp_files(self, tmp_path: Path) -> None:
        """Only the data file remains after a write."""
        path = tmp_path / "user.data"
        store = LocalUserStore(path)

        store.save(LocalUser())
        store.save(LocalUser(oauth_token="token"))

        assert sorted(p.name for p in tmp_path.iterdir()) == ["user.data"]

    def test__save__failed_write__keeps_previous_file(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A failed replace returns False, logs the error and leaves the old file intact."""
        path = tmp_path / "user.data"
        store = LocalUserStore(path)
        store.save(LocalUser(oauth_token="old"))

        with patch("modio_sync.storage.user_data.os.replace", side_effect=OSError("disk full")):
            with caplog.at_level(logging.WARNING):
                assert store.save(LocalUser(oauth_token="new")) is False

        record = next(r for r in caplog.records if r.message == "user_data_write_failed")
        assert record.error == "disk full"
        assert LocalUserStore(path).load().oauth_token == "old"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["user.data"]

    def test__save__unwritable_directory__returns_false(self, tmp_path: Path) -> None:
        """A path that cannot be created is reported, not raised."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        store = LocalUserStore(blocker / "user.data")

        assert store.save(LocalUser()) is False
        assert os.path.isfile(blocker)
