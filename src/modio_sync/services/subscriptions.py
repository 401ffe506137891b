"""
Reconciliation of local subscription intent with the server.

Subscribing or unsubscribing changes the local state immediately and queues the
change. push_subscription_changes() sends the queued changes to the server and
pull_subscription_changes() folds the server's subscription list back into the
local state.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable

from modio_sync.core.config import Settings
from modio_sync.core.errors import ModioError, NetworkError
from modio_sync.schemas.filters import RequestFilter
from modio_sync.schemas.mod import ModProfile
from modio_sync.services.session import UserSession

logger = logging.getLogger(__name__)

# Already (un)subscribed, or the mod no longer exists: the push has nothing left to do
EFFECTIVELY_SUCCESSFUL_STATUSES = frozenset({400, 404})


class SubscriptionReconciler:
    """Keeps the local user's subscriptions in step with the server."""

    def __init__(self, session: UserSession, settings: Settings) -> None:
        self._session = session
        self._settings = settings

    def subscribe(self, mod_id: int) -> None:
        """
        Subscribe locally and queue the change for the server.

        Cancels a pending unsubscribe for the same mod instead of queueing.
        """
        user = self._session.user
        if mod_id not in user.subscribed_mod_ids:
            user.subscribed_mod_ids = [*user.subscribed_mod_ids, mod_id]

        if mod_id in user.queued_unsubscribes:
            user.queued_unsubscribes = [i for i in user.queued_unsubscribes if i != mod_id]
        elif mod_id not in user.queued_subscribes:
            user.queued_subscribes = [*user.queued_subscribes, mod_id]

        self._session.persist()

    def unsubscribe(self, mod_id: int) -> None:
        """
        Unsubscribe locally and queue the change for the server.

        Cancels a pending subscribe for the same mod instead of queueing.
        """
        user = self._session.user
        user.subscribed_mod_ids = [i for i in user.subscribed_mod_ids if i != mod_id]

        if mod_id in user.queued_subscribes:
            user.queued_subscribes = [i for i in user.queued_subscribes if i != mod_id]
        elif mod_id not in user.queued_unsubscribes:
            user.queued_unsubscribes = [*user.queued_unsubscribes, mod_id]

        self._session.persist()

    async def _push_one(
        self, action: Callable[[int], Awaitable[None]], mod_id: int, kind: str,
    ) -> tuple[bool, ModioError | None]:
        """Send one queued change. Returns (pushed, error)."""
        try:
            await action(mod_id)
        except NetworkError as e:
            if e.status_code in EFFECTIVELY_SUCCESSFUL_STATUSES:
                logger.info(
                    "subscription_push_resolved",
                    extra={"mod_id": mod_id, "kind": kind, "status_code": e.status_code},
                )
                return True, None
            logger.warning(
                "subscription_push_failed",
                extra={"mod_id": mod_id, "kind": kind, "status_code": e.status_code},
            )
            return False, e
        return True, None

    async def push_subscription_changes(self) -> ModioError | None:
        """
        Send every queued subscribe and unsubscribe to the server concurrently.

        HTTP 400 and 404 responses count as pushed, since the server is already in
        (or can never reach) the desired state. Any other failure leaves that mod
        queued for the next push without affecting the rest of the batch. Queues
        are updated and persisted once, after every call has finished.

        Returns:
            The last error encountered, or None if every call succeeded.
        """
        user = self._session.user
        if not user.is_authenticated:
            return None

        subscribes = list(user.queued_subscribes)
        unsubscribes = list(user.queued_unsubscribes)
        if not subscribes and not unsubscribes:
            return None

        api = self._session.api
        results = await asyncio.gather(
            *(self._push_one(api.subscribe_to_mod, mod_id, "subscribe") for mod_id in subscribes),
            *(self._push_one(api.unsubscribe_from_mod, mod_id, "unsubscribe") for mod_id in unsubscribes),
        )

        subscribe_results = results[:len(subscribes)]
        unsubscribe_results = results[len(subscribes):]
        pushed_subscribes = {
            mod_id for mod_id, (pushed, _) in zip(subscribes, subscribe_results, strict=True) if pushed
        }
        pushed_unsubscribes = {
            mod_id for mod_id, (pushed, _) in zip(unsubscribes, unsubscribe_results, strict=True) if pushed
        }

        user.queued_subscribes = [i for i in user.queued_subscribes if i not in pushed_subscribes]
        user.queued_unsubscribes = [i for i in user.queued_unsubscribes if i not in pushed_unsubscribes]

        last_error: ModioError | None = None
        for _, error in results:
            if error is not None:
                last_error = error
                if isinstance(error, NetworkError) and error.is_authentication_invalid:
                    user.was_token_rejected = True

        self._session.persist()
        logger.info(
            "subscription_push_completed",
            extra={
                "pushed": len(pushed_subscribes) + len(pushed_unsubscribes),
                "remaining": len(user.queued_subscribes) + len(user.queued_unsubscribes),
            },
        )
        return last_error

    async def _fetch_remote_subscriptions(self) -> list[ModProfile]:
        """Fetch every page of the user's subscriptions for the configured game."""
        request_filter = RequestFilter().with_filter("game_id", self._settings.game_id)
        page_size = self._settings.max_page_size
        profiles: list[ModProfile] = []
        offset = 0

        while True:
            try:
                page = await self._session.api.get_user_subscriptions(request_filter, offset, page_size)
            except NetworkError as e:
                if e.is_authentication_invalid:
                    self._session.mark_token_rejected()
                raise
            profiles.extend(page.items)
            # The server may cap the page below the requested size
            offset = page.offset + len(page.items)
            if not page.items or page.result_total <= offset:
                return profiles

    async def pull_subscription_changes(self) -> list[ModProfile]:
        """
        Fetch the server's subscription list and reconcile local state with it.

        - Remote subscriptions matching a queued subscribe confirm it.
        - Remote subscriptions the user has queued to unsubscribe are ignored.
        - Local subscriptions missing remotely are dropped, unless their subscribe
          is still queued.
        - Any other remote subscription is new and is added locally.

        Returns:
            Profiles of the subscriptions that were new to the local state.

        Raises:
            NetworkError: If any page could not be fetched. Subscription state is unchanged.
        """
        user = self._session.user
        if not user.is_authenticated:
            return []

        remote_profiles = await self._fetch_remote_subscriptions()

        queued_subscribes = set(user.queued_subscribes)
        queued_unsubscribes = set(user.queued_unsubscribes)
        subscribed = list(user.subscribed_mod_ids)

        contradictions = [i for i in subscribed if i in queued_unsubscribes]
        if contradictions:
            logger.warning(
                "logic_violation",
                extra={
                    "detail": "mods queued for unsubscribe are still subscribed",
                    "mod_ids": contradictions,
                },
            )
            subscribed = [i for i in subscribed if i not in queued_unsubscribes]

        local_only = set(subscribed)
        confirmed: list[int] = []
        new_profiles: dict[int, ModProfile] = {}
        seen: set[int] = set()
        for profile in remote_profiles:
            mod_id = profile.id
            if mod_id in seen:
                continue
            seen.add(mod_id)
            if mod_id in queued_subscribes:
                queued_subscribes.discard(mod_id)
                local_only.discard(mod_id)
                confirmed.append(mod_id)
            elif mod_id in queued_unsubscribes:
                continue
            elif mod_id in local_only:
                local_only.discard(mod_id)
            else:
                new_profiles[mod_id] = profile

        removed = {i for i in local_only if i not in queued_subscribes}
        subscribed = [i for i in subscribed if i not in removed]
        for mod_id in [*confirmed, *new_profiles]:
            if mod_id not in subscribed:
                subscribed.append(mod_id)

        user.subscribed_mod_ids = subscribed
        user.queued_subscribes = [i for i in user.queued_subscribes if i in queued_subscribes]
        self._session.persist()

        logger.info(
            "subscription_pull_completed",
            extra={
                "remote": len(remote_profiles),
                "added": len(new_profiles),
                "removed": len(removed),
                "confirmed": len(confirmed),
            },
        )
        return list(new_profiles.values())
