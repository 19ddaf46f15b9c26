"""In-process change notification for committed snapshots.

Writers publish every committed snapshot under a topic; readers attach a
listener and get a callback per commit until they remove it. Topics used:

* ``game:{game_id}``   -- every committed snapshot of one game
* ``games``            -- every committed game snapshot
* ``invites:{user_id}`` -- an invite addressed to this user changed
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger("homegame.dal.subscriptions")

Listener = Callable[[Any], Any]


def game_topic(game_id: str) -> str:
    return f"game:{game_id}"


ALL_GAMES_TOPIC = "games"


def invites_topic(user_id: str) -> str:
    return f"invites:{user_id}"


class ListenerRegistration:
    """Handle returned by ``SnapshotBroker.listen``.

    ``remove()`` may be called any number of times.
    """

    def __init__(self, on_remove: Callable[[], None]) -> None:
        self._on_remove: Optional[Callable[[], None]] = on_remove

    @property
    def active(self) -> bool:
        return self._on_remove is not None

    def remove(self) -> None:
        if self._on_remove is None:
            return
        on_remove, self._on_remove = self._on_remove, None
        on_remove()


class SnapshotBroker:
    """Fan-out of committed snapshots to attached listeners."""

    def __init__(self) -> None:
        self._listeners: dict[str, dict[int, Listener]] = {}
        self._next_key = 0

    def listen(self, topic: str, listener: Listener) -> ListenerRegistration:
        key = self._next_key
        self._next_key += 1
        self._listeners.setdefault(topic, {})[key] = listener
        logger.debug("Listener %d attached to %s", key, topic)

        def _detach() -> None:
            listeners = self._listeners.get(topic)
            if listeners is None:
                return
            listeners.pop(key, None)
            if not listeners:
                del self._listeners[topic]
            logger.debug("Listener %d detached from %s", key, topic)

        return ListenerRegistration(_detach)

    def listener_count(self, topic: str) -> int:
        return len(self._listeners.get(topic, {}))

    async def publish(self, topic: str, payload: Any) -> None:
        """Deliver ``payload`` to every listener on ``topic``.

        A failing listener is logged and skipped; it never affects the
        writer that committed the snapshot or the other listeners.
        """
        for key, listener in list(self._listeners.get(topic, {}).items()):
            try:
                result = listener(payload)
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Listener %d on %s failed", key, topic)



async def listen_and_refresh(
    broker: SnapshotBroker,
    topic: str,
    refresh: Callable[[], Awaitable[None]],
    wants: Callable[[Any], bool] = lambda payload: True,
) -> ListenerRegistration:
    """Run ``refresh`` now, then again after each wanted publish on ``topic``.

    Later refreshes run on a worker task, never inside ``publish``. Publishes that arrive while a
    refresh is running fold into a single follow-up refresh. If the first
    refresh raises, nothing stays attached.
    """
    dirty = asyncio.Event()

    def _on_publish(payload: Any) -> None:
        if wants(payload):
            dirty.set()

    async def _worker() -> None:
        while True:
            await dirty.wait()
            dirty.clear()
            try:
                await refresh()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Refresh for %s failed", topic)

    subscription = broker.listen(topic, _on_publish)
    try:
        await refresh()
    except BaseException:
        subscription.remove()
        raise
    worker = asyncio.create_task(_worker())

    def _stop() -> None:
        subscription.remove()
        worker.cancel()

    return ListenerRegistration(_stop)


_broker = SnapshotBroker()


def get_broker() -> SnapshotBroker:
    """Return the process-wide broker."""
    return _broker
