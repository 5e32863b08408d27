"""DeviceRegistry: binds transport connections to device identities.

The registry is the one piece of state shared by every connection handler,
so all of its operations take a single lock. Two maps are kept:

    unique id -> device id      grows as devices are first seen
    connection -> DeviceSession one entry per live, identified connection

Binding a unique id that has never been seen allocates the next device id
under the lock, so two connections registering the same new device at the
same moment always agree on its id.
"""

import itertools
import logging
import threading
from collections.abc import Mapping
from datetime import tzinfo

from minifinder.session.types import ConnectionContext, DeviceSession

__all__ = ["DeviceRegistry"]

logger = logging.getLogger(__name__)


class DeviceRegistry:
    """Concurrency-safe identity resolver.

    Usage::

        registry = DeviceRegistry()
        context = ConnectionContext(connection_id=1)
        registry.resolve(context, "860719020212696")  # explicit binding
        session = registry.resolve(context)           # later lookups

    Args:
        known_devices: Pre-provisioned unique id to device id mapping.
        register_unknown: Allocate ids for unique ids not in
            ``known_devices``. When False, such devices fail to resolve.
        time_zone: Time zone given to every new session; None means UTC.
    """

    def __init__(
        self,
        known_devices: Mapping[str, int] | None = None,
        register_unknown: bool = True,
        time_zone: tzinfo | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._device_ids: dict[str, int] = dict(known_devices or {})
        self._next_id = itertools.count(max(self._device_ids.values(), default=0) + 1)
        self._register_unknown = register_unknown
        self._time_zone = time_zone
        self._sessions: dict[ConnectionContext, DeviceSession] = {}

    def _device_id(self, unique_id: str) -> int | None:
        device_id = self._device_ids.get(unique_id)
        if device_id is None and self._register_unknown:
            device_id = next(self._next_id)
            self._device_ids[unique_id] = device_id
            logger.info("Registered new device %s as id %d", unique_id, device_id)
        return device_id

    def _bind(self, context: ConnectionContext, unique_id: str) -> DeviceSession | None:
        current = self._sessions.get(context)
        if current is not None and current.unique_id == unique_id:
            return current

        device_id = self._device_id(unique_id)
        if device_id is None:
            logger.warning("Unknown device %s on connection %d", unique_id, context.connection_id)
            return None

        session = DeviceSession(
            device_id=device_id,
            unique_id=unique_id,
            time_zone=self._time_zone,
        )
        self._sessions[context] = session
        return session

    def resolve(
        self,
        context: ConnectionContext,
        unique_id: str | None = None,
    ) -> DeviceSession | None:
        """Return the session for *context*, binding it if needed.

        With *unique_id*, the connection is (re)bound to that device. A
        connection that re-registers the same device keeps its existing
        session. Without it, the current binding is returned, falling back to
        ``context.default_unique_id`` when the connection has none.

        Returns:
            The bound session, or None when the device cannot be resolved.
        """
        with self._lock:
            if unique_id:
                return self._bind(context, unique_id)
            session = self._sessions.get(context)
            if session is None and context.default_unique_id:
                session = self._bind(context, context.default_unique_id)
            return session

    def release(self, context: ConnectionContext) -> None:
        """Drop the binding of a closed connection, if any."""
        with self._lock:
            self._sessions.pop(context, None)

    def sessions(self) -> list[DeviceSession]:
        """Snapshot of the currently bound sessions."""
        with self._lock:
            return list(self._sessions.values())
