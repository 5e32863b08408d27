"""Device session types."""

from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Any

from minifinder.protocol.types import Position


@dataclass(frozen=True)
class ConnectionContext:
    """Identifies one transport connection.

    The transport creates one context per accepted connection and passes the
    same object with every sentence it delivers, so it can be used as the key
    of the connection's session binding.

    Attributes:
        connection_id: Identifier unique among live connections.
        remote_address: Peer address, for diagnostics.
        default_unique_id: Device identifier known out of band (e.g. from a
            fixed port-to-device mapping). Used when the device has not
            registered itself on this connection.
    """

    connection_id: int
    remote_address: tuple[str, int] | None = None
    default_unique_id: str | None = None


@dataclass
class DeviceSession:
    """A device bound to a connection.

    Attributes:
        device_id: Internal numeric id of the device.
        unique_id: Identifier the device reported for itself.
        time_zone: Zone the device's clock runs in; None means UTC.
        last_position: Most recent record decoded with a fix of its own.
            Used to complete records that carry no fix.
        attributes: Arbitrary per-device overrides.
    """

    device_id: int
    unique_id: str
    time_zone: tzinfo | None = None
    last_position: Position | None = None
    attributes: dict[str, Any] = field(default_factory=dict)

    def set(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)
