"""Device identity resolution for connected trackers."""

from minifinder.session.registry import DeviceRegistry
from minifinder.session.types import ConnectionContext, DeviceSession

__all__ = ["ConnectionContext", "DeviceRegistry", "DeviceSession"]
