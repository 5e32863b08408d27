"""JSON formatting of decoded records."""

import json

from minifinder.protocol import Position

__all__ = ["format_position_message"]


def format_position_message(position: Position) -> str:
    """Serialize a position into a JSON string for WebSocket transmission."""
    return json.dumps({
        "type": "position",
        "protocol": position.protocol,
        "device_id": position.device_id,
        "time": position.time.isoformat() if position.time is not None else None,
        "valid": position.valid,
        "outdated": position.outdated,
        "lat": position.latitude,
        "lon": position.longitude,
        "alt": position.altitude,
        "speed_knots": position.speed,
        "course": position.course,
        "attributes": {key.value: value for key, value in position.attributes.items()},
    })
