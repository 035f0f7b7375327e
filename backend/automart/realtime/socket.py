"""Socket.IO fan-out for row-change notifications.

Clients join rooms named ``<table>`` or ``<table>:<column>=eq.<value>`` and
receive ``postgres_changes``-style payloads. When SocketIO is not running the
emitter is a no-op.
"""

from __future__ import annotations

from typing import Any, Dict

from flask import current_app
from flask_socketio import join_room, leave_room

from automart.extensions import socketio
from automart.services.realtime import parse_filter, room_name

CHANGE_EVENT = "row_change"


def emit_change(room: str, payload: Dict[str, Any]) -> bool:
    """Emit a change to a room.

    Returns True if emitted via SocketIO, False if SocketIO is disabled.
    """
    if getattr(socketio, "server", None) is None:
        return False

    try:
        socketio.emit(CHANGE_EVENT, payload, to=room)
        return True
    except Exception:
        current_app.logger.warning("socketio emit failed for room %s", room)
        return False


def _room_from(data: Dict[str, Any]) -> str | None:
    table = (data or {}).get("table")
    if not table:
        return None
    expr = (data or {}).get("filter") or None
    try:
        parse_filter(expr)
    except ValueError:
        return None
    return room_name(str(table), expr)


@socketio.on("subscribe")
def _on_subscribe(data):
    room = _room_from(data)
    if not room:
        return {"ok": False, "message": "table and a column=eq.value filter are required"}
    join_room(room)
    return {"ok": True, "room": room}


@socketio.on("unsubscribe")
def _on_unsubscribe(data):
    room = _room_from(data)
    if not room:
        return {"ok": False}
    leave_room(room)
    return {"ok": True, "room": room}
