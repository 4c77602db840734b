"""Socket.IO transport for the event broadcaster."""

from typing import Any, Dict, Optional
from urllib.parse import parse_qs

import socketio

from ..config import Settings
from .broadcaster import ClientEvent, EventBroadcaster


def create_socket_server(settings: Settings) -> socketio.AsyncServer:
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=settings.allowed_origins,
        logger=settings.debug,
        engineio_logger=False,
    )


def handshake_params(environ: Dict[str, Any], auth: Optional[Any] = None) -> Dict[str, str]:
    """Connection parameters from the handshake query string.

    Values sent in the Socket.IO ``auth`` payload fill in anything the query
    string leaves out.
    """
    params = {key: values[-1] for key, values in parse_qs(environ.get("QUERY_STRING", "")).items()}
    if isinstance(auth, dict):
        for key in ("userId", "role"):
            if not params.get(key) and auth.get(key):
                params[key] = str(auth[key])
    return params


class SocketGateway:
    """Routes Socket.IO traffic to and from an EventBroadcaster."""

    def __init__(self, broadcaster: EventBroadcaster, sio: socketio.AsyncServer) -> None:
        self.broadcaster = broadcaster
        self.sio = sio

        sio.on("connect", self.on_connect)
        sio.on("disconnect", self.on_disconnect)
        sio.on(ClientEvent.OWNER_JOIN.value, self.on_owner_join)
        sio.on(ClientEvent.OWNER_LEAVE.value, self.on_owner_leave)
        broadcaster.subscribe(self.emit)

    async def emit(self, event: str, payload: Any) -> None:
        # Every event goes to every connected socket
        await self.sio.emit(event, payload)

    async def on_connect(self, sid: str, environ: Dict[str, Any], auth: Optional[Any] = None) -> None:
        await self.broadcaster.connect(sid, handshake_params(environ, auth))

    async def on_disconnect(self, sid: str, *args: Any) -> None:
        await self.broadcaster.disconnect(sid)

    async def on_owner_join(self, sid: str, *args: Any) -> None:
        await self.broadcaster.owner_join(sid)

    async def on_owner_leave(self, sid: str, *args: Any) -> None:
        await self.broadcaster.owner_leave(sid)
