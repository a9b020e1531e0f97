"""
WebSocket adapters. The browser runs the voice SDK and the camera; these
classes relay commands to it and expose its events to the CallAgent.
"""
import logging
from typing import Any, Dict, Union

from fastapi import WebSocket, WebSocketDisconnect

from prepwise.errors import MediaAccessError, TransportError
from prepwise.call.agent import CallAgent
from prepwise.call.transport import Camera, CallObserver, TransportSession

logger = logging.getLogger("prepwise.call.websocket")


class WebSocketChannel:
    """Outbound side of one client connection. Sends after close are dropped."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self.closed = False

    async def send(self, message: Dict[str, Any]) -> bool:
        if self.closed:
            return False
        try:
            await self.websocket.send_json(message)
            return True
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            logger.debug("[WebSocket] Send failed, marking closed: %s", e)
            self.closed = True
            return False


class WebSocketTransport(TransportSession):
    """Voice transport whose SDK lives in the connected browser."""

    def __init__(self, channel: WebSocketChannel):
        super().__init__()
        self.channel = channel

    async def start(self, target: Union[str, Dict[str, Any]], variables: Dict[str, Any]) -> None:
        sent = await self.channel.send({
            "type": "command",
            "command": "start",
            "target": target,
            "variables": variables,
        })
        if not sent:
            raise TransportError("client is not connected")

    async def stop(self) -> None:
        if not await self.channel.send({"type": "command", "command": "stop"}):
            raise TransportError("client is not connected")


class WebSocketCamera(Camera):
    def __init__(self, channel: WebSocketChannel):
        self.channel = channel

    async def acquire(self) -> None:
        if not await self.channel.send({"type": "camera", "enabled": True}):
            raise MediaAccessError("client is not connected")

    async def release(self) -> None:
        await self.channel.send({"type": "camera", "enabled": False})


class WebSocketObserver(CallObserver):
    def __init__(self, channel: WebSocketChannel):
        self.channel = channel

    async def on_status(self, status) -> None:
        await self.channel.send({"type": "status", "status": status.value})

    async def on_transcript(self, entry) -> None:
        await self.channel.send({"type": "transcript", "role": entry.role, "content": entry.content})

    async def on_speaking(self, speaking: bool) -> None:
        await self.channel.send({"type": "speaking", "speaking": speaking})

    async def on_alert(self, message: str) -> None:
        await self.channel.send({"type": "alert", "message": message})

    async def on_navigate(self, path: str) -> None:
        await self.channel.send({"type": "navigate", "path": path})


async def dispatch_client_message(agent: CallAgent, transport: TransportSession, message: Any) -> None:
    """Route one client frame to the agent or the transport."""
    if not isinstance(message, dict):
        logger.warning("[WebSocket] Ignoring non-object frame")
        return

    kind = message.get("type")
    if kind == "start-call":
        await agent.start_call()
    elif kind == "end-call":
        await agent.disconnect()
    elif kind == "toggle-video":
        await agent.toggle_video()
    elif kind == "transport-event":
        await transport.emit(message.get("event"), message.get("payload"))
    elif kind == "visibility":
        await agent.handle_visibility_change(bool(message.get("hidden")))
    elif kind == "network":
        await agent.handle_network_change(bool(message.get("online", True)))
    elif kind == "media-error":
        await agent.handle_media_error(message.get("message"))
    else:
        logger.warning("[WebSocket] Unknown message type %r", kind)
