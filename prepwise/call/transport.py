"""
Transport session interface: the live voice call as an event source that
accepts start/stop commands.
"""
import inspect
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

logger = logging.getLogger("prepwise.call.transport")


class TransportEvent(str, Enum):
    """Events a voice transport raises."""
    CALL_START = "call-start"
    CALL_END = "call-end"
    MESSAGE = "message"
    SPEECH_START = "speech-start"
    SPEECH_END = "speech-end"
    ERROR = "error"


TransportHandler = Callable[[Any], Union[None, Awaitable[None]]]
Unsubscribe = Callable[[], None]


class TransportSession(ABC):
    """Base class for voice transports.

    Handlers are awaited one after another, in subscription order, so an
    event is fully processed before ``emit`` returns.
    """

    def __init__(self):
        self._handlers: Dict[TransportEvent, List[TransportHandler]] = {}

    def on(self, event: TransportEvent, handler: TransportHandler) -> Unsubscribe:
        """
        Subscribe to an event.

        Returns:
            A callable that removes exactly this subscription
        """
        event = TransportEvent(event)
        self._handlers.setdefault(event, []).append(handler)
        logger.debug("Subscribed handler to %s", event.value)
        return lambda: self.off(event, handler)

    def off(self, event: TransportEvent, handler: TransportHandler) -> None:
        event = TransportEvent(event)
        try:
            self._handlers.get(event, []).remove(handler)
            logger.debug("Unsubscribed handler from %s", event.value)
        except ValueError:
            logger.warning("Handler not found for %s", event.value)

    def handler_count(self, event: Optional[TransportEvent] = None) -> int:
        if event is not None:
            return len(self._handlers.get(TransportEvent(event), []))
        return sum(len(handlers) for handlers in self._handlers.values())

    async def emit(self, event: Union[TransportEvent, str], payload: Any = None) -> None:
        """Deliver an event to its subscribers."""
        try:
            event = TransportEvent(event)
        except ValueError:
            logger.warning("Ignoring unknown transport event %r", event)
            return

        logger.debug("Emitting transport event %s", event.value)
        for handler in list(self._handlers.get(event, [])):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Error in transport handler for %s", event.value)

    @abstractmethod
    async def start(self, target: Union[str, Dict[str, Any]], variables: Dict[str, Any]) -> None:
        """Ask the runtime to start a call. Raises TransportError if it can't."""

    @abstractmethod
    async def stop(self) -> None:
        """Ask the runtime to end the call. Raises TransportError if it can't."""


class Camera(ABC):
    """Local video capture device."""

    @abstractmethod
    async def acquire(self) -> None:
        """Turn the camera on. Raises MediaAccessError when access is denied."""

    @abstractmethod
    async def release(self) -> None:
        """Turn the camera off."""


class CallObserver:
    """Receives what the caller should show or do. All hooks are optional."""

    async def on_status(self, status) -> None:
        pass

    async def on_transcript(self, entry) -> None:
        pass

    async def on_speaking(self, speaking: bool) -> None:
        pass

    async def on_alert(self, message: str) -> None:
        pass

    async def on_navigate(self, path: str) -> None:
        pass
