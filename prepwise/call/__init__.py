"""Voice call lifecycle: session state, transport interface and the call agent."""

from prepwise.call.session import CallStatus, CallPurpose, CallSession, InvalidTransition
from prepwise.call.transport import TransportEvent, TransportSession, Camera, CallObserver
from prepwise.call.agent import CallAgent, CallConfig, CallTarget

__all__ = [
    "CallStatus",
    "CallPurpose",
    "CallSession",
    "InvalidTransition",
    "TransportEvent",
    "TransportSession",
    "Camera",
    "CallObserver",
    "CallAgent",
    "CallConfig",
    "CallTarget",
]
