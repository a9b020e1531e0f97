"""
Call session state: status, transcript log and the local media flags.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List

from prepwise.errors import PrepWiseError
from prepwise.schemas.feedback import TranscriptEntry

logger = logging.getLogger("prepwise.call.session")


class CallStatus(str, Enum):
    INACTIVE = "INACTIVE"
    CONNECTING = "CONNECTING"
    ACTIVE = "ACTIVE"
    FINISHED = "FINISHED"


class CallPurpose(str, Enum):
    """Open-ended assistant setup vs. a question-driven interview."""
    GENERATE = "generate"
    INTERVIEW = "interview"


# Every edge the machine may take. Reset to INACTIVE is allowed from anywhere
# the call has left INACTIVE.
ALLOWED_TRANSITIONS: Dict[CallStatus, FrozenSet[CallStatus]] = {
    CallStatus.INACTIVE: frozenset({CallStatus.CONNECTING}),
    CallStatus.CONNECTING: frozenset({CallStatus.ACTIVE, CallStatus.INACTIVE}),
    CallStatus.ACTIVE: frozenset({CallStatus.FINISHED, CallStatus.INACTIVE}),
    CallStatus.FINISHED: frozenset({CallStatus.INACTIVE}),
}


class InvalidTransition(PrepWiseError):
    """A status change outside ALLOWED_TRANSITIONS was attempted."""


@dataclass
class CallSession:
    """State of a single call. A new call always starts a new session."""
    status: CallStatus = CallStatus.INACTIVE
    transcript_log: List[TranscriptEntry] = field(default_factory=list)
    speaking: bool = False
    video_enabled: bool = False

    def can_transition(self, new_status: CallStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS[self.status]

    def transition(self, new_status: CallStatus) -> None:
        if not self.can_transition(new_status):
            raise InvalidTransition(f"{self.status.value} -> {new_status.value}")
        logger.debug("Call status %s -> %s", self.status.value, new_status.value)
        self.status = new_status
        if new_status != CallStatus.ACTIVE:
            self.speaking = False

    def append(self, entry: TranscriptEntry) -> None:
        """Add a finalized utterance. Only an active call records transcript."""
        if self.status != CallStatus.ACTIVE:
            raise InvalidTransition(f"transcript is frozen while {self.status.value}")
        self.transcript_log.append(entry)

