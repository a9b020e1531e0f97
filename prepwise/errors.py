"""Error taxonomy shared by the call state machine and the feedback pipeline."""


class PrepWiseError(Exception):
    """Base class for application errors."""


class ConfigurationError(PrepWiseError):
    """A call was requested without a usable start target."""


class TransportError(PrepWiseError):
    """The voice transport reported an error or rejected a command."""


class ConnectivityLoss(PrepWiseError):
    """The client went offline while a call was active."""


class MediaAccessError(PrepWiseError):
    """The camera could not be acquired (usually a permission denial)."""


class FeedbackGenerationError(PrepWiseError):
    """Feedback could not be produced or stored.

    ``stage`` is ``"model"`` or ``"persistence"``; callers only ever see
    success or failure, the stage is kept for logs.
    """

    def __init__(self, message: str, stage: str):
        super().__init__(message)
        self.stage = stage


class FeedbackOwnershipError(PrepWiseError):
    """A supplied feedback id names a record owned by another user or interview."""
