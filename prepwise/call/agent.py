"""
Call agent: drives a CallSession from transport events and user actions, and
hands finished interview transcripts to the feedback pipeline.
"""
import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import ValidationError

from prepwise.config import CALL_CONNECT_TIMEOUT_SECONDS
from prepwise.constants import INTERVIEWER, HOME_PATH, FEEDBACK_PATH
from prepwise.errors import (
    ConfigurationError,
    ConnectivityLoss,
    FeedbackGenerationError,
    MediaAccessError,
    TransportError,
)
from prepwise.schemas.feedback import FeedbackRequest, TranscriptEntry
from prepwise.call.session import CallPurpose, CallSession, CallStatus
from prepwise.call.transport import Camera, CallObserver, TransportEvent, TransportSession

logger = logging.getLogger("prepwise.call.agent")

START_FAILED_ALERT = "Failed to start the interview. Please try again."
TRANSPORT_ERROR_ALERT = "The call encountered an error. Please try again."
CONNECT_TIMEOUT_ALERT = "Could not reach the interviewer. Please try again."
CONNECTIVITY_ALERT = "Lost connection. Please try starting the interview again."
CAMERA_ALERT = "Could not access camera. Please make sure you have granted camera permissions."


@dataclass
class CallTarget:
    """What the transport is started with."""
    target: Union[str, Dict[str, Any]]
    variables: Dict[str, Any]


@dataclass
class CallConfig:
    purpose: CallPurpose
    user_name: str
    user_id: Optional[str] = None
    interview_id: Optional[str] = None
    feedback_id: Optional[str] = None
    questions: Optional[List[str]] = None
    workflow_id: Optional[str] = None
    interviewer: Dict[str, Any] = field(default_factory=lambda: INTERVIEWER)

    def resolve_target(self) -> CallTarget:
        """
        Pick the start target for this purpose.

        Raises:
            ConfigurationError: No workflow id (generate) or no questions (interview)
        """
        if self.purpose == CallPurpose.GENERATE:
            if not self.workflow_id:
                raise ConfigurationError("Voice workflow ID not configured")
            return CallTarget(
                target=self.workflow_id,
                variables={"username": self.user_name, "userid": self.user_id},
            )

        questions = [q for q in (self.questions or []) if q and q.strip()]
        if not self.interviewer or not questions:
            raise ConfigurationError("Interview has no prepared questions")
        formatted = "\n".join(f"- {question}" for question in questions)
        return CallTarget(target=self.interviewer, variables={"questions": formatted})


class CallAgent:
    """
    Owns one caller's call lifecycle.

    INACTIVE -> CONNECTING -> ACTIVE -> FINISHED, with a reset to INACTIVE on
    transport errors. Inputs are processed one at a time; the transport,
    observer, camera and feedback service are injected and scoped to this
    agent.
    """

    def __init__(self,
                 transport: TransportSession,
                 config: CallConfig,
                 feedback_service=None,
                 observer: Optional[CallObserver] = None,
                 camera: Optional[Camera] = None,
                 connect_timeout: Optional[float] = CALL_CONNECT_TIMEOUT_SECONDS):
        self.transport = transport
        self.config = config
        self.feedback_service = feedback_service
        self.observer = observer or CallObserver()
        self.camera = camera
        self.connect_timeout = connect_timeout

        self.session = CallSession()
        self._unsubscribers: List[Callable[[], None]] = []
        self._connect_timer: Optional[asyncio.Task] = None

    @property
    def status(self) -> CallStatus:
        return self.session.status

    # ------------------------------------------------------------------
    # Subscription scope
    # ------------------------------------------------------------------

    def attach(self) -> None:
        """Subscribe to every transport event this agent consumes."""
        if self._unsubscribers:
            return
        handlers = {
            TransportEvent.CALL_START: self._on_call_start,
            TransportEvent.CALL_END: self._on_call_end,
            TransportEvent.MESSAGE: self._on_message,
            TransportEvent.SPEECH_START: self._on_speech_start,
            TransportEvent.SPEECH_END: self._on_speech_end,
            TransportEvent.ERROR: self._on_error,
        }
        for event, handler in handlers.items():
            self._unsubscribers.append(self.transport.on(event, handler))

    def detach(self) -> None:
        while self._unsubscribers:
            self._unsubscribers.pop()()

    @contextlib.asynccontextmanager
    async def attached(self):
        """Subscriptions live exactly as long as this block; exit tears down."""
        self.attach()
        try:
            yield self
        finally:
            await self.close()

    async def close(self) -> None:
        """Teardown: unsubscribe, stop an active call, release the camera."""
        self.detach()
        self._cancel_connect_timer()
        if self.session.status == CallStatus.ACTIVE:
            logger.info("[Call] Torn down while active, stopping call")
            await self._end_call()
        await self._release_camera()

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    async def start_call(self) -> None:
        if self.session.status in (CallStatus.CONNECTING, CallStatus.ACTIVE):
            logger.debug("[Call] Start ignored, call already %s", self.session.status.value)
            return

        # Each call is a fresh session; the camera toggle carries over
        self.session = CallSession(video_enabled=self.session.video_enabled)

        try:
            target = self.config.resolve_target()
        except ConfigurationError as e:
            logger.error("[Call] Cannot start call: %s", e)
            await self.observer.on_alert(START_FAILED_ALERT)
            return

        await self._set_status(CallStatus.CONNECTING)
        self._arm_connect_timer()
        try:
            await self.transport.start(target.target, target.variables)
        except TransportError as e:
            logger.error("[Call] Call initialization error: %s", e)
            self._cancel_connect_timer()
            await self._reset(START_FAILED_ALERT)

    async def disconnect(self) -> None:
        """Explicit end-call from the user."""
        if self.session.status != CallStatus.ACTIVE:
            logger.debug("[Call] Disconnect ignored while %s", self.session.status.value)
            return
        await self._end_call()

    async def toggle_video(self) -> None:
        if self.session.video_enabled:
            await self._release_camera()
            return

        if self.camera is not None:
            try:
                await self.camera.acquire()
            except MediaAccessError as e:
                await self.handle_media_error(str(e))
                return
        self.session.video_enabled = True

    # ------------------------------------------------------------------
    # Environment signals
    # ------------------------------------------------------------------

    async def handle_network_change(self, online: bool) -> None:
        if online or self.session.status != CallStatus.ACTIVE:
            return
        logger.warning("[Call] %s", ConnectivityLoss("client went offline during an active call"))
        await self._end_call(notice=CONNECTIVITY_ALERT)

    async def handle_visibility_change(self, hidden: bool) -> None:
        if hidden and self.session.status == CallStatus.ACTIVE:
            logger.info("[Call] Page hidden during call, disconnecting")
            await self._end_call()

    async def handle_media_error(self, message: Optional[str] = None) -> None:
        logger.warning("[Call] %s", MediaAccessError(message or "camera unavailable"))
        await self._release_camera(force=True)
        await self.observer.on_alert(CAMERA_ALERT)

    # ------------------------------------------------------------------
    # Transport events
    # ------------------------------------------------------------------

    async def _on_call_start(self, payload: Any = None) -> None:
        if self.session.status != CallStatus.CONNECTING:
            logger.debug("[Call] call-start ignored while %s", self.session.status.value)
            return
        self._cancel_connect_timer()
        await self._set_status(CallStatus.ACTIVE)

    async def _on_call_end(self, payload: Any = None) -> None:
        status = self.session.status
        if status == CallStatus.ACTIVE:
            await self._set_status(CallStatus.FINISHED)
            await self._release_camera()
            await self._on_finished()
        elif status == CallStatus.CONNECTING:
            self._cancel_connect_timer()
            await self._reset(START_FAILED_ALERT)
        else:
            logger.debug("[Call] call-end ignored while %s", status.value)

    async def _on_message(self, message: Any) -> None:
        if not isinstance(message, dict):
            return
        if message.get("type") != "transcript" or message.get("transcriptType") != "final":
            return
        if self.session.status != CallStatus.ACTIVE:
            logger.debug("[Call] Transcript ignored while %s", self.session.status.value)
            return

        try:
            entry = TranscriptEntry(role=message.get("role"), content=message.get("transcript") or "")
        except ValidationError as e:
            logger.warning("[Call] Dropping malformed transcript message: %s", e)
            return

        self.session.append(entry)
        await self.observer.on_transcript(entry)

    async def _on_speech_start(self, payload: Any = None) -> None:
        await self._set_speaking(True)

    async def _on_speech_end(self, payload: Any = None) -> None:
        await self._set_speaking(False)

    async def _on_error(self, payload: Any = None) -> None:
        message = payload.get("message") if isinstance(payload, dict) else payload
        logger.error("[Call] %s", TransportError(message or "unknown transport error"))
        self._cancel_connect_timer()
        await self._reset(TRANSPORT_ERROR_ALERT)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _set_status(self, status: CallStatus) -> None:
        self.session.transition(status)
        await self.observer.on_status(status)

    async def _set_speaking(self, speaking: bool) -> None:
        if self.session.status != CallStatus.ACTIVE or self.session.speaking == speaking:
            return
        self.session.speaking = speaking
        await self.observer.on_speaking(speaking)

    async def _reset(self, alert: Optional[str] = None) -> None:
        """Fail safe to INACTIVE. No retry."""
        if self.session.status != CallStatus.INACTIVE:
            await self._set_status(CallStatus.INACTIVE)
        if alert:
            await self.observer.on_alert(alert)

    async def _end_call(self, notice: Optional[str] = None) -> None:
        """ACTIVE -> FINISHED and stop the transport.

        A stop that fails means the session is already gone; the call is then
        forced to INACTIVE and no post-call work happens.
        """
        await self._set_status(CallStatus.FINISHED)
        await self._release_camera()
        try:
            await self.transport.stop()
        except TransportError as e:
            logger.warning("[Call] Error during disconnect: %s", e)
            await self._reset()
            return

        if notice:
            await self.observer.on_alert(notice)
        await self._on_finished()

    async def _on_finished(self) -> None:
        if self.config.purpose == CallPurpose.GENERATE:
            await self.observer.on_navigate(HOME_PATH)
            return
        await self.observer.on_navigate(await self._generate_feedback())

    async def _generate_feedback(self) -> str:
        """Submit the whole transcript once; return where to send the caller."""
        if self.feedback_service is None:
            logger.error("[Call] No feedback service configured")
            return HOME_PATH

        try:
            request = FeedbackRequest(
                interview_id=self.config.interview_id or "",
                user_id=self.config.user_id or "",
                transcript=list(self.session.transcript_log),
                feedback_id=self.config.feedback_id,
            )
        except ValidationError as e:
            logger.error("[Call] Cannot build feedback request: %s", e)
            return HOME_PATH

        try:
            result = await self.feedback_service.generate_feedback(request)
        except FeedbackGenerationError as e:
            logger.error("[Call] Error saving feedback: %s", e)
            return HOME_PATH

        if result.success and result.feedback_id:
            return FEEDBACK_PATH.format(interview_id=request.interview_id, feedback_id=result.feedback_id)
        logger.error("[Call] Error saving feedback for interview %s", request.interview_id)
        return HOME_PATH

    async def _release_camera(self, force: bool = False) -> None:
        if not self.session.video_enabled and not force:
            return
        self.session.video_enabled = False
        if self.camera is not None:
            await self.camera.release()

    def _arm_connect_timer(self) -> None:
        self._cancel_connect_timer()
        if self.connect_timeout and self.connect_timeout > 0:
            self._connect_timer = asyncio.create_task(self._expire_connect(self.session, self.connect_timeout))

    def _cancel_connect_timer(self) -> None:
        timer, self._connect_timer = self._connect_timer, None
        if timer is not None and timer is not asyncio.current_task() and not timer.done():
            timer.cancel()

    async def _expire_connect(self, session: CallSession, delay: float) -> None:
        await asyncio.sleep(delay)
        if self.session is not session or session.status != CallStatus.CONNECTING:
            return
        self._connect_timer = None
        logger.warning("[Call] No call-start after %ss, giving up", delay)
        await self._reset(CONNECT_TIMEOUT_ALERT)
        try:
            await self.transport.stop()
        except TransportError as e:
            logger.debug("[Call] Stop after connect timeout failed: %s", e)
