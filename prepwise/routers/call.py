import json
import logging
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from jose import JWTError
from sqlalchemy.orm import Session
from prepwise.config import VAPI_WORKFLOW_ID, CALL_CONNECT_TIMEOUT_SECONDS
from prepwise.database import get_db
from prepwise.dependencies import resolve_user, get_feedback_service
from prepwise.services.feedback import FeedbackService
from prepwise.services.interviews import get_interview
from prepwise.call import CallAgent, CallConfig, CallPurpose
from prepwise.call.websocket import (
    WebSocketChannel,
    WebSocketTransport,
    WebSocketCamera,
    WebSocketObserver,
    dispatch_client_message,
)

logger = logging.getLogger("prepwise.routers.call")

router = APIRouter(tags=["call"])


@router.websocket("/ws/call")
async def call_websocket(
    websocket: WebSocket,
    db: Session = Depends(get_db),
    feedback_service: FeedbackService = Depends(get_feedback_service),
):
    """Call channel: the browser relays voice SDK events, the server runs the call."""
    await websocket.accept()
    channel = WebSocketChannel(websocket)

    try:
        init_data = await websocket.receive_json()
    except WebSocketDisconnect:
        logger.info("[WebSocket] Client left before init")
        return
    except (json.JSONDecodeError, KeyError):
        await websocket.close(code=status.WS_1003_UNSUPPORTED_DATA)
        return

    if not isinstance(init_data, dict) or init_data.get("type", "init") != "init":
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    try:
        user = resolve_user(init_data.get("token"), db)
    except JWTError as e:
        logger.info("[WebSocket] Rejected connection: %s", e)
        await channel.send({"type": "alert", "message": "Please sign in to start an interview."})
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    try:
        purpose = CallPurpose(init_data.get("purpose", CallPurpose.INTERVIEW.value))
    except ValueError:
        await websocket.close(code=status.WS_1003_UNSUPPORTED_DATA)
        return

    interview_id = init_data.get("interview_id")
    questions = None
    if purpose == CallPurpose.INTERVIEW and interview_id:
        interview = get_interview(db, interview_id)
        # A missing interview leaves no questions; start_call reports it
        questions = list(interview.questions or []) if interview else None

    config = CallConfig(
        purpose=purpose,
        user_name=user.name,
        user_id=user.id,
        interview_id=interview_id,
        feedback_id=init_data.get("feedback_id"),
        questions=questions,
        workflow_id=VAPI_WORKFLOW_ID or None,
    )

    transport = WebSocketTransport(channel)
    agent = CallAgent(
        transport,
        config,
        feedback_service=feedback_service,
        observer=WebSocketObserver(channel),
        camera=WebSocketCamera(channel),
        connect_timeout=CALL_CONNECT_TIMEOUT_SECONDS,
    )
    logger.info("[WebSocket] %s call channel open for user %s", purpose.value, user.id)

    async with agent.attached():
        await channel.send({"type": "ready", "status": agent.status.value})
        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                channel.closed = True
                logger.info("[WebSocket] Client disconnected (status %s)", agent.status.value)
                break
            except (json.JSONDecodeError, KeyError):
                # KeyError: binary frame
                logger.warning("[WebSocket] Ignoring malformed frame")
                continue
            await dispatch_client_message(agent, transport, message)
