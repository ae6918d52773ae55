"""
Websocket endpoint for presence and direct messaging.

Clients connect to ``/ws`` with an access token in the ``token`` query
parameter or an ``Authorization: Bearer`` header, then exchange
``{"event": ..., "data": {...}}`` JSON frames.
"""

import json
from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, WebSocket

from vtype.core.auth import authenticate_access_token
from vtype.core.config import settings
from vtype.core.exceptions import ErrorCode, VTypeException
from vtype.core.logging import logger
from vtype.schemas.realtime import ErrorPayload
from vtype.services.realtime import ChatProtocol, ConnectedUser, ConnectionManager, OutgoingEvent
from vtype.services.user.directory import UserDirectory

router = APIRouter()


def extract_token(websocket: WebSocket) -> Optional[str]:
    token = websocket.query_params.get("token")
    if token:
        return token
    header = websocket.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def _error_event(connection_id: str, message: str, code: ErrorCode) -> OutgoingEvent:
    return OutgoingEvent([connection_id], "error", ErrorPayload(message=message, code=code.value))


async def _reject(websocket: WebSocket, error: VTypeException) -> None:
    code = error.code.value if error.code is not None else "AUTHENTICATION_FAILED"
    await websocket.accept()
    await websocket.send_json({
        "event": "error",
        "data": ErrorPayload(message=str(error.detail), code=code).model_dump(exclude_none=True)
    })
    await websocket.close(code=settings.WS_AUTH_FAILURE_CLOSE_CODE, reason=code)


@router.websocket("/ws")
async def chat_socket(websocket: WebSocket) -> None:
    state = websocket.app.state
    protocol: ChatProtocol = state.protocol
    connections: ConnectionManager = state.connections

    try:
        async with protocol.session_factory() as db:
            user = await authenticate_access_token(
                extract_token(websocket),
                state.token_store,
                UserDirectory(db),
                tolerate_store_outage=True
            )
            identity = ConnectedUser.from_model(user)
    except VTypeException as e:
        logger.warning(
            "Websocket authentication failed",
            extra={"code": e.code.value if e.code else None, "client": str(websocket.client)}
        )
        await _reject(websocket, e)
        return

    await websocket.accept()
    connection_id = uuid4().hex
    connections.register(connection_id, websocket)
    session = protocol.session(connection_id, identity)
    await connections.deliver(session.open())

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            raw = message.get("text")
            if raw is None:
                await connections.deliver([_error_event(
                    connection_id, "Binary frames are not supported", ErrorCode.VALIDATION_ERROR
                )])
                continue
            try:
                frame = json.loads(raw)
            except ValueError:
                await connections.deliver([_error_event(
                    connection_id, "Invalid JSON frame", ErrorCode.VALIDATION_ERROR
                )])
                continue

            try:
                events = await session.handle(frame)
            except Exception as e:
                logger.error(
                    "Unhandled error while processing frame",
                    extra={
                        "connection_id": connection_id,
                        "user_id": identity.id,
                        "error": str(e),
                        "error_type": type(e).__name__
                    }
                )
                events = [_error_event(
                    connection_id, "Failed to process event", ErrorCode.INTERNAL_ERROR
                )]
            await connections.deliver(events)
    finally:
        connections.unregister(connection_id)
        await connections.deliver(session.close())
