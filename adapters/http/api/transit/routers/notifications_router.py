import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Request, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from core.containers import container
from core.database import get_db
from core.rate_limiter import limiter, RateLimits
from core.security import decode_token, get_current_user
from src.transit_bc.notification.domain.entities import NotificationType
from src.transit_bc.notification.infrastructure.services.notification_service import NotificationService
from src.transit_bc.notification.infrastructure.services.push_subscription_service import PushSubscriptionService
from src.transit_bc.shared.domain.errors import Unauthorized
from src.transit_bc.user.infrastructure.models import UserModel

from adapters.http.api.transit.schemas import (
    MarkAllReadResponse,
    NotificationResponse,
    PushSubscribeRequest,
    PushSubscriptionResponse,
    PushUnsubscribeRequest,
    TestNotificationRequest,
)
from adapters.http.api.transit.utils.dependencies import get_notification_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])
push_router = APIRouter(prefix="/push", tags=["Notifications"])
ws_router = APIRouter(tags=["Notifications"])

# Close code sent when the websocket token is rejected
WS_POLICY_VIOLATION = 1008


@router.get("", response_model=List[NotificationResponse])
@limiter.limit(RateLimits.NOTIFICATIONS)
def list_notifications(
    request: Request,
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    notifications: NotificationService = Depends(get_notification_service),
    user: UserModel = Depends(get_current_user),
):
    """The user's unexpired notifications, newest first."""
    rows = notifications.list_for_user(user.id, unread_only=unread_only, limit=limit)
    return [NotificationResponse.from_model(row) for row in rows]


@router.patch("/read-all", response_model=MarkAllReadResponse)
@limiter.limit(RateLimits.NOTIFICATIONS)
def mark_all_read(
    request: Request,
    notifications: NotificationService = Depends(get_notification_service),
    user: UserModel = Depends(get_current_user),
):
    return MarkAllReadResponse(updated=notifications.mark_all_read(user.id))


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
@limiter.limit(RateLimits.NOTIFICATIONS)
def mark_read(
    request: Request,
    notification_id: str,
    notifications: NotificationService = Depends(get_notification_service),
    user: UserModel = Depends(get_current_user),
):
    return NotificationResponse.from_model(notifications.mark_read(user.id, notification_id))


@router.post("/test", response_model=NotificationResponse, status_code=201)
@limiter.limit(RateLimits.NOTIFICATIONS)
def send_test_notification(
    request: Request,
    body: TestNotificationRequest,
    notifications: NotificationService = Depends(get_notification_service),
    user: UserModel = Depends(get_current_user),
):
    """Send a notification to yourself, bypassing preferences and de-duplication."""
    row = notifications.emit(
        user.id,
        title=body.title,
        message=body.message,
        type=NotificationType.ROUTE_CHANGE,
        severity=body.severity,
        force=True,
    )
    return NotificationResponse.from_model(row)


# =============================================================================
# Live notifications
# =============================================================================


async def _forward_events(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        event = await queue.get()
        await websocket.send_json(event)


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    # Incoming messages are ignored
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@ws_router.websocket("/ws/notifications")
async def notifications_socket(websocket: WebSocket, token: str = Query(None)):
    """Stream the user's new notifications as JSON events.

    Authenticated with the same bearer token, passed as ``?token=``. The
    subscription is dropped as soon as the client disconnects.
    """
    try:
        user_id = str(decode_token(token)["sub"])
    except Unauthorized:
        await websocket.close(code=WS_POLICY_VIOLATION)
        return

    broker = container.notification_broker()
    await websocket.accept()
    queue = broker.subscribe(user_id)
    logger.info(f"Notification socket opened for user {user_id}")
    tasks = []
    try:
        await websocket.send_json({"event": "connected", "user_id": user_id})
        tasks = [
            asyncio.create_task(_forward_events(websocket, queue)),
            asyncio.create_task(_wait_for_disconnect(websocket)),
        ]
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            error = task.exception()
            if error is not None and not isinstance(error, WebSocketDisconnect):
                logger.warning(f"Notification socket for user {user_id} failed: {error}")
    except WebSocketDisconnect:
        pass
    finally:
        for task in tasks:
            task.cancel()
        broker.unsubscribe(user_id, queue)
        logger.info(f"Notification socket closed for user {user_id}")


# =============================================================================
# Push subscriptions
# =============================================================================


@push_router.post("/subscribe", response_model=PushSubscriptionResponse, status_code=201)
@limiter.limit(RateLimits.NOTIFICATIONS)
def subscribe_push(
    request: Request,
    body: PushSubscribeRequest,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    """Store a browser push subscription."""
    subscription = PushSubscriptionService(db).subscribe(
        user.id, body.endpoint, body.keys.p256dh, body.keys.auth
    )
    return PushSubscriptionResponse.model_validate(subscription)


@push_router.delete("/unsubscribe")
@limiter.limit(RateLimits.NOTIFICATIONS)
def unsubscribe_push(
    request: Request,
    body: PushUnsubscribeRequest,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    removed = PushSubscriptionService(db).unsubscribe(user.id, body.endpoint)
    return {"unsubscribed": removed}
