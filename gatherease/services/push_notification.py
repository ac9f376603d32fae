"""Push delivery to attendees' registered devices via Firebase Cloud Messaging."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from gatherease.models.device_token import DeviceToken
from gatherease.schemas.push_notification import PushNotificationPayload

logger = logging.getLogger("gatherease.push")

# FCM error codes meaning the token will never work again
_DEAD_TOKEN_MARKERS = ("UNREGISTERED", "INVALID")


@dataclass
class PushResult:
    success_count: int = 0
    failure_count: int = 0
    error: Optional[str] = None


def is_fcm_available() -> bool:
    """True once init_firebase() has created the default app."""
    try:
        import firebase_admin
        firebase_admin.get_app()
        return True
    except (ImportError, ValueError):
        return False


def _stringify(data: Optional[Dict[str, Any]]) -> Dict[str, str]:
    # FCM data payloads only accept string values
    return {k: str(v) for k, v in (data or {}).items()}


def active_tokens(db: Session, user_id: str) -> List[str]:
    rows = db.query(DeviceToken.fcm_token).filter(
        DeviceToken.user_id == user_id,
        DeviceToken.is_active == "true"
    ).all()
    return [row.fcm_token for row in rows]


def build_multicast(tokens: List[str], payload: PushNotificationPayload):
    from firebase_admin import messaging

    return messaging.MulticastMessage(
        tokens=tokens,
        notification=messaging.Notification(title=payload.title, body=payload.body, image=payload.image_url),
        data=_stringify(payload.data),
        android=messaging.AndroidConfig(
            priority="high",
            notification=messaging.AndroidNotification(
                sound=payload.sound or "default",
                channel_id=payload.channel_id or "default",
                click_action=payload.click_action,
            ),
        ),
        apns=messaging.APNSConfig(
            payload=messaging.APNSPayload(aps=messaging.Aps(sound=payload.sound or "default", badge=payload.badge))
        ),
        webpush=messaging.WebpushConfig(
            fcm_options=messaging.WebpushFCMOptions(link=payload.click_action)
        ) if payload.click_action else None,
    )


def _prune_dead_tokens(db: Session, tokens: List[str], responses) -> int:
    dead = [
        token for token, resp in zip(tokens, responses)
        if not resp.success and resp.exception and any(m in str(resp.exception) for m in _DEAD_TOKEN_MARKERS)
    ]
    if not dead:
        return 0
    db.query(DeviceToken).filter(DeviceToken.fcm_token.in_(dead)).update(
        {DeviceToken.is_active: "false"}, synchronize_session=False
    )
    db.commit()
    logger.warning(f"Deactivated {len(dead)} invalid device token(s)")
    return len(dead)


def send_to_user(db: Session, user_id: str, payload: PushNotificationPayload) -> PushResult:
    """Send one notification to every active device of ``user_id``.

    Up to 500 tokens per call, the FCM multicast limit.
    """
    if not is_fcm_available():
        return PushResult(error="FCM not configured")

    tokens = active_tokens(db, user_id)[:500]
    if not tokens:
        return PushResult(error="No registered devices")

    from firebase_admin import messaging
    from firebase_admin.exceptions import FirebaseError

    try:
        response = messaging.send_each_for_multicast(build_multicast(tokens, payload))
    except FirebaseError as e:
        logger.error(f"Multicast send to user {user_id} failed: {e}")
        return PushResult(failure_count=len(tokens), error=str(e))

    logger.info(f"Push to user {user_id}: {response.success_count} sent, {response.failure_count} failed")
    if response.failure_count:
        _prune_dead_tokens(db, tokens, response.responses)
    return PushResult(success_count=response.success_count, failure_count=response.failure_count)
