"""Signed per-attendee survey links."""

import base64
import hashlib
import hmac
import json
import secrets
from datetime import datetime
from typing import Any, Dict, Optional

from gatherease.core.settings import settings
from gatherease.exceptions import ValidationException
from gatherease.utils.datetime import utc_now


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def _b64decode(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def _sign(body: str, secret: str) -> str:
    return _b64encode(hmac.new(secret.encode(), body.encode(), hashlib.sha256).digest())


def generate_survey_token(attendee_id: str, template_id: str,
                          issued_at: Optional[datetime] = None, secret: Optional[str] = None) -> str:
    payload = {
        "attendee_id": attendee_id,
        "template_id": template_id,
        "iat": int((issued_at or utc_now()).timestamp()),
        "nonce": secrets.token_hex(4),
    }
    body = _b64encode(json.dumps(payload, separators=(",", ":")).encode())
    return f"{body}.{_sign(body, secret or settings.survey_token_secret)}"


def verify_survey_token(token: str, secret: Optional[str] = None) -> Dict[str, Any]:
    """Return the token payload, or raise ValidationException if it was tampered with."""
    try:
        body, signature = token.split(".", 1)
    except (AttributeError, ValueError):
        raise ValidationException("Malformed survey token")

    expected = _sign(body, secret or settings.survey_token_secret)
    if not hmac.compare_digest(signature, expected):
        raise ValidationException("Invalid survey token")

    try:
        return json.loads(_b64decode(body))
    except ValueError:
        raise ValidationException("Malformed survey token")


def build_survey_url(template_id: str, attendee_id: str) -> str:
    token = generate_survey_token(attendee_id, template_id)
    return f"{settings.app_url.rstrip('/')}/surveys/{template_id}?token={token}"
