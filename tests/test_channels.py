"""Tests for the WhatsApp, SMS, email and push delivery helpers."""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from gatherease.exceptions import ChannelDeliveryFailure
from gatherease.services import email as email_service
from gatherease.services.sms import SmsClient, survey_reminder_text
from gatherease.services.whatsapp import (
    SURVEY_INVITATION_TEMPLATE,
    WhatsAppClient,
    normalize_phone,
)


def mock_http_client(response=None, error=None):
    """Patchable stand-in for httpx.Client used as a context manager."""
    client_cls = MagicMock()
    http = client_cls.return_value.__enter__.return_value
    if error is not None:
        http.post.side_effect = error
    else:
        http.post.return_value = response
    return client_cls, http


def response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = "error body"
    resp.json.return_value = payload or {}
    return resp


def test_normalize_phone():
    assert normalize_phone("+1 (555) 123-4567") == "+15551234567"
    assert normalize_phone(None) == ""


class TestWhatsAppClient:

    def test_sends_template_message(self):
        client_cls, http = mock_http_client(response(200, {"messages": [{"id": "wamid.123"}]}))
        client = WhatsAppClient("https://graph.example.test/v17.0/123/", "token-abc")

        with patch("gatherease.services.whatsapp.httpx.Client", client_cls):
            message_id = client.send_survey_invitation("+1 555 123 4567", "Ana", "Spring Meetup", "https://s/1")

        assert message_id == "wamid.123"
        url = http.post.call_args.args[0]
        body = http.post.call_args.kwargs["json"]
        headers = http.post.call_args.kwargs["headers"]
        assert url == "https://graph.example.test/v17.0/123/messages"
        assert body["to"] == "+15551234567"
        assert body["template"]["name"] == SURVEY_INVITATION_TEMPLATE
        params = [p["text"] for p in body["template"]["components"][0]["parameters"]]
        assert params == ["Ana", "Spring Meetup", "https://s/1"]
        assert headers["Authorization"] == "Bearer token-abc"

    def test_error_status_raises(self):
        client_cls, _ = mock_http_client(response(500))
        client = WhatsAppClient("https://graph.example.test", "token-abc")

        with patch("gatherease.services.whatsapp.httpx.Client", client_cls):
            with pytest.raises(ChannelDeliveryFailure) as exc:
                client.send_template("+15551234567", "event_reminder", ["a"])
        assert exc.value.channel == "whatsapp"

    def test_network_error_raises(self):
        client_cls, _ = mock_http_client(error=httpx.ConnectError("connection refused"))
        client = WhatsAppClient("https://graph.example.test", "token-abc")

        with patch("gatherease.services.whatsapp.httpx.Client", client_cls):
            with pytest.raises(ChannelDeliveryFailure):
                client.send_template("+15551234567", "event_reminder", ["a"])

    def test_unconfigured_client_raises(self):
        client = WhatsAppClient(None, None)
        assert not client.is_configured()
        with pytest.raises(ChannelDeliveryFailure):
            client.send_template("+15551234567", "event_reminder", ["a"])


class TestSmsClient:

    def test_sends_text(self):
        client_cls, http = mock_http_client(response(200, {"messageId": "sms-1"}))
        client = SmsClient("https://sms.example.test/send", "key-1")

        with patch("gatherease.services.sms.httpx.Client", client_cls):
            assert client.send_sms("+1 555-123-4567", "hello") == "sms-1"

        assert http.post.call_args.kwargs["json"] == {"to": "+15551234567", "message": "hello"}
        assert http.post.call_args.kwargs["headers"]["Authorization"] == "Bearer key-1"

    def test_error_status_raises(self):
        client_cls, _ = mock_http_client(response(429))
        client = SmsClient("https://sms.example.test/send", "key-1")

        with patch("gatherease.services.sms.httpx.Client", client_cls):
            with pytest.raises(ChannelDeliveryFailure) as exc:
                client.send_sms("+15551234567", "hello")
        assert exc.value.channel == "sms"

    def test_reminder_text_mentions_link(self):
        text = survey_reminder_text("Ana", "Spring Meetup", "https://s/1")
        assert "Ana" in text and "Spring Meetup" in text and "https://s/1" in text


class TestEmailRendering:

    def test_survey_invitation_email(self):
        subject, html, plain = email_service.render_survey_invitation_email(
            "Ana", "Spring Meetup", "https://app.gatherease.test/surveys/t1?token=abc.def"
        )
        assert subject == "Thank you for attending Spring Meetup!"
        assert 'href="https://app.gatherease.test/surveys/t1?token=abc.def"' in html
        assert "<" not in plain
        assert "Spring Meetup" in plain

    def test_event_reminder_email(self):
        subject, html, _ = email_service.render_event_reminder_email(
            "Ana", "Spring Meetup", "Monday, March 10, 2025", "6:00 PM UTC", "Main Hall",
            "https://app.gatherease.test/events/e1"
        )
        assert "Spring Meetup" in subject
        assert "Main Hall" in html

    def test_placeholder_key_disables_sendgrid(self, monkeypatch):
        monkeypatch.setenv("SENDGRID_API_KEY", "your_sendgrid_api_key_here")
        assert email_service.get_sendgrid_client() is None
        assert email_service.is_email_configured() is False


class TestPushDelivery:

    @pytest.fixture
    def devices(self, db_session):
        from gatherease.models.device_token import DevicePlatform, DeviceToken
        db_session.add_all([
            DeviceToken(user_id="user-1", fcm_token="token-good", platform=DevicePlatform.android),
            DeviceToken(user_id="user-1", fcm_token="token-dead", platform=DevicePlatform.web),
            DeviceToken(user_id="user-1", fcm_token="token-off", platform=DevicePlatform.ios, is_active="false"),
        ])
        db_session.commit()

    def test_fcm_not_configured(self, db_session, devices):
        from gatherease.schemas.push_notification import PushNotificationPayload
        from gatherease.services import push_notification as push_service

        result = push_service.send_to_user(db_session, "user-1", PushNotificationPayload(title="t", body="b"))

        assert result.success_count == 0
        assert result.error == "FCM not configured"

    def test_only_active_tokens_are_used(self, db_session, devices):
        from gatherease.services import push_notification as push_service
        assert sorted(push_service.active_tokens(db_session, "user-1")) == ["token-dead", "token-good"]

    def test_dead_tokens_are_deactivated(self, db_session, devices):
        from gatherease.models.device_token import DeviceToken
        from gatherease.schemas.push_notification import PushNotificationPayload
        from gatherease.services import push_notification as push_service

        def fake_send(message):
            by_token = {
                "token-good": MagicMock(success=True, exception=None),
                "token-dead": MagicMock(success=False, exception=Exception("UNREGISTERED")),
            }
            return MagicMock(
                success_count=1,
                failure_count=1,
                responses=[by_token[t] for t in message.tokens],
            )

        payload = PushNotificationPayload(
            title="Survey", body="Tell us", data={"event_id": 7}, click_action="https://app.gatherease.test/s"
        )
        with patch.object(push_service, "is_fcm_available", return_value=True), \
                patch("firebase_admin.messaging.send_each_for_multicast", side_effect=fake_send):
            result = push_service.send_to_user(db_session, "user-1", payload)

        assert result.success_count == 1
        db_session.expire_all()
        states = {t.fcm_token: t.is_active for t in db_session.query(DeviceToken).all()}
        assert states == {"token-good": "true", "token-dead": "false", "token-off": "false"}
