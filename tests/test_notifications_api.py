"""Tests for the in-app notification inbox endpoints."""

import pytest

from gatherease.models.notification import Notification
from gatherease.schemas.notification import NotificationCreate, NotificationTypeEnum
from gatherease.services.notifications import create_notification


@pytest.fixture
def inbox(db_session):
    def _add(user_id="user-1", title="Share Your Feedback", type=NotificationTypeEnum.survey):
        return create_notification(db_session, NotificationCreate(
            user_id=user_id,
            type=type,
            title=title,
            message=f"{title} message",
            event_id="event-1",
            action_url="https://app.gatherease.test/surveys/t1",
            action_label="Take Survey",
        ))
    return _add


class TestNotificationsApi:

    def test_list_notifications_with_unread_count(self, client, inbox):
        inbox(title="First")
        inbox(title="Second")
        inbox(user_id="someone-else")

        response = client.get("/notifications/user-1")
        assert response.status_code == 200
        data = response.json()
        assert data["unread_count"] == 2
        assert {n["title"] for n in data["notifications"]} == {"First", "Second"}
        assert all(n["user_id"] == "user-1" for n in data["notifications"])

    def test_unread_only_filter(self, client, inbox, db_session):
        read = inbox(title="Read")
        inbox(title="Unread")
        client.post(f"/notifications/user-1/{read.id}/read")

        response = client.get("/notifications/user-1", params={"unread_only": True})
        assert [n["title"] for n in response.json()["notifications"]] == ["Unread"]

    def test_unread_count_endpoint(self, client, inbox):
        inbox()
        response = client.get("/notifications/user-1/unread-count")
        assert response.status_code == 200
        assert response.json() == {"unread_count": 1}

    def test_mark_read(self, client, inbox, db_session):
        notification = inbox()

        response = client.post(f"/notifications/user-1/{notification.id}/read")
        assert response.status_code == 200
        assert response.json()["is_read"] is True

        db_session.expire_all()
        assert db_session.query(Notification).filter(Notification.id == notification.id).one().is_read is True

    def test_mark_read_rejects_other_users(self, client, inbox, db_session):
        notification = inbox(user_id="owner")

        response = client.post(f"/notifications/intruder/{notification.id}/read")
        assert response.status_code == 404
        assert "correlation_id" in response.json()

        db_session.expire_all()
        assert db_session.query(Notification).filter(Notification.id == notification.id).one().is_read is False

    def test_mark_all_read(self, client, inbox):
        inbox()
        inbox()
        inbox(user_id="someone-else")

        response = client.post("/notifications/user-1/read-all")
        assert response.status_code == 200
        assert response.json() == {"updated": 2}
        assert client.get("/notifications/someone-else/unread-count").json() == {"unread_count": 1}
