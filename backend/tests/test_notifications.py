import pytest
import asyncio
import json
from contextlib import asynccontextmanager
import uuid
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch
import redis
from conftest import auth_headers
from nestlink.db.models import Notification as DBNotification, Post as DBPost
from nestlink.models.notification import Notification, NotificationType
from nestlink.core.realtime import NotificationPublisher, NotificationStream, channel_for
from nestlink.modules.notifications.service import NotificationService
from nestlink.modules.notifications.tasks import purge_old_notifications


@pytest.fixture
def seeded(test_db_session, make_profile):
    """A post by Olivia with three notifications for her from Bob"""
    olivia = make_profile("Olivia")
    bob = make_profile("Bob")
    post = DBPost(id=uuid.uuid4(), user_id=olivia.id, content="hi", images=[], tagged_users=[], created_at=datetime.utcnow())
    test_db_session.add(post)
    test_db_session.flush()

    service = NotificationService(test_db_session)
    base = datetime.utcnow()
    for offset, type in enumerate([NotificationType.LIKE, NotificationType.COMMENT, NotificationType.MENTION]):
        row = service.stage(olivia.id, bob.id, type, post.id)
        row.created_at = base + timedelta(seconds=offset)
    test_db_session.commit()
    return olivia, bob, post


class TestNotificationApi:
    """Test cases for listing and reading notifications"""

    def test_list_newest_first(self, client, seeded):
        olivia, bob, _ = seeded

        response = client.get("/api/v1/notifications/", headers=auth_headers(olivia))

        assert response.status_code == 200
        assert [n["type"] for n in response.json()] == ["mention", "comment", "like"]
        assert all(n["related_user_id"] == str(bob.id) for n in response.json())

    def test_limit(self, client, seeded):
        olivia, _, _ = seeded
        response = client.get("/api/v1/notifications/", params={"limit": 2}, headers=auth_headers(olivia))
        assert len(response.json()) == 2

    def test_mark_one_and_all_read(self, client, seeded):
        olivia, bob, _ = seeded
        headers = auth_headers(olivia)
        first = client.get("/api/v1/notifications/", headers=headers).json()[0]

        assert client.get("/api/v1/notifications/unread-count", headers=headers).json() == {"unread_count": 3}

        # Someone else's notification is not found
        assert client.put(f"/api/v1/notifications/{first['id']}/read", headers=auth_headers(bob)).status_code == 404

        response = client.put(f"/api/v1/notifications/{first['id']}/read", headers=headers)
        assert response.status_code == 200
        assert response.json()["is_read"] is True
        assert client.get("/api/v1/notifications/unread-count", headers=headers).json() == {"unread_count": 2}

        response = client.put("/api/v1/notifications/read-all", headers=headers)
        assert response.json()["updated"] == 2
        assert client.get("/api/v1/notifications/unread-count", headers=headers).json() == {"unread_count": 0}

    def test_socket_rejects_bad_token(self, client):
        from starlette.websockets import WebSocketDisconnect

        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/api/v1/notifications/ws?token=nonsense") as websocket:
                websocket.receive_json()


class TestNotificationService:
    """Test cases for staging and housekeeping"""

    def test_stage_skips_self_notifications(self, test_db_session, make_profile):
        olivia = make_profile("Olivia")
        service = NotificationService(test_db_session)

        assert service.stage(olivia.id, olivia.id, NotificationType.LIKE, uuid.uuid4()) is None

    def test_purge_removes_only_old_read(self, test_db_session, seeded):
        olivia, _, _ = seeded
        rows = test_db_session.query(DBNotification).order_by(DBNotification.created_at).all()
        old = datetime.utcnow() - timedelta(days=45)
        rows[0].is_read, rows[0].created_at = True, old   # purged
        rows[1].is_read, rows[1].created_at = False, old  # unread, kept
        rows[2].is_read = True                            # recent, kept
        test_db_session.commit()

        result = purge_old_notifications(test_db_session, days_old=30)

        assert result["deleted"] == 1
        assert result["days_old"] == 30
        assert test_db_session.query(DBNotification).count() == 2


class TestRealtime:
    """Test cases for Redis publishing and delivery de-duplication"""

    def make_notification(self, id="n1"):
        return Notification(
            id=id, user_id="p1", type=NotificationType.LIKE, related_user_id="p2", post_id="post"
        )

    def test_stream_delivers_each_id_once(self):
        stream = NotificationStream()

        assert stream.accept("n1") is True
        assert stream.accept("n1") is False
        merged = stream.merge([self.make_notification("n1"), self.make_notification("n2")])

        assert [n.id for n in merged] == ["n2"]
        assert len(stream) == 2

    def test_publish_to_profile_channel(self):
        publisher = NotificationPublisher(redis_url="redis://example:6379", enabled=True)
        fake = MagicMock()
        publisher._client = fake

        assert publisher.publish(self.make_notification()) is True

        channel, payload = fake.publish.call_args[0]
        assert channel == channel_for("p1") == "notifications:p1"
        assert '"id":"n1"' in payload

    def test_publish_failures_are_swallowed(self):
        publisher = NotificationPublisher(redis_url="redis://example:6379", enabled=True)
        publisher._client = MagicMock()
        publisher._client.publish.side_effect = redis.ConnectionError("down")

        assert publisher.publish(self.make_notification()) is False

    def test_disabled_publisher_does_nothing(self):
        publisher = NotificationPublisher(enabled=False)

        with patch("nestlink.core.realtime.redis.Redis.from_url") as from_url:
            assert publisher.publish(self.make_notification()) is False
            from_url.assert_not_called()


class FakeSubscription:
    """Stands in for a Redis pub/sub subscription"""

    def __init__(self, messages, error=None):
        self.messages = messages
        self.error = error

    async def listen(self):
        for message in self.messages:
            yield message
        if self.error:
            raise self.error
        await asyncio.Event().wait()


class TestNotificationSocket:
    """Test cases for the live notification socket"""

    def connect(self, client, profile):
        token = auth_headers(profile)["Authorization"].split()[1]
        return client.websocket_connect(f"/api/v1/notifications/ws?token={token}")

    def fake_subscribe(self, monkeypatch, events, subscription):
        @asynccontextmanager
        async def subscribe(profile_id):
            events.append("subscribed")
            yield subscription

        original = NotificationService.list_unread

        async def list_unread(self, viewer_id):
            events.append("backlog")
            return await original(self, viewer_id)

        monkeypatch.setattr("nestlink.api.routers.notifications.subscribe_notifications", subscribe)
        monkeypatch.setattr(NotificationService, "list_unread", list_unread)

    def test_backlog_then_live_without_duplicates(self, client, seeded, test_db_session, monkeypatch):
        olivia, _, _ = seeded
        backlog_ids = [str(r.id) for r in test_db_session.query(DBNotification).order_by(DBNotification.created_at)]
        events = []
        self.fake_subscribe(monkeypatch, events, FakeSubscription([
            {"type": "subscribe", "data": 1},
            # Published after subscribing but already in the backlog
            {"type": "message", "data": json.dumps({"id": backlog_ids[0], "type": "like"})},
            {"type": "message", "data": "[1, 2]"},
            {"type": "message", "data": "{broken"},
            {"type": "message", "data": json.dumps({"id": "live-1", "type": "comment"})},
        ]))

        with self.connect(client, olivia) as websocket:
            received = [websocket.receive_json()["id"] for _ in range(4)]

        assert events == ["subscribed", "backlog"]
        assert received == backlog_ids + ["live-1"]

    def test_relay_failure_closes_socket(self, client, seeded, monkeypatch):
        from starlette.websockets import WebSocketDisconnect

        olivia, _, _ = seeded
        self.fake_subscribe(monkeypatch, [], FakeSubscription([], error=redis.ConnectionError("gone")))

        with self.connect(client, olivia) as websocket:
            for _ in range(3):
                websocket.receive_json()
            with pytest.raises(WebSocketDisconnect) as closed:
                websocket.receive_json()

        assert closed.value.code == 1011
