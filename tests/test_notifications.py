"""
Notification tests
"""
from datetime import datetime, timedelta

from campus_events.models.notification import Notification
from campus_events.services.notifications import notify
from conftest import auth_headers


def broadcast(client, admin, **overrides):
    payload = {'title': 'Campus closed', 'message': 'The campus is closed on Friday.', 'category': 'system'}
    payload.update(overrides)
    return client.post('/api/v1/notifications', json=payload, headers=auth_headers(admin))


class TestNotifications:

    def test_broadcast_reaches_every_user(self, client, admin, make_user):
        assert broadcast(client, admin).status_code == 201
        for user in (make_user(), make_user()):
            titles = [n['title'] for n in client.get('/api/v1/notifications', headers=auth_headers(user)).json()['data']]
            assert titles == ['Campus closed']

    def test_direct_notification_is_private(self, client, admin, make_user):
        recipient, other = make_user(), make_user()
        broadcast(client, admin, recipient_id=recipient.id, title='Just for you')
        assert len(client.get('/api/v1/notifications', headers=auth_headers(recipient)).json()['data']) == 1
        assert client.get('/api/v1/notifications', headers=auth_headers(other)).json()['data'] == []

    def test_unknown_recipient(self, client, admin):
        response = broadcast(client, admin, recipient_id=9999)
        assert response.status_code == 404

    def test_only_admins_create(self, client, student):
        assert broadcast(client, student).status_code == 403

    def test_mark_read_is_idempotent(self, client, admin, student):
        notification = broadcast(client, admin).json()['data']
        url = f"/api/v1/notifications/{notification['id']}/read"
        assert client.patch(url, headers=auth_headers(student)).json()['data']['is_read'] is True
        assert client.patch(url, headers=auth_headers(student)).status_code == 200

        unread = client.get('/api/v1/notifications', params={'unread_only': True},
                            headers=auth_headers(student)).json()['data']
        assert unread == []
        everything = client.get('/api/v1/notifications', headers=auth_headers(student)).json()['data']
        assert everything[0]['is_read'] is True

    def test_read_receipts_are_per_user(self, client, admin, make_user):
        reader, other = make_user(), make_user()
        notification = broadcast(client, admin).json()['data']
        client.patch(f"/api/v1/notifications/{notification['id']}/read", headers=auth_headers(reader))
        data = client.get('/api/v1/notifications', headers=auth_headers(other)).json()['data']
        assert data[0]['is_read'] is False

    def test_cannot_read_someone_elses(self, client, admin, make_user):
        recipient, other = make_user(), make_user()
        notification = broadcast(client, admin, recipient_id=recipient.id).json()['data']
        response = client.patch(f"/api/v1/notifications/{notification['id']}/read", headers=auth_headers(other))
        assert response.status_code == 404

    def test_expired_are_hidden(self, client, admin, student):
        broadcast(client, admin, expires_at=(datetime.utcnow() - timedelta(hours=1)).isoformat())
        assert client.get('/api/v1/notifications', headers=auth_headers(student)).json()['data'] == []

    def test_category_filter(self, client, admin, student):
        broadcast(client, admin, category='promotional', title='Hoodies on sale')
        broadcast(client, admin, category='system')
        data = client.get('/api/v1/notifications', params={'category': 'promotional'},
                          headers=auth_headers(student)).json()['data']
        assert [n['title'] for n in data] == ['Hoodies on sale']


class TestNotify:

    def test_failure_is_swallowed(self, db_session, student):
        # category is NOT NULL
        assert notify(db_session, student.id, 'Broken', 'No category', None) is None
        assert db_session.query(Notification).count() == 0
        # the session is still usable afterwards
        assert notify(db_session, student.id, 'Working', 'Fine', 'system') is not None
