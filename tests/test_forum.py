"""
Forum tests: posts, likes, replies and team-formation applications
"""
import pytest

from conftest import auth_headers


def post_payload(**overrides):
    payload = {
        'title': 'Looking for a backend dev',
        'content': 'We are building a campus food-sharing app for the hackathon.',
        'category': 'team-formation',
        'type': 'team-request',
        'is_looking_for_team': True,
        'skills_required': ['python', 'fastapi'],
        'max_team_size': 2,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def create_post(client, student):
    def do_create(author=None, **overrides):
        response = client.post('/api/v1/forum', json=post_payload(**overrides), headers=auth_headers(author or student))
        assert response.status_code == 201
        return response.json()['data']
    return do_create


def apply(client, user, post_id, message='I have two years of FastAPI experience.'):
    return client.post(f'/api/v1/forum/{post_id}/apply', json={'message': message, 'skills': ['python']},
                       headers=auth_headers(user))


class TestPosts:

    def test_list_defaults_to_general(self, client, student, create_post):
        create_post(title='General chatter here', category='general', is_looking_for_team=False)
        create_post()
        page = client.get('/api/v1/forum', headers=auth_headers(student)).json()['data']
        assert [post['title'] for post in page['items']] == ['General chatter here']

        page = client.get('/api/v1/forum', params={'category': 'team-formation'},
                          headers=auth_headers(student)).json()['data']
        assert page['total'] == 1

    def test_search(self, client, student, create_post):
        create_post(category='general', title='Robotics club meetup', is_looking_for_team=False)
        create_post(category='general', title='Chess club meetup', is_looking_for_team=False)
        page = client.get('/api/v1/forum', params={'search': 'robotics'}, headers=auth_headers(student)).json()['data']
        assert [post['title'] for post in page['items']] == ['Robotics club meetup']

    def test_view_counts(self, client, student, create_post):
        post = create_post()
        client.get(f"/api/v1/forum/{post['id']}", headers=auth_headers(student))
        data = client.get(f"/api/v1/forum/{post['id']}", headers=auth_headers(student)).json()['data']
        assert data['views'] == 2

    def test_team_post_needs_size(self, client, student):
        response = client.post('/api/v1/forum', json=post_payload(max_team_size=None), headers=auth_headers(student))
        assert response.status_code == 400
        assert response.json()['errors'][0]['field'] == 'max_team_size'

    def test_short_content(self, client, student):
        response = client.post('/api/v1/forum', json=post_payload(content='too short'), headers=auth_headers(student))
        assert response.status_code == 400

    def test_like_toggles(self, client, make_user, create_post):
        post = create_post()
        fan = make_user()
        first = client.post(f"/api/v1/forum/{post['id']}/like", headers=auth_headers(fan)).json()['data']
        second = client.post(f"/api/v1/forum/{post['id']}/like", headers=auth_headers(fan)).json()['data']
        assert first == {'liked': True, 'like_count': 1}
        assert second == {'liked': False, 'like_count': 0}

    def test_reply(self, client, make_user, create_post):
        post = create_post()
        replier = make_user()
        response = client.post(f"/api/v1/forum/{post['id']}/replies", json={'content': 'Count me in!'},
                               headers=auth_headers(replier))
        assert response.status_code == 201
        data = client.get(f"/api/v1/forum/{post['id']}", headers=auth_headers(replier)).json()['data']
        assert data['reply_count'] == 1
        assert data['replies'][0]['author']['id'] == replier.id

    def test_delete(self, client, make_user, admin, create_post):
        post = create_post()
        assert client.delete(f"/api/v1/forum/{post['id']}", headers=auth_headers(make_user())).status_code == 403
        assert client.delete(f"/api/v1/forum/{post['id']}", headers=auth_headers(admin)).status_code == 200
        response = client.get(f"/api/v1/forum/{post['id']}", headers=auth_headers(admin))
        assert response.status_code == 404


class TestTeamApplications:

    def test_apply_and_accept(self, client, student, make_user, create_post):
        post = create_post()
        applicant = make_user()
        response = apply(client, applicant, post['id'])
        assert response.status_code == 201
        application = response.json()['data']
        assert application['status'] == 'pending'

        assert apply(client, applicant, post['id']).json()['reason'] == 'already_applied'

        response = client.post(f"/api/v1/forum/{post['id']}/applications/{application['id']}/accept",
                               headers=auth_headers(student))
        assert response.status_code == 200
        assert response.json()['data']['status'] == 'accepted'

        data = client.get(f"/api/v1/forum/{post['id']}", headers=auth_headers(student)).json()['data']
        assert data['current_team_size'] == 2
        assert data['is_team_complete'] is True

        assert apply(client, make_user(), post['id']).json()['reason'] == 'team_complete'

    def test_only_author_accepts(self, client, make_user, create_post):
        post = create_post()
        applicant = make_user()
        application = apply(client, applicant, post['id']).json()['data']
        response = client.post(f"/api/v1/forum/{post['id']}/applications/{application['id']}/accept",
                               headers=auth_headers(applicant))
        assert response.status_code == 403

    def test_full_team_rejects_acceptance(self, client, student, make_user, create_post):
        post = create_post()
        first = apply(client, make_user(), post['id']).json()['data']
        second = apply(client, make_user(), post['id']).json()['data']
        accept = f"/api/v1/forum/{post['id']}/applications/{{}}/accept"
        assert client.post(accept.format(first['id']), headers=auth_headers(student)).status_code == 200
        response = client.post(accept.format(second['id']), headers=auth_headers(student))
        assert response.json()['reason'] == 'team_complete'

    def test_cannot_apply_to_discussion(self, client, make_user, create_post):
        post = create_post(category='general', is_looking_for_team=False)
        assert apply(client, make_user(), post['id']).json()['reason'] == 'not_recruiting'

    def test_cannot_apply_to_own_post(self, client, student, create_post):
        post = create_post()
        assert apply(client, student, post['id']).json()['reason'] == 'own_post'

    def test_message_length(self, client, make_user, create_post):
        post = create_post()
        assert apply(client, make_user(), post['id'], message='hi').status_code == 400

    def test_author_is_notified(self, client, student, make_user, create_post):
        post = create_post()
        apply(client, make_user(), post['id'])
        titles = [n['title'] for n in client.get('/api/v1/notifications', headers=auth_headers(student)).json()['data']]
        assert titles == ['New team application']
