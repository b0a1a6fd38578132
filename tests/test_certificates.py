"""
Certificate issuance, verification and lifecycle tests
"""
import re
from datetime import datetime, timedelta

import pytest

from campus_events.certificate_generator import (CertificateDataError, achievement_text, generate_certificate,
                                                 validate_certificate_data)
from campus_events.models.certificate import Certificate
from campus_events.models.registration import Registration
from campus_events.models.user import Badge
from campus_events.services import certificates as certificate_service
from conftest import auth_headers


@pytest.fixture
def registration_id(student, event, register):
    return register(student, event).json()['data']['id']


@pytest.fixture
def issue(client, organizer):
    def do_issue(registration_id, type='participation', actor=None, **extra):
        return client.post('/api/v1/certificates/generate',
                           json={'registration_id': registration_id, 'type': type, **extra},
                           headers=auth_headers(actor or organizer))
    return do_issue


def certificate_data(**overrides):
    data = {
        'user_name': 'Grace Hopper',
        'event_title': 'Compiler Night',
        'event_date': datetime(2030, 5, 1, 18, 0),
        'certificate_type': 'completion',
        'certificate_id': 'CERT-TEST-00001',
        'verification_code': 'ABCDEFGHIJKL',
    }
    data.update(overrides)
    return data


class TestRendering:

    def test_renders_a_pdf(self):
        assert generate_certificate(certificate_data()).startswith(b'%PDF')

    def test_winner_with_score(self):
        pdf = generate_certificate(certificate_data(certificate_type='winner', position='1st', score=97.5))
        assert pdf.startswith(b'%PDF')

    @pytest.mark.parametrize('field', ['user_name', 'event_title', 'verification_code'])
    def test_missing_field(self, field):
        with pytest.raises(CertificateDataError) as excinfo:
            validate_certificate_data(certificate_data(**{field: ''}))
        assert excinfo.value.field == field

    def test_unknown_type(self):
        with pytest.raises(CertificateDataError):
            generate_certificate(certificate_data(certificate_type='honorary'))

    def test_achievement_lines(self):
        assert achievement_text('winner', '2nd') == 'has achieved 2nd position in'
        assert achievement_text('completion') == 'has successfully completed'


class TestGenerate:

    def test_issue_participation(self, db_session, student, registration_id, issue, certificates_dir):
        response = issue(registration_id)
        assert response.status_code == 201
        data = response.json()['data']
        assert re.fullmatch(r'CERT-[0-9A-Z]+-[0-9A-Z]{5}', data['certificate_id'])
        assert re.fullmatch(r'[0-9A-Z]{12}', data['verification_code'])
        assert data['verification_url'] == f"http://testserver.local/verify-certificate/{data['verification_code']}"
        assert data['status'] == 'active'

        pdf = certificates_dir / f"cert_{data['certificate_id']}.pdf"
        assert pdf.read_bytes().startswith(b'%PDF')

        registration = db_session.get(Registration, registration_id)
        assert registration.certificate_eligible is True
        assert registration.certificate_id == data['certificate_id']
        db_session.refresh(student)
        assert student.points == 10 + 25

    def test_duplicate_type_is_rejected(self, registration_id, issue):
        issue(registration_id)
        response = issue(registration_id)
        assert response.status_code == 400
        assert response.json()['message'] == 'Certificate already exists for this user and event'
        assert response.json()['reason'] == 'certificate_exists'

    def test_other_type_for_same_event(self, registration_id, issue):
        issue(registration_id)
        assert issue(registration_id, type='completion').status_code == 201

    @pytest.mark.parametrize('type,points', [('completion', 50), ('appreciation', 30), ('achievement', 75)])
    def test_points_per_type(self, db_session, student, registration_id, issue, type, points):
        issue(registration_id, type=type)
        db_session.refresh(student)
        assert student.points == 10 + points

    def test_winner_badge_is_granted_once(self, db_session, student, make_event, register, issue):
        first = register(student, make_event(title='Robot Sumo')).json()['data']['id']
        second = register(student, make_event(title='Drone Race')).json()['data']['id']
        issue(first, type='winner', position='1st', score=98)
        issue(second, type='winner', position='1st')

        badges = db_session.query(Badge).filter_by(user_id=student.id, name='Winner').all()
        assert len(badges) == 1
        assert badges[0].icon == '🏆'
        db_session.refresh(student)
        assert student.points == 10 + 10 + 100 + 100

    def test_duration_defaults_to_event_length(self, client, student, make_event, register, issue):
        short = register(student, make_event(title='Short Talk')).json()['data']['id']
        long = register(student, make_event(title='Summer School', duration=timedelta(days=3))).json()['data']['id']
        assert issue(short).json()['data']['duration'] == '1 day'
        assert issue(long).json()['data']['duration'] == '3 days'
        assert issue(long, type='completion', duration='40 hours').json()['data']['duration'] == '40 hours'

    def test_recipient_department_is_printed(self, monkeypatch, make_user, make_event, register, issue):
        rendered = []

        def capture(data):
            rendered.append(data)
            return generate_certificate(data)

        monkeypatch.setattr(certificate_service, 'render_certificate', capture)
        physicist = make_user(department='Physics')
        issue(register(physicist, make_event()).json()['data']['id'])
        assert rendered[0]['department'] == 'Physics'

        undeclared = make_user(department=None)
        issue(register(undeclared, make_event(title='Open Lab')).json()['data']['id'])
        assert rendered[1]['department'] == 'Computer Science'

    def test_only_event_managers_issue(self, make_user, registration_id, issue, student, admin):
        assert issue(registration_id, actor=student).status_code == 403
        assert issue(registration_id, actor=make_user(role='organizer')).status_code == 403
        assert issue(registration_id, actor=admin).status_code == 201

    def test_score_bounds(self, registration_id, issue):
        response = issue(registration_id, type='winner', score=120)
        assert response.status_code == 400
        assert response.json()['errors'][0]['field'] == 'score'

    def test_cancelled_registration(self, client, student, registration_id, issue):
        client.delete(f'/api/v1/registrations/{registration_id}', headers=auth_headers(student))
        assert issue(registration_id).json()['reason'] == 'registration_inactive'

    def test_recipient_is_notified(self, client, student, registration_id, issue):
        issue(registration_id)
        titles = [n['title'] for n in client.get('/api/v1/notifications', headers=auth_headers(student)).json()['data']]
        assert 'Certificate issued' in titles


class TestVerify:

    def test_public_verification(self, client, student, organizer, event, registration_id, issue):
        certificate = issue(registration_id, type='completion').json()['data']
        response = client.get(f"/api/v1/certificates/verify/{certificate['verification_code']}")
        assert response.status_code == 200
        data = response.json()['data']
        assert data['certificate_id'] == certificate['certificate_id']
        assert data['recipient_name'] == student.name
        assert data['recipient_email'] == student.email
        assert data['event_title'] == event.title
        assert data['type'] == 'completion'
        assert data['organizer'] == organizer.name
        assert data['status'] == 'active'

    def test_duplicate_attempt_keeps_first_certificate(self, client, registration_id, issue):
        certificate = issue(registration_id).json()['data']
        issue(registration_id)
        data = client.get(f"/api/v1/certificates/verify/{certificate['verification_code']}").json()['data']
        assert data['certificate_id'] == certificate['certificate_id']
        assert data['type'] == 'participation'

    def test_unknown_code(self, client):
        response = client.get('/api/v1/certificates/verify/NOPE00000000')
        assert response.status_code == 404
        assert response.json()['message'] == 'Certificate not found or invalid verification code'

    def test_expired_certificate(self, client, db_session, registration_id, issue):
        certificate = issue(registration_id).json()['data']
        row = db_session.get(Certificate, certificate['id'])
        row.valid_until = datetime.utcnow() - timedelta(days=1)
        db_session.commit()

        response = client.get(f"/api/v1/certificates/verify/{certificate['verification_code']}")
        assert response.status_code == 404
        db_session.refresh(row)
        assert row.status == 'expired'


class TestRevoke:

    def test_revoke(self, client, db_session, admin, registration_id, issue, certificates_dir):
        certificate = issue(registration_id).json()['data']
        pdf = certificates_dir / f"cert_{certificate['certificate_id']}.pdf"
        before = pdf.read_bytes()

        response = client.patch(f"/api/v1/certificates/{certificate['id']}/revoke",
                                json={'reason': 'Issued by mistake'}, headers=auth_headers(admin))
        assert response.status_code == 200
        assert response.json()['data']['status'] == 'revoked'
        assert pdf.read_bytes() == before

        response = client.get(f"/api/v1/certificates/verify/{certificate['verification_code']}")
        assert response.status_code == 404

        response = client.patch(f"/api/v1/certificates/{certificate['id']}/revoke",
                                json={'reason': 'Issued by mistake'}, headers=auth_headers(admin))
        assert response.json()['reason'] == 'already_revoked'

    def test_only_admin_revokes(self, client, organizer, registration_id, issue):
        certificate = issue(registration_id).json()['data']
        response = client.patch(f"/api/v1/certificates/{certificate['id']}/revoke",
                                json={'reason': 'Issued by mistake'}, headers=auth_headers(organizer))
        assert response.status_code == 403

    def test_reason_length(self, client, admin, registration_id, issue):
        certificate = issue(registration_id).json()['data']
        response = client.patch(f"/api/v1/certificates/{certificate['id']}/revoke",
                                json={'reason': 'no'}, headers=auth_headers(admin))
        assert response.status_code == 400


class TestDownloadAndShare:

    def test_download_is_counted(self, client, db_session, student, registration_id, issue):
        certificate = issue(registration_id).json()['data']
        response = client.get(f"/api/v1/certificates/{certificate['id']}/download", headers=auth_headers(student))
        assert response.status_code == 200
        assert response.headers['content-type'] == 'application/pdf'
        assert response.content.startswith(b'%PDF')

        row = db_session.get(Certificate, certificate['id'])
        db_session.refresh(row)
        assert row.download_count == 1
        assert row.last_downloaded is not None

    def test_organizer_cannot_download(self, client, organizer, registration_id, issue):
        certificate = issue(registration_id).json()['data']
        response = client.get(f"/api/v1/certificates/{certificate['id']}/download", headers=auth_headers(organizer))
        assert response.status_code == 403

    def test_share_on_linkedin(self, client, db_session, student, event, registration_id, issue):
        certificate = issue(registration_id).json()['data']
        response = client.post(f"/api/v1/certificates/{certificate['id']}/share", json={'platform': 'linkedin'},
                               headers=auth_headers(student))
        assert response.status_code == 200
        data = response.json()['data']
        assert data['share_url'].startswith('https://www.linkedin.com/sharing/share-offsite/?url=')
        assert data['share_text'] == f'I just received a participation certificate for {event.title}! 🎉'

        row = db_session.get(Certificate, certificate['id'])
        db_session.refresh(row)
        assert (row.share_count, row.linkedin_shares, row.twitter_shares) == (1, 1, 0)

    def test_unknown_platform(self, client, student, registration_id, issue):
        certificate = issue(registration_id).json()['data']
        response = client.post(f"/api/v1/certificates/{certificate['id']}/share", json={'platform': 'myspace'},
                               headers=auth_headers(student))
        assert response.status_code == 400


class TestListings:

    def test_my_certificates(self, client, student, registration_id, issue):
        issue(registration_id)
        issue(registration_id, type='completion')
        data = client.get('/api/v1/certificates/my', headers=auth_headers(student)).json()['data']
        assert {c['type'] for c in data} == {'participation', 'completion'}

    def test_event_certificates_with_stats(self, client, organizer, make_user, event, register, issue):
        for _ in range(2):
            issue(register(make_user(), event).json()['data']['id'])
        data = client.get(f'/api/v1/certificates/event/{event.id}', headers=auth_headers(organizer)).json()['data']
        assert data['stats'] == {'participation': 2, 'total': 2}

    def test_event_certificates_need_manager(self, client, student, event):
        response = client.get(f'/api/v1/certificates/event/{event.id}', headers=auth_headers(student))
        assert response.status_code == 403

    def test_read_single_certificate(self, client, student, make_user, registration_id, issue):
        certificate = issue(registration_id).json()['data']
        url = f"/api/v1/certificates/{certificate['id']}"
        assert client.get(url, headers=auth_headers(student)).status_code == 200
        assert client.get(url, headers=auth_headers(make_user())).status_code == 403
