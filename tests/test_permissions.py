"""
Capability check tests
"""
from types import SimpleNamespace

import pytest

from campus_events.errors import PermissionDenied
from campus_events.permissions import can, ensure_can


def user(id, role='student', department='Computer Science'):
    return SimpleNamespace(id=id, role=role, department=department)


def event(organizer_id=1, status='approved', visibility='public', department='Computer Science', co_organizers=()):
    return SimpleNamespace(organizer_id=organizer_id, status=status, visibility=visibility,
                           department=department, co_organizers=list(co_organizers))


ORGANIZER = user(1, 'organizer')
CO_ORGANIZER = user(2, 'organizer')
STUDENT = user(3)
OUTSIDER = user(4, department='History')
ADMIN = user(5, 'admin')


class TestEventPermissions:

    def test_managers(self):
        approved = event(co_organizers=[CO_ORGANIZER])
        assert can(ORGANIZER, 'event.manage', approved)
        assert can(CO_ORGANIZER, 'event.manage', approved)
        assert can(ADMIN, 'event.manage', approved)
        assert not can(STUDENT, 'event.manage', approved)

    @pytest.mark.parametrize('status', ['draft', 'pending', 'rejected'])
    def test_unapproved_events_are_hidden(self, status):
        assert not can(STUDENT, 'event.view', event(status=status))
        assert can(ORGANIZER, 'event.view', event(status=status))

    def test_department_only(self):
        restricted = event(visibility='department-only')
        assert can(STUDENT, 'event.view', restricted)
        assert not can(OUTSIDER, 'event.view', restricted)
        assert not can(None, 'event.view', restricted)

    def test_private(self):
        assert not can(STUDENT, 'event.view', event(visibility='private'))
        assert can(ORGANIZER, 'event.view', event(visibility='private'))


class TestRegistrationPermissions:

    def registration(self, user_id=STUDENT.id, is_team_lead=False):
        return SimpleNamespace(user_id=user_id, event=event(), is_team_lead=is_team_lead)

    def test_check_in(self):
        registration = self.registration()
        assert can(ORGANIZER, 'registration.checkin', registration)
        assert can(STUDENT, 'registration.checkin', registration, method='self-checkin')
        assert not can(STUDENT, 'registration.checkin', registration, method='manual')
        assert not can(OUTSIDER, 'registration.checkin', registration, method='self-checkin')

    def test_cancel(self):
        registration = self.registration()
        assert can(STUDENT, 'registration.cancel', registration)
        assert can(ADMIN, 'registration.cancel', registration)
        assert not can(ORGANIZER, 'registration.cancel', registration)

    def test_feedback_is_owner_only(self):
        assert not can(ADMIN, 'registration.feedback', self.registration())

    def test_team_is_lead_only(self):
        assert can(STUDENT, 'registration.team', self.registration(is_team_lead=True))
        assert not can(STUDENT, 'registration.team', self.registration())


class TestCertificatePermissions:

    def test_download(self):
        certificate = SimpleNamespace(user_id=STUDENT.id, event=event())
        assert can(STUDENT, 'certificate.download', certificate)
        assert can(ADMIN, 'certificate.download', certificate)
        assert not can(ORGANIZER, 'certificate.download', certificate)
        assert can(ORGANIZER, 'certificate.view', certificate)


def test_forum_post():
    post = SimpleNamespace(author_id=STUDENT.id)
    assert can(STUDENT, 'forum.manage_post', post)
    assert can(ADMIN, 'forum.manage_post', post)
    assert not can(OUTSIDER, 'forum.manage_post', post)


def test_unknown_action():
    with pytest.raises(ValueError):
        can(ADMIN, 'event.teleport', event())


def test_ensure_can_raises_with_message():
    with pytest.raises(PermissionDenied) as excinfo:
        ensure_can(STUDENT, 'event.manage', event(), 'Not authorized to update this event')
    assert excinfo.value.message == 'Not authorized to update this event'
    assert excinfo.value.status_code == 403
