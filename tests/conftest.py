"""
Campus Events - test configuration and fixtures
"""
import os
from datetime import datetime, timedelta

# settings are read at import time
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['FRONTEND_URL'] = 'http://testserver.local'

import pytest
from faker import Faker
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from campus_events import config
from campus_events.auth import get_password_hash, token_for_user
from campus_events.database import Base, get_db
from campus_events.models.event import Event
from campus_events.models.user import User

fake = Faker()

PASSWORD = 'password123'
# bcrypt is slow, hash once for every fixture user
PASSWORD_HASH = get_password_hash(PASSWORD)

test_engine = create_engine(
    'sqlite://',
    connect_args={'check_same_thread': False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def auth_headers(user: User) -> dict:
    return {'Authorization': f'Bearer {token_for_user(user)}'}


@pytest.fixture
def db_session():
    """Fresh in-memory database for each test"""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db_session):
    """Test client sharing the test session"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def certificates_dir(tmp_path, monkeypatch):
    path = tmp_path / 'certificates'
    monkeypatch.setattr(config, 'CERTIFICATES_DIR', str(path))
    return path


@pytest.fixture
def make_user(db_session):
    def factory(role='student', department='Computer Science', points=0, is_active=True, name=None):
        user = User(
            name=name or fake.name()[:50],
            email=fake.unique.email().lower(),
            hashed_password=PASSWORD_HASH,
            role=role,
            department=department,
            year='2nd' if role == 'student' else 'Faculty',
            points=points,
            is_active=is_active,
            is_verified=True,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return factory


@pytest.fixture
def admin(make_user):
    return make_user(role='admin')


@pytest.fixture
def organizer(make_user):
    return make_user(role='organizer')


@pytest.fixture
def student(make_user):
    return make_user()


@pytest.fixture
def make_event(db_session, organizer):
    """Approved event starting in a week, created straight through the ORM"""
    def factory(owner=None, status='approved', max_participants=None, is_team_event=False,
                team_size_max=1, registration_fee=0.0, start_in=timedelta(days=7),
                deadline_in=timedelta(days=5), duration=timedelta(hours=8),
                visibility='public', department='Computer Science', title=None):
        now = datetime.utcnow()
        event = Event(
            title=title or 'Intro to Robotics',
            description='A hands-on introduction to building small robots.',
            department=department,
            category='workshop',
            start_date=now + start_in,
            end_date=now + start_in + duration,
            registration_deadline=now + deadline_in,
            venue='Main Auditorium',
            organizer_id=(owner or organizer).id,
            max_participants=max_participants,
            registration_fee=registration_fee,
            is_team_event=is_team_event,
            team_size_min=1,
            team_size_max=team_size_max,
            status=status,
            visibility=visibility,
        )
        db_session.add(event)
        db_session.commit()
        db_session.refresh(event)
        return event
    return factory


@pytest.fixture
def event(make_event):
    return make_event()


@pytest.fixture
def register(client):
    """Registers a user for an event through the API and returns the response"""
    def do_register(user, event, **payload):
        return client.post('/api/v1/registrations', json={'event_id': event.id, **payload},
                           headers=auth_headers(user))
    return do_register


def move_event_to_past(db_session, event):
    now = datetime.utcnow()
    event.registration_deadline = now - timedelta(days=3)
    event.start_date = now - timedelta(days=2)
    event.end_date = now - timedelta(days=1)
    db_session.commit()
