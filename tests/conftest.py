"""Shared fixtures: an app on a throwaway SQLite file and small factories."""

from datetime import datetime, timedelta

import pytest

from app import create_app
from config import TestConfig
from extensions import db
from identity import Caller
from models import User, Participant, Designer, Show, Registration, DesignerAssignment, Vote
from notifications import EventChannel

# Всё расписание в тестах строится от этого момента
BASE = datetime(2030, 5, 1, 10, 0)


def at(hour, minute=0, day=0):
    return BASE.replace(hour=hour, minute=minute) + timedelta(days=day)


class RecordingChannel(EventChannel):
    def __init__(self):
        self.events = []

    def publish(self, event, payload):
        self.events.append((event, payload))


@pytest.fixture
def app(tmp_path):
    app = create_app(TestConfig, overrides={
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'test.db'}",
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
    })
    app.extensions['event_channel'] = RecordingChannel()
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def channel(app):
    return app.extensions['event_channel']


@pytest.fixture
def files(app):
    return app.extensions['file_store']


@pytest.fixture
def make_show(app):
    def _make(name='Show', start=None, end=None, location='Main Hall'):
        start = start or at(10)
        end = end or start + timedelta(hours=2)
        show = Show(name=name, location=location, start_time=start, end_time=end)
        db.session.add(show)
        db.session.commit()
        return show
    return _make


@pytest.fixture
def make_designer(app):
    def _make(name='Designer', category='Couture', shows=()):
        designer = Designer(name=name, category=category)
        db.session.add(designer)
        db.session.commit()
        for show in shows:
            db.session.add(DesignerAssignment(designer_id=designer.id, show_id=show.id))
        db.session.commit()
        return designer
    return _make


@pytest.fixture
def make_participant(app):
    counter = {'n': 0}

    def _make(name=None, email=None, shows=()):
        counter['n'] += 1
        email = email or f"p{counter['n']}@example.com"
        participant = Participant(name=name or f"Participant {counter['n']}", email=email)
        db.session.add(participant)
        db.session.commit()
        for show in shows:
            db.session.add(Registration(participant_id=participant.id, show_id=show.id))
        db.session.commit()
        return participant
    return _make


@pytest.fixture
def make_user(app):
    def _make(email, role='participant', password='secret'):
        user = User(email=email, role=role)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user
    return _make


def caller_for(participant):
    return Caller(user_id=participant.id, email=participant.email, role='participant')


ADMIN = Caller(user_id=1, email='admin@example.com', role='admin')


def add_vote(participant, designer, show, image_ref=None):
    vote = Vote(participant_id=participant.id, designer_id=designer.id, show_id=show.id, image_ref=image_ref)
    db.session.add(vote)
    db.session.commit()
    return vote


def login_as(client, user_id, email, role):
    with client.session_transaction() as sess:
        sess['user_id'] = user_id
        sess['user_email'] = email
        sess['user_role'] = role
