# repository.py
# Явные запросы к базе. Наружу отдаются простые неизменяемые записи, а не ORM-объекты,
# чтобы бизнес-логика не зависела от ленивой подгрузки связей.

from collections import Counter
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional

from sqlalchemy import func

from extensions import db
from models import Participant, Designer, Show, Registration, DesignerAssignment, Vote


@dataclass(frozen=True)
class ShowInfo:
    id: int
    name: str
    location: str
    start_time: datetime
    end_time: datetime

    def to_dict(self):
        data = asdict(self)
        data['start_time'] = self.start_time.isoformat()
        data['end_time'] = self.end_time.isoformat()
        return data


@dataclass(frozen=True)
class DesignerInfo:
    id: int
    name: str
    category: str

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class ParticipantInfo:
    id: int
    name: str
    email: str
    registered_at: datetime

    def to_dict(self):
        data = asdict(self)
        data['registered_at'] = self.registered_at.isoformat()
        return data


@dataclass(frozen=True)
class VoteInfo:
    id: int
    participant_id: int
    designer_id: int
    show_id: int
    voted_at: datetime
    image_ref: Optional[str] = None

    def to_dict(self):
        data = asdict(self)
        data['voted_at'] = self.voted_at.isoformat()
        return data


def _show_info(show):
    return ShowInfo(show.id, show.name, show.location, show.start_time, show.end_time)


def _designer_info(designer):
    return DesignerInfo(designer.id, designer.name, designer.category)


def _participant_info(participant):
    return ParticipantInfo(participant.id, participant.name, participant.email, participant.registered_at)


def _vote_info(vote):
    return VoteInfo(vote.id, vote.participant_id, vote.designer_id, vote.show_id, vote.voted_at, vote.image_ref)


# --- Шоу ---

def get_show(show_id):
    show = db.session.get(Show, show_id)
    return _show_info(show) if show else None


def list_shows(ending_after=None):
    query = Show.query
    if ending_after is not None:
        query = query.filter(Show.end_time > ending_after)
    return [_show_info(s) for s in query.order_by(Show.start_time, Show.id).all()]


def show_designers(show_id):
    """Дизайнеры шоу в порядке назначения."""
    rows = db.session.query(Designer).join(
        DesignerAssignment, DesignerAssignment.designer_id == Designer.id
    ).filter(
        DesignerAssignment.show_id == show_id
    ).order_by(DesignerAssignment.id).all()
    return [_designer_info(d) for d in rows]


def show_participants(show_id):
    rows = db.session.query(Participant).join(
        Registration, Registration.participant_id == Participant.id
    ).filter(
        Registration.show_id == show_id
    ).order_by(Registration.id).all()
    return [_participant_info(p) for p in rows]


def show_counts():
    """{show_id: (дизайнеров, участников, голосов)} для списка шоу в админке."""
    def grouped(model):
        return dict(
            db.session.query(model.show_id, func.count(model.id)).group_by(model.show_id).all()
        )

    designers = grouped(DesignerAssignment)
    participants = grouped(Registration)
    votes = grouped(Vote)
    show_ids = set(designers) | set(participants) | set(votes)
    return {
        show_id: (designers.get(show_id, 0), participants.get(show_id, 0), votes.get(show_id, 0))
        for show_id in show_ids
    }


# --- Участники и дизайнеры ---

def get_participant(participant_id):
    participant = db.session.get(Participant, participant_id)
    return _participant_info(participant) if participant else None


def get_participant_by_email(email):
    if not email:
        return None
    participant = Participant.query.filter(func.lower(Participant.email) == email.lower()).first()
    return _participant_info(participant) if participant else None


def list_participants():
    return [_participant_info(p) for p in Participant.query.order_by(Participant.registered_at.desc(), Participant.id).all()]


def get_designer(designer_id):
    designer = db.session.get(Designer, designer_id)
    return _designer_info(designer) if designer else None


def list_designers():
    return [_designer_info(d) for d in Designer.query.order_by(Designer.name, Designer.id).all()]


# --- Регистрации ---

def registered_shows(participant_id):
    """Шоу, на которые записан участник, вместе со временем начала и конца."""
    rows = db.session.query(Show).join(
        Registration, Registration.show_id == Show.id
    ).filter(
        Registration.participant_id == participant_id
    ).order_by(Show.start_time, Show.id).all()
    return [_show_info(s) for s in rows]


def is_registered(participant_id, show_id):
    return db.session.query(Registration.id).filter_by(
        participant_id=participant_id, show_id=show_id
    ).first() is not None


def find_registration(participant_id, show_id):
    return Registration.query.filter_by(participant_id=participant_id, show_id=show_id).first()


# --- Голоса ---

def find_vote(participant_id, designer_id, show_id):
    return Vote.query.filter_by(
        participant_id=participant_id, designer_id=designer_id, show_id=show_id
    ).first()


def voted_designer_ids(participant_id, show_id):
    rows = db.session.query(Vote.designer_id).filter_by(
        participant_id=participant_id, show_id=show_id
    ).all()
    return {designer_id for (designer_id,) in rows}


def vote_counts(show_id):
    rows = db.session.query(Vote.designer_id, func.count(Vote.id)).filter(
        Vote.show_id == show_id
    ).group_by(Vote.designer_id).all()
    return Counter(dict(rows))


def list_votes():
    return [_vote_info(v) for v in Vote.query.order_by(Vote.voted_at, Vote.id).all()]


def image_refs_for(**filters):
    """Ссылки на картинки голосов, которые исчезнут вместе с удаляемой записью."""
    rows = db.session.query(Vote.image_ref).filter_by(**filters).filter(Vote.image_ref.isnot(None)).all()
    return [ref for (ref,) in rows]
