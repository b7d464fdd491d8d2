# models/registration.py

from extensions import db
from datetime import datetime
from sqlalchemy import UniqueConstraint


class Registration(db.Model):
    __tablename__ = 'registrations'

    id = db.Column(db.Integer, primary_key=True)
    participant_id = db.Column(db.Integer, db.ForeignKey('participants.id', ondelete='CASCADE'), nullable=False, index=True)
    show_id = db.Column(db.Integer, db.ForeignKey('shows.id', ondelete='CASCADE'), nullable=False, index=True)
    registered_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint('participant_id', 'show_id', name='unique_participant_show'),
    )
