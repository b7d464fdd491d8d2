# models/participant.py

from extensions import db
from datetime import datetime


class Participant(db.Model):
    __tablename__ = 'participants'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    # По email участник сопоставляется с вошедшим пользователем
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    registered_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
