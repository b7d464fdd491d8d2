from extensions import db
from datetime import datetime


class Vote(db.Model):
    __tablename__ = 'votes'
    id = db.Column(db.Integer, primary_key=True)
    participant_id = db.Column(db.Integer, db.ForeignKey('participants.id', ondelete='CASCADE'), nullable=False)
    designer_id = db.Column(db.Integer, db.ForeignKey('designers.id', ondelete='CASCADE'), nullable=False)
    show_id = db.Column(db.Integer, db.ForeignKey('shows.id', ondelete='CASCADE'), nullable=False, index=True)
    voted_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    # Ссылка на файл в хранилище картинок (не путь)
    image_ref = db.Column(db.String(100), nullable=True)

    __table_args__ = (
        db.UniqueConstraint('participant_id', 'designer_id', 'show_id', name='unique_vote'),
    )
