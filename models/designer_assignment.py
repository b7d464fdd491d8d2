# models/designer_assignment.py

from extensions import db
from datetime import datetime


class DesignerAssignment(db.Model):
    __tablename__ = 'designer_assignments'
    # Порядок id = порядок назначения, на нём держится порядок при равных голосах
    id = db.Column(db.Integer, primary_key=True)
    designer_id = db.Column(db.Integer, db.ForeignKey('designers.id', ondelete='CASCADE'), nullable=False)
    show_id = db.Column(db.Integer, db.ForeignKey('shows.id', ondelete='CASCADE'), nullable=False, index=True)
    assigned_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('designer_id', 'show_id', name='unique_designer_show'),
    )
