# models/designer.py

from extensions import db
from datetime import datetime


class Designer(db.Model):
    __tablename__ = 'designers'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    category = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
