# models/show.py

from extensions import db
from sqlalchemy import CheckConstraint


class Show(db.Model):
    __tablename__ = 'shows'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    location = db.Column(db.String(200), nullable=False, default='')
    # Время хранится в UTC без часового пояса
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False)

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="check_show_interval"),
    )
