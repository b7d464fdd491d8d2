# routes/auth.py
# Маршруты для авторизации

import logging

from flask import Blueprint, request, session, jsonify
from sqlalchemy.exc import IntegrityError

from errors import ValidationError, AuthorizationError, DuplicateEmail
from extensions import db
from identity import PARTICIPANT, current_caller, login_required
from models import User, Participant

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


def request_data():
    # Принимаем и JSON, и обычную форму
    data = request.get_json(silent=True)
    if data is None:
        return request.form
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object.', code='BAD_BODY')
    return data


@auth_bp.route('/signup', methods=['POST'])
def signup():
    data = request_data()
    name = (data.get('name') or '').strip()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    if not name or not email or not password:
        raise ValidationError('Name, email and password are required.')

    user = User(email=email, role=PARTICIPANT)
    user.set_password(password)
    # Учётная запись и участник создаются вместе, связь между ними - email
    db.session.add_all([user, Participant(name=name, email=email)])
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateEmail(email)

    logger.info("New participant signed up: %s", email)
    return jsonify({'message': 'Account created.', 'email': email}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request_data()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    if not email or not password:
        raise ValidationError('Please enter your email and password.')

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        raise AuthorizationError('Invalid email or password.', code='BAD_CREDENTIALS')

    session.clear()  # Очищаем старую сессию для безопасности
    session['user_id'] = user.id
    session['user_role'] = user.role
    session['user_email'] = user.email
    return jsonify({'message': 'Logged in.', 'role': user.role})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return jsonify({'message': 'Logged out.'})


@auth_bp.route('/me')
@login_required
def me():
    caller = current_caller()
    return jsonify({'user_id': caller.user_id, 'email': caller.email, 'role': caller.role})
