# identity.py
# Кто делает запрос. Маршруты собирают Caller из сессии и передают его в логику явно.

from dataclasses import dataclass
from functools import wraps
from typing import Optional

from flask import session

from errors import NotAuthenticated, RoleRequired

ADMIN = 'admin'
PARTICIPANT = 'participant'


@dataclass(frozen=True)
class Caller:
    user_id: int
    email: str
    role: str

    @property
    def is_admin(self):
        return self.role == ADMIN


def current_caller() -> Optional[Caller]:
    if 'user_id' not in session:
        return None
    return Caller(session['user_id'], session.get('user_email'), session.get('user_role'))


def require_role(caller, *roles):
    if caller is None:
        raise NotAuthenticated()
    if roles and caller.role not in roles:
        raise RoleRequired(roles)
    return caller


def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        require_role(current_caller())
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        require_role(current_caller(), ADMIN)
        return f(*args, **kwargs)
    return decorated_function
