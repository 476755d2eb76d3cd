import logging

from flask import Blueprint, session

from feedback_console.config import ROLES
from feedback_console.models import ValidationError
from .common import SESSION_KEY, console_session, registry, request_data, success

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request_data()
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''
    role = (data.get('role') or '').strip().lower()

    if not username or not password or not role:
        raise ValidationError({'login': 'Username, password and role are required'})
    if role not in ROLES:
        raise ValidationError({'role': f'Unknown role: {role}'})

    # A new identity replaces the previous session and its live connection
    previous = session.pop(SESSION_KEY, None)
    if previous:
        registry().logout(previous)

    session_id, console = registry().login(username, password, role)
    session[SESSION_KEY] = session_id
    return success("Login successful", user=console.user.to_wire())


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session_id = session.pop(SESSION_KEY, None)
    if session_id:
        registry().logout(session_id)
    return success("Logged out")


@auth_bp.route('/me', methods=['GET'])
def me():
    console = console_session()
    return success(
        user=console.user.to_wire(),
        liveUpdates=bool(console.notifier and console.notifier.connected),
    )
