from flask import current_app, jsonify, request, session
from pydantic import ValidationError as ModelValidationError

from feedback_console.models import AuthenticationError, Configuration, ValidationError

SESSION_KEY = 'console_sid'


def registry():
    return current_app.extensions['session_registry']


def console_session():
    """The ConsoleSession for the current browser session, or 401."""
    console = registry().get(session.get(SESSION_KEY))
    if console is None:
        raise AuthenticationError("Please log in to continue")
    return console


def request_data():
    """JSON body, falling back to form fields."""
    data = request.get_json(silent=True)
    if data is None:
        data = request.form.to_dict()
    return data


def parse_form(data):
    """Build a Configuration from posted form state."""
    if not isinstance(data, dict):
        raise ValidationError({'form': 'Configuration data is required'})
    try:
        return Configuration.model_validate(data)
    except ModelValidationError as e:
        errors = {}
        for error in e.errors():
            field = '.'.join(str(part) for part in error['loc']) or 'form'
            errors.setdefault(field, error['msg'])
        raise ValidationError(errors)


def success(message=None, status=200, **payload):
    body = {'success': True}
    if message:
        body['message'] = message
    body.update(payload)
    return jsonify(body), status


def truthy(value):
    return str(value or '').strip().lower() in ('1', 'true', 'yes', 'on')
