"""
Flask application factory for the staff console.
"""
import logging

from flask import Flask, jsonify, session
from werkzeug.exceptions import HTTPException

from feedback_console import config
from feedback_console.models import AuthenticationError, ConsoleError, DuplicateIdentityError, ValidationError
from feedback_console.routes.auth_routes import auth_bp
from feedback_console.routes.common import SESSION_KEY
from feedback_console.routes.config_routes import config_bp
from feedback_console.routes.summary_routes import summary_bp
from feedback_console.services.gateway import FeedbackGateway
from feedback_console.services.notifier import LiveUpdateNotifier
from feedback_console.services.session import SessionRegistry

logger = logging.getLogger("feedback_console")


def create_app(overrides=None, gateway_factory=None, notifier_factory=None):
    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=config.SECRET_KEY,
        API_URL=config.API_URL,
        SOCKET_URL=config.SOCKET_URL,
        REQUEST_TIMEOUT=config.REQUEST_TIMEOUT,
        SCORE_POLICY=config.SCORE_POLICY,
        LIVE_UPDATES=True,
    )
    if overrides:
        app.config.update(overrides)

    if gateway_factory is None:
        def gateway_factory():
            return FeedbackGateway(app.config['API_URL'], timeout=app.config['REQUEST_TIMEOUT'])
    if notifier_factory is None and app.config['LIVE_UPDATES']:
        def notifier_factory():
            return LiveUpdateNotifier(app.config['SOCKET_URL'])

    app.extensions['session_registry'] = SessionRegistry(gateway_factory, notifier_factory)

    app.register_blueprint(auth_bp)
    app.register_blueprint(config_bp)
    app.register_blueprint(summary_bp)
    register_error_handlers(app)
    return app


def register_error_handlers(app):
    @app.errorhandler(ConsoleError)
    def handle_console_error(e):
        body = {'success': False, 'message': e.message}
        if isinstance(e, ValidationError):
            body['errors'] = e.messages
        elif isinstance(e, DuplicateIdentityError):
            body['duplicate'] = True
            body['title'] = e.title
        elif isinstance(e, AuthenticationError):
            # The backend no longer accepts this session's token
            session_id = session.pop(SESSION_KEY, None)
            if session_id:
                app.extensions['session_registry'].logout(session_id)
        return jsonify(body), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({'success': False, 'message': e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        logger.exception(f"Unhandled error: {e}")
        return jsonify({'success': False, 'message': 'Unable to process request. Please try again.'}), 500
