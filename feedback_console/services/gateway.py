"""
Gateway to the feedback backend REST API.

Wraps httpx and turns every response into either a typed model or one of
the console errors. Nothing fails silently: a non-2xx response without a
readable error payload is a ServerError, and a failed request is a
TransportError. Requests are not retried.
"""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError as ModelValidationError

from feedback_console import config
from feedback_console.models import (
    AuthenticationError,
    Comment,
    Configuration,
    DuplicateTitle,
    FeedbackSummary,
    Saved,
    SaveResult,
    ServerError,
    TransportError,
    User,
)

logger = logging.getLogger(__name__)

LIST_FILTERS = ('academicYear', 'year', 'semester', 'branch', 'section', 'role')


class FeedbackGateway:
    """Client for the configuration, auth and feedback endpoints."""

    def __init__(self, base_url: str = None, token: Optional[str] = None,
                 timeout: Optional[float] = None, transport: httpx.BaseTransport = None):
        self.base_url = (base_url or config.API_URL).rstrip('/')
        self.token = token
        timeout = timeout if timeout is not None else config.REQUEST_TIMEOUT
        kwargs = {'base_url': self.base_url, 'transport': transport}
        if timeout is not None:
            kwargs['timeout'] = timeout
        self._client = httpx.Client(**kwargs)

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    # ── plumbing ────────────────────────────────────────────────────────

    def _headers(self, auth: bool, required: bool = False) -> Dict[str, str]:
        if not auth:
            return {}
        if not self.token:
            if required:
                raise AuthenticationError("You must be logged in to perform this action")
            return {}
        return {'Authorization': f'Bearer {self.token}'}

    def _request(self, method: str, path: str, action: str, auth: bool = True,
                 auth_required: bool = False, **kwargs) -> httpx.Response:
        headers = self._headers(auth, required=auth_required)
        try:
            return self._client.request(method, path, headers=headers, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"{action} failed: {e}")
            raise TransportError(f"Could not reach the feedback server: {e}") from e

    @staticmethod
    def _payload(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    @staticmethod
    def _error_message(payload: Any) -> Optional[str]:
        if isinstance(payload, dict):
            message = payload.get('error') or payload.get('message')
            if isinstance(message, str) and message:
                return message
        return None

    def _check(self, response: httpx.Response, action: str) -> Any:
        """Return the decoded body of a 2xx response or raise."""
        payload = self._payload(response)
        if response.is_success:
            return payload
        message = self._error_message(payload)
        logger.error(f"{action} failed: status={response.status_code} error={message!r}")
        if response.status_code in (401, 403):
            raise AuthenticationError(message or "Authentication failed. Please log in again.")
        if message is None:
            raise ServerError(f"Server error ({response.status_code})", http_status=response.status_code)
        raise ServerError(message, http_status=response.status_code)

    # ── auth ────────────────────────────────────────────────────────────

    def login(self, username: str, password: str, role: str) -> Dict[str, Any]:
        """Log in and remember the returned token.

        Returns `{'token': str, 'user': User}`.
        """
        response = self._request('POST', '/auth/login', 'Login', auth=False,
                                 json={'username': username, 'password': password, 'role': role})
        data = self._check(response, 'Login')
        token = data.get('token') if isinstance(data, dict) else None
        if not token:
            raise ServerError("Login response did not include a session token",
                              http_status=response.status_code)
        self.token = token
        user_data = data.get('user') or {'username': username, 'role': role}
        return {'token': token, 'user': _validate(User, user_data, response, 'Login')}

    def verify(self) -> User:
        if not self.token:
            raise AuthenticationError("No token")
        response = self._request('GET', '/auth/verify', 'Verify session')
        data = self._check(response, 'Verify session')
        if isinstance(data, dict) and isinstance(data.get('user'), dict):
            data = data['user']
        return _validate(User, data, response, 'Verify session')

    # ── configurations ──────────────────────────────────────────────────

    def create_config(self, configuration: Configuration) -> SaveResult:
        response = self._request('POST', '/config', 'Create config', auth_required=True,
                                 json=configuration.to_payload())
        payload = self._payload(response)
        if self._error_message(payload) == config.DUPLICATE_TITLE_ERROR:
            logger.info(f"Duplicate configuration title: {configuration.title}")
            return DuplicateTitle(title=configuration.title)
        data = self._check(response, 'Create config')
        return Saved(configuration=self._configuration(data, response))

    def list_configs(self, **filters) -> List[Configuration]:
        params = {k: v for k, v in filters.items() if k in LIST_FILTERS and v not in (None, '')}
        response = self._request('GET', '/config', 'Fetch configs', params=params)
        data = self._check(response, 'Fetch configs')
        if not isinstance(data, list):
            raise ServerError("Unexpected response while fetching configurations",
                              http_status=response.status_code)
        return [_validate(Configuration, item, response, 'Fetch configs') for item in data]

    def get_config_by_title(self, title: str) -> Optional[Configuration]:
        response = self._request('GET', f'/config/title/{quote(title, safe="")}',
                                 'Fetch config', auth=False)
        if response.status_code == 404:
            return None
        data = self._check(response, 'Fetch config')
        return self._configuration(data, response)

    def update_config(self, config_id: str, configuration: Configuration) -> Configuration:
        response = self._request('PUT', f'/config/{config_id}', 'Update config', auth_required=True,
                                 json=configuration.to_payload())
        data = self._check(response, 'Update config')
        return self._configuration(data, response)

    def delete_config(self, config_id: str) -> Dict[str, Any]:
        response = self._request('DELETE', f'/config/{config_id}', 'Delete config', auth_required=True)
        data = self._check(response, 'Delete config')
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _configuration(data: Any, response: httpx.Response) -> Configuration:
        if not isinstance(data, dict):
            raise ServerError("Unexpected response for configuration", http_status=response.status_code)
        return _validate(Configuration, data, response, 'Fetch config')

    # ── feedback ────────────────────────────────────────────────────────

    def submit_feedback(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = self._request('POST', '/feedback/submit', 'Submit feedback', auth=False, json=payload)
        data = self._check(response, 'Submit feedback')
        return data if isinstance(data, dict) else {}

    def get_summary(self, **params) -> FeedbackSummary:
        response = self._request('GET', '/feedback/summary', 'Fetch summary', params=_query(params))
        data = self._check(response, 'Fetch summary')
        if not data:
            return FeedbackSummary()
        if not isinstance(data, dict):
            raise ServerError("Unexpected response while fetching summary", http_status=response.status_code)
        return _validate(FeedbackSummary, {
            'summary': data.get('summary') or [],
            'comments': data.get('comments') or [],
        }, response, 'Fetch summary')

    def get_responses(self, **params) -> List[Dict[str, Any]]:
        return self._responses(params)[1]

    def _responses(self, params):
        response = self._request('GET', '/feedback/responses', 'Fetch responses', params=_query(params))
        data = self._check(response, 'Fetch responses')
        if isinstance(data, dict):
            data = data.get('responses') or []
        if not isinstance(data or [], list):
            raise ServerError("Unexpected response while fetching responses", http_status=response.status_code)
        return response, data or []

    def get_comments(self, **params) -> List[Comment]:
        """Comment pairs from the raw responses, skipping blank ones."""
        comments = []
        response, items = self._responses(params)
        for item in items:
            if not isinstance(item, dict):
                continue
            comment = _validate(Comment, item, response, 'Fetch comments')
            if comment.college_comments or comment.department_comments:
                comments.append(comment)
        return comments


def _validate(model, data, response, action):
    """Build `model` from a response body; a body that does not fit is a ServerError."""
    try:
        return model.model_validate(data)
    except ModelValidationError as e:
        logger.error(f"{action} returned an unexpected body: {e.error_count()} invalid field(s)")
        raise ServerError(f"Unexpected response from the feedback server ({action.lower()})",
                          http_status=response.status_code) from e


def _query(params):
    """Drop empty values and render booleans the way the backend expects."""
    query = {}
    for key, value in params.items():
        if value is None or value == '':
            continue
        query[key] = str(value).lower() if isinstance(value, bool) else value
    return query
