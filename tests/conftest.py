"""
Shared fixtures: an in-memory feedback backend served through
httpx.MockTransport and a fake Socket.IO client.
"""
import json
from urllib.parse import unquote

import httpx
import pytest
from socketio.exceptions import ConnectionError as SocketConnectionError

from feedback_console.config import DUPLICATE_TITLE_ERROR
from feedback_console.services.gateway import FeedbackGateway
from feedback_console.services.notifier import LiveUpdateNotifier
from feedback_console.web import create_app

PASSWORD = 'secret'

USERS = {
    'admin': {'username': 'admin', 'role': 'admin', 'branch': 'CSE'},
    'cse_coord': {'username': 'cse_coord', 'role': 'coordinator', 'branch': 'CSE'},
    'bsh_staff': {'username': 'bsh_staff', 'role': 'bsh', 'branch': 'BSH'},
}


def question_scores(percentages, max_score=5):
    return {
        f'Q{i}': {'score': round(max_score * p / 100, 2), 'percentage': p}
        for i, p in enumerate(percentages, start=1)
    }


SAMPLE_SUMMARY = {
    'summary': [
        {
            'teacherName': 'Dr. Rao',
            'subjectName': 'Maths',
            'type': 'Theory',
            'totalResponses': 42,
            'questionScores': question_scores([80, 90, 70, 60, 100, 80, 90, 70, 60, 100]),
        },
        {
            'teacherName': 'Ms. Devi',
            'subjectName': 'Physics Lab',
            'type': 'Lab',
            'totalResponses': 40,
            'questionScores': question_scores([50] * 10),
        },
    ],
    'comments': [
        {'collegeComments': 'Good library', 'departmentComments': '', 'submittedAt': '2024-11-02T10:15:00Z'},
        {'collegeComments': None, 'departmentComments': 'More lab hours & <projects>',
         'submittedAt': '2024-11-03T09:00:00Z'},
    ],
}


class FakeBackend:
    """Just enough of the feedback backend for the console's requests."""

    def __init__(self):
        self.configs = {}
        self.next_id = 1
        self.summary = json.loads(json.dumps(SAMPLE_SUMMARY))
        self.responses = [
            {'collegeComments': 'Canteen', 'departmentComments': 'Labs', 'submittedAt': '2024-11-02T10:15:00Z'},
            {'collegeComments': '', 'departmentComments': '', 'submittedAt': '2024-11-02T11:00:00Z'},
        ]
        self.requests = []
        self.fail_with = None
        # (method, path) -> handler, for one misbehaving endpoint
        self.overrides = {}

    def transport(self):
        return httpx.MockTransport(self)

    def gateway(self, token=None):
        return FeedbackGateway('http://backend.test', token=token, transport=self.transport())

    @staticmethod
    def _json(status, payload):
        return httpx.Response(status, json=payload)

    def _user_for(self, request):
        header = request.headers.get('Authorization', '')
        if not header.startswith('Bearer token-'):
            return None
        return USERS.get(header[len('Bearer token-'):])

    def __call__(self, request):
        self.requests.append(request)
        if self.fail_with is not None:
            return self.fail_with(request)

        method, path = request.method, request.url.path
        if (method, path) in self.overrides:
            return self.overrides[(method, path)](request)
        body = json.loads(request.content) if request.content else None

        if path == '/auth/login':
            user = USERS.get(body['username'])
            if user is None or body['password'] != PASSWORD or body['role'] != user['role']:
                return self._json(401, {'error': 'Invalid credentials'})
            return self._json(200, {'token': f"token-{user['username']}", 'user': user})

        if path == '/auth/verify':
            user = self._user_for(request)
            return self._json(200, {'user': user}) if user else self._json(401, {'error': 'Invalid token'})

        if path.startswith('/config/title/'):
            title = unquote(path[len('/config/title/'):])
            record = next((c for c in self.configs.values() if c['title'] == title), None)
            return self._json(200, record) if record else self._json(404, {'error': 'Not found'})

        if path == '/config' and method == 'GET':
            params = request.url.params
            records = list(self.configs.values())
            if params.get('role') == 'bsh':
                records = [c for c in records if c['branch'].endswith('-BSH')]
            if params.get('branch'):
                records = [c for c in records if c['branch'] == params['branch']]
            return self._json(200, records)

        if path == '/config' and method == 'POST':
            if self._user_for(request) is None:
                return self._json(401, {'error': 'Unauthorized'})
            if any(c['title'] == body['title'] for c in self.configs.values()):
                return self._json(400, {'error': DUPLICATE_TITLE_ERROR})
            record = dict(body, _id=str(self.next_id))
            self.next_id += 1
            self.configs[record['_id']] = record
            return self._json(201, record)

        if path.startswith('/config/'):
            config_id = path[len('/config/'):]
            if self._user_for(request) is None:
                return self._json(401, {'error': 'Unauthorized'})
            if config_id not in self.configs:
                return self._json(404, {'error': 'Configuration not found'})
            if method == 'PUT':
                self.configs[config_id] = dict(body, _id=config_id)
                return self._json(200, self.configs[config_id])
            if method == 'DELETE':
                del self.configs[config_id]
                return self._json(200, {'message': 'Configuration deleted'})

        if path == '/feedback/summary':
            return self._json(200, self.summary)

        if path == '/feedback/responses':
            return self._json(200, self.responses)

        if path == '/feedback/submit':
            return self._json(201, {'message': 'Feedback submitted'})

        return self._json(404, {'error': f'No route for {method} {path}'})


class FakeSocketClient:
    """Stands in for socketio.Client."""

    def __init__(self, fail=False):
        self.fail = fail
        self.handlers = {}
        self.emitted = []
        self.connected = False
        self.url = None
        self.connect_kwargs = None

    def on(self, event, handler=None):
        self.handlers[event] = handler

    def connect(self, url, **kwargs):
        if self.fail:
            raise SocketConnectionError('Connection refused')
        self.url = url
        self.connect_kwargs = kwargs
        self.connected = True
        if 'connect' in self.handlers:
            self.handlers['connect']()

    def emit(self, event, data=None):
        self.emitted.append((event, data))

    def disconnect(self):
        self.connected = False

    def trigger(self, event):
        self.handlers[event]()


class SocketHub:
    """Collects every fake client created by a notifier factory."""

    def __init__(self):
        self.clients = []

    def factory(self):
        client = FakeSocketClient()
        self.clients.append(client)
        return client

    def notifier(self):
        return LiveUpdateNotifier('http://socket.test', client_factory=self.factory)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def hub():
    return SocketHub()


@pytest.fixture
def app(backend, hub):
    return create_app(
        {'TESTING': True, 'SECRET_KEY': 'test-secret'},
        gateway_factory=backend.gateway,
        notifier_factory=hub.notifier,
    )


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, username='admin', role=None):
    role = role or USERS[username]['role']
    return client.post('/login', json={'username': username, 'password': PASSWORD, 'role': role})


@pytest.fixture
def admin_client(client):
    response = login(client, 'admin')
    assert response.status_code == 200
    return client


@pytest.fixture
def sample_config():
    """The configuration used by the end-to-end scenario."""
    return {
        'title': 'CSE-D-4-1',
        'branch': 'CSE',
        'academicYear': '2024-2025',
        'year': 4,
        'semester': 1,
        'section': 'D',
        'theorySubjects': [{'teacherName': 'A', 'subjectName': 'Maths'}],
        'labSubjects': [{'labTeacherName': 'B', 'labName': 'Physics Lab'}],
    }
