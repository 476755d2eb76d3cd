"""Tests for console sessions and the session registry."""

import httpx
import pytest

from feedback_console.models import (
    AuthenticationError,
    Configuration,
    DuplicateTitle,
    Saved,
    SubmissionInProgressError,
    ValidationError,
)
from feedback_console.services.notifier import CONFIG_REFRESH, CONFIG_UPDATED, LiveUpdateNotifier
from feedback_console.services.session import SessionRegistry

from conftest import PASSWORD, FakeSocketClient


@pytest.fixture
def registry(backend, hub):
    registry = SessionRegistry(backend.gateway, hub.notifier)
    yield registry
    registry.close_all()


@pytest.fixture
def form(sample_config):
    return Configuration.model_validate(sample_config)


class TestRegistry:
    def test_login_opens_session(self, registry, hub):
        session_id, session = registry.login('admin', PASSWORD, 'admin')
        assert registry.get(session_id) is session
        assert len(registry) == 1
        assert session.notifier.connected
        assert hub.clients[0].emitted[:2] == [('join-room', 'admin'), ('join-room', 'all-branches')]

    def test_failed_login_opens_nothing(self, registry, hub):
        with pytest.raises(AuthenticationError):
            registry.login('admin', 'wrong', 'admin')
        assert len(registry) == 0
        assert hub.clients == []

    def test_logout_closes_connection(self, registry, hub):
        session_id, _ = registry.login('admin', PASSWORD, 'admin')
        assert registry.logout(session_id)
        assert not hub.clients[0].connected
        assert registry.get(session_id) is None
        assert not registry.logout(session_id)

    def test_failed_start_closes_gateway(self, backend):
        class BrokenClient(FakeSocketClient):
            def connect(self, url, **kwargs):
                raise RuntimeError('socket layer crashed')

        gateways = []

        def gateway_factory():
            gateways.append(backend.gateway())
            return gateways[-1]

        registry = SessionRegistry(gateway_factory, lambda: LiveUpdateNotifier('http://socket.test', BrokenClient))
        with pytest.raises(RuntimeError):
            registry.login('admin', PASSWORD, 'admin')
        assert len(registry) == 0
        assert gateways[0]._client.is_closed


class TestConfigList:
    def test_coordinator_sees_own_branch(self, registry, backend, form):
        backend.configs = {
            '1': dict(form.to_payload(), _id='1'),
            '2': dict(form.to_payload(), _id='2', title='ECE-A-4-1', branch='ECE'),
        }
        _, session = registry.login('cse_coord', PASSWORD, 'coordinator')
        assert [c.title for c in session.configs()] == ['CSE-D-4-1']

    def test_bsh_filter(self, registry, backend):
        _, session = registry.login('bsh_staff', PASSWORD, 'bsh')
        session.configs()
        assert backend.requests[-1].url.params['role'] == 'bsh'

    def test_cached_until_refresh(self, registry, backend):
        _, session = registry.login('admin', PASSWORD, 'admin')
        session.configs()
        count = len(backend.requests)
        session.configs()
        assert len(backend.requests) == count
        session.configs(refresh=True)
        assert len(backend.requests) == count + 1

    def test_refresh_hint_refetches(self, registry, backend, hub, form):
        _, session = registry.login('admin', PASSWORD, 'admin')
        assert session.configs() == []
        version = session.version

        backend.configs['1'] = dict(form.to_payload(), _id='1')
        hub.clients[0].trigger(CONFIG_REFRESH)

        assert session.version == version + 1
        assert [c.title for c in session.configs()] == ['CSE-D-4-1']


class TestSave:
    def test_create_refreshes_and_broadcasts(self, registry, hub, form):
        _, session = registry.login('admin', PASSWORD, 'admin')
        result = session.save(form)
        assert isinstance(result, Saved)
        assert session.find_config(result.configuration.id).title == 'CSE-D-4-1'
        assert hub.clients[0].emitted[-1] == (CONFIG_UPDATED, {'branch': 'CSE'})

    def test_duplicate_title(self, registry, backend, hub, form):
        _, session = registry.login('admin', PASSWORD, 'admin')
        session.save(form)
        emitted = len(hub.clients[0].emitted)

        result = session.save(form)
        assert isinstance(result, DuplicateTitle)
        assert result.message == 'Configuration with title "CSE-D-4-1" already exists'
        assert len(backend.configs) == 1
        assert len(hub.clients[0].emitted) == emitted

    def test_invalid_form_sends_nothing(self, registry, backend, form):
        _, session = registry.login('admin', PASSWORD, 'admin')
        count = len(backend.requests)
        with pytest.raises(ValidationError):
            session.save(form.model_copy(update={'title': 'CSE-D-4'}))
        assert len(backend.requests) == count

    def test_bsh_save(self, registry, backend, hub, form):
        _, session = registry.login('bsh_staff', PASSWORD, 'bsh')
        result = session.save(form.model_copy(update={'title': 'Physics batch'}))
        assert result.configuration.branch == 'CSE-BSH'
        assert result.configuration.title == 'PHYSICS BATCH'
        assert hub.clients[0].emitted[-1] == (CONFIG_UPDATED, {'branch': 'BSH'})

    def test_update_existing(self, registry, backend, form):
        _, session = registry.login('admin', PASSWORD, 'admin')
        created = session.save(form).configuration
        updated = session.save(created.model_copy(update={'section': 'E', 'title': 'CSE-E-4-1'}),
                               config_id=created.id)
        assert updated.configuration.section == 'E'
        assert backend.configs[created.id]['title'] == 'CSE-E-4-1'

    def test_one_submission_at_a_time(self, registry, backend, form):
        _, session = registry.login('admin', PASSWORD, 'admin')
        count = len(backend.requests)
        with session._submission():
            assert session.submitting
            with pytest.raises(SubmissionInProgressError):
                session.save(form)
            with pytest.raises(SubmissionInProgressError):
                session.delete('1')
        assert len(backend.requests) == count
        assert not session.submitting
        assert isinstance(session.save(form), Saved)

    def test_delete(self, registry, backend, hub, form):
        _, session = registry.login('admin', PASSWORD, 'admin')
        created = session.save(form).configuration
        session.delete(created.id)
        assert backend.configs == {}
        assert session.configs() == []
        assert hub.clients[0].emitted[-1] == (CONFIG_UPDATED, {'branch': 'CSE'})


def _malformed_list(request):
    return httpx.Response(200, json=[{'title': 'X', 'year': None}])


class TestRefreshFailures:
    """A mutation that reached the backend is reported even if the re-fetch fails."""

    def test_save_survives_malformed_list(self, registry, backend, hub, form):
        _, session = registry.login('admin', PASSWORD, 'admin')
        backend.overrides[('GET', '/config')] = _malformed_list
        result = session.save(form)
        assert isinstance(result, Saved)
        assert len(backend.configs) == 1
        assert hub.clients[0].emitted[-1] == (CONFIG_UPDATED, {'branch': 'CSE'})

    def test_delete_survives_failed_refresh(self, registry, backend, hub, form):
        _, session = registry.login('admin', PASSWORD, 'admin')
        created = session.save(form).configuration
        backend.overrides[('GET', '/config')] = lambda request: httpx.Response(500)
        session.delete(created.id)
        assert backend.configs == {}


class TestDeleteBroadcast:
    def test_uncached_record_uses_fetched_branch(self, registry, backend, hub, form):
        backend.configs['1'] = dict(form.to_payload(), _id='1', title='ECE-A-4-1', branch='ECE')
        _, session = registry.login('admin', PASSWORD, 'admin')
        session.delete('1')
        assert hub.clients[0].emitted[-1] == (CONFIG_UPDATED, {'branch': 'ECE'})

    def test_unknown_branch_is_not_broadcast(self, registry, backend, hub, form):
        backend.configs['1'] = dict(form.to_payload(), _id='1')
        _, session = registry.login('admin', PASSWORD, 'admin')
        backend.overrides[('GET', '/config')] = lambda request: httpx.Response(500)
        session.delete('1')
        assert backend.configs == {}
        assert all(event != CONFIG_UPDATED for event, _ in hub.clients[0].emitted)
