"""
Console session lifecycle.

A ConsoleSession exists from login to logout. It owns the user's gateway
credential, the live-update connection and the cached configuration list,
and lets only one submission run at a time.
"""
import logging
import secrets
import threading
from contextlib import contextmanager

from feedback_console import config
from feedback_console.models import ConsoleError, DuplicateTitle, Saved, SubmissionInProgressError
from feedback_console.services import identity
from feedback_console.services.notifier import refresh_tag

logger = logging.getLogger(__name__)


class ConsoleSession:
    def __init__(self, user, gateway, notifier=None):
        self.user = user
        self.gateway = gateway
        self.notifier = notifier
        self.version = 0
        self._configs = None
        self._cache_lock = threading.Lock()
        self._submit_lock = threading.Lock()
        if notifier is not None:
            notifier.on_config_refresh(self._on_config_refresh)

    @property
    def role(self):
        return self.user.role

    def start(self):
        if self.notifier is not None:
            self.notifier.connect(self.user)

    def close(self):
        if self.notifier is not None:
            self.notifier.disconnect()
        self.gateway.close()
        logger.info(f"Session closed for {self.user.username}")

    # ── configuration list ──────────────────────────────────────────────

    def list_filters(self):
        if self.role == config.ROLE_BSH:
            return {'role': config.ROLE_BSH}
        if self.role == config.ROLE_COORDINATOR and self.user.branch:
            return {'branch': self.user.branch}
        return {}

    def refresh_configs(self):
        configs = self.gateway.list_configs(**self.list_filters())
        with self._cache_lock:
            self._configs = configs
            self.version += 1
        return configs

    def configs(self, refresh=False):
        with self._cache_lock:
            cached = self._configs
        if refresh or cached is None:
            return self.refresh_configs()
        return cached

    def find_config(self, config_id):
        with self._cache_lock:
            cached = self._configs or []
        return next((c for c in cached if c.id == config_id), None)

    def _on_config_refresh(self):
        logger.info(f"Refresh hint received for {self.user.username}")
        self.refresh_configs()

    # ── mutations ───────────────────────────────────────────────────────

    @contextmanager
    def _submission(self):
        if not self._submit_lock.acquire(blocking=False):
            raise SubmissionInProgressError()
        try:
            yield
        finally:
            self._submit_lock.release()

    @property
    def submitting(self):
        return self._submit_lock.locked()

    def save(self, form, config_id=None):
        """Create or update a configuration.

        Validation runs first and raises before anything is sent. Returns
        Saved, or DuplicateTitle when creating a title that already exists.
        """
        record = identity.finalize(form, self.role)
        with self._submission():
            if config_id:
                result = Saved(configuration=self.gateway.update_config(config_id, record))
            else:
                result = self.gateway.create_config(record)
                if isinstance(result, DuplicateTitle):
                    return result
            logger.info(f"Configuration {record.title} saved by {self.user.username}")
            self._after_mutation(result.configuration.branch or record.branch)
        return result

    def delete(self, config_id):
        with self._submission():
            existing = self._lookup(config_id)
            response = self.gateway.delete_config(config_id)
            logger.info(f"Configuration {config_id} deleted by {self.user.username}")
            self._after_mutation(existing.branch if existing else None)
        return response

    def _lookup(self, config_id):
        """Cached record, or a fresh list lookup when it is not cached."""
        existing = self.find_config(config_id)
        if existing is not None:
            return existing
        try:
            return next((c for c in self.refresh_configs() if c.id == config_id), None)
        except ConsoleError as e:
            logger.warning(f"Could not look up configuration {config_id}: {e.message}")
            return None

    def _after_mutation(self, branch):
        try:
            self.refresh_configs()
        except ConsoleError as e:
            # The change is already persisted; the next refresh will pick it up
            logger.warning(f"Could not refresh configurations after change: {e.message}")
        if self.notifier is None:
            return
        tag = refresh_tag(self.role, branch)
        if not tag:
            logger.warning("Not broadcasting change: branch unknown")
            return
        self.notifier.broadcast_change(tag)


class SessionRegistry:
    """Active console sessions keyed by an opaque session id."""

    def __init__(self, gateway_factory, notifier_factory=None):
        self._gateway_factory = gateway_factory
        self._notifier_factory = notifier_factory
        self._sessions = {}
        self._lock = threading.Lock()

    def login(self, username, password, role):
        """Authenticate and open a session; returns (session_id, session)."""
        gateway = self._gateway_factory()
        try:
            result = gateway.login(username, password, role)
        except Exception:
            gateway.close()
            raise
        notifier = self._notifier_factory() if self._notifier_factory else None
        session = ConsoleSession(result['user'], gateway, notifier)
        try:
            session.start()
        except Exception:
            session.close()
            raise
        session_id = secrets.token_urlsafe(24)
        with self._lock:
            self._sessions[session_id] = session
        logger.info(f"Session opened for {session.user.username} ({session.role})")
        return session_id, session

    def get(self, session_id):
        if not session_id:
            return None
        with self._lock:
            return self._sessions.get(session_id)

    def logout(self, session_id):
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None:
            session.close()
        return session is not None

    def close_all(self):
        with self._lock:
            sessions, self._sessions = list(self._sessions.values()), {}
        for session in sessions:
            session.close()

    def __len__(self):
        with self._lock:
            return len(self._sessions)
