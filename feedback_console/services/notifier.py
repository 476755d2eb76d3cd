"""
Live-update notifier.

After a configuration is created, updated or deleted, peers viewing the
same rooms get a `config-refresh` hint and re-fetch their list through the
gateway. Hints carry no data and may be lost; a manual refresh always
returns the authoritative state, so every socket failure here is logged
and otherwise ignored.
"""
import logging

import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError, SocketIOError

from feedback_console import config
from feedback_console.utils import is_bsh

logger = logging.getLogger(__name__)

JOIN_ROOM = 'join-room'
CONFIG_UPDATED = 'config-updated'
CONFIG_REFRESH = 'config-refresh'
FEEDBACK_REFRESH = 'feedback-refresh'


def rooms_for(user):
    """Rooms a user joins, by role."""
    if user is None:
        return []
    if user.role == config.ROLE_ADMIN:
        return ['admin', 'all-branches']
    if user.role == config.ROLE_COORDINATOR:
        return [f'branch-{user.branch}', 'coordinators']
    if user.role == config.ROLE_BSH:
        return ['bsh']
    return []


def refresh_tag(role, branch):
    """Branch tag broadcast after a mutation; BSH changes are department-wide."""
    return 'BSH' if is_bsh(role) else branch


def _default_client():
    return socketio.Client(reconnection=True)


class LiveUpdateNotifier:
    """One Socket.IO connection for one console session."""

    def __init__(self, url=None, client_factory=None):
        self.url = url or config.SOCKET_URL
        self._client_factory = client_factory or _default_client
        self._client = None
        self.rooms = []
        self._callbacks = {CONFIG_REFRESH: [], FEEDBACK_REFRESH: []}

    @property
    def connected(self):
        return self._client is not None and bool(self._client.connected)

    def on_config_refresh(self, callback):
        self._callbacks[CONFIG_REFRESH].append(callback)

    def on_feedback_refresh(self, callback):
        self._callbacks[FEEDBACK_REFRESH].append(callback)

    def connect(self, user):
        """Open the connection and claim the user's rooms.

        Rooms are re-joined on every (re)connect, since the server drops
        membership when a socket goes away. Returns False when the server
        could not be reached.
        """
        self.disconnect()
        self.rooms = rooms_for(user)
        client = self._client_factory()
        client.on('connect', lambda *args: self._join_rooms(client))
        client.on(CONFIG_REFRESH, self._make_dispatcher(CONFIG_REFRESH))
        client.on(FEEDBACK_REFRESH, self._make_dispatcher(FEEDBACK_REFRESH))
        self._client = client
        try:
            client.connect(
                self.url,
                transports=['websocket', 'polling'],
                socketio_path=config.SOCKET_PATH,
            )
        except SocketConnectionError as e:
            logger.warning(f"Live updates unavailable for {user.username}: {e}")
            return False
        logger.info(f"Live updates connected for {user.username} (rooms: {', '.join(self.rooms)})")
        return True

    def _join_rooms(self, client):
        for room in self.rooms:
            client.emit(JOIN_ROOM, room)

    def _make_dispatcher(self, event):
        def dispatch(*args):
            for callback in list(self._callbacks[event]):
                try:
                    callback()
                except Exception:
                    # A failed re-fetch only delays the refresh until the next hint or manual reload
                    logger.exception(f"Error handling {event}")
        return dispatch

    def broadcast_change(self, tag):
        """Tell peers that configurations for `tag` changed."""
        if not self.connected:
            logger.debug(f"Skipping {CONFIG_UPDATED} for {tag}: not connected")
            return False
        try:
            self._client.emit(CONFIG_UPDATED, {'branch': tag})
        except SocketIOError as e:
            logger.warning(f"Could not broadcast {CONFIG_UPDATED} for {tag}: {e}")
            return False
        return True

    def disconnect(self):
        if self._client is None:
            return
        client, self._client = self._client, None
        try:
            client.disconnect()
        except SocketIOError as e:
            logger.warning(f"Error closing live update connection: {e}")
        self.rooms = []
