"""
Remote mirror boundary.

The crime records can in principle be mirrored to a remote database server.
No server exists yet: the configured URL is a placeholder and there is never
an auth token, so every push is a logged no-op and pulls return nothing.
The coordinator still reports connectivity and a status line so callers can
tell users they are working offline.
"""

import logging
from enum import Enum

import requests

from crime_write_service import config

logger = logging.getLogger(__name__)

STATUS_NOT_SYNCED = "Not synced"
STATUS_OFFLINE = "Offline mode - using local database"
STATUS_ONLINE = "Connected to remote database"


class DatabaseMode(Enum):
    LOCAL_ONLY = "LOCAL_ONLY"
    REMOTE_ONLY = "REMOTE_ONLY"
    HYBRID = "HYBRID"


class SyncError(Exception):
    """Raised when a sync cannot run."""


class SyncCoordinator:
    def __init__(self, mode=None, remote_base_url=None, timeout=None):
        mode = mode or config.DATABASE_MODE
        self.mode = mode if isinstance(mode, DatabaseMode) else DatabaseMode(mode)
        self.remote_base_url = remote_base_url or config.REMOTE_BASE_URL
        self.timeout = timeout or config.REMOTE_TIMEOUT
        self.is_online = False
        self.status = STATUS_NOT_SYNCED

    @property
    def remote_enabled(self) -> bool:
        return self.mode in (DatabaseMode.REMOTE_ONLY, DatabaseMode.HYBRID)

    def check_connectivity(self) -> bool:
        """Probe the remote server once and update is_online / status."""
        if not self.remote_enabled or self.remote_base_url == config.PLACEHOLDER_REMOTE_URL:
            return self._set_online(False)

        try:
            response = requests.get(self.remote_base_url + "crimes", timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.info(f"Remote database unreachable ({e}), using offline mode")
            return self._set_online(False)

        return self._set_online(True)

    def _set_online(self, online):
        self.is_online = online
        self.status = STATUS_ONLINE if online else STATUS_OFFLINE
        logger.debug(self.status)
        return online

    def _push(self, action, record) -> bool:
        if not self.is_online:
            return False
        # Without an auth token the remote API cannot be called
        logger.info(f"Would sync {action} of crime {record.crime_id} to remote database")
        return False

    def push_create(self, record) -> bool:
        return self._push("create", record)

    def push_update(self, record) -> bool:
        return self._push("update", record)

    def push_delete(self, record) -> bool:
        return self._push("delete", record)

    def pull_all(self) -> list:
        return []

    def sync_from_remote(self, store) -> int:
        """Copy every remote record into the local store. Returns how many were written."""
        if not self.is_online:
            self.status = STATUS_OFFLINE
            raise SyncError("No internet connection")

        remote_crimes = self.pull_all()
        synced = store.insert_batch(remote_crimes)
        self.status = f"Sync completed: {synced} crimes"
        logger.info(self.status)
        return synced
